"""
collab_graph/search/resolver.py - Resolve a typed name to a project or person node.

Resolution order for a non-empty query:

    1. Project match   - case-insensitive equality with a project node ID.
    2. Person match    - the query normalized to display-name form equals the
                         ID of a plaintext (encryption == 0) person node.
    3. Remote match    - after a debounce delay, the normalized name is sent
                         to the encryption lookup service; its ciphertext and
                         encryption level must both match a person node.

Every new query cancels the pending debounce of the previous one, so only the
last query typed can reach the lookup service. Side effects of a match
(highlighting, zooming) belong to the renderer; the resolver only returns the
node.
"""

import asyncio
import logging
import re
from collections.abc import Iterable

from collab_graph.config import DEFAULT_CONFIG, CollabGraphConfig
from collab_graph.graph.model import PERSON_KINDS, PROJECT_KINDS, GraphModel, Node
from collab_graph.search.lookup_client import EncryptionLookupClient, LookupServiceError
from collab_graph.timelapse.timers import AsyncioTimers, TimerHandle

logger = logging.getLogger(__name__)

# A token is a run of name characters, keeping a trailing hyphen attached.
# Spaces separate tokens and are dropped.
_TOKEN_RE = re.compile(r"[^ -]*-|[^ -]+")


class NotFound(LookupError):
    """No node matches the query."""


def title_case(word: str) -> str:
    """First character uppercase, the rest lowercase."""
    return word[:1].upper() + word[1:].lower()


def normalize_name(query: str, connector_words: Iterable[str] = ()) -> str:
    """
    Convert a typed person name to the display-name form used as node ID.

    Tokens are split at spaces and after hyphens, title-cased unless they are
    connector words, and concatenated without re-inserting spaces:

        >>> normalize_name("jan-van dijk", {"van"})
        'Jan-vanDijk'
    """
    connectors = frozenset(connector_words)
    tokens = _TOKEN_RE.findall(query)
    return "".join(
        token if token.rstrip("-") in connectors else title_case(token)
        for token in tokens
    )


class SearchResolver:
    """
    Debounced, privacy-preserving name search over a GraphModel.

    Args:
        model:           GraphModel of the session (read only).
        connector_words: Locale connector words kept lowercase in names.
        config:          CollabGraphConfig. Uses search_debounce_ms,
                         encrypt_url and request_timeout_s.
        lookup:          Encryption lookup client. Defaults to one built from
                         config.encrypt_url; None when no URL is configured.
        timers:          Timer factory; AsyncioTimers by default.
    """

    def __init__(
        self,
        model: GraphModel,
        connector_words: Iterable[str] = (),
        config: CollabGraphConfig = DEFAULT_CONFIG,
        lookup: EncryptionLookupClient | None = None,
        timers: AsyncioTimers | None = None,
    ) -> None:
        self.model = model
        self.connector_words = frozenset(connector_words)
        self.config = config
        if lookup is None and config.encrypt_url:
            lookup = EncryptionLookupClient(config.encrypt_url, config.request_timeout_s)
        self.lookup = lookup
        self.timers = timers or AsyncioTimers()

        self._pending_timer: TimerHandle | None = None
        self._pending: asyncio.Future | None = None

    def search_title_key(self) -> str:
        """Locale message key for the search field tooltip."""
        if self.model.all_encrypted and self.lookup is None:
            return "search-title-anonymous"
        return "search-title"

    def cancel_pending(self) -> None:
        """Dispose the pending debounce; its awaiting caller is cancelled."""
        if self._pending_timer is not None:
            self._pending_timer.cancel()
            self._pending_timer = None
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    # ── Local matching ────────────────────────────────────────────────────────

    def match_project(self, query: str) -> Node | None:
        wanted = query.upper()
        for node in self.model.nodes():
            if node.kind in PROJECT_KINDS and node.id.upper() == wanted:
                return node
        return None

    def match_person(self, name: str, encryption: int = 0) -> Node | None:
        if not self.model.has_node(name):
            return None
        node = self.model.node(name)
        if node.kind in PERSON_KINDS and node.encryption == encryption:
            return node
        return None

    # ── Resolution ────────────────────────────────────────────────────────────

    async def resolve(self, query: str) -> Node | None:
        """
        Resolve a query to a node.

        Returns:
            The matching Node, or None for an empty query (no selection).

        Raises:
            NotFound:               No local or remote match.
            asyncio.CancelledError: A newer query superseded this one while
                                    it was waiting for the debounce or the
                                    lookup service.
        """
        self.cancel_pending()
        if query == "":
            return None

        node = self.match_project(query)
        if node is not None:
            return node

        name = normalize_name(query, self.connector_words)
        node = self.match_person(name)
        if node is not None:
            return node

        return await self._debounced_remote_match(name)

    async def _debounced_remote_match(self, name: str) -> Node:
        future = asyncio.get_running_loop().create_future()

        def relay(task: asyncio.Task) -> None:
            exc = None if task.cancelled() else task.exception()
            if future.done():
                return
            if task.cancelled():
                future.cancel()
            elif exc is not None:
                future.set_exception(exc)
            else:
                future.set_result(task.result())

        def fire() -> None:
            self._pending_timer = None
            if not future.done():
                asyncio.ensure_future(self.remote_match(name)).add_done_callback(relay)

        self._pending = future
        self._pending_timer = self.timers.call_later(self.config.search_debounce_ms, fire)
        return await future

    async def remote_match(self, name: str) -> Node:
        """
        Match a person through the encryption lookup service.

        Raises:
            NotFound: No lookup service configured, the service failed, or
                      no person node carries the returned ciphertext and
                      encryption level.
        """
        if self.lookup is None:
            raise NotFound(name)

        try:
            encrypted = await self.lookup.encrypt(name)
        except LookupServiceError as exc:
            logger.warning("Encrypted search for a name failed: %s", exc)
            raise NotFound(name) from exc

        node = self.match_person(encrypted.value, encrypted.encryption)
        if node is None:
            raise NotFound(name)
        return node
