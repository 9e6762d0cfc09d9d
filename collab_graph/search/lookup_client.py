"""
Encryption Lookup Client - remote name encryption for private person nodes.

Person node IDs may be encrypted names. To find such a person, the plain name
is sent to the deployment's encryption service, which answers with the
ciphertext and the encryption level used for the graph data:

    GET <encrypt_url>?value=<name>  ->  {"value": "<ciphertext>", "encryption": 1}

Uses only Python stdlib (urllib.request). The blocking request runs in a
worker thread so the event loop keeps ticking while a lookup is in flight.
"""
import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class LookupServiceError(RuntimeError):
    """The encryption service could not be reached or answered nonsense."""


@dataclass(frozen=True)
class EncryptedName:
    """Ciphertext of a name and the encryption level it was produced with."""

    value: str
    encryption: int


class EncryptionLookupClient:
    """Client for the name-encryption lookup endpoint.

    Args:
        url:       Endpoint URL (config.encrypt_url).
        timeout_s: Request timeout in seconds.
    """

    def __init__(self, url: str, timeout_s: float = 30.0) -> None:
        self.url = url
        self.timeout_s = timeout_s

    def request_url(self, name: str) -> str:
        """Endpoint URL with the name as the ``value`` query parameter."""
        separator = "&" if urllib.parse.urlparse(self.url).query else "?"
        return f"{self.url}{separator}{urllib.parse.urlencode({'value': name})}"

    def _get(self, name: str) -> dict:
        url = self.request_url(name)
        try:
            req = urllib.request.Request(url, headers={"Accept": "application/json"})
            with urllib.request.urlopen(req, timeout=self.timeout_s) as resp:
                return json.loads(resp.read())
        except urllib.error.HTTPError as exc:
            raise LookupServiceError(
                f"Encryption lookup HTTP {exc.code}: {exc.reason}"
            ) from exc
        except urllib.error.URLError as exc:
            raise LookupServiceError(f"Encryption lookup network error: {exc.reason}") from exc
        except json.JSONDecodeError as exc:
            raise LookupServiceError(f"Encryption lookup returned invalid JSON: {exc}") from exc
        except Exception as exc:  # noqa: BLE001
            raise LookupServiceError(f"Encryption lookup failed for {url}: {exc!r}") from exc

    def encrypt_sync(self, name: str) -> EncryptedName:
        """Blocking lookup of the encrypted form of ``name``.

        Raises:
            LookupServiceError: transport failure or a response without
                                ``value``/``encryption``.
        """
        data = self._get(name)
        try:
            return EncryptedName(value=str(data["value"]), encryption=int(data["encryption"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise LookupServiceError(f"Unexpected encryption lookup response: {data!r}") from exc

    async def encrypt(self, name: str) -> EncryptedName:
        return await asyncio.to_thread(self.encrypt_sync, name)
