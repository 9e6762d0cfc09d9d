"""
collab_graph/config.py - All tunable parameters for the collaboration graph.

Every decay window, playback speed bound and search delay lives here so that
calibration changes are a single-file diff. Deployment-specific values (the
encryption lookup endpoint, the connector words, the data location) can be
overlaid from a ``config.json`` with load_config().
"""

import dataclasses
import json
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollabGraphConfig:
    """
    Immutable configuration for a collaboration graph session.

    Override by constructing a new CollabGraphConfig with the desired values,
    or by loading a JSON overlay with load_config().
    """

    # ── Decay ─────────────────────────────────────────────────────────────────
    decay_months: int = 3
    # Edges whose last activity is this many calendar months (or more) before
    # the reference date are expired during a timelapse.

    # ── Timelapse playback ────────────────────────────────────────────────────
    default_speed_ms: int = 1500
    # Tick period when a timelapse starts. Lower is faster.

    fastest_speed_ms: int = 500
    slowest_speed_ms: int = 4000
    speed_step_ms: int = 500

    seed_interval_index: int = 9
    # Interval used as the timelapse seed; falls back to the first interval
    # when fewer intervals are available.

    seed_on_start: bool = False
    # Merge the seed interval's snapshot before the first tick is applied.
    # Off by default: the replay starts from an empty graph and the seed
    # interval is only resolved and logged.

    # ── Search ────────────────────────────────────────────────────────────────
    search_debounce_ms: int = 300

    encrypt_url: str | None = None
    # Remote name-encryption lookup. None disables encrypted search.

    lower_names: tuple[str, ...] = ()
    # Connector words kept lowercase during name normalization when the
    # locale does not provide its own set.

    # ── Data resources ────────────────────────────────────────────────────────
    data_url: str = "data"
    # Local directory or http(s) base URL holding the JSON resources.

    intervals_file: str = "intervals.json"
    baseline_file: str = "project_members.json"
    interval_file_template: str = "project_members/project_members-interval-{id}.json"

    request_timeout_s: float = 30.0


# Singleton default; import this everywhere instead of constructing anew.
DEFAULT_CONFIG = CollabGraphConfig()


def load_config(
    path: str | None = None,
    base: CollabGraphConfig = DEFAULT_CONFIG,
) -> CollabGraphConfig:
    """
    Overlay a ``config.json`` onto a base configuration.

    Args:
        path: JSON file to read. Defaults to $COLLAB_GRAPH_CONFIG, then to
              ``config.json`` in the working directory. A missing file
              returns ``base`` unchanged.
        base: Configuration supplying every value the file does not set.

    Returns:
        A new CollabGraphConfig.

    Notes:
        - ``lower_names`` may be given as a JSON list; it is stored as a tuple.
        - Unknown keys (e.g. navigation settings shared with other
          visualizations) are ignored with a warning.
    """
    path = path or os.environ.get("COLLAB_GRAPH_CONFIG") or "config.json"
    if not os.path.isfile(path):
        logger.debug("No configuration file at %s; using defaults.", path)
        return base

    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)

    known = {f.name for f in dataclasses.fields(CollabGraphConfig)}
    overrides = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning("Ignoring unknown configuration key '%s' in %s.", key, path)
            continue
        if key == "lower_names":
            value = tuple(value or ())
        overrides[key] = value

    logger.info("Loaded %d configuration overrides from %s.", len(overrides), path)
    return dataclasses.replace(base, **overrides)
