"""
collab_graph/ingestion/data_source.py - Interval and snapshot resources.

Resources (relative to config.data_url):
    intervals.json                    ordered epoch-second timestamps
    project_members.json              full/baseline snapshot
    project_members/project_members-interval-{id}.json
                                      snapshot for one interval

data_url is either a local directory or an http(s) base URL. HTTP uses only
Python stdlib (urllib.request). Reads are blocking and are moved off the
event loop with asyncio.to_thread().

Unlike best-effort enrichment clients, failures here are not swallowed: a
missing snapshot is fatal for the tick that needed it, so every failure is
raised as DataSourceError.
"""

import asyncio
import json
import logging
import os
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

import pandas as pd

from collab_graph.config import DEFAULT_CONFIG, CollabGraphConfig

logger = logging.getLogger(__name__)


class DataSourceError(RuntimeError):
    """A resource could not be fetched or parsed."""


def interval_date(interval: int | float) -> pd.Timestamp:
    """Convert an epoch-second interval stamp to a UTC timestamp."""
    return pd.Timestamp(int(interval), unit="s", tz="UTC")


class DataSource:
    """
    Loads JSON resources from a local directory or an HTTP base URL.

    Args:
        config: CollabGraphConfig. Uses data_url, the file name settings and
                request_timeout_s.
    """

    def __init__(self, config: CollabGraphConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.base = config.data_url
        self.remote = urllib.parse.urlparse(self.base).scheme in ("http", "https")

    def location(self, resource: str) -> str:
        """Full URL or path of a resource name."""
        if self.remote:
            return urllib.parse.urljoin(self.base.rstrip("/") + "/", resource)
        return os.path.join(self.base, resource)

    def interval_resource(self, interval: int | float) -> str:
        return self.config.interval_file_template.format(id=int(interval))

    def _get_json(self, resource: str) -> Any:
        """Blocking read of one JSON resource."""
        location = self.location(resource)
        logger.debug("Loading %s", location)
        try:
            if self.remote:
                req = urllib.request.Request(
                    location,
                    headers={"Accept": "application/json"},
                )
                with urllib.request.urlopen(req, timeout=self.config.request_timeout_s) as resp:
                    return json.loads(resp.read())
            with open(location, encoding="utf-8") as fh:
                return json.load(fh)
        except urllib.error.HTTPError as exc:
            raise DataSourceError(f"HTTP {exc.code} fetching {location}: {exc.reason}") from exc
        except urllib.error.URLError as exc:
            raise DataSourceError(f"Network error fetching {location}: {exc.reason}") from exc
        except json.JSONDecodeError as exc:
            raise DataSourceError(f"Invalid JSON in {location}: {exc}") from exc
        except OSError as exc:
            raise DataSourceError(f"Cannot read {location}: {exc}") from exc
        except Exception as exc:  # noqa: BLE001
            raise DataSourceError(f"Unexpected error fetching {location}: {exc!r}") from exc

    async def _fetch(self, resource: str) -> Any:
        return await asyncio.to_thread(self._get_json, resource)

    async def fetch_intervals(self) -> list[int]:
        data = await self._fetch(self.config.intervals_file)
        if not isinstance(data, list):
            raise DataSourceError(
                f"Expected a list of intervals in {self.config.intervals_file}, "
                f"got {type(data).__name__}"
            )
        logger.info("Loaded %d timelapse intervals.", len(data))
        return [int(i) for i in data]

    async def fetch_baseline(self) -> list[dict]:
        return await self._fetch_records(self.config.baseline_file)

    async def fetch_interval(self, interval: int | float) -> list[dict]:
        return await self._fetch_records(self.interval_resource(interval))

    async def _fetch_records(self, resource: str) -> list[dict]:
        data = await self._fetch(resource)
        if not isinstance(data, list):
            raise DataSourceError(
                f"Expected a list of edge records in {resource}, got {type(data).__name__}"
            )
        return data
