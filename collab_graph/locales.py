"""
collab_graph/locales.py - Access to an externally provided locale resource.

The resource maps a language code to its tables:

    {
      "en": {
        "messages":        {"timelapse": "Timelapse", ...},
        "node-types":      {"project": "Project", ...},
        "connector_words": ["van", "de", ...],
        "months":          ["January", ..., "December"]
      },
      "nl": {...}
    }

Storing the strings is not this package's concern; it only selects a
language and looks values up, falling back to the key itself.
"""

import json
import logging
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)


class Locale:
    """
    Language selection and lookups over a locale resource.

    Args:
        resource: Mapping of language code to locale tables.
        default:  Language used when none (or an unknown one) is selected.
                  Defaults to the first language in resource.
    """

    def __init__(self, resource: dict[str, dict[str, Any]], default: str | None = None) -> None:
        self.resource = resource
        self.default = default or next(iter(resource), "en")
        self.lang = self.default

    @classmethod
    def from_file(cls, path: str, default: str | None = None) -> "Locale":
        with open(path, encoding="utf-8") as fh:
            return cls(json.load(fh), default=default)

    def select(self, lang: str | None) -> str:
        """Select a language; unknown or empty codes fall back to the default."""
        if lang and lang in self.resource:
            self.lang = lang
        else:
            if lang:
                logger.warning("Unknown locale '%s'; using '%s'.", lang, self.default)
            self.lang = self.default
        return self.lang

    @property
    def tables(self) -> dict[str, Any]:
        return self.resource.get(self.lang, {})

    def message(self, key: str) -> str:
        return self.tables.get("messages", {}).get(key, key)

    def attribute(self, section: str, key: str) -> str:
        return self.tables.get(section, {}).get(key, key)

    def connector_words(self, fallback: tuple[str, ...] | list[str] = ()) -> frozenset[str]:
        """Words kept lowercase in person names ("van", "de", ...)."""
        words = self.tables.get("connector_words")
        if words is None:
            words = fallback
        return frozenset(words)

    def format_month(self, date: pd.Timestamp) -> str:
        """Format a date as '<month name> <year>' in the selected language."""
        months = self.tables.get("months")
        if months and len(months) == 12:
            return f"{months[date.month - 1]} {date.year}"
        return date.strftime("%B %Y")
