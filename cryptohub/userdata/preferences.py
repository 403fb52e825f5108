"""
User preferences.

Preferences are a nested dict stored under `user_settings`. Reads overlay the
stored tree on DEFAULT_PREFERENCES; writes never mutate a tree obtained from a
read, they build a new one with `deep_merge` / `assoc_path` and store it.

Usage:
    prefs = PreferencesManager(store)
    prefs.get("notifications.price_alerts")  # True
    prefs.set("display.compact_numbers", False)
    prefs.set_many({"theme": "light", "notifications": {"news_alerts": True}})
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping, Sequence

from cryptohub.storage.store import PersistentStore
from cryptohub.types import StorageKey

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES: Mapping[str, Any] = {
    "theme": "dark",
    "currency": "USD",
    "language": "en",
    "timezone": "UTC",
    "price_change_format": "percent",  # "percent" or "absolute"
    "chart_timeframe": "24h",
    "chart_type": "line",
    "notifications": {
        "price_alerts": True,
        "portfolio_updates": True,
        "news_alerts": False,
    },
    "display": {
        "show_market_cap": True,
        "show_volume": True,
        "show_supply": True,
        "compact_numbers": True,
    },
}


def deep_merge(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new dict with `updates` merged into `base`.

    Nested mappings are merged recursively; any other value in `updates`
    replaces the one in `base`. Neither argument is modified.
    """
    merged: dict[str, Any] = {key: copy.deepcopy(value) for key, value in base.items()}

    for key, value in updates.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)

    return merged


def assoc_path(tree: Mapping[str, Any], path: Sequence[str], value: Any) -> dict[str, Any]:
    """Return a copy of `tree` with `value` set at `path`.

    Missing or non-mapping intermediate nodes are replaced by new dicts.
    """
    head, *rest = path
    updated = dict(tree)

    if not rest:
        updated[head] = value
        return updated

    child = tree.get(head)
    updated[head] = assoc_path(child if isinstance(child, Mapping) else {}, rest, value)
    return updated


def _split_path(key: str) -> list[str]:
    parts = key.split(".")
    if not all(parts):
        raise ValueError(f"Invalid preference key: {key!r}")
    return parts


class PreferencesManager:
    """Nested user settings with defaults."""

    def __init__(self, store: PersistentStore, defaults: Mapping[str, Any] = DEFAULT_PREFERENCES) -> None:
        self._store = store
        self._key = StorageKey.USER_SETTINGS.value
        self._defaults = defaults

    @property
    def defaults(self) -> dict[str, Any]:
        return copy.deepcopy(dict(self._defaults))

    def get_all(self) -> dict[str, Any]:
        """Stored preferences merged over the defaults."""
        stored = self._store.get(self._key, {})
        if not isinstance(stored, Mapping):
            stored = {}
        return deep_merge(self._defaults, stored)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as 'notifications.price_alerts'."""
        node: Any = self.get_all()
        for part in _split_path(key):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> bool:
        updated = assoc_path(self.get_all(), _split_path(key), value)
        return self._store.set(self._key, updated)

    def set_many(self, preferences: Mapping[str, Any]) -> bool:
        return self._store.set(self._key, deep_merge(self.get_all(), preferences))

    def reset(self) -> bool:
        logger.info("Resetting preferences to defaults")
        return self._store.set(self._key, self.defaults)
