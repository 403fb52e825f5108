from __future__ import annotations

from .preferences import DEFAULT_PREFERENCES, PreferencesManager, assoc_path, deep_merge
from .recent_searches import RecentSearchesManager
from .watchlist import WatchlistManager

__all__ = [
    "DEFAULT_PREFERENCES",
    "PreferencesManager",
    "RecentSearchesManager",
    "WatchlistManager",
    "assoc_path",
    "deep_merge",
]
