"""Recent search history, most recent first."""

from __future__ import annotations

from typing import Optional

from cryptohub.storage.store import PersistentStore
from cryptohub.types import RecentSearch, StorageKey

DEFAULT_MAX_ITEMS = 10


class RecentSearchesManager:
    """De-duplicated search history trimmed to `max_items` entries."""

    def __init__(self, store: PersistentStore, max_items: int = DEFAULT_MAX_ITEMS) -> None:
        if max_items < 1:
            raise ValueError(f"max_items must be >= 1, got {max_items}")

        self._store = store
        self._key = StorageKey.RECENT_SEARCHES.value
        self.max_items = max_items

    def get(self) -> list[RecentSearch]:
        raw = self._store.get(self._key, [])
        if not isinstance(raw, list):
            return []
        return [RecentSearch.from_dict(item) for item in raw]

    def add(self, coin_id: str, symbol: str = "", name: str = "", image: Optional[str] = None) -> bool:
        """Move (or insert) a search to the front of the history."""
        entry = RecentSearch(
            id=coin_id,
            symbol=symbol,
            name=name,
            image=image,
            searched_at=self._store.now(),
        )
        searches = [entry, *(s for s in self.get() if s.id != coin_id)]
        return self._store.set(self._key, [s.to_dict() for s in searches[: self.max_items]])

    def remove(self, coin_id: str) -> bool:
        searches = [s.to_dict() for s in self.get() if s.id != coin_id]
        return self._store.set(self._key, searches)

    def clear(self) -> bool:
        return self._store.set(self._key, [])
