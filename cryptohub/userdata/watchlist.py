"""Watchlist persistence.

The watchlist is an ordered list of WatchlistItem stored under the
`watchlist` key. Every write builds a new list from the current one.
"""

from __future__ import annotations

import logging
from typing import Sequence

from cryptohub.storage.store import PersistentStore
from cryptohub.types import StorageKey, WatchlistItem

logger = logging.getLogger(__name__)


class WatchlistManager:
    """Ordered set of watched coins keyed by coin id."""

    def __init__(self, store: PersistentStore) -> None:
        self._store = store
        self._key = StorageKey.WATCHLIST.value

    def get(self) -> list[WatchlistItem]:
        raw = self._store.get(self._key, [])
        if not isinstance(raw, list):
            return []
        return [WatchlistItem.from_dict(item) for item in raw]

    def _save(self, items: Sequence[WatchlistItem]) -> bool:
        return self._store.set(self._key, [item.to_dict() for item in items])

    def add(self, coin_id: str, symbol: str = "", name: str = "") -> bool:
        """Append a coin. Returns False if it is already watched or the write fails."""
        items = self.get()
        if any(item.id == coin_id for item in items):
            return False

        item = WatchlistItem(id=coin_id, symbol=symbol, name=name, added_at=self._store.now())
        return self._save([*items, item])

    def remove(self, coin_id: str) -> bool:
        return self._save([item for item in self.get() if item.id != coin_id])

    def has(self, coin_id: str) -> bool:
        return any(item.id == coin_id for item in self.get())

    def toggle(self, coin_id: str, symbol: str = "", name: str = "") -> bool:
        """Add the coin if absent, remove it otherwise.

        Returns:
            True if the coin is watched after the call
        """
        if self.has(coin_id):
            self.remove(coin_id)
            return False

        self.add(coin_id, symbol, name)
        return True

    def reorder(self, coin_ids: Sequence[str]) -> bool:
        """Rewrite the watchlist in the given order.

        Ids that are not watched are ignored; watched coins missing from
        `coin_ids` are dropped.
        """
        by_id = {item.id: item for item in self.get()}
        reordered = [by_id[coin_id] for coin_id in coin_ids if coin_id in by_id]
        logger.debug(f"Reordered watchlist: {len(reordered)} of {len(by_id)} items kept")
        return self._save(reordered)

    def clear(self) -> bool:
        return self._save([])
