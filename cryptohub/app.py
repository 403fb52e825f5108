"""Application context.

Builds one PersistentStore and hands the same handle to every manager, so
there is no module-level shared store.

Usage:
    ctx = AppContext.from_env()
    ctx.watchlist.add("bitcoin", "btc", "Bitcoin")
    ctx.ledger.add_transaction("bitcoin", "btc", "buy", "30000", "0.1")
    hits = ctx.alert_engine.evaluate({"bitcoin": MarketSnapshot(price=31_000.0)})
"""

from __future__ import annotations

from typing import Optional

from cryptohub.alerts.engine import AlertEngine
from cryptohub.alerts.store import AlertStore
from cryptohub.config import StoreConfig, build_backend
from cryptohub.portfolio.ledger import PortfolioLedger
from cryptohub.storage.backends import StorageBackend
from cryptohub.storage.cache import CacheLayer
from cryptohub.storage.store import Clock, PersistentStore
from cryptohub.userdata.preferences import PreferencesManager
from cryptohub.userdata.recent_searches import RecentSearchesManager
from cryptohub.userdata.watchlist import WatchlistManager


class AppContext:
    """Explicit wiring of the store and everything that persists through it."""

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        *,
        backend: Optional[StorageBackend] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Args:
            config: Store settings (defaults to StoreConfig())
            backend: Storage medium; built from config when omitted
            clock: Epoch-ms clock shared by every component
        """
        self.config = config or StoreConfig()
        self.backend = backend if backend is not None else build_backend(self.config)
        self.store = PersistentStore(
            self.backend,
            prefix=self.config.prefix,
            version=self.config.schema_version,
            clock=clock,
        )

        self.cache = CacheLayer(self.store, default_max_age=self.config.cache_max_age_ms)
        self.watchlist = WatchlistManager(self.store)
        self.preferences = PreferencesManager(self.store)
        self.recent_searches = RecentSearchesManager(self.store, self.config.recent_searches_limit)
        self.alerts = AlertStore(self.store)
        self.alert_engine = AlertEngine(self.alerts)
        self.ledger = PortfolioLedger(self.store)

    @classmethod
    def from_env(cls, *, clock: Optional[Clock] = None) -> "AppContext":
        return cls(StoreConfig.from_env(), clock=clock)
