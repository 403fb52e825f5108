"""Store configuration from environment variables.

Variables:
    CRYPTOHUB_STORAGE_PREFIX         key namespace (default: cryptohub_)
    CRYPTOHUB_SCHEMA_VERSION         envelope version (default: 1.0)
    CRYPTOHUB_STORAGE_QUOTA_BYTES    capacity limit (default: unlimited)
    CRYPTOHUB_DATABASE_URL           SQLAlchemy URL; unset means in-memory
    CRYPTOHUB_CACHE_MAX_AGE_MS       cache freshness window (default: 300000)
    CRYPTOHUB_RECENT_SEARCHES_LIMIT  recent search history size (default: 10)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from cryptohub.storage.backends import MemoryBackend, SQLBackend, StorageBackend
from cryptohub.storage.cache import DEFAULT_MAX_AGE_MS
from cryptohub.storage.store import STORAGE_PREFIX, STORAGE_VERSION
from cryptohub.userdata.recent_searches import DEFAULT_MAX_ITEMS

logger = logging.getLogger(__name__)


def _int_env(env: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class StoreConfig:
    """Persistence settings.

    `database_url` may carry credentials. Do not log it.
    """

    prefix: str = STORAGE_PREFIX
    schema_version: str = STORAGE_VERSION
    quota_bytes: Optional[int] = None
    database_url: Optional[str] = None
    cache_max_age_ms: int = DEFAULT_MAX_AGE_MS
    recent_searches_limit: int = DEFAULT_MAX_ITEMS

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "StoreConfig":
        """Build a config from `env` (defaults to os.environ).

        Raises:
            ValueError: If a numeric variable is not an integer
        """
        env = os.environ if env is None else env

        return cls(
            prefix=env.get("CRYPTOHUB_STORAGE_PREFIX", "").strip() or STORAGE_PREFIX,
            schema_version=env.get("CRYPTOHUB_SCHEMA_VERSION", "").strip() or STORAGE_VERSION,
            quota_bytes=_int_env(env, "CRYPTOHUB_STORAGE_QUOTA_BYTES", None),
            database_url=env.get("CRYPTOHUB_DATABASE_URL", "").strip() or None,
            cache_max_age_ms=_int_env(env, "CRYPTOHUB_CACHE_MAX_AGE_MS", DEFAULT_MAX_AGE_MS),
            recent_searches_limit=_int_env(env, "CRYPTOHUB_RECENT_SEARCHES_LIMIT", DEFAULT_MAX_ITEMS),
        )


def build_backend(config: StoreConfig) -> StorageBackend:
    """SQLBackend when a database URL is configured, MemoryBackend otherwise."""
    if config.database_url:
        logger.info("Using SQL storage backend")
        return SQLBackend(config.database_url, quota_bytes=config.quota_bytes)

    logger.info("Using in-memory storage backend")
    return MemoryBackend(quota_bytes=config.quota_bytes)
