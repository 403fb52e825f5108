"""Key/value persistence: backends, envelope store and fetch cache."""

from .backends import MemoryBackend, SQLBackend, StorageBackend, StorageError, StorageQuotaExceeded
from .cache import CacheLayer, CacheNamespace, cache_key
from .store import PersistentStore, epoch_ms, format_bytes

__all__ = [
    # Backends
    "MemoryBackend",
    "SQLBackend",
    "StorageBackend",
    "StorageError",
    "StorageQuotaExceeded",
    # Store
    "PersistentStore",
    "epoch_ms",
    "format_bytes",
    # Cache
    "CacheLayer",
    "CacheNamespace",
    "cache_key",
]
