"""Namespaced, versioned key/value store with TTL and change notification.

Every value is wrapped in an envelope before it reaches the backend:

    {"value": <T>, "version": "1.0", "timestamp": <epoch ms>, "expires": <epoch ms | null>}

Reads are lazy sweeps: an envelope that fails to decode, carries another
schema version, or is past its expiry is deleted and treated as absent.

Usage:
    from cryptohub.storage import MemoryBackend, PersistentStore

    store = PersistentStore(MemoryBackend(quota_bytes=5_000_000))
    store.set("watchlist", [{"id": "bitcoin"}])
    store.set("session_data", {"tab": "markets"}, ttl=60_000)
    unsubscribe = store.subscribe("watchlist", lambda value, key: print(key, value))
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional

from cryptohub.storage.backends import StorageBackend, StorageError, StorageQuotaExceeded
from cryptohub.types import StorageUsage, StoredItemSize

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "cryptohub_"
STORAGE_VERSION = "1.0"

Clock = Callable[[], int]
Listener = Callable[[Any, str], None]

_MISSING = object()
_AVAILABILITY_KEY = "__storage_test__"


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def is_epoch_ms(value: Any) -> bool:
    """True for a numeric timestamp (bools are rejected)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_bytes(size: int) -> str:
    """Format a byte count, e.g. 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 B"
    scaled = float(size)
    for unit in ("B", "KB", "MB"):
        if scaled < 1024:
            return f"{round(scaled, 2):g} {unit}"
        scaled /= 1024
    return f"{round(scaled, 2):g} GB"


class PersistentStore:
    """Envelope-aware facade over a StorageBackend.

    Thread-safety: Not thread-safe. Every operation (including listener
    notification) runs to completion before returning.

    Listeners are invoked synchronously after a successful write or removal
    of their key. They must not write to the key they observe.
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        prefix: str = STORAGE_PREFIX,
        version: str = STORAGE_VERSION,
        clock: Optional[Clock] = None,
    ) -> None:
        self._backend = backend
        self._prefix = prefix
        self._version = version
        self._clock = clock or epoch_ms
        self._listeners: dict[str, list[Listener]] = {}

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def version(self) -> str:
        return self._version

    def now(self) -> int:
        """Current time from the store's clock (epoch ms)."""
        return self._clock()

    def _full_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _namespaced_keys(self) -> list[str]:
        return [k for k in self._backend.keys() if k.startswith(self._prefix)]

    # ========== Core operations ==========

    def set(self, key: str, value: Any, *, ttl: Optional[int] = None) -> bool:
        """Store value under key.

        Args:
            key: Logical key name (without prefix)
            value: JSON-serializable value
            ttl: Optional time-to-live in milliseconds; 0 expires the record
                as soon as the clock moves on

        Returns:
            True if the value was written. On capacity exhaustion the store
            purges expired records and retries once without an expiry;
            False means the prior value is untouched.
        """
        now = self._clock()
        envelope = {
            "value": value,
            "version": self._version,
            "timestamp": now,
            "expires": now + ttl if ttl is not None else None,
        }
        try:
            payload = json.dumps(envelope)
        except (TypeError, ValueError) as exc:
            logger.error(f"Storage set error for {key}: value is not serializable ({exc})")
            return False

        full_key = self._full_key(key)
        try:
            self._backend.set_item(full_key, payload)
        except StorageQuotaExceeded as exc:
            logger.warning(f"Storage quota exceeded writing {key}: {exc}; purging expired records")
            self.clear_expired()
            retry = json.dumps({"value": value, "version": self._version, "timestamp": now, "expires": None})
            try:
                self._backend.set_item(full_key, retry)
            except StorageError as retry_exc:
                logger.error(f"Storage set error for {key} after purge: {retry_exc}")
                return False
        except StorageError as exc:
            logger.error(f"Storage set error for {key}: {exc}")
            return False

        self._notify(key, value)
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """Read key, purging it if undecodable, schema-stale or expired."""
        full_key = self._full_key(key)
        try:
            raw = self._backend.get_item(full_key)
        except StorageError as exc:
            logger.error(f"Storage get error for {key}: {exc}")
            return default

        if raw is None:
            return default

        try:
            envelope = json.loads(raw)
        except ValueError:
            logger.debug(f"Purging undecodable record {key}")
            self.remove(key)
            return default

        if not isinstance(envelope, dict) or "value" not in envelope:
            logger.debug(f"Purging malformed record {key}")
            self.remove(key)
            return default

        expires = envelope.get("expires")
        if expires is not None and not is_epoch_ms(expires):
            logger.debug(f"Purging record {key} with malformed expiry {expires!r}")
            self.remove(key)
            return default

        if expires is not None and self._clock() > expires:
            logger.debug(f"Purging expired record {key}")
            self.remove(key)
            return default

        if envelope.get("version") != self._version:
            logger.debug(f"Purging record {key} with schema version {envelope.get('version')!r}")
            self.remove(key)
            return default

        return envelope["value"]

    def remove(self, key: str) -> bool:
        try:
            self._backend.remove_item(self._full_key(key))
        except StorageError as exc:
            logger.error(f"Storage remove error for {key}: {exc}")
            return False

        self._notify(key, None)
        return True

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def keys(self) -> list[str]:
        """Logical key names under this store's prefix, in backend order."""
        return [k[len(self._prefix) :] for k in self._namespaced_keys()]

    def clear(self) -> bool:
        """Remove every record under the prefix, regardless of TTL or version."""
        try:
            for full_key in self._namespaced_keys():
                self._backend.remove_item(full_key)
        except StorageError as exc:
            logger.error(f"Storage clear error: {exc}")
            return False
        return True

    def clear_expired(self) -> int:
        """Purge expired, undecodable and malformed-expiry records.

        Returns:
            Number of records removed
        """
        now = self._clock()
        cleared = 0

        try:
            for full_key in reversed(self._namespaced_keys()):
                raw = self._backend.get_item(full_key)
                if raw is None:
                    continue
                try:
                    envelope = json.loads(raw)
                    expires = envelope.get("expires")
                except (ValueError, AttributeError):
                    self._backend.remove_item(full_key)
                    cleared += 1
                    continue

                if expires is not None and (not is_epoch_ms(expires) or now > expires):
                    self._backend.remove_item(full_key)
                    cleared += 1
        except StorageError as exc:
            logger.error(f"Storage sweep error after {cleared} purged records: {exc}")
            return cleared

        if cleared:
            logger.info(f"Purged {cleared} expired storage records")
        return cleared

    # ========== Introspection ==========

    def get_size(self) -> StorageUsage:
        """Serialized size of every record under the prefix, largest first."""
        items = []
        for full_key in self._namespaced_keys():
            raw = self._backend.get_item(full_key) or ""
            items.append(StoredItemSize(key=full_key[len(self._prefix) :], size=len(raw.encode("utf-8"))))

        total = sum(item.size for item in items)
        return StorageUsage(
            total_size=total,
            total_size_formatted=format_bytes(total),
            item_count=len(items),
            items=tuple(sorted(items, key=lambda item: item.size, reverse=True)),
        )

    def is_available(self) -> bool:
        """Check the backend with a throwaway write."""
        try:
            self._backend.set_item(_AVAILABILITY_KEY, _AVAILABILITY_KEY)
            self._backend.remove_item(_AVAILABILITY_KEY)
        except StorageError:
            return False
        return True

    # ========== Change notification ==========

    def subscribe(self, key: str, listener: Listener) -> Callable[[], None]:
        """Register listener(value, key) for writes/removals of key.

        Returns:
            Function that unregisters the listener
        """
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key)
            if listeners and listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str, value: Any) -> None:
        for listener in list(self._listeners.get(key, ())):
            try:
                listener(value, key)
            except Exception:
                logger.exception(f"Storage listener error for {key}")
