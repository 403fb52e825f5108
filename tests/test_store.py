"""Tests for the envelope key/value store."""

from __future__ import annotations

import json
from unittest.mock import Mock

import pytest

from cryptohub.storage import (
    MemoryBackend,
    PersistentStore,
    StorageError,
    StorageQuotaExceeded,
    format_bytes,
)

from conftest import FakeClock


# ========== Envelope ==========


class TestEnvelope:
    """Tests for how values are wrapped and read back."""

    def test_set_then_get(self, store: PersistentStore) -> None:
        assert store.set("theme", "dark") is True
        assert store.get("theme") == "dark"

    def test_envelope_shape(self, store: PersistentStore, backend: MemoryBackend, clock: FakeClock) -> None:
        """Stored record carries value, version, timestamp and expiry."""
        store.set("watchlist", [{"id": "bitcoin"}], ttl=1000)
        envelope = json.loads(backend.get_item("cryptohub_watchlist"))
        assert envelope == {
            "value": [{"id": "bitcoin"}],
            "version": "1.0",
            "timestamp": clock.now,
            "expires": clock.now + 1000,
        }

    def test_no_ttl_means_no_expiry(self, store: PersistentStore, backend: MemoryBackend) -> None:
        store.set("currency", "USD")
        assert json.loads(backend.get_item("cryptohub_currency"))["expires"] is None

    def test_get_missing_returns_default(self, store: PersistentStore) -> None:
        assert store.get("missing") is None
        assert store.get("missing", []) == []

    def test_unserializable_value_fails(self, store: PersistentStore) -> None:
        assert store.set("bad", object()) is False
        assert store.has("bad") is False


# ========== Lazy invalidation ==========


class TestInvalidation:
    """Tests for purge-on-read of expired, stale and corrupt records."""

    def test_expired_record_is_purged(self, store: PersistentStore, backend: MemoryBackend, clock: FakeClock) -> None:
        store.set("session_data", {"tab": "markets"}, ttl=1000)

        clock.advance(1000)
        assert store.get("session_data") == {"tab": "markets"}

        clock.advance(1)
        assert store.get("session_data", "gone") == "gone"
        assert backend.get_item("cryptohub_session_data") is None

    def test_schema_version_mismatch_is_purged(self, backend: MemoryBackend, clock: FakeClock) -> None:
        PersistentStore(backend, clock=clock).set("theme", "dark")

        upgraded = PersistentStore(backend, version="2.0", clock=clock)
        assert upgraded.get("theme", "light") == "light"
        assert backend.get_item("cryptohub_theme") is None

    def test_undecodable_record_is_purged(self, store: PersistentStore, backend: MemoryBackend) -> None:
        backend.set_item("cryptohub_alerts", "{not json")
        assert store.get("alerts", []) == []
        assert backend.get_item("cryptohub_alerts") is None

    def test_non_envelope_json_is_purged(self, store: PersistentStore, backend: MemoryBackend) -> None:
        backend.set_item("cryptohub_alerts", "[1, 2, 3]")
        assert store.get("alerts") is None
        assert "cryptohub_alerts" not in backend.keys()

    def test_clear_expired_counts_purged(self, store: PersistentStore, backend: MemoryBackend, clock: FakeClock) -> None:
        store.set("a", 1, ttl=100)
        store.set("b", 2, ttl=100)
        store.set("c", 3)
        backend.set_item("cryptohub_corrupt", "nope")

        clock.advance(101)
        assert store.clear_expired() == 3
        assert store.keys() == ["c"]

    def test_malformed_expiry_is_purged(self, store: PersistentStore, backend: MemoryBackend) -> None:
        """An expiry that is not a timestamp makes the record unreadable."""
        backend.set_item("cryptohub_session_data", json.dumps({"value": 1, "version": "1.0", "expires": "soon"}))

        assert store.get("session_data", "gone") == "gone"
        assert backend.get_item("cryptohub_session_data") is None

    def test_clear_expired_purges_malformed_expiry(self, store: PersistentStore, backend: MemoryBackend) -> None:
        store.set("theme", "dark")
        backend.set_item("cryptohub_session_data", json.dumps({"value": 1, "version": "1.0", "expires": [1]}))

        assert store.clear_expired() == 1
        assert store.keys() == ["theme"]

    def test_zero_ttl_expires_on_next_tick(self, store: PersistentStore, clock: FakeClock) -> None:
        store.set("session_data", 1, ttl=0)
        assert store.get("session_data") == 1

        clock.advance(1)
        assert store.has("session_data") is False


# ========== Keys ==========


class TestKeys:
    """Tests for namespace handling."""

    def test_has_counts_stored_none(self, store: PersistentStore) -> None:
        store.set("last_visited", None)
        assert store.has("last_visited") is True
        assert store.has("never_written") is False

    def test_keys_strip_prefix_and_ignore_foreign_keys(self, store: PersistentStore, backend: MemoryBackend) -> None:
        backend.set_item("other_app_key", "x")
        store.set("theme", "dark")
        store.set("currency", "EUR")
        assert store.keys() == ["theme", "currency"]

    def test_clear_keeps_foreign_keys(self, store: PersistentStore, backend: MemoryBackend) -> None:
        backend.set_item("other_app_key", "x")
        store.set("theme", "dark")
        assert store.clear() is True
        assert store.keys() == []
        assert backend.get_item("other_app_key") == "x"

    def test_remove(self, store: PersistentStore) -> None:
        store.set("theme", "dark")
        assert store.remove("theme") is True
        assert store.has("theme") is False


# ========== Quota recovery ==========


class TestQuota:
    """Tests for capacity exhaustion handling."""

    def test_quota_exceeded_purges_expired_and_retries(self, clock: FakeClock) -> None:
        backend = MemoryBackend(quota_bytes=450)
        store = PersistentStore(backend, clock=clock)

        assert store.set("old", "x" * 200, ttl=100) is True
        clock.advance(101)

        assert store.set("new", "y" * 200, ttl=60_000) is True
        assert store.keys() == ["new"]
        # The retry is written without an expiry
        assert json.loads(backend.get_item("cryptohub_new"))["expires"] is None

    def test_failed_retry_keeps_prior_value(self, clock: FakeClock) -> None:
        store = PersistentStore(MemoryBackend(quota_bytes=200), clock=clock)

        assert store.set("note", "small") is True
        assert store.set("note", "z" * 500) is False
        assert store.get("note") == "small"

    def test_malformed_expiry_is_purged_during_recovery(self, clock: FakeClock) -> None:
        backend = MemoryBackend(quota_bytes=280)
        backend.set_item("cryptohub_bad", json.dumps({"value": 1, "version": "1.0", "expires": "soon"}))
        store = PersistentStore(backend, clock=clock)

        assert store.set("big", "x" * 150) is True
        assert store.keys() == ["big"]

    def test_backend_error_returns_false(self, clock: FakeClock) -> None:
        backend = Mock()
        backend.set_item.side_effect = StorageError("disk gone")
        store = PersistentStore(backend, clock=clock)
        assert store.set("theme", "dark") is False

    def test_backend_read_error_returns_default(self, clock: FakeClock) -> None:
        backend = Mock()
        backend.get_item.side_effect = StorageError("disk gone")
        store = PersistentStore(backend, clock=clock)
        assert store.get("theme", "dark") == "dark"

    def test_memory_backend_quota_message(self) -> None:
        backend = MemoryBackend(quota_bytes=10)
        with pytest.raises(StorageQuotaExceeded, match="of 10 available"):
            backend.set_item("key", "value-too-long")

    def test_negative_quota_rejected(self) -> None:
        with pytest.raises(ValueError, match="quota_bytes must be >= 0"):
            MemoryBackend(quota_bytes=-1)


# ========== Listeners ==========


class TestListeners:
    """Tests for synchronous change notification."""

    def test_listener_receives_value_and_key(self, store: PersistentStore) -> None:
        calls = []
        store.subscribe("theme", lambda value, key: calls.append((value, key)))

        store.set("theme", "light")
        store.remove("theme")

        assert calls == [("light", "theme"), (None, "theme")]

    def test_listener_only_sees_its_key(self, store: PersistentStore) -> None:
        calls = []
        store.subscribe("theme", lambda value, key: calls.append(key))
        store.set("currency", "EUR")
        assert calls == []

    def test_failing_listener_is_isolated(self, store: PersistentStore) -> None:
        calls = []

        def broken(value, key):
            raise RuntimeError("listener bug")

        store.subscribe("theme", broken)
        store.subscribe("theme", lambda value, key: calls.append(value))

        assert store.set("theme", "light") is True
        assert calls == ["light"]
        assert store.get("theme") == "light"

    def test_unsubscribe(self, store: PersistentStore) -> None:
        calls = []
        unsubscribe = store.subscribe("theme", lambda value, key: calls.append(value))

        unsubscribe()
        store.set("theme", "light")

        assert calls == []

    def test_purge_on_read_notifies_removal(self, store: PersistentStore, clock: FakeClock) -> None:
        calls = []
        store.set("session_data", 1, ttl=10)
        store.subscribe("session_data", lambda value, key: calls.append(value))

        clock.advance(11)
        store.get("session_data")

        assert calls == [None]


# ========== Introspection ==========


class TestIntrospection:
    """Tests for size reporting and availability."""

    def test_get_size_sorted_descending(self, store: PersistentStore) -> None:
        store.set("small", 1)
        store.set("large", "x" * 500)

        usage = store.get_size()

        assert usage.item_count == 2
        assert [item.key for item in usage.items] == ["large", "small"]
        assert usage.total_size == sum(item.size for item in usage.items)

    def test_format_bytes(self) -> None:
        assert format_bytes(0) == "0 B"
        assert format_bytes(512) == "512 B"
        assert format_bytes(1536) == "1.5 KB"
        assert format_bytes(1024 * 1024) == "1 MB"

    def test_is_available(self, store: PersistentStore, backend: MemoryBackend) -> None:
        assert store.is_available() is True
        assert backend.keys() == []

    def test_is_available_false_when_backend_fails(self, clock: FakeClock) -> None:
        backend = Mock()
        backend.set_item.side_effect = StorageError("read-only")
        assert PersistentStore(backend, clock=clock).is_available() is False
