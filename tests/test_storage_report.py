"""Tests for scripts/storage_report.py."""

from __future__ import annotations

import pytest

from cryptohub.storage import PersistentStore, SQLBackend
from scripts.storage_report import main, parse_args

from conftest import FakeClock


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for name in (
        "CRYPTOHUB_DATABASE_URL",
        "CRYPTOHUB_STORAGE_PREFIX",
        "CRYPTOHUB_SCHEMA_VERSION",
        "CRYPTOHUB_STORAGE_QUOTA_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def database_url(tmp_path) -> str:
    url = f"sqlite:///{tmp_path / 'report.db'}"
    backend = SQLBackend(url)
    store = PersistentStore(backend, clock=FakeClock())
    store.set("watchlist", [{"id": "bitcoin"}])
    store.set("cache_prices", {"bitcoin": 1}, ttl=1_000)
    backend.close()
    return url


# ========== parse_args tests ==========


def test_parse_args_defaults() -> None:
    args = parse_args([])
    assert args.database_url is None
    assert args.purge_expired is False
    assert args.top == 20


# ========== main tests ==========


def test_main_without_database(capsys) -> None:
    """Returns 1 when no database URL is configured."""
    assert main([]) == 1
    assert "No database configured" in capsys.readouterr().out


def test_main_reports_usage(database_url, capsys) -> None:
    assert main(["--database-url", database_url]) == 0

    out = capsys.readouterr().out
    assert "prefix=cryptohub_ version=1.0" in out
    assert "items=2" in out
    assert "watchlist" in out


def test_main_purges_expired(database_url, capsys) -> None:
    """The seeded cache entry expired long before the wall clock's now."""
    assert main(["--database-url", database_url, "--purge-expired"]) == 0

    out = capsys.readouterr().out
    assert "Purged 1 expired record(s)" in out
    assert "items=1" in out
    assert "cache_prices" not in out


def test_main_reads_env(database_url, monkeypatch, capsys) -> None:
    monkeypatch.setenv("CRYPTOHUB_DATABASE_URL", database_url)
    monkeypatch.setenv("CRYPTOHUB_STORAGE_QUOTA_BYTES", "2048")

    assert main(["--top", "1"]) == 0

    out = capsys.readouterr().out
    assert "quota=2 KB" in out


def test_main_unavailable_backend(tmp_path, capsys) -> None:
    url = f"sqlite:///{tmp_path / 'missing' / 'dir' / 'report.db'}"

    assert main(["--database-url", url]) == 1
    assert "not available" in capsys.readouterr().out
