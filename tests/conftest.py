"""Shared test fixtures for pytest.

Provides a controllable clock and a store over an in-memory backend.
"""

from __future__ import annotations

import pytest

from cryptohub.storage import MemoryBackend, PersistentStore

START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend, clock: FakeClock) -> PersistentStore:
    return PersistentStore(backend, clock=clock)
