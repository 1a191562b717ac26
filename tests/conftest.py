"""Shared fixtures for cache tests."""

import pytest

from peer_cache.shared import reset_cache
from peer_cache.settings import get_settings


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def isolated_shared_cache(monkeypatch):
    """Keep the process-wide cache and settings independent between tests."""
    for name in ("CACHE_TTL", "CACHE_CHECK_PERIOD", "CACHE_MAX_SIZE", "API_TOKEN", "GRAPHQL_ENDPOINT"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    reset_cache()
    yield
    reset_cache()
    get_settings.cache_clear()
