"""
Shared test fixtures
"""
import pytest


class ManualClock:
    """Clock that only moves when a test advances it"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def cache(clock):
    from voiceai_console.domain.services.query_cache import QueryCache
    return QueryCache(clock=clock)


@pytest.fixture
def config():
    from voiceai_console.core.config import ConfigManager
    return ConfigManager(env="test")
