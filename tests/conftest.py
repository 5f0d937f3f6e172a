"""Shared fixtures: a controllable millisecond clock and a seeded engine."""
import pytest

from engine.config import GameConfig
from engine.engine import Engine


class FakeClock:
    """Manually advanced clock returning milliseconds."""

    def __init__(self, now: float = 10_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


@pytest.fixture
def config() -> GameConfig:
    return GameConfig()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine(config, clock) -> Engine:
    return Engine(seed=42, config=config, clock=clock)
