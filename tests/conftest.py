# tests/conftest.py
import pytest
from loguru import logger

from kline_simulator import LifeEvent


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


class FixedRandom:
    """Random source that replays fixed draws, cycling when exhausted."""

    def __init__(self, *values):
        self.values = list(values) or [0.5]
        self.calls = 0

    def random(self):
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


@pytest.fixture
def fixed_random():
    return FixedRandom


@pytest.fixture
def calm_rng():
    """Zero noise, zero wicks."""
    return FixedRandom(0.5, 0.0, 0.0)


@pytest.fixture
def script():
    return [
        LifeEvent(age=3, content="first words", impact=2, category="RANDOM"),
        LifeEvent(age=18, content="exam stress", impact=-2, category="CAREER"),
        LifeEvent(age=30, content="promotion", impact=4, category="WEALTH"),
        LifeEvent(age=30, content="back pain", impact=-1, category="HEALTH"),
    ]
