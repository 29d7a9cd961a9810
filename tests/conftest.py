"""
Pytest configuration and fixtures for fibscope tests.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator, List

import pytest
from unittest.mock import patch

from fibscope.config import Config
from fibscope.models.market_data import PricePoint


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def mock_env_vars() -> Generator[dict, None, None]:
    """Mock environment variables for testing."""
    test_env = {
        "FIBSCOPE_TOLERANCE": "0.05",
        "FIBSCOPE_WINDOW_SIZE": "5",
        "FIBSCOPE_USE_CACHE": "false",
        "FIBSCOPE_CACHE_MAX_ENTRIES": "16",
        "FIBSCOPE_CACHE_TTL_SECONDS": "2.5",
        "FIBSCOPE_MAX_WORKERS": "2",
        "FIBSCOPE_CHUNK_SIZE": "32",
        "FIBSCOPE_LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, test_env, clear=False):
        yield test_env


@pytest.fixture
def test_config(mock_env_vars: dict) -> Config:
    """Create a test configuration instance."""
    return Config.load_from_env()


class FakeClock:
    """Manually advanced time source in seconds."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def golden_prices() -> List[PricePoint]:
    """Four prices growing by the golden ratio at every step."""
    return PricePoint.series([100.0, 161.8, 261.8, 423.6])


def gartley_values() -> List[float]:
    """
    Prices whose X, A, B, C, D swings have exact Gartley AB, BC and CD legs.

    X is a low at index 1 and D a low at index 5; indices 0 and 6 only
    frame the swings.
    """
    x, a = 100.0, 200.0
    b = a - 0.618 * (a - x)
    c = b + 0.382 * (a - b)
    d = c - 1.272 * (c - b)
    return [110.0, x, a, b, c, d, 150.0]


@pytest.fixture
def gartley_prices() -> List[PricePoint]:
    return PricePoint.series(gartley_values())


@pytest.fixture
def wave_prices() -> List[PricePoint]:
    """Deterministic 120-point series with swings, a golden run and volume."""
    import math

    values = []
    for i in range(120):
        values.append(100.0 + 10.0 * math.sin(i * 0.7) + 4.0 * math.cos(i * 1.9) + i * 0.3)
    # Embed a golden ratio run
    values[60:64] = [50.0, 80.9, 130.9, 211.8]
    volumes = [1000.0 + 50.0 * ((i * 7) % 11) for i in range(120)]
    return PricePoint.series(values, volumes=volumes)
