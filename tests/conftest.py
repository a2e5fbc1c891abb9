"""
Shared fixtures for the test suite.
"""
import sys
from pathlib import Path

import numpy as np
import pytest

# Make `backtest` and `cli` importable when running pytest from a checkout
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backtest.shared.types import PricePoint, Signal, SignalType  # noqa: E402

START = 1_704_067_200_000  # 2024-01-01T00:00:00Z
MINUTE = 60_000


def build_series(closes, start=START, interval=MINUTE):
    """PricePoints with open = high = low = close, evenly spaced."""
    return tuple(
        PricePoint(timestamp=start + i * interval, open=c, high=c, low=c, close=c, volume=1000)
        for i, c in enumerate(closes)
    )


def signal_at(series, index, signal_type):
    point = series[index]
    return Signal(timestamp=point.timestamp, signal_type=signal_type, price=point.close)


def scripted(actions):
    """Decision function returning the SignalType scripted for each index ({index: SignalType})."""
    def decide(series, index):
        if index in actions:
            return signal_at(series, index, actions[index])
        return None
    return decide


@pytest.fixture
def make_series():
    return build_series


@pytest.fixture
def rising_series():
    """Closes 100, 101, ..., 109."""
    return build_series([100.0 + i for i in range(10)])


@pytest.fixture
def random_series():
    """500-point random walk (seeded) with realistic high/low spread."""
    rng = np.random.RandomState(42)
    closes = 100 * np.cumprod(1 + rng.randn(500) * 0.01)
    spread = np.abs(rng.randn(500)) * 0.5
    return tuple(
        PricePoint(
            timestamp=START + i * MINUTE,
            open=float(c),
            high=float(c + s),
            low=float(c - s),
            close=float(c),
            volume=int(rng.randint(1000, 5000)),
        )
        for i, (c, s) in enumerate(zip(closes, spread))
    )
