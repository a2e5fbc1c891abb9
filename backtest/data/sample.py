"""
Synthetic price series for demos and tests.

Generates a random-walk OHLCV series at a fixed bar interval. Seeded runs are
reproducible.
"""
from typing import Optional, Tuple

import numpy as np

from ..shared.types import PricePoint

MINUTE_MS = 60 * 1000


def generate_sample_series(
    points: int,
    start_price: float = 100.0,
    volatility: float = 0.02,
    start_timestamp: int = 1_704_067_200_000,  # 2024-01-01T00:00:00Z
    interval_ms: int = MINUTE_MS,
    seed: Optional[int] = None,
) -> Tuple[PricePoint, ...]:
    """
    Generate a random-walk series.

    Each bar opens at the previous close; close moves by a uniform fraction in
    [-volatility, volatility]; high/low extend beyond open/close by up to half
    the volatility.

    Args:
        points: Number of bars
        start_price: First open
        volatility: Maximum fractional move per bar
        start_timestamp: Timestamp of the first bar (epoch ms)
        interval_ms: Spacing between bars
        seed: Seed for numpy's Generator (None = non-deterministic)
    """
    if points < 0:
        raise ValueError(f"points must be >= 0, got {points}")
    if start_price <= 0:
        raise ValueError(f"start_price must be > 0, got {start_price}")

    rng = np.random.default_rng(seed)
    changes = rng.uniform(-volatility, volatility, size=points)
    high_ext = rng.uniform(0.0, volatility * 0.5, size=points)
    low_ext = rng.uniform(0.0, volatility * 0.5, size=points)
    volumes = rng.integers(1000, 11000, size=points)

    series = []
    price = start_price
    for i in range(points):
        open_ = price
        close = open_ * (1 + changes[i])
        series.append(PricePoint(
            timestamp=start_timestamp + i * interval_ms,
            open=float(open_),
            high=float(max(open_, close) * (1 + high_ext[i])),
            low=float(min(open_, close) * (1 - low_ext[i])),
            close=float(close),
            volume=int(volumes[i]),
        ))
        price = close
    return tuple(series)
