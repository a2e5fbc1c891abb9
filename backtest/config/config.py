"""
Simulation configuration.

Config validation runs at construction time (fail fast with clear errors).
Configs are frozen: derive a variant with dataclasses.replace().
"""
import math
from dataclasses import dataclass
from typing import Optional

from ..shared.defaults import (
    INITIAL_BALANCE, COMMISSION_PER_TRADE, SLIPPAGE_FRACTION, POSITION_SIZE,
    INSTRUMENT_ID, BAR_INTERVAL,
)


def _validate_config(
    *,
    initial_balance: float,
    commission_per_trade: float,
    slippage_fraction: float,
    position_size: float,
    window_start: Optional[int],
    window_end: Optional[int],
) -> None:
    """Validate simulation parameters. Raises ValueError with clear message on failure."""
    if not math.isfinite(initial_balance) or initial_balance <= 0:
        raise ValueError(f"initial_balance must be > 0, got {initial_balance}")
    if not math.isfinite(commission_per_trade) or commission_per_trade < 0:
        raise ValueError(f"commission_per_trade must be >= 0, got {commission_per_trade}")
    if not (0 <= slippage_fraction < 1):
        raise ValueError(f"slippage_fraction must be in [0, 1), got {slippage_fraction}")
    if not math.isfinite(position_size) or position_size <= 0:
        raise ValueError(f"position_size must be > 0, got {position_size}")
    if window_start is not None and window_end is not None and window_end < window_start:
        raise ValueError(
            f"window_end ({window_end}) must not be before window_start ({window_start})"
        )


@dataclass(frozen=True)
class SimulationConfig:
    """
    Parameters for one simulation run.

    window_start / window_end are inclusive epoch-millisecond bounds applied
    when a series is loaded; None leaves that side unbounded.
    """
    initial_balance: float = INITIAL_BALANCE
    commission_per_trade: float = COMMISSION_PER_TRADE  # Charged once per closed trade
    slippage_fraction: float = SLIPPAGE_FRACTION  # e.g. 0.0001 = 1 bp per fill
    window_start: Optional[int] = None
    window_end: Optional[int] = None
    instrument_id: str = INSTRUMENT_ID
    bar_interval: str = BAR_INTERVAL
    position_size: float = POSITION_SIZE

    def __post_init__(self):
        _validate_config(
            initial_balance=self.initial_balance,
            commission_per_trade=self.commission_per_trade,
            slippage_fraction=self.slippage_fraction,
            position_size=self.position_size,
            window_start=self.window_start,
            window_end=self.window_end,
        )

    def contains(self, timestamp: int) -> bool:
        """True if timestamp falls inside the configured window."""
        if self.window_start is not None and timestamp < self.window_start:
            return False
        if self.window_end is not None and timestamp > self.window_end:
            return False
        return True
