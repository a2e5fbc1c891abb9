"""
Shared types for the backtesting engine.

This module consolidates the price bar, signal and direction types that are
used across the engine, the optimizers and the built-in strategies.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Optional, Sequence


class SignalType(Enum):
    """Type of trading signal."""
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class Direction(Enum):
    """Direction of a position."""
    LONG = "long"
    SHORT = "short"
    NONE = "none"


@dataclass(frozen=True)
class PricePoint:
    """One historical bar. Timestamps are epoch milliseconds."""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[int] = None


@dataclass(frozen=True)
class Signal:
    """
    Trading signal emitted by a decision function for one bar.

    The engine matches signals to bars by exact timestamp.
    """
    timestamp: int
    signal_type: SignalType
    price: float
    confidence: Optional[float] = None  # Informational only, not used by the engine


# (series, index) -> Signal | None. Optimizers bind a third `parameters` argument.
DecisionFunction = Callable[[Sequence[PricePoint], int], Optional[Signal]]

# (series, index, parameters) -> Signal | None. The form optimizers accept.
ParameterizedDecisionFunction = Callable[[Sequence[PricePoint], int, Mapping[str, float]], Optional[Signal]]
