"""
Built-in strategies.

Strategies are registered by name so run files and the CLI can refer to
them. Each entry carries default parameters used when a run file omits them.
"""
from dataclasses import dataclass, field
from typing import Dict

from ..shared.defaults import (
    MA_PERIOD, MA_THRESHOLD,
    RSI_PERIOD, RSI_OVERSOLD, RSI_OVERBOUGHT,
    EMA_SHORT_PERIOD, EMA_LONG_PERIOD,
)
from ..shared.types import ParameterizedDecisionFunction
from .builtin import ma_threshold, rsi_reversal, ma_crossover
from .cache import IndicatorCache, default_cache


@dataclass(frozen=True)
class Strategy:
    """A named decision function and its default parameters."""
    name: str
    decision_fn: ParameterizedDecisionFunction
    default_parameters: Dict[str, float] = field(default_factory=dict)


STRATEGIES: Dict[str, Strategy] = {
    "ma_threshold": Strategy(
        "ma_threshold", ma_threshold, {"period": MA_PERIOD, "threshold": MA_THRESHOLD},
    ),
    "rsi_reversal": Strategy(
        "rsi_reversal", rsi_reversal,
        {"period": RSI_PERIOD, "oversold": RSI_OVERSOLD, "overbought": RSI_OVERBOUGHT},
    ),
    "ma_crossover": Strategy(
        "ma_crossover", ma_crossover,
        {"short_period": EMA_SHORT_PERIOD, "long_period": EMA_LONG_PERIOD},
    ),
}


def get_strategy(name: str) -> Strategy:
    """Look up a strategy by name. Raises ValueError for unknown names."""
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown strategy '{name}'. Available: {', '.join(sorted(STRATEGIES))}"
        ) from None


__all__ = [
    'Strategy',
    'STRATEGIES',
    'get_strategy',
    'ma_threshold',
    'rsi_reversal',
    'ma_crossover',
    'IndicatorCache',
    'default_cache',
]
