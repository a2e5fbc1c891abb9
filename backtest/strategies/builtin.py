"""
Built-in parameterized decision functions.

Every strategy has the optimizer signature (series, index, parameters) and
returns a BUY/SELL Signal or None. Parameters may arrive as floats from the
Monte Carlo sampler; periods are truncated to int.
"""
from typing import Mapping, Optional, Sequence

import numpy as np

from ..indicators.technical import calculate_rsi, calculate_sma
from ..shared.defaults import (
    MA_PERIOD, MA_THRESHOLD,
    RSI_PERIOD, RSI_OVERSOLD, RSI_OVERBOUGHT,
    EMA_SHORT_PERIOD, EMA_LONG_PERIOD,
)
from ..shared.types import PricePoint, Signal, SignalType
from .cache import default_cache


def _period(parameters: Mapping[str, float], name: str, default: int) -> int:
    period = int(parameters.get(name, default))
    if period < 1:
        raise ValueError(f"{name} must be >= 1, got {parameters.get(name)}")
    return period


def _signal(point: PricePoint, signal_type: SignalType) -> Signal:
    return Signal(timestamp=point.timestamp, signal_type=signal_type, price=point.close)


def ma_threshold(
    series: Sequence[PricePoint],
    index: int,
    parameters: Mapping[str, float],
) -> Optional[Signal]:
    """
    Moving-average threshold breakout.

    Averages the closes of the last period + 1 bars (including the current
    one). BUY when close > average * (1 + threshold), SELL when close <
    average * (1 - threshold).

    Parameters: period (default 20), threshold (fraction, default 0.005)
    """
    period = _period(parameters, "period", MA_PERIOD)
    threshold = float(parameters.get("threshold", MA_THRESHOLD))
    if index < period:
        return None

    window = np.fromiter((p.close for p in series[index - period:index + 1]), dtype=float)
    average = window.mean()
    point = series[index]

    if point.close > average * (1 + threshold):
        return _signal(point, SignalType.BUY)
    if point.close < average * (1 - threshold):
        return _signal(point, SignalType.SELL)
    return None


def rsi_reversal(
    series: Sequence[PricePoint],
    index: int,
    parameters: Mapping[str, float],
) -> Optional[Signal]:
    """
    RSI mean reversion: BUY when oversold, SELL when overbought.

    Parameters: period (default 14), oversold (default 30), overbought (default 70)
    """
    period = _period(parameters, "period", RSI_PERIOD)
    oversold = float(parameters.get("oversold", RSI_OVERSOLD))
    overbought = float(parameters.get("overbought", RSI_OVERBOUGHT))

    point = series[index]
    rsi = default_cache.value_at(
        series, ("rsi", period), lambda s: calculate_rsi(s, period), point.timestamp,
    )
    if rsi is None:
        return None
    if rsi < oversold:
        return _signal(point, SignalType.BUY)
    if rsi > overbought:
        return _signal(point, SignalType.SELL)
    return None


def ma_crossover(
    series: Sequence[PricePoint],
    index: int,
    parameters: Mapping[str, float],
) -> Optional[Signal]:
    """
    SMA crossover: BUY when the short average crosses above the long one,
    SELL when it crosses below.

    Parameters: short_period (default 12), long_period (default 26)
    """
    short_period = _period(parameters, "short_period", EMA_SHORT_PERIOD)
    long_period = _period(parameters, "long_period", EMA_LONG_PERIOD)
    if index < 1:
        return None

    short = default_cache.get(series, ("sma", short_period), lambda s: calculate_sma(s, short_period))
    long = default_cache.get(series, ("sma", long_period), lambda s: calculate_sma(s, long_period))

    point, previous = series[index], series[index - 1]
    if not all(p.timestamp in values for p in (point, previous) for values in (short, long)):
        return None

    diff_now = short[point.timestamp].value - long[point.timestamp].value
    diff_before = short[previous.timestamp].value - long[previous.timestamp].value

    if diff_before <= 0 < diff_now:
        return _signal(point, SignalType.BUY)
    if diff_before >= 0 > diff_now:
        return _signal(point, SignalType.SELL)
    return None
