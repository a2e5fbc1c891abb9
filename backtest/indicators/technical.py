"""
Technical indicators computed over a price series.

Provides SMA, EMA, RSI, MACD, Bollinger Bands and the Stochastic oscillator.
All functions are pure: they take a series (a sequence of PricePoint or a
pandas Series of closes) and return an ordered list of points starting at the
first full window. Outputs are therefore shorter than inputs; callers must
index by timestamp, not by position.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..shared.defaults import (
    RSI_PERIOD, RSI_OVERSOLD, RSI_OVERBOUGHT,
    MACD_FAST, MACD_SLOW, MACD_SIGNAL,
    BOLLINGER_PERIOD, BOLLINGER_STD_DEV,
    STOCHASTIC_K_PERIOD, STOCHASTIC_D_PERIOD,
    STOCHASTIC_OVERSOLD, STOCHASTIC_OVERBOUGHT, STOCHASTIC_FLAT_VALUE,
)
from ..shared.types import PricePoint, SignalType

PriceInput = Union[Sequence[PricePoint], pd.Series]


@dataclass(frozen=True)
class IndicatorPoint:
    """Indicator value at one timestamp, with an optional BUY/SELL/HOLD reading."""
    timestamp: object
    value: float
    signal: Optional[SignalType] = None


@dataclass(frozen=True)
class MACDPoint(IndicatorPoint):
    """MACD reading. value is the histogram."""
    macd_line: float = 0.0
    signal_line: float = 0.0
    histogram: float = 0.0


@dataclass(frozen=True)
class BandPoint(IndicatorPoint):
    """Bollinger reading. value is the price the bands were compared against."""
    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0


def _check_period(name: str, period: int) -> None:
    if isinstance(period, bool) or not isinstance(period, (int, np.integer)) or period < 1:
        raise ValueError(f"{name} must be a positive integer, got {period!r}")


def _price_arrays(series: PriceInput) -> Tuple[list, np.ndarray, np.ndarray, np.ndarray]:
    """
    Split input into (timestamps, closes, highs, lows).

    A pandas Series carries closes only, so highs and lows fall back to closes.
    """
    if isinstance(series, pd.Series):
        closes = series.to_numpy(dtype=float)
        return list(series.index), closes, closes, closes
    timestamps = [p.timestamp for p in series]
    closes = np.array([p.close for p in series], dtype=float)
    highs = np.array([p.high for p in series], dtype=float)
    lows = np.array([p.low for p in series], dtype=float)
    return timestamps, closes, highs, lows


def _seeded_ewm(values: np.ndarray, period: int, alpha: float) -> np.ndarray:
    """
    Exponential smoothing seeded with the simple mean of the first `period` values.

    Returns len(values) - period + 1 values; element 0 aligns with values[period - 1].
    """
    if len(values) < period:
        return np.array([], dtype=float)
    seeded = pd.Series(np.array(values[period - 1:], dtype=float, copy=True))
    seeded.iloc[0] = values[:period].mean()
    # adjust=False gives y[t] = y[t-1] + alpha * (x[t] - y[t-1])
    return seeded.ewm(alpha=alpha, adjust=False).mean().to_numpy()


def ema_values(values: np.ndarray, period: int) -> np.ndarray:
    """EMA over raw values (SMA seed, multiplier 2 / (period + 1))."""
    return _seeded_ewm(values, period, 2.0 / (period + 1))


def calculate_sma(series: PriceInput, period: int) -> List[IndicatorPoint]:
    """Simple Moving Average of closes."""
    _check_period("period", period)
    timestamps, closes, _, _ = _price_arrays(series)
    if len(closes) < period:
        return []
    sma = pd.Series(closes).rolling(period).mean().to_numpy()
    return [
        IndicatorPoint(timestamp=timestamps[i], value=float(sma[i]))
        for i in range(period - 1, len(closes))
    ]


def calculate_ema(series: PriceInput, period: int) -> List[IndicatorPoint]:
    """
    Exponential Moving Average of closes.

    The first value is the SMA of the first `period` closes, then
    ema[i] = (price[i] - ema[i-1]) * (2 / (period + 1)) + ema[i-1].
    """
    _check_period("period", period)
    timestamps, closes, _, _ = _price_arrays(series)
    ema = ema_values(closes, period)
    return [
        IndicatorPoint(timestamp=timestamps[period - 1 + i], value=float(v))
        for i, v in enumerate(ema)
    ]


def calculate_rsi(
    series: PriceInput,
    period: int = RSI_PERIOD,
    oversold: float = RSI_OVERSOLD,
    overbought: float = RSI_OVERBOUGHT,
) -> List[IndicatorPoint]:
    """
    Calculate Relative Strength Index (RSI).

    RSI = 100 - (100 / (1 + RS)), RS = Average Gain / Average Loss.
    Averages start as the simple mean of the first `period` changes, then use
    Wilder smoothing avg = (avg * (period - 1) + new) / period.
    An average loss of zero gives RSI 100.

    Signals: BUY below `oversold`, SELL above `overbought`, otherwise HOLD.
    """
    _check_period("period", period)
    timestamps, closes, _, _ = _price_arrays(series)
    if len(closes) < period + 1:
        return []

    delta = np.diff(closes)
    gains = np.where(delta > 0, delta, 0.0)
    losses = np.where(delta < 0, -delta, 0.0)

    avg_gain = _seeded_ewm(gains, period, 1.0 / period)
    avg_loss = _seeded_ewm(losses, period, 1.0 / period)

    with np.errstate(divide="ignore", invalid="ignore"):
        rs = avg_gain / avg_loss
        rsi = np.where(avg_loss == 0, 100.0, 100.0 - (100.0 / (1.0 + rs)))
    rsi = np.clip(rsi, 0.0, 100.0)

    results = []
    for i, value in enumerate(rsi):
        if value < oversold:
            signal = SignalType.BUY
        elif value > overbought:
            signal = SignalType.SELL
        else:
            signal = SignalType.HOLD
        # avg over changes[0:period] describes closes[period]
        results.append(IndicatorPoint(timestamp=timestamps[period + i], value=float(value), signal=signal))
    return results


def calculate_macd(
    series: PriceInput,
    fast_period: int = MACD_FAST,
    slow_period: int = MACD_SLOW,
    signal_period: int = MACD_SIGNAL,
) -> List[MACDPoint]:
    """
    Calculate MACD (Moving Average Convergence Divergence).

    MACD line = EMA(fast) - EMA(slow), signal line = EMA(signal_period) of the
    MACD line, histogram = MACD - signal. Fast and slow EMAs are aligned by
    series position, so the MACD line starts where both are defined.

    Signals: BUY when histogram > 0 and MACD > signal line, SELL on the mirror
    condition, otherwise HOLD.
    """
    _check_period("fast_period", fast_period)
    _check_period("slow_period", slow_period)
    _check_period("signal_period", signal_period)
    timestamps, closes, _, _ = _price_arrays(series)
    n = len(closes)
    start = max(fast_period, slow_period) - 1
    if n <= start:
        return []

    fast = ema_values(closes, fast_period)
    slow = ema_values(closes, slow_period)
    # Re-align both to series positions [start, n)
    fast = fast[start - (fast_period - 1):]
    slow = slow[start - (slow_period - 1):]
    macd_line = fast - slow

    signal_line = ema_values(macd_line, signal_period)
    offset = signal_period - 1

    results = []
    for i, signal_value in enumerate(signal_line):
        macd_value = float(macd_line[offset + i])
        histogram = macd_value - float(signal_value)
        if histogram > 0 and macd_value > signal_value:
            signal = SignalType.BUY
        elif histogram < 0 and macd_value < signal_value:
            signal = SignalType.SELL
        else:
            signal = SignalType.HOLD
        results.append(MACDPoint(
            timestamp=timestamps[start + offset + i],
            value=histogram,
            signal=signal,
            macd_line=macd_value,
            signal_line=float(signal_value),
            histogram=histogram,
        ))
    return results


def calculate_bollinger_bands(
    series: PriceInput,
    period: int = BOLLINGER_PERIOD,
    std_dev_multiplier: float = BOLLINGER_STD_DEV,
) -> List[BandPoint]:
    """
    Bollinger Bands: rolling mean +/- multiplier * population standard deviation.

    Signals: BUY when price <= lower band, SELL when price >= upper band.
    """
    _check_period("period", period)
    timestamps, closes, _, _ = _price_arrays(series)
    if len(closes) < period:
        return []

    rolling = pd.Series(closes).rolling(period)
    middle = rolling.mean().to_numpy()
    std = rolling.std(ddof=0).to_numpy()

    results = []
    for i in range(period - 1, len(closes)):
        upper = middle[i] + std_dev_multiplier * std[i]
        lower = middle[i] - std_dev_multiplier * std[i]
        price = closes[i]
        if price <= lower:
            signal = SignalType.BUY
        elif price >= upper:
            signal = SignalType.SELL
        else:
            signal = SignalType.HOLD
        results.append(BandPoint(
            timestamp=timestamps[i],
            value=float(price),
            signal=signal,
            upper=float(upper),
            middle=float(middle[i]),
            lower=float(lower),
        ))
    return results


def calculate_stochastic(
    series: PriceInput,
    k_period: int = STOCHASTIC_K_PERIOD,
    d_period: int = STOCHASTIC_D_PERIOD,
) -> List[IndicatorPoint]:
    """
    Stochastic oscillator. Returns %D (the SMA of %K over d_period).

    %K = (close - lowest low) / (highest high - lowest low) * 100 over k_period.
    Uses bar highs/lows for PricePoint input, closes for a pandas Series.
    A window with no range gives %K = 50.

    Signals: BUY when %D < 20, SELL when %D > 80.
    """
    _check_period("k_period", k_period)
    _check_period("d_period", d_period)
    timestamps, closes, highs, lows = _price_arrays(series)
    if len(closes) < k_period + d_period - 1:
        return []

    highest = pd.Series(highs).rolling(k_period).max().to_numpy()
    lowest = pd.Series(lows).rolling(k_period).min().to_numpy()
    price_range = highest - lowest
    with np.errstate(divide="ignore", invalid="ignore"):
        k = np.where(price_range > 0, (closes - lowest) / price_range * 100.0, STOCHASTIC_FLAT_VALUE)
    k = k[k_period - 1:]
    d = pd.Series(k).rolling(d_period).mean().to_numpy()

    results = []
    for i in range(d_period - 1, len(k)):
        value = float(d[i])
        if value < STOCHASTIC_OVERSOLD:
            signal = SignalType.BUY
        elif value > STOCHASTIC_OVERBOUGHT:
            signal = SignalType.SELL
        else:
            signal = SignalType.HOLD
        results.append(IndicatorPoint(timestamp=timestamps[k_period - 1 + i], value=value, signal=signal))
    return results


def latest_signal(points: Sequence[IndicatorPoint]) -> SignalType:
    """Signal of the most recent point, HOLD when empty or unsignalled."""
    if not points:
        return SignalType.HOLD
    return points[-1].signal or SignalType.HOLD


def indicator_frame(
    series: PriceInput,
    rsi_period: int = RSI_PERIOD,
    macd_fast: int = MACD_FAST,
    macd_slow: int = MACD_SLOW,
    macd_signal: int = MACD_SIGNAL,
    bollinger_period: int = BOLLINGER_PERIOD,
    bollinger_std_dev: float = BOLLINGER_STD_DEV,
    stochastic_k: int = STOCHASTIC_K_PERIOD,
    stochastic_d: int = STOCHASTIC_D_PERIOD,
) -> pd.DataFrame:
    """
    Calculate all indicators and return as a DataFrame, one row per input bar.

    Every indicator output is a contiguous tail of the input, so columns are
    filled from the end; rows before an indicator's first full window hold NaN.
    """
    timestamps, closes, _, _ = _price_arrays(series)
    df = pd.DataFrame({"price": closes}, index=pd.Index(timestamps, name="timestamp"))

    rsi = calculate_rsi(series, rsi_period)
    macd = calculate_macd(series, macd_fast, macd_slow, macd_signal)
    bands = calculate_bollinger_bands(series, bollinger_period, bollinger_std_dev)
    stochastic = calculate_stochastic(series, stochastic_k, stochastic_d)

    columns = {
        "rsi": [p.value for p in rsi],
        "macd_line": [p.macd_line for p in macd],
        "macd_signal": [p.signal_line for p in macd],
        "macd_histogram": [p.histogram for p in macd],
        "bb_upper": [p.upper for p in bands],
        "bb_middle": [p.middle for p in bands],
        "bb_lower": [p.lower for p in bands],
        "stochastic_d": [p.value for p in stochastic],
    }
    for name, values in columns.items():
        column = np.full(len(df), np.nan)
        if values:
            column[len(df) - len(values):] = values
        df[name] = column
    return df
