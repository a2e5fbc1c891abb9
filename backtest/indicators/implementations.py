"""
Individual indicator implementations following the Indicator interface.

These classes bind periods once so strategies can hold a configured
indicator and call calculate() repeatedly.
"""
from typing import List

from .base import Indicator
from .technical import (
    BandPoint,
    IndicatorPoint,
    MACDPoint,
    PriceInput,
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
    calculate_stochastic,
)
from ..shared.defaults import (
    RSI_PERIOD, RSI_OVERSOLD, RSI_OVERBOUGHT,
    MA_PERIOD,
    MACD_FAST, MACD_SLOW, MACD_SIGNAL,
    BOLLINGER_PERIOD, BOLLINGER_STD_DEV,
    STOCHASTIC_K_PERIOD, STOCHASTIC_D_PERIOD,
)


class SMAIndicator(Indicator):
    """Simple Moving Average indicator."""

    def __init__(self, period: int = MA_PERIOD):
        self.period = period

    def calculate(self, series: PriceInput) -> List[IndicatorPoint]:
        return calculate_sma(series, self.period)


class EMAIndicator(Indicator):
    """Exponential Moving Average indicator."""

    def __init__(self, period: int = MA_PERIOD):
        self.period = period

    def calculate(self, series: PriceInput) -> List[IndicatorPoint]:
        return calculate_ema(series, self.period)


class RSIIndicator(Indicator):
    """Relative Strength Index indicator."""

    def __init__(
        self,
        period: int = RSI_PERIOD,
        oversold: float = RSI_OVERSOLD,
        overbought: float = RSI_OVERBOUGHT,
    ):
        self.period = period
        self.oversold = oversold
        self.overbought = overbought

    def calculate(self, series: PriceInput) -> List[IndicatorPoint]:
        return calculate_rsi(series, self.period, self.oversold, self.overbought)


class MACDIndicator(Indicator):
    """MACD (Moving Average Convergence Divergence) indicator. Value is the histogram."""

    def __init__(
        self,
        fast: int = MACD_FAST,
        slow: int = MACD_SLOW,
        signal: int = MACD_SIGNAL,
    ):
        self.fast = fast
        self.slow = slow
        self.signal = signal

    def calculate(self, series: PriceInput) -> List[MACDPoint]:
        return calculate_macd(series, self.fast, self.slow, self.signal)


class BollingerBandsIndicator(Indicator):
    """Bollinger Bands indicator. Value is the price compared against the bands."""

    def __init__(self, period: int = BOLLINGER_PERIOD, std_dev_multiplier: float = BOLLINGER_STD_DEV):
        self.period = period
        self.std_dev_multiplier = std_dev_multiplier

    def calculate(self, series: PriceInput) -> List[BandPoint]:
        return calculate_bollinger_bands(series, self.period, self.std_dev_multiplier)


class StochasticIndicator(Indicator):
    """Stochastic oscillator. Value is %D."""

    def __init__(self, k_period: int = STOCHASTIC_K_PERIOD, d_period: int = STOCHASTIC_D_PERIOD):
        self.k_period = k_period
        self.d_period = d_period

    def calculate(self, series: PriceInput) -> List[IndicatorPoint]:
        return calculate_stochastic(series, self.k_period, self.d_period)
