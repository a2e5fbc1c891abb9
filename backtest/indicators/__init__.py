"""
Indicator calculation module.

Provides all trading indicators:
- Moving averages (SMA, EMA)
- Oscillators (RSI, MACD, Stochastic)
- Bands (Bollinger)

Indicators are pure functions over a price series; the class wrappers share
the Indicator interface.
"""
from .technical import (
    IndicatorPoint,
    MACDPoint,
    BandPoint,
    calculate_sma,
    calculate_ema,
    calculate_rsi,
    calculate_macd,
    calculate_bollinger_bands,
    calculate_stochastic,
    latest_signal,
    indicator_frame,
)
from .base import Indicator
from .implementations import (
    SMAIndicator,
    EMAIndicator,
    RSIIndicator,
    MACDIndicator,
    BollingerBandsIndicator,
    StochasticIndicator,
)

__all__ = [
    'IndicatorPoint',
    'MACDPoint',
    'BandPoint',
    'calculate_sma',
    'calculate_ema',
    'calculate_rsi',
    'calculate_macd',
    'calculate_bollinger_bands',
    'calculate_stochastic',
    'latest_signal',
    'indicator_frame',
    'Indicator',
    'SMAIndicator',
    'EMAIndicator',
    'RSIIndicator',
    'MACDIndicator',
    'BollingerBandsIndicator',
    'StochasticIndicator',
]
