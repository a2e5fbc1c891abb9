"""
Shared types and defaults for the backtesting engine.

This module provides:
- PricePoint, Signal, SignalType and Direction
- Centralized default values for simulation and indicator parameters
"""
from .types import PricePoint, Signal, SignalType, Direction, DecisionFunction, ParameterizedDecisionFunction
from .defaults import (
    INITIAL_BALANCE, COMMISSION_PER_TRADE, SLIPPAGE_FRACTION, POSITION_SIZE,
    RSI_PERIOD, RSI_OVERSOLD, RSI_OVERBOUGHT,
    MACD_FAST, MACD_SLOW, MACD_SIGNAL,
    BOLLINGER_PERIOD, BOLLINGER_STD_DEV,
    STOCHASTIC_K_PERIOD, STOCHASTIC_D_PERIOD,
    STOCHASTIC_OVERSOLD, STOCHASTIC_OVERBOUGHT,
)

__all__ = [
    'PricePoint',
    'Signal',
    'SignalType',
    'Direction',
    'DecisionFunction',
    'ParameterizedDecisionFunction',
    'INITIAL_BALANCE', 'COMMISSION_PER_TRADE', 'SLIPPAGE_FRACTION', 'POSITION_SIZE',
    'RSI_PERIOD', 'RSI_OVERSOLD', 'RSI_OVERBOUGHT',
    'MACD_FAST', 'MACD_SLOW', 'MACD_SIGNAL',
    'BOLLINGER_PERIOD', 'BOLLINGER_STD_DEV',
    'STOCHASTIC_K_PERIOD', 'STOCHASTIC_D_PERIOD',
    'STOCHASTIC_OVERSOLD', 'STOCHASTIC_OVERBOUGHT',
]
