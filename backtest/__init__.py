"""
Strategy backtesting engine.

Provides unified interfaces for:
- Data loading (CSV, DataFrame, synthetic sample series)
- Indicator calculations (SMA, EMA, RSI, MACD, Bollinger Bands, Stochastic)
- Simulation of a decision function over a price series
- Parameter exploration (grid search, Monte Carlo, walk-forward)
"""
