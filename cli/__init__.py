"""
Command-line entry points.

Provides the backtest CLI:
- Single simulation run
- Grid search
- Monte Carlo sweep
- Walk-forward validation
"""
