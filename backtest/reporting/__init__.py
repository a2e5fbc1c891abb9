"""
Reporting module.

Converts reports, optimization results, Monte Carlo analyses and
walk-forward results into DataFrames, JSON-ready dicts and CSV files.
"""
from .export import (
    trades_to_dataframe,
    equity_to_dataframe,
    drawdowns_to_dataframe,
    monthly_returns_to_dataframe,
    report_summary,
    optimization_results_to_dataframe,
    optimization_results_records,
    risk_summary,
    monte_carlo_to_dataframe,
    analysis_summary,
    walk_forward_to_dataframe,
    walk_forward_summary,
    save_report_csv,
)

__all__ = [
    'trades_to_dataframe',
    'equity_to_dataframe',
    'drawdowns_to_dataframe',
    'monthly_returns_to_dataframe',
    'report_summary',
    'optimization_results_to_dataframe',
    'optimization_results_records',
    'risk_summary',
    'monte_carlo_to_dataframe',
    'analysis_summary',
    'walk_forward_to_dataframe',
    'walk_forward_summary',
    'save_report_csv',
]
