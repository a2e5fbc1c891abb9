"""
Evaluation module.

Provides the simulation engine, report types and performance metrics.
"""
from .types import Position, Trade, EquityPoint, DrawdownPoint, MonthlyReturn, Report, RiskAssessment
from .metrics import (
    calculate_sharpe_ratio,
    calculate_profit_factor,
    assess_risk,
    best_report,
    calculate_monthly_returns,
    summarize_trades,
)
from .engine import SimulationEngine

__all__ = [
    'SimulationEngine',
    'Position',
    'Trade',
    'EquityPoint',
    'DrawdownPoint',
    'MonthlyReturn',
    'Report',
    'calculate_sharpe_ratio',
    'calculate_profit_factor',
    'assess_risk',
    'best_report',
    'RiskAssessment',
    'calculate_monthly_returns',
    'summarize_trades',
]
