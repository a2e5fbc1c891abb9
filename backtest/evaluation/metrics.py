"""
Performance metrics computed from trades and equity curves.

Every degenerate input (no trades, flat equity, empty curve) has a defined
fallback value; none of these functions return NaN.
"""
import math
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..shared.defaults import (
    RISK_WIN_RATE_TIERS, RISK_SHARPE_TIERS, RISK_PROFIT_FACTOR_TIERS,
    RISK_DRAWDOWN_TIERS, RISK_GRADES,
)
from .types import EquityPoint, MonthlyReturn, Report, RiskAssessment, Trade


def calculate_sharpe_ratio(equity_curve: Sequence[EquityPoint]) -> float:
    """
    Per-bar Sharpe ratio: mean / population std of simple equity returns.

    Returns 0 when there are fewer than two points or the returns have no
    variance. Steps starting from zero equity contribute a return of 0.
    """
    if len(equity_curve) < 2:
        return 0.0
    equity = np.array([p.equity for p in equity_curve], dtype=float)
    prev = equity[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        returns = np.where(prev != 0, np.diff(equity) / prev, 0.0)
    std = returns.std()  # ddof=0, population
    if not math.isfinite(std) or std == 0:
        return 0.0
    return float(returns.mean() / std)


def calculate_profit_factor(trades: Sequence[Trade]) -> float:
    """Gross profit / gross loss. math.inf when only gains, 0 when neither."""
    gross_profit = sum(t.pnl for t in trades if t.pnl > 0)
    gross_loss = abs(sum(t.pnl for t in trades if t.pnl < 0))
    if gross_loss > 0:
        return gross_profit / gross_loss
    return math.inf if gross_profit > 0 else 0.0


def calculate_monthly_returns(equity_curve: Sequence[EquityPoint]) -> List[MonthlyReturn]:
    """
    Bucket an equity curve by UTC calendar month.

    Each month's return is (last equity - first equity) / first equity * 100
    using the first and last points observed in that month; cumulative_return
    is the running sum across months in chronological order.
    """
    if not equity_curve:
        return []

    df = pd.DataFrame({
        "timestamp": [p.timestamp for p in equity_curve],
        "equity": [p.equity for p in equity_curve],
    })
    df["month"] = pd.to_datetime(df["timestamp"], unit="ms", utc=True).dt.strftime("%Y-%m")
    # Curve is chronological, so first/last within a group are start/end of month
    grouped = df.groupby("month", sort=True)["equity"].agg(["first", "last"])

    results = []
    cumulative = 0.0
    for month, row in grouped.iterrows():
        start, end = float(row["first"]), float(row["last"])
        month_return = ((end - start) / start) * 100 if start != 0 else 0.0
        cumulative += month_return
        results.append(MonthlyReturn(month=str(month), return_percent=month_return, cumulative_return=cumulative))
    return results


def summarize_trades(trades: Sequence[Trade]) -> Dict[str, float]:
    """
    Win/loss statistics over closed trades.

    A trade with pnl > 0 is a win; every other trade is a loss, so
    winning_trades + losing_trades == total_trades always holds.
    """
    n = len(trades)
    winners = [t.pnl for t in trades if t.pnl > 0]
    losers = [t.pnl for t in trades if t.pnl <= 0]
    if n == 0:
        return {
            "total_trades": 0,
            "winning_trades": 0,
            "losing_trades": 0,
            "win_rate": 0.0,
            "average_win": 0.0,
            "average_loss": 0.0,
            "largest_win": 0.0,
            "largest_loss": 0.0,
            "average_holding_period": 0.0,
            "max_holding_period": 0,
        }
    holding = [t.holding_period for t in trades]
    return {
        "total_trades": n,
        "winning_trades": len(winners),
        "losing_trades": len(losers),
        "win_rate": len(winners) / n * 100,
        "average_win": sum(winners) / len(winners) if winners else 0.0,
        "average_loss": abs(sum(losers)) / len(losers) if losers else 0.0,
        "largest_win": max(winners) if winners else 0.0,
        "largest_loss": min(losers) if losers else 0.0,
        "average_holding_period": sum(holding) / n,
        "max_holding_period": max(holding),
    }


def _tier_points(value: float, tiers, higher_is_better: bool = True) -> int:
    for threshold, points in tiers:
        if (value >= threshold) if higher_is_better else (value <= threshold):
            return points
    return 0


def assess_risk(report: Report) -> RiskAssessment:
    """
    Score a report on win rate, Sharpe ratio, max drawdown and profit factor.

    Each metric earns up to 25 points by tier (see RISK_*_TIERS in defaults).
    A metric that misses its lowest tier is listed as an issue. Grade is A
    from 80, B from 60, C from 40, otherwise D.
    """
    score = (
        _tier_points(report.win_rate, RISK_WIN_RATE_TIERS)
        + _tier_points(report.sharpe_ratio, RISK_SHARPE_TIERS)
        + _tier_points(report.max_drawdown, RISK_DRAWDOWN_TIERS, higher_is_better=False)
        + _tier_points(report.profit_factor, RISK_PROFIT_FACTOR_TIERS)
    )

    issues = []
    if report.win_rate < RISK_WIN_RATE_TIERS[-1][0]:
        issues.append("Low win rate")
    if report.sharpe_ratio < RISK_SHARPE_TIERS[-1][0]:
        issues.append("Poor risk-adjusted returns")
    if report.max_drawdown > RISK_DRAWDOWN_TIERS[-1][0]:
        issues.append("High maximum drawdown")
    if report.profit_factor < RISK_PROFIT_FACTOR_TIERS[-1][0]:
        issues.append("Low profit factor")

    grade = next((g for threshold, g in RISK_GRADES if score >= threshold), "D")
    return RiskAssessment(score=score, grade=grade, issues=tuple(issues))


def best_report(reports: Sequence[Report]) -> Optional[Report]:
    """Highest total return; the earliest report wins ties. None for an empty list."""
    if not reports:
        return None
    return max(reports, key=lambda r: r.total_return)
