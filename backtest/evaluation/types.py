"""
Simulation types: positions, trades, curves and the report.

Extracted so optimizers and reporting can import these types without pulling
in SimulationEngine. Everything except Position is frozen: a Report is never
mutated after it is returned.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..shared.types import Direction


@dataclass
class Position:
    """The open position during a simulation. Never part of a Report."""
    direction: Direction
    entry_time: int
    entry_price: float
    size: float


@dataclass(frozen=True)
class Trade:
    """A closed round trip."""
    entry_time: int
    exit_time: int
    entry_price: float
    exit_price: float
    pnl: float  # Profit/loss in currency units, after commission
    pnl_percent: float  # pnl relative to entry notional (entry_price * size)
    holding_period: int  # Milliseconds
    direction: Direction  # LONG or SHORT
    size: float
    forced_exit: bool = False  # Closed at series end rather than by a signal

    @property
    def is_win(self) -> bool:
        return self.pnl > 0


@dataclass(frozen=True)
class EquityPoint:
    """Account balance after processing one bar."""
    timestamp: int
    equity: float


@dataclass(frozen=True)
class DrawdownPoint:
    """Drawdown measured at a trade close."""
    timestamp: int
    drawdown_percent: float
    peak_equity: float


@dataclass(frozen=True)
class MonthlyReturn:
    """Percent change of equity within one calendar month (UTC)."""
    month: str  # "YYYY-MM"
    return_percent: float
    cumulative_return: float  # Running sum of return_percent up to this month


@dataclass(frozen=True)
class Report:
    """Results from one simulation run."""
    initial_balance: float
    final_balance: float

    total_trades: int
    winning_trades: int
    losing_trades: int  # Every non-winning trade, including pnl == 0
    win_rate: float  # Percent, 0-100

    total_pnl: float
    total_return: float  # Percent of initial_balance
    max_drawdown: float  # Percent
    sharpe_ratio: float  # Per-bar, not annualized
    profit_factor: float  # math.inf when there are gains and no losses

    average_win: float
    average_loss: float  # Positive magnitude
    largest_win: float
    largest_loss: float  # Most negative pnl
    average_holding_period: float  # Milliseconds
    max_holding_period: int  # Milliseconds

    trades: Tuple[Trade, ...] = ()
    equity_curve: Tuple[EquityPoint, ...] = ()
    drawdown_curve: Tuple[DrawdownPoint, ...] = ()
    monthly_returns: Tuple[MonthlyReturn, ...] = ()


@dataclass(frozen=True)
class RiskAssessment:
    """Scorecard for one report: 0-100 score, A-D grade and the weak spots found."""
    score: int
    grade: str
    issues: Tuple[str, ...] = ()
