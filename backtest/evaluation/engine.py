"""
Simulation engine.

Replays a price series bar by bar, applying signals from a decision function:
- At most one open position at a time (long or short, fixed size)
- Any signal closes an open position; a BUY/SELL then opens a new one on the
  same bar, so an opposing signal reverses the position
- Slippage is applied against the trader on both entry and exit
- A position still open at the end is force-closed at the final close after
  the replay; that close changes the balance but not the equity or drawdown curves
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..config.config import SimulationConfig
from ..data.loader import validate_price_point
from ..shared.types import DecisionFunction, Direction, PricePoint, Signal, SignalType
from .metrics import (
    calculate_monthly_returns,
    calculate_profit_factor,
    calculate_sharpe_ratio,
    summarize_trades,
)
from .types import DrawdownPoint, EquityPoint, Position, Report, Trade

logger = logging.getLogger(__name__)

# Re-export for callers that only import the engine module
__all__ = ["SimulationEngine", "calculate_monthly_returns"]


def _prepare_series(series: Sequence[PricePoint], config: SimulationConfig) -> Tuple[PricePoint, ...]:
    """Validate, filter to the config window and sort ascending (stable)."""
    for point in series:
        validate_price_point(point)
    windowed = [p for p in series if config.contains(p.timestamp)]
    # sorted() is stable: duplicate timestamps keep load order
    return tuple(sorted(windowed, key=lambda p: p.timestamp))


class SimulationEngine:
    """
    Deterministic single-instrument simulator.

    The engine is value-like: the series is fixed at construction and
    load() returns a new engine, so one instance can be shared across
    threads without copying.
    """

    def __init__(self, config: Optional[SimulationConfig] = None, series: Sequence[PricePoint] = ()):
        self.config = config if config is not None else SimulationConfig()
        self.series = _prepare_series(series, self.config)

    def load(self, series: Sequence[PricePoint]) -> "SimulationEngine":
        """Return a new engine with the same config bound to series."""
        return SimulationEngine(self.config, series)

    def generate_signals(self, decision_fn: DecisionFunction) -> List[Signal]:
        """Call decision_fn(series, index) for every bar; keep non-None results."""
        signals = []
        for index in range(len(self.series)):
            signal = decision_fn(self.series, index)
            if signal is not None:
                signals.append(signal)
        return signals

    def run(self, decision_fn: DecisionFunction) -> Report:
        """Generate signals with decision_fn and execute them."""
        return self.execute(self.generate_signals(decision_fn))

    def execute(self, signals: Sequence[Signal]) -> Report:
        """
        Replay the series against signals and build a Report.

        Signals are matched to bars by exact timestamp; when several share a
        timestamp the first one wins. Signals with no matching bar are ignored.
        """
        if not self.series:
            return self._empty_result()

        by_timestamp: Dict[int, Signal] = {}
        for signal in signals:
            by_timestamp.setdefault(signal.timestamp, signal)

        slippage = self.config.slippage_fraction
        balance = self.config.initial_balance
        peak = balance
        max_drawdown = 0.0
        position: Optional[Position] = None
        trades: List[Trade] = []
        equity_curve: List[EquityPoint] = []
        drawdown_curve: List[DrawdownPoint] = []

        for point in self.series:
            signal = by_timestamp.get(point.timestamp)

            if signal is not None:
                if position is not None:
                    if position.direction == Direction.LONG:
                        exit_price = point.close * (1 - slippage)
                    else:
                        exit_price = point.close * (1 + slippage)
                    trade = self._close_trade(position, point.timestamp, exit_price, forced=False)
                    trades.append(trade)
                    balance += trade.pnl
                    position = None

                    # Drawdown is tracked at signal closes only
                    if balance > peak:
                        peak = balance
                    drawdown = ((peak - balance) / peak) * 100 if peak > 0 else 0.0
                    if drawdown > max_drawdown:
                        max_drawdown = drawdown
                    drawdown_curve.append(DrawdownPoint(
                        timestamp=point.timestamp,
                        drawdown_percent=drawdown,
                        peak_equity=peak,
                    ))

                if signal.signal_type == SignalType.BUY:
                    position = Position(
                        direction=Direction.LONG,
                        entry_time=point.timestamp,
                        entry_price=point.close * (1 + slippage),
                        size=self.config.position_size,
                    )
                elif signal.signal_type == SignalType.SELL:
                    position = Position(
                        direction=Direction.SHORT,
                        entry_time=point.timestamp,
                        entry_price=point.close * (1 - slippage),
                        size=self.config.position_size,
                    )

            equity_curve.append(EquityPoint(timestamp=point.timestamp, equity=balance))

        # Forced close at the final close, no slippage; equity and drawdown curves stay as replayed
        if position is not None:
            last = self.series[-1]
            trade = self._close_trade(position, last.timestamp, last.close, forced=True)
            trades.append(trade)
            balance += trade.pnl

        logger.debug(
            f"Simulated {len(self.series)} bars with {len(by_timestamp)} signal bars: "
            f"{len(trades)} trades, final balance {balance:.2f}"
        )
        return self._build_report(balance, max_drawdown, trades, equity_curve, drawdown_curve)

    def _close_trade(self, position: Position, exit_time: int, exit_price: float, forced: bool) -> Trade:
        if position.direction == Direction.LONG:
            delta = exit_price - position.entry_price
        else:
            delta = position.entry_price - exit_price
        pnl = delta * position.size - self.config.commission_per_trade
        notional = position.entry_price * position.size
        return Trade(
            entry_time=position.entry_time,
            exit_time=exit_time,
            entry_price=position.entry_price,
            exit_price=exit_price,
            pnl=pnl,
            pnl_percent=(pnl / notional) * 100 if notional != 0 else 0.0,
            holding_period=exit_time - position.entry_time,
            direction=position.direction,
            size=position.size,
            forced_exit=forced,
        )

    def _build_report(
        self,
        final_balance: float,
        max_drawdown: float,
        trades: List[Trade],
        equity_curve: List[EquityPoint],
        drawdown_curve: List[DrawdownPoint],
    ) -> Report:
        initial = self.config.initial_balance
        total_pnl = sum(t.pnl for t in trades)
        return Report(
            initial_balance=initial,
            final_balance=final_balance,
            total_pnl=total_pnl,
            total_return=(total_pnl / initial) * 100,
            max_drawdown=max_drawdown,
            sharpe_ratio=calculate_sharpe_ratio(equity_curve),
            profit_factor=calculate_profit_factor(trades),
            trades=tuple(trades),
            equity_curve=tuple(equity_curve),
            drawdown_curve=tuple(drawdown_curve),
            monthly_returns=tuple(calculate_monthly_returns(equity_curve)),
            **summarize_trades(trades),
        )

    def _empty_result(self) -> Report:
        """Report for an empty series: all zeros, empty curves."""
        initial = self.config.initial_balance
        return Report(
            initial_balance=initial,
            final_balance=initial,
            total_pnl=0.0,
            total_return=0.0,
            max_drawdown=0.0,
            sharpe_ratio=0.0,
            profit_factor=0.0,
            **summarize_trades(()),
        )
