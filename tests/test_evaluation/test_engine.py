"""
Tests for the simulation engine.
"""
import math

import pytest

from backtest.config.config import SimulationConfig
from backtest.data.loader import DataValidationError
from backtest.evaluation.engine import SimulationEngine
from backtest.evaluation.metrics import calculate_monthly_returns
from backtest.shared.types import Direction, PricePoint, Signal, SignalType

from conftest import MINUTE, START, build_series, scripted, signal_at

DAY = 24 * 60 * MINUTE


def run(series, actions, **config):
    engine = SimulationEngine(SimulationConfig(**config), series)
    return engine.run(scripted(actions))


class TestScenario:
    """Buy at the first bar of a rising series, sell at the last."""

    def test_single_trade_pnl(self, rising_series):
        """BUY at 100, SELL at 109 -> the long closes with pnl 9."""
        report = run(rising_series, {0: SignalType.BUY, 9: SignalType.SELL})

        trade = report.trades[0]
        assert trade.direction == Direction.LONG
        assert trade.entry_price == pytest.approx(100.0)
        assert trade.exit_price == pytest.approx(109.0)
        assert trade.pnl == pytest.approx(9.0)
        assert trade.pnl_percent == pytest.approx(9.0)
        assert trade.holding_period == 9 * MINUTE
        assert not trade.forced_exit

    def test_final_sell_opens_short_closed_flat(self, rising_series):
        """The SELL on the last bar also opens a short, force-closed at the same price."""
        report = run(rising_series, {0: SignalType.BUY, 9: SignalType.SELL})

        assert report.total_trades == 2
        short = report.trades[1]
        assert short.direction == Direction.SHORT
        assert short.forced_exit
        assert short.pnl == pytest.approx(0.0)

    def test_totals(self, rising_series):
        """totalPnL 9 and totalReturn 0.9% of a 1000 balance."""
        report = run(rising_series, {0: SignalType.BUY, 9: SignalType.SELL})

        assert report.total_pnl == pytest.approx(9.0)
        assert report.total_return == pytest.approx(0.9)
        assert report.final_balance == pytest.approx(1009.0)
        assert report.winning_trades == 1
        # The flat forced short counts as a loss
        assert report.losing_trades == 1
        assert report.win_rate == pytest.approx(50.0)
        assert report.profit_factor == math.inf


class TestNoSignals:
    """A decision function that never signals."""

    def test_flat_report(self, random_series):
        """No trades, flat equity at the initial balance, no drawdown."""
        engine = SimulationEngine(SimulationConfig(initial_balance=500.0), random_series)
        report = engine.run(lambda series, index: None)

        assert report.total_trades == 0
        assert report.win_rate == 0
        assert report.max_drawdown == 0
        assert report.sharpe_ratio == 0
        assert report.profit_factor == 0
        assert len(report.equity_curve) == len(random_series)
        assert all(p.equity == 500.0 for p in report.equity_curve)
        assert report.drawdown_curve == ()

    def test_empty_series(self):
        """Empty series gives an all-zero report, not an error."""
        report = SimulationEngine(SimulationConfig()).run(lambda series, index: None)

        assert report.total_trades == 0
        assert report.total_pnl == 0
        assert report.sharpe_ratio == 0
        assert report.equity_curve == ()
        assert report.monthly_returns == ()
        assert report.final_balance == report.initial_balance


class TestPositionRules:
    """Opening, closing and reversing positions."""

    def test_opposing_signal_reverses(self, rising_series):
        """SELL while long closes the long and opens a short on the same bar."""
        report = run(rising_series, {2: SignalType.BUY, 5: SignalType.SELL})

        assert report.total_trades == 2
        long_trade, short_trade = report.trades
        assert long_trade.direction == Direction.LONG
        assert long_trade.pnl == pytest.approx(3.0)
        assert short_trade.direction == Direction.SHORT
        assert short_trade.entry_time == long_trade.exit_time
        assert short_trade.pnl == pytest.approx(105.0 - 109.0)

    def test_hold_closes_without_reopening(self, rising_series):
        """HOLD closes an open position and opens nothing."""
        report = run(rising_series, {1: SignalType.BUY, 4: SignalType.HOLD})

        assert report.total_trades == 1
        assert report.trades[0].pnl == pytest.approx(3.0)
        assert not report.trades[0].forced_exit

    def test_hold_without_position_is_ignored(self, rising_series):
        report = run(rising_series, {3: SignalType.HOLD})
        assert report.total_trades == 0

    def test_same_direction_signal_rolls_position(self, rising_series):
        """A second BUY closes the long and opens a fresh one at the same bar."""
        report = run(rising_series, {0: SignalType.BUY, 4: SignalType.BUY, 9: SignalType.HOLD})

        assert report.total_trades == 2
        assert report.trades[1].entry_price == pytest.approx(104.0)

    def test_entry_on_final_bar_is_force_closed(self):
        """A BUY on the last bar opens and is closed at the same close: only costs are lost."""
        series = build_series([100.0, 101.0, 102.0])
        report = run(series, {2: SignalType.BUY}, commission_per_trade=1.0, slippage_fraction=0.01)

        assert report.total_trades == 1
        trade = report.trades[0]
        assert trade.forced_exit
        assert trade.entry_time == trade.exit_time == series[2].timestamp
        assert trade.pnl == pytest.approx(102.0 - 102.0 * 1.01 - 1.0)

    def test_single_point_series_with_entry(self):
        series = build_series([50.0])
        report = run(series, {0: SignalType.SELL}, commission_per_trade=0.5)

        assert report.total_trades == 1
        assert report.trades[0].direction == Direction.SHORT
        assert report.total_pnl == pytest.approx(-0.5)

    def test_first_signal_wins_for_duplicate_timestamps(self, rising_series):
        engine = SimulationEngine(SimulationConfig(), rising_series)
        signals = [
            signal_at(rising_series, 0, SignalType.SELL),
            signal_at(rising_series, 0, SignalType.BUY),
        ]
        report = engine.execute(signals)

        assert report.trades[0].direction == Direction.SHORT

    def test_unmatched_signal_timestamps_are_ignored(self, rising_series):
        engine = SimulationEngine(SimulationConfig(), rising_series)
        stray = Signal(timestamp=START + 30 * 1000, signal_type=SignalType.BUY, price=100.0)
        report = engine.execute([stray])

        assert report.total_trades == 0


class TestForcedClose:
    """Positions open at the end of the series."""

    def test_open_position_force_closed(self, rising_series):
        """A position never closed by a signal is closed at the final close."""
        report = run(rising_series, {3: SignalType.BUY})

        assert report.total_trades == 1
        trade = report.trades[0]
        assert trade.forced_exit
        assert trade.exit_time == rising_series[-1].timestamp
        assert trade.exit_price == pytest.approx(109.0)
        assert trade.pnl == pytest.approx(6.0)

    def test_forced_close_only_changes_balance(self, rising_series):
        """The forced close counts in the balance but not in the equity or drawdown curves."""
        report = run(rising_series, {3: SignalType.BUY})

        assert report.final_balance == pytest.approx(1006.0)
        assert report.total_pnl == pytest.approx(6.0)
        assert report.equity_curve[-1].equity == pytest.approx(1000.0)
        assert report.drawdown_curve == ()

    def test_forced_loss_does_not_set_drawdown(self):
        series = build_series([100.0, 90.0, 80.0])
        report = run(series, {0: SignalType.BUY})

        assert report.trades[0].pnl == pytest.approx(-20.0)
        assert report.final_balance == pytest.approx(980.0)
        assert report.max_drawdown == 0.0
        assert [p.equity for p in report.equity_curve] == [1000.0, 1000.0, 1000.0]

    def test_forced_close_has_no_slippage(self, rising_series):
        """Forced exit fills at the raw close; commission is still charged."""
        report = run(rising_series, {3: SignalType.BUY}, slippage_fraction=0.01, commission_per_trade=0.5)
        trade = report.trades[0]

        assert trade.entry_price == pytest.approx(103.0 * 1.01)
        assert trade.exit_price == pytest.approx(109.0)
        assert trade.pnl == pytest.approx(109.0 - 103.0 * 1.01 - 0.5)

    def test_every_cycle_produces_one_trade(self, random_series):
        """Trades alternate cleanly: no overlapping or dangling positions."""
        actions = {i: (SignalType.BUY if i % 7 else SignalType.SELL) for i in range(0, 480, 13)}
        report = run(random_series, actions)

        for previous, current in zip(report.trades, report.trades[1:]):
            assert current.entry_time >= previous.exit_time
        for trade in report.trades:
            assert trade.exit_time >= trade.entry_time


class TestCosts:
    """Slippage, commission and position size."""

    def test_long_slippage_adverse_on_both_fills(self, rising_series):
        report = run(rising_series, {0: SignalType.BUY, 9: SignalType.SELL}, slippage_fraction=0.01)
        trade = report.trades[0]

        assert trade.entry_price == pytest.approx(101.0)
        assert trade.exit_price == pytest.approx(109.0 * 0.99)
        assert trade.pnl == pytest.approx(109.0 * 0.99 - 101.0)

    def test_short_slippage_adverse_on_both_fills(self, rising_series):
        report = run(rising_series, {0: SignalType.SELL, 9: SignalType.BUY}, slippage_fraction=0.01)
        trade = report.trades[0]

        assert trade.direction == Direction.SHORT
        assert trade.entry_price == pytest.approx(99.0)
        assert trade.exit_price == pytest.approx(109.0 * 1.01)
        assert trade.pnl == pytest.approx(99.0 - 109.0 * 1.01)

    def test_commission_charged_once_per_trade(self, rising_series):
        report = run(rising_series, {0: SignalType.BUY, 9: SignalType.SELL}, commission_per_trade=1.0)
        assert report.trades[0].pnl == pytest.approx(8.0)

    def test_position_size_scales_pnl(self, rising_series):
        report = run(rising_series, {0: SignalType.BUY, 9: SignalType.SELL}, position_size=2.0)
        trade = report.trades[0]

        assert trade.pnl == pytest.approx(18.0)
        assert trade.pnl_percent == pytest.approx(9.0)

    def test_zero_pnl_trade_counts_as_loss(self):
        series = build_series([100.0, 100.0, 100.0])
        report = run(series, {0: SignalType.BUY, 1: SignalType.HOLD})

        assert report.total_trades == 1
        assert report.winning_trades == 0
        assert report.losing_trades == 1
        assert report.profit_factor == 0


class TestDrawdown:
    """Drawdown tracking at trade closes."""

    def test_drawdown_from_peak(self):
        series = build_series([100.0, 110.0, 120.0, 110.0, 100.0])
        # +10 long, -10 short, then a long closed by HOLD for -20
        report = run(series, {0: SignalType.BUY, 1: SignalType.SELL, 2: SignalType.BUY, 4: SignalType.HOLD})

        assert [t.pnl for t in report.trades] == pytest.approx([10.0, -10.0, -20.0])
        assert len(report.drawdown_curve) == 3
        assert report.drawdown_curve[0].drawdown_percent == pytest.approx(0.0)
        assert report.drawdown_curve[1].drawdown_percent == pytest.approx(10 / 1010 * 100)
        assert report.drawdown_curve[2].peak_equity == pytest.approx(1010.0)
        assert report.max_drawdown == pytest.approx(30 / 1010 * 100)

    def test_forced_close_not_in_drawdown(self):
        series = build_series([100.0, 110.0, 120.0, 110.0, 100.0])
        # Same trades, but the last long is force-closed
        report = run(series, {0: SignalType.BUY, 1: SignalType.SELL, 2: SignalType.BUY})

        assert [t.pnl for t in report.trades] == pytest.approx([10.0, -10.0, -20.0])
        assert len(report.drawdown_curve) == 2
        assert report.max_drawdown == pytest.approx(10 / 1010 * 100)

    def test_loss_statistics(self):
        series = build_series([100.0, 110.0, 120.0, 110.0, 100.0])
        report = run(series, {0: SignalType.BUY, 1: SignalType.SELL, 2: SignalType.BUY})

        assert report.winning_trades == 1
        assert report.losing_trades == 2
        assert report.largest_win == pytest.approx(10.0)
        assert report.largest_loss == pytest.approx(-20.0)
        assert report.average_loss == pytest.approx(15.0)
        assert report.profit_factor == pytest.approx(10 / 30)


class TestInvariants:
    """Properties that hold for any series and decision function."""

    @pytest.mark.parametrize("modulus", [2, 3, 5, 11])
    def test_win_loss_partition(self, random_series, modulus):
        def decide(series, index):
            if index % modulus == 0:
                kind = SignalType.BUY if (index // modulus) % 2 == 0 else SignalType.SELL
                return signal_at(series, index, kind)
            return None

        report = SimulationEngine(SimulationConfig(), random_series).run(decide)

        assert report.winning_trades + report.losing_trades == report.total_trades
        assert (report.win_rate == 0) == (report.winning_trades == 0)
        assert len(report.equity_curve) == len(random_series)
        forced_pnl = sum(t.pnl for t in report.trades if t.forced_exit)
        assert report.equity_curve[-1].equity == pytest.approx(report.final_balance - forced_pnl)
        assert report.final_balance == pytest.approx(report.initial_balance + report.total_pnl)

    def test_sharpe_positive_for_profitable_run(self, rising_series):
        report = run(rising_series, {0: SignalType.BUY, 9: SignalType.SELL})
        assert report.sharpe_ratio > 0


class TestSeriesPreparation:
    """Loading, ordering and windowing."""

    def test_sorted_by_timestamp(self, rising_series):
        engine = SimulationEngine(SimulationConfig(), tuple(reversed(rising_series)))
        assert [p.timestamp for p in engine.series] == [p.timestamp for p in rising_series]

    def test_duplicate_timestamps_keep_load_order(self):
        a = PricePoint(timestamp=START, open=1, high=1, low=1, close=1.0)
        b = PricePoint(timestamp=START, open=2, high=2, low=2, close=2.0)
        engine = SimulationEngine(SimulationConfig(), (a, b))
        assert engine.series == (a, b)

    def test_window_filter_inclusive(self, rising_series):
        config = SimulationConfig(
            window_start=rising_series[2].timestamp,
            window_end=rising_series[5].timestamp,
        )
        engine = SimulationEngine(config, rising_series)
        assert [p.close for p in engine.series] == [102.0, 103.0, 104.0, 105.0]

    def test_load_returns_new_engine(self, rising_series):
        engine = SimulationEngine(SimulationConfig())
        loaded = engine.load(rising_series)

        assert loaded is not engine
        assert engine.series == ()
        assert loaded.series == rising_series
        assert loaded.config is engine.config

    def test_non_finite_price_rejected(self):
        bad = PricePoint(timestamp=START, open=1.0, high=1.0, low=1.0, close=float("nan"))
        with pytest.raises(DataValidationError):
            SimulationEngine(SimulationConfig(), (bad,))

    def test_non_integer_timestamp_rejected(self):
        bad = PricePoint(timestamp=1.5, open=1.0, high=1.0, low=1.0, close=1.0)
        with pytest.raises(DataValidationError):
            SimulationEngine(SimulationConfig(), (bad,))


class TestSignals:
    """Signal generation through the decision function."""

    def test_decision_fn_sees_full_series(self, rising_series):
        seen = []

        def decide(series, index):
            seen.append((len(series), index))
            return None

        SimulationEngine(SimulationConfig(), rising_series).generate_signals(decide)
        assert seen == [(10, i) for i in range(10)]

    def test_run_matches_execute(self, rising_series):
        engine = SimulationEngine(SimulationConfig(), rising_series)
        decide = scripted({1: SignalType.BUY, 6: SignalType.SELL})

        assert engine.run(decide) == engine.execute(engine.generate_signals(decide))

    def test_decision_fn_errors_propagate(self, rising_series):
        def decide(series, index):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            SimulationEngine(SimulationConfig(), rising_series).run(decide)


class TestMonthlyReturns:
    """Monthly bucketing of the equity curve."""

    def test_two_months(self):
        series = build_series([100.0, 110.0, 110.0, 121.0], start=START - 2 * DAY, interval=DAY)
        # Dec 30, Dec 31 | Jan 1, Jan 2: +10 long in December, short loses 11 in January
        report = run(series, {0: SignalType.BUY, 1: SignalType.SELL, 3: SignalType.HOLD})

        months = report.monthly_returns
        assert [m.month for m in months] == ["2023-12", "2024-01"]
        assert months[0].return_percent == pytest.approx(1.0)
        assert months[1].return_percent == pytest.approx(-11 / 1010 * 100)
        assert months[1].cumulative_return == pytest.approx(1.0 - 11 / 1010 * 100)

    def test_single_day_round_trip(self, rising_series):
        """One-day curve -> one bucket whose cumulative return equals its return."""
        report = run(rising_series, {0: SignalType.BUY, 9: SignalType.SELL})
        months = calculate_monthly_returns(report.equity_curve)

        assert len(months) == 1
        assert months[0].cumulative_return == months[0].return_percent
        assert months[0].return_percent == pytest.approx(0.9)
