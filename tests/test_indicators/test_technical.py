"""
Tests for technical indicators (SMA, EMA, RSI, MACD, Bollinger, Stochastic).
"""
import math

import numpy as np
import pandas as pd
import pytest

from backtest.indicators.technical import (
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
    calculate_stochastic,
    indicator_frame,
    latest_signal,
)
from backtest.shared.types import PricePoint, SignalType

from conftest import START, build_series


@pytest.fixture
def sample_prices():
    """Close-only pandas Series with a date index."""
    dates = pd.date_range('2020-01-01', periods=100, freq='D')
    rng = np.random.RandomState(42)
    return pd.Series(100 + np.arange(100) * 0.5 + rng.randn(100) * 2, index=dates)


class TestMovingAverages:
    """Test SMA and EMA."""

    def test_sma_values(self):
        points = calculate_sma(build_series([float(i) for i in range(1, 11)]), 3)

        assert len(points) == 8
        assert points[0].value == pytest.approx(2.0)
        assert points[-1].value == pytest.approx(9.0)

    def test_sma_aligned_to_window_end(self):
        series = build_series([1.0, 2.0, 3.0, 4.0])
        points = calculate_sma(series, 2)
        assert points[0].timestamp == series[1].timestamp

    def test_ema_seeded_with_sma(self):
        points = calculate_ema(build_series([1.0, 2.0, 3.0, 4.0, 5.0]), 3)
        assert [p.value for p in points] == pytest.approx([2.0, 3.0, 4.0])

    def test_pandas_series_input(self, sample_prices):
        points = calculate_sma(sample_prices, 5)

        assert len(points) == 96
        assert points[0].timestamp == sample_prices.index[4]
        assert points[0].value == pytest.approx(sample_prices.iloc[:5].mean())

    def test_ema_does_not_mutate_input(self, sample_prices):
        before = sample_prices.copy()
        calculate_ema(sample_prices, 10)
        pd.testing.assert_series_equal(sample_prices, before)


class TestRSI:
    """Test RSI calculation."""

    def test_rsi_range(self, sample_prices):
        """RSI should be between 0 and 100."""
        values = [p.value for p in calculate_rsi(sample_prices, 14)]
        assert values
        assert all(0 <= v <= 100 for v in values)

    def test_rising_series_is_100(self):
        """Strictly increasing prices have no losses, so RSI pins at 100."""
        points = calculate_rsi(build_series([100.0 + i for i in range(40)]), 14)

        assert len(points) == 40 - 14
        assert all(p.value == pytest.approx(100.0) for p in points)
        assert all(p.signal == SignalType.SELL for p in points)

    def test_falling_series_is_low(self):
        points = calculate_rsi(build_series([100.0 - i for i in range(40)]), 14)
        assert all(p.value == pytest.approx(0.0) for p in points)
        assert points[-1].signal == SignalType.BUY

    def test_wilder_smoothing(self):
        """Second value uses avg = (avg * (period - 1) + new) / period."""
        closes = [10.0, 11.0, 10.0, 12.0, 11.0]
        points = calculate_rsi(build_series(closes), 2)

        # changes: +1, -1, +2, -1
        gain, loss = 0.5, 0.5
        assert points[0].value == pytest.approx(50.0)
        gain, loss = (gain + 2) / 2, (loss + 0) / 2
        assert points[1].value == pytest.approx(100 - 100 / (1 + gain / loss))
        gain, loss = (gain + 0) / 2, (loss + 1) / 2
        assert points[2].value == pytest.approx(100 - 100 / (1 + gain / loss))

    def test_insufficient_data(self):
        assert calculate_rsi(build_series([1.0] * 14), 14) == []

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            calculate_rsi(build_series([1.0] * 20), 0)


class TestMACD:
    """Test MACD calculation."""

    def test_length_and_alignment(self, sample_prices):
        points = calculate_macd(sample_prices, 12, 26, 9)

        assert len(points) == 100 - 25 - 8
        assert points[0].timestamp == sample_prices.index[25 + 8]

    def test_histogram_is_difference(self, sample_prices):
        for p in calculate_macd(sample_prices):
            assert p.histogram == pytest.approx(p.macd_line - p.signal_line)
            assert p.value == p.histogram

    def test_macd_line_matches_ema_difference(self, sample_prices):
        """MACD line at a bar = EMA(fast) - EMA(slow) at that same bar."""
        fast = {p.timestamp: p.value for p in calculate_ema(sample_prices, 12)}
        slow = {p.timestamp: p.value for p in calculate_ema(sample_prices, 26)}
        point = calculate_macd(sample_prices)[0]

        assert point.macd_line == pytest.approx(fast[point.timestamp] - slow[point.timestamp])

    def test_flat_series_holds(self):
        points = calculate_macd(build_series([50.0] * 60))
        assert all(p.signal == SignalType.HOLD for p in points)

    def test_insufficient_data(self):
        assert calculate_macd(build_series([1.0] * 20)) == []


class TestBollingerBands:
    """Test Bollinger Bands."""

    def test_population_std(self):
        points = calculate_bollinger_bands(build_series([1.0, 2.0, 3.0, 4.0, 5.0]), 5, 2.0)

        assert len(points) == 1
        band = points[0]
        assert band.middle == pytest.approx(3.0)
        assert band.upper == pytest.approx(3.0 + 2 * math.sqrt(2.0))
        assert band.lower == pytest.approx(3.0 - 2 * math.sqrt(2.0))
        assert band.signal == SignalType.HOLD

    def test_breakout_signals(self):
        up = calculate_bollinger_bands(build_series([10.0] * 19 + [20.0]), 20)
        down = calculate_bollinger_bands(build_series([10.0] * 19 + [0.0]), 20)

        assert up[-1].signal == SignalType.SELL
        assert down[-1].signal == SignalType.BUY

    def test_bands_symmetric(self, sample_prices):
        for band in calculate_bollinger_bands(sample_prices):
            assert band.upper - band.middle == pytest.approx(band.middle - band.lower)


class TestStochastic:
    """Test Stochastic oscillator."""

    def test_flat_range_is_50(self):
        points = calculate_stochastic(build_series([10.0] * 20), 14, 3)

        assert len(points) == 20 - 14 - 3 + 2
        assert all(p.value == pytest.approx(50.0) for p in points)
        assert all(p.signal == SignalType.HOLD for p in points)

    def test_close_at_high_is_overbought(self):
        points = calculate_stochastic(build_series([float(i) for i in range(30)]), 14, 3)
        assert points[-1].value == pytest.approx(100.0)
        assert points[-1].signal == SignalType.SELL

    def test_uses_high_low(self):
        series = tuple(
            PricePoint(timestamp=START + i, open=10.0, high=12.0, low=8.0, close=10.0)
            for i in range(16)
        )
        points = calculate_stochastic(series, 14, 3)
        assert all(p.value == pytest.approx(50.0) for p in points)
        assert len(points) == 1

    def test_range_bounds(self, sample_prices):
        assert all(0 <= p.value <= 100 for p in calculate_stochastic(sample_prices))


class TestHelpers:
    """Test latest_signal and indicator_frame."""

    def test_latest_signal_empty_is_hold(self):
        assert latest_signal([]) == SignalType.HOLD

    def test_latest_signal_uses_last_point(self):
        points = calculate_rsi(build_series([100.0 + i for i in range(20)]), 14)
        assert latest_signal(points) == SignalType.SELL

    def test_indicator_frame_shape(self, sample_prices):
        df = indicator_frame(sample_prices)

        assert len(df) == len(sample_prices)
        assert {'rsi', 'macd_histogram', 'bb_upper', 'stochastic_d'} <= set(df.columns)
        assert df['rsi'].iloc[:14].isna().all()
        assert df['rsi'].iloc[14:].notna().all()
        assert df['bb_middle'].iloc[-1] == pytest.approx(sample_prices.iloc[-20:].mean())
