"""
Tests for the grid optimizer.
"""
import math
import threading

import pytest

from backtest.config.config import SimulationConfig
from backtest.config.parameters import ParameterAxis
from backtest.evaluation.engine import SimulationEngine
from backtest.optimization.grid_search import (
    GridOptimizer,
    fitness_functions,
    generate_parameter_combinations,
    get_fitness_function,
)
from backtest.shared.types import SignalType

from conftest import build_series, signal_at


@pytest.fixture
def engine():
    return SimulationEngine(SimulationConfig(), build_series([100.0 + i for i in range(30)]))


def entry_exit(series, index, parameters):
    """BUY at index `a`, close with HOLD at index `b`: later exits score higher on a rising series."""
    if index == int(parameters.get("a", 0)):
        return signal_at(series, index, SignalType.BUY)
    if index == int(parameters.get("b", len(series) - 1)):
        return signal_at(series, index, SignalType.HOLD)
    return None


class TestCombinations:
    """Cartesian product enumeration."""

    def test_two_by_two(self):
        axes = [ParameterAxis("a", [1, 2]), ParameterAxis("b", [10, 20])]
        combos = generate_parameter_combinations(axes)

        assert combos == [
            {"a": 1, "b": 10},
            {"a": 1, "b": 20},
            {"a": 2, "b": 10},
            {"a": 2, "b": 20},
        ]

    def test_empty_axes_single_combination(self):
        assert generate_parameter_combinations([]) == [{}]

    def test_product_size(self):
        axes = [ParameterAxis("a", [1, 2, 3]), ParameterAxis("b", [1, 2]), ParameterAxis("c", [5, 6, 7, 8])]
        combos = generate_parameter_combinations(axes)

        assert len(combos) == 24
        assert len({tuple(sorted(c.items())) for c in combos}) == 24

    def test_duplicate_values_not_collapsed(self):
        assert len(generate_parameter_combinations([ParameterAxis("a", [1, 1])])) == 2


class TestOptimize:
    """GridOptimizer.optimize ranking and fitness."""

    def test_four_candidates_sorted(self, engine):
        results = GridOptimizer(engine).optimize(entry_exit, {"a": [1, 2], "b": [10, 20]})

        assert len(results) == 4
        assert len({tuple(sorted(r.parameters.items())) for r in results}) == 4
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_default_fitness_is_sharpe(self, engine):
        results = GridOptimizer(engine).optimize(entry_exit, {"b": [5, 25]})
        for r in results:
            assert r.score == r.report.sharpe_ratio

    def test_custom_fitness(self, engine):
        results = GridOptimizer(engine).optimize(
            entry_exit, {"a": [0], "b": [5, 10, 25]}, fitness_fn=fitness_functions["total_return"],
        )
        # Longer hold on a rising series earns more
        assert [r.parameters["b"] for r in results] == [25, 10, 5]
        assert results[0].report.total_pnl == pytest.approx(25.0)

    def test_ties_keep_enumeration_order(self, engine):
        results = GridOptimizer(engine).optimize(
            lambda series, index, parameters: None, {"x": [3, 1, 2]}, fitness_fn=lambda r: 0.0,
        )
        assert [r.parameters["x"] for r in results] == [3, 1, 2]

    def test_nan_scores_rank_last(self, engine):
        def fitness(report):
            return math.nan if report.total_pnl > 20 else report.total_pnl

        results = GridOptimizer(engine).optimize(entry_exit, {"a": [0], "b": [5, 25, 10]}, fitness_fn=fitness)

        assert [r.parameters["b"] for r in results] == [10, 5, 25]
        assert math.isnan(results[-1].score)

    def test_empty_axes_single_candidate(self, engine):
        results = GridOptimizer(engine).optimize(entry_exit, [])
        assert len(results) == 1
        assert results[0].parameters == {}

    def test_parameters_reach_decision_function(self, engine):
        seen = set()

        def decide(series, index, parameters):
            seen.add(parameters["p"])
            return None

        GridOptimizer(engine).optimize(decide, {"p": [7, 8, 9]})
        assert seen == {7, 8, 9}

    def test_threaded_matches_sequential(self, engine):
        axes = {"a": [0, 1, 2, 3], "b": [10, 15, 20, 29]}
        sequential = GridOptimizer(engine).optimize(entry_exit, axes, fitness_fn=fitness_functions["total_return"])
        threaded = GridOptimizer(engine).optimize(
            entry_exit, axes, fitness_fn=fitness_functions["total_return"], max_workers=4,
        )
        assert [r.parameters for r in threaded] == [r.parameters for r in sequential]
        assert [r.score for r in threaded] == [r.score for r in sequential]

    def test_cancelled_sweep_returns_partial_results(self, engine):
        cancel = threading.Event()
        calls = []

        def fitness(report):
            calls.append(report)
            if len(calls) == 2:
                cancel.set()
            return report.total_return

        results = GridOptimizer(engine).optimize(
            entry_exit, {"b": [5, 10, 15, 20]}, fitness_fn=fitness, cancel_event=cancel,
        )
        assert len(results) == 2
        assert all(r.report.total_trades == 1 for r in results)

    def test_decision_errors_propagate(self, engine):
        def decide(series, index, parameters):
            raise KeyError("missing")

        with pytest.raises(KeyError):
            GridOptimizer(engine).optimize(decide, {"a": [1]})


class TestFitnessRegistry:
    """Named fitness functions."""

    def test_names(self):
        assert set(fitness_functions) == {"sharpe", "win_rate", "profit_factor", "total_return"}

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown fitness"):
            get_fitness_function("alpha")
