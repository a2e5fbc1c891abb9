"""
Monte Carlo sampler: random parameter draws and distribution analysis.

Parameter vectors are drawn up front from one numpy Generator, so a seeded
run gives the same reports regardless of max_workers.
"""
import logging
import math
import threading
from dataclasses import dataclass, field
from functools import partial
from typing import Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from ..config.parameters import ParameterRange, Parameters, build_ranges
from ..evaluation.engine import SimulationEngine
from ..evaluation.types import Report
from ..shared.defaults import MONTE_CARLO_PERCENTILES
from ..shared.types import ParameterizedDecisionFunction
from .runner import run_sweep

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonteCarloAnalysis:
    """Distribution of total_return (percent) across Monte Carlo runs."""
    iterations: int
    expected_return: float
    standard_deviation: float  # Population
    min_return: float
    max_return: float
    probability_of_profit: float  # Percent of runs with total_return > 0
    expected_max_drawdown: float
    percentiles: Dict[str, float] = field(default_factory=dict)  # "5th" .. "95th"


def draw_parameters(ranges: Mapping[str, ParameterRange], rng: np.random.Generator) -> Parameters:
    """Draw one parameter vector. Stepped ranges land on min + k * step."""
    parameters: Parameters = {}
    for name, value_range in ranges.items():
        if value_range.step is not None:
            k = int(rng.integers(0, value_range.step_count))  # high is exclusive
            # Float steps can overshoot max by rounding on the last lattice point
            parameters[name] = min(value_range.minimum + k * value_range.step, value_range.maximum)
        else:
            parameters[name] = float(rng.uniform(value_range.minimum, value_range.maximum))
    return parameters


def analyze_results(reports: Sequence[Report]) -> MonteCarloAnalysis:
    """
    Summarize a list of reports.

    Percentiles use nearest rank on the sorted returns: index floor(n * p),
    clamped to the last element. An empty list gives an all-zero analysis.
    """
    n = len(reports)
    if n == 0:
        return MonteCarloAnalysis(
            iterations=0,
            expected_return=0.0,
            standard_deviation=0.0,
            min_return=0.0,
            max_return=0.0,
            probability_of_profit=0.0,
            expected_max_drawdown=0.0,
            percentiles={label: 0.0 for label in MONTE_CARLO_PERCENTILES},
        )

    returns = np.array([r.total_return for r in reports], dtype=float)
    ordered = np.sort(returns)
    percentiles = {
        label: float(ordered[min(n - 1, int(math.floor(n * p)))])
        for label, p in MONTE_CARLO_PERCENTILES.items()
    }
    return MonteCarloAnalysis(
        iterations=n,
        expected_return=float(returns.mean()),
        standard_deviation=float(returns.std()),
        min_return=float(ordered[0]),
        max_return=float(ordered[-1]),
        probability_of_profit=float((returns > 0).sum()) / n * 100,
        expected_max_drawdown=float(np.mean([r.max_drawdown for r in reports])),
        percentiles=percentiles,
    )


class MonteCarloSampler:
    """Random search over continuous or stepped parameter ranges."""

    def __init__(self, engine: SimulationEngine):
        self.engine = engine

    def _evaluate(self, decision_fn: ParameterizedDecisionFunction, parameters: Parameters) -> Report:
        return self.engine.run(lambda series, index: decision_fn(series, index, parameters))

    def run(
        self,
        decision_fn: ParameterizedDecisionFunction,
        ranges: Mapping[str, Union[ParameterRange, Mapping[str, float]]],
        iterations: int,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        cancel_event: Optional[threading.Event] = None,
        max_workers: int = 1,
    ) -> List[Report]:
        """
        Run one simulation per random parameter draw.

        Args:
            decision_fn: (series, index, parameters) -> Signal | None
            ranges: {name: ParameterRange} or {name: {min, max, step?}}
            iterations: Number of draws (>= 0)
            seed: Seed for np.random.default_rng (ignored when rng is given)
            rng: Generator to draw from
            cancel_event: When set, remaining draws are skipped
            max_workers: Thread pool size; 1 = sequential

        Returns:
            Reports in draw order. The drawn parameters are not retained.
        """
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        ranges = build_ranges(ranges)
        if rng is None:
            rng = np.random.default_rng(seed)

        draws = [draw_parameters(ranges, rng) for _ in range(iterations)]
        logger.info(f"Monte Carlo: {iterations} iterations over {len(ranges)} parameters")

        return run_sweep(
            draws,
            partial(self._evaluate, decision_fn),
            max_workers=max_workers,
            cancel_event=cancel_event,
            label="monte carlo",
        )
