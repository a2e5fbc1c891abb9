"""
Grid optimizer: exhaustive search over a discrete parameter space.

Every combination of axis values is bound into the decision function,
simulated once and scored by a fitness function. Results come back sorted
best first.
"""
import logging
import math
import threading
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from ..config.parameters import ParameterAxis, Parameters, build_axes
from ..evaluation.engine import SimulationEngine
from ..evaluation.types import Report
from ..shared.defaults import DEFAULT_FITNESS
from ..shared.types import ParameterizedDecisionFunction
from .runner import run_sweep

logger = logging.getLogger(__name__)

FitnessFunction = Callable[[Report], float]

fitness_functions: Dict[str, FitnessFunction] = {
    "sharpe": lambda report: report.sharpe_ratio,
    "win_rate": lambda report: report.win_rate,
    "profit_factor": lambda report: report.profit_factor,
    "total_return": lambda report: report.total_return,
}


def get_fitness_function(name: str) -> FitnessFunction:
    """Look up a fitness function by name. Raises ValueError for unknown names."""
    try:
        return fitness_functions[name]
    except KeyError:
        raise ValueError(
            f"Unknown fitness function '{name}'. Available: {', '.join(sorted(fitness_functions))}"
        ) from None


@dataclass(frozen=True)
class OptimizationResult:
    """One evaluated parameter combination."""
    parameters: Parameters
    score: float
    report: Report


def generate_parameter_combinations(axes: Sequence[ParameterAxis]) -> List[Parameters]:
    """
    Enumerate the full Cartesian product of axis values.

    The first axis varies slowest. No axes yields a single empty combination.
    Duplicate values on an axis are not collapsed.
    """
    if not axes:
        return [{}]
    head, rest = axes[0], axes[1:]
    tails = generate_parameter_combinations(rest)
    return [{head.name: value, **tail} for value in head.values for tail in tails]


def _sort_key(result: OptimizationResult) -> float:
    # NaN never compares, so map it below every real score
    return -math.inf if math.isnan(result.score) else result.score


class GridOptimizer:
    """Exhaustive grid search over a SimulationEngine."""

    def __init__(self, engine: SimulationEngine):
        self.engine = engine

    def _evaluate(
        self,
        decision_fn: ParameterizedDecisionFunction,
        fitness_fn: FitnessFunction,
        parameters: Parameters,
    ) -> OptimizationResult:
        bound = partial(_call_with_parameters, decision_fn, parameters)
        report = self.engine.run(bound)
        return OptimizationResult(parameters=parameters, score=float(fitness_fn(report)), report=report)

    def optimize(
        self,
        decision_fn: ParameterizedDecisionFunction,
        axes: Union[Mapping[str, Sequence[float]], Sequence[ParameterAxis]],
        fitness_fn: Optional[FitnessFunction] = None,
        cancel_event: Optional[threading.Event] = None,
        max_workers: int = 1,
    ) -> List[OptimizationResult]:
        """
        Evaluate every parameter combination and rank them.

        Args:
            decision_fn: (series, index, parameters) -> Signal | None
            axes: ParameterAxis list, or {name: [values]}
            fitness_fn: Report -> score (default: Sharpe ratio)
            cancel_event: When set, remaining combinations are skipped
            max_workers: Thread pool size; 1 = sequential

        Returns:
            Results sorted by score descending. Ties keep enumeration order;
            NaN scores sort last.
        """
        axes = build_axes(axes)
        if fitness_fn is None:
            fitness_fn = fitness_functions[DEFAULT_FITNESS]

        combinations = generate_parameter_combinations(axes)
        logger.info(
            f"Grid search: {len(combinations)} combinations over "
            f"{len(axes)} axes ({', '.join(a.name for a in axes) or 'none'})"
        )

        results = run_sweep(
            combinations,
            partial(self._evaluate, decision_fn, fitness_fn),
            max_workers=max_workers,
            cancel_event=cancel_event,
            label="grid search",
        )
        # sorted() is stable, so equal scores keep enumeration order
        return sorted(results, key=_sort_key, reverse=True)


def _call_with_parameters(decision_fn, parameters, series, index):
    return decision_fn(series, index, parameters)
