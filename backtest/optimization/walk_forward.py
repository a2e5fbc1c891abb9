"""
Walk-forward partitioner: rolling in-sample fit, out-of-sample test.

For each window the optimize callback sees only the in-sample slice; the
chosen parameters are then simulated on both slices with fresh engines.
"""
from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from ..config.config import SimulationConfig
from ..config.parameters import Parameters
from ..evaluation.engine import SimulationEngine
from ..evaluation.types import Report
from ..shared.types import ParameterizedDecisionFunction, PricePoint
from .grid_search import FitnessFunction, GridOptimizer

logger = logging.getLogger(__name__)

OptimizeCallback = Callable[[Sequence[PricePoint]], Parameters]


@dataclass(frozen=True)
class WalkForwardPartition:
    """One in-sample / out-of-sample window. Bounds are inclusive timestamps."""
    in_sample_start: int
    in_sample_end: int
    out_of_sample_start: int
    out_of_sample_end: int
    parameters: Parameters
    in_sample_report: Report
    out_of_sample_report: Report


@dataclass(frozen=True)
class WalkForwardResult:
    """All partitions from a walk-forward run plus aggregate statistics."""
    partitions: Tuple[WalkForwardPartition, ...] = ()

    @property
    def total_out_of_sample_pnl(self) -> float:
        return sum(p.out_of_sample_report.total_pnl for p in self.partitions)

    @property
    def average_in_sample_return(self) -> float:
        if not self.partitions:
            return 0.0
        return sum(p.in_sample_report.total_return for p in self.partitions) / len(self.partitions)

    @property
    def average_out_of_sample_return(self) -> float:
        if not self.partitions:
            return 0.0
        return sum(p.out_of_sample_report.total_return for p in self.partitions) / len(self.partitions)

    @property
    def efficiency(self) -> float:
        """Average out-of-sample return / average in-sample return (0 when in-sample is 0)."""
        in_sample = self.average_in_sample_return
        if in_sample == 0:
            return 0.0
        return self.average_out_of_sample_return / in_sample


def partition_bounds(total: int, in_sample_size: int, out_of_sample_size: int, step_size: int) -> List[int]:
    """Start indices of every complete window. Partial trailing windows are dropped."""
    for name, value in (
        ("in_sample_size", in_sample_size),
        ("out_of_sample_size", out_of_sample_size),
        ("step_size", step_size),
    ):
        if value <= 0:
            raise ValueError(f"{name} must be > 0, got {value}")
    starts = []
    start = 0
    while start + in_sample_size + out_of_sample_size <= total:
        starts.append(start)
        start += step_size
    return starts


class WalkForwardPartitioner:
    """Rolling-window validation of an optimize-then-test loop."""

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config if config is not None else SimulationConfig()

    def _simulate(
        self,
        decision_fn: ParameterizedDecisionFunction,
        parameters: Parameters,
        window: Sequence[PricePoint],
    ) -> Report:
        # Each slice gets its own config copy and engine; nothing is shared between windows
        config = dataclasses.replace(
            self.config,
            window_start=window[0].timestamp,
            window_end=window[-1].timestamp,
        )
        engine = SimulationEngine(config, window)
        return engine.run(lambda series, index: decision_fn(series, index, parameters))

    def run(
        self,
        decision_fn: ParameterizedDecisionFunction,
        optimize: OptimizeCallback,
        series: Sequence[PricePoint],
        in_sample_size: int,
        out_of_sample_size: int,
        step_size: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> WalkForwardResult:
        """
        Walk windows forward through series.

        Args:
            decision_fn: (series, index, parameters) -> Signal | None
            optimize: in-sample series -> parameters
            series: Full price series (filtered to the config window first)
            in_sample_size: Points per in-sample slice
            out_of_sample_size: Points per out-of-sample slice
            step_size: Points to advance between windows
            cancel_event: When set, no further windows are started

        Returns:
            WalkForwardResult with one partition per complete window.
        """
        prepared = SimulationEngine(self.config, series).series
        starts = partition_bounds(len(prepared), in_sample_size, out_of_sample_size, step_size)
        logger.info(
            f"Walk-forward: {len(starts)} windows over {len(prepared)} points "
            f"(in={in_sample_size}, out={out_of_sample_size}, step={step_size})"
        )

        partitions = []
        for number, start in enumerate(starts, 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Walk-forward: cancelled after {len(partitions)}/{len(starts)} windows")
                break
            split = start + in_sample_size
            in_sample = prepared[start:split]
            out_of_sample = prepared[split:split + out_of_sample_size]

            parameters = dict(optimize(in_sample))
            in_report = self._simulate(decision_fn, parameters, in_sample)
            out_report = self._simulate(decision_fn, parameters, out_of_sample)
            partitions.append(WalkForwardPartition(
                in_sample_start=in_sample[0].timestamp,
                in_sample_end=in_sample[-1].timestamp,
                out_of_sample_start=out_of_sample[0].timestamp,
                out_of_sample_end=out_of_sample[-1].timestamp,
                parameters=parameters,
                in_sample_report=in_report,
                out_of_sample_report=out_report,
            ))
            logger.debug(
                f"Window {number}/{len(starts)}: parameters={parameters}, "
                f"in-sample {in_report.total_return:.2f}%, out-of-sample {out_report.total_return:.2f}%"
            )

        return WalkForwardResult(partitions=tuple(partitions))


def grid_optimize_callback(
    config: SimulationConfig,
    decision_fn: ParameterizedDecisionFunction,
    axes,
    fitness_fn: Optional[FitnessFunction] = None,
    max_workers: int = 1,
) -> OptimizeCallback:
    """Build an optimize callback that grid-searches the in-sample slice and returns the best parameters."""
    def optimize(in_sample: Sequence[PricePoint]) -> Parameters:
        engine = SimulationEngine(config, in_sample)
        results = GridOptimizer(engine).optimize(
            decision_fn, axes, fitness_fn=fitness_fn, max_workers=max_workers,
        )
        return dict(results[0].parameters) if results else {}

    return optimize
