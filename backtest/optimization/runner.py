"""
Sweep execution shared by the grid optimizer and the Monte Carlo sampler.

Runs one evaluation per task, sequentially or on a ThreadPoolExecutor, and
returns results in task order. Threads rather than processes: decision
functions are usually closures, which cannot be pickled.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

_CANCELLED = object()


def run_sweep(
    tasks: Sequence[T],
    evaluate: Callable[[T], R],
    max_workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
    label: str = "sweep",
) -> List[R]:
    """
    Evaluate every task and return results in task order.

    cancel_event is checked before each evaluation starts. Tasks that had not
    started when it was set are skipped; finished results are kept in task
    order.
    Exceptions from evaluate propagate.
    """
    def guarded(task: T):
        if cancel_event is not None and cancel_event.is_set():
            return _CANCELLED
        return evaluate(task)

    workers = max(1, max_workers)
    results: List[R] = []

    if workers == 1:
        for i, task in enumerate(tasks):
            outcome = guarded(task)
            if outcome is _CANCELLED:
                break
            logger.debug(f"{label}: finished {i + 1}/{len(tasks)}")
            results.append(outcome)
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(guarded, task) for task in tasks]
            # Collect in submission order, not completion order
            for future in futures:
                outcome = future.result()
                if outcome is not _CANCELLED:
                    results.append(outcome)

    if len(results) < len(tasks):
        logger.info(f"{label}: cancelled after {len(results)}/{len(tasks)} evaluations")
    return results
