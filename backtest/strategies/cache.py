"""
Per-series indicator cache for decision functions.

Decision functions are called once per bar with the full series, so an
indicator-based strategy would otherwise recompute the indicator on every
call. Results are cached per (series, indicator, parameters) and looked up
by timestamp.
"""
import threading
from collections import OrderedDict
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from ..indicators.technical import IndicatorPoint
from ..shared.types import PricePoint

MAX_ENTRIES = 64


class IndicatorCache:
    """
    Small LRU cache of indicator outputs keyed by series identity.

    Entries hold a reference to their series, so an id() cannot be reused
    by a different series while its entry is alive. Safe to share between
    threads.
    """

    def __init__(self, max_entries: int = MAX_ENTRIES):
        self.max_entries = max_entries
        self._entries: "OrderedDict[Tuple, Tuple[Sequence[PricePoint], Dict[int, IndicatorPoint]]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(
        self,
        series: Sequence[PricePoint],
        key: Hashable,
        compute: Callable[[Sequence[PricePoint]], List[IndicatorPoint]],
    ) -> Dict[int, IndicatorPoint]:
        """Return {timestamp: point} for compute(series), computing at most once per series and key."""
        cache_key = (id(series), key)
        with self._lock:
            entry = self._entries.get(cache_key)
            if entry is not None and entry[0] is series:
                self._entries.move_to_end(cache_key)
                return entry[1]

        # Computed outside the lock; concurrent misses may both compute the same value
        values = {point.timestamp: point for point in compute(series)}

        with self._lock:
            self._entries[cache_key] = (series, values)
            self._entries.move_to_end(cache_key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return values

    def value_at(
        self,
        series: Sequence[PricePoint],
        key: Hashable,
        compute: Callable[[Sequence[PricePoint]], List[IndicatorPoint]],
        timestamp: int,
    ) -> Optional[float]:
        point = self.get(series, key, compute).get(timestamp)
        return point.value if point is not None else None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# Shared by the built-in strategies
default_cache = IndicatorCache()
