"""
Base indicator interface.

All indicators should follow this pattern:
1. Calculate values from price data
2. Provide values that can be used for signal generation
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .technical import IndicatorPoint, PriceInput


class Indicator(ABC):
    """
    Base class for all indicators.

    Indicators calculate values from price data that decision functions use
    to emit signals. The engine itself never calls them.
    """

    @abstractmethod
    def calculate(self, series: PriceInput) -> List[IndicatorPoint]:
        """
        Calculate indicator values from price data.

        Args:
            series: Sequence of PricePoint or a pandas Series of closes

        Returns:
            Points from the first full window onward (shorter than the input)
        """
        pass

    def get_value_at(self, series: PriceInput, timestamp) -> Optional[float]:
        """
        Get indicator value at a specific timestamp.

        Args:
            series: Price data (must include data before timestamp)
            timestamp: Timestamp to get value for

        Returns:
            Indicator value at timestamp, or None if insufficient data
        """
        point = self.get_point_at(series, timestamp)
        return None if point is None else point.value

    def get_point_at(self, series: PriceInput, timestamp) -> Optional[IndicatorPoint]:
        """Full indicator point at timestamp (last one when timestamps repeat), or None."""
        for point in reversed(self.calculate(series)):
            if point.timestamp == timestamp:
                return point
        return None
