"""
Data loading module.

Provides CSV / DataFrame loading into PricePoint series and a synthetic
sample generator.
"""
from .loader import (
    DataLoader,
    DataValidationError,
    series_from_dataframe,
    series_to_dataframe,
    close_prices,
    validate_price_point,
)
from .sample import generate_sample_series

__all__ = [
    'DataLoader',
    'DataValidationError',
    'series_from_dataframe',
    'series_to_dataframe',
    'close_prices',
    'validate_price_point',
    'generate_sample_series',
]
