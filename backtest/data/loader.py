"""
Price data loading.

Loads OHLCV bars from CSV files or pandas DataFrames into an ordered tuple of
PricePoint. Timestamps are converted to epoch milliseconds (UTC).
The engine never performs I/O itself: callers load here and pass the series in.
"""
import math
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..shared.types import PricePoint

REQUIRED_COLUMNS = ("open", "high", "low", "close")
_EPOCH = pd.Timestamp(0, tz="UTC")


class DataValidationError(ValueError):
    """Raised when price data is malformed (missing columns, non-finite prices, bad timestamps)."""
    pass


def validate_price_point(point: PricePoint) -> None:
    """Raise DataValidationError if a price point cannot be simulated."""
    if isinstance(point.timestamp, bool) or not isinstance(point.timestamp, (int, np.integer)):
        raise DataValidationError(f"Timestamp must be an integer (epoch ms), got {point.timestamp!r}")
    for field_name in REQUIRED_COLUMNS:
        value = getattr(point, field_name)
        if isinstance(value, bool) or not isinstance(value, (int, float, np.number)) or not math.isfinite(value):
            raise DataValidationError(
                f"Price point at {point.timestamp}: {field_name} must be a finite number, got {value!r}"
            )


def _to_epoch_millis(index: pd.Index) -> np.ndarray:
    """Convert a datetime-like or numeric index to int64 epoch milliseconds."""
    if pd.api.types.is_numeric_dtype(index):
        return np.asarray(index, dtype="int64")
    dt = pd.to_datetime(index, utc=True)
    return np.asarray((dt - _EPOCH) // pd.Timedelta(milliseconds=1), dtype="int64")


def series_from_dataframe(df: pd.DataFrame, timestamp_column: Optional[str] = None) -> Tuple[PricePoint, ...]:
    """
    Convert an OHLCV DataFrame into PricePoints.

    Column names are matched case-insensitively (Open/open, Close/close, ...).
    Timestamps come from timestamp_column if given, otherwise from the index.

    Args:
        df: DataFrame with open/high/low/close (volume optional)
        timestamp_column: Optional column holding timestamps (datetime or epoch ms)

    Returns:
        Tuple of PricePoint sorted by timestamp (stable for duplicates)
    """
    if df.empty:
        return ()

    columns = {str(c).lower(): c for c in df.columns}
    missing = [c for c in REQUIRED_COLUMNS if c not in columns]
    if missing:
        raise DataValidationError(f"Missing required columns {missing}. Available: {list(df.columns)}")

    if timestamp_column is not None:
        if timestamp_column not in df.columns:
            raise DataValidationError(f"Timestamp column '{timestamp_column}' not found. Available: {list(df.columns)}")
        timestamps = _to_epoch_millis(pd.Index(df[timestamp_column]))
    else:
        timestamps = _to_epoch_millis(df.index)

    frame = pd.DataFrame({
        "timestamp": timestamps,
        "open": pd.to_numeric(df[columns["open"]], errors="coerce").to_numpy(dtype=float),
        "high": pd.to_numeric(df[columns["high"]], errors="coerce").to_numpy(dtype=float),
        "low": pd.to_numeric(df[columns["low"]], errors="coerce").to_numpy(dtype=float),
        "close": pd.to_numeric(df[columns["close"]], errors="coerce").to_numpy(dtype=float),
    })
    if "volume" in columns:
        frame["volume"] = pd.to_numeric(df[columns["volume"]], errors="coerce").to_numpy()

    bad = ~np.isfinite(frame[list(REQUIRED_COLUMNS)].to_numpy()).all(axis=1)
    if bad.any():
        first_bad = int(frame.loc[bad, "timestamp"].iloc[0])
        raise DataValidationError(f"{int(bad.sum())} rows have non-numeric or missing prices (first at {first_bad})")

    frame = frame.sort_values("timestamp", kind="mergesort")

    points = []
    for row in frame.itertuples(index=False):
        volume = getattr(row, "volume", None)
        points.append(PricePoint(
            timestamp=int(row.timestamp),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=None if volume is None or pd.isna(volume) else int(volume),
        ))
    return tuple(points)


def series_to_dataframe(series: Sequence[PricePoint]) -> pd.DataFrame:
    """Inverse of series_from_dataframe: PricePoints -> DataFrame indexed by UTC datetime."""
    df = pd.DataFrame(
        [(p.timestamp, p.open, p.high, p.low, p.close, p.volume) for p in series],
        columns=["timestamp", "open", "high", "low", "close", "volume"],
    )
    df.index = pd.to_datetime(df["timestamp"], unit="ms", utc=True)
    df.index.name = "date"
    return df


def close_prices(series: Iterable[PricePoint]) -> pd.Series:
    """Close prices as a pandas Series indexed by epoch-ms timestamp."""
    points = list(series)
    return pd.Series(
        [p.close for p in points],
        index=pd.Index([p.timestamp for p in points], dtype="int64", name="timestamp"),
        dtype=float,
    )


class DataLoader:
    """
    Loads price bars from a CSV file.

    The first column (or the named timestamp column) holds dates or epoch-ms
    timestamps; OHLC columns are required, volume is optional.
    """

    def __init__(self, data_path: Union[str, Path]):
        """
        Initialize the data loader.

        Args:
            data_path: Path to the CSV file containing the data
        """
        self.data_path = Path(data_path)
        if not self.data_path.exists():
            raise FileNotFoundError(f"Data file not found: {self.data_path}")

    def load(
        self,
        timestamp_column: Optional[str] = None,
        start: Optional[Union[str, int, pd.Timestamp]] = None,
        end: Optional[Union[str, int, pd.Timestamp]] = None,
    ) -> Tuple[PricePoint, ...]:
        """
        Load the CSV into PricePoints with optional inclusive date filtering.

        Args:
            timestamp_column: Column with timestamps. If None, the first column is used.
            start: Start date/epoch-ms for filtering (inclusive). If None, no start filter.
            end: End date/epoch-ms for filtering (inclusive). If None, no end filter.
        """
        if timestamp_column is None:
            df = pd.read_csv(self.data_path, index_col=0)
        else:
            df = pd.read_csv(self.data_path)
        series = series_from_dataframe(df, timestamp_column=timestamp_column)

        start_ms = _bound_to_millis(start)
        end_ms = _bound_to_millis(end)
        if start_ms is not None:
            series = tuple(p for p in series if p.timestamp >= start_ms)
        if end_ms is not None:
            series = tuple(p for p in series if p.timestamp <= end_ms)
        return series


def _bound_to_millis(value: Optional[Union[str, int, pd.Timestamp]]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return int(value)
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return int((ts - _EPOCH) // pd.Timedelta(milliseconds=1))
