"""Loading and slicing daily price series."""

from __future__ import annotations

import logging
import math
import numbers
import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .types import SeriesPoint

logger = logging.getLogger(__name__)

MIN_SERIES_LENGTH = 10

_DATE_CANDIDATES = ("date", "timestamp", "time", "datetime", "start", "end")
_PRICE_CANDIDATES = ("close", "adj close", "price", "close_usd")
_NUMERIC_RE = re.compile(r"^\s*[+-]?\d+(\.\d*)?\s*$")


class PriceDataError(RuntimeError):
    """Raised when a price series is missing, malformed or too short."""


def _find_column(header: Sequence[str], candidates: Iterable[str]) -> Optional[str]:
    normalized = [str(col).strip().lower() for col in header]
    candidates = list(candidates)
    for cand in candidates:
        if cand in normalized:
            return header[normalized.index(cand)]
    for cand in candidates:
        for idx, col in enumerate(normalized):
            if cand in col:
                return header[idx]
    return None


def detect_columns(header: Sequence[str]) -> Tuple[str, str]:
    """Locate the date and price columns in a CSV header.

    Exact (case-insensitive) names win; otherwise the first header that
    contains a candidate name is used. Many exchange exports label the
    date as ``Start``/``End`` and the price as ``Close``.
    """

    header = list(header)
    date_col = _find_column(header, _DATE_CANDIDATES)
    price_col = _find_column(header, _PRICE_CANDIDATES)
    if not date_col or not price_col:
        raise PriceDataError(
            "Could not detect required columns. "
            f"Found header: {', '.join(str(c) for c in header)}. "
            "Need a date column (Date/Start/End/...) and a price column (Close/Price/...)."
        )
    return date_col, price_col


def to_iso_date(value: object) -> str:
    """Normalise a date-like value to ``YYYY-MM-DD`` (UTC calendar date).

    Bare numbers are rejected rather than read as nanoseconds since 1970.
    """

    if isinstance(value, numbers.Number) or (isinstance(value, str) and _NUMERIC_RE.match(value)):
        raise PriceDataError(f"Unparseable date: {value!r}")
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as exc:
        raise PriceDataError(f"Unparseable date: {value!r}") from exc
    if ts is pd.NaT:
        raise PriceDataError(f"Unparseable date: {value!r}")
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC")
    return ts.strftime("%Y-%m-%d")


def series_from_frame(frame: pd.DataFrame, *, date_col: str = "date", price_col: str = "price") -> List[SeriesPoint]:
    """Build a clean series from a frame with date and price columns.

    Rows with non-finite or non-positive prices are dropped, dates are
    normalised to ISO form, the result is sorted ascending and the first
    row of any duplicated date is kept.
    """

    prices = pd.to_numeric(frame[price_col], errors="coerce")
    points = {}
    for raw_date, price in zip(frame[date_col], prices):
        if not math.isfinite(price) or price <= 0:
            continue
        iso = to_iso_date(raw_date)
        if iso not in points:
            points[iso] = float(price)
    return [SeriesPoint(date=d, price=points[d]) for d in sorted(points)]


def series_to_frame(series: Sequence[SeriesPoint]) -> pd.DataFrame:
    return pd.DataFrame({"date": [p.date for p in series], "price": [p.price for p in series]})


def load_price_series(path: str) -> List[SeriesPoint]:
    """Load a daily price CSV, auto-detecting its date and price columns."""

    skipped: List[List[str]] = []
    try:
        # Lines with too many fields go to ``skipped`` instead of the frame.
        df = pd.read_csv(path, skipinitialspace=True, engine="python", on_bad_lines=skipped.append)
    except FileNotFoundError as exc:
        raise PriceDataError(f"Price file not found: {path}") from exc
    except pd.errors.EmptyDataError as exc:
        raise PriceDataError(f"Price file is empty: {path}") from exc
    if skipped:
        logger.debug("skipped %d malformed lines in %s", len(skipped), path)

    df.columns = [str(c).strip() for c in df.columns]
    date_col, price_col = detect_columns(list(df.columns))
    series = series_from_frame(df, date_col=date_col, price_col=price_col)
    if not series:
        raise PriceDataError(f"No rows remain after cleaning price data in {path}")

    logger.debug("loaded %d rows from %s (%s/%s)", len(series), path, date_col, price_col)
    return series


def filter_range(series: Sequence[SeriesPoint], start: Optional[str], end: Optional[str]) -> List[SeriesPoint]:
    """Keep rows with ``start <= date <= end`` (ISO strings, both optional)."""

    out = list(series)
    if start:
        out = [p for p in out if p.date >= start]
    if end:
        out = [p for p in out if p.date <= end]

    if len(out) < MIN_SERIES_LENGTH:
        raise PriceDataError(f"Filtered range too short. start={start} end={end} -> {len(out)} rows")
    return out


@dataclass(frozen=True)
class Dataset:
    name: str
    file: str
    full_path: str
    size_bytes: int


def list_datasets(directory: str) -> List[Dataset]:
    """All ``*.csv`` files in ``directory``, sorted by file name."""

    if not os.path.isdir(directory):
        return []
    files = sorted(f for f in os.listdir(directory) if f.lower().endswith(".csv"))
    datasets = []
    for file in files:
        full_path = os.path.join(directory, file)
        datasets.append(
            Dataset(name=file[: -len(".csv")], file=file, full_path=full_path, size_bytes=os.path.getsize(full_path))
        )
    return datasets


def resolve_dataset(datasets: Sequence[Dataset], name: Optional[str]) -> Dataset:
    """Pick a dataset by name, file name or unambiguous prefix.

    With no name, a single available dataset is chosen automatically.
    """

    if not datasets:
        raise PriceDataError("No datasets found. Put one or more *.csv files in the assets directory.")

    available = ", ".join(d.name for d in datasets)
    if not name:
        if len(datasets) == 1:
            return datasets[0]
        raise PriceDataError(f"Several datasets available, choose one with --dataset. Available: {available}")

    for ds in datasets:
        if name in (ds.name, ds.file):
            return ds
    prefixed = [ds for ds in datasets if ds.name.startswith(name) or ds.file.startswith(name)]
    if len(prefixed) == 1:
        return prefixed[0]
    raise PriceDataError(f"Unknown dataset {name!r}. Available: {available}")


__all__ = [
    "MIN_SERIES_LENGTH",
    "PriceDataError",
    "Dataset",
    "detect_columns",
    "filter_range",
    "list_datasets",
    "load_price_series",
    "resolve_dataset",
    "series_from_frame",
    "series_to_frame",
    "to_iso_date",
]
