"""Rebalance calendar: decides which series rows are action days.

Two policies are available behind :func:`action_day_indices`:

``predicate``
    A row is an action day when its own date satisfies the cadence rule
    (Mondays, first of the month, first of a quarter, first of January).
    Sparse series with no row on those dates get no action days.
``snapped``
    Ideal cadence boundaries are laid out from the first date, independently
    of the data, and each boundary is snapped to the nearest available row.
    The result never moves backwards and never lists a row twice.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Sequence, Set, Union

import numpy as np
import pandas as pd

from .types import Cadence, CalendarPolicy, SeriesPoint

logger = logging.getLogger(__name__)

_QUARTER_MONTHS = (1, 4, 7, 10)
_MONTH_STEPS = {Cadence.MONTHLY: 1, Cadence.QUARTERLY: 3}


def is_action_day(cadence: Union[Cadence, str], iso_date: str) -> bool:
    """Return True when ``iso_date`` (``YYYY-MM-DD``) is an action day."""

    cadence = Cadence(cadence)
    d = date.fromisoformat(iso_date)

    if cadence is Cadence.DAILY:
        return True
    if cadence is Cadence.WEEKLY:
        return d.weekday() == 0
    if cadence is Cadence.MONTHLY:
        return d.day == 1
    if cadence is Cadence.QUARTERLY:
        return d.day == 1 and d.month in _QUARTER_MONTHS
    return d.day == 1 and d.month == 1


def _next_anniversary(ts: pd.Timestamp) -> pd.Timestamp:
    # Feb 29 rolls forward to Mar 1 and the schedule continues from there.
    try:
        return ts.replace(year=ts.year + 1)
    except ValueError:
        return pd.Timestamp(year=ts.year + 1, month=3, day=1)


def _ideal_boundaries(start: pd.Timestamp, end: pd.Timestamp, cadence: Cadence) -> pd.DatetimeIndex:
    if cadence is Cadence.DAILY:
        return pd.date_range(start, end, freq="D")
    if cadence is Cadence.WEEKLY:
        return pd.date_range(start, end, freq="7D")

    boundaries = [start]
    k = 1
    while True:
        if cadence is Cadence.YEARLY:
            nxt = _next_anniversary(boundaries[-1])
        else:
            nxt = start + pd.offsets.MonthBegin(_MONTH_STEPS[cadence] * k)
        if nxt > end:
            break
        boundaries.append(nxt)
        k += 1
    return pd.DatetimeIndex(boundaries)


def build_rebalance_schedule(series: Sequence[SeriesPoint], cadence: Union[Cadence, str]) -> List[int]:
    """Snap ideal cadence boundaries onto series indices.

    Each boundary maps to the row whose date is closest to it (ties go to
    the later row). A running floor keeps the schedule monotonic, and
    repeated indices are collapsed so a row is acted on at most once.
    """

    cadence = Cadence(cadence)
    if not series:
        return []

    raw = np.array([p.date for p in series], dtype="datetime64[D]")
    order = np.argsort(raw, kind="stable")
    days = raw[order]

    targets = _ideal_boundaries(pd.Timestamp(days[0]), pd.Timestamp(days[-1]), cadence)
    targets = targets.values.astype("datetime64[D]")

    last = len(days) - 1
    pos = np.searchsorted(days, targets, side="left")
    right = np.clip(pos, 0, last)
    left = np.clip(pos - 1, 0, last)
    dist_right = np.abs((days[right] - targets).astype(np.int64))
    dist_left = np.abs((targets - days[left]).astype(np.int64))
    nearest = np.where(dist_left < dist_right, left, right)

    snapped = np.unique(np.maximum.accumulate(nearest))
    schedule = [int(i) for i in order[snapped]]

    logger.debug(
        "snapped %s schedule: %d boundaries -> %d action days", cadence.value, len(targets), len(schedule)
    )
    return schedule


def build_rebalance_dates(series: Sequence[SeriesPoint], cadence: Union[Cadence, str]) -> Set[str]:
    return {series[i].date for i in build_rebalance_schedule(series, cadence)}


def action_day_indices(
    series: Sequence[SeriesPoint],
    cadence: Union[Cadence, str],
    policy: Union[CalendarPolicy, str],
) -> List[int]:
    """Indices of the action days in ``series`` under ``policy``, ascending."""

    policy = CalendarPolicy(policy)
    if policy is CalendarPolicy.SNAPPED:
        return build_rebalance_schedule(series, cadence)
    cadence = Cadence(cadence)
    return [i for i, point in enumerate(series) if is_action_day(cadence, point.date)]


__all__ = [
    "is_action_day",
    "build_rebalance_schedule",
    "build_rebalance_dates",
    "action_day_indices",
]
