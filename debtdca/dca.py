"""Dollar-cost-averaging engine funded by an external budget."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Union

import pandas as pd

from .calendar import action_day_indices
from .dataset import PriceDataError
from .fees import EventKind, compute_event_fee
from .types import Cadence, CoreConfig, DcaOptions, DcaResult, SeriesPoint

logger = logging.getLogger(__name__)


def _walk_dca(
    series: Sequence[SeriesPoint],
    config: CoreConfig,
    cadence: Cadence,
    budget_usd: float,
    options: DcaOptions,
    on_day: Optional[Callable[[SeriesPoint, float], None]] = None,
) -> DcaResult:
    if not series:
        raise PriceDataError("Cannot simulate an empty price series")

    buy_days = action_day_indices(series, cadence, config.calendar)
    asset = config.starting_asset(series[0].price)
    fees_usd = 0.0
    buys = 0

    if buy_days:
        per_buy = budget_usd / len(buy_days)
        pending = set(buy_days)
    else:
        logger.debug("dca %s: no action days in %d rows; no buys", cadence.value, len(series))
        per_buy = 0.0
        pending = set()

    for i, point in enumerate(series):
        if i in pending:
            net_buy = per_buy
            if options.include_fees:
                fee = compute_event_fee(config.fees, EventKind.DCA_BUY, point.price, tx_count=options.tx_count)
                fees_usd += fee
                net_buy = max(per_buy - fee, 0.0)
            asset += net_buy / point.price
            buys += 1
        if on_day is not None:
            on_day(point, asset)

    final_price = series[-1].price
    return DcaResult(
        cadence=cadence,
        asset_final=asset,
        buys=buys,
        spent_usd=budget_usd,
        fees_usd=fees_usd,
        final_value_usd=asset * final_price,
    )


def simulate_dca(
    series: Sequence[SeriesPoint],
    config: CoreConfig,
    cadence: Union[Cadence, str],
    budget_usd: float,
    options: Optional[DcaOptions] = None,
) -> DcaResult:
    """Spend ``budget_usd`` in equal slices on every action day of ``cadence``.

    Fees, when enabled, come out of each slice (floored at zero), so they
    reduce the asset bought but not ``spent_usd``. With no action days the
    result holds only the initial allocation.
    """

    return _walk_dca(series, config, Cadence(cadence), budget_usd, options or DcaOptions())


def dca_timeline(
    series: Sequence[SeriesPoint],
    config: CoreConfig,
    cadence: Union[Cadence, str],
    budget_usd: float,
    options: Optional[DcaOptions] = None,
) -> pd.DataFrame:
    """Per-day holdings (``date``, ``price``, ``asset``) of a DCA run."""

    rows = []
    _walk_dca(
        series,
        config,
        Cadence(cadence),
        budget_usd,
        options or DcaOptions(),
        on_day=lambda point, asset: rows.append({"date": point.date, "price": point.price, "asset": asset}),
    )
    return pd.DataFrame(rows)


__all__ = ["dca_timeline", "simulate_dca"]
