"""Collateralised-debt strategy engine.

Mechanics, evaluated once per series day:

1. Interest accrues on outstanding debt at ``apr / 365``. It is either paid
   from external cash or capitalised into the debt.
2. On action days the debt is held under ``max_debt_pct`` of the collateral
   value:

   - debt above the ceiling is repaid from external cash (deleverage);
   - debt below ``ceiling * (1 - band)`` is topped back up, to the ceiling
     or to the band edge, and the proceeds buy more of the asset
     (releverage).

   Deleverage always runs before releverage on the same day.

External cash spent (interest + forced principal + fees) is what the DCA
strategy receives as its budget.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

import pandas as pd

from .calendar import action_day_indices
from .dataset import PriceDataError
from .fees import EventKind, compute_event_fee
from .types import Cadence, CoreConfig, DebtResult, SeriesPoint

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365
HIGH_LTV_THRESHOLD = 0.5

DayHook = Callable[[SeriesPoint, float, float, bool, bool], None]


def _walk_debt(
    series: Sequence[SeriesPoint],
    config: CoreConfig,
    cadence: Cadence,
    on_day: Optional[DayHook] = None,
) -> DebtResult:
    if not series:
        raise PriceDataError("Cannot simulate an empty price series")

    action_days = set(action_day_indices(series, cadence, config.calendar))
    daily_rate = config.apr / DAYS_PER_YEAR
    fees = config.fees

    asset = config.starting_asset(series[0].price)
    debt = 0.0

    interest_usd = 0.0
    principal_usd = 0.0
    fees_usd = 0.0
    borrows = 0
    repays = 0
    max_debt_seen = 0.0

    for i, point in enumerate(series):
        price = point.price

        if debt > 0:
            interest = debt * daily_rate
            if config.pay_interest_daily:
                interest_usd += interest
            else:
                debt += interest

        max_debt_seen = max(max_debt_seen, debt)

        repaid = borrowed = False
        if i in action_days:
            max_debt = config.max_debt_pct * asset * price

            if debt > max_debt:
                repay = debt - max_debt
                debt = max_debt
                principal_usd += repay
                fees_usd += compute_event_fee(fees, EventKind.REPAY, price)
                repays += 1
                repaid = True

            lower_bound = max_debt * (1 - config.band)
            if debt < lower_bound:
                target = max_debt if config.borrow_to_max else lower_bound
                borrow = target - debt
                if borrow > 0:
                    debt += borrow
                    asset += borrow / price
                    fees_usd += compute_event_fee(fees, EventKind.BORROW, price)
                    borrows += 1
                    borrowed = True

            max_debt_seen = max(max_debt_seen, debt)

        if on_day is not None:
            on_day(point, asset, debt, borrowed, repaid)

    final_price = series[-1].price
    result = DebtResult(
        cadence=cadence,
        asset_final=asset,
        debt_final=debt,
        final_value_usd=asset * final_price,
        external_total_usd=interest_usd + principal_usd + fees_usd,
        interest_usd=interest_usd,
        principal_usd=principal_usd,
        fees_usd=fees_usd,
        borrows=borrows,
        repays=repays,
        max_debt_seen=max_debt_seen,
    )
    logger.debug(
        "debt %s: %d action days, %d borrows, %d repays, external $%.2f",
        cadence.value,
        len(action_days),
        borrows,
        repays,
        result.external_total_usd,
    )
    return result


def simulate_debt_strategy(
    series: Sequence[SeriesPoint],
    config: CoreConfig,
    cadence: Union[Cadence, str],
) -> DebtResult:
    """Run the debt strategy over ``series`` for one cadence."""

    return _walk_debt(series, config, Cadence(cadence))


@dataclass(frozen=True, eq=False)
class DebtTimeline:
    """Per-day view of a debt run.

    ``frame`` has one row per series day with columns ``date``, ``price``,
    ``asset``, ``debt``, ``ltv``, ``borrow`` and ``repay``.
    """

    result: DebtResult
    frame: pd.DataFrame

    @property
    def borrow_dates(self) -> List[str]:
        return self.frame.loc[self.frame["borrow"], "date"].tolist()

    @property
    def repay_dates(self) -> List[str]:
        return self.frame.loc[self.frame["repay"], "date"].tolist()

    def high_ltv(self, threshold: float = HIGH_LTV_THRESHOLD) -> pd.DataFrame:
        """Days whose end-of-day LTV is at or above ``threshold``."""

        return self.frame.loc[self.frame["ltv"] >= threshold, ["date", "ltv"]].reset_index(drop=True)


def debt_timeline(
    series: Sequence[SeriesPoint],
    config: CoreConfig,
    cadence: Union[Cadence, str],
) -> DebtTimeline:
    """Same walk as :func:`simulate_debt_strategy`, recording every day."""

    rows = []

    def record(point: SeriesPoint, asset: float, debt: float, borrowed: bool, repaid: bool) -> None:
        collateral = asset * point.price
        rows.append(
            {
                "date": point.date,
                "price": point.price,
                "asset": asset,
                "debt": debt,
                "ltv": debt / collateral if collateral > 0 else 0.0,
                "borrow": borrowed,
                "repay": repaid,
            }
        )

    result = _walk_debt(series, config, Cadence(cadence), on_day=record)
    return DebtTimeline(result=result, frame=pd.DataFrame(rows))


__all__ = ["DebtTimeline", "debt_timeline", "simulate_debt_strategy"]
