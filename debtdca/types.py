"""Shared data model for the debt-vs-DCA backtest."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class Cadence(str, Enum):
    """Rebalancing / purchase frequency."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


CADENCES: Tuple[Cadence, ...] = (
    Cadence.DAILY,
    Cadence.WEEKLY,
    Cadence.MONTHLY,
    Cadence.QUARTERLY,
    Cadence.YEARLY,
)


class CalendarPolicy(str, Enum):
    """How action days are chosen for a cadence.

    ``predicate`` checks each series date against weekday / day-of-month
    rules. ``snapped`` lays out ideal cadence boundaries and snaps each one
    to the nearest available row, which keeps sparse series from losing
    action days.
    """

    PREDICATE = "predicate"
    SNAPPED = "snapped"


@dataclass(frozen=True)
class SeriesPoint:
    date: str
    price: float


@dataclass(frozen=True)
class FlatFees:
    """Fixed USD fee per borrow, per repay and per DCA transaction."""

    borrow_usd: float
    repay_usd: float
    dca_tx_usd: float


@dataclass(frozen=True)
class NetworkFees:
    """On-chain fee priced in sat/vB and converted at the spot price."""

    sat_per_vb: float
    vbytes_per_tx: float
    tx_borrow: float
    tx_repay: float


FeeModel = Union[FlatFees, NetworkFees]


@dataclass(frozen=True)
class CoreConfig:
    """Inputs for a single simulation run. All fields are required."""

    initial_asset: float
    initial_usd: float
    apr: float
    max_debt_pct: float
    band: float
    pay_interest_daily: bool
    borrow_to_max: bool
    fees: FeeModel
    calendar: CalendarPolicy

    def starting_asset(self, first_price: float) -> float:
        """Holdings after converting ``initial_usd`` at the first price."""

        asset = float(self.initial_asset)
        if self.initial_usd > 0:
            asset += self.initial_usd / first_price
        return asset


@dataclass(frozen=True)
class DcaOptions:
    include_fees: bool = False
    tx_count: int = 1


@dataclass(frozen=True)
class DebtResult:
    cadence: Cadence

    asset_final: float
    debt_final: float
    final_value_usd: float

    external_total_usd: float
    interest_usd: float
    principal_usd: float
    fees_usd: float

    borrows: int
    repays: int
    max_debt_seen: float


@dataclass(frozen=True)
class DcaResult:
    cadence: Cadence
    asset_final: float
    buys: int
    spent_usd: float
    fees_usd: float
    final_value_usd: float


@dataclass(frozen=True)
class DebtReportRow:
    cadence: Cadence
    asset_final: float
    final_value_usd: float
    debt_final: float
    net_value_usd: float

    external_total_usd: float
    interest_usd: float
    principal_usd: float
    fees_usd: float

    borrows: int
    repays: int
    max_debt_seen: float


@dataclass(frozen=True)
class HeadToHeadRow:
    cadence: Cadence

    debt_asset: float
    dca_asset: float
    delta_asset: float

    debt_net_usd: float
    dca_value_usd: float
    delta_net_usd: float

    external_usd: float
    dca_fees_usd: float


@dataclass(frozen=True)
class DcaCrossRow:
    debt_cadence: Cadence
    dca_cadence: Cadence

    budget_usd: float
    dca_asset_final: float
    dca_buys: int
    dca_fees_usd: float
    dca_value_final_usd: float


@dataclass(frozen=True)
class BacktestReport:
    """Everything produced by one two-phase backtest run."""

    debt_results: Tuple[DebtResult, ...]
    debt_rows: Tuple[DebtReportRow, ...]
    head_rows: Tuple[HeadToHeadRow, ...]
    cross_rows: Tuple[DcaCrossRow, ...]


__all__ = [
    "Cadence",
    "CADENCES",
    "CalendarPolicy",
    "SeriesPoint",
    "FlatFees",
    "NetworkFees",
    "FeeModel",
    "CoreConfig",
    "DcaOptions",
    "DebtResult",
    "DcaResult",
    "DebtReportRow",
    "HeadToHeadRow",
    "DcaCrossRow",
    "BacktestReport",
]
