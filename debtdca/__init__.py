"""Backtest a collateralised-debt strategy against DCA on one daily series."""

from .calendar import action_day_indices, build_rebalance_dates, build_rebalance_schedule, is_action_day
from .config import ConfigError, Defaults, validate_config
from .dataset import (
    PriceDataError,
    filter_range,
    list_datasets,
    load_price_series,
    resolve_dataset,
    series_from_frame,
)
from .dca import dca_timeline, simulate_dca
from .debt import DebtTimeline, debt_timeline, simulate_debt_strategy
from .fees import EventKind, compute_event_fee
from .reports import (
    build_dca_cross_rows,
    build_debt_report_rows,
    build_head_to_head_rows,
    rows_to_frame,
    run_backtest,
)
from .types import (
    CADENCES,
    BacktestReport,
    Cadence,
    CalendarPolicy,
    CoreConfig,
    DcaCrossRow,
    DcaOptions,
    DcaResult,
    DebtReportRow,
    DebtResult,
    FlatFees,
    HeadToHeadRow,
    NetworkFees,
    SeriesPoint,
)

__all__ = [
    "CADENCES",
    "BacktestReport",
    "Cadence",
    "CalendarPolicy",
    "ConfigError",
    "CoreConfig",
    "DcaCrossRow",
    "DcaOptions",
    "DcaResult",
    "DebtReportRow",
    "DebtResult",
    "DebtTimeline",
    "Defaults",
    "EventKind",
    "FlatFees",
    "HeadToHeadRow",
    "NetworkFees",
    "PriceDataError",
    "SeriesPoint",
    "action_day_indices",
    "build_dca_cross_rows",
    "build_debt_report_rows",
    "build_head_to_head_rows",
    "build_rebalance_dates",
    "build_rebalance_schedule",
    "compute_event_fee",
    "dca_timeline",
    "debt_timeline",
    "filter_range",
    "is_action_day",
    "list_datasets",
    "load_price_series",
    "resolve_dataset",
    "rows_to_frame",
    "run_backtest",
    "series_from_frame",
    "simulate_dca",
    "simulate_debt_strategy",
    "validate_config",
]
