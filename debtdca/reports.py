"""Comparison tables built from finished simulation results.

Backtests run in two phases. Phase 1 runs the debt strategy for every
cadence and collects ``external_total_usd`` per cadence. Phase 2 runs the
DCA engine with those collected budgets, once per cadence for the
head-to-head table and once per (debt cadence, DCA cadence) pair for the
cross table. Phase 2 depends on phase 1 having completed.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import List, Optional, Sequence

import pandas as pd

from .dca import simulate_dca
from .debt import simulate_debt_strategy
from .types import (
    CADENCES,
    BacktestReport,
    Cadence,
    CoreConfig,
    DcaCrossRow,
    DcaOptions,
    DebtReportRow,
    DebtResult,
    HeadToHeadRow,
    SeriesPoint,
)

logger = logging.getLogger(__name__)


def build_debt_report_rows(debt_results: Sequence[DebtResult]) -> List[DebtReportRow]:
    return [
        DebtReportRow(
            cadence=dr.cadence,
            asset_final=dr.asset_final,
            final_value_usd=dr.final_value_usd,
            debt_final=dr.debt_final,
            net_value_usd=dr.final_value_usd - dr.debt_final,
            external_total_usd=dr.external_total_usd,
            interest_usd=dr.interest_usd,
            principal_usd=dr.principal_usd,
            fees_usd=dr.fees_usd,
            borrows=dr.borrows,
            repays=dr.repays,
            max_debt_seen=dr.max_debt_seen,
        )
        for dr in debt_results
    ]


def build_head_to_head_rows(
    series: Sequence[SeriesPoint],
    config: CoreConfig,
    debt_results: Sequence[DebtResult],
    options: Optional[DcaOptions] = None,
) -> List[HeadToHeadRow]:
    """Debt vs DCA at the same cadence, DCA funded by that cadence's spend."""

    rows = []
    for dr in debt_results:
        dca = simulate_dca(series, config, dr.cadence, dr.external_total_usd, options)
        debt_net = dr.final_value_usd - dr.debt_final
        # DCA carries no debt, so its final value is already net.
        rows.append(
            HeadToHeadRow(
                cadence=dr.cadence,
                debt_asset=dr.asset_final,
                dca_asset=dca.asset_final,
                delta_asset=dr.asset_final - dca.asset_final,
                debt_net_usd=debt_net,
                dca_value_usd=dca.final_value_usd,
                delta_net_usd=debt_net - dca.final_value_usd,
                external_usd=dr.external_total_usd,
                dca_fees_usd=dca.fees_usd,
            )
        )
    return rows


def build_dca_cross_rows(
    series: Sequence[SeriesPoint],
    config: CoreConfig,
    debt_results: Sequence[DebtResult],
    options: Optional[DcaOptions] = None,
    dca_cadences: Sequence[Cadence] = CADENCES,
) -> List[DcaCrossRow]:
    """Every debt cadence's budget spent on every DCA cadence's schedule."""

    rows = []
    for dr in debt_results:
        for dca_cadence in dca_cadences:
            dca = simulate_dca(series, config, dca_cadence, dr.external_total_usd, options)
            rows.append(
                DcaCrossRow(
                    debt_cadence=dr.cadence,
                    dca_cadence=Cadence(dca_cadence),
                    budget_usd=dr.external_total_usd,
                    dca_asset_final=dca.asset_final,
                    dca_buys=dca.buys,
                    dca_fees_usd=dca.fees_usd,
                    dca_value_final_usd=dca.final_value_usd,
                )
            )
    return rows


def run_backtest(
    series: Sequence[SeriesPoint],
    config: CoreConfig,
    options: Optional[DcaOptions] = None,
    cadences: Sequence[Cadence] = CADENCES,
) -> BacktestReport:
    """Run both phases and assemble all three tables."""

    debt_results = tuple(simulate_debt_strategy(series, config, c) for c in cadences)
    logger.debug("phase 1 complete: budgets %s", {dr.cadence.value: dr.external_total_usd for dr in debt_results})

    return BacktestReport(
        debt_results=debt_results,
        debt_rows=tuple(build_debt_report_rows(debt_results)),
        head_rows=tuple(build_head_to_head_rows(series, config, debt_results, options)),
        cross_rows=tuple(build_dca_cross_rows(series, config, debt_results, options, cadences)),
    )


def rows_to_frame(rows: Sequence[object]) -> pd.DataFrame:
    """Flatten report rows into a DataFrame, cadences as plain strings."""

    records = []
    for row in rows:
        record = dataclasses.asdict(row)
        records.append({k: (v.value if isinstance(v, Cadence) else v) for k, v in record.items()})
    return pd.DataFrame(records)


__all__ = [
    "build_dca_cross_rows",
    "build_debt_report_rows",
    "build_head_to_head_rows",
    "rows_to_frame",
    "run_backtest",
]
