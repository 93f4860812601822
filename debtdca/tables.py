"""Plain-text rendering of the report rows."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Sequence

from .types import DcaCrossRow, DebtReportRow, HeadToHeadRow


def fmt_num(value: float, digits: int = 2) -> str:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return "NaN"
    return f"{value:,.{digits}f}"


def fmt_int(value: float) -> str:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return "NaN"
    return f"{math.floor(value + 0.5):,d}"


def fmt_asset(value: float) -> str:
    """Asset quantities get more decimals the smaller they are."""

    magnitude = abs(value) if isinstance(value, (int, float)) else 0.0
    digits = 4 if magnitude >= 100 else 6 if magnitude >= 1 else 8
    return fmt_num(value, digits)


def fmt_bytes(size: int) -> str:
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


@dataclass(frozen=True)
class Column:
    label: str
    cell: Callable[[object], str]
    align: str = "right"


def debt_columns() -> List[Column]:
    return [
        Column("Freq", lambda r: r.cadence.value, "left"),
        Column("Asset", lambda r: fmt_asset(r.asset_final)),
        Column("Final $", lambda r: fmt_int(r.final_value_usd)),
        Column("Debt $", lambda r: fmt_int(r.debt_final)),
        Column("Net $", lambda r: fmt_int(r.net_value_usd)),
        Column("External $", lambda r: fmt_int(r.external_total_usd)),
        Column("Interest $", lambda r: fmt_int(r.interest_usd)),
        Column("Principal $", lambda r: fmt_int(r.principal_usd)),
        Column("Fees $", lambda r: fmt_int(r.fees_usd)),
        Column("Borrows", lambda r: fmt_int(r.borrows)),
        Column("Repays", lambda r: fmt_int(r.repays)),
        Column("Max debt $", lambda r: fmt_int(r.max_debt_seen)),
    ]


def head_to_head_columns() -> List[Column]:
    return [
        Column("Freq", lambda r: r.cadence.value, "left"),
        Column("Debt asset", lambda r: fmt_asset(r.debt_asset)),
        Column("DCA asset", lambda r: fmt_asset(r.dca_asset)),
        Column("Δ asset", lambda r: fmt_asset(r.delta_asset)),
        Column("Debt net $", lambda r: fmt_int(r.debt_net_usd)),
        Column("DCA $", lambda r: fmt_int(r.dca_value_usd)),
        Column("Δ net $", lambda r: fmt_int(r.delta_net_usd)),
        Column("External $", lambda r: fmt_int(r.external_usd)),
        Column("DCA fees $", lambda r: fmt_int(r.dca_fees_usd)),
    ]


def cross_columns() -> List[Column]:
    return [
        Column("Debt freq", lambda r: r.debt_cadence.value, "left"),
        Column("DCA freq", lambda r: r.dca_cadence.value, "left"),
        Column("Budget $", lambda r: fmt_int(r.budget_usd)),
        Column("DCA asset", lambda r: fmt_asset(r.dca_asset_final)),
        Column("Buys", lambda r: fmt_int(r.dca_buys)),
        Column("Fees $", lambda r: fmt_int(r.dca_fees_usd)),
        Column("Final $", lambda r: fmt_int(r.dca_value_final_usd)),
    ]


def render_table(title: str, columns: Sequence[Column], rows: Sequence[object]) -> str:
    cells = [[col.cell(row) for col in columns] for row in rows]
    widths = [max([len(col.label)] + [len(r[i]) for r in cells]) for i, col in enumerate(columns)]

    def pad(text: str, width: int, align: str) -> str:
        return text.rjust(width) if align == "right" else text.ljust(width)

    lines = [f"=== {title} ==="]
    lines.append(" | ".join(pad(col.label, w, col.align) for col, w in zip(columns, widths)))
    lines.append("-+-".join("-" * w for w in widths))
    for r in cells:
        lines.append(" | ".join(pad(text, w, col.align) for text, col, w in zip(r, columns, widths)))
    return "\n".join(lines)


def render_debt_table(rows: Sequence[DebtReportRow]) -> str:
    return render_table("Debt Strategy Report", debt_columns(), rows)


def render_head_to_head_table(rows: Sequence[HeadToHeadRow]) -> str:
    return render_table("Head-to-Head (Debt vs DCA same freq)", head_to_head_columns(), rows)


def render_cross_table(rows: Sequence[DcaCrossRow]) -> str:
    return render_table("DCA Cross-Table (budget from Debt Freq)", cross_columns(), rows)


__all__ = [
    "Column",
    "fmt_asset",
    "fmt_bytes",
    "fmt_int",
    "fmt_num",
    "render_cross_table",
    "render_debt_table",
    "render_head_to_head_table",
    "render_table",
]
