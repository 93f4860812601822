import math

import pytest

from debtdca.reports import build_debt_report_rows
from debtdca.tables import (
    fmt_asset,
    fmt_bytes,
    fmt_int,
    fmt_num,
    render_debt_table,
)
from debtdca.types import Cadence, DebtResult


def test_number_formatting():
    assert fmt_num(1234.5) == "1,234.50"
    assert fmt_num(math.nan) == "NaN"
    assert fmt_int(1234.6) == "1,235"
    assert fmt_int(2.5) == "3"
    assert fmt_int(-2.5) == "-2"
    assert fmt_int(math.inf) == "NaN"
    assert fmt_asset(150.0) == "150.0000"
    assert fmt_asset(2.5) == "2.500000"
    assert fmt_asset(0.5) == "0.50000000"
    assert fmt_bytes(512) == "512 B"
    assert fmt_bytes(2048) == "2.0 KB"


def _result(cadence, asset):
    return DebtResult(
        cadence=cadence,
        asset_final=asset,
        debt_final=100.0,
        final_value_usd=1000.0,
        external_total_usd=50.0,
        interest_usd=40.0,
        principal_usd=5.0,
        fees_usd=5.0,
        borrows=3,
        repays=1,
        max_debt_seen=120.0,
    )


def test_debt_table_layout():
    rows = build_debt_report_rows([_result(Cadence.DAILY, 1.5), _result(Cadence.YEARLY, 0.25)])

    text = render_debt_table(rows)
    lines = text.splitlines()

    assert lines[0] == "=== Debt Strategy Report ==="
    assert lines[1].startswith("Freq  ")
    assert set(lines[2]) <= {"-", "+"}
    assert len(lines) == 5
    assert lines[3].startswith("daily ")
    assert "1.500000" in lines[3]
    assert "0.25000000" in lines[4]
    assert len({len(line) for line in lines[1:]}) == 1
