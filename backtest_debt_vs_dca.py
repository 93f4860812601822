"""
Debt-vs-DCA backtester over a daily price series

Overview
--------
Compares two ways of deploying outside cash into a single asset:

A) Collateralised debt. Borrow against holdings up to ``max_debt_pct`` of the
   collateral value and buy more of the asset with the proceeds. On each
   rebalance day debt above the ceiling is repaid from outside cash, and debt
   that has fallen below ``ceiling * (1 - band)`` is topped back up.
B) DCA. Spend exactly the outside cash strategy A consumed (interest, forced
   principal repayments, fees) in equal slices on a fixed schedule.

Every cadence (daily, weekly, monthly, quarterly, yearly) is run for the debt
strategy first. Its external spend then funds the DCA runs.

Model
-----
Per day:
  interest_t = debt_{t-1} * apr / 365   (paid externally or capitalised)
On rebalance days:
  max_debt   = max_debt_pct * asset * price
  repay      = max(debt - max_debt, 0)
  lower      = max_debt * (1 - band)
  borrow     = (max_debt or lower) - debt   when debt < lower

Fees
----
network: sat_per_vb * vbytes_per_tx * tx_count / 1e8 * price   (default)
flat:    fixed USD per borrow, per repay and per DCA transaction

Inputs
------
- ``--csv PATH``: any daily CSV with a date-like and a price-like column
  (``Date``/``Start``/``timestamp`` and ``Close``/``Adj Close``/``Price``).
- ``--dataset NAME``: a CSV from ``--assets-dir`` (default ``assets/``), chosen
  by name, file name or unambiguous prefix. A lone CSV is picked
  automatically.
- ``--symbol TICKER``: download auto-adjusted daily closes from Yahoo Finance.

Output
------
- Three tables: the debt report, debt vs DCA at the same cadence, and the
  DCA cross table (every debt budget on every DCA cadence).
- Optional CSVs of the three tables and a plot of holdings and LTV per cadence.

CLI
---
python backtest_debt_vs_dca.py [--csv btc.csv | --dataset btc | --symbol BTC-USD] \
  [--start=2020-01-01] [--end=2025-12-20] [--initial-usd=25000] [--initial-asset=0] \
  [--apr=0.04] [--max-debt-pct=0.15] [--band=0.02] [--pay-interest-daily=true] \
  [--borrow-to-max=true] [--fee-model=network] [--sat-per-vb=20] [--vbytes-per-tx=180] \
  [--calendar=predicate] [--include-dca-fees=true] [--dca-tx-count=1] \
  [--save-csv report] [--save-plot backtest.png] [--no-show] [--verbose]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import pandas as pd
import yfinance as yf

from debtdca import (
    CADENCES,
    ConfigError,
    Defaults,
    PriceDataError,
    SeriesPoint,
    dca_timeline,
    debt_timeline,
    filter_range,
    list_datasets,
    load_price_series,
    resolve_dataset,
    rows_to_frame,
    run_backtest,
    series_from_frame,
    validate_config,
)
from debtdca.config import FEE_MODELS
from debtdca.tables import (
    fmt_bytes,
    fmt_num,
    render_cross_table,
    render_debt_table,
    render_head_to_head_table,
)
from debtdca.types import BacktestReport, CalendarPolicy, CoreConfig, DcaOptions

DEFAULTS = Defaults()


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"true", "1", "yes"}:
        return True
    if lowered in {"false", "0", "no"}:
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got {value!r}")


def fetch_yahoo_series(symbol: str, start: Optional[str] = None, end: Optional[str] = None) -> List[SeriesPoint]:
    end_exclusive = None
    if end:
        end_exclusive = str((pd.Timestamp(end) + pd.Timedelta(days=1)).date())
    df = yf.download(
        tickers=symbol,
        start=start,
        end=end_exclusive,
        progress=False,
        auto_adjust=True,
        threads=True,
    )
    if df is None or df.empty or "Close" not in df.columns:
        raise PriceDataError(f"Failed to fetch {symbol} from Yahoo Finance")
    close_obj = df["Close"].copy()
    # Coerce to Series if DataFrame (e.g., MultiIndex columns)
    if hasattr(close_obj, "columns"):
        close_obj = close_obj.iloc[:, 0]
    close_obj.index = pd.to_datetime(close_obj.index).tz_localize(None)
    frame = pd.DataFrame({"date": close_obj.index, "price": close_obj.to_numpy(dtype=float)})
    return series_from_frame(frame)


def build_parser(defaults: Defaults = DEFAULTS) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Backtest a collateralised-debt strategy against DCA")

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--csv", default=None, help="Path to a daily price CSV")
    source.add_argument("--dataset", default=None, help="Dataset name inside --assets-dir")
    source.add_argument("--symbol", default=None, help="Download daily closes for this ticker from Yahoo Finance")
    parser.add_argument("--assets-dir", default="assets", help="Directory of *.csv datasets (default assets)")

    parser.add_argument("--start", default=None, help="Inclusive start date YYYY-MM-DD")
    parser.add_argument("--end", default=None, help="Inclusive end date YYYY-MM-DD")

    parser.add_argument("--initial-asset", type=float, default=defaults.initial_asset, help="Starting asset units")
    parser.add_argument("--initial-usd", type=float, default=defaults.initial_usd, help="USD converted at the first price")
    parser.add_argument("--apr", type=float, default=defaults.apr, help=f"Borrow APR (default {defaults.apr})")
    parser.add_argument(
        "--max-debt-pct", type=float, default=defaults.max_debt_pct, help=f"LTV ceiling (default {defaults.max_debt_pct})"
    )
    parser.add_argument("--band", type=float, default=defaults.band, help=f"Hysteresis band (default {defaults.band})")
    parser.add_argument(
        "--pay-interest-daily",
        type=_parse_bool,
        default=defaults.pay_interest_daily,
        help="Pay interest from outside cash (true) or capitalise it (false)",
    )
    parser.add_argument(
        "--borrow-to-max",
        type=_parse_bool,
        default=defaults.borrow_to_max,
        help="Re-borrow to the ceiling (true) or only to the band edge (false)",
    )
    parser.add_argument(
        "--calendar",
        choices=[p.value for p in CalendarPolicy],
        default=defaults.calendar,
        help="Action-day policy (default predicate)",
    )

    parser.add_argument("--fee-model", choices=FEE_MODELS, default=defaults.fee_model, help="Fee model (default network)")
    parser.add_argument("--sat-per-vb", type=float, default=None, help=f"Network fee rate (default {defaults.sat_per_vb})")
    parser.add_argument("--vbytes-per-tx", type=float, default=None, help=f"Transaction size (default {defaults.vbytes_per_tx})")
    parser.add_argument("--tx-borrow", type=float, default=None, help="Transactions per borrow")
    parser.add_argument("--tx-repay", type=float, default=None, help="Transactions per repay")
    parser.add_argument("--borrow-fee-usd", type=float, default=None, help="Flat USD fee per borrow")
    parser.add_argument("--repay-fee-usd", type=float, default=None, help="Flat USD fee per repay")
    parser.add_argument("--dca-fee-usd", type=float, default=None, help="Flat USD fee per DCA transaction")
    parser.add_argument(
        "--include-dca-fees", type=_parse_bool, default=defaults.include_dca_fees, help="Charge fees on DCA buys"
    )
    parser.add_argument("--dca-tx-count", type=int, default=defaults.dca_tx_count, help="Transactions per DCA buy")

    parser.add_argument("--save-csv", default=None, help="If set, writes <prefix>_debt/_head/_cross.csv")
    parser.add_argument("--save-plot", default=None, help="If set, saves the holdings/LTV plot PNG here")
    parser.add_argument("--no-show", action="store_true", help="Do not display the plot")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def config_from_args(args: argparse.Namespace, defaults: Defaults = DEFAULTS) -> CoreConfig:
    fees = defaults.build_fees(
        args.fee_model,
        sat_per_vb=args.sat_per_vb,
        vbytes_per_tx=args.vbytes_per_tx,
        tx_borrow=args.tx_borrow,
        tx_repay=args.tx_repay,
        borrow_fee_usd=args.borrow_fee_usd,
        repay_fee_usd=args.repay_fee_usd,
        dca_fee_usd=args.dca_fee_usd,
    )
    config = defaults.build_config(
        fees=fees,
        initial_asset=args.initial_asset,
        initial_usd=args.initial_usd,
        apr=args.apr,
        max_debt_pct=args.max_debt_pct,
        band=args.band,
        pay_interest_daily=args.pay_interest_daily,
        borrow_to_max=args.borrow_to_max,
        calendar=args.calendar,
    )
    return validate_config(config)


def load_series(args: argparse.Namespace) -> Tuple[str, List[SeriesPoint]]:
    """Return ``(label, series)`` for whichever source the CLI selected."""

    if args.csv:
        return args.csv, load_price_series(args.csv)
    if args.symbol:
        return f"{args.symbol} (Yahoo Finance)", fetch_yahoo_series(args.symbol, args.start, args.end)
    chosen = resolve_dataset(list_datasets(args.assets_dir), args.dataset)
    return f"{chosen.name}  ({fmt_bytes(chosen.size_bytes)})  {chosen.full_path}", load_price_series(chosen.full_path)


def print_header(label: str, series: Sequence[SeriesPoint], config: CoreConfig, options: DcaOptions) -> None:
    print("Debt vs DCA backtest")
    print(f"Dataset: {label}")
    print(f"Range:   {series[0].date} → {series[-1].date} ({len(series):,} days)")
    print(f"Price:   ${fmt_num(series[0].price)} → ${fmt_num(series[-1].price)}")
    print(f"Init:    asset={config.initial_asset}  usd=${fmt_num(config.initial_usd)}")
    print(f"Debt:    APR={fmt_num(config.apr * 100)}%  max_debt_pct={config.max_debt_pct}  band={config.band}")
    print(f"Fees:    {config.fees}")
    print(f"DCA:     include_fees={options.include_fees}  tx_count={options.tx_count}")
    print(f"Days:    {config.calendar.value} calendar")


def plot_timelines(series: Sequence[SeriesPoint], config: CoreConfig, report: BacktestReport, options: DcaOptions):
    fig, (ax_asset, ax_ltv) = plt.subplots(2, 1, figsize=(11, 7), sharex=True)
    colors = plt.rcParams["axes.prop_cycle"].by_key()["color"]

    for i, dr in enumerate(report.debt_results):
        color = colors[i % len(colors)]
        debt = debt_timeline(series, config, dr.cadence)
        dca = dca_timeline(series, config, dr.cadence, dr.external_total_usd, options)
        dates = pd.to_datetime(debt.frame["date"])
        ax_asset.plot(dates, debt.frame["asset"], color=color, label=f"debt {dr.cadence.value}")
        ax_asset.plot(dates, dca["asset"], color=color, linestyle="--", label=f"DCA {dr.cadence.value}")
        ax_ltv.plot(dates, debt.frame["ltv"], color=color, label=dr.cadence.value)

        repays = pd.to_datetime(debt.repay_dates)
        if len(repays):
            ax_ltv.scatter(repays, [config.max_debt_pct] * len(repays), color=color, marker="v", s=12)

    ax_ltv.axhline(config.max_debt_pct, color="black", linestyle=":", alpha=0.6)
    ax_asset.set_ylabel("Asset held")
    ax_asset.set_title("Debt strategy (solid) vs DCA with the same outside cash (dashed)")
    ax_asset.grid(True, linestyle=":", alpha=0.4)
    ax_asset.legend(loc="upper left", ncol=2, fontsize="small")
    ax_ltv.set_ylabel("LTV")
    ax_ltv.set_xlabel("Date")
    ax_ltv.grid(True, linestyle=":", alpha=0.4)
    ax_ltv.legend(loc="upper left", ncol=5, fontsize="small")
    fig.tight_layout()
    return fig


def save_report_csv(prefix: str, report: BacktestReport) -> None:
    rows_to_frame(report.debt_rows).to_csv(f"{prefix}_debt.csv", index=False)
    rows_to_frame(report.head_rows).to_csv(f"{prefix}_head.csv", index=False)
    rows_to_frame(report.cross_rows).to_csv(f"{prefix}_cross.csv", index=False)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = config_from_args(args)
        options = DEFAULTS.build_dca_options(args.include_dca_fees, args.dca_tx_count)
        label, full_series = load_series(args)
        series = filter_range(full_series, args.start, args.end)
    except (PriceDataError, ConfigError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print_header(label, series, config, options)

    report = run_backtest(series, config, options, CADENCES)

    print()
    print(render_debt_table(report.debt_rows))
    print()
    print(render_head_to_head_table(report.head_rows))
    print()
    print(render_cross_table(report.cross_rows))

    if args.save_csv:
        save_report_csv(args.save_csv, report)

    if args.save_plot or not args.no_show:
        fig = plot_timelines(series, config, report, options)
        if args.save_plot:
            fig.savefig(args.save_plot, dpi=150)
        if not args.no_show:
            plt.show()
        plt.close(fig)

    return 0


if __name__ == "__main__":
    sys.exit(main())
