"""Command-line defaults and optional range checks for ``CoreConfig``.

The simulation functions never read anything from here: the CLI builds a
``Defaults`` once, turns parsed arguments into a ``CoreConfig`` and passes
that down explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .types import CalendarPolicy, CoreConfig, DcaOptions, FeeModel, FlatFees, NetworkFees

FEE_MODELS = ("network", "flat")


class ConfigError(ValueError):
    """Raised when a configuration value is out of range."""


@dataclass(frozen=True)
class Defaults:
    initial_asset: float = 0.0
    initial_usd: float = 0.0

    apr: float = 0.04
    max_debt_pct: float = 0.15
    band: float = 0.02

    pay_interest_daily: bool = True
    borrow_to_max: bool = True

    fee_model: str = "network"
    sat_per_vb: float = 20.0
    vbytes_per_tx: float = 180.0
    tx_borrow: float = 1.0
    tx_repay: float = 1.0

    borrow_fee_usd: float = 0.0
    repay_fee_usd: float = 0.0
    dca_fee_usd: float = 0.0

    include_dca_fees: bool = True
    dca_tx_count: int = 1

    calendar: str = CalendarPolicy.PREDICATE.value

    def build_fees(
        self,
        fee_model: Optional[str] = None,
        *,
        sat_per_vb: Optional[float] = None,
        vbytes_per_tx: Optional[float] = None,
        tx_borrow: Optional[float] = None,
        tx_repay: Optional[float] = None,
        borrow_fee_usd: Optional[float] = None,
        repay_fee_usd: Optional[float] = None,
        dca_fee_usd: Optional[float] = None,
    ) -> FeeModel:
        kind = fee_model or self.fee_model
        if kind == "network":
            return NetworkFees(
                sat_per_vb=_pick(sat_per_vb, self.sat_per_vb),
                vbytes_per_tx=_pick(vbytes_per_tx, self.vbytes_per_tx),
                tx_borrow=_pick(tx_borrow, self.tx_borrow),
                tx_repay=_pick(tx_repay, self.tx_repay),
            )
        if kind == "flat":
            return FlatFees(
                borrow_usd=_pick(borrow_fee_usd, self.borrow_fee_usd),
                repay_usd=_pick(repay_fee_usd, self.repay_fee_usd),
                dca_tx_usd=_pick(dca_fee_usd, self.dca_fee_usd),
            )
        raise ConfigError(f"Unknown fee model {kind!r}; expected one of {', '.join(FEE_MODELS)}")

    def build_config(
        self,
        *,
        fees: FeeModel,
        initial_asset: Optional[float] = None,
        initial_usd: Optional[float] = None,
        apr: Optional[float] = None,
        max_debt_pct: Optional[float] = None,
        band: Optional[float] = None,
        pay_interest_daily: Optional[bool] = None,
        borrow_to_max: Optional[bool] = None,
        calendar: Optional[str] = None,
    ) -> CoreConfig:
        """Fill every unset field from these defaults."""

        return CoreConfig(
            initial_asset=_pick(initial_asset, self.initial_asset),
            initial_usd=_pick(initial_usd, self.initial_usd),
            apr=_pick(apr, self.apr),
            max_debt_pct=_pick(max_debt_pct, self.max_debt_pct),
            band=_pick(band, self.band),
            pay_interest_daily=_pick(pay_interest_daily, self.pay_interest_daily),
            borrow_to_max=_pick(borrow_to_max, self.borrow_to_max),
            fees=fees,
            calendar=CalendarPolicy(_pick(calendar, self.calendar)),
        )

    def build_dca_options(self, include_fees: Optional[bool] = None, tx_count: Optional[int] = None) -> DcaOptions:
        return DcaOptions(
            include_fees=_pick(include_fees, self.include_dca_fees),
            tx_count=_pick(tx_count, self.dca_tx_count),
        )


def _pick(value, default):
    return default if value is None else value


def config_problems(config: CoreConfig) -> List[str]:
    """Human-readable range problems in ``config`` (empty when valid)."""

    problems = []
    if config.initial_asset < 0:
        problems.append(f"initial_asset must be >= 0 (got {config.initial_asset})")
    if config.initial_usd < 0:
        problems.append(f"initial_usd must be >= 0 (got {config.initial_usd})")
    if config.apr < 0:
        problems.append(f"apr must be >= 0 (got {config.apr})")
    if not 0 <= config.max_debt_pct < 1:
        problems.append(f"max_debt_pct must be in [0, 1) (got {config.max_debt_pct})")
    if not 0 <= config.band < 1:
        problems.append(f"band must be in [0, 1) (got {config.band})")

    fees = config.fees
    if isinstance(fees, FlatFees):
        values = {"borrow_usd": fees.borrow_usd, "repay_usd": fees.repay_usd, "dca_tx_usd": fees.dca_tx_usd}
    elif isinstance(fees, NetworkFees):
        values = {
            "sat_per_vb": fees.sat_per_vb,
            "vbytes_per_tx": fees.vbytes_per_tx,
            "tx_borrow": fees.tx_borrow,
            "tx_repay": fees.tx_repay,
        }
    else:
        problems.append(f"unsupported fee model {type(fees).__name__}")
        values = {}
    for key, value in values.items():
        if value < 0:
            problems.append(f"fees.{key} must be >= 0 (got {value})")
    return problems


def validate_config(config: CoreConfig) -> CoreConfig:
    """Raise ``ConfigError`` listing every out-of-range field."""

    problems = config_problems(config)
    if problems:
        raise ConfigError("Invalid configuration: " + "; ".join(problems))
    return config


__all__ = ["ConfigError", "Defaults", "FEE_MODELS", "config_problems", "validate_config"]
