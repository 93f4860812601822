"""Fee model for borrow, repay and DCA buy events."""

from __future__ import annotations

from enum import Enum
from typing import Union

from .types import FeeModel, FlatFees, NetworkFees

SATS_PER_COIN = 1e8


class EventKind(str, Enum):
    BORROW = "borrow"
    REPAY = "repay"
    DCA_BUY = "dca_buy"


def network_fee_usd(sat_per_vb: float, vbytes: float, tx_count: float, price: float) -> float:
    """USD cost of ``tx_count`` transactions of ``vbytes`` at ``sat_per_vb``.

    fee_sats = sat_per_vb * vbytes * tx_count
    fee_usd  = fee_sats / 1e8 * price
    """

    sats = sat_per_vb * vbytes * tx_count
    return (sats / SATS_PER_COIN) * price


def compute_event_fee(
    model: FeeModel,
    kind: Union[EventKind, str],
    price: float,
    *,
    tx_count: int = 1,
) -> float:
    """External-cash fee for one strategy event at ``price``.

    ``tx_count`` only applies to DCA buys; borrow and repay transaction
    counts come from the model itself.
    """

    kind = EventKind(kind)

    if isinstance(model, FlatFees):
        if kind is EventKind.BORROW:
            return float(model.borrow_usd)
        if kind is EventKind.REPAY:
            return float(model.repay_usd)
        return float(model.dca_tx_usd) * tx_count

    if isinstance(model, NetworkFees):
        if kind is EventKind.BORROW:
            count = model.tx_borrow
        elif kind is EventKind.REPAY:
            count = model.tx_repay
        else:
            count = tx_count
        return network_fee_usd(model.sat_per_vb, model.vbytes_per_tx, count, price)

    raise TypeError(f"Unsupported fee model: {type(model).__name__}")


__all__ = ["EventKind", "SATS_PER_COIN", "compute_event_fee", "network_fee_usd"]
