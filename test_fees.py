import pytest

from debtdca.fees import EventKind, compute_event_fee, network_fee_usd
from debtdca.types import FlatFees, NetworkFees


def test_network_fee_converts_sats_at_spot_price():
    # 20 sat/vB * 180 vB = 3,600 sats = 0.000036 coin
    assert network_fee_usd(20, 180, 1, 50_000.0) == pytest.approx(1.8)
    assert network_fee_usd(20, 180, 0, 50_000.0) == 0.0


def test_network_model_uses_per_event_transaction_counts():
    model = NetworkFees(sat_per_vb=20, vbytes_per_tx=180, tx_borrow=2, tx_repay=1)

    assert compute_event_fee(model, EventKind.BORROW, 50_000.0) == pytest.approx(3.6)
    assert compute_event_fee(model, EventKind.REPAY, 50_000.0) == pytest.approx(1.8)
    assert compute_event_fee(model, "dca_buy", 50_000.0, tx_count=3) == pytest.approx(5.4)


def test_flat_model_ignores_price():
    model = FlatFees(borrow_usd=5.0, repay_usd=7.0, dca_tx_usd=1.5)

    assert compute_event_fee(model, "borrow", 10.0) == 5.0
    assert compute_event_fee(model, "repay", 99_999.0) == 7.0
    assert compute_event_fee(model, EventKind.DCA_BUY, 10.0, tx_count=2) == 3.0


def test_unknown_model_is_rejected():
    with pytest.raises(TypeError):
        compute_event_fee({"borrow_usd": 1.0}, EventKind.BORROW, 100.0)


def test_unknown_event_kind_is_rejected():
    with pytest.raises(ValueError):
        compute_event_fee(FlatFees(1.0, 1.0, 1.0), "liquidate", 100.0)
