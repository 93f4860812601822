import pytest

pd = pytest.importorskip("pandas")

from debtdca import PriceDataError
from debtdca.dca import dca_timeline, simulate_dca
from debtdca.fees import network_fee_usd
from debtdca.types import CADENCES, CalendarPolicy, DcaOptions, FlatFees, NetworkFees


def test_daily_budget_split_evenly(make_series, make_config):
    prices = [100.0 + i for i in range(30)]
    series = make_series("2021-04-01", prices)

    result = simulate_dca(series, make_config(initial_usd=0.0), "daily", 3000.0)

    assert result.buys == 30
    assert result.spent_usd == 3000.0
    assert result.fees_usd == 0.0
    assert result.asset_final == pytest.approx(sum(100.0 / p for p in prices))
    assert result.final_value_usd == pytest.approx(result.asset_final * prices[-1])


def test_flat_fee_comes_out_of_each_slice(make_series, make_config):
    prices = [100.0 + i for i in range(30)]
    series = make_series("2021-04-01", prices)
    config = make_config(initial_usd=0.0, fees=FlatFees(borrow_usd=0.0, repay_usd=0.0, dca_tx_usd=0.5))

    result = simulate_dca(series, config, "daily", 3000.0, DcaOptions(include_fees=True, tx_count=2))

    assert result.fees_usd == pytest.approx(30.0)
    assert result.spent_usd == 3000.0
    assert result.asset_final == pytest.approx(sum(99.0 / p for p in prices))


def test_network_fee_priced_on_buy_day(make_series, make_config):
    prices = [20_000.0 + 100.0 * i for i in range(10)]
    series = make_series("2022-01-01", prices)
    fees = NetworkFees(sat_per_vb=20, vbytes_per_tx=180, tx_borrow=1, tx_repay=1)

    result = simulate_dca(series, make_config(initial_usd=0.0, fees=fees), "daily", 1000.0, DcaOptions(include_fees=True))

    expected_fees = [network_fee_usd(20, 180, 1, p) for p in prices]
    assert result.fees_usd == pytest.approx(sum(expected_fees))
    assert result.asset_final == pytest.approx(sum((100.0 - f) / p for f, p in zip(expected_fees, prices)))


def test_fees_larger_than_slice_buy_nothing(make_series, make_config):
    series = make_series("2021-04-01", [100.0] * 10)
    config = make_config(initial_usd=500.0, fees=FlatFees(0.0, 0.0, 250.0))

    result = simulate_dca(series, config, "daily", 1000.0, DcaOptions(include_fees=True))

    assert result.asset_final == pytest.approx(5.0)
    assert result.buys == 10
    assert result.spent_usd == 1000.0


def test_fees_ignored_unless_enabled(make_series, make_config):
    series = make_series("2021-04-01", [100.0] * 10)
    config = make_config(initial_usd=0.0, fees=FlatFees(0.0, 0.0, 5.0))

    result = simulate_dca(series, config, "daily", 1000.0)

    assert result.fees_usd == 0.0
    assert result.asset_final == pytest.approx(10.0)


def test_no_action_days_keeps_initial_holdings(make_series, make_config):
    series = make_series("2024-03-03", [50.0] * 10)
    config = make_config(initial_asset=1.0, initial_usd=1000.0)

    result = simulate_dca(series, config, "yearly", 750.0)

    assert result.buys == 0
    assert result.asset_final == pytest.approx(21.0)
    assert result.spent_usd == 750.0
    assert result.fees_usd == 0.0


@pytest.mark.parametrize("cadence", CADENCES)
@pytest.mark.parametrize("policy", list(CalendarPolicy))
@pytest.mark.parametrize("include_fees", [False, True])
def test_spent_always_equals_budget(make_series, make_config, cadence, policy, include_fees):
    series = make_series("2019-11-20", [8000.0 + 10.0 * i for i in range(400)])
    config = make_config(calendar=policy, fees=NetworkFees(30, 180, 1, 1))

    result = simulate_dca(series, config, cadence, 1234.56, DcaOptions(include_fees=include_fees))

    assert result.spent_usd == 1234.56


def test_snapped_policy_buys_on_sparse_series(make_dated_series, make_config):
    series = make_dated_series(
        [("2024-01-25", 100), ("2024-01-28", 100), ("2024-02-02", 200), ("2024-02-10", 200), ("2024-03-05", 200)]
    )
    config = make_config(initial_usd=0.0, calendar=CalendarPolicy.SNAPPED)

    result = simulate_dca(series, config, "monthly", 300.0)

    assert result.buys == 3
    assert result.asset_final == pytest.approx(1.0 + 0.5 + 0.5)


def test_timeline_tracks_holdings(make_series, make_config):
    series = make_series("2024-01-01", [10.0] * 40)

    frame = dca_timeline(series, make_config(initial_usd=0.0), "monthly", 200.0)

    assert list(frame.columns) == ["date", "price", "asset"]
    assert len(frame) == 40
    assert frame["asset"].iloc[0] == pytest.approx(10.0)
    assert frame["asset"].iloc[30] == pytest.approx(10.0)
    assert frame["asset"].iloc[31] == pytest.approx(20.0)


def test_empty_series_rejected(make_config):
    with pytest.raises(PriceDataError):
        simulate_dca([], make_config(), "daily", 100.0)


def test_repeated_runs_are_identical(make_series, make_config):
    series = make_series("2020-12-15", [30_000.0 + 250.0 * ((i * 7) % 13) for i in range(200)])
    config = make_config(calendar=CalendarPolicy.SNAPPED, fees=NetworkFees(25, 180, 1, 1))
    options = DcaOptions(include_fees=True, tx_count=2)

    first = simulate_dca(series, config, "weekly", 4321.0, options)
    second = simulate_dca(series, config, "weekly", 4321.0, options)

    assert first == second
    assert first.buys > 0
