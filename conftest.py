import pytest

pd = pytest.importorskip("pandas")

from debtdca import CalendarPolicy, CoreConfig, FlatFees, SeriesPoint


def daily_series(start, prices):
    dates = pd.date_range(start, periods=len(prices), freq="D")
    return [SeriesPoint(date=d.strftime("%Y-%m-%d"), price=float(p)) for d, p in zip(dates, prices)]


def dated_series(pairs):
    return [SeriesPoint(date=d, price=float(p)) for d, p in pairs]


@pytest.fixture
def make_series():
    return daily_series


@pytest.fixture
def make_config():
    def _make(**overrides):
        values = dict(
            initial_asset=0.0,
            initial_usd=10_000.0,
            apr=0.04,
            max_debt_pct=0.15,
            band=0.02,
            pay_interest_daily=True,
            borrow_to_max=True,
            fees=FlatFees(borrow_usd=0.0, repay_usd=0.0, dca_tx_usd=0.0),
            calendar=CalendarPolicy.PREDICATE,
        )
        values.update(overrides)
        return CoreConfig(**values)

    return _make


@pytest.fixture
def make_dated_series():
    return dated_series
