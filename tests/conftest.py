"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from fire_gateway.api.main import create_app
from fire_gateway.infrastructure.cache.rate_cache import RateCache
from fire_gateway.infrastructure.cache.stats_cache import StatsCache
from fire_gateway.infrastructure.database.models import Asset, Base, Debt, Flow, UserPreferences
from fire_gateway.infrastructure.database.session import build_engine, get_db
from fire_gateway.domain.models import RateSnapshot, SecurityPrice
from fire_gateway.utils.date_utils import add_months, utc_today


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_RATES = {"eur": Decimal("0.9"), "gbp": Decimal("0.8"), "jpy": Decimal("150")}


class FakeRateSource:
    """Stands in for ExchangeRateClient.fetch_current_rates"""

    def __init__(self, rates=None):
        self.rates = dict(TEST_RATES if rates is None else rates)
        self.calls = 0

    async def __call__(self) -> RateSnapshot:
        self.calls += 1
        return RateSnapshot(date=utc_today().isoformat(), rates=self.rates)


class FakeMarketClient:
    """Every ticker trades at 100 USD and grew 7% a year"""

    def __init__(self, price=Decimal("100"), growth=Decimal("0.07")):
        self.price = price
        self.growth = growth

    async def fetch_security_price(self, ticker):
        if self.price is None:
            return None
        return SecurityPrice(price=self.price, currency="usd")

    async def fetch_historical_growth(self, ticker, years):
        return self.growth


def month_start(months_ago: int) -> date:
    today = utc_today()
    return add_months(date(today.year, today.month, 1), -months_ago)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def rate_source() -> FakeRateSource:
    return FakeRateSource()


@pytest.fixture
def client(db: Session, rate_source: FakeRateSource) -> TestClient:
    """Create FastAPI test client with test database and fake upstreams"""
    app = create_app()
    app.state.rate_cache = RateCache(rate_source)
    app.state.stats_cache = StatsCache(ttl_seconds=60)
    app.state.market_client = FakeMarketClient()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def seeded_scope(db: Session) -> str:
    """
    Six months of history for user_1:
    - 100 USD dividends and 1,000 USD living expenses each month
    - 50,000 USD savings and 10 shares of a stock
    - 10,000 USD car loan at 5% paying 500 a month
    """
    belong_id = "user_1"
    db.add(UserPreferences(user_id=belong_id, preferred_currency="USD"))

    for months_ago in range(6):
        db.add(
            Flow(
                belong_id=belong_id,
                type="income",
                amount=Decimal("100"),
                currency="USD",
                date=month_start(months_ago),
                category="dividend",
            )
        )
        db.add(
            Flow(
                belong_id=belong_id,
                type="expense",
                amount=Decimal("1000"),
                currency="USD",
                date=month_start(months_ago),
                category="groceries",
            )
        )

    db.add(Asset(id="asset_savings", belong_id=belong_id, name="Savings", type="savings",
                 balance=Decimal("50000"), currency="USD"))
    db.add(Asset(id="asset_stock", belong_id=belong_id, name="Index fund", type="stock", ticker="VTI",
                 balance=Decimal("10"), currency="USD"))
    db.add(
        Debt(
            id="debt_car",
            belong_id=belong_id,
            name="Car loan",
            debt_type="car",
            currency="USD",
            principal=Decimal("15000"),
            interest_rate=Decimal("0.05"),
            current_balance=Decimal("10000"),
            monthly_payment=Decimal("500"),
        )
    )
    db.commit()
    return belong_id
