"""
Pytest configuration and fixtures for portfolio sync engine tests.

This module provides:
- In-memory SQLite database fixtures
- A controllable clock and exchange calendar
- Deterministic and failing quote providers
- Fake broker clients
- Service and repository fixtures
- Factory helpers for broker accounts
"""

import threading
import uuid
from collections import Counter
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

import pytest
import pytz
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session

from portsync.repositories.sqlalchemy.database import Base
# Import ORM models to register them with Base before creating tables
from portsync.repositories.sqlalchemy import orm_models  # noqa: F401
from portsync.repositories.sqlalchemy import (
    SqlAlchemyBrokerAccountRepository,
    SqlAlchemyPositionRepository,
    SqlAlchemyHoldingRepository,
    SqlAlchemySyncLogRepository,
)
from portsync.brokers import BrokerClientRegistry, RawPosition, RawHolding
from portsync.core.exceptions import BrokerError
from portsync.domain.models import Broker, BrokerAccount, PositionType
from portsync.domain.views import Quote
from portsync.services import (
    MarketPriceCache,
    MarketDataService,
    SyncSafetyService,
    PortfolioSyncService,
    FnoPositionService,
    PortfolioSummaryService,
)
from portsync.config.settings import reset_settings


IST_TZ = pytz.timezone("Asia/Kolkata")


# =============================================================================
# TIME HELPERS
# =============================================================================


def ist_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 11,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in Asia/Kolkata."""
    return IST_TZ.localize(datetime(year, month, day, hour, minute, second))


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FixedCalendar:
    """Exchange calendar whose open/closed state is set by the test."""

    def __init__(self, is_open: bool = True):
        self.is_open = is_open

    def is_open_at(self, ts: datetime) -> bool:
        return self.is_open


@pytest.fixture
def fixed_now() -> datetime:
    """Monday 2024-01-15 11:00 IST, inside the trading session."""
    return ist_datetime(2024, 1, 15, 11, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now)


@pytest.fixture
def calendar() -> FixedCalendar:
    return FixedCalendar(is_open=True)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def account_repo(test_session) -> SqlAlchemyBrokerAccountRepository:
    """Provide test BrokerAccountRepository."""
    return SqlAlchemyBrokerAccountRepository(test_session)


@pytest.fixture
def position_repo(test_session) -> SqlAlchemyPositionRepository:
    """Provide test PositionRepository."""
    return SqlAlchemyPositionRepository(test_session)


@pytest.fixture
def holding_repo(test_session) -> SqlAlchemyHoldingRepository:
    """Provide test HoldingRepository."""
    return SqlAlchemyHoldingRepository(test_session)


@pytest.fixture
def sync_log_repo(test_session) -> SqlAlchemySyncLogRepository:
    """Provide test SyncLogRepository."""
    return SqlAlchemySyncLogRepository(test_session)


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


class DeterministicQuoteProvider:
    """
    Deterministic quote provider for testing.

    Provides fixed quotes with no randomness and counts upstream calls per
    symbol. Unknown symbols raise LookupError like a real provider would.
    """

    FIXED_QUOTES = {
        "RELIANCE": (Decimal("2945.60"), Decimal("2931.15")),
        "TCS": (Decimal("3987.25"), Decimal("3990.40")),
        "INFY": (Decimal("1612.80"), Decimal("1598.55")),
        "NIFTY24JANFUT": (Decimal("21600.00"), Decimal("21550.00")),
        "BANKNIFTY24JAN48000CE": (Decimal("412.50"), Decimal("398.25")),
    }

    def __init__(self, as_of: Optional[datetime] = None):
        self._as_of = as_of or ist_datetime(2024, 1, 15, 11, 0, 0)
        self._lock = threading.Lock()
        self.quotes = dict(self.FIXED_QUOTES)
        self.calls: Counter = Counter()

    def fetch_quote(self, symbol: str) -> Quote:
        upper_symbol = symbol.upper()
        with self._lock:
            self.calls[upper_symbol] += 1
        if upper_symbol not in self.quotes:
            raise LookupError(f"No quote for {upper_symbol}")
        last_price, prev_close = self.quotes[upper_symbol]
        return Quote(
            symbol=upper_symbol,
            last_price=last_price,
            prev_close=prev_close,
            as_of=self._as_of,
        )

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


class FailingQuoteProvider:
    """Quote provider that always raises an exception."""

    def __init__(self):
        self.calls = 0

    def fetch_quote(self, symbol: str) -> Quote:
        self.calls += 1
        raise ConnectionError("Network unavailable")


class GatedQuoteProvider(DeterministicQuoteProvider):
    """Deterministic provider that blocks every fetch until the test opens the gate."""

    def __init__(self, as_of: Optional[datetime] = None):
        super().__init__(as_of)
        self.gate = threading.Event()
        self.entered = threading.Event()

    def fetch_quote(self, symbol: str) -> Quote:
        self.entered.set()
        self.gate.wait(timeout=5)
        return super().fetch_quote(symbol)


@pytest.fixture
def quote_provider(fixed_now) -> DeterministicQuoteProvider:
    """Provide deterministic quote provider."""
    return DeterministicQuoteProvider(as_of=fixed_now)


@pytest.fixture
def failing_provider() -> FailingQuoteProvider:
    """Provide a quote provider that always fails."""
    return FailingQuoteProvider()


@pytest.fixture
def price_cache() -> MarketPriceCache:
    return MarketPriceCache()


@pytest.fixture
def market_data_service(quote_provider, calendar, price_cache, clock) -> MarketDataService:
    """Provide test MarketDataService with deterministic provider."""
    service = MarketDataService(
        provider=quote_provider,
        calendar=calendar,
        cache=price_cache,
        ttl_open_seconds=15,
        ttl_closed_seconds=1800,
        max_stale_minutes=1440,
        fetch_timeout_seconds=5,
        clock=clock,
    )
    yield service
    service.close()


# =============================================================================
# BROKER FIXTURES
# =============================================================================


class FakeBrokerClient:
    """
    Broker client returning canned positions and holdings.

    ``positions_error`` / ``holdings_error`` make the matching fetch raise.
    ``fail_accounts`` maps account_id -> error raised by both fetches for that
    account only.
    """

    def __init__(
        self,
        broker: Broker = Broker.ZERODHA,
        positions: Optional[list[RawPosition]] = None,
        holdings: Optional[list[RawHolding]] = None,
        positions_error: Optional[Exception] = None,
        holdings_error: Optional[Exception] = None,
    ):
        self.broker = broker
        self.positions = positions if positions is not None else []
        self.holdings = holdings if holdings is not None else []
        self.positions_error = positions_error
        self.holdings_error = holdings_error
        self.fail_accounts: dict[str, Exception] = {}
        self.position_calls: list[str] = []
        self.holding_calls: list[str] = []

    def fetch_positions(self, account: BrokerAccount) -> list[RawPosition]:
        self.position_calls.append(account.account_id)
        if account.account_id in self.fail_accounts:
            raise self.fail_accounts[account.account_id]
        if self.positions_error is not None:
            raise self.positions_error
        return list(self.positions)

    def fetch_holdings(self, account: BrokerAccount) -> list[RawHolding]:
        self.holding_calls.append(account.account_id)
        if account.account_id in self.fail_accounts:
            raise self.fail_accounts[account.account_id]
        if self.holdings_error is not None:
            raise self.holdings_error
        return list(self.holdings)

    @property
    def call_count(self) -> int:
        return len(self.position_calls) + len(self.holding_calls)


def broker_error(
    message: str = "Broker unavailable",
    broker: Broker = Broker.ZERODHA,
    **kwargs,
) -> BrokerError:
    return BrokerError(message, broker=broker, **kwargs)


@pytest.fixture
def sample_positions() -> list[RawPosition]:
    return [
        RawPosition(
            symbol="NIFTY24JANFUT",
            quantity=Decimal("50"),
            buy_price=Decimal("21500.00"),
            position_type=PositionType.FNO,
        ),
        RawPosition(
            symbol="RELIANCE",
            quantity=Decimal("10"),
            buy_price=Decimal("2900.00"),
            position_type=PositionType.EQUITY,
        ),
    ]


@pytest.fixture
def sample_holdings() -> list[RawHolding]:
    return [
        RawHolding(symbol="TCS", quantity=Decimal("5"), average_buy_price=Decimal("3800.00")),
        RawHolding(symbol="INFY", quantity=Decimal("20"), average_buy_price=Decimal("1500.00")),
    ]


@pytest.fixture
def broker_client(sample_positions, sample_holdings) -> FakeBrokerClient:
    return FakeBrokerClient(
        broker=Broker.ZERODHA,
        positions=sample_positions,
        holdings=sample_holdings,
    )


@pytest.fixture
def broker_registry(broker_client) -> BrokerClientRegistry:
    return BrokerClientRegistry([broker_client])


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def safety_service(market_data_service) -> SyncSafetyService:
    """Provide test SyncSafetyService."""
    return SyncSafetyService(market_data_service)


@pytest.fixture
def sync_service(
    account_repo,
    position_repo,
    holding_repo,
    sync_log_repo,
    broker_registry,
    safety_service,
    market_data_service,
    clock,
) -> PortfolioSyncService:
    """Provide test PortfolioSyncService."""
    return PortfolioSyncService(
        account_repo=account_repo,
        position_repo=position_repo,
        holding_repo=holding_repo,
        sync_log_repo=sync_log_repo,
        broker_registry=broker_registry,
        safety_service=safety_service,
        market_data_service=market_data_service,
        page_size=2,
        clock=clock,
    )


@pytest.fixture
def fno_service(position_repo, market_data_service) -> FnoPositionService:
    """Provide test FnoPositionService."""
    return FnoPositionService(
        position_repo=position_repo,
        market_data_service=market_data_service,
    )


@pytest.fixture
def summary_service(
    holding_repo,
    sync_log_repo,
    market_data_service,
    fno_service,
) -> PortfolioSummaryService:
    """Provide test PortfolioSummaryService."""
    return PortfolioSummaryService(
        holding_repo=holding_repo,
        sync_log_repo=sync_log_repo,
        market_data_service=market_data_service,
        fno_position_service=fno_service,
    )


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def account_factory(account_repo, fixed_now) -> Callable[..., BrokerAccount]:
    """Factory for creating persisted broker accounts with a valid token."""

    def _create_account(
        user_id: str = "user-1",
        broker: Broker = Broker.ZERODHA,
        account_id: Optional[str] = None,
        is_active: bool = True,
        access_token: Optional[str] = "token-abc",
        token_expires_at: Optional[datetime] = None,
        last_successful_sync: Optional[datetime] = None,
    ) -> BrokerAccount:
        account = BrokerAccount(
            account_id=account_id or f"acc-{uuid.uuid4().hex[:8]}",
            user_id=user_id,
            broker=broker,
            is_active=is_active,
            access_token=access_token,
            token_expires_at=token_expires_at or fixed_now + timedelta(hours=8),
            last_successful_sync=last_successful_sync,
        )
        return account_repo.create(account)

    return _create_account
