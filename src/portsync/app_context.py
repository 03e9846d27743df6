"""Application context for in-process service management.

Wires settings, the database, providers and services together so an
embedding application can use the engine without any HTTP layer.
"""

import logging
from typing import Iterable, Optional

from portsync.brokers import BrokerClient, BrokerClientRegistry
from portsync.config.logging_config import setup_logging
from portsync.config.settings import Settings, set_settings, get_settings
from portsync.core.exceptions import ValidationError
from portsync.providers import (
    NseExchangeCalendar,
    QuoteProvider,
    StubQuoteProvider,
    YFinanceQuoteProvider,
)
from portsync.repositories.sqlalchemy import (
    get_scoped_session,
    init_db_with_url,
    reset_database,
    SqlAlchemyBrokerAccountRepository,
    SqlAlchemyPositionRepository,
    SqlAlchemyHoldingRepository,
    SqlAlchemySyncLogRepository,
)
from portsync.services import (
    MarketPriceCache,
    MarketDataService,
    SyncSafetyService,
    PortfolioSyncService,
    FnoPositionService,
    PortfolioSummaryService,
    PortfolioSyncScheduler,
)

logger = logging.getLogger(__name__)


def build_quote_provider(settings: Settings) -> QuoteProvider:
    """Create the upstream quote provider named in settings."""
    name = settings.quote_provider.lower()
    if name == "stub":
        return StubQuoteProvider()
    if name == "yfinance":
        return YFinanceQuoteProvider(symbol_suffix=settings.yfinance_symbol_suffix)
    raise ValidationError(f"Unknown quote provider: {settings.quote_provider}")


class AppContext:
    """
    Application context providing in-process access to all services.

    Services are created lazily on first access and then shared. The price
    cache and the sync locks live here, so every caller in the process sees
    the same cache and the same locks.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        broker_clients: Optional[Iterable[BrokerClient]] = None,
        quote_provider: Optional[QuoteProvider] = None,
    ):
        """
        Initialize application context.

        Args:
            settings: Settings to install globally. Uses current settings if omitted.
            broker_clients: Broker API clients to register.
            quote_provider: Overrides the provider selected by settings.
        """
        if settings is not None:
            set_settings(settings)
        self._broker_registry = BrokerClientRegistry(broker_clients)
        self._quote_provider = quote_provider
        self._initialized = False

        self._session = None
        self._market_data_service: Optional[MarketDataService] = None
        self._safety_service: Optional[SyncSafetyService] = None
        self._sync_service: Optional[PortfolioSyncService] = None
        self._fno_service: Optional[FnoPositionService] = None
        self._summary_service: Optional[PortfolioSummaryService] = None
        self._scheduler: Optional[PortfolioSyncScheduler] = None

    def initialize(self) -> None:
        """Configure logging, create the database schema and reset service instances."""
        settings = get_settings()
        setup_logging()
        reset_database()
        init_db_with_url(settings.database_url)

        self._session = None
        self._market_data_service = None
        self._safety_service = None
        self._sync_service = None
        self._fno_service = None
        self._summary_service = None
        self._scheduler = None

        self._initialized = True
        logger.info("%s %s initialized", settings.app_name, settings.app_version)

    @property
    def is_initialized(self) -> bool:
        """Check if context is initialized."""
        return self._initialized

    @property
    def broker_registry(self) -> BrokerClientRegistry:
        return self._broker_registry

    def register_broker_client(self, client: BrokerClient) -> None:
        """Register a broker API client."""
        self._broker_registry.register(client)

    def _get_session(self):
        """Get the thread-local session registry."""
        if not self._initialized:
            self.initialize()
        if self._session is None:
            self._session = get_scoped_session()
        return self._session

    # Repository accessors
    @property
    def account_repo(self) -> SqlAlchemyBrokerAccountRepository:
        return SqlAlchemyBrokerAccountRepository(self._get_session())

    @property
    def position_repo(self) -> SqlAlchemyPositionRepository:
        return SqlAlchemyPositionRepository(self._get_session())

    @property
    def holding_repo(self) -> SqlAlchemyHoldingRepository:
        return SqlAlchemyHoldingRepository(self._get_session())

    @property
    def sync_log_repo(self) -> SqlAlchemySyncLogRepository:
        return SqlAlchemySyncLogRepository(self._get_session())

    # Service accessors
    @property
    def market_data(self) -> MarketDataService:
        """Get the MarketDataService instance."""
        if self._market_data_service is None:
            settings = get_settings()
            calendar = NseExchangeCalendar(
                timezone=settings.exchange_timezone,
                open_time=settings.market_open_time,
                close_time=settings.market_close_time,
                holidays=settings.market_holidays,
            )
            self._market_data_service = MarketDataService(
                provider=self._quote_provider or build_quote_provider(settings),
                calendar=calendar,
                cache=MarketPriceCache(),
                ttl_open_seconds=settings.price_ttl_open_seconds,
                ttl_closed_seconds=settings.price_ttl_closed_seconds,
                max_stale_minutes=settings.max_stale_minutes,
                fetch_timeout_seconds=settings.quote_fetch_timeout_seconds,
                warmup_max_workers=settings.warmup_max_workers,
            )
        return self._market_data_service

    @property
    def safety(self) -> SyncSafetyService:
        """Get the SyncSafetyService instance."""
        if self._safety_service is None:
            self._safety_service = SyncSafetyService(self.market_data)
        return self._safety_service

    @property
    def sync(self) -> PortfolioSyncService:
        """Get the PortfolioSyncService instance."""
        if self._sync_service is None:
            self._sync_service = PortfolioSyncService(
                account_repo=self.account_repo,
                position_repo=self.position_repo,
                holding_repo=self.holding_repo,
                sync_log_repo=self.sync_log_repo,
                broker_registry=self._broker_registry,
                safety_service=self.safety,
                market_data_service=self.market_data,
                page_size=get_settings().sync_page_size,
            )
        return self._sync_service

    @property
    def fno(self) -> FnoPositionService:
        """Get the FnoPositionService instance."""
        if self._fno_service is None:
            self._fno_service = FnoPositionService(
                position_repo=self.position_repo,
                market_data_service=self.market_data,
            )
        return self._fno_service

    @property
    def summary(self) -> PortfolioSummaryService:
        """Get the PortfolioSummaryService instance."""
        if self._summary_service is None:
            self._summary_service = PortfolioSummaryService(
                holding_repo=self.holding_repo,
                sync_log_repo=self.sync_log_repo,
                market_data_service=self.market_data,
                fno_position_service=self.fno,
            )
        return self._summary_service

    @property
    def scheduler(self) -> PortfolioSyncScheduler:
        """Get the PortfolioSyncScheduler instance."""
        if self._scheduler is None:
            settings = get_settings()
            self._scheduler = PortfolioSyncScheduler(
                sync_service=self.sync,
                safety_service=self.safety,
                market_hours_interval_seconds=settings.market_hours_interval_seconds,
                off_hours_interval_seconds=settings.off_hours_interval_seconds,
                off_hours_stale_minutes=settings.off_hours_stale_minutes,
            )
        return self._scheduler

    def close(self) -> None:
        """Clean up resources."""
        if self._scheduler is not None:
            self._scheduler.stop()
        if self._market_data_service is not None:
            self._market_data_service.close()
        if self._session is not None:
            self._session.remove()
            self._session = None


# Global application context (one per process)
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: AppContext) -> None:
    """Set the global application context."""
    global _app_context
    _app_context = context
