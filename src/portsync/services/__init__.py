"""Service layer - sync orchestration, market data and P&L."""

from portsync.services.market_price_cache import MarketPriceCache
from portsync.services.market_data_service import MarketDataService
from portsync.services.sync_safety_service import SyncSafetyService
from portsync.services.portfolio_sync_service import PortfolioSyncService
from portsync.services.fno_symbols import parse_fno_symbol
from portsync.services.fno_position_service import FnoPositionService
from portsync.services.portfolio_summary_service import PortfolioSummaryService
from portsync.services.sync_scheduler import PortfolioSyncScheduler

__all__ = [
    "MarketPriceCache",
    "MarketDataService",
    "SyncSafetyService",
    "PortfolioSyncService",
    "parse_fno_symbol",
    "FnoPositionService",
    "PortfolioSummaryService",
    "PortfolioSyncScheduler",
]
