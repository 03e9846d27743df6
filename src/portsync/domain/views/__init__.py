"""View models for service outputs."""

from portsync.domain.views.portfolio import (
    Quote,
    FnoDetails,
    FnoPositionView,
    FnoSummaryView,
    HoldingView,
    PortfolioSummaryView,
)
from portsync.domain.views.sync import (
    SyncState,
    AccountSyncResult,
    BulkSyncResult,
    RefreshOutcome,
    AccountRefreshOutcome,
    ManualRefreshResponse,
)

__all__ = [
    "Quote",
    "FnoDetails",
    "FnoPositionView",
    "FnoSummaryView",
    "HoldingView",
    "PortfolioSummaryView",
    "SyncState",
    "AccountSyncResult",
    "BulkSyncResult",
    "RefreshOutcome",
    "AccountRefreshOutcome",
    "ManualRefreshResponse",
]
