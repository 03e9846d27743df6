"""Domain models package."""

from portsync.domain.models.enums import (
    Broker,
    PositionType,
    SyncStatus,
    ExpiryReason,
    FnoInstrumentType,
    OptionType,
)
from portsync.domain.models.broker_account import BrokerAccount
from portsync.domain.models.position import CachedPosition, CachedHolding
from portsync.domain.models.market_price import MarketPrice
from portsync.domain.models.sync_log import SyncLog

__all__ = [
    "Broker",
    "PositionType",
    "SyncStatus",
    "ExpiryReason",
    "FnoInstrumentType",
    "OptionType",
    "BrokerAccount",
    "CachedPosition",
    "CachedHolding",
    "MarketPrice",
    "SyncLog",
]
