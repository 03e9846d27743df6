"""Domain layer - pure business models with no external dependencies."""

from portsync.domain.models import (
    Broker,
    PositionType,
    SyncStatus,
    ExpiryReason,
    FnoInstrumentType,
    OptionType,
    BrokerAccount,
    CachedPosition,
    CachedHolding,
    MarketPrice,
    SyncLog,
)

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
