"""Repository layer - data access abstractions and implementations."""

from portsync.repositories.protocols import (
    BrokerAccountRepository,
    PositionRepository,
    HoldingRepository,
    SyncLogRepository,
)

__all__ = [
    "BrokerAccountRepository",
    "PositionRepository",
    "HoldingRepository",
    "SyncLogRepository",
]
