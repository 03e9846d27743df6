"""Repository protocol definitions (interfaces)."""

from portsync.repositories.protocols.broker_account_repo import BrokerAccountRepository
from portsync.repositories.protocols.position_repo import PositionRepository, HoldingRepository
from portsync.repositories.protocols.sync_log_repo import SyncLogRepository

__all__ = [
    "BrokerAccountRepository",
    "PositionRepository",
    "HoldingRepository",
    "SyncLogRepository",
]
