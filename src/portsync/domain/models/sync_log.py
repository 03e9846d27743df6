"""Sync audit log model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from portsync.domain.models.enums import Broker, ExpiryReason, SyncStatus


@dataclass(frozen=True)
class SyncLog:
    """
    Audit record of one sync attempt.

    Append-only: one record per attempt, never mutated after it is written.
    """

    log_id: str
    account_id: str
    user_id: str
    broker: Optional[Broker]
    started_at: datetime
    finished_at: datetime
    status: SyncStatus
    message: str = ""
    error_detail: Optional[str] = None
    expiry_reason: ExpiryReason = ExpiryReason.NONE
    positions_written: int = 0
    holdings_written: int = 0

    @property
    def duration_ms(self) -> int:
        return int((self.finished_at - self.started_at).total_seconds() * 1000)

    @property
    def token_expired(self) -> bool:
        return self.expiry_reason != ExpiryReason.NONE
