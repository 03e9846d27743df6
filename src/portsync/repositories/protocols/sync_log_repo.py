"""Sync log repository protocol."""

from typing import Protocol, Optional

from portsync.domain.models import SyncLog, SyncStatus


class SyncLogRepository(Protocol):
    """Interface for the append-only sync audit log."""

    def append(self, log: SyncLog) -> SyncLog:
        """Persist a new log record."""
        ...

    def list_by_account(self, account_id: str, limit: int = 50) -> list[SyncLog]:
        """List an account's logs, newest first."""
        ...

    def latest_for_user(
        self, user_id: str, status: Optional[SyncStatus] = None
    ) -> Optional[SyncLog]:
        """Most recent log across all of a user's accounts, optionally by status."""
        ...
