"""Broker account repository protocol."""

from datetime import datetime
from typing import Protocol, Optional

from portsync.domain.models import BrokerAccount, ExpiryReason


class BrokerAccountRepository(Protocol):
    """Interface for broker account data access."""

    def create(self, account: BrokerAccount) -> BrokerAccount:
        """Persist a new broker account."""
        ...

    def get_by_id(self, account_id: str) -> Optional[BrokerAccount]:
        """Retrieve account by ID."""
        ...

    def list_by_user(self, user_id: str, active_only: bool = False) -> list[BrokerAccount]:
        """List a user's accounts."""
        ...

    def list_active(self, offset: int = 0, limit: int = 100) -> list[BrokerAccount]:
        """List one page of active accounts across all users."""
        ...

    def update(self, account: BrokerAccount) -> BrokerAccount:
        """Update an existing account."""
        ...

    def mark_synced(self, account_id: str, synced_at: datetime) -> None:
        """Record a successful sync without touching any other field."""
        ...

    def flag_token(
        self, account_id: str, expiry_reason: ExpiryReason, deactivate: bool = False
    ) -> None:
        """Record why the token stopped working, optionally deactivating the account."""
        ...
