"""Broker account domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from portsync.domain.models.enums import Broker, ExpiryReason


@dataclass
class BrokerAccount:
    """
    One linked brokerage credential for one user.

    Accounts are deactivated rather than deleted so that sync history keeps
    pointing at a real row.
    """

    account_id: str
    user_id: str
    broker: Broker
    is_active: bool = True
    access_token: Optional[str] = field(default=None, repr=False)
    token_expires_at: Optional[datetime] = None
    expiry_reason: ExpiryReason = ExpiryReason.NONE
    last_successful_sync: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if isinstance(self.broker, str):
            self.broker = Broker(self.broker)
        if isinstance(self.expiry_reason, str):
            self.expiry_reason = ExpiryReason(self.expiry_reason)

    def has_credentials(self) -> bool:
        """Return True if an access token is present."""
        return bool(self.access_token)

    def is_token_expired(self, now: datetime) -> bool:
        """
        Return True if the token can no longer be used.

        A token without a known expiry is treated as expired, as is one the
        broker already reported as expired or revoked.
        """
        if self.expiry_reason != ExpiryReason.NONE:
            return True
        if self.token_expires_at is None:
            return True
        expires_at = self.token_expires_at
        if expires_at.tzinfo is None and now.tzinfo is not None:
            now = now.replace(tzinfo=None)
        elif expires_at.tzinfo is not None and now.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=None)
        return now >= expires_at
