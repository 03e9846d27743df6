"""View models for sync and manual refresh outcomes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from portsync.core.exceptions import BrokerError
from portsync.domain.models import Broker, SyncLog, SyncStatus


class SyncState(str, Enum):
    """Terminal state of one account sync attempt."""

    SKIPPED = "SKIPPED"  # lock busy; nothing ran
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


@dataclass
class AccountSyncResult:
    """Result of syncing one broker account."""

    account_id: str
    broker: Optional[Broker]
    state: SyncState
    sync_log: Optional[SyncLog] = None
    error: Optional[BrokerError] = None

    @classmethod
    def skipped(cls, account_id: str, broker: Optional[Broker]) -> "AccountSyncResult":
        return cls(account_id=account_id, broker=broker, state=SyncState.SKIPPED)

    @classmethod
    def failed(cls, account_id: str, broker: Optional[Broker]) -> "AccountSyncResult":
        """Result for a sync that raised before it could return its log."""
        return cls(account_id=account_id, broker=broker, state=SyncState.FAILED)

    @classmethod
    def from_log(cls, sync_log: SyncLog, error: Optional[BrokerError] = None) -> "AccountSyncResult":
        return cls(
            account_id=sync_log.account_id,
            broker=sync_log.broker,
            state=SyncState(sync_log.status.value),
            sync_log=sync_log,
            error=error,
        )

    @property
    def requires_reauth(self) -> bool:
        """True when the failure means the user must log in to the broker again."""
        if self.error is not None:
            return self.error.token_expired
        return self.sync_log is not None and self.sync_log.token_expired

    @property
    def succeeded(self) -> bool:
        return self.state == SyncState.SUCCESS


@dataclass
class BulkSyncResult:
    """Result of a full sync over all active accounts."""

    busy: bool = False
    market_closed: bool = False
    # Off-hours run skipped because the session is live
    market_open: bool = False
    results: list[AccountSyncResult] = field(default_factory=list)

    @property
    def ran(self) -> bool:
        return not (self.busy or self.market_closed or self.market_open)

    def count(self, state: SyncState) -> int:
        return sum(1 for r in self.results if r.state == state)


class RefreshOutcome(str, Enum):
    """Per-account outcome of a manual refresh."""

    REFRESHED = "REFRESHED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass
class AccountRefreshOutcome:
    """What happened to one account during a manual refresh."""

    account_id: str
    broker: str
    outcome: RefreshOutcome
    message: str = ""
    status: Optional[SyncStatus] = None
    requires_reauth: bool = False


@dataclass
class ManualRefreshResponse:
    """User-facing summary of a manual refresh."""

    accepted: bool
    message: str
    accounts: list[AccountRefreshOutcome] = field(default_factory=list)

    def _brokers(self, outcome: RefreshOutcome) -> list[str]:
        return [a.broker for a in self.accounts if a.outcome == outcome]

    @property
    def refreshed_brokers(self) -> list[str]:
        return self._brokers(RefreshOutcome.REFRESHED)

    @property
    def skipped_brokers(self) -> list[str]:
        return self._brokers(RefreshOutcome.SKIPPED)

    @property
    def failed_brokers(self) -> list[str]:
        return self._brokers(RefreshOutcome.FAILED)

    @property
    def requires_reauth(self) -> bool:
        return any(a.requires_reauth for a in self.accounts)
