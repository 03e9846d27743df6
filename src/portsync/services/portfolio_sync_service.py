"""Portfolio sync service: pulls broker holdings and positions into the cache."""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from portsync.brokers.base import BrokerClient, RawHolding, RawPosition
from portsync.brokers.registry import BrokerClientRegistry
from portsync.core.exceptions import BrokerError, NotFoundError, UnsupportedBrokerError
from portsync.core.timezone import now_exchange
from portsync.domain.models import (
    BrokerAccount,
    CachedHolding,
    CachedPosition,
    ExpiryReason,
    SyncLog,
    SyncStatus,
)
from portsync.domain.views import (
    AccountRefreshOutcome,
    AccountSyncResult,
    BulkSyncResult,
    ManualRefreshResponse,
    RefreshOutcome,
    SyncState,
)
from portsync.repositories.protocols import (
    BrokerAccountRepository,
    HoldingRepository,
    PositionRepository,
    SyncLogRepository,
)
from portsync.services.market_data_service import MarketDataService
from portsync.services.sync_safety_service import SyncSafetyService

logger = logging.getLogger(__name__)

# Token failures after which the link is unusable until the user reconnects
_DEACTIVATING_REASONS = frozenset({ExpiryReason.REVOKED, ExpiryReason.INVALID_SCOPE})


def _broker_name(account: BrokerAccount) -> str:
    return account.broker.value if account.broker else "UNKNOWN"


class PortfolioSyncService:
    """
    Orchestrates broker syncs.

    Each account sync runs under that account's try-lock; a full sync over
    all accounts additionally holds the global lock. Holdings and positions
    for an account are replaced wholesale, and every attempt that gets past
    the lock leaves exactly one SyncLog.
    """

    def __init__(
        self,
        account_repo: BrokerAccountRepository,
        position_repo: PositionRepository,
        holding_repo: HoldingRepository,
        sync_log_repo: SyncLogRepository,
        broker_registry: BrokerClientRegistry,
        safety_service: SyncSafetyService,
        market_data_service: Optional[MarketDataService] = None,
        page_size: int = 100,
        clock: Callable[[], datetime] = now_exchange,
    ):
        self._accounts = account_repo
        self._positions = position_repo
        self._holdings = holding_repo
        self._sync_logs = sync_log_repo
        self._brokers = broker_registry
        self._safety = safety_service
        self._market_data = market_data_service
        self._page_size = page_size
        self._clock = clock

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def sync_broker_account(self, account: BrokerAccount) -> AccountSyncResult:
        """
        Sync one account under its account lock.

        Returns a SKIPPED result without calling the broker or writing a log
        when another sync already holds the lock.
        """
        if not self._safety.try_account_lock(account.account_id):
            logger.warning("Sync already running for account %s; skipping", account.account_id)
            return AccountSyncResult.skipped(account.account_id, account.broker)

        try:
            sync_log, error = self._run_full_sync(account)
        finally:
            self._safety.release_account_lock(account.account_id)

        return AccountSyncResult.from_log(sync_log, error)

    def sync_user(self, user_id: str) -> list[AccountSyncResult]:
        """Sync every active account of a user; one failure does not stop the rest."""
        accounts = self._accounts.list_by_user(user_id, active_only=True)
        logger.info("Syncing %d accounts for user %s", len(accounts), user_id)
        return [self._sync_isolated(account) for account in accounts]

    def sync_all_active_accounts(self, respect_market_hours: bool = True) -> BulkSyncResult:
        """
        Sync all active accounts under the global lock.

        With ``respect_market_hours`` (scheduled use) nothing runs while the
        exchange is closed.
        """
        if not self._safety.try_global_sync_lock():
            logger.warning("Global sync already running; skipping")
            return BulkSyncResult(busy=True)

        try:
            if respect_market_hours and not self._safety.is_market_open():
                logger.info("Market is closed; skipping global sync")
                return BulkSyncResult(market_closed=True)

            result = BulkSyncResult()
            for account in self.list_active_accounts():
                result.results.append(self._sync_isolated(account))

            logger.info(
                "Global sync finished: %d accounts, %d success, %d partial, %d failed, %d skipped",
                len(result.results),
                result.count(SyncState.SUCCESS),
                result.count(SyncState.PARTIAL),
                result.count(SyncState.FAILED),
                result.count(SyncState.SKIPPED),
            )
            return result
        finally:
            self._safety.release_global_sync_lock()

    def trigger_manual_refresh_for_user(self, user_id: str) -> ManualRefreshResponse:
        """
        Refresh all of a user's accounts now, regardless of market hours.

        Never raises for a single account's problem: each account is
        reported as refreshed, skipped (with the reason) or failed.
        """
        now = self._clock()
        outcomes: list[AccountRefreshOutcome] = []

        for account in self._accounts.list_by_user(user_id):
            broker = _broker_name(account)

            if not account.is_active:
                outcomes.append(
                    AccountRefreshOutcome(
                        account.account_id, broker, RefreshOutcome.SKIPPED, "Account is inactive"
                    )
                )
                continue
            if not account.has_credentials():
                outcomes.append(
                    AccountRefreshOutcome(
                        account.account_id,
                        broker,
                        RefreshOutcome.SKIPPED,
                        "No credentials available",
                        requires_reauth=True,
                    )
                )
                continue
            if account.is_token_expired(now):
                outcomes.append(
                    AccountRefreshOutcome(
                        account.account_id,
                        broker,
                        RefreshOutcome.SKIPPED,
                        "Token expired",
                        requires_reauth=True,
                    )
                )
                continue

            try:
                result = self.sync_broker_account(account)
            except Exception as exc:
                logger.exception("Manual refresh failed for account %s", account.account_id)
                outcomes.append(
                    AccountRefreshOutcome(
                        account.account_id, broker, RefreshOutcome.FAILED, f"Unexpected error: {exc}"
                    )
                )
                continue

            outcomes.append(self._refresh_outcome(account, broker, result))

        refreshed = [o for o in outcomes if o.outcome == RefreshOutcome.REFRESHED]
        if not outcomes:
            message = "No broker accounts linked."
        elif refreshed:
            message = f"Refreshed {len(refreshed)} of {len(outcomes)} accounts."
        else:
            message = "No accounts refreshed."

        return ManualRefreshResponse(accepted=bool(refreshed), message=message, accounts=outcomes)

    def run_full_sync_for_account(self, account: BrokerAccount) -> SyncLog:
        """
        Fetch, persist and log one account sync. Does no locking.

        The account is re-read from the repository first; NotFoundError if it
        no longer exists. Validation problems and broker failures end in a
        FAILED or PARTIAL SyncLog. Anything unexpected is logged as FAILED
        and re-raised.
        """
        sync_log, _ = self._run_full_sync(account)
        return sync_log

    def get_sync_history(self, account_id: str, limit: int = 50) -> list[SyncLog]:
        """Recent sync logs for an account, newest first."""
        return self._sync_logs.list_by_account(account_id, limit=limit)

    def list_active_accounts(self) -> list[BrokerAccount]:
        """All active accounts, read page by page before any of them is synced."""
        # Snapshot first so accounts deactivated mid-run don't shift later pages
        accounts: list[BrokerAccount] = []
        offset = 0
        while True:
            page = self._accounts.list_active(offset=offset, limit=self._page_size)
            accounts.extend(page)
            if len(page) < self._page_size:
                return accounts
            offset += self._page_size

    # ------------------------------------------------------------------
    # Sync execution
    # ------------------------------------------------------------------

    def _sync_isolated(self, account: BrokerAccount) -> AccountSyncResult:
        try:
            return self.sync_broker_account(account)
        except Exception:
            logger.exception("Error syncing account %s", account.account_id)
            return AccountSyncResult.failed(account.account_id, account.broker)

    def _run_full_sync(self, account: BrokerAccount) -> tuple[SyncLog, Optional[BrokerError]]:
        started_at = self._clock()

        # Validate and write against the stored row, not the caller's copy
        stored = self._accounts.get_by_id(account.account_id)
        if stored is None:
            raise NotFoundError("BrokerAccount", account.account_id)
        account = stored

        problem = self._validate(account, started_at)
        if problem:
            logger.info("Not syncing account %s: %s", account.account_id, problem)
            return self._log(account, started_at, SyncStatus.FAILED, problem), None

        try:
            client = self._brokers.get(account.broker)
        except UnsupportedBrokerError as exc:
            logger.error("Account %s: %s", account.account_id, exc.message)
            return self._log(account, started_at, SyncStatus.FAILED, exc.message), exc

        try:
            return self._fetch_and_store(account, client, started_at)
        except Exception as exc:
            logger.exception("Unexpected error syncing account %s", account.account_id)
            self._log(
                account,
                started_at,
                SyncStatus.FAILED,
                "Unexpected error during sync",
                error_detail=f"{type(exc).__name__}: {exc}",
            )
            raise

    def _validate(self, account: BrokerAccount, now: datetime) -> Optional[str]:
        if not account.is_active:
            return "Account is inactive"
        if not account.has_credentials():
            return "No credentials available"
        if account.is_token_expired(now):
            return "Token expired"
        return None

    def _fetch_and_store(
        self,
        account: BrokerAccount,
        client: BrokerClient,
        started_at: datetime,
    ) -> tuple[SyncLog, Optional[BrokerError]]:
        errors: list[tuple[str, BrokerError]] = []

        raw_positions: Optional[list[RawPosition]] = None
        try:
            raw_positions = client.fetch_positions(account)
        except BrokerError as exc:
            logger.error("Positions fetch failed for account %s: %s", account.account_id, exc.message)
            errors.append(("Positions", exc))

        raw_holdings: Optional[list[RawHolding]] = None
        # A rejected token will be rejected again; don't call the broker twice
        if not (errors and errors[0][1].token_expired):
            try:
                raw_holdings = client.fetch_holdings(account)
            except BrokerError as exc:
                logger.error("Holdings fetch failed for account %s: %s", account.account_id, exc.message)
                errors.append(("Holdings", exc))

        now = self._clock()
        positions_written = 0
        holdings_written = 0
        if raw_positions is not None:
            positions_written = self._positions.replace_for_account(
                account.account_id, self._to_positions(account, raw_positions, now)
            )
        if raw_holdings is not None:
            holdings_written = self._holdings.replace_for_account(
                account.account_id, self._to_holdings(account, raw_holdings, now)
            )

        self._warm_prices(raw_positions, raw_holdings)

        error_detail = " ".join(f"{name} failed: {exc.message}." for name, exc in errors) or None
        fetched = (raw_positions is not None) + (raw_holdings is not None)
        if fetched == 2:
            status = SyncStatus.SUCCESS
            message = "Sync complete"
        elif fetched == 1:
            status = SyncStatus.PARTIAL
            message = f"Partial success. {error_detail}"
        else:
            status = SyncStatus.FAILED
            message = error_detail or "Unknown failure"

        broker_error = self._primary_error(errors)
        if broker_error is not None and broker_error.token_expired:
            self._flag_expired_token(account, broker_error.expiry_reason)
        elif status == SyncStatus.SUCCESS:
            self._accounts.mark_synced(account.account_id, started_at)

        sync_log = self._log(
            account,
            started_at,
            status,
            message,
            error_detail=error_detail,
            expiry_reason=broker_error.expiry_reason if broker_error else ExpiryReason.NONE,
            positions_written=positions_written,
            holdings_written=holdings_written,
        )
        return sync_log, broker_error

    @staticmethod
    def _primary_error(errors: list[tuple[str, BrokerError]]) -> Optional[BrokerError]:
        for _, exc in errors:
            if exc.token_expired:
                return exc
        return errors[0][1] if errors else None

    def _flag_expired_token(self, account: BrokerAccount, reason: ExpiryReason) -> None:
        deactivate = reason in _DEACTIVATING_REASONS
        self._accounts.flag_token(account.account_id, reason, deactivate=deactivate)
        if deactivate:
            logger.warning(
                "Deactivating account %s (%s): token %s",
                account.account_id,
                _broker_name(account),
                reason.value,
            )
        else:
            logger.warning(
                "Account %s (%s) needs re-authentication: token %s",
                account.account_id,
                _broker_name(account),
                reason.value,
            )

    def _warm_prices(
        self,
        raw_positions: Optional[list[RawPosition]],
        raw_holdings: Optional[list[RawHolding]],
    ) -> None:
        if self._market_data is None:
            return
        symbols = [p.symbol for p in raw_positions or []] + [h.symbol for h in raw_holdings or []]
        if symbols:
            self._market_data.warmup_prices(symbols)

    @staticmethod
    def _to_positions(
        account: BrokerAccount, raw_positions: list[RawPosition], now: datetime
    ) -> list[CachedPosition]:
        return [
            CachedPosition(
                position_id=str(uuid.uuid4()),
                account_id=account.account_id,
                user_id=account.user_id,
                broker=account.broker,
                symbol=raw.symbol.strip().upper(),
                quantity=Decimal(str(raw.quantity)) * max(raw.lot_size, 1),
                buy_price=Decimal(str(raw.buy_price)),
                position_type=raw.position_type,
                last_updated=now,
            )
            for raw in raw_positions
        ]

    @staticmethod
    def _to_holdings(
        account: BrokerAccount, raw_holdings: list[RawHolding], now: datetime
    ) -> list[CachedHolding]:
        return [
            CachedHolding(
                holding_id=str(uuid.uuid4()),
                account_id=account.account_id,
                user_id=account.user_id,
                broker=account.broker,
                symbol=raw.symbol.strip().upper(),
                quantity=Decimal(str(raw.quantity)),
                average_buy_price=Decimal(str(raw.average_buy_price)),
                last_updated=now,
            )
            for raw in raw_holdings
        ]

    def _log(
        self,
        account: BrokerAccount,
        started_at: datetime,
        status: SyncStatus,
        message: str,
        error_detail: Optional[str] = None,
        expiry_reason: ExpiryReason = ExpiryReason.NONE,
        positions_written: int = 0,
        holdings_written: int = 0,
    ) -> SyncLog:
        return self._sync_logs.append(
            SyncLog(
                log_id=str(uuid.uuid4()),
                account_id=account.account_id,
                user_id=account.user_id,
                broker=account.broker,
                started_at=started_at,
                finished_at=self._clock(),
                status=status,
                message=message,
                error_detail=error_detail,
                expiry_reason=expiry_reason,
                positions_written=positions_written,
                holdings_written=holdings_written,
            )
        )

    @staticmethod
    def _refresh_outcome(
        account: BrokerAccount, broker: str, result: AccountSyncResult
    ) -> AccountRefreshOutcome:
        if result.state == SyncState.SKIPPED:
            return AccountRefreshOutcome(
                account.account_id, broker, RefreshOutcome.SKIPPED, "Sync already in progress"
            )
        sync_log = result.sync_log
        status = sync_log.status if sync_log else None
        message = sync_log.message if sync_log else ""
        if result.state in (SyncState.SUCCESS, SyncState.PARTIAL):
            return AccountRefreshOutcome(
                account.account_id, broker, RefreshOutcome.REFRESHED, message, status=status
            )
        return AccountRefreshOutcome(
            account.account_id,
            broker,
            RefreshOutcome.FAILED,
            message,
            status=status,
            requires_reauth=result.requires_reauth,
        )
