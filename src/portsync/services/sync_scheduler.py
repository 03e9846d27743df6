"""Background scheduler for periodic portfolio syncs."""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from portsync.core.timezone import now_exchange
from portsync.domain.models import BrokerAccount
from portsync.domain.views import AccountSyncResult, BulkSyncResult
from portsync.services.portfolio_sync_service import PortfolioSyncService
from portsync.services.sync_safety_service import SyncSafetyService

logger = logging.getLogger(__name__)


class PortfolioSyncScheduler:
    """
    Runs two recurring jobs on daemon threads.

    The market-hours job syncs every active account while the exchange is
    open. The off-hours job runs while it is closed and only touches
    accounts whose last successful sync is older than the stale threshold.
    Both share the global sync lock, so they never overlap each other.
    """

    def __init__(
        self,
        sync_service: PortfolioSyncService,
        safety_service: SyncSafetyService,
        market_hours_interval_seconds: float = 300,
        off_hours_interval_seconds: float = 900,
        off_hours_stale_minutes: int = 30,
        clock: Callable[[], datetime] = now_exchange,
    ):
        self._sync = sync_service
        self._safety = safety_service
        self._market_interval = market_hours_interval_seconds
        self._off_interval = off_hours_interval_seconds
        self._stale_after = timedelta(minutes=off_hours_stale_minutes)
        self._clock = clock

        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def is_running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def market_hours_sync(self) -> BulkSyncResult:
        """Scheduled full sync, gated on market hours."""
        logger.info("Triggering market-hours sync")
        return self._sync.sync_all_active_accounts(respect_market_hours=True)

    def off_hours_sync(self) -> BulkSyncResult:
        """Sync stale accounts while the market is closed."""
        logger.info("Triggering off-hours sync")
        if not self._safety.try_global_sync_lock():
            logger.warning("Skipped off-hours sync: global sync already running")
            return BulkSyncResult(busy=True)

        try:
            if self._safety.is_market_open():
                logger.info("Skipped off-hours sync: market is open")
                return BulkSyncResult(market_open=True)

            now = self._clock()
            result = BulkSyncResult()
            for account in self._sync.list_active_accounts():
                if not self.is_stale(account, now):
                    continue
                try:
                    result.results.append(self._sync.sync_broker_account(account))
                except Exception:
                    logger.exception("Off-hours sync failed for account %s", account.account_id)
                    result.results.append(
                        AccountSyncResult.failed(account.account_id, account.broker)
                    )
            logger.info("Off-hours sync touched %d stale accounts", len(result.results))
            return result
        finally:
            self._safety.release_global_sync_lock()

    def is_stale(self, account: BrokerAccount, now: Optional[datetime] = None) -> bool:
        """True if the account was never synced or not within the stale window."""
        if account.last_successful_sync is None:
            return True
        now = now or self._clock()
        return now - account.last_successful_sync > self._stale_after

    def start(self) -> None:
        """Start both jobs. Calling start on a running scheduler does nothing."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._threads = [
            threading.Thread(
                target=self._loop,
                args=(self.market_hours_sync, self._market_interval),
                name="portsync-market-hours-sync",
                daemon=True,
            ),
            threading.Thread(
                target=self._loop,
                args=(self.off_hours_sync, self._off_interval),
                name="portsync-off-hours-sync",
                daemon=True,
            ),
        ]
        for thread in self._threads:
            thread.start()
        logger.info(
            "Sync scheduler started (market hours every %ss, off hours every %ss)",
            self._market_interval,
            self._off_interval,
        )

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal both jobs to stop and wait for them."""
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []
        logger.info("Sync scheduler stopped")

    def _loop(self, job: Callable[[], BulkSyncResult], interval: float) -> None:
        while not self._stop_event.wait(interval):
            try:
                job()
            except Exception:
                logger.exception("Scheduled sync job %s failed", job.__name__)
