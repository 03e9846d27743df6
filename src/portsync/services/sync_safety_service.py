"""Non-blocking sync locks and market-hours gating."""

import logging
import threading

from portsync.services.market_data_service import MarketDataService

logger = logging.getLogger(__name__)


class SyncSafetyService:
    """
    Try-locks that keep syncs from overlapping.

    One global lock guards full syncs over all accounts; per-account locks
    guard individual accounts. The two are independent, so a bulk sync still
    takes each account lock as it goes. Nothing here blocks: a busy lock
    answers False immediately. Locks are not tied to the acquiring thread.
    """

    def __init__(self, market_data_service: MarketDataService):
        self._market_data = market_data_service
        self._mutex = threading.Lock()
        self._global_held = False
        self._locked_accounts: set[str] = set()

    def try_global_sync_lock(self) -> bool:
        """Acquire the global lock if it is free."""
        with self._mutex:
            if self._global_held:
                return False
            self._global_held = True
            return True

    def release_global_sync_lock(self) -> None:
        """Release the global lock. Safe to call when it is not held."""
        with self._mutex:
            self._global_held = False

    def is_global_sync_running(self) -> bool:
        with self._mutex:
            return self._global_held

    def try_account_lock(self, account_id: str) -> bool:
        """Acquire the lock for one account if it is free."""
        with self._mutex:
            if account_id in self._locked_accounts:
                return False
            self._locked_accounts.add(account_id)
            return True

    def release_account_lock(self, account_id: str) -> None:
        """Release an account lock. Safe to call when it is not held."""
        with self._mutex:
            self._locked_accounts.discard(account_id)

    def is_account_locked(self, account_id: str) -> bool:
        with self._mutex:
            return account_id in self._locked_accounts

    def is_market_open(self) -> bool:
        return self._market_data.is_market_open()
