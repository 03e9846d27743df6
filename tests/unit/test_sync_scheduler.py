"""
Unit tests for PortfolioSyncScheduler.

Tests cover:
- Market-hours job delegation
- Off-hours job gating and stale-account selection
- Background start/stop
"""

import threading
from datetime import timedelta
from unittest.mock import MagicMock

from portsync.domain.models import Broker, BrokerAccount
from portsync.domain.views import AccountSyncResult, BulkSyncResult, SyncState
from portsync.services import PortfolioSyncScheduler, SyncSafetyService

from tests.conftest import FixedClock, ist_datetime


NOW = ist_datetime(2024, 1, 15, 18, 0)


def _account(account_id: str, last_sync=None) -> BrokerAccount:
    return BrokerAccount(
        account_id=account_id,
        user_id="user-1",
        broker=Broker.ZERODHA,
        access_token="token",
        token_expires_at=NOW + timedelta(hours=8),
        last_successful_sync=last_sync,
    )


def _scheduler(accounts=None, market_open=False, **kwargs):
    market_data = MagicMock()
    market_data.is_market_open.return_value = market_open
    safety = SyncSafetyService(market_data)
    sync = MagicMock()
    sync.list_active_accounts.return_value = accounts or []
    sync.sync_broker_account.side_effect = lambda a: AccountSyncResult(
        account_id=a.account_id, broker=a.broker, state=SyncState.SUCCESS
    )
    scheduler = PortfolioSyncScheduler(
        sync_service=sync,
        safety_service=safety,
        clock=FixedClock(NOW),
        **kwargs,
    )
    return scheduler, sync, safety, market_data


class TestMarketHoursSync:
    """Tests for the market-hours job."""

    def test_delegates_with_market_hours_gate(self):
        scheduler, sync, _, _ = _scheduler()
        sync.sync_all_active_accounts.return_value = BulkSyncResult()

        scheduler.market_hours_sync()

        sync.sync_all_active_accounts.assert_called_once_with(respect_market_hours=True)


class TestOffHoursSync:
    """Tests for the off-hours job."""

    def test_syncs_only_stale_accounts(self):
        """
        GIVEN accounts synced 10 minutes ago, 45 minutes ago, and never
        WHEN the off-hours job runs with the market closed
        THEN only the 45-minute and never-synced accounts are synced
        """
        accounts = [
            _account("fresh", NOW - timedelta(minutes=10)),
            _account("stale", NOW - timedelta(minutes=45)),
            _account("never"),
        ]
        scheduler, sync, safety, _ = _scheduler(accounts)

        result = scheduler.off_hours_sync()

        synced = [c.args[0].account_id for c in sync.sync_broker_account.call_args_list]
        assert synced == ["stale", "never"]
        assert result.ran
        assert len(result.results) == 2
        assert not safety.is_global_sync_running()

    def test_skips_while_market_open(self):
        scheduler, sync, safety, _ = _scheduler([_account("never")], market_open=True)

        result = scheduler.off_hours_sync()

        assert result.market_open
        assert not result.ran
        assert result.results == []
        sync.sync_broker_account.assert_not_called()
        assert not safety.is_global_sync_running()

    def test_skips_when_global_sync_running(self):
        scheduler, sync, safety, _ = _scheduler([_account("never")])
        safety.try_global_sync_lock()

        result = scheduler.off_hours_sync()

        assert result.busy
        sync.sync_broker_account.assert_not_called()
        assert safety.is_global_sync_running()

    def test_account_error_does_not_stop_the_run(self):
        """
        GIVEN two stale accounts where the first sync raises
        WHEN the off-hours job runs
        THEN the second is still synced and the first reported FAILED
        """
        scheduler, sync, _, _ = _scheduler([_account("a"), _account("b")])

        def flaky(account):
            if account.account_id == "a":
                raise RuntimeError("boom")
            return AccountSyncResult(account.account_id, account.broker, SyncState.SUCCESS)

        sync.sync_broker_account.side_effect = flaky

        result = scheduler.off_hours_sync()

        assert [r.state for r in result.results] == [SyncState.FAILED, SyncState.SUCCESS]

    def test_stale_threshold_is_configurable(self):
        scheduler, _, _, _ = _scheduler(off_hours_stale_minutes=60)

        assert not scheduler.is_stale(_account("x", NOW - timedelta(minutes=45)))
        assert scheduler.is_stale(_account("y", NOW - timedelta(minutes=61)))


class TestBackgroundLoop:
    """Tests for start/stop."""

    def test_start_runs_jobs_and_stop_joins(self):
        """
        GIVEN a scheduler with very short intervals
        WHEN it is started
        THEN the market-hours job runs, and stop() ends both threads
        """
        scheduler, sync, _, _ = _scheduler(
            market_hours_interval_seconds=0.01,
            off_hours_interval_seconds=0.01,
        )
        ran = threading.Event()

        def job(respect_market_hours):
            ran.set()
            return BulkSyncResult()

        sync.sync_all_active_accounts.side_effect = job

        scheduler.start()
        try:
            assert ran.wait(timeout=2)
            assert scheduler.is_running
        finally:
            scheduler.stop()

        assert not scheduler.is_running

    def test_job_errors_do_not_kill_the_loop(self):
        scheduler, sync, _, _ = _scheduler(
            market_hours_interval_seconds=0.01,
            off_hours_interval_seconds=60,
        )
        calls = []
        second_call = threading.Event()

        def job(respect_market_hours):
            calls.append(1)
            if len(calls) >= 2:
                second_call.set()
            raise RuntimeError("job failed")

        sync.sync_all_active_accounts.side_effect = job

        scheduler.start()
        try:
            assert second_call.wait(timeout=2)
        finally:
            scheduler.stop()
