"""
Unit tests for domain models, views and exceptions.

Tests cover:
- BrokerAccount credential and token checks
- SyncLog derived properties
- Sync result views
- BrokerError codes
"""

from datetime import datetime, timedelta

import pytest

from portsync.core.exceptions import BrokerError, MarketDataError, UnsupportedBrokerError
from portsync.domain.models import (
    Broker,
    BrokerAccount,
    ExpiryReason,
    SyncLog,
    SyncStatus,
)
from portsync.domain.views import (
    AccountSyncResult,
    BulkSyncResult,
    SyncState,
)

from tests.conftest import ist_datetime


NOW = ist_datetime(2024, 1, 15, 11, 0)


class TestBrokerAccount:
    """Tests for BrokerAccount helpers."""

    def test_string_enums_are_coerced(self):
        account = BrokerAccount(
            account_id="a", user_id="u", broker="ANGEL_ONE", expiry_reason="REVOKED"
        )

        assert account.broker == Broker.ANGEL_ONE
        assert account.expiry_reason == ExpiryReason.REVOKED

    def test_has_credentials(self):
        assert BrokerAccount("a", "u", Broker.ZERODHA, access_token="t").has_credentials()
        assert not BrokerAccount("a", "u", Broker.ZERODHA, access_token="").has_credentials()

    @pytest.mark.parametrize(
        "expires_in,reason,expected",
        [
            (timedelta(hours=1), ExpiryReason.NONE, False),
            (timedelta(seconds=0), ExpiryReason.NONE, True),
            (timedelta(hours=-1), ExpiryReason.NONE, True),
            (timedelta(hours=1), ExpiryReason.EXPIRED, True),
        ],
    )
    def test_is_token_expired(self, expires_in, reason, expected):
        account = BrokerAccount(
            "a",
            "u",
            Broker.ZERODHA,
            access_token="t",
            token_expires_at=NOW + expires_in,
            expiry_reason=reason,
        )

        assert account.is_token_expired(NOW) is expected

    def test_unknown_expiry_counts_as_expired(self):
        account = BrokerAccount("a", "u", Broker.ZERODHA, access_token="t")

        assert account.is_token_expired(NOW)

    def test_naive_expiry_compares_with_aware_now(self):
        account = BrokerAccount(
            "a",
            "u",
            Broker.ZERODHA,
            access_token="t",
            token_expires_at=datetime(2024, 1, 15, 12, 0),
        )

        assert not account.is_token_expired(NOW)

    def test_token_not_in_repr(self):
        account = BrokerAccount("a", "u", Broker.ZERODHA, access_token="secret-token")

        assert "secret-token" not in repr(account)


class TestSyncLogAndResults:
    """Tests for SyncLog and sync result views."""

    def _log(self, status=SyncStatus.SUCCESS, reason=ExpiryReason.NONE) -> SyncLog:
        return SyncLog(
            log_id="l1",
            account_id="a",
            user_id="u",
            broker=Broker.ZERODHA,
            started_at=NOW,
            finished_at=NOW + timedelta(milliseconds=1500),
            status=status,
            expiry_reason=reason,
        )

    def test_duration_ms(self):
        assert self._log().duration_ms == 1500

    def test_result_from_log(self):
        result = AccountSyncResult.from_log(self._log(SyncStatus.PARTIAL))

        assert result.state == SyncState.PARTIAL
        assert not result.succeeded
        assert not result.requires_reauth

    def test_result_requires_reauth_from_log(self):
        result = AccountSyncResult.from_log(self._log(SyncStatus.FAILED, ExpiryReason.EXPIRED))

        assert result.requires_reauth

    def test_bulk_result_counts(self):
        bulk = BulkSyncResult(
            results=[
                AccountSyncResult.from_log(self._log()),
                AccountSyncResult.skipped("b", Broker.UPSTOX),
                AccountSyncResult.failed("c", Broker.ZERODHA),
            ]
        )

        assert bulk.ran
        assert bulk.count(SyncState.SUCCESS) == 1
        assert bulk.count(SyncState.SKIPPED) == 1
        assert bulk.count(SyncState.FAILED) == 1

    @pytest.mark.parametrize(
        "flags",
        [{"busy": True}, {"market_closed": True}, {"market_open": True}],
    )
    def test_skipped_bulk_run_did_not_run(self, flags):
        assert not BulkSyncResult(**flags).ran


class TestExceptions:
    """Tests for engine exceptions."""

    def test_transient_broker_error(self):
        err = BrokerError("timeout", broker=Broker.ZERODHA)

        assert not err.token_expired
        assert err.code == "BROKER_ERROR"
        assert str(err) == "timeout"

    def test_expired_broker_error(self):
        cause = ValueError("401")
        err = BrokerError(
            "expired", broker=Broker.UPSTOX, expiry_reason=ExpiryReason.EXPIRED, cause=cause
        )

        assert err.token_expired
        assert err.code == "BROKER_AUTH_REQUIRED"
        assert err.cause is cause

    def test_unsupported_broker_error(self):
        err = UnsupportedBrokerError(Broker.ANGEL_ONE)

        assert isinstance(err, BrokerError)
        assert err.code == "BROKER_UNSUPPORTED"
        assert "ANGEL_ONE" in err.message

    def test_market_data_error(self):
        err = MarketDataError("no price", symbol="TCS")

        assert err.symbol == "TCS"
        assert err.code == "MARKET_DATA_ERROR"
