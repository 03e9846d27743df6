"""
Unit tests for NseExchangeCalendar.

Tests cover:
- Session boundaries (inclusive)
- Weekends and holidays
- Naive and foreign-timezone timestamps
"""

from datetime import date, datetime

import pytest
import pytz

from portsync.providers import NseExchangeCalendar

from tests.conftest import ist_datetime


@pytest.fixture
def nse() -> NseExchangeCalendar:
    return NseExchangeCalendar(holidays=[date(2024, 1, 26)])


class TestSessionHours:
    """Tests for the regular trading session."""

    @pytest.mark.parametrize(
        "hour,minute,expected",
        [
            (9, 14, False),
            (9, 15, True),
            (12, 0, True),
            (15, 30, True),
            (15, 31, False),
        ],
    )
    def test_session_window_is_inclusive(self, nse, hour, minute, expected):
        assert nse.is_open_at(ist_datetime(2024, 1, 15, hour, minute)) is expected

    def test_weekend_is_closed(self, nse):
        # 2024-01-13 is a Saturday, 2024-01-14 a Sunday
        assert nse.is_open_at(ist_datetime(2024, 1, 13, 11, 0)) is False
        assert nse.is_open_at(ist_datetime(2024, 1, 14, 11, 0)) is False

    def test_holiday_is_closed(self, nse):
        assert nse.is_open_at(ist_datetime(2024, 1, 26, 11, 0)) is False


class TestTimezones:
    """Tests for timestamp normalization."""

    def test_utc_timestamp_is_converted(self, nse):
        """
        GIVEN 04:00 UTC on a Monday (09:30 IST)
        WHEN checked
        THEN the market is open
        """
        ts = pytz.utc.localize(datetime(2024, 1, 15, 4, 0))

        assert nse.is_open_at(ts) is True

    def test_naive_timestamp_is_exchange_local(self, nse):
        assert nse.is_open_at(datetime(2024, 1, 15, 10, 0)) is True
        assert nse.is_open_at(datetime(2024, 1, 15, 20, 0)) is False
