"""Exchange calendar: is the market open at a given instant."""

from datetime import date, datetime, time
from typing import Iterable, Optional, Protocol

import pytz


class ExchangeCalendar(Protocol):
    """Protocol for exchange session calendars."""

    def is_open_at(self, ts: datetime) -> bool:
        """Return True if the exchange is in its trading session at ``ts``."""
        ...


class NseExchangeCalendar:
    """
    NSE regular session: Monday to Friday, 09:15 to 15:30 IST inclusive.

    Holidays are supplied by the caller; there is no built-in holiday list.
    """

    def __init__(
        self,
        timezone: str = "Asia/Kolkata",
        open_time: time = time(9, 15),
        close_time: time = time(15, 30),
        holidays: Optional[Iterable[date]] = None,
    ):
        self._tz = pytz.timezone(timezone)
        self._open = open_time
        self._close = close_time
        self._holidays = frozenset(holidays or ())

    def is_open_at(self, ts: datetime) -> bool:
        if ts.tzinfo is None:
            # Naive timestamps are taken as exchange-local
            local = self._tz.localize(ts)
        else:
            local = ts.astimezone(self._tz)

        if local.weekday() >= 5:
            return False
        if local.date() in self._holidays:
            return False

        current = local.time().replace(tzinfo=None)
        return self._open <= current <= self._close
