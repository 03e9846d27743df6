"""Timezone utilities for exchange-local market time."""

from datetime import datetime

import pytz

from portsync.config.settings import get_settings


def exchange_tz() -> pytz.BaseTzInfo:
    """Return the configured exchange timezone."""
    return pytz.timezone(get_settings().exchange_timezone)


def now_exchange() -> datetime:
    """Return current time in the exchange timezone."""
    return datetime.now(exchange_tz())


def to_exchange(dt: datetime) -> datetime:
    """Convert a datetime to the exchange timezone."""
    tz = exchange_tz()
    if dt.tzinfo is None:
        # Assume naive datetime is already exchange-local
        return tz.localize(dt)
    return dt.astimezone(tz)
