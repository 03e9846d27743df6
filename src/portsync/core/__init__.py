"""Core utilities and shared functionality."""

from portsync.core.timezone import (
    exchange_tz,
    now_exchange,
    to_exchange,
)
from portsync.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    BrokerError,
    UnsupportedBrokerError,
    MarketDataError,
)

__all__ = [
    "exchange_tz",
    "now_exchange",
    "to_exchange",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "BrokerError",
    "UnsupportedBrokerError",
    "MarketDataError",
]
