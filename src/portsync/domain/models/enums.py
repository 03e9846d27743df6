"""Enumerations for domain models."""

from enum import Enum


class Broker(str, Enum):
    """Supported brokers."""

    ZERODHA = "ZERODHA"
    ANGEL_ONE = "ANGEL_ONE"
    UPSTOX = "UPSTOX"


class PositionType(str, Enum):
    """Classification of a cached position."""

    EQUITY = "EQUITY"  # Equity cash segment
    FNO = "FNO"  # Futures and options
    MUTUAL_FUND = "MUTUAL_FUND"
    CURRENCY = "CURRENCY"
    COMMODITY = "COMMODITY"


class SyncStatus(str, Enum):
    """Outcome recorded in a sync log."""

    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class ExpiryReason(str, Enum):
    """Why a broker access token stopped working."""

    NONE = "NONE"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"
    INVALID_SCOPE = "INVALID_SCOPE"


class FnoInstrumentType(str, Enum):
    """Derivative instrument kind."""

    FUTURE = "FUTURE"
    OPTION = "OPTION"


class OptionType(str, Enum):
    """Option side."""

    CALL = "CALL"
    PUT = "PUT"
