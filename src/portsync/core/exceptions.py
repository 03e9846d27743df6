"""Engine-level exceptions."""

from typing import Optional

from portsync.domain.models.enums import Broker, ExpiryReason


class AppError(Exception):
    """Base exception for engine errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class BrokerError(AppError):
    """
    Raised when an upstream broker call fails.

    Carries the broker and, where the client could tell, why the access
    token stopped working. ``token_expired`` means the user has to
    re-authenticate; anything else is a transient failure.
    """

    def __init__(
        self,
        message: str,
        broker: Optional[Broker],
        expiry_reason: ExpiryReason = ExpiryReason.NONE,
        cause: Optional[BaseException] = None,
    ):
        self.broker = broker
        self.expiry_reason = expiry_reason or ExpiryReason.NONE
        self.cause = cause
        code = "BROKER_AUTH_REQUIRED" if self.token_expired else "BROKER_ERROR"
        super().__init__(message, code=code)

    @property
    def token_expired(self) -> bool:
        return self.expiry_reason != ExpiryReason.NONE


class UnsupportedBrokerError(BrokerError):
    """Raised when no broker client is registered for a broker."""

    def __init__(self, broker: Optional[Broker]):
        name = broker.value if broker else "UNKNOWN"
        super().__init__(f"No broker client registered for {name}", broker=broker)
        self.code = "BROKER_UNSUPPORTED"


class MarketDataError(AppError):
    """Raised when no usable price can be produced for a symbol."""

    def __init__(self, message: str, symbol: str, cause: Optional[BaseException] = None):
        self.symbol = symbol
        self.cause = cause
        super().__init__(message, code="MARKET_DATA_ERROR")
