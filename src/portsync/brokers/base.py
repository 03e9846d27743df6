"""Broker client protocol and the raw records it returns."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

from portsync.domain.models import Broker, BrokerAccount, PositionType


@dataclass
class RawPosition:
    """
    Position as reported by a broker, before normalization.

    ``lot_size`` is 1 when the broker already reports quantity in units;
    otherwise quantity is in lots and is multiplied out before storage.
    """

    symbol: str
    quantity: Decimal
    buy_price: Decimal
    position_type: PositionType = PositionType.EQUITY
    lot_size: int = 1


@dataclass
class RawHolding:
    """Delivery holding as reported by a broker."""

    symbol: str
    quantity: Decimal
    average_buy_price: Decimal = field(default_factory=lambda: Decimal("0"))


class BrokerClient(Protocol):
    """
    Interface for one broker's upstream API.

    Implementations raise BrokerError on failure, with ``expiry_reason`` set
    when the access token was rejected.
    """

    broker: Broker

    def fetch_positions(self, account: BrokerAccount) -> list[RawPosition]:
        """Fetch open positions for an account."""
        ...

    def fetch_holdings(self, account: BrokerAccount) -> list[RawHolding]:
        """Fetch delivery holdings for an account."""
        ...
