"""Cached holding snapshots written by the sync service."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from portsync.domain.models.enums import Broker, PositionType


@dataclass
class CachedPosition:
    """
    One position snapshot for an account.

    ``quantity`` is signed (negative for shorts) and already has the broker's
    lot size folded in, so ``buy_price * quantity`` is the full notional.

    IMPORTANT: Only the sync service writes these; the set for an account is
    replaced wholesale on every successful sync.
    """

    position_id: str
    account_id: str
    user_id: str
    broker: Broker
    symbol: str
    quantity: Decimal = field(default_factory=lambda: Decimal("0"))
    buy_price: Decimal = field(default_factory=lambda: Decimal("0"))
    position_type: PositionType = PositionType.EQUITY
    last_updated: Optional[datetime] = None

    def __post_init__(self) -> None:
        if isinstance(self.broker, str):
            self.broker = Broker(self.broker)
        if isinstance(self.position_type, str):
            self.position_type = PositionType(self.position_type)


@dataclass
class CachedHolding:
    """Delivery holding snapshot for an account (replaced per sync)."""

    holding_id: str
    account_id: str
    user_id: str
    broker: Broker
    symbol: str
    quantity: Decimal = field(default_factory=lambda: Decimal("0"))
    average_buy_price: Decimal = field(default_factory=lambda: Decimal("0"))
    last_updated: Optional[datetime] = None

    def __post_init__(self) -> None:
        if isinstance(self.broker, str):
            self.broker = Broker(self.broker)
