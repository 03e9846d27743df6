"""Market price model."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class MarketPrice:
    """Last known quote for one symbol, as held by the price cache."""

    symbol: str
    current_price: Decimal
    previous_close: Decimal
    fetched_at: datetime
