"""Stub quote provider for offline/testing use."""

import random
import threading
from decimal import Decimal

from portsync.core.timezone import now_exchange
from portsync.domain.views import Quote


# Deterministic fake prices for common NSE symbols
_STUB_PRICES: dict[str, tuple[Decimal, Decimal]] = {
    "RELIANCE": (Decimal("2945.60"), Decimal("2931.15")),
    "TCS": (Decimal("3987.25"), Decimal("3990.40")),
    "INFY": (Decimal("1612.80"), Decimal("1598.55")),
    "HDFCBANK": (Decimal("1448.35"), Decimal("1452.00")),
    "ITC": (Decimal("438.90"), Decimal("436.75")),
    "NIFTY24JANFUT": (Decimal("21600.00"), Decimal("21550.00")),
    "BANKNIFTY24JAN48000CE": (Decimal("412.50"), Decimal("398.25")),
}


class StubQuoteProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Uses predefined prices for common symbols; generates seeded random prices
    for unknown symbols.
    """

    def __init__(self, seed: int = 42):
        """Initialize with optional random seed for reproducibility."""
        self._rng = random.Random(seed)
        self._rng_lock = threading.Lock()

    def fetch_quote(self, symbol: str) -> Quote:
        """Return a stub quote for the requested symbol."""
        upper_symbol = symbol.upper()
        if upper_symbol in _STUB_PRICES:
            last_price, prev_close = _STUB_PRICES[upper_symbol]
        else:
            with self._rng_lock:
                base = self._rng.random()
                drift = self._rng.random()
            # Price between 95 and 105, previous close within +/- 1
            last_price = Decimal(str(95 + base * 10)).quantize(Decimal("0.01"))
            prev_close = (last_price + Decimal(str(drift * 2 - 1))).quantize(Decimal("0.01"))

        return Quote(
            symbol=upper_symbol,
            last_price=last_price,
            prev_close=prev_close,
            as_of=now_exchange(),
        )
