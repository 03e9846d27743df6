"""In-memory market price cache shared by all callers."""

import threading
from datetime import datetime
from typing import Optional

from portsync.domain.models import MarketPrice


class MarketPriceCache:
    """
    Thread-safe symbol -> MarketPrice map.

    Entries are only ever replaced by an entry with the same or a later
    ``fetched_at``, so a slow fetch finishing late cannot roll a symbol back.
    """

    def __init__(self):
        self._entries: dict[str, MarketPrice] = {}
        self._lock = threading.Lock()

    def get(self, symbol: str) -> Optional[MarketPrice]:
        with self._lock:
            return self._entries.get(symbol.upper())

    def put(self, price: MarketPrice) -> MarketPrice:
        """Store ``price`` and return the entry the cache now holds."""
        key = price.symbol.upper()
        with self._lock:
            current = self._entries.get(key)
            if current is not None and current.fetched_at > price.fetched_at:
                return current
            self._entries[key] = price
            return price

    def age_seconds(self, symbol: str, now: datetime) -> Optional[float]:
        """Seconds since the cached entry was fetched, or None if absent."""
        entry = self.get(symbol)
        if entry is None:
            return None
        return (now - entry.fetched_at).total_seconds()

    def symbols(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
