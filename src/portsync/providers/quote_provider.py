"""Upstream quote provider protocol."""

from typing import Protocol

from portsync.domain.views import Quote


class QuoteProvider(Protocol):
    """
    Protocol for upstream market data providers.

    Implementations fetch one real-time quote (last_price, prev_close).
    Failures are raised; caching and fallback are the caller's concern.
    """

    def fetch_quote(self, symbol: str) -> Quote:
        """Fetch the latest quote for a symbol or raise on failure."""
        ...
