"""
Quote provider backed by Yahoo Finance via yfinance.

Exchange symbols are mapped to Yahoo tickers with a suffix (``.NS`` for NSE).
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from portsync.core.timezone import now_exchange
from portsync.domain.views import Quote


# Lazy import so tests can patch before import
def _get_yf():
    import yfinance as yf
    return yf


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    # fast_info reports NaN for tickers without a session
    if not price.is_finite():
        return None
    return price.quantize(Decimal("0.01"))


class YFinanceQuoteProvider:
    """Fetches one quote per call from Yahoo Finance."""

    def __init__(self, symbol_suffix: str = ".NS"):
        self._suffix = symbol_suffix

    def ticker_for(self, symbol: str) -> str:
        """Map an exchange trading symbol to a Yahoo ticker."""
        symbol = symbol.upper()
        if not self._suffix or symbol.endswith(self._suffix):
            return symbol
        return f"{symbol}{self._suffix}"

    def fetch_quote(self, symbol: str) -> Quote:
        """
        Return the latest quote for ``symbol``.

        Raises LookupError when Yahoo has no price for the ticker; network
        errors from yfinance propagate unchanged.
        """
        yf = _get_yf()
        ticker = yf.Ticker(self.ticker_for(symbol))
        info = ticker.fast_info

        last_price = _to_decimal(info.get("last_price"))
        if last_price is None:
            raise LookupError(f"No price available for {symbol}")

        prev_close = _to_decimal(info.get("previous_close"))
        if prev_close is None:
            prev_close = last_price

        return Quote(
            symbol=symbol.upper(),
            last_price=last_price,
            prev_close=prev_close,
            as_of=now_exchange(),
        )
