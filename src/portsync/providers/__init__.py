"""Upstream providers: quotes and exchange calendar."""

from portsync.providers.quote_provider import QuoteProvider
from portsync.providers.stub_provider import StubQuoteProvider
from portsync.providers.yfinance_provider import YFinanceQuoteProvider
from portsync.providers.exchange_calendar import ExchangeCalendar, NseExchangeCalendar

__all__ = [
    "QuoteProvider",
    "StubQuoteProvider",
    "YFinanceQuoteProvider",
    "ExchangeCalendar",
    "NseExchangeCalendar",
]
