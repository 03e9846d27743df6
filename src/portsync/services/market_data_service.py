"""Market data service: cached prices with single-flight upstream fetches."""

import logging
import threading
from concurrent.futures import (
    Future,
    ThreadPoolExecutor,
    TimeoutError as FuturesTimeoutError,
    as_completed,
)
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional

from portsync.core.exceptions import MarketDataError, ValidationError
from portsync.core.timezone import now_exchange
from portsync.domain.models import MarketPrice
from portsync.providers.exchange_calendar import ExchangeCalendar
from portsync.providers.quote_provider import QuoteProvider
from portsync.services.market_price_cache import MarketPriceCache

logger = logging.getLogger(__name__)


class MarketDataService:
    """
    Serves market prices out of a shared cache.

    Freshness depends on the session: entries are good for
    ``ttl_open_seconds`` while the exchange is open and for
    ``ttl_closed_seconds`` (None = indefinitely) while it is closed.
    Concurrent fetches of the same symbol collapse into one upstream call.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        calendar: ExchangeCalendar,
        cache: Optional[MarketPriceCache] = None,
        ttl_open_seconds: int = 15,
        ttl_closed_seconds: Optional[int] = 1800,
        max_stale_minutes: int = 1440,
        fetch_timeout_seconds: float = 10.0,
        warmup_max_workers: int = 8,
        clock: Callable[[], datetime] = now_exchange,
    ):
        self._provider = provider
        self._calendar = calendar
        self._cache = cache if cache is not None else MarketPriceCache()
        self._ttl_open = ttl_open_seconds
        self._ttl_closed = ttl_closed_seconds
        self._max_stale = timedelta(minutes=max_stale_minutes)
        self._fetch_timeout = fetch_timeout_seconds
        self._warmup_workers = max(1, warmup_max_workers)
        self._clock = clock

        # symbol -> Future resolved by the caller that is fetching it
        self._inflight: dict[str, Future] = {}
        self._inflight_lock = threading.Lock()
        self._fetch_executor = ThreadPoolExecutor(
            max_workers=self._warmup_workers,
            thread_name_prefix="quote-fetch",
        )

    @property
    def cache(self) -> MarketPriceCache:
        return self._cache

    def is_market_open(self, at: Optional[datetime] = None) -> bool:
        """Check whether the exchange is in session at ``at`` (default: now)."""
        return self._calendar.is_open_at(at or self._clock())

    def get_price(self, symbol: str) -> MarketPrice:
        """
        Return a price for ``symbol``.

        A fresh cache entry is returned without touching the provider.
        Otherwise the price is fetched; if that fails, a stale entry no older
        than the stale limit is served instead.

        Raises:
            MarketDataError: No fresh price could be fetched and no usable
                stale entry exists.
        """
        symbol = self._normalize(symbol)
        now = self._clock()

        cached = self._cache.get(symbol)
        if cached is not None and self._is_fresh(cached, now):
            return cached

        try:
            return self.fetch_and_cache_price(symbol)
        except MarketDataError as exc:
            stale = self._cache.get(symbol)
            if stale is not None and now - stale.fetched_at <= self._max_stale:
                logger.warning(
                    "Serving stale price for %s fetched at %s: %s",
                    symbol,
                    stale.fetched_at.isoformat(),
                    exc.message,
                )
                return stale
            raise

    def get_prices(self, symbols: Iterable[str]) -> dict[str, MarketPrice]:
        """
        Return prices for many symbols, keyed by normalized symbol.

        Symbols that cannot be priced are logged and left out of the result.
        """
        prices: dict[str, MarketPrice] = {}
        for symbol in self._unique(symbols):
            try:
                prices[symbol] = self.get_price(symbol)
            except MarketDataError as exc:
                logger.warning("No price for %s: %s", symbol, exc.message)
        return prices

    def fetch_and_cache_price(self, symbol: str) -> MarketPrice:
        """
        Fetch ``symbol`` from the provider and store it, ignoring freshness.

        If another caller is already fetching the same symbol, wait for and
        share its result instead of calling the provider again. On failure
        the existing cache entry is left untouched.
        """
        symbol = self._normalize(symbol)

        with self._inflight_lock:
            future = self._inflight.get(symbol)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[symbol] = future

        if not leader:
            return future.result()

        try:
            price = self._cache.put(self._fetch_upstream(symbol))
        except BaseException as exc:
            # The future resolves on every exit path, interrupts included
            future.set_exception(exc)
            raise
        else:
            future.set_result(price)
            return price
        finally:
            with self._inflight_lock:
                self._inflight.pop(symbol, None)

    def warmup_prices(self, symbols: Iterable[str]) -> int:
        """
        Prefetch prices for ``symbols`` in parallel.

        Best-effort: failures are logged at DEBUG and never raised.
        Returns the number of symbols that ended up with a price.
        """
        unique = self._unique(symbols)
        if not unique:
            return 0

        warmed = 0
        workers = min(self._warmup_workers, len(unique))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="price-warmup") as pool:
            futures = {pool.submit(self.get_price, symbol): symbol for symbol in unique}
            for future in as_completed(futures):
                symbol = futures[future]
                try:
                    future.result()
                    warmed += 1
                except MarketDataError as exc:
                    logger.debug("Price warmup failed for %s: %s", symbol, exc.message)

        logger.debug("Warmed %d of %d symbols", warmed, len(unique))
        return warmed

    def close(self) -> None:
        """Stop the upstream fetch pool."""
        self._fetch_executor.shutdown(wait=False)

    def _fetch_upstream(self, symbol: str) -> MarketPrice:
        """Call the provider with a timeout and validate the quote."""
        try:
            pending = self._fetch_executor.submit(self._provider.fetch_quote, symbol)
            quote = pending.result(timeout=self._fetch_timeout)
        except FuturesTimeoutError as exc:
            raise MarketDataError(
                f"Timed out after {self._fetch_timeout}s fetching price for {symbol}",
                symbol,
                cause=exc,
            ) from exc
        except Exception as exc:
            raise MarketDataError(
                f"Failed to fetch price for {symbol}: {exc}", symbol, cause=exc
            ) from exc

        current = self._to_price(symbol, "last", quote.last_price)
        previous = (
            self._to_price(symbol, "prev_close", quote.prev_close)
            if quote.prev_close is not None
            else current
        )

        return MarketPrice(
            symbol=symbol,
            current_price=current,
            previous_close=previous,
            fetched_at=self._clock(),
        )

    @staticmethod
    def _to_price(symbol: str, field: str, value) -> Decimal:
        """Convert a quoted value to a finite, non-negative Decimal."""
        try:
            price = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise MarketDataError(
                f"Unparseable {field} price for {symbol}: {value!r}", symbol, cause=exc
            ) from exc
        if not price.is_finite():
            raise MarketDataError(f"Non-finite {field} price for {symbol}: {price}", symbol)
        if price < 0:
            raise MarketDataError(f"Negative {field} price for {symbol}: {price}", symbol)
        return price

    def _is_fresh(self, entry: MarketPrice, now: datetime) -> bool:
        ttl = self._ttl_open if self.is_market_open(now) else self._ttl_closed
        if ttl is None:
            return True
        return (now - entry.fetched_at).total_seconds() < ttl

    @staticmethod
    def _normalize(symbol: str) -> str:
        normalized = (symbol or "").strip().upper()
        if not normalized:
            raise ValidationError("Symbol is required")
        return normalized

    @classmethod
    def _unique(cls, symbols: Iterable[str]) -> list[str]:
        return list(dict.fromkeys(cls._normalize(s) for s in symbols if s and s.strip()))
