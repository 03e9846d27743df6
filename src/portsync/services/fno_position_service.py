"""F&O position service: mark-to-market and day gain for derivatives."""

import logging
from decimal import Decimal, ROUND_HALF_UP

from portsync.domain.models import CachedPosition, MarketPrice, PositionType
from portsync.domain.views import FnoPositionView, FnoSummaryView
from portsync.repositories.protocols import PositionRepository
from portsync.services.fno_symbols import parse_fno_symbol
from portsync.services.market_data_service import MarketDataService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def money(value: Decimal) -> Decimal:
    """Quantize to two places, rounding half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class FnoPositionService:
    """
    Computes live P&L for a user's futures and options positions.

    Quantities are stored with lot sizes already multiplied in, so
    ``mtm = (current - buy) * qty`` and
    ``day_gain = (current - previous_close) * qty`` with no extra multiplier.
    """

    def __init__(
        self,
        position_repo: PositionRepository,
        market_data_service: MarketDataService,
    ):
        self._positions = position_repo
        self._market_data = market_data_service

    def get_fno_positions_for_user(self, user_id: str) -> list[FnoPositionView]:
        """
        Return priced F&O positions for a user.

        Positions whose symbol cannot be priced are left out.
        """
        return self.get_fno_summary(user_id).positions

    def get_fno_summary(self, user_id: str) -> FnoSummaryView:
        """Priced F&O positions plus totals and the symbols that could not be priced."""
        positions = self._positions.list_by_user(user_id, position_type=PositionType.FNO)
        if not positions:
            return FnoSummaryView()

        prices = self._market_data.get_prices(p.symbol for p in positions)

        summary = FnoSummaryView()
        unpriced: set[str] = set()
        for position in positions:
            price = prices.get(position.symbol.upper())
            if price is None:
                unpriced.add(position.symbol.upper())
                continue
            view = self._to_view(position, price)
            summary.positions.append(view)
            summary.total_mtm += view.mtm
            summary.total_day_gain += view.day_gain

        summary.unpriced_symbols = sorted(unpriced)
        if unpriced:
            logger.warning(
                "Excluded %d F&O positions for user %s without a price: %s",
                len(positions) - len(summary.positions),
                user_id,
                ", ".join(summary.unpriced_symbols),
            )
        return summary

    @staticmethod
    def _to_view(position: CachedPosition, price: MarketPrice) -> FnoPositionView:
        qty = position.quantity
        current = price.current_price
        invested_notional = position.buy_price * qty
        current_notional = current * qty

        return FnoPositionView(
            position_id=position.position_id,
            account_id=position.account_id,
            broker=position.broker.value if position.broker else "UNKNOWN",
            symbol=position.symbol,
            quantity=qty,
            buy_price=position.buy_price,
            current_price=money(current),
            previous_close=money(price.previous_close),
            invested_notional=money(invested_notional),
            current_notional=money(current_notional),
            mtm=money(current_notional - invested_notional),
            day_gain=money((current - price.previous_close) * qty),
            details=parse_fno_symbol(position.symbol),
            last_updated=position.last_updated,
            price_as_of=price.fetched_at,
        )
