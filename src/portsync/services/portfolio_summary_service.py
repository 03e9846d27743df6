"""Portfolio summary across all of a user's linked brokers."""

from portsync.domain.models import CachedHolding, MarketPrice, SyncStatus
from portsync.domain.views import HoldingView, PortfolioSummaryView
from portsync.repositories.protocols import HoldingRepository, SyncLogRepository
from portsync.services.fno_position_service import FnoPositionService, money
from portsync.services.market_data_service import MarketDataService


class PortfolioSummaryService:
    """Values cached holdings at current prices and adds F&O totals."""

    def __init__(
        self,
        holding_repo: HoldingRepository,
        sync_log_repo: SyncLogRepository,
        market_data_service: MarketDataService,
        fno_position_service: FnoPositionService,
    ):
        self._holdings = holding_repo
        self._sync_logs = sync_log_repo
        self._market_data = market_data_service
        self._fno = fno_position_service

    def get_portfolio_summary(self, user_id: str) -> PortfolioSummaryView:
        """
        Build the portfolio overview for a user.

        Holdings without a price are listed in ``unpriced_symbols`` and left
        out of the totals rather than valued at zero. Holdings are ordered by
        current value, largest first.
        """
        holdings = self._holdings.list_by_user(user_id)
        prices = self._market_data.get_prices(h.symbol for h in holdings)

        summary = PortfolioSummaryView(user_id=user_id)
        unpriced: set[str] = set()
        for holding in holdings:
            price = prices.get(holding.symbol.upper())
            if price is None:
                unpriced.add(holding.symbol.upper())
                continue
            view = self._to_view(holding, price)
            summary.holdings.append(view)
            summary.invested_value += view.invested_value
            summary.current_value += view.current_value
            summary.day_gain += view.day_gain

        summary.holdings.sort(key=lambda h: h.current_value, reverse=True)
        summary.total_pnl = summary.current_value - summary.invested_value

        fno = self._fno.get_fno_summary(user_id)
        summary.fno_mtm = fno.total_mtm
        summary.fno_day_gain = fno.total_day_gain
        summary.unpriced_symbols = sorted(unpriced | set(fno.unpriced_symbols))

        last_success = self._sync_logs.latest_for_user(user_id, status=SyncStatus.SUCCESS)
        summary.last_synced_at = last_success.finished_at if last_success else None
        return summary

    @staticmethod
    def _to_view(holding: CachedHolding, price: MarketPrice) -> HoldingView:
        qty = holding.quantity
        invested = qty * holding.average_buy_price
        current = qty * price.current_price
        return HoldingView(
            symbol=holding.symbol,
            broker=holding.broker.value if holding.broker else "UNKNOWN",
            quantity=qty,
            average_buy_price=money(holding.average_buy_price),
            current_price=money(price.current_price),
            invested_value=money(invested),
            current_value=money(current),
            pnl=money(current - invested),
            day_gain=money((price.current_price - price.previous_close) * qty),
        )
