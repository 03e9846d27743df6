"""View models for quotes, F&O positions and portfolio summaries."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from portsync.domain.models.enums import FnoInstrumentType, OptionType


@dataclass
class Quote:
    """Raw market quote returned by an upstream provider."""

    symbol: str
    last_price: Decimal
    prev_close: Decimal
    as_of: datetime


@dataclass
class FnoDetails:
    """Contract details parsed from an F&O trading symbol."""

    symbol: str
    underlying_symbol: str
    instrument_type: FnoInstrumentType
    option_type: Optional[OptionType] = None
    strike_price: Optional[Decimal] = None
    expiry_date: Optional[date] = None
    lot_size: int = 1


@dataclass
class FnoPositionView:
    """Live P&L view of one F&O position."""

    position_id: str
    account_id: str
    broker: str
    symbol: str
    quantity: Decimal
    buy_price: Decimal
    current_price: Decimal
    previous_close: Decimal
    invested_notional: Decimal
    current_notional: Decimal
    mtm: Decimal
    day_gain: Decimal
    details: Optional[FnoDetails] = None
    last_updated: Optional[datetime] = None
    price_as_of: Optional[datetime] = None


@dataclass
class FnoSummaryView:
    """Aggregate F&O P&L for a user."""

    positions: list[FnoPositionView] = field(default_factory=list)
    total_mtm: Decimal = field(default_factory=lambda: Decimal("0.00"))
    total_day_gain: Decimal = field(default_factory=lambda: Decimal("0.00"))
    unpriced_symbols: list[str] = field(default_factory=list)


@dataclass
class HoldingView:
    """Valued delivery holding."""

    symbol: str
    broker: str
    quantity: Decimal
    average_buy_price: Decimal
    current_price: Decimal
    invested_value: Decimal
    current_value: Decimal
    pnl: Decimal
    day_gain: Decimal


@dataclass
class PortfolioSummaryView:
    """Portfolio overview assembled from cached holdings and positions."""

    user_id: str
    holdings: list[HoldingView] = field(default_factory=list)
    invested_value: Decimal = field(default_factory=lambda: Decimal("0.00"))
    current_value: Decimal = field(default_factory=lambda: Decimal("0.00"))
    total_pnl: Decimal = field(default_factory=lambda: Decimal("0.00"))
    day_gain: Decimal = field(default_factory=lambda: Decimal("0.00"))
    fno_mtm: Decimal = field(default_factory=lambda: Decimal("0.00"))
    fno_day_gain: Decimal = field(default_factory=lambda: Decimal("0.00"))
    unpriced_symbols: list[str] = field(default_factory=list)
    last_synced_at: Optional[datetime] = None
