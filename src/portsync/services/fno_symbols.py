"""Parsing of NSE F&O trading symbols."""

import re
from datetime import date
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta, TH

from portsync.domain.models import FnoInstrumentType, OptionType
from portsync.domain.views import FnoDetails


# SYMBOL + YY + MON + FUT, e.g. NIFTY24JANFUT
_FUTURE_PATTERN = re.compile(r"^([A-Z]+)(\d{2})([A-Z]{3})FUT$")
# SYMBOL + YY + MON + STRIKE + CE/PE, e.g. BANKNIFTY24JAN48000CE
_OPTION_PATTERN = re.compile(r"^([A-Z]+)(\d{2})([A-Z]{3})(\d+(?:\.\d+)?)(CE|PE)$")

_MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

# Informational only: stored quantities already have lots multiplied out
LOT_SIZES = {
    "NIFTY": 50,
    "BANKNIFTY": 15,
    "FINNIFTY": 40,
    "MIDCPNIFTY": 75,
    "RELIANCE": 250,
}


def lot_size_for(underlying: str) -> int:
    return LOT_SIZES.get(underlying.upper(), 1)


def monthly_expiry(year: int, month: int) -> date:
    """Last Thursday of the contract month."""
    return date(year, month, 1) + relativedelta(day=31, weekday=TH(-1))


def _expiry(yy: str, mon: str) -> Optional[date]:
    month = _MONTHS.get(mon)
    if month is None:
        return None
    return monthly_expiry(2000 + int(yy), month)


def parse_fno_symbol(symbol: str) -> Optional[FnoDetails]:
    """
    Parse an F&O trading symbol into contract details.

    Symbols that match neither the futures nor the options pattern are
    returned as a FUTURE on themselves with no expiry, so callers always
    have something to display. Returns None only for an empty symbol.
    """
    if not symbol:
        return None
    symbol = symbol.strip().upper()

    match = _FUTURE_PATTERN.match(symbol)
    if match:
        underlying, yy, mon = match.groups()
        return FnoDetails(
            symbol=symbol,
            underlying_symbol=underlying,
            instrument_type=FnoInstrumentType.FUTURE,
            expiry_date=_expiry(yy, mon),
            lot_size=lot_size_for(underlying),
        )

    match = _OPTION_PATTERN.match(symbol)
    if match:
        underlying, yy, mon, strike, side = match.groups()
        return FnoDetails(
            symbol=symbol,
            underlying_symbol=underlying,
            instrument_type=FnoInstrumentType.OPTION,
            option_type=OptionType.CALL if side == "CE" else OptionType.PUT,
            strike_price=Decimal(strike),
            expiry_date=_expiry(yy, mon),
            lot_size=lot_size_for(underlying),
        )

    return FnoDetails(
        symbol=symbol,
        underlying_symbol=symbol,
        instrument_type=FnoInstrumentType.FUTURE,
        lot_size=lot_size_for(symbol),
    )
