"""
Option Symbol Parsing for Meridian

Tradier reports option positions with OCC-style tickers:

    UNDERLYING + YYMMDD + C|P + 8-digit strike in thousandths
    QQQ260224C00607000  ->  QQQ, 2026-02-24, CALL, 607.00

Expiry years are read as 2000 + YY. This fixed epoch only covers expiries
from 2000 through 2099.
"""

import re
from datetime import date
from typing import Any, Optional

from meridian.schemas.analytics import OptionSymbol

OPTION_SYMBOL_PATTERN = re.compile(r"^([A-Z]+)(\d{6})([CP])(\d{8})$")

STRIKE_SCALE = 1000
EXPIRY_CENTURY = 2000


def is_option_symbol(symbol: Any) -> bool:
    """Fast classification gate; does not validate the embedded date"""
    return isinstance(symbol, str) and OPTION_SYMBOL_PATTERN.match(symbol) is not None


def parse_option_symbol(symbol: Any) -> Optional[OptionSymbol]:
    """
    Split an option ticker into underlying, expiry, type and strike

    Args:
        symbol: Ticker as reported by the broker

    Returns:
        Optional[OptionSymbol]: Parsed fields, or None when the symbol is not
        an option ticker (callers fall back to stock handling)
    """
    if not isinstance(symbol, str):
        return None

    match = OPTION_SYMBOL_PATTERN.match(symbol)
    if not match:
        return None

    underlying, date_str, type_char, strike_str = match.groups()

    try:
        expiry = date(
            EXPIRY_CENTURY + int(date_str[0:2]),
            int(date_str[2:4]),
            int(date_str[4:6])
        )
    except ValueError:
        return None

    return OptionSymbol(
        underlying=underlying,
        expiry=expiry.isoformat(),
        type="CALL" if type_char == "C" else "PUT",
        strike=int(strike_str) / STRIKE_SCALE
    )
