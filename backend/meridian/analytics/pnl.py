"""
P&L Derivation and Reconciliation for Meridian

Stored P&L (from the broker gain/loss feed) is authoritative. When a trade has
no stored value, P&L is derived from its prices at read time:

    bullish (LONG, CALL):  (exit - entry) * quantity * multiplier
    bearish (SHORT, PUT):  (entry - exit) * quantity * multiplier

where the multiplier is 100 for option and future contracts and 1 otherwise.
Percent P&L is a price ratio and never takes the multiplier.

Every function here is total: inputs that don't determine a P&L yield None,
never an exception and never a zero.
"""

import math
from typing import Any, Mapping, Optional

from meridian.schemas.analytics import DerivedPnl, MismatchReport


BULLISH_DIRECTIONS = frozenset({"LONG", "CALL"})
BEARISH_DIRECTIONS = frozenset({"SHORT", "PUT"})
CONTRACT_ASSET_TYPES = frozenset({"option", "future"})
CONTRACT_MULTIPLIER = 100

# Reconciliation band: 10% of the expected value plus a flat $1
TOLERANCE_RATIO = 0.10
TOLERANCE_FLOOR = 1.0
# Stored values this close to zero are not worth reconciling
MIN_RECONCILE_PNL = 1.0


def _number(value: Any) -> Optional[float]:
    """Coerce to a finite float, or None"""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def trade_field(trade: Any, name: str) -> Any:
    """Read a field from an ORM row, pydantic model or plain mapping"""
    if isinstance(trade, Mapping):
        return trade.get(name)
    return getattr(trade, name, None)


def contract_multiplier(asset_type: Any) -> int:
    """Notional multiplier: 100 per option/future contract, 1 per share"""
    if isinstance(asset_type, str) and asset_type.lower() in CONTRACT_ASSET_TYPES:
        return CONTRACT_MULTIPLIER
    return 1


def direction_sign(direction: Any) -> Optional[int]:
    """+1 for a bullish direction, -1 for bearish, None when unknown"""
    if not isinstance(direction, str):
        return None
    normalized = direction.strip().upper()
    if normalized in BULLISH_DIRECTIONS:
        return 1
    if normalized in BEARISH_DIRECTIONS:
        return -1
    return None


def derive_pnl(entry_price: Any, exit_price: Any, quantity: Any,
               direction: Any, asset_type: Any) -> Optional[DerivedPnl]:
    """
    Compute dollar and percent P&L from a trade's prices

    Args:
        entry_price: Price per share/contract at entry
        exit_price: Price per share/contract at exit (None while open)
        quantity: Shares or contracts
        direction: LONG/CALL (bullish) or SHORT/PUT (bearish), any case
        asset_type: 'stock', 'option' or 'future'

    Returns:
        Optional[DerivedPnl]: None when exit price is missing or zero, or the
        direction is unknown. pnl_percent is None when entry price is zero.
    """
    entry = _number(entry_price)
    exit_ = _number(exit_price)
    qty = _number(quantity)
    sign = direction_sign(direction)

    if exit_ is None or exit_ == 0:
        return None
    if entry is None or qty is None or sign is None:
        return None

    price_diff = exit_ - entry
    pnl = sign * price_diff * qty * contract_multiplier(asset_type)
    pnl_percent = None if entry == 0 else sign * (price_diff / entry) * 100

    return DerivedPnl(pnl=pnl, pnl_percent=pnl_percent)


def derive_trade_pnl(trade: Any) -> Optional[DerivedPnl]:
    """derive_pnl over a trade's own fields, ignoring any stored P&L"""
    return derive_pnl(
        trade_field(trade, "entry_price"),
        trade_field(trade, "exit_price"),
        trade_field(trade, "quantity"),
        trade_field(trade, "direction"),
        trade_field(trade, "asset_type"),
    )


def resolve_pnl(trade: Any) -> Optional[DerivedPnl]:
    """
    Stored P&L if present, otherwise derived from prices

    A stored dollar value without a stored percent keeps the stored dollar
    value and fills the percent from the prices.
    """
    stored = _number(trade_field(trade, "pnl"))
    if stored is None:
        return derive_trade_pnl(trade)

    stored_percent = _number(trade_field(trade, "pnl_percent"))
    if stored_percent is None:
        derived = derive_trade_pnl(trade)
        stored_percent = derived.pnl_percent if derived else None
    return DerivedPnl(pnl=stored, pnl_percent=stored_percent)


def validate_trade_pnl(trade: Any) -> Optional[MismatchReport]:
    """
    Compare a trade's stored P&L with the P&L its prices imply

    Flags only; the stored value is never corrected here.

    Returns:
        Optional[MismatchReport]: Report when the difference exceeds the
        tolerance band, None when they agree or either side is undetermined
    """
    stored = _number(trade_field(trade, "pnl"))
    if stored is None:
        return None

    derived = derive_trade_pnl(trade)
    if derived is None:
        return None

    expected = derived.pnl
    tolerance = abs(expected) * TOLERANCE_RATIO + TOLERANCE_FLOOR
    difference = abs(stored - expected)

    if difference > tolerance and abs(stored) > MIN_RECONCILE_PNL:
        return MismatchReport(
            symbol=trade_field(trade, "symbol"),
            expected=expected,
            actual=stored,
            difference=difference
        )
    return None
