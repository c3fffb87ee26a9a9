"""
Raw Position Ingestion for Meridian

Turns records from the Tradier gain/loss feed into trade rows. The feed's
gain_loss is copied verbatim: it is the authoritative P&L, and the derived
value is only used to flag disagreements.
"""

import logging
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError

from meridian.analytics.pnl import contract_multiplier
from meridian.analytics.symbols import parse_option_symbol
from meridian.schemas.trading import ClosedPosition, TradeCreate

logger = logging.getLogger(__name__)


class PositionIngestionError(Exception):
    """A gain/loss record that can't be turned into a trade"""


def normalize_closed_positions(payload: Any) -> Tuple[List[ClosedPosition], int]:
    """
    Pull closed positions out of a gain/loss response body

    Tradier sends `null` (or the string "null") when there are no records and
    a bare object instead of a one-element list when there is exactly one.
    Records that fail validation are logged and left out.

    Returns:
        Tuple[List[ClosedPosition], int]: (valid positions, rejected record count)
    """
    gainloss = payload.get("gainloss") if isinstance(payload, dict) else None
    if not isinstance(gainloss, dict):
        return [], 0

    records = gainloss.get("closed_position")
    if isinstance(records, dict):
        records = [records]
    if not isinstance(records, list):
        return [], 0

    positions = []
    rejected = 0
    for record in records:
        try:
            positions.append(ClosedPosition.model_validate(record))
        except ValidationError as e:
            symbol = record.get("symbol") if isinstance(record, dict) else None
            logger.error(f"Skipping invalid gain/loss record for {symbol or 'unknown symbol'}: {e}")
            rejected += 1
    return positions, rejected


def create_position_id(position: ClosedPosition, account_number: str) -> str:
    """Stable dedup key for a closed position"""
    return (
        f"{account_number}_{position.symbol}_{position.open_date}_"
        f"{position.close_date}_{_format_quantity(position.quantity)}"
    )


def _format_quantity(quantity: float) -> str:
    # 5.0 -> "5", so ids match the integer quantities the feed reports
    return str(int(quantity)) if float(quantity).is_integer() else str(quantity)


def _parse_feed_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError as e:
        raise PositionIngestionError(f"Unparseable date in gain/loss record: {value!r}") from e


def position_to_trade(position: ClosedPosition, user_id: int, account_number: str,
                      account_id: Optional[int] = None) -> TradeCreate:
    """
    Convert a closed position into a trade row

    Args:
        position: Gain/loss record
        user_id: Owner of the account
        account_number: Broker account number, part of the dedup key
        account_id: Local account row, if known

    Returns:
        TradeCreate: Closed trade carrying the feed's P&L

    Raises:
        PositionIngestionError: If the record has zero quantity or bad dates
    """
    if position.quantity == 0:
        raise PositionIngestionError(f"Zero quantity in gain/loss record for {position.symbol}")

    option = parse_option_symbol(position.symbol)

    if option is not None:
        direction = option.type
        asset_type = "option"
    else:
        # The feed doesn't say whether a stock position was long or short
        logger.debug(f"Assuming LONG for stock position {position.symbol}")
        direction = "LONG"
        asset_type = "stock"

    quantity = abs(position.quantity)
    # Prices are stored per share, so option cost is spread over 100 shares per contract
    units = quantity * contract_multiplier(asset_type)

    return TradeCreate(
        user_id=user_id,
        account_id=account_id,
        external_id=create_position_id(position, account_number),
        symbol=position.symbol,
        asset_type=asset_type,
        direction=direction,
        underlying=option.underlying if option else None,
        strike=option.strike if option else None,
        expiry=date.fromisoformat(option.expiry) if option else None,
        option_type=option.type if option else None,
        entry_price=abs(position.cost) / units,
        exit_price=abs(position.proceeds) / units,
        quantity=quantity,
        entry_date=_parse_feed_date(position.open_date),
        exit_date=_parse_feed_date(position.close_date),
        pnl=position.gain_loss,
        pnl_percent=position.gain_loss_percent,
        status="closed",
        notes=(
            f"Synced from Tradier gainloss | Cost: ${position.cost:.2f} | "
            f"Proceeds: ${position.proceeds:.2f} | Term: {position.term} days"
        )
    )
