"""
Trade API endpoints for Meridian

This module provides API endpoints for the signed-in user's trades and stats.
"""

from datetime import timezone
from typing import Any, Iterable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from meridian.analytics.pnl import resolve_pnl
from meridian.analytics.stats import compute_stats
from meridian.api.deps import get_db, get_current_user
from meridian.models.account import Account
from meridian.models.trade import Trade as TradeModel
from meridian.models.user import User
from meridian.repositories.trading import TradeRepository
from meridian.schemas.analytics import AggregateStats
from meridian.schemas.trading import Trade, TradeClose, TradeCreate, TradeStatusEnum

router = APIRouter()


def serialize_trade(trade: TradeModel) -> Trade:
    """Convert a trade row to its response schema with P&L filled in when derivable"""
    result = Trade.model_validate(trade)
    resolved = resolve_pnl(trade)
    if resolved is not None:
        result.pnl = resolved.pnl
        result.pnl_percent = resolved.pnl_percent
    return result


def serialize_trades(trades: Iterable[TradeModel]) -> List[Trade]:
    return [serialize_trade(t) for t in trades]


@router.get("/trades", response_model=List[Trade])
def get_trades(
    db: Session = Depends(get_db),
    status_filter: Optional[TradeStatusEnum] = Query(default=None, alias="status"),
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Get the current user's trades, oldest first.
    """
    repository = TradeRepository(db)
    trades = repository.list_for_user(
        current_user.id,
        status=status_filter.value if status_filter else None,
        limit=limit
    )
    return serialize_trades(trades)


@router.post("/trades", response_model=Trade, status_code=status.HTTP_201_CREATED)
def create_trade(
    *,
    db: Session = Depends(get_db),
    trade_in: TradeCreate,
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Record a trade manually.
    """
    repository = TradeRepository(db)

    if trade_in.account_id is not None:
        account = db.get(Account, trade_in.account_id)
        if not account or account.user_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Account not found"
            )

    if trade_in.external_id and repository.get_by_external_id(trade_in.external_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A trade with this external id already exists"
        )

    trade_data = trade_in.model_dump(exclude_unset=True)
    trade_data["user_id"] = current_user.id
    trade = repository.create(obj_in=trade_data)
    return serialize_trade(trade)


@router.post("/trades/{trade_id}/close", response_model=Trade)
def close_trade(
    *,
    db: Session = Depends(get_db),
    trade_id: int,
    close_in: TradeClose,
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Close an open trade.
    """
    repository = TradeRepository(db)

    trade = repository.get(id=trade_id)
    if not trade or trade.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trade not found"
        )

    exit_date = close_in.exit_date
    if exit_date.tzinfo is not None:
        exit_date = exit_date.astimezone(timezone.utc).replace(tzinfo=None)

    if exit_date < trade.entry_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Exit date cannot be before entry date"
        )

    try:
        trade = repository.close_trade(trade, close_in.exit_price, exit_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return serialize_trade(trade)


@router.get("/stats", response_model=AggregateStats)
def get_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Any:
    """
    Get aggregate statistics over the current user's closed trades.
    """
    repository = TradeRepository(db)
    trades = repository.list_for_user(current_user.id, status=TradeStatusEnum.CLOSED.value)
    return compute_stats(trades)
