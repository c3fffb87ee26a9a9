"""
Admin API endpoints for Meridian

This module provides API endpoints for admins to review users, their trades
and P&L, and to manage per-user trading settings. Every route requires a
user on the admin allowlist.
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from meridian.analytics.pnl import validate_trade_pnl
from meridian.analytics.stats import compute_stats
from meridian.api.deps import get_admin_allowlist, get_current_admin, get_db
from meridian.api.endpoints.trades import serialize_trades
from meridian.core.security import AdminAllowlist
from meridian.models.trading_settings import TradingSettings
from meridian.models.user import User
from meridian.repositories.trading import TradeRepository
from meridian.repositories.user import SettingsRepository, UserRepository
from meridian.schemas.analytics import MismatchReport
from meridian.schemas.trading import TradeStatusEnum
from meridian.schemas.user import (
    AdminUserSettings,
    AdminUserSummary,
    AdminUserTrades,
    TradingSettingsOut,
    TradingSettingsUpdate,
    User as UserSchema,
    risk_level_for_size,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Settings that must hold a value once written
NON_NULLABLE_SETTINGS = ("trading_enabled", "size_pct", "risk_level")


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = UserRepository(db).get(id=user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


def _settings_out(user_id: int, row: Optional[TradingSettings]) -> TradingSettingsOut:
    if row is None:
        return TradingSettingsOut(user_id=user_id, risk_level=risk_level_for_size(1.0))

    size_pct = row.size_pct if row.size_pct is not None else 1.0
    return TradingSettingsOut(
        user_id=user_id,
        trading_enabled=bool(row.trading_enabled),
        size_pct=size_pct,
        max_position_size=row.max_position_size,
        max_daily_loss=row.max_daily_loss,
        risk_level=row.risk_level or risk_level_for_size(size_pct),
        updated_at=row.updated_at
    )


@router.get("/users", response_model=List[AdminUserSummary])
def list_users(
    db: Session = Depends(get_db),
    allowlist: AdminAllowlist = Depends(get_admin_allowlist),
    current_admin: User = Depends(get_current_admin)
) -> Any:
    """
    Get every user with their closed-trade count and total P&L.
    """
    trade_repository = TradeRepository(db)
    summaries = []
    for row in UserRepository(db).list_with_summary():
        user = row["user"]
        closed = trade_repository.list_for_user(user.id, status=TradeStatusEnum.CLOSED.value)
        summaries.append(AdminUserSummary(
            **UserSchema.model_validate(user).model_dump(),
            trade_count=row["trade_count"],
            total_pnl=compute_stats(closed).summary.total_pnl,
            is_admin=allowlist.is_admin(user.discord_id)
        ))
    return summaries


@router.get("/users/{user_id}/trades", response_model=AdminUserTrades)
def get_user_trades(
    user_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
) -> Any:
    """
    Get a user's trades and statistics.
    """
    user = _get_user_or_404(db, user_id)
    trades = TradeRepository(db).list_for_user(user.id)

    return AdminUserTrades(
        user=UserSchema.model_validate(user),
        trades=serialize_trades(trades),
        stats=compute_stats(trades)
    )


@router.get("/users/{user_id}/settings", response_model=AdminUserSettings)
def get_user_settings(
    user_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
) -> Any:
    """
    Get a user's trading settings, or the defaults if none are stored.
    """
    user = _get_user_or_404(db, user_id)
    row = SettingsRepository(db).get_for_user(user.id)

    return AdminUserSettings(
        user=UserSchema.model_validate(user),
        settings=_settings_out(user.id, row)
    )


@router.put("/users/{user_id}/settings", response_model=AdminUserSettings)
def update_user_settings(
    *,
    user_id: int,
    settings_in: TradingSettingsUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
) -> Any:
    """
    Update a user's trading settings.

    Changes to trading_enabled and size_pct are mirrored onto the user's
    Tradier accounts.
    """
    user = _get_user_or_404(db, user_id)

    changes = settings_in.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No updates provided"
        )

    for field in NON_NULLABLE_SETTINGS:
        if field in changes and changes[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} cannot be null"
            )

    row = SettingsRepository(db).update_settings(user.id, changes)
    logger.info(
        f"Admin {current_admin.username} updated trading settings for user {user.id}: "
        f"{', '.join(sorted(changes))}"
    )

    return AdminUserSettings(
        user=UserSchema.model_validate(user),
        settings=_settings_out(user.id, row)
    )


@router.get("/users/{user_id}/reconciliation", response_model=List[MismatchReport])
def get_user_reconciliation(
    user_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
) -> Any:
    """
    Get closed trades whose stored P&L disagrees with their prices.
    """
    user = _get_user_or_404(db, user_id)
    trades = TradeRepository(db).list_for_user(user.id, status=TradeStatusEnum.CLOSED.value)

    reports = []
    for trade in trades:
        report = validate_trade_pnl(trade)
        if report is not None:
            reports.append(report)
    return reports
