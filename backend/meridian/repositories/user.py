"""
User repository for Meridian

This module provides repositories for users, their broker accounts and their
admin-managed trading settings.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlalchemy import func
from sqlalchemy.orm import Session

from meridian.models.user import User
from meridian.models.account import Account
from meridian.models.trade import Trade
from meridian.models.trading_settings import TradingSettings
from meridian.repositories.base import BaseRepository


class UserRepository(BaseRepository[User, Any, Any]):
    """Repository for user operations"""

    def __init__(self, db: Session):
        """
        Initialize the repository

        Args:
            db: Database session
        """
        super().__init__(User, db)

    def get_by_discord_id(self, discord_id: str) -> Optional[User]:
        """
        Get a user by Discord snowflake id

        Args:
            discord_id: Discord user id

        Returns:
            Optional[User]: User or None if not found
        """
        return self.db.query(User).filter(User.discord_id == discord_id).first()

    def list_with_summary(self) -> List[Dict[str, Any]]:
        """
        Get every user with their closed-trade count

        Returns:
            List[Dict[str, Any]]: {user, trade_count} ordered by user id
        """
        trade_counts = (
            self.db.query(Trade.user_id, func.count(Trade.id).label("trade_count"))
            .filter(Trade.status == "closed")
            .group_by(Trade.user_id)
            .subquery()
        )
        rows = (
            self.db.query(User, func.coalesce(trade_counts.c.trade_count, 0))
            .outerjoin(trade_counts, trade_counts.c.user_id == User.id)
            .order_by(User.id)
            .all()
        )
        return [{"user": user, "trade_count": int(count)} for user, count in rows]

    def get_broker_accounts(self, platform: str, user_id: Optional[int] = None) -> List[Account]:
        """
        Get active accounts with credentials on a platform

        Args:
            platform: Platform name, e.g. 'tradier'
            user_id: Optional user filter

        Returns:
            List[Account]: Accounts that have both an account number and a token
        """
        query = self.db.query(Account).filter(
            Account.platform == platform,
            Account.is_active.is_(True),
            Account.account_number.isnot(None),
            Account.access_token.isnot(None)
        )
        if user_id is not None:
            query = query.filter(Account.user_id == user_id)
        return query.order_by(Account.user_id, Account.id).all()


class SettingsRepository(BaseRepository[TradingSettings, Any, Any]):
    """Repository for per-user trading settings"""

    MIRRORED_PLATFORM = "tradier"

    def __init__(self, db: Session):
        super().__init__(TradingSettings, db)

    def get_for_user(self, user_id: int) -> Optional[TradingSettings]:
        return self.db.query(TradingSettings).filter(TradingSettings.user_id == user_id).first()

    def update_settings(self, user_id: int, changes: Dict[str, Any]) -> TradingSettings:
        """
        Apply settings changes and mirror them onto the user's Tradier accounts

        Both tables are written in one transaction: either the settings row
        and the account rows change together, or neither does.

        Args:
            user_id: User ID
            changes: Subset of trading_enabled, size_pct, max_position_size,
                max_daily_loss, risk_level

        Returns:
            TradingSettings: The updated (or newly created) settings row
        """
        try:
            settings_row = self.get_for_user(user_id)
            if settings_row is None:
                settings_row = TradingSettings(
                    user_id=user_id,
                    trading_enabled=True,
                    size_pct=1.0
                )
                self.db.add(settings_row)

            for field, value in changes.items():
                setattr(settings_row, field, value)
            settings_row.updated_at = datetime.utcnow()

            account_updates: Dict[str, Any] = {}
            if "trading_enabled" in changes:
                account_updates["trading_enabled"] = changes["trading_enabled"]
            if "size_pct" in changes:
                # Accounts store an integer percent
                account_updates["size_pct"] = round(changes["size_pct"] * 100)

            if account_updates:
                account_updates["updated_at"] = datetime.utcnow()
                self.db.query(Account).filter(
                    Account.user_id == user_id,
                    Account.platform == self.MIRRORED_PLATFORM
                ).update(account_updates, synchronize_session=False)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(settings_row)
        return settings_row
