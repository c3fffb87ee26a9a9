"""
Trading repository for Meridian

This module provides the repository for trade rows. Trades are
append-only, so it has no delete method.
"""

from enum import Enum
from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlalchemy.orm import Session

from meridian.models.trade import Trade
from meridian.schemas.trading import TradeCreate

from meridian.repositories.base import BaseRepository


class UpsertOutcome(str, Enum):
    """What upsert_from_broker did with a record"""
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"


class TradeRepository(BaseRepository[Trade, TradeCreate, TradeCreate]):
    """Repository for trade operations"""

    def __init__(self, db: Session):
        """
        Initialize the repository

        Args:
            db: Database session
        """
        super().__init__(Trade, db)

    def get_by_external_id(self, external_id: str) -> Optional[Trade]:
        """
        Get a trade by broker position ID

        Args:
            external_id: Dedup key built from the broker record

        Returns:
            Optional[Trade]: Trade or None if not found
        """
        return self.db.query(Trade).filter(Trade.external_id == external_id).first()

    def list_for_user(
        self,
        user_id: int,
        status: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Trade]:
        """
        Get a user's trades, oldest entry first

        Args:
            user_id: User ID
            status: Optional 'open' or 'closed' filter
            limit: Optional maximum number of trades

        Returns:
            List[Trade]: Trades ordered by entry date ascending
        """
        query = self.db.query(Trade).filter(Trade.user_id == user_id)

        if status:
            query = query.filter(Trade.status == status)

        query = query.order_by(Trade.entry_date.asc(), Trade.id.asc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def list_with_missing_pnl(self, user_id: Optional[int] = None) -> List[Trade]:
        """Closed trades that have an exit price but no stored P&L"""
        query = self.db.query(Trade).filter(
            Trade.pnl.is_(None),
            Trade.exit_price.isnot(None),
            Trade.status == "closed"
        )
        if user_id is not None:
            query = query.filter(Trade.user_id == user_id)
        return query.order_by(Trade.user_id, Trade.entry_date.desc()).all()

    def upsert_from_broker(self, trade_in: TradeCreate, dry_run: bool = False) -> UpsertOutcome:
        """
        Insert a synced trade, or fill in P&L on an existing one

        Rows keyed on external_id that already carry a P&L are left alone, so
        re-running a sync never duplicates or rewrites settled trades.

        Args:
            trade_in: Trade built from a broker record
            dry_run: Report the outcome without writing

        Returns:
            UpsertOutcome: inserted, updated or skipped
        """
        existing = self.get_by_external_id(trade_in.external_id)

        if existing is not None and existing.pnl is not None:
            return UpsertOutcome.SKIPPED

        if existing is not None:
            if not dry_run:
                self.set_pnl(
                    existing,
                    pnl=trade_in.pnl,
                    pnl_percent=trade_in.pnl_percent,
                    exit_price=trade_in.exit_price,
                    notes=trade_in.notes
                )
            return UpsertOutcome.UPDATED

        if not dry_run:
            self.create(obj_in=trade_in)
        return UpsertOutcome.INSERTED

    def set_pnl(
        self,
        trade: Trade,
        *,
        pnl: float,
        pnl_percent: Optional[float],
        exit_price: Optional[float],
        notes: Optional[str]
    ) -> Trade:
        """Write P&L onto an existing trade"""
        return self.update(db_obj=trade, obj_in={
            "pnl": pnl,
            "pnl_percent": pnl_percent,
            "exit_price": exit_price,
            "notes": notes,
        })

    def close_trade(self, trade: Trade, exit_price: float, exit_date: datetime) -> Trade:
        """
        Close an open trade

        P&L stays null and is derived on read until a sync supplies the
        broker's figure.

        Raises:
            ValueError: If the trade is already closed
        """
        if trade.status != "open":
            raise ValueError(f"Trade {trade.id} is not open")

        update_data: Dict[str, Any] = {
            "exit_price": exit_price,
            "exit_date": exit_date,
            "status": "closed",
        }
        return self.update(db_obj=trade, obj_in=update_data)
