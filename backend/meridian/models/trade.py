"""
Trade model for Meridian

This module defines the Trade model for tracking open and closed positions.
Rows are append-only: sync jobs upsert on external_id and open trades get
closed, but nothing deletes a trade.
"""

import sqlalchemy as sa
from sqlalchemy.orm import relationship

from meridian.db.base import Base

class Trade(Base):
    """Model for a single open or closed position"""
    __tablename__ = "trades"

    id = sa.Column(sa.Integer, primary_key=True, index=True)
    user_id = sa.Column(sa.Integer, sa.ForeignKey("users.id"), nullable=False, index=True)
    account_id = sa.Column(sa.Integer, sa.ForeignKey("accounts.id"))
    external_id = sa.Column(sa.String(255), unique=True, index=True)  # Broker position id for dedup

    symbol = sa.Column(sa.String(32), nullable=False)
    asset_type = sa.Column(sa.String(20), nullable=False, default="stock")  # 'stock', 'option', 'future'
    underlying = sa.Column(sa.String(20))
    strike = sa.Column(sa.Float)
    expiry = sa.Column(sa.Date)
    option_type = sa.Column(sa.String(4))  # 'CALL' or 'PUT'

    direction = sa.Column(sa.String(10), nullable=False)  # 'LONG', 'SHORT', 'CALL', 'PUT'
    entry_price = sa.Column(sa.Float, nullable=False)
    exit_price = sa.Column(sa.Float)
    quantity = sa.Column(sa.Float, nullable=False, default=1)
    entry_date = sa.Column(sa.DateTime, nullable=False, index=True)
    exit_date = sa.Column(sa.DateTime)

    pnl = sa.Column(sa.Float)  # Authoritative when present
    pnl_percent = sa.Column(sa.Float)
    status = sa.Column(sa.String(20), nullable=False, default="closed", index=True)  # 'open' or 'closed'
    notes = sa.Column(sa.Text)

    # Relationships
    user = relationship("User", back_populates="trades")
    account = relationship("Account", back_populates="trades")

    def __repr__(self):
        return f"<Trade {self.id}: {self.direction} {self.quantity} {self.symbol} @ {self.entry_price}>"
