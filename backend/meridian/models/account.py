"""
Broker account model for Meridian

This module defines the Account model holding a user's connection to a
broker or prediction-market platform.
"""

import sqlalchemy as sa
from sqlalchemy.orm import relationship

from meridian.db.base import Base

class Account(Base):
    """A user's account on an external trading platform"""
    __tablename__ = "accounts"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "platform", "account_number", name="uq_account_platform_number"),
    )

    id = sa.Column(sa.Integer, primary_key=True, index=True)
    user_id = sa.Column(sa.Integer, sa.ForeignKey("users.id"), nullable=False, index=True)
    platform = sa.Column(sa.String(50), nullable=False)  # 'tradier', 'polymarket'
    account_name = sa.Column(sa.String(255))
    account_number = sa.Column(sa.String(100))
    access_token = sa.Column(sa.Text)
    balance = sa.Column(sa.Float, default=0.0)
    is_active = sa.Column(sa.Boolean, default=True)

    # Mirrored from TradingSettings; size_pct here is an integer percent (1-100)
    trading_enabled = sa.Column(sa.Boolean, default=False)
    size_pct = sa.Column(sa.Integer, default=100)

    user = relationship("User", back_populates="accounts")
    trades = relationship("Trade", back_populates="account")

    def __repr__(self):
        return f"<Account {self.id}: {self.platform} {self.account_number}>"
