"""
Trading settings model for Meridian
"""

import sqlalchemy as sa
from sqlalchemy.orm import relationship

from meridian.db.base import Base

class TradingSettings(Base):
    """Per-user trading controls managed by admins"""
    __tablename__ = "user_trading_settings"
    __table_args__ = (
        sa.CheckConstraint("size_pct >= 0.0 AND size_pct <= 1.0", name="check_size_pct_range"),
    )

    id = sa.Column(sa.Integer, primary_key=True, index=True)
    user_id = sa.Column(sa.Integer, sa.ForeignKey("users.id"), unique=True, nullable=False)
    trading_enabled = sa.Column(sa.Boolean, default=False)  # must be explicitly enabled
    size_pct = sa.Column(sa.Float, default=1.0)  # fraction of portfolio per trade
    max_position_size = sa.Column(sa.Float)
    max_daily_loss = sa.Column(sa.Float)
    risk_level = sa.Column(sa.String(30))

    user = relationship("User", back_populates="trading_settings")
