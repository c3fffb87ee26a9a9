"""
User model for Meridian

This module defines the User model. Users sign in with Discord, so the
Discord snowflake id is the stable identity.
"""

import sqlalchemy as sa
from sqlalchemy.orm import relationship
from datetime import datetime

from meridian.db.base import Base

class User(Base):
    """Discord-authenticated dashboard user"""
    __tablename__ = "users"

    id = sa.Column(sa.Integer, primary_key=True, index=True)
    discord_id = sa.Column(sa.String(32), unique=True, index=True, nullable=False)
    username = sa.Column(sa.String(255), nullable=False)
    avatar = sa.Column(sa.Text)
    last_login = sa.Column(sa.DateTime, default=datetime.utcnow)

    # Relationships
    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan")
    trades = relationship("Trade", back_populates="user")
    trading_settings = relationship(
        "TradingSettings", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User {self.id}: {self.username} ({self.discord_id})>"
