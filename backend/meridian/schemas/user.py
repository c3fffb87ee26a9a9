"""
User schema for Meridian API

This module defines Pydantic models for sessions, the admin user list and
admin-managed trading settings.
"""

from typing import List, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

from meridian.schemas.analytics import AggregateStats
from meridian.schemas.trading import Trade


class RiskLevelEnum(str, Enum):
    """Risk levels an admin can assign"""
    VERY_CONSERVATIVE = "very_conservative"
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"
    MAXIMUM = "maximum"


def risk_level_for_size(size_pct: float) -> str:
    """Map a position size fraction to the matching risk level"""
    if size_pct <= 0.10:
        return RiskLevelEnum.VERY_CONSERVATIVE.value
    if size_pct <= 0.25:
        return RiskLevelEnum.CONSERVATIVE.value
    if size_pct <= 0.50:
        return RiskLevelEnum.MODERATE.value
    if size_pct <= 0.75:
        return RiskLevelEnum.AGGRESSIVE.value
    return RiskLevelEnum.MAXIMUM.value


class User(BaseModel):
    """Schema for user data returned to API"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    discord_id: str
    username: str
    avatar: Optional[str] = None
    last_login: Optional[datetime] = None


class UserSession(BaseModel):
    """The signed-in user and whether they are an admin"""
    user: User
    is_admin: bool = False


class AdminUserSummary(User):
    """Row in the admin user list"""
    trade_count: int = 0
    total_pnl: float = 0.0
    is_admin: bool = False


class AdminUserTrades(BaseModel):
    """A user's trades with their statistics"""
    user: User
    trades: List[Trade]
    stats: AggregateStats


class TradingSettingsUpdate(BaseModel):
    """Schema for admin settings updates; omitted fields are left unchanged"""
    model_config = ConfigDict(use_enum_values=True)

    trading_enabled: Optional[bool] = None
    size_pct: Optional[float] = Field(default=None, ge=0.01, le=1.0)
    max_position_size: Optional[float] = Field(default=None, gt=0)
    max_daily_loss: Optional[float] = Field(default=None, gt=0)
    risk_level: Optional[RiskLevelEnum] = None


class TradingSettingsOut(BaseModel):
    """Schema for trading settings returned to API"""
    user_id: int
    trading_enabled: bool = True
    size_pct: float = 1.0
    max_position_size: Optional[float] = None
    max_daily_loss: Optional[float] = None
    risk_level: str
    updated_at: Optional[datetime] = None


class AdminUserSettings(BaseModel):
    """A user with their trading settings"""
    user: User
    settings: TradingSettingsOut
