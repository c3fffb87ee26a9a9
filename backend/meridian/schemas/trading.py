"""
Trading schemas for Meridian API

This module defines Pydantic models for trade records and broker gain/loss data.
"""

from typing import Optional, Any
from datetime import date, datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AssetTypeEnum(str, Enum):
    """Asset classes a trade can be in"""
    STOCK = "stock"
    OPTION = "option"
    FUTURE = "future"


class DirectionEnum(str, Enum):
    """Trade directions; CALL/PUT are used for option positions"""
    LONG = "LONG"
    SHORT = "SHORT"
    CALL = "CALL"
    PUT = "PUT"


class OptionTypeEnum(str, Enum):
    """Option contract types"""
    CALL = "CALL"
    PUT = "PUT"


class TradeStatusEnum(str, Enum):
    """Trade lifecycle states"""
    OPEN = "open"
    CLOSED = "closed"


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class TradeBase(BaseModel):
    """Base schema for trade"""
    model_config = ConfigDict(use_enum_values=True)

    symbol: str = Field(..., min_length=1, max_length=32)
    asset_type: AssetTypeEnum = AssetTypeEnum.STOCK
    direction: DirectionEnum
    underlying: Optional[str] = None
    strike: Optional[float] = None
    expiry: Optional[date] = None
    option_type: Optional[OptionTypeEnum] = None
    entry_price: float = Field(..., ge=0)
    exit_price: Optional[float] = Field(default=None, ge=0)
    quantity: float = Field(..., gt=0)
    entry_date: datetime
    exit_date: Optional[datetime] = None
    pnl: Optional[float] = None
    pnl_percent: Optional[float] = None
    status: TradeStatusEnum = TradeStatusEnum.CLOSED
    notes: Optional[str] = None

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_status_fields(self) -> "TradeBase":
        if self.status == TradeStatusEnum.OPEN.value:
            if any(v is not None for v in (self.exit_price, self.exit_date, self.pnl, self.pnl_percent)):
                raise ValueError("Open trades cannot have exit price, exit date or P&L")
        else:
            if self.exit_price is None or self.exit_date is None:
                raise ValueError("Closed trades require exit price and exit date")
            if _as_naive_utc(self.exit_date) < _as_naive_utc(self.entry_date):
                raise ValueError("Exit date cannot be before entry date")
        return self


class TradeCreate(TradeBase):
    """Schema for creating a trade"""
    user_id: Optional[int] = None
    account_id: Optional[int] = None
    external_id: Optional[str] = None


class TradeClose(BaseModel):
    """Schema for closing an open trade"""
    exit_price: float = Field(..., gt=0)
    exit_date: datetime


class Trade(BaseModel):
    """Schema for trade from database, with P&L resolved"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    account_id: Optional[int] = None
    external_id: Optional[str] = None
    symbol: str
    asset_type: str
    direction: str
    underlying: Optional[str] = None
    strike: Optional[float] = None
    expiry: Optional[date] = None
    option_type: Optional[str] = None
    entry_price: float
    exit_price: Optional[float] = None
    quantity: float
    entry_date: datetime
    exit_date: Optional[datetime] = None
    pnl: Optional[float] = None
    pnl_percent: Optional[float] = None
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ClosedPosition(BaseModel):
    """One record from the Tradier gain/loss feed"""
    symbol: str
    cost: float
    proceeds: float
    quantity: float
    open_date: str
    close_date: str
    gain_loss: float
    gain_loss_percent: float
    term: int = 0


class SyncStats(BaseModel):
    """Outcome counters for one account sync"""
    user_id: int
    username: str
    synced: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    total_pnl: float = 0.0
