"""
Analytics schemas for Meridian

Value objects produced by the P&L and statistics engine. None of these are
persisted; they are recomputed from trade rows on every read.
"""

from typing import List, Optional
from pydantic import BaseModel


class DerivedPnl(BaseModel):
    """Dollar and percent P&L for one trade"""
    pnl: float
    pnl_percent: Optional[float] = None


class MismatchReport(BaseModel):
    """Stored P&L that disagrees with the P&L implied by the trade's prices"""
    symbol: Optional[str] = None
    expected: float
    actual: float
    difference: float

    def describe(self) -> str:
        return (
            f"P&L mismatch: expected ~${self.expected:.2f}, "
            f"got ${self.actual:.2f} (diff: ${self.difference:.2f})"
        )


class OptionSymbol(BaseModel):
    """Fields embedded in an OCC-style option ticker"""
    underlying: str
    expiry: str  # YYYY-MM-DD
    type: str  # 'CALL' or 'PUT'
    strike: float


class DailyResult(BaseModel):
    """Closed-trade P&L for one calendar day"""
    date: str
    pnl: float
    trades: int
    wins: int
    losses: int


class StatsSummary(BaseModel):
    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    profit_factor: float = 0.0
    total_pnl: float = 0.0


class ExtendedStats(BaseModel):
    current_streak: int = 0
    max_win_streak: int = 0
    max_loss_streak: int = 0
    max_drawdown: float = 0.0
    best_day: Optional[DailyResult] = None
    worst_day: Optional[DailyResult] = None
    trading_days: int = 0
    avg_trades_per_day: float = 0.0


class AggregateStats(BaseModel):
    """Roll-up of a set of closed trades"""
    summary: StatsSummary
    daily_results: List[DailyResult] = []
    extended_stats: ExtendedStats
