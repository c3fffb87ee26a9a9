"""
Aggregate Statistics for Meridian

Rolls a user's trades up into the summary, daily results and extended stats
shown on the dashboard. Only closed trades count. Each trade's P&L is the
stored value or, when that is null, the value derived from its prices;
trades whose P&L can't be determined still count toward total_trades but are
left out of win/loss classification, streaks, drawdown and averages.

A trade is a win when its P&L is strictly positive. Everything else,
including a flat 0, is a loss.
"""

from typing import Any, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from meridian.analytics.pnl import resolve_pnl, trade_field
from meridian.schemas.analytics import (
    AggregateStats,
    DailyResult,
    ExtendedStats,
    StatsSummary,
)

# Reported when there are gains but no losses to divide by
PROFIT_FACTOR_CAP = 999.0


def is_closed(trade: Any) -> bool:
    status = trade_field(trade, "status")
    return isinstance(status, str) and status.lower() == "closed"


def closed_trades_frame(trades: Iterable[Any]) -> pd.DataFrame:
    """
    Closed trades as a DataFrame with columns [entry_date, pnl]

    Input order is kept; pnl is NaN where it could not be determined.
    """
    records = []
    for trade in trades:
        if not is_closed(trade):
            continue
        resolved = resolve_pnl(trade)
        records.append({
            "entry_date": trade_field(trade, "entry_date"),
            "pnl": resolved.pnl if resolved is not None else None,
        })

    df = pd.DataFrame(records, columns=["entry_date", "pnl"])
    df["pnl"] = pd.to_numeric(df["pnl"], errors="coerce").astype(float)
    df["entry_date"] = pd.to_datetime(df["entry_date"], errors="coerce")
    return df


def compute_streaks(outcomes: Sequence[bool]) -> Tuple[int, int, int]:
    """
    Walk win/loss outcomes in chronological order

    Args:
        outcomes: True for a win, False for a loss

    Returns:
        Tuple[int, int, int]: (current_streak, max_win_streak, max_loss_streak).
        current_streak is positive for a running win streak and negative for
        a running loss streak.
    """
    max_win_streak = 0
    max_loss_streak = 0
    run = 0
    last_was_win: Optional[bool] = None

    for is_win in outcomes:
        if last_was_win is None or last_was_win == is_win:
            run += 1
        else:
            run = 1
        last_was_win = is_win

        if is_win:
            max_win_streak = max(max_win_streak, run)
        else:
            max_loss_streak = max(max_loss_streak, run)

    if last_was_win is None:
        return 0, 0, 0
    current_streak = run if last_was_win else -run
    return current_streak, max_win_streak, max_loss_streak


def compute_max_drawdown(pnls: Sequence[float]) -> float:
    """
    Largest peak-to-trough drop of cumulative P&L

    The running peak starts at 0, so losses before any gain count as
    drawdown from the starting balance.
    """
    if len(pnls) == 0:
        return 0.0
    cumulative = pd.Series(pnls, dtype=float).cumsum()
    peak = cumulative.cummax().clip(lower=0.0)
    return float((peak - cumulative).max())


def daily_results(trades: Iterable[Any]) -> List[DailyResult]:
    """Closed-trade P&L grouped by entry date, oldest day first"""
    return _daily_results(closed_trades_frame(trades))


def _daily_results(df: pd.DataFrame) -> List[DailyResult]:
    dated = df.dropna(subset=["entry_date"])
    if dated.empty:
        return []

    results = []
    for day, group in dated.groupby(dated["entry_date"].dt.date, sort=True):
        classified = group["pnl"].dropna()
        wins = int((classified > 0).sum())
        results.append(DailyResult(
            date=day.isoformat(),
            pnl=float(classified.sum()),
            trades=len(group),
            wins=wins,
            losses=len(classified) - wins
        ))
    return results


def best_and_worst_day(days: Sequence[DailyResult]) -> Tuple[Optional[DailyResult], Optional[DailyResult]]:
    """Highest and lowest P&L day; ties go to the first day encountered"""
    if not days:
        return None, None
    # max()/min() keep the first of equal elements
    return max(days, key=lambda d: d.pnl), min(days, key=lambda d: d.pnl)


def compute_stats(trades: Iterable[Any]) -> AggregateStats:
    """
    Compute summary, daily and extended statistics

    Args:
        trades: Trade rows ordered by entry date ascending (ORM objects,
            pydantic models or mappings)

    Returns:
        AggregateStats: JSON-serializable statistics
    """
    df = closed_trades_frame(trades)
    pnls = df["pnl"].dropna()

    wins = pnls[pnls > 0]
    losses = pnls[pnls <= 0]
    classified = len(pnls)

    gross_profit = float(wins.sum())
    gross_loss = abs(float(losses.sum()))
    if gross_loss > 0:
        profit_factor = gross_profit / gross_loss
    else:
        profit_factor = PROFIT_FACTOR_CAP if gross_profit > 0 else 0.0

    summary = StatsSummary(
        total_trades=len(df),
        wins=len(wins),
        losses=len(losses),
        win_rate=100.0 * len(wins) / classified if classified else 0.0,
        avg_win=float(wins.mean()) if len(wins) else 0.0,
        avg_loss=float(losses.mean()) if len(losses) else 0.0,
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        profit_factor=profit_factor,
        total_pnl=float(pnls.sum())
    )

    days = _daily_results(df)
    best_day, worst_day = best_and_worst_day(days)
    current_streak, max_win_streak, max_loss_streak = compute_streaks(
        [pnl > 0 for pnl in pnls.tolist()]
    )

    extended = ExtendedStats(
        current_streak=current_streak,
        max_win_streak=max_win_streak,
        max_loss_streak=max_loss_streak,
        max_drawdown=compute_max_drawdown(pnls.tolist()),
        best_day=best_day,
        worst_day=worst_day,
        trading_days=len(days),
        avg_trades_per_day=len(df) / len(days) if days else 0.0
    )

    return AggregateStats(summary=summary, daily_results=days, extended_stats=extended)
