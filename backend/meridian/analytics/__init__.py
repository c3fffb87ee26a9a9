"""
Meridian Analytics Package

Pure P&L computation over already-fetched trade data: option symbol parsing,
gain/loss ingestion, P&L derivation and reconciliation, aggregate statistics.
"""

__all__ = [
    'symbols',
    'ingestion',
    'pnl',
    'stats'
]
