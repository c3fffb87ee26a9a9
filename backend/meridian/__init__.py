"""
Meridian - Trading Dashboard Backend

FastAPI service for tracking broker-connected trading accounts, their trade
history and P&L statistics.
"""

__version__ = "1.0.0"
