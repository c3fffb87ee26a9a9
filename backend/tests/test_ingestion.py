"""
Tests for converting Tradier gain/loss records into trades
"""

import unittest
from datetime import date, datetime

from meridian.analytics.ingestion import (
    PositionIngestionError,
    create_position_id,
    normalize_closed_positions,
    position_to_trade,
)
from meridian.analytics.pnl import derive_trade_pnl
from meridian.schemas.trading import ClosedPosition


def option_position(**overrides):
    values = {
        "symbol": "QQQ260224C00607000",
        "cost": 400.0,
        "proceeds": 650.0,
        "quantity": 2,
        "open_date": "2026-02-10T00:00:00.000Z",
        "close_date": "2026-02-12T00:00:00.000Z",
        "gain_loss": 250.0,
        "gain_loss_percent": 62.5,
        "term": 2,
    }
    values.update(overrides)
    return ClosedPosition(**values)


class TestNormalizeClosedPositions(unittest.TestCase):
    """Test cases for reading gain/loss response bodies"""

    def test_list_payload(self):
        payload = {"gainloss": {"closed_position": [
            option_position().model_dump(), option_position(symbol="AAPL").model_dump()
        ]}}
        positions, rejected = normalize_closed_positions(payload)
        self.assertEqual([p.symbol for p in positions], ["QQQ260224C00607000", "AAPL"])
        self.assertEqual(rejected, 0)

    def test_single_object_payload(self):
        payload = {"gainloss": {"closed_position": option_position().model_dump()}}
        positions, _ = normalize_closed_positions(payload)
        self.assertEqual(len(positions), 1)

    def test_empty_payloads(self):
        for payload in [None, {}, {"gainloss": None}, {"gainloss": "null"},
                        {"gainloss": {"closed_position": None}}]:
            self.assertEqual(normalize_closed_positions(payload), ([], 0))

    def test_invalid_records_are_dropped(self):
        good = option_position().model_dump()
        no_gain_loss = dict(good, symbol="MSFT", gain_loss=None)
        no_dates = {k: v for k, v in good.items() if k not in ("open_date", "close_date")}
        payload = {"gainloss": {"closed_position": [no_gain_loss, good, no_dates, "garbage"]}}

        with self.assertLogs("meridian.analytics.ingestion", level="ERROR") as logs:
            positions, rejected = normalize_closed_positions(payload)

        self.assertEqual([p.symbol for p in positions], ["QQQ260224C00607000"])
        self.assertEqual(rejected, 3)
        self.assertIn("MSFT", logs.output[0])


class TestPositionToTrade(unittest.TestCase):
    """Test cases for position_to_trade"""

    def test_position_id(self):
        position = option_position(quantity=2.0)
        self.assertEqual(
            create_position_id(position, "6YA00001"),
            "6YA00001_QQQ260224C00607000_2026-02-10T00:00:00.000Z_2026-02-12T00:00:00.000Z_2"
        )

    def test_option_position(self):
        trade = position_to_trade(option_position(), user_id=7, account_number="6YA00001", account_id=3)

        self.assertEqual(trade.user_id, 7)
        self.assertEqual(trade.account_id, 3)
        self.assertEqual(trade.asset_type, "option")
        self.assertEqual(trade.direction, "CALL")
        self.assertEqual(trade.option_type, "CALL")
        self.assertEqual(trade.underlying, "QQQ")
        self.assertAlmostEqual(trade.strike, 607.0)
        self.assertEqual(trade.expiry, date(2026, 2, 24))
        self.assertEqual(trade.status, "closed")
        self.assertEqual(trade.entry_date, datetime(2026, 2, 10))
        self.assertEqual(trade.exit_date, datetime(2026, 2, 12))

        # Per-share prices: 400 / (2 contracts * 100)
        self.assertAlmostEqual(trade.entry_price, 2.0)
        self.assertAlmostEqual(trade.exit_price, 3.25)
        self.assertEqual(trade.pnl, 250.0)
        self.assertEqual(trade.pnl_percent, 62.5)

    def test_option_prices_reproduce_feed_pnl(self):
        trade = position_to_trade(option_position(), user_id=7, account_number="6YA00001")
        self.assertAlmostEqual(derive_trade_pnl(trade).pnl, 250.0)

    def test_stock_position_is_long(self):
        position = option_position(symbol="AAPL", cost=1500.0, proceeds=1600.0, quantity=10,
                                   gain_loss=100.0, gain_loss_percent=6.67)
        trade = position_to_trade(position, user_id=7, account_number="6YA00001")

        self.assertEqual(trade.asset_type, "stock")
        self.assertEqual(trade.direction, "LONG")
        self.assertIsNone(trade.underlying)
        self.assertIsNone(trade.option_type)
        self.assertAlmostEqual(trade.entry_price, 150.0)
        self.assertAlmostEqual(trade.exit_price, 160.0)
        self.assertIn("Term: 2 days", trade.notes)

    def test_zero_quantity_is_rejected(self):
        with self.assertRaises(PositionIngestionError):
            position_to_trade(option_position(quantity=0), user_id=7, account_number="6YA00001")

    def test_bad_date_is_rejected(self):
        with self.assertRaises(PositionIngestionError):
            position_to_trade(option_position(open_date="yesterday"), user_id=7, account_number="6YA00001")


if __name__ == "__main__":
    unittest.main()
