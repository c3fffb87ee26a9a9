"""
Tests for P&L derivation, resolution and reconciliation
"""

import math
import unittest
from types import SimpleNamespace

from meridian.analytics.pnl import (
    contract_multiplier,
    derive_pnl,
    direction_sign,
    resolve_pnl,
    validate_trade_pnl,
)


class TestDerivePnl(unittest.TestCase):
    """Test cases for derive_pnl"""

    def test_long_stock(self):
        result = derive_pnl(100.0, 110.0, 10, "LONG", "stock")
        self.assertAlmostEqual(result.pnl, 100.0)
        self.assertAlmostEqual(result.pnl_percent, 10.0)

    def test_short_stock_profits_when_price_falls(self):
        result = derive_pnl(100.0, 90.0, 10, "SHORT", "stock")
        self.assertAlmostEqual(result.pnl, 100.0)
        self.assertAlmostEqual(result.pnl_percent, 10.0)

    def test_call_option_uses_contract_multiplier(self):
        result = derive_pnl(2.0, 3.5, 2, "CALL", "option")
        self.assertAlmostEqual(result.pnl, 300.0)
        # Percent is a price ratio and skips the multiplier
        self.assertAlmostEqual(result.pnl_percent, 75.0)

    def test_put_is_bearish(self):
        result = derive_pnl(2.0, 1.0, 1, "PUT", "option")
        self.assertAlmostEqual(result.pnl, 100.0)
        self.assertAlmostEqual(result.pnl_percent, 50.0)

    def test_direction_is_case_insensitive(self):
        self.assertEqual(
            derive_pnl(10, 12, 5, "long", "stock"),
            derive_pnl(10, 12, 5, "LONG", "stock")
        )
        self.assertEqual(direction_sign(" Short "), -1)

    def test_missing_exit_price_is_undetermined(self):
        for entry, qty in [(0, 1), (10, 5), (123.45, 0.5)]:
            self.assertIsNone(derive_pnl(entry, None, qty, "LONG", "stock"))

    def test_zero_exit_price_is_undetermined(self):
        self.assertIsNone(derive_pnl(10, 0, 5, "LONG", "stock"))

    def test_unknown_direction_is_undetermined(self):
        self.assertIsNone(derive_pnl(10, 12, 5, "SIDEWAYS", "stock"))
        self.assertIsNone(derive_pnl(10, 12, 5, None, "stock"))

    def test_zero_entry_price_has_no_percent(self):
        for exit_price in [1.0, 12.0, 250.0]:
            result = derive_pnl(0, exit_price, 3, "LONG", "stock")
            self.assertIsNotNone(result)
            self.assertAlmostEqual(result.pnl, exit_price * 3)
            self.assertIsNone(result.pnl_percent)

    def test_non_numeric_input_never_raises(self):
        self.assertIsNone(derive_pnl("abc", 12, 5, "LONG", "stock"))
        self.assertIsNone(derive_pnl(10, 12, float("nan"), "LONG", "stock"))
        self.assertIsNone(derive_pnl(10, math.inf, 5, "LONG", "stock"))

    def test_long_short_symmetry(self):
        cases = [(10, 12, 5, "stock"), (3.2, 1.1, 2, "option"), (50, 50.5, 1, "future")]
        for entry, exit_price, qty, asset_type in cases:
            long_result = derive_pnl(entry, exit_price, qty, "LONG", asset_type)
            short_result = derive_pnl(entry, exit_price, qty, "SHORT", asset_type)
            self.assertAlmostEqual(long_result.pnl, -short_result.pnl)

    def test_option_multiplier_property(self):
        for direction in ["LONG", "SHORT", "CALL", "PUT"]:
            stock = derive_pnl(4.0, 5.5, 3, direction, "stock")
            option = derive_pnl(4.0, 5.5, 3, direction, "option")
            self.assertAlmostEqual(option.pnl, 100 * stock.pnl)

    def test_contract_multiplier(self):
        self.assertEqual(contract_multiplier("option"), 100)
        self.assertEqual(contract_multiplier("FUTURE"), 100)
        self.assertEqual(contract_multiplier("stock"), 1)
        self.assertEqual(contract_multiplier(None), 1)


class TestResolvePnl(unittest.TestCase):
    """Test cases for resolve_pnl"""

    def test_stored_pnl_wins(self):
        trade = {"pnl": 42.0, "pnl_percent": 4.2, "entry_price": 10, "exit_price": 20,
                 "quantity": 1, "direction": "LONG", "asset_type": "stock"}
        result = resolve_pnl(trade)
        self.assertEqual(result.pnl, 42.0)
        self.assertEqual(result.pnl_percent, 4.2)

    def test_stored_pnl_without_percent_fills_percent_from_prices(self):
        trade = {"pnl": 42.0, "pnl_percent": None, "entry_price": 10, "exit_price": 12,
                 "quantity": 1, "direction": "LONG", "asset_type": "stock"}
        result = resolve_pnl(trade)
        self.assertEqual(result.pnl, 42.0)
        self.assertAlmostEqual(result.pnl_percent, 20.0)

    def test_null_pnl_is_derived(self):
        trade = SimpleNamespace(pnl=None, pnl_percent=None, entry_price=10, exit_price=12,
                                quantity=10, direction="LONG", asset_type="stock")
        self.assertAlmostEqual(resolve_pnl(trade).pnl, 20.0)

    def test_open_trade_is_undetermined(self):
        trade = SimpleNamespace(pnl=None, pnl_percent=None, entry_price=10, exit_price=None,
                                quantity=10, direction="LONG", asset_type="stock")
        self.assertIsNone(resolve_pnl(trade))


class TestValidateTradePnl(unittest.TestCase):
    """Test cases for validate_trade_pnl"""

    def setUp(self):
        self.trade = {"entry_price": 10, "exit_price": 12, "quantity": 10,
                      "direction": "LONG", "asset_type": "stock", "symbol": "AAPL"}

    def test_matching_pnl_is_not_flagged(self):
        self.assertIsNone(validate_trade_pnl({**self.trade, "pnl": 20}))

    def test_mismatch_is_flagged(self):
        report = validate_trade_pnl({**self.trade, "pnl": 5})
        self.assertIsNotNone(report)
        self.assertAlmostEqual(report.expected, 20.0)
        self.assertAlmostEqual(report.actual, 5.0)
        self.assertAlmostEqual(report.difference, 15.0)
        self.assertEqual(report.symbol, "AAPL")
        self.assertIn("expected ~$20.00", report.describe())

    def test_within_tolerance_is_not_flagged(self):
        # Tolerance is 20 * 0.1 + 1 = 3
        self.assertIsNone(validate_trade_pnl({**self.trade, "pnl": 17.5}))

    def test_near_zero_stored_pnl_is_skipped(self):
        self.assertIsNone(validate_trade_pnl({**self.trade, "pnl": 0.5}))

    def test_missing_stored_pnl_is_skipped(self):
        self.assertIsNone(validate_trade_pnl({**self.trade, "pnl": None}))

    def test_underivable_trade_is_skipped(self):
        self.assertIsNone(validate_trade_pnl({**self.trade, "pnl": 500, "exit_price": None}))


if __name__ == "__main__":
    unittest.main()
