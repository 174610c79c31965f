# PATH: tests/unit/test_trade_id.py
"""
Unit tests for the trade id convention.
"""

import unittest
from datetime import date

from core.constants import TRADE_ID_MAX
from core.trade_id import compose_trade_id, describe_trade_id


class TestComposeTradeId(unittest.TestCase):

    def test_example(self):
        self.assertEqual(compose_trade_id(7, date(2026, 1, 22), 866), 72601220866)

    def test_largest_fits_48_bits(self):
        self.assertLess(compose_trade_id(99, date(2099, 12, 31), 1439), TRADE_ID_MAX)

    def test_out_of_range_components(self):
        with self.assertRaises(ValueError):
            compose_trade_id(100, date(2026, 1, 1), 0)
        with self.assertRaises(ValueError):
            compose_trade_id(1, date(2026, 1, 1), 1440)
        with self.assertRaises(ValueError):
            compose_trade_id(1, date(1999, 12, 31), 0)


class TestDescribeTradeId(unittest.TestCase):

    def test_round_trip(self):
        info = describe_trade_id(compose_trade_id(7, date(2026, 1, 22), 866))
        self.assertTrue(info["valid"])
        self.assertEqual(info["tag"], 7)
        self.assertEqual(info["date"], "2026-01-22")
        self.assertEqual(info["time"], "14:26")

    def test_zero_and_too_wide(self):
        self.assertFalse(describe_trade_id(0)["valid"])
        self.assertFalse(describe_trade_id(TRADE_ID_MAX + 1)["valid"])

    def test_not_following_convention(self):
        # month 13
        info = describe_trade_id(12613010000)
        self.assertFalse(info["valid"])
        self.assertIn("error", info)

    def test_bad_minute(self):
        self.assertFalse(describe_trade_id(72601221500)["valid"])


if __name__ == "__main__":
    unittest.main()
