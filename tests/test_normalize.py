import os
import sys
import math
from datetime import datetime
import pandas as pd

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tradejournal.data.normalize import normalize_trade, normalize_trades, parse_timestamp, to_float
from tradejournal.journal.models import TradeRecord

import unittest


NOW = pd.Timestamp("2024-03-15 12:00", tz="UTC")


class TestFieldAliases(unittest.TestCase):
    def test_snake_case_document(self) -> None:
        record = normalize_trade(
            {
                "symbol": "eurusd",
                "type": "SELL",
                "entry_price": "1.1000",
                "exit_price": 1.0950,
                "stop_loss": 1.1020,
                "take_profit": 1.0900,
                "lot_size": 0.5,
                "pnl": "250.5",
                "open_time": "2024-01-02 09:30:00",
                "rr_ratio": 2.5,
                "strategy": "London Breakout",
            },
            "UTC",
            NOW,
        )
        self.assertEqual(record.symbol, "EURUSD")
        self.assertEqual(record.direction, "short")
        self.assertAlmostEqual(record.entry_price, 1.1)
        self.assertAlmostEqual(record.pnl, 250.5)
        self.assertEqual(record.r_multiple, 2.5)
        self.assertEqual(record.open_time, pd.Timestamp("2024-01-02 09:30", tz="UTC"))
        self.assertEqual(record.strategy, "London Breakout")
        self.assertIsNone(record.account)

    def test_camel_case_document(self) -> None:
        record = normalize_trade(
            {"pair": "gbpjpy", "direction": "BUY", "PnL": -40, "openTime": "2024-01-03T14:00:00", "rMultiple": -1},
            "UTC",
            NOW,
        )
        self.assertEqual(record.symbol, "GBPJPY")
        self.assertEqual(record.direction, "long")
        self.assertEqual(record.pnl, -40)
        self.assertEqual(record.r_multiple, -1)
        self.assertEqual(record.open_time.hour, 14)

    def test_first_present_alias_wins(self) -> None:
        record = normalize_trade({"pnl": 5, "PnL": 9, "openTime": "2024-01-01", "open_time": "2023-01-01"}, "UTC", NOW)
        self.assertEqual(record.pnl, 5)
        self.assertEqual(record.open_time.year, 2024)

    def test_zero_pnl_is_not_skipped_for_alias(self) -> None:
        record = normalize_trade({"pnl": 0, "PnL": 12}, "UTC", NOW)
        self.assertEqual(record.pnl, 0)

    def test_missing_fields_default(self) -> None:
        record = normalize_trade({}, "UTC", NOW)
        self.assertEqual(record.symbol, "")
        self.assertEqual(record.pnl, 0.0)
        self.assertIsNone(record.r_multiple)
        self.assertIsNone(record.direction)
        self.assertIsNone(record.strategy)
        self.assertEqual(record.open_time, NOW)

    def test_empty_r_multiple_is_absent(self) -> None:
        self.assertIsNone(normalize_trade({"rMultiple": ""}, "UTC", NOW).r_multiple)
        self.assertEqual(normalize_trade({"rMultiple": "n/a"}, "UTC", NOW).r_multiple, 0.0)

    def test_records_pass_through(self) -> None:
        record = TradeRecord(symbol="XAUUSD", open_time=NOW, pnl=3.0)
        self.assertEqual(normalize_trades([record], "UTC", NOW)[0], record)

    def test_records_get_coerced(self) -> None:
        record = TradeRecord(symbol="xauusd", open_time=None, pnl=float("nan"), r_multiple=float("inf"))
        coerced = normalize_trades([record], "UTC", NOW)[0]
        self.assertEqual(coerced.symbol, "XAUUSD")
        self.assertEqual(coerced.pnl, 0.0)
        self.assertEqual(coerced.r_multiple, 0.0)
        self.assertEqual(coerced.open_time, NOW)
        self.assertTrue(math.isnan(record.pnl))

    def test_non_mapping_entries_are_skipped(self) -> None:
        records = normalize_trades([None, {"pnl": 4}, "junk", 7], "UTC", NOW)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].pnl, 4)


class TestCoercion(unittest.TestCase):
    def test_to_float(self) -> None:
        self.assertEqual(to_float("12.5"), 12.5)
        self.assertEqual(to_float(" 1,234.5 "), 1234.5)
        self.assertEqual(to_float("abc"), 0.0)
        self.assertEqual(to_float(None), 0.0)
        self.assertEqual(to_float(float("nan")), 0.0)
        self.assertEqual(to_float("inf"), 0.0)
        self.assertEqual(to_float([1]), 0.0)

    def test_parse_mt5_dotted_date(self) -> None:
        ts = parse_timestamp("2024.01.31 13:00:00", "UTC", NOW)
        self.assertEqual(ts, pd.Timestamp("2024-01-31 13:00", tz="UTC"))

    def test_parse_epoch_values(self) -> None:
        expected = pd.Timestamp("2024-01-01 00:00", tz="UTC")
        self.assertEqual(parse_timestamp(1704067200, "UTC", NOW), expected)
        self.assertEqual(parse_timestamp(1704067200000, "UTC", NOW), expected)

    def test_parse_datetime_objects(self) -> None:
        ts = parse_timestamp(datetime(2024, 5, 1, 8, 15), "Europe/Brussels", NOW)
        self.assertEqual(ts.hour, 8)
        self.assertEqual(str(ts.tz), "Europe/Brussels")

    def test_aware_values_are_converted(self) -> None:
        ts = parse_timestamp("2024-01-01T10:00:00Z", "America/New_York", NOW)
        self.assertEqual(ts.hour, 5)

    def test_wall_clock_in_spring_forward_gap(self) -> None:
        ts = parse_timestamp("2024-03-31 02:30", "Europe/Brussels", NOW)
        self.assertEqual(ts, pd.Timestamp("2024-03-31 03:00", tz="Europe/Brussels"))

    def test_wall_clock_repeated_when_clocks_go_back(self) -> None:
        ts = parse_timestamp("2024-10-27 02:30", "Europe/Brussels", NOW)
        self.assertEqual(ts, pd.Timestamp("2024-10-27 00:30", tz="UTC"))

    def test_bad_dates_fall_back_to_now(self) -> None:
        for value in ("not a date", "", None, object(), float("nan")):
            self.assertEqual(parse_timestamp(value, "UTC", NOW), NOW)


if __name__ == '__main__':
    unittest.main()
