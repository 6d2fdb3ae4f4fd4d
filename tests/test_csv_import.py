import os
import sys
import tempfile

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tradejournal.data.csv_import import TradeCSVImporter
from tradejournal.reporting.metrics import compute_statistics

import unittest


MT5_EXPORT = (
    "Time\tDeal\tSymbol\tType\tVolume\tPrice\tS/L\tT/P\tProfit\tCommission\tSwap\tComment\n"
    "2024.01.31 09:15:00\t1001\teurusd\tbuy\t0.10\t1.08500\t1.08300\t1.08900\t40.00\t-0.70\t-0.30\tbreakout\n"
    "2024.01.31 10:00:00\t1002\t\tbalance\t\t\t\t\t5000.00\t\t\tdeposit\n"
    "2024.02.01 15:30:00\t1003\tGBPUSD\tsell\t0.20\t1.27000\t1.27200\t1.26600\t-30.00\t-1.40\t0.00\t\n"
)


class TestTradeCSVImporter(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "export.csv")
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write(MT5_EXPORT)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_loads_trades_and_skips_balance_rows(self) -> None:
        trades = TradeCSVImporter("UTC", account="Live").load(self.path)
        self.assertEqual(len(trades), 2)
        first, second = trades
        self.assertEqual(first["symbol"], "EURUSD")
        self.assertEqual(first["type"], "BUY")
        self.assertEqual(first["direction"], "long")
        self.assertEqual(first["open_time"], "2024-01-31 09:15:00")
        self.assertAlmostEqual(first["pnl"], 39.0)
        self.assertAlmostEqual(first["stop_loss"], 1.083)
        self.assertEqual(first["ticketId"], "1001")
        self.assertEqual(first["account"], "Live")
        self.assertEqual(second["type"], "SELL")
        self.assertAlmostEqual(second["pnl"], -31.4)

    def test_comma_separated_export(self) -> None:
        path = os.path.join(self.tmp.name, "comma.csv")
        with open(path, "w", encoding="utf-8") as fh:
            fh.write("Open Time,Symbol,Type,Volume,Open Price,Close Price,Profit\n")
            fh.write("2024-03-01 10:00:00,XAUUSD,Buy,1,2050.5,2055.5,500\n")
        trades = TradeCSVImporter().load(path)
        self.assertEqual(len(trades), 1)
        self.assertEqual(trades[0]["entry_price"], 2050.5)
        self.assertEqual(trades[0]["exit_price"], 2055.5)
        self.assertEqual(trades[0]["pnl"], 500.0)

    def test_imported_trades_feed_statistics(self) -> None:
        trades = TradeCSVImporter("UTC").load(self.path)
        report = compute_statistics(trades)
        self.assertEqual(report.total_trades, 2)
        self.assertEqual(report.winning_trades, 1)
        self.assertEqual(report.equity_curve[0].date.hour, 9)

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            TradeCSVImporter().load(os.path.join(self.tmp.name, "missing.csv"))

    def test_export_without_direction_column(self) -> None:
        path = os.path.join(self.tmp.name, "bad.csv")
        with open(path, "w", encoding="utf-8") as fh:
            fh.write("date,close\n2024-01-01,1.1\n")
        with self.assertRaises(ValueError):
            TradeCSVImporter().load(path)

    def test_mark_duplicates(self) -> None:
        importer = TradeCSVImporter("UTC")
        trades = importer.load(self.path)
        existing = [{"symbol": "eurusd", "open_time": "2024-01-31T18:00:00", "pnl": 39.004}]
        self.assertEqual(importer.mark_duplicates(trades, existing), 1)
        self.assertTrue(trades[0]["isDuplicate"])
        self.assertFalse(trades[1]["isDuplicate"])


if __name__ == '__main__':
    unittest.main()
