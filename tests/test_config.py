import os
import sys
import tempfile

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from tradejournal.config.schema import Config, load_config

import unittest


class TestLoadConfig(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "config.yaml")

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def _write(self, text: str) -> None:
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write(text)

    def test_partial_file_keeps_defaults(self) -> None:
        self._write(
            "stats:\n"
            "  timezone: Europe/Brussels\n"
            "  breakeven_epsilon: 0.5\n"
            "monte_carlo:\n"
            "  seed: 7\n"
        )
        cfg = load_config(self.path)
        self.assertEqual(cfg.stats.timezone, "Europe/Brussels")
        self.assertEqual(cfg.stats.breakeven_epsilon, 0.5)
        self.assertEqual(cfg.stats.no_strategy, "No Strategy")
        self.assertEqual(cfg.stats.default_timeframe, "all")
        self.assertEqual(cfg.monte_carlo.seed, 7)
        self.assertEqual(cfg.monte_carlo.simulations, 1000)
        self.assertEqual(cfg.report.out_dir, "results")

    def test_empty_file_matches_dataclass_defaults(self) -> None:
        self._write("")
        self.assertEqual(load_config(self.path), Config())

    def test_unknown_timeframe_is_rejected(self) -> None:
        self._write("stats:\n  default_timeframe: year\n")
        with self.assertRaises(ValueError):
            load_config(self.path)


if __name__ == '__main__':
    unittest.main()
