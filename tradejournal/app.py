"""
Application entry point.

This module defines a command‑line interface for analysing an exported
trade journal.  ``stats`` computes the performance statistics for a
trade snapshot (JSON export or broker CSV) and writes the report files;
``montecarlo`` runs the trade reordering simulation on a small sample
of planned trades.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from typing import List, Optional
import numpy as np

from .config.schema import Config, load_config
from .data.csv_import import TradeCSVImporter
from .data.normalize import normalize_trades
from .journal.models import TIMEFRAMES
from .reporting.metrics import compute_statistics
from .reporting.montecarlo import SampleTrade, simulate_trade_orderings
from .reporting.report import generate_report
from .utils.persistence import load_documents
from .utils.timeutils import now_local


def _setup_logging(verbose: bool) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def _load_config(path: str) -> Config:
    if os.path.exists(path):
        return load_config(path)
    logging.info("No configuration at %s, using defaults", path)
    return Config()


def run_stats(config: Config, args: argparse.Namespace) -> None:
    tz_name = config.stats.timezone
    if args.csv:
        documents = TradeCSVImporter(tz_name, account=args.account).load(args.csv)
    else:
        documents = load_documents(args.trades or config.trades_path)

    now = now_local(tz_name)
    trades = normalize_trades(documents, tz_name, now)
    timeframe = args.timeframe or config.stats.default_timeframe
    report = compute_statistics(trades, timeframe=timeframe, now=now, config=config.stats)

    profit_factor = 'inf' if report.profit_factor_is_infinite else f"{report.profit_factor:.2f}"
    logging.info(
        "%d trades (%s): P&L %.2f, win rate %.1f%%, profit factor %s, max drawdown %.2f",
        report.total_trades,
        timeframe,
        report.total_pnl,
        report.win_rate,
        profit_factor,
        report.max_drawdown,
    )
    generate_report(trades, report, out_dir=args.out or config.report.out_dir)


def run_montecarlo(config: Config, args: argparse.Namespace) -> None:
    with open(args.samples, 'r', encoding='utf-8') as fh:
        samples = [SampleTrade.from_dict(raw) for raw in json.load(fh)]
    seed = args.seed if args.seed is not None else config.monte_carlo.seed
    result = simulate_trade_orderings(
        samples,
        simulations=args.simulations if args.simulations is not None else config.monte_carlo.simulations,
        bins=args.bins if args.bins is not None else config.monte_carlo.bins,
        rng=np.random.default_rng(seed),
    )
    print(json.dumps(result.to_dict(), indent=2))


def main(argv: Optional[List[str]] = None) -> None:
    """Parse command‑line arguments and dispatch to the chosen command."""
    parser = argparse.ArgumentParser(description="Trading journal analytics")
    parser.add_argument('--config', default='config.yaml', help="Path to configuration YAML file")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    sub = parser.add_subparsers(dest='command', required=True)

    stats = sub.add_parser('stats', help="Compute performance statistics and write a report")
    stats.add_argument('--trades', help="JSON snapshot of trade documents")
    stats.add_argument('--csv', help="Broker CSV export to import instead of a snapshot")
    stats.add_argument('--account', help="Account label for trades imported from CSV")
    stats.add_argument('--timeframe', choices=TIMEFRAMES, help="Window for the statistics")
    stats.add_argument('--out', help="Output directory for report files")

    mc = sub.add_parser('montecarlo', help="Simulate random orderings of sample trades")
    mc.add_argument('--samples', required=True, help="JSON list of {entry, stop, target, exit}")
    mc.add_argument('--simulations', type=int, help="Number of orderings")
    mc.add_argument('--bins', type=int, help="Histogram bins")
    mc.add_argument('--seed', type=int, help="Random seed for reproducible runs")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    config = _load_config(args.config)

    if args.command == 'stats':
        run_stats(config, args)
    else:
        run_montecarlo(config, args)


if __name__ == '__main__':
    main()
