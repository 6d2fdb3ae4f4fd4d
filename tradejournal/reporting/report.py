"""
Report generation utilities.

This module turns a statistics report into files a trader can keep or
share: a CSV of the trades, a CSV of the equity curve, a JSON summary
of the statistics and a PNG chart of the equity curve with its
drawdown.
"""

from __future__ import annotations

import os
import json
import logging
from typing import Dict, List
import pandas as pd
import matplotlib

# Use non‑interactive backend for environments without display
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from ..data.normalize import record_to_dict
from ..journal.models import TradeRecord
from .metrics import StatisticsReport


logger = logging.getLogger(__name__)


def generate_report(
    trades: List[TradeRecord],
    report: StatisticsReport,
    out_dir: str = "results",
) -> Dict[str, str]:
    """Write report files for a statistics run.

    Creates the output directory if it does not exist and writes the
    following files:

    - `trades.csv` – the trades, oldest first
    - `equity_curve.csv` – cumulative P&L and drawdown after each trade
    - `summary.json` – the statistics report
    - `equity_curve.png` – line chart of the equity curve

    Returns a mapping of artefact name to written path.
    """
    os.makedirs(out_dir, exist_ok=True)
    paths: Dict[str, str] = {}

    # Trades CSV
    ordered = sorted(trades, key=lambda t: t.open_time)
    df_trades = pd.DataFrame([record_to_dict(t) for t in ordered])
    paths['trades'] = os.path.join(out_dir, 'trades.csv')
    df_trades.to_csv(paths['trades'], index=False)

    # Equity curve CSV
    df_eq = pd.DataFrame(
        [pt.to_dict() for pt in report.equity_curve],
        columns=['tradeIndex', 'cumulativeEquity', 'date', 'drawdown'],
    )
    paths['equity_curve'] = os.path.join(out_dir, 'equity_curve.csv')
    df_eq.to_csv(paths['equity_curve'], index=False)

    # Summary JSON
    paths['summary'] = os.path.join(out_dir, 'summary.json')
    with open(paths['summary'], 'w', encoding='utf-8') as fh:
        json.dump(report.to_dict(), fh, indent=2, ensure_ascii=False)

    # Equity curve plot
    fig, ax = plt.subplots(figsize=(10, 4))
    if not df_eq.empty:
        ax.plot(df_eq['tradeIndex'], df_eq['cumulativeEquity'], linewidth=1.5, label='Equity')
        ax.fill_between(
            df_eq['tradeIndex'],
            df_eq['cumulativeEquity'],
            df_eq['cumulativeEquity'] + df_eq['drawdown'],
            color='tab:red',
            alpha=0.2,
            label='Drawdown',
        )
        ax.set_title('Equity Curve')
        ax.set_xlabel('Trade')
        ax.set_ylabel('Cumulative P&L')
        ax.legend(loc='upper left')
    fig.tight_layout()
    paths['chart'] = os.path.join(out_dir, 'equity_curve.png')
    fig.savefig(paths['chart'])
    plt.close(fig)

    logger.info("Report written to %s", out_dir)
    return paths
