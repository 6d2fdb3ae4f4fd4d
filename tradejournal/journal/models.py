"""
Trade record model.

`TradeRecord` is the canonical shape every stored trade document is
mapped onto before any statistics are computed.  Documents in the
store use more than one naming convention; `data.normalize` resolves
those so the rest of the code only ever sees this dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
import pandas as pd


TIMEFRAMES: Tuple[str, ...] = ('all', 'today', 'week', 'month')


@dataclass
class TradeRecord:
    """Represents one executed trade."""
    symbol: str
    open_time: pd.Timestamp
    pnl: float = 0.0
    direction: Optional[str] = None  # 'long' or 'short'
    entry_price: float = 0.0
    exit_price: float = 0.0
    stop_loss: float = 0.0
    take_profit: float = 0.0
    lot_size: float = 0.0
    r_multiple: Optional[float] = None
    strategy: Optional[str] = None
    account: Optional[str] = None
    close_time: Optional[pd.Timestamp] = None
    commission: float = 0.0
    swap: float = 0.0
    notes: str = ""
    ticket_id: str = ""
