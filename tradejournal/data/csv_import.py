"""
Broker CSV importer.

This module reads trade history exported from a broker terminal and
turns each row into a trade document ready for the journal.  MetaTrader
5 style exports are the main target: the file may be comma or tab
separated and its columns are named like

```
Time,Deal,Symbol,Type,Volume,Price,S/L,T/P,Profit,Commission,Swap,Comment
```

Unknown headers are kept, lower-cased with spaces removed.  Rows whose
type is not a buy or a sell (deposits, balance corrections) are
skipped.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import pandas as pd

from .normalize import to_float, parse_direction, parse_timestamp


logger = logging.getLogger(__name__)

MT5_COLUMN_MAP: Dict[str, str] = {
    'Time': 'date',
    'Deal': 'dealId',
    'Symbol': 'pair',
    'Type': 'direction',
    'Direction': 'direction',
    'Volume': 'lotSize',
    'Price': 'entryPrice',
    'S/L': 'stopLoss',
    'T/P': 'takeProfit',
    'Profit': 'pnl',
    'Commission': 'commission',
    'Swap': 'swap',
    'Comment': 'notes',
    'Open Time': 'date',
    'Open Price': 'entryPrice',
    'Close Time': 'closeDate',
    'Close Price': 'exitPrice',
    'Order': 'orderId',
    'Ticket': 'ticketId',
}

DUPLICATE_PNL_TOLERANCE = 0.01


def _map_header(header: str) -> str:
    header = header.strip().strip('"')
    return MT5_COLUMN_MAP.get(header, header.lower().replace(' ', ''))


def _dashed(value: str) -> str:
    # 2024.01.31 13:00:00 -> 2024-01-31 13:00:00
    return value.replace('.', '-') if value.count('.') >= 2 else value


class TradeCSVImporter:
    """Load trade documents from broker CSV exports.

    Parameters
    ----------
    timezone : str
        IANA timezone of the terminal that wrote the export.
    account : str, optional
        Account label stamped on every imported trade.
    """

    def __init__(self, timezone: str = "UTC", account: Optional[str] = None) -> None:
        self.timezone = timezone
        self.account = account

    def load(self, path: str) -> List[Dict[str, Any]]:
        """Read `path` and return one document per buy/sell row.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        ValueError
            If the file has no direction column to tell trades apart
            from balance operations.
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Trade export not found: {file_path}")

        with file_path.open("r", encoding="utf-8-sig") as fh:
            first_line = fh.readline()
        sep = "\t" if "\t" in first_line else ","

        df = pd.read_csv(
            file_path,
            sep=sep,
            dtype=str,
            keep_default_na=False,
            engine="python",
            encoding="utf-8-sig",
        )
        df.columns = [_map_header(c) for c in df.columns]
        # Two source headers can map onto one field; keep the first
        df = df.loc[:, ~df.columns.duplicated()]
        if 'direction' not in df.columns:
            raise ValueError(
                f"Unrecognized trade export {file_path}: no Type/Direction column. "
                f"Found columns: {list(df.columns)}"
            )

        trades: List[Dict[str, Any]] = []
        skipped = 0
        for row in df.to_dict(orient="records"):
            row = {key: str(value).strip() for key, value in row.items()}
            direction = parse_direction(row.get('direction'))
            if direction is None:
                skipped += 1
                continue
            trades.append(self._format_trade(row, direction))

        logger.info("Imported %d trades from %s (%d non-trade rows skipped)", len(trades), file_path, skipped)
        return trades

    def _format_trade(self, row: Dict[str, str], direction: str) -> Dict[str, Any]:
        """Shape one CSV row like a journal trade document."""
        commission = to_float(row.get('commission'))
        swap = to_float(row.get('swap'))
        pnl = to_float(row.get('pnl')) + commission + swap
        return {
            'symbol': (row.get('pair') or row.get('symbol') or '').upper(),
            'type': 'BUY' if direction == 'long' else 'SELL',
            'direction': direction,
            'entry_price': to_float(row.get('entryPrice') or row.get('price')),
            'exit_price': to_float(row.get('exitPrice')),
            'lot_size': to_float(row.get('lotSize') or row.get('volume')),
            'open_time': _dashed(row.get('date', '')),
            'close_time': _dashed(row.get('closeDate', '')),
            'stop_loss': to_float(row.get('stopLoss') or row.get('sl')),
            'take_profit': to_float(row.get('takeProfit') or row.get('tp')),
            'pnl': pnl,
            'commission': commission,
            'swap': swap,
            'ticketId': row.get('ticketId') or row.get('dealId') or row.get('orderId') or '',
            'notes': row.get('notes') or row.get('comment') or '',
            'source': 'MT5',
            'account': self.account,
            'strategy': '',
        }

    def mark_duplicates(
        self,
        new_trades: Iterable[Dict[str, Any]],
        existing: Iterable[Dict[str, Any]],
    ) -> int:
        """Flag imported trades already present in the journal.

        A trade is a duplicate when an existing one has the same
        symbol, opens on the same local date and has a P&L within one
        cent.  Sets ``isDuplicate`` on every new trade and returns the
        number of duplicates found.
        """
        seen = []
        for doc in existing:
            symbol = str(doc.get('symbol') or doc.get('pair') or '').upper()
            opened = doc.get('open_time') or doc.get('openTime') or doc.get('date')
            if not opened:
                continue
            day = parse_timestamp(opened, self.timezone).date()
            seen.append((symbol, day, to_float(doc.get('pnl'))))

        duplicates = 0
        for trade in new_trades:
            day = parse_timestamp(trade.get('open_time'), self.timezone).date() if trade.get('open_time') else None
            is_dup = day is not None and any(
                symbol == trade['symbol']
                and seen_day == day
                and abs(pnl - trade['pnl']) < DUPLICATE_PNL_TOLERANCE
                for symbol, seen_day, pnl in seen
            )
            trade['isDuplicate'] = is_dup
            if is_dup:
                duplicates += 1
        return duplicates
