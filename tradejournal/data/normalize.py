"""
Trade document normalisation.

Trade documents coming out of the document store are loosely typed and
use two naming conventions side by side (``pnl``/``PnL``,
``open_time``/``openTime``, ``rr_ratio``/``rMultiple`` and so on).
This module is the single place where those aliases are resolved and
where raw values are coerced into the canonical `TradeRecord`.

Coercion is lenient: an unparseable number becomes ``0.0`` and an
unparseable or missing open time becomes "now", so a malformed
document is still counted instead of being dropped.
"""

from __future__ import annotations

from collections import abc
from dataclasses import replace
from datetime import datetime, date
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import pandas as pd

from ..journal.models import TradeRecord
from ..utils.timeutils import to_local, now_local


logger = logging.getLogger(__name__)

PNL_KEYS = ('pnl', 'PnL', 'profit')
OPEN_TIME_KEYS = ('openTime', 'open_time', 'date', 'createdAt')
CLOSE_TIME_KEYS = ('closeTime', 'close_time')
R_MULTIPLE_KEYS = ('rMultiple', 'rr_ratio')
SYMBOL_KEYS = ('symbol', 'pair')
DIRECTION_KEYS = ('direction', 'type')
ENTRY_KEYS = ('entryPrice', 'entry_price')
EXIT_KEYS = ('exitPrice', 'exit_price')
STOP_KEYS = ('stopLoss', 'stop_loss')
TARGET_KEYS = ('takeProfit', 'take_profit')
LOT_KEYS = ('lotSize', 'lot_size', 'volume')
TICKET_KEYS = ('ticketId', 'ticket_id', 'dealId', 'orderId')

# Epoch values above this are taken to be milliseconds
_EPOCH_MS_THRESHOLD = 1e11


def _first(raw: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the first value among `keys` that is neither missing nor blank."""
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def to_float(value: Any) -> float:
    """Coerce `value` to a finite float, falling back to ``0.0``."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(',', '')
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug("Could not parse number %r, using 0", value)
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def parse_timestamp(value: Any, tz_name: str, now: Optional[pd.Timestamp] = None) -> pd.Timestamp:
    """Parse a stored date value into a local `pandas.Timestamp`.

    Accepts datetimes, pandas Timestamps, ISO strings, MT5 style
    ``YYYY.MM.DD HH:MM:SS`` strings and epoch seconds or milliseconds.
    Anything else resolves to `now`.
    """
    fallback = now if now is not None else now_local(tz_name)
    if value is None or isinstance(value, bool):
        return fallback
    try:
        if isinstance(value, (pd.Timestamp, datetime, date)):
            ts = pd.Timestamp(value)
        elif isinstance(value, (int, float)):
            if not math.isfinite(value):
                return fallback
            unit = 'ms' if abs(value) > _EPOCH_MS_THRESHOLD else 's'
            ts = pd.Timestamp(value, unit=unit, tz='UTC')
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return fallback
            # MT5 exports write dates as 2024.01.31
            head, sep, tail = text.partition(' ')
            if head.count('.') == 2:
                text = head.replace('.', '-') + sep + tail
            ts = pd.Timestamp(text)
        else:
            logger.debug("Unsupported date value %r, using now", value)
            return fallback
    except (TypeError, ValueError, OverflowError):
        logger.debug("Could not parse date %r, using now", value)
        return fallback
    if pd.isna(ts):
        return fallback
    return to_local(ts, tz_name)


def parse_direction(value: Any) -> Optional[str]:
    """Map ``long``/``short`` or ``BUY``/``SELL`` spellings onto a direction."""
    if value is None:
        return None
    text = str(value).strip().lower()
    if text == 'long' or 'buy' in text:
        return 'long'
    if text == 'short' or 'sell' in text:
        return 'short'
    return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_trade(
    raw: Mapping[str, Any],
    tz_name: str = "UTC",
    now: Optional[pd.Timestamp] = None,
) -> TradeRecord:
    """Build a `TradeRecord` from a raw trade document.

    Parameters
    ----------
    raw : mapping
        Document as stored, with either naming convention.
    tz_name : str
        Local timezone used for naive timestamps.
    now : pandas.Timestamp, optional
        Fallback for a missing or unparseable open time.

    Returns
    -------
    TradeRecord
        The canonical record.  Never raises on bad field content.
    """
    if now is None:
        now = now_local(tz_name)

    r_raw = _first(raw, R_MULTIPLE_KEYS)
    close_raw = _first(raw, CLOSE_TIME_KEYS)
    symbol = _first(raw, SYMBOL_KEYS)

    return TradeRecord(
        symbol=str(symbol).strip().upper() if symbol is not None else "",
        open_time=parse_timestamp(_first(raw, OPEN_TIME_KEYS), tz_name, now),
        pnl=to_float(_first(raw, PNL_KEYS)),
        direction=parse_direction(_first(raw, DIRECTION_KEYS)),
        entry_price=to_float(_first(raw, ENTRY_KEYS)),
        exit_price=to_float(_first(raw, EXIT_KEYS)),
        stop_loss=to_float(_first(raw, STOP_KEYS)),
        take_profit=to_float(_first(raw, TARGET_KEYS)),
        lot_size=to_float(_first(raw, LOT_KEYS)),
        r_multiple=None if r_raw is None else to_float(r_raw),
        strategy=_optional_str(raw.get('strategy')),
        account=_optional_str(raw.get('account')),
        close_time=None if close_raw is None else parse_timestamp(close_raw, tz_name, now),
        commission=to_float(raw.get('commission')),
        swap=to_float(raw.get('swap')),
        notes=str(raw.get('notes') or ''),
        ticket_id=str(_first(raw, TICKET_KEYS) or ''),
    )


def normalize_trades(
    raws: Iterable[Any],
    tz_name: str = "UTC",
    now: Optional[pd.Timestamp] = None,
) -> List[TradeRecord]:
    """Normalise a batch of documents.

    `TradeRecord` items get the same numeric and date coercion as raw
    documents.  Entries that are not mappings are skipped.
    """
    if now is None:
        now = now_local(tz_name)
    records: List[TradeRecord] = []
    for raw in raws:
        if isinstance(raw, TradeRecord):
            records.append(coerce_record(raw, tz_name, now))
        elif isinstance(raw, abc.Mapping):
            records.append(normalize_trade(raw, tz_name, now))
        else:
            logger.debug("Skipping non-document entry %r", raw)
    return records


def coerce_record(record: TradeRecord, tz_name: str, now: pd.Timestamp) -> TradeRecord:
    """Return a copy of `record` with finite numbers and a local open time."""
    return replace(
        record,
        symbol=str(record.symbol or '').strip().upper(),
        open_time=parse_timestamp(record.open_time, tz_name, now),
        pnl=to_float(record.pnl),
        entry_price=to_float(record.entry_price),
        exit_price=to_float(record.exit_price),
        stop_loss=to_float(record.stop_loss),
        take_profit=to_float(record.take_profit),
        lot_size=to_float(record.lot_size),
        r_multiple=None if record.r_multiple is None else to_float(record.r_multiple),
        close_time=None if record.close_time is None else parse_timestamp(record.close_time, tz_name, now),
        commission=to_float(record.commission),
        swap=to_float(record.swap),
        direction=parse_direction(record.direction),
        strategy=_optional_str(record.strategy),
        account=_optional_str(record.account),
        ticket_id=str(record.ticket_id or ''),
    )


def record_to_dict(record: TradeRecord) -> Dict[str, Any]:
    """Flatten a record into a row suitable for CSV export."""
    return {
        'open_time': record.open_time.isoformat(),
        'close_time': record.close_time.isoformat() if record.close_time is not None else '',
        'symbol': record.symbol,
        'direction': record.direction or '',
        'lot_size': record.lot_size,
        'entry_price': record.entry_price,
        'exit_price': record.exit_price,
        'stop_loss': record.stop_loss,
        'take_profit': record.take_profit,
        'pnl': record.pnl,
        'r_multiple': record.r_multiple,
        'strategy': record.strategy or '',
        'account': record.account or '',
    }
