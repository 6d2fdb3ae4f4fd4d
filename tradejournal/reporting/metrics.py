"""
Performance statistics.

This module turns a user's trade records into the statistics report
shown on the dashboard and written by the exporters: win/loss counts,
profit factor, expectancy, drawdown, streaks, the equity curve and
breakdowns by symbol, strategy, account, session and weekday.

The computation is a pure function of the trade snapshot, the selected
timeframe and the reference time `now`.  It never raises on malformed
records; bad numbers count as zero and bad dates as "now".
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple
import pandas as pd

from ..config.schema import StatsConfig
from ..data.normalize import normalize_trades
from ..journal.models import TradeRecord, TIMEFRAMES
from ..utils.timeutils import (
    DAYS_OF_WEEK,
    SESSIONS,
    day_of_week,
    in_window,
    now_local,
    session_for_hour,
    to_local,
    window_start,
)


logger = logging.getLogger(__name__)

INFINITE_PROFIT_FACTOR = math.inf


@dataclass
class GroupStats:
    """Running totals for one group of trades."""
    trade_count: int = 0
    pnl_sum: float = 0.0
    win_count: int = 0

    def add(self, pnl: float, is_win: bool) -> None:
        self.trade_count += 1
        self.pnl_sum += pnl
        if is_win:
            self.win_count += 1

    @property
    def win_rate(self) -> float:
        return self.win_count / self.trade_count * 100 if self.trade_count else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tradeCount': self.trade_count,
            'pnlSum': self.pnl_sum,
            'winCount': self.win_count,
            'winRate': self.win_rate,
        }


@dataclass
class EquityPoint:
    """Cumulative P&L after a trade, in chronological order."""
    trade_index: int
    cumulative_equity: float
    date: pd.Timestamp
    drawdown: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tradeIndex': self.trade_index,
            'cumulativeEquity': self.cumulative_equity,
            'date': self.date.isoformat(),
            'drawdown': self.drawdown,
        }


@dataclass
class DayResult:
    date: str = ""
    pnl: float = 0.0


def _zero_groups(labels: Iterable[str]) -> Dict[str, GroupStats]:
    return {label: GroupStats() for label in labels}


@dataclass
class StatisticsReport:
    """Aggregated statistics for one trade snapshot and timeframe.

    `max_drawdown` is a positive magnitude.  `profit_factor` is
    `math.inf` when there are winning trades but no losses; use
    `profit_factor_is_infinite` rather than comparing floats.
    """

    timeframe: str = 'all'
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    profit_factor: float = 0.0
    avg_r_multiple: float = 0.0
    expectancy: float = 0.0
    max_drawdown: float = 0.0
    current_streak: int = 0
    longest_win_streak: int = 0
    longest_lose_streak: int = 0
    trades_per_day: float = 0.0
    today_pnl: float = 0.0
    week_pnl: float = 0.0
    month_pnl: float = 0.0
    daily_pnl: Dict[str, float] = field(default_factory=dict)
    best_day: DayResult = field(default_factory=DayResult)
    worst_day: DayResult = field(default_factory=DayResult)
    by_symbol: Dict[str, GroupStats] = field(default_factory=dict)
    by_strategy: Dict[str, GroupStats] = field(default_factory=dict)
    by_account: Dict[str, GroupStats] = field(default_factory=dict)
    by_session: Dict[str, GroupStats] = field(default_factory=lambda: _zero_groups(SESSIONS))
    by_day_of_week: Dict[str, GroupStats] = field(default_factory=lambda: _zero_groups(DAYS_OF_WEEK))
    equity_curve: List[EquityPoint] = field(default_factory=list)

    @property
    def profit_factor_is_infinite(self) -> bool:
        return math.isinf(self.profit_factor)

    def to_dict(self) -> Dict[str, Any]:
        """Return the report with the field names dashboard consumers expect.

        An infinite profit factor is written as the string ``"Infinity"``
        so the payload stays valid JSON.
        """
        def groups(data: Dict[str, GroupStats]) -> Dict[str, Any]:
            return {key: value.to_dict() for key, value in data.items()}

        return {
            'timeframe': self.timeframe,
            'totalTrades': self.total_trades,
            'winningTrades': self.winning_trades,
            'losingTrades': self.losing_trades,
            'breakeven': self.breakeven,
            'winRate': self.win_rate,
            'totalPnL': self.total_pnl,
            'avgWin': self.avg_win,
            'avgLoss': self.avg_loss,
            'largestWin': self.largest_win,
            'largestLoss': self.largest_loss,
            'profitFactor': 'Infinity' if self.profit_factor_is_infinite else self.profit_factor,
            'avgRMultiple': self.avg_r_multiple,
            'expectancy': self.expectancy,
            'maxDrawdown': self.max_drawdown,
            'currentStreak': self.current_streak,
            'longestWinStreak': self.longest_win_streak,
            'longestLoseStreak': self.longest_lose_streak,
            'tradesPerDay': self.trades_per_day,
            'todayPnL': self.today_pnl,
            'weekPnL': self.week_pnl,
            'monthPnL': self.month_pnl,
            'dailyPnL': dict(self.daily_pnl),
            'bestDay': {'date': self.best_day.date, 'pnl': self.best_day.pnl},
            'worstDay': {'date': self.worst_day.date, 'pnl': self.worst_day.pnl},
            'bySymbol': groups(self.by_symbol),
            'byStrategy': groups(self.by_strategy),
            'byAccount': groups(self.by_account),
            'bySession': groups(self.by_session),
            'byDayOfWeek': groups(self.by_day_of_week),
            'equityCurve': [pt.to_dict() for pt in self.equity_curve],
        }


def classify_pnl(pnl: float, epsilon: float = 0.0) -> int:
    """Return ``1`` for a win, ``-1`` for a loss and ``0`` for breakeven."""
    if pnl > epsilon:
        return 1
    if pnl < -epsilon:
        return -1
    return 0


def _chronological_key(item: Tuple[pd.Timestamp, TradeRecord]) -> Tuple[Any, ...]:
    """Sort key ordering trades by open time, ties broken on content."""
    ts, t = item
    return (
        ts,
        t.pnl,
        t.symbol,
        t.ticket_id,
        t.strategy or '',
        t.account or '',
        t.direction or '',
        t.r_multiple is not None,
        t.r_multiple or 0.0,
        t.entry_price,
        t.exit_price,
        t.lot_size,
    )


def _window_pnl(
    timed: List[Tuple[pd.Timestamp, TradeRecord]],
    timeframe: str,
    now: pd.Timestamp,
) -> float:
    start = window_start(timeframe, now)
    return sum(t.pnl for ts, t in timed if in_window(ts, start))


def compute_statistics(
    trades: Iterable[Any],
    timeframe: str = 'all',
    now: Optional[pd.Timestamp] = None,
    config: Optional[StatsConfig] = None,
) -> StatisticsReport:
    """Compute the statistics report for a trade snapshot.

    Parameters
    ----------
    trades : iterable
        `TradeRecord` objects or raw trade documents, in any order.
    timeframe : str
        ``all``, ``today``, ``week`` or ``month``.  Selects which trades
        feed the main statistics.  `today_pnl`, `week_pnl` and
        `month_pnl` always use the full snapshot.
    now : pandas.Timestamp, optional
        Reference time for the windows.  Defaults to the current time
        in the configured timezone.
    config : StatsConfig, optional
        Timezone, breakeven tolerance and fallback labels.

    Returns
    -------
    StatisticsReport
        Zeroed report (with fixed session and weekday buckets) when no
        trades fall in the window.
    """
    cfg = config or StatsConfig()
    tz_name = cfg.timezone
    now = to_local(now, tz_name) if now is not None else now_local(tz_name)

    if timeframe not in TIMEFRAMES:
        logger.warning("Unknown timeframe %r, using 'all'", timeframe)
        timeframe = 'all'

    records = normalize_trades(trades, tz_name, now)
    start = window_start(timeframe, now)
    # Every sum below runs in chronological order so that the report
    # does not depend on the order of the input
    timed = sorted(
        ((to_local(t.open_time, tz_name), t) for t in records),
        key=_chronological_key,
    )
    ordered = [(ts, t) for ts, t in timed if in_window(ts, start)]

    report = StatisticsReport(timeframe=timeframe)
    report.today_pnl = _window_pnl(timed, 'today', now)
    report.week_pnl = _window_pnl(timed, 'week', now)
    report.month_pnl = _window_pnl(timed, 'month', now)

    if not ordered:
        return report

    eps = cfg.breakeven_epsilon
    pnls = [t.pnl for _, t in ordered]
    wins = [p for p in pnls if classify_pnl(p, eps) > 0]
    losses = [p for p in pnls if classify_pnl(p, eps) < 0]
    total = len(ordered)

    report.total_trades = total
    report.winning_trades = len(wins)
    report.losing_trades = len(losses)
    report.breakeven = total - len(wins) - len(losses)
    report.total_pnl = sum(pnls)
    report.win_rate = len(wins) / total * 100

    total_wins = sum(wins)
    total_losses = abs(sum(losses))
    report.avg_win = total_wins / len(wins) if wins else 0.0
    report.avg_loss = total_losses / len(losses) if losses else 0.0
    if total_losses > 0:
        report.profit_factor = total_wins / total_losses
    elif total_wins > 0:
        report.profit_factor = INFINITE_PROFIT_FACTOR
    else:
        report.profit_factor = 0.0
    report.expectancy = report.total_pnl / total

    r_multiples = [t.r_multiple for _, t in ordered if t.r_multiple is not None]
    report.avg_r_multiple = sum(r_multiples) / len(r_multiples) if r_multiples else 0.0

    report.largest_win = max(pnls + [0.0])
    report.largest_loss = min(pnls + [0.0])

    daily: Dict[str, float] = {}
    for ts, t in ordered:
        key = ts.date().isoformat()
        daily[key] = daily.get(key, 0.0) + t.pnl
    report.daily_pnl = daily
    best_date, best_pnl = max(daily.items(), key=lambda kv: kv[1])
    worst_date, worst_pnl = min(daily.items(), key=lambda kv: kv[1])
    report.best_day = DayResult(best_date, best_pnl)
    report.worst_day = DayResult(worst_date, worst_pnl)
    report.trades_per_day = total / len(daily)

    equity = 0.0
    peak = 0.0
    max_drawdown = 0.0
    curve: List[EquityPoint] = []
    for idx, (ts, t) in enumerate(ordered, start=1):
        equity += t.pnl
        if equity > peak:
            peak = equity
        drawdown = max(peak - equity, 0.0)
        if drawdown > max_drawdown:
            max_drawdown = drawdown
        curve.append(EquityPoint(trade_index=idx, cumulative_equity=equity, date=ts, drawdown=drawdown))
    report.equity_curve = curve
    report.max_drawdown = max_drawdown

    # Breakeven trades leave both streak counters untouched
    win_streak = 0
    lose_streak = 0
    current = 0
    for _, t in ordered:
        outcome = classify_pnl(t.pnl, eps)
        if outcome > 0:
            win_streak += 1
            lose_streak = 0
            current = win_streak
        elif outcome < 0:
            lose_streak += 1
            win_streak = 0
            current = -lose_streak
        report.longest_win_streak = max(report.longest_win_streak, win_streak)
        report.longest_lose_streak = max(report.longest_lose_streak, lose_streak)
    report.current_streak = current

    for ts, t in ordered:
        is_win = classify_pnl(t.pnl, eps) > 0
        symbol = t.symbol or cfg.unknown_symbol
        strategy = t.strategy or cfg.no_strategy
        account = t.account or cfg.unassigned_account
        report.by_symbol.setdefault(symbol, GroupStats()).add(t.pnl, is_win)
        report.by_strategy.setdefault(strategy, GroupStats()).add(t.pnl, is_win)
        report.by_account.setdefault(account, GroupStats()).add(t.pnl, is_win)
        report.by_session[session_for_hour(ts.hour)].add(t.pnl, is_win)
        report.by_day_of_week[day_of_week(ts)].add(t.pnl, is_win)

    logger.debug(
        "Computed statistics for %d of %d trades (timeframe=%s)",
        total, len(records), timeframe,
    )
    return report
