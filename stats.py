# stats.py

"""
Performance statistics over closed trades.

`compute_stats()` reduces the closed trades (ordered by exit time) to the
summary shown on the dashboard: win/loss counts, P&L totals and extremes,
streaks, the cumulative equity curve, a per-symbol breakdown, the profit
factor and holding-time figures.  Every ratio has a defined value when its
denominator is zero, so an empty journal yields `empty_stats()` instead of
an error.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List


def empty_stats() -> Dict[str, Any]:
    """Statistics for a journal with no closed trades."""
    return {
        'totalTrades': 0,
        'avgTradesPerDay': 0,
        'winningTrades': 0,
        'losingTrades': 0,
        'winRate': 0,
        'totalPnl': 0,
        'totalNetPnl': 0,
        'maxProfit': 0,
        'maxLoss': 0,
        'avgProfit': 0,
        'avgLoss': 0,
        'maxWinStreak': 0,
        'maxLoseStreak': 0,
        'currentWinStreak': 0,
        'currentLoseStreak': 0,
        'avgDuration': 0,
        'minDuration': 0,
        'maxDuration': 0,
        'profitFactor': 0,
        'maxEquity': 0,
        'minEquity': 0,
        'pnlCurve': [],
        'symbolStats': {},
    }


def _streaks(pnls: List[float]) -> Dict[str, int]:
    win = lose = max_win = max_lose = 0
    for pnl in pnls:
        if pnl > 0:
            win += 1
            lose = 0
            max_win = max(max_win, win)
        elif pnl < 0:
            lose += 1
            win = 0
            max_lose = max(max_lose, lose)
        else:
            # a flat trade breaks both streaks
            win = lose = 0
    return {
        'maxWinStreak': max_win,
        'maxLoseStreak': max_lose,
        'currentWinStreak': win,
        'currentLoseStreak': lose,
    }


def _equity_curve(trades) -> Dict[str, Any]:
    cumulative = 0.0
    max_equity = 0.0
    min_equity = 0.0
    curve = []
    for trade in trades:
        if trade.net_pnl is not None:
            cumulative += trade.net_pnl
        elif trade.pnl is not None:
            cumulative += trade.pnl
        max_equity = max(max_equity, cumulative)
        min_equity = min(min_equity, cumulative)
        curve.append({'time': trade.exit_time, 'pnl': cumulative, 'symbol': trade.symbol})
    return {'pnlCurve': curve, 'maxEquity': max_equity, 'minEquity': min_equity}


def _symbol_stats(trades) -> Dict[str, Dict[str, Any]]:
    by_symbol: Dict[str, Dict[str, Any]] = {}
    for trade in trades:
        entry = by_symbol.setdefault(trade.symbol, {'wins': 0, 'losses': 0, 'pnl': 0.0})
        entry['pnl'] += trade.pnl
        if trade.pnl > 0:
            entry['wins'] += 1
        elif trade.pnl < 0:
            entry['losses'] += 1
    return by_symbol


def profit_factor(gross_profit: float, gross_loss: float) -> float:
    """Winning P&L over absolute losing P&L; ``inf`` when nothing was lost but something was won."""
    if gross_loss > 0:
        return gross_profit / gross_loss
    return math.inf if gross_profit > 0 else 0


def compute_stats(trades: Iterable[Any]) -> Dict[str, Any]:
    """Compute the dashboard statistics.

    Parameters
    ----------
    trades : iterable
        Trade objects (database rows or `TradeRecord`).  Only closed trades
        with a P&L are considered; they are processed in exit-time order.

    Returns
    -------
    dict
        Statistics keyed by the names used in the JSON API.
    """
    closed = [t for t in trades if t.is_closed and t.pnl is not None]
    if not closed:
        return empty_stats()
    closed.sort(key=lambda t: t.exit_time or "")

    pnls = [t.pnl for t in closed]
    net_pnls = [t.net_pnl for t in closed if t.net_pnl is not None]
    durations = [t.duration_seconds for t in closed if t.duration_seconds is not None]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    total = len(closed)

    trading_days = {(t.exit_time or "").split("T")[0] for t in closed}

    stats = {
        'totalTrades': total,
        'avgTradesPerDay': total / len(trading_days) if trading_days else 0,
        'winningTrades': len(wins),
        'losingTrades': len(losses),
        'winRate': len(wins) / total * 100,
        'totalPnl': sum(pnls),
        'totalNetPnl': sum(net_pnls),
        'maxProfit': max(max(pnls), 0),
        'maxLoss': min(min(pnls), 0),
        'avgProfit': sum(wins) / len(wins) if wins else 0,
        'avgLoss': sum(losses) / len(losses) if losses else 0,
        'avgDuration': sum(durations) / len(durations) if durations else 0,
        'minDuration': min(durations) if durations else 0,
        'maxDuration': max(durations) if durations else 0,
        'profitFactor': profit_factor(sum(wins), abs(sum(losses))),
        'symbolStats': _symbol_stats(closed),
    }
    stats.update(_streaks(pnls))
    stats.update(_equity_curve(closed))
    return stats


def daily_pnl(trades: Iterable[Any]) -> Dict[str, float]:
    """Net P&L per exit date (``YYYY-MM-DD``) for closed trades.

    Falls back to the gross P&L for trades without a net figure.
    """
    by_day: Dict[str, float] = {}
    for trade in trades:
        if not trade.is_closed or not trade.exit_time:
            continue
        value = trade.net_pnl if trade.net_pnl is not None else trade.pnl
        day = trade.exit_time.split("T")[0]
        by_day.setdefault(day, 0.0)
        by_day[day] += value or 0.0
    return by_day
