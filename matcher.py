# matcher.py

"""
Turn broker orders into round-trip trades.

Orders are bucketed by their broker position id, and each bucket yields at
most one `TradeRecord`:

- the earliest order (by update time) is the entry and fixes the direction
  (``Buy`` is long, anything else short);
- the realised P&L is taken verbatim from the first order, in file order,
  that carries a closed P&L; positions without one are still open or were
  never filled and produce no trade;
- the exit is the first order that either carries a closed P&L or trades on
  the opposite side of the entry.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from records import OrderRecord, TradeRecord

logger = logging.getLogger(__name__)

EXIT_TYPES = {
    "Stop Loss": "Stop Loss",
    "Take Profit": "Take Profit",
}


def group_by_position(orders: Iterable[OrderRecord]) -> Dict[str, List[OrderRecord]]:
    """Bucket orders by position id, keeping encounter order inside each bucket."""
    groups: Dict[str, List[OrderRecord]] = {}
    for order in orders:
        groups.setdefault(order.position_id, []).append(order)
    return groups


def _duration_seconds(entry_time: str, exit_time: str) -> Optional[int]:
    try:
        delta = datetime.fromisoformat(exit_time) - datetime.fromisoformat(entry_time)
    except ValueError:
        return None
    # Negative values are kept: they mirror the broker's own timestamps.
    return math.floor(delta.total_seconds())


def _is_exit(order: OrderRecord, direction: str) -> bool:
    if order.closed_pnl is not None:
        return True
    if direction == "Long":
        return order.side == "Sell"
    return order.side == "Buy"


def build_trade(position_orders: List[OrderRecord]) -> Optional[TradeRecord]:
    """Derive the trade for one position, or ``None`` if it has no realised P&L."""
    if not position_orders:
        return None

    # Picked in file order: exports list newest first, so this is the final close
    pnl_order = next((o for o in position_orders if o.closed_pnl is not None), None)
    if pnl_order is None:
        return None

    # sorted() is stable, so orders with equal timestamps keep file order
    ordered = sorted(position_orders, key=lambda o: o.update_time)

    entry = ordered[0]
    direction = "Long" if entry.side == "Buy" else "Short"
    exit_order = next((o for o in ordered if _is_exit(o, direction)), None)

    commission = sum(o.commission or 0.0 for o in ordered)
    pnl = pnl_order.closed_pnl
    net_pnl = pnl + commission if pnl is not None else None

    trade = TradeRecord(
        position_id=entry.position_id,
        symbol=entry.symbol,
        direction=direction,
        entry_time=entry.update_time,
        entry_price=entry.avg_fill_price,
        qty=entry.qty,
        commission=commission,
        pnl=pnl,
        net_pnl=net_pnl,
    )
    if exit_order is None:
        return trade
    return replace(
        trade,
        exit_time=exit_order.update_time,
        exit_price=exit_order.avg_fill_price,
        duration_seconds=_duration_seconds(entry.update_time, exit_order.update_time),
        exit_type=EXIT_TYPES.get(exit_order.order_type, "Manual"),
        is_closed=True,
    )


def match_trades(orders: Iterable[OrderRecord], store) -> int:
    """Match a batch of orders into trades and add the new ones to `store`.

    Positions that already have a trade in the store are left untouched, so
    importing overlapping exports is safe.  Returns the number of trades
    added.  The caller commits.
    """
    count = 0
    for position_id, position_orders in group_by_position(orders).items():
        # Without a position id the orders cannot be tied to one round trip
        if not position_id:
            logger.debug("Skipping %d orders without a position id", len(position_orders))
            continue
        trade = build_trade(position_orders)
        if trade is None:
            logger.debug("Position %s has no closed P&L yet, skipping", position_id)
            continue
        if store.has_trade(position_id):
            continue
        store.add_trade(trade)
        count += 1
    return count
