# records.py

"""
Typed records passed between the CSV parser, the trade matcher and the
store.

These are plain frozen dataclasses rather than database models so the
parsing and matching code can run (and be tested) without an application
context.  The store converts them into rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OrderRecord:
    """One broker order row, normalised."""
    symbol: str
    side: str  # "Buy" or "Sell"
    order_type: str  # "Market", "Limit", "Stop Loss", "Take Profit", ...
    qty: float
    filled_qty: float
    limit_price: Optional[float]
    stop_price: Optional[float]
    take_profit: Optional[float]
    stop_loss: Optional[float]
    avg_fill_price: float
    update_time: str  # "YYYY-MM-DDTHH:MM:SS", no timezone
    order_id: str
    expiry: Optional[str]
    position_id: str
    commission: float
    closed_pnl: Optional[float]
    net_closed_pnl: Optional[float]
    expiry_time: Optional[str]


@dataclass(frozen=True)
class TradeRecord:
    """A matched round trip for one position."""
    position_id: str
    symbol: str
    direction: str  # "Long" or "Short"
    entry_time: str
    entry_price: float
    qty: float
    commission: float
    exit_time: Optional[str] = None
    exit_price: Optional[float] = None
    pnl: Optional[float] = None
    net_pnl: Optional[float] = None
    duration_seconds: Optional[int] = None
    exit_type: Optional[str] = None  # "Stop Loss", "Take Profit", "Manual"
    is_closed: bool = False
