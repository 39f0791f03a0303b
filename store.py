# store.py

"""
Persistence gateway for orders, trades and import records.

`TradeStore` is the only code that talks to the database.  It is built once
by the application factory and handed to the importer, the routes, the CLI
commands and the dashboard.  All methods need an application context.
Nothing is committed implicitly: callers decide when a batch is complete.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Iterable, List

from models import Import, Order, Trade
from records import OrderRecord, TradeRecord

logger = logging.getLogger(__name__)

# Keeps IN (...) lists well below SQLite's bound-parameter limit
_ID_CHUNK = 500


class TradeStore:
    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    def open(self):
        """Create the tables and indexes if they do not exist yet."""
        self.db.create_all()

    def close(self):
        """Release the session and the connection pool."""
        self.db.session.remove()
        self.db.engine.dispose()

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    def _existing_order_ids(self, order_ids: List[str]) -> set:
        found = set()
        for start in range(0, len(order_ids), _ID_CHUNK):
            chunk = order_ids[start:start + _ID_CHUNK]
            rows = self.session.query(Order.order_id).filter(Order.order_id.in_(chunk)).all()
            found.update(row[0] for row in rows)
        return found

    def add_orders(self, orders: Iterable[OrderRecord]) -> int:
        """Insert the orders whose order id is not stored yet; return how many were added."""
        orders = list(orders)
        seen = self._existing_order_ids([o.order_id for o in orders])
        added = 0
        for order in orders:
            if order.order_id in seen:
                continue
            seen.add(order.order_id)
            self.session.add(Order(**asdict(order)))
            added += 1
        logger.debug("Queued %d new orders (%d duplicates ignored)", added, len(orders) - added)
        return added

    def has_trade(self, position_id: str) -> bool:
        return self.session.query(Trade.id).filter_by(position_id=position_id).first() is not None

    def add_trade(self, trade: TradeRecord) -> Trade:
        row = Trade(**asdict(trade))
        self.session.add(row)
        return row

    def record_import(self, filename: str, order_count: int, trade_count: int) -> Import:
        row = Import(filename=filename, order_count=order_count, trade_count=trade_count)
        self.session.add(row)
        return row

    def closed_trades(self) -> List[Trade]:
        """Closed trades with a P&L, oldest exit first."""
        return (
            Trade.query
            .filter(Trade.is_closed.is_(True), Trade.pnl.isnot(None))
            .order_by(Trade.exit_time.asc(), Trade.id.asc())
            .all()
        )

    def all_trades(self) -> List[Trade]:
        """Every trade, newest exit first; open trades (no exit time) come last."""
        return Trade.query.order_by(Trade.exit_time.desc().nullslast(), Trade.id.desc()).all()

    def imports(self) -> List[Import]:
        return Import.query.order_by(Import.imported_at.desc(), Import.id.desc()).all()

    def count_orders(self) -> int:
        return Order.query.count()

    def clear(self):
        """Delete every order, trade and import record."""
        Order.query.delete()
        Trade.query.delete()
        Import.query.delete()
