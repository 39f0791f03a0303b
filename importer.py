# importer.py

"""
CSV import: read the broker export, store new orders, match trades and log
the import, all in one transaction.
"""

from __future__ import annotations

import logging
from typing import Dict

from matcher import match_trades
from order_parser import parse_orders, read_csv_rows

logger = logging.getLogger(__name__)


def import_csv(store, text: str, filename: str) -> Dict[str, int]:
    """Import one broker CSV export.

    Raises `order_parser.CsvFormatError` before touching the database when
    the file is not a well-formed table.  Any failure after that rolls the
    whole batch back and is re-raised.

    Returns
    -------
    dict
        ``orderCount`` (orders newly stored) and ``tradeCount`` (trades newly
        matched).  Both are zero when the file repeats an earlier import.
    """
    rows = read_csv_rows(text)
    orders = parse_orders(rows)
    logger.debug("%s: %d rows, %d usable orders", filename, len(rows), len(orders))

    try:
        order_count = store.add_orders(orders)
        trade_count = match_trades(orders, store)
        store.record_import(filename, order_count, trade_count)
        store.commit()
    except Exception:
        store.rollback()
        raise

    logger.info("Imported %s: %d orders, %d trades", filename, order_count, trade_count)
    return {'orderCount': order_count, 'tradeCount': trade_count}
