# order_parser.py

"""
Broker order CSV parsing.

`read_csv_rows()` turns the uploaded text into a list of dictionaries keyed
by the (trimmed) header names and reports structural problems such as a
missing header or rows with the wrong number of fields.  `parse_order_row()`
normalises one of those dictionaries into an `OrderRecord`.

Row-level noise (blank numbers, unparsable prices) is never an error: it is
replaced by ``0`` for the required numeric columns and ``None`` for the
optional ones.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from datetime import datetime
from typing import Dict, List, Optional

from records import OrderRecord

logger = logging.getLogger(__name__)

BROKER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
ISO_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


class CsvFormatError(ValueError):
    """Raised when the uploaded file cannot be read as a CSV table.

    ``details`` holds one dictionary per problem with the keys ``type``,
    ``code``, ``message`` and ``row`` (zero-based data row, or ``None`` when
    the problem is not tied to a row).
    """

    def __init__(self, details: List[Dict[str, object]]):
        self.details = details
        first = details[0]["message"] if details else "invalid CSV"
        super().__init__(f"CSV parsing error: {first}")


def _sniff_delimiter(header_line: str) -> str:
    try:
        return csv.Sniffer().sniff(header_line, delimiters=",;\t").delimiter
    except csv.Error:
        return csv.get_dialect('excel').delimiter


def read_csv_rows(text: str) -> List[Dict[str, str]]:
    """Read CSV text with a header row into a list of row dictionaries.

    Header names are stripped of surrounding whitespace, blank lines are
    skipped and a leading byte order mark is ignored.  Raises
    `CsvFormatError` if the table is malformed; no rows are returned in
    that case.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    header_line = text.split("\n", 1)[0]
    if not header_line.strip():
        raise CsvFormatError([{
            "type": "Header",
            "code": "MissingHeader",
            "message": "CSV file has no header row",
            "row": None,
        }])

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=_sniff_delimiter(header_line), strict=True)
    errors: List[Dict[str, object]] = []
    rows: List[Dict[str, str]] = []
    header: Optional[List[str]] = None
    try:
        for fields in reader:
            if header is None:
                header = [name.strip() for name in fields]
                continue
            if not any(value.strip() for value in fields):
                continue
            index = len(rows)
            if len(fields) < len(header):
                errors.append({
                    "type": "FieldMismatch",
                    "code": "TooFewFields",
                    "message": f"Too few fields: expected {len(header)} fields but parsed {len(fields)}",
                    "row": index,
                })
            elif len(fields) > len(header):
                errors.append({
                    "type": "FieldMismatch",
                    "code": "TooManyFields",
                    "message": f"Too many fields: expected {len(header)} fields but parsed {len(fields)}",
                    "row": index,
                })
            rows.append(dict(zip(header, fields)))
    except csv.Error as exc:
        errors.append({
            "type": "Quotes",
            "code": "InvalidQuotes",
            "message": f"line {reader.line_num}: {exc}",
            "row": len(rows),
        })

    if errors:
        raise CsvFormatError(errors)
    return rows


def _clean_number(num_str: Optional[str]) -> Optional[float]:
    if num_str is None:
        return None
    num_str = num_str.replace('$', '').replace(',', '').strip()
    if not num_str:
        return None
    if num_str.startswith('(') and num_str.endswith(')'):
        num_str = '-' + num_str[1:-1]
    try:
        value = float(num_str)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _required_number(row: Dict[str, str], column: str) -> float:
    value = _clean_number(row.get(column))
    return 0.0 if value is None else value


def _optional_text(row: Dict[str, str], column: str) -> Optional[str]:
    value = (row.get(column) or "").strip()
    return value or None


def to_iso_time(value: Optional[str]) -> str:
    """Convert a broker timestamp ``YYYY-MM-DD HH:MM:SS`` to ``YYYY-MM-DDTHH:MM:SS``.

    No timezone conversion is applied.  Values in any other shape keep their
    text, with the first space replaced by ``T``.
    """
    value = (value or "").strip()
    try:
        return datetime.strptime(value, BROKER_TIME_FORMAT).strftime(ISO_TIME_FORMAT)
    except ValueError:
        return value.replace(" ", "T", 1)


def parse_order_row(row: Dict[str, str]) -> Optional[OrderRecord]:
    """Normalise one CSV row into an `OrderRecord`.

    Returns ``None`` for rows without a symbol or an order id.
    """
    symbol = (row.get('Symbol') or "").strip()
    order_id = (row.get('Order ID') or "").strip()
    if not symbol or not order_id:
        logger.debug("Skipping row without symbol or order id: %r", row)
        return None

    return OrderRecord(
        symbol=symbol,
        side=(row.get('Side') or "").strip(),
        order_type=(row.get('Type') or "").strip(),
        qty=_required_number(row, 'Qty'),
        filled_qty=_required_number(row, 'Filled Qty'),
        limit_price=_clean_number(row.get('Limit Price')),
        stop_price=_clean_number(row.get('Stop Price')),
        take_profit=_clean_number(row.get('Take Profit')),
        stop_loss=_clean_number(row.get('Stop Loss')),
        avg_fill_price=_required_number(row, 'Avg Fill Price'),
        update_time=to_iso_time(row.get('Update Time')),
        order_id=order_id,
        expiry=_optional_text(row, 'Expiry'),
        position_id=(row.get('Position ID') or "").strip(),
        commission=_required_number(row, 'Commission'),
        closed_pnl=_clean_number(row.get('Closed P&L')),
        net_closed_pnl=_clean_number(row.get('Net Closed P&L')),
        expiry_time=_optional_text(row, 'Expiry Time'),
    )


def parse_orders(rows: List[Dict[str, str]]) -> List[OrderRecord]:
    """Parse every row, dropping the ones `parse_order_row` rejects."""
    orders = []
    for row in rows:
        order = parse_order_row(row)
        if order is not None:
            orders.append(order)
    return orders
