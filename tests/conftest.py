"""Pytest fixtures: an app on an in-memory database, order and CSV builders."""

import csv
import io

import pytest

from app import create_app
from records import OrderRecord

CSV_COLUMNS = [
    "Symbol", "Side", "Type", "Qty", "Filled Qty", "Limit Price", "Stop Price",
    "Take Profit", "Stop Loss", "Avg Fill Price", "Update Time", "Order ID",
    "Expiry", "Position ID", "Commission", "Closed P&L", "Net Closed P&L",
    "Expiry Time",
]


def _row(**values) -> dict:
    row = {
        "Symbol": "BTCUSDT",
        "Side": "Buy",
        "Type": "Market",
        "Qty": "1",
        "Filled Qty": "1",
        "Limit Price": "",
        "Stop Price": "",
        "Take Profit": "",
        "Stop Loss": "",
        "Avg Fill Price": "100",
        "Update Time": "2026-01-01 10:00:00",
        "Order ID": "O1",
        "Expiry": "",
        "Position ID": "P1",
        "Commission": "0",
        "Closed P&L": "",
        "Net Closed P&L": "",
        "Expiry Time": "",
    }
    row.update(values)
    return row


@pytest.fixture
def csv_row():
    """Build one CSV row dict; keyword names use the column names with spaces removed."""
    aliases = {name.replace(" ", "").replace("&", ""): name for name in CSV_COLUMNS}

    def build(**values):
        return _row(**{aliases.get(key, key): value for key, value in values.items()})

    return build


@pytest.fixture
def csv_text():
    """Render row dicts as CSV text with the broker header."""
    def build(rows):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=CSV_COLUMNS, lineterminator="\n")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
        return out.getvalue()

    return build


@pytest.fixture
def make_order():
    def build(**values) -> OrderRecord:
        fields = dict(
            symbol="BTCUSDT",
            side="Buy",
            order_type="Market",
            qty=1.0,
            filled_qty=1.0,
            limit_price=None,
            stop_price=None,
            take_profit=None,
            stop_loss=None,
            avg_fill_price=100.0,
            update_time="2026-01-01T10:00:00",
            order_id="O1",
            expiry=None,
            position_id="P1",
            commission=0.0,
            closed_pnl=None,
            net_closed_pnl=None,
            expiry_time=None,
        )
        fields.update(values)
        return OrderRecord(**fields)

    return build


@pytest.fixture
def round_trip_csv(csv_row, csv_text) -> str:
    """Two orders on P1: a buy entry and a sell exit with 25.0 realised."""
    return csv_text([
        csv_row(OrderID="A", Side="Buy", UpdateTime="2026-01-01 10:00:00", AvgFillPrice="100"),
        csv_row(
            OrderID="B", Side="Sell", UpdateTime="2026-01-01 10:05:00", AvgFillPrice="125",
            ClosedPL="25.0", NetClosedPL="24.0", Commission="-1.0",
        ),
    ])


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SECRET_KEY": "test",
        "ENABLE_DASHBOARD": False,
    })
    yield app
    with app.app_context():
        app.extensions["trade_store"].close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    with app.app_context():
        yield app.extensions["trade_store"]
