"""Tests for the Dash chart, card and table builders and mounting."""

from Dashboard import (
    build_equity_figure,
    build_stats_cards,
    build_symbol_figure,
    build_symbol_table,
    build_trades_table,
    init_dashboard,
)
from app import create_app
from stats import empty_stats


def _stats() -> dict:
    stats = empty_stats()
    stats["pnlCurve"] = [
        {"time": "2026-01-01T10:05:00", "pnl": 24.0, "symbol": "BTCUSDT"},
        {"time": "2026-01-01T11:00:00", "pnl": 14.0, "symbol": "ETHUSDT"},
    ]
    stats["symbolStats"] = {
        "ETHUSDT": {"wins": 0, "losses": 1, "pnl": -10.0},
        "BTCUSDT": {"wins": 1, "losses": 0, "pnl": 25.0},
    }
    return stats


def test_equity_figure() -> None:
    fig = build_equity_figure(_stats())
    trace = fig["data"][0]
    assert list(trace.x) == ["2026-01-01T10:05:00", "2026-01-01T11:00:00"]
    assert list(trace.y) == [24.0, 14.0]


def test_symbol_figure_sorted_and_coloured() -> None:
    trace = build_symbol_figure(_stats())["data"][0]
    assert list(trace.x) == ["BTCUSDT", "ETHUSDT"]
    assert list(trace.y) == [25.0, -10.0]
    assert list(trace.marker.color) == ["#28a745", "#dc3545"]


def test_figures_for_empty_journal() -> None:
    assert len(build_equity_figure(empty_stats())["data"][0].x) == 0
    assert len(build_symbol_figure(empty_stats())["data"][0].x) == 0


def test_dashboard_is_mounted() -> None:
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "ENABLE_DASHBOARD": False,
    })
    dash_app = init_dashboard(app, app.extensions["trade_store"])
    assert dash_app.config.url_base_pathname == "/dash/"
    resp = app.test_client().get("/dash/")
    assert resp.status_code == 200


def _cards(stats) -> dict:
    return {card.children[0].children: card.children[1].children
            for card in build_stats_cards(stats).children}


def _rows(table) -> list:
    body = table.children[1]
    return [[cell.children for cell in row.children] for row in body.children]


def test_stats_cards() -> None:
    stats = _stats()
    stats.update({
        "totalTrades": 2, "winRate": 50.0, "totalPnl": 15.0, "totalNetPnl": 14.0,
        "profitFactor": 2.5, "maxWinStreak": 1, "maxLoseStreak": 1,
        "currentWinStreak": 0, "currentLoseStreak": 1,
        "avgDuration": 450, "minDuration": 300, "maxDuration": 3900,
        "maxEquity": 24.0, "minEquity": 14.0, "avgTradesPerDay": 2.0,
    })
    cards = _cards(stats)
    assert cards["Win Rate"] == "50.0%"
    assert cards["Profit Factor"] == "2.50"
    assert cards["Net P/L"] == "14.00"
    assert cards["Lose Streak"] == "1 (max 1)"
    assert cards["Avg Duration"] == "7m 30s"
    assert cards["Min / Max Duration"] == "5m 0s / 1h 5m"
    assert cards["Max Equity"] == "24.00"
    assert cards["Trades per Day"] == "2.00"


def test_stats_cards_unbounded_profit_factor() -> None:
    stats = empty_stats()
    stats["profitFactor"] = float("inf")
    assert _cards(stats)["Profit Factor"] == "∞"
    assert _cards(empty_stats())["Win Rate"] == "0.0%"


def test_symbol_table_best_symbol_first() -> None:
    table = build_symbol_table(_stats())
    headers = [th.children for th in table.children[0].children.children]
    assert headers == ["Symbol", "Wins", "Losses", "Win Rate", "P/L"]
    assert _rows(table) == [
        ["BTCUSDT", 1, 0, "100.0%", "25.00"],
        ["ETHUSDT", 0, 1, "0.0%", "-10.00"],
    ]


def test_trades_table_from_trade_dicts() -> None:
    closed = {
        "id": 1, "positionId": "P1", "symbol": "BTCUSDT", "direction": "Long",
        "entryTime": "2026-01-01T10:00:00", "exitTime": "2026-01-01T10:05:00",
        "entryPrice": 100.0, "exitPrice": 125.0, "qty": 1.0, "pnl": 25.0,
        "commission": -1.0, "netPnl": 24.0, "durationSeconds": 300,
        "exitType": "Manual", "isClosed": True,
    }
    pending = dict(closed, id=2, positionId="P2", exitTime=None, exitPrice=None,
                   pnl=None, netPnl=None, durationSeconds=None, exitType=None, isClosed=False)
    rows = _rows(build_trades_table([closed, pending]))
    assert rows[0] == ["BTCUSDT", "Long", "2026-01-01T10:00:00", "2026-01-01T10:05:00",
                       100.0, 125.0, 1.0, "25.00", "24.00", "5m 0s", "Manual"]
    assert rows[1][3] == "Open"
    assert rows[1][5:] == ["-", 1.0, "-", "-", "-", "-"]


def test_trades_table_empty() -> None:
    assert _rows(build_trades_table([])) == []


def test_dashboard_layout_has_cards_and_tables() -> None:
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "ENABLE_DASHBOARD": False,
    })
    dash_app = init_dashboard(app, app.extensions["trade_store"])
    ids = {getattr(child, "id", None) for child in dash_app.layout.children}
    assert {"stats-cards", "symbol-table", "trades-table", "equity-graph", "symbol-graph"} <= ids
