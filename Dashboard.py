# Dashboard.py

import dash
from dash import dcc, html
import plotly.graph_objs as go
from dash.dependencies import Input, Output

from stats import compute_stats


def build_equity_figure(stats):
    """Cumulative P&L after each closed trade."""
    curve = stats['pnlCurve']
    trace = go.Scatter(
        x=[point['time'] for point in curve],
        y=[point['pnl'] for point in curve],
        text=[point['symbol'] for point in curve],
        mode='lines+markers',
        name='Cumulative P/L'
    )
    layout = go.Layout(
        title="Equity Curve",
        xaxis={'title': 'Exit Time'},
        yaxis={'title': 'Cumulative P/L'}
    )
    return {'data': [trace], 'layout': layout}


def build_symbol_figure(stats):
    """Gross P&L per symbol, green for profitable symbols and red otherwise."""
    symbols = sorted(stats['symbolStats'])
    pnls = [stats['symbolStats'][s]['pnl'] for s in symbols]
    trace = go.Bar(
        x=symbols,
        y=pnls,
        marker={'color': ['#28a745' if pnl >= 0 else '#dc3545' for pnl in pnls]},
        name='P/L by Symbol'
    )
    layout = go.Layout(
        title="P/L by Symbol",
        xaxis={'title': 'Symbol'},
        yaxis={'title': 'Gross P/L'}
    )
    return {'data': [trace], 'layout': layout}


def _format_duration(seconds):
    if not seconds:
        return "0s"
    seconds = int(seconds)
    hours, rest = divmod(abs(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    sign = "-" if seconds < 0 else ""
    if hours:
        return f"{sign}{hours}h {minutes}m"
    if minutes:
        return f"{sign}{minutes}m {secs}s"
    return f"{sign}{secs}s"


def _format_money(value):
    return "-" if value is None else f"{value:,.2f}"


def _card(title, value):
    return html.Div([
        html.Div(title, className='card-title'),
        html.Div(value, className='card-value'),
    ], className='stats-card', style={
        'border': '1px solid #ccc',
        'padding': '10px',
        'minWidth': '140px',
        'fontFamily': 'sans-serif',
    })


def build_stats_cards(stats):
    """Summary cards: win rate, P&L, profit factor, streaks, durations, equity."""
    profit_factor = stats['profitFactor']
    pf_text = "∞" if profit_factor == float('inf') else f"{profit_factor:.2f}"
    cards = [
        _card("Total Trades", str(stats['totalTrades'])),
        _card("Win Rate", f"{stats['winRate']:.1f}%"),
        _card("Total P/L", _format_money(stats['totalPnl'])),
        _card("Net P/L", _format_money(stats['totalNetPnl'])),
        _card("Profit Factor", pf_text),
        _card("Avg Profit", _format_money(stats['avgProfit'])),
        _card("Avg Loss", _format_money(stats['avgLoss'])),
        _card("Win Streak", f"{stats['currentWinStreak']} (max {stats['maxWinStreak']})"),
        _card("Lose Streak", f"{stats['currentLoseStreak']} (max {stats['maxLoseStreak']})"),
        _card("Avg Duration", _format_duration(stats['avgDuration'])),
        _card("Min / Max Duration",
              f"{_format_duration(stats['minDuration'])} / {_format_duration(stats['maxDuration'])}"),
        _card("Max Equity", _format_money(stats['maxEquity'])),
        _card("Min Equity", _format_money(stats['minEquity'])),
        _card("Trades per Day", f"{stats['avgTradesPerDay']:.2f}"),
    ]
    return html.Div(cards, style={'display': 'flex', 'flexWrap': 'wrap', 'gap': '8px'})


def _table(headers, rows):
    return html.Table([
        html.Thead(html.Tr([html.Th(h) for h in headers])),
        html.Tbody([html.Tr([html.Td(cell) for cell in row]) for row in rows]),
    ])


def build_symbol_table(stats):
    """Wins, losses, win rate and gross P&L per symbol, best symbol first."""
    by_symbol = stats['symbolStats']
    rows = []
    for symbol in sorted(by_symbol, key=lambda s: by_symbol[s]['pnl'], reverse=True):
        entry = by_symbol[symbol]
        total = entry['wins'] + entry['losses']
        win_rate = entry['wins'] / total * 100 if total else 0
        rows.append([symbol, entry['wins'], entry['losses'], f"{win_rate:.1f}%", _format_money(entry['pnl'])])
    return _table(["Symbol", "Wins", "Losses", "Win Rate", "P/L"], rows)


def build_trades_table(trades):
    """Trade list from `Trade.to_dict()` rows, in the order given."""
    rows = [
        [
            trade['symbol'],
            trade['direction'],
            trade['entryTime'],
            trade['exitTime'] or "Open",
            trade['entryPrice'],
            "-" if trade['exitPrice'] is None else trade['exitPrice'],
            trade['qty'],
            _format_money(trade['pnl']),
            _format_money(trade['netPnl']),
            "-" if trade['durationSeconds'] is None else _format_duration(trade['durationSeconds']),
            trade['exitType'] or "-",
        ]
        for trade in trades
    ]
    return _table(
        ["Symbol", "Direction", "Entry", "Exit", "Entry Price", "Exit Price",
         "Qty", "P/L", "Net P/L", "Duration", "Exit Type"],
        rows,
    )


def init_dashboard(flask_app, store):
    # Create a Dash instance that is bound to the Flask server
    dash_app = dash.Dash(
        __name__,
        server=flask_app,
        url_base_pathname='/dash/'
    )

    dash_app.layout = html.Div([
        html.H1("Trading Dashboard"),
        html.Div(id='stats-cards'),
        dcc.Graph(id='equity-graph'),
        dcc.Graph(id='symbol-graph'),
        html.H2("By Symbol"),
        html.Div(id='symbol-table'),
        html.H2("Trades"),
        html.Div(id='trades-table'),
        dcc.Interval(
            id='interval-component',
            interval=flask_app.config.get('DASH_REFRESH_MS', 5000),
            n_intervals=0
        )
    ])

    @dash_app.callback(
        Output('stats-cards', 'children'),
        Output('equity-graph', 'figure'),
        Output('symbol-graph', 'figure'),
        Output('symbol-table', 'children'),
        Output('trades-table', 'children'),
        Input('interval-component', 'n_intervals')
    )
    def update_dashboard(n_intervals):
        # Use the Flask app context to query the database
        with flask_app.app_context():
            stats = compute_stats(store.closed_trades())
            trades = [trade.to_dict() for trade in store.all_trades()]
        return (
            build_stats_cards(stats),
            build_equity_figure(stats),
            build_symbol_figure(stats),
            build_symbol_table(stats),
            build_trades_table(trades),
        )

    return dash_app
