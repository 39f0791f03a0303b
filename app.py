# In app.py

import calendar
import logging
import math
import os
from datetime import date

import click
from flask import Flask, flash, jsonify, redirect, render_template_string, request, url_for

from config import Config
from importer import import_csv
from models import db
from order_parser import CsvFormatError
from stats import compute_stats, daily_pnl
from store import TradeStore

logger = logging.getLogger(__name__)


def configure_logging(level='INFO'):
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def _json_stats(stats):
    # JSON has no Infinity; an unbounded profit factor is sent as null
    stats = dict(stats)
    if isinstance(stats['profitFactor'], float) and not math.isfinite(stats['profitFactor']):
        stats['profitFactor'] = None
    return stats


def _error(message, status, details=None):
    body = {'error': message}
    if details is not None:
        body['details'] = details
    return jsonify(body), status


CALENDAR_TEMPLATE = '''
<!doctype html>
<html>
<head>
  <title>Trading Calendar</title>
  <style>
    .calendar {
      display: grid;
      grid-template-columns: repeat(7, 1fr);
      gap: 5px;
      max-width: 800px;
      margin: 0 auto;
    }
    .day {
      border: 1px solid #ccc;
      padding: 10px;
      min-height: 80px;
      position: relative;
      font-family: sans-serif;
    }
    .day .date {
      position: absolute;
      top: 5px;
      right: 5px;
      font-weight: bold;
    }
    .profit {
      background-color: #d4edda; /* light green */
    }
    .loss {
      background-color: #f8d7da; /* light red */
    }
    .neutral {
      background-color: #fefefe; /* white */
    }
    .header {
      text-align: center;
      font-family: sans-serif;
      margin-bottom: 20px;
    }
    .day .pl {
      font-size: 1.2em;
      margin-top: 20px;
      text-align: center;
    }
    .summary {
      max-width: 800px;
      margin: 20px auto;
      text-align: center;
      font-family: sans-serif;
      font-size: 1.2em;
    }
  </style>
</head>
<body>
  <div class="header">
    <h1>Trading Calendar for {{ month }}/{{ year }}</h1>
    {% with messages = get_flashed_messages() %}
      {% for message in messages %}<p>{{ message }}</p>{% endfor %}
    {% endwith %}
    <p>
      <a href="/?month={{ month - 1 if month > 1 else 12 }}&year={{ year if month > 1 else year - 1 }}">Previous Month</a> |
      <a href="/?month={{ month + 1 if month < 12 else 1 }}&year={{ year if month < 12 else year + 1 }}">Next Month</a>
    </p>
    <p>
      <a href="/dash/">View Dashboard</a> | <a href="/upload">Upload CSV</a>
    </p>
  </div>
  <div class="calendar">
    {% for week in month_days %}
      {% for day in week %}
        {% if day == 0 %}
          <div class="day"></div>
        {% else %}
          {% set day_str = "%04d-%02d-%02d"|format(year, month, day) %}
          {% set pl = daily.get(day_str, 0) %}
          {% if pl > 0 %}
            {% set css_class = "day profit" %}
          {% elif pl < 0 %}
            {% set css_class = "day loss" %}
          {% else %}
            {% set css_class = "day neutral" %}
          {% endif %}
          <div class="{{ css_class }}">
            <div class="date">{{ day }}</div>
            <div class="pl">{{ "{:.2f}".format(pl) }}</div>
          </div>
        {% endif %}
      {% endfor %}
    {% endfor %}
  </div>
  <div class="summary">
    <h2>Net P&amp;L for the Month: {{ "{:.2f}".format(total_month_pl) }}</h2>
    <p>
      {{ stats.totalTrades }} trades | win rate {{ "{:.1f}".format(stats.winRate) }}% |
      total net P&amp;L {{ "{:.2f}".format(stats.totalNetPnl) }}
    </p>
  </div>
</body>
</html>
'''

UPLOAD_TEMPLATE = '''
<!doctype html>
<html>
<head>
  <title>Upload CSV File</title>
</head>
<body>
  <h1>Upload Broker Order Export</h1>
  {% with messages = get_flashed_messages() %}
    {% for message in messages %}<p>{{ message }}</p>{% endfor %}
  {% endwith %}
  <form method="post" enctype="multipart/form-data">
    <input type="hidden" name="redirect" value="1">
    <input type="file" name="file" accept=".csv">
    <input type="submit" value="Upload">
  </form>
</body>
</html>
'''


def create_app(test_config=None):
    app = Flask(__name__)

    app.config.from_object(Config)
    app.config.from_prefixed_env('TRADELOG')
    if test_config is not None:
        app.config.update(test_config)

    configure_logging(app.config['LOG_LEVEL'])

    # Initialize the SQLAlchemy database with the Flask app
    db.init_app(app)

    store = TradeStore(db)
    with app.app_context():
        store.open()
    app.extensions['trade_store'] = store

    @app.route('/')
    def index():
        trades = store.all_trades()
        daily = daily_pnl(trades)

        # Determine which month and year to display (default to current month)
        today = date.today()
        year = request.args.get("year", today.year, type=int)
        month = request.args.get("month", today.month, type=int)
        if not 1 <= month <= 12:
            month = today.month

        cal = calendar.Calendar(firstweekday=6)  # starting with Sunday
        month_days = cal.monthdayscalendar(year, month)

        total_month_pl = sum(
            pl for day_str, pl in daily.items() if day_str.startswith(f"{year}-{month:02d}")
        )

        return render_template_string(
            CALENDAR_TEMPLATE,
            year=year,
            month=month,
            month_days=month_days,
            daily=daily,
            total_month_pl=total_month_pl,
            stats=compute_stats(trades),
        )

    @app.errorhandler(413)
    def file_too_large(e):
        return _error('File too large', 413)

    @app.route('/upload', methods=['GET', 'POST'])
    def upload():
        if request.method == 'GET':
            return render_template_string(UPLOAD_TEMPLATE)

        from_form = request.form.get('redirect') == '1'
        file = request.files.get('file')
        if file is None or file.filename == '':
            if from_form:
                flash('No file selected.')
                return redirect(request.url)
            return _error('No file provided', 400)

        try:
            text = file.stream.read().decode('utf-8')
        except UnicodeDecodeError as e:
            if from_form:
                flash('File is not valid UTF-8 text.')
                return redirect(request.url)
            return _error('CSV parsing error', 400, [{
                'type': 'Encoding',
                'code': 'InvalidUtf8',
                'message': str(e),
                'row': None,
            }])

        try:
            counts = import_csv(store, text, file.filename)
        except CsvFormatError as e:
            logger.warning("Rejected %s: %s", file.filename, e)
            if from_form:
                flash(str(e))
                return redirect(request.url)
            return _error('CSV parsing error', 400, e.details)
        except Exception as e:
            logger.exception("Upload of %s failed", file.filename)
            if from_form:
                flash(f"Failed to process file: {e}")
                return redirect(request.url)
            return _error('Failed to process file', 500, str(e))

        message = f"Imported {counts['orderCount']} orders and matched {counts['tradeCount']} trades"
        if from_form:
            flash(message)
            return redirect(url_for('index'))
        return jsonify(success=True, message=message, **counts)

    @app.route('/trades')
    def trades():
        try:
            return jsonify([trade.to_dict() for trade in store.all_trades()])
        except Exception as e:
            logger.exception("Fetching trades failed")
            return _error('Failed to fetch trades', 500, str(e))

    @app.route('/stats')
    def stats():
        try:
            return jsonify(_json_stats(compute_stats(store.closed_trades())))
        except Exception as e:
            logger.exception("Computing stats failed")
            return _error('Failed to calculate stats', 500, str(e))

    @app.route('/imports')
    def imports():
        return jsonify([record.to_dict() for record in store.imports()])

    @app.route('/clear', methods=['POST'])
    def clear():
        try:
            store.clear()
            store.commit()
        except Exception as e:
            store.rollback()
            logger.exception("Clearing data failed")
            return _error('Failed to clear data', 500, str(e))
        logger.info("All data cleared")
        return jsonify(success=True, message='All data cleared')

    @app.cli.command('import-csv')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def import_csv_command(path):
        """Import a broker order CSV from disk."""
        with open(path, encoding='utf-8') as fh:
            text = fh.read()
        try:
            counts = import_csv(store, text, os.path.basename(path))
        except CsvFormatError as e:
            for detail in e.details:
                click.echo(f"row {detail['row']}: {detail['message']}", err=True)
            raise click.ClickException('CSV parsing error')
        click.echo(f"Imported {counts['orderCount']} orders and matched {counts['tradeCount']} trades")

    @app.cli.command('clear-data')
    def clear_data_command():
        """Delete all orders, trades and import records."""
        store.clear()
        store.commit()
        click.echo('All data cleared')

    if app.config.get('ENABLE_DASHBOARD', True):
        from Dashboard import init_dashboard
        init_dashboard(app, store)

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
