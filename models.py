# models.py

from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

# Create the SQLAlchemy db instance.
db = SQLAlchemy()


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Order(db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    symbol = db.Column(db.String, nullable=False)
    side = db.Column(db.String, nullable=False)  # "Buy" or "Sell"
    order_type = db.Column(db.String, nullable=False)  # Market, Limit, Stop Loss, Take Profit
    qty = db.Column(db.Float, nullable=False)
    filled_qty = db.Column(db.Float, nullable=False)
    limit_price = db.Column(db.Float)
    stop_price = db.Column(db.Float)
    take_profit = db.Column(db.Float)
    stop_loss = db.Column(db.Float)
    avg_fill_price = db.Column(db.Float, nullable=False)
    update_time = db.Column(db.String, nullable=False, index=True)  # "2026-01-23T20:23:50"
    order_id = db.Column(db.String, nullable=False, unique=True)
    expiry = db.Column(db.String)
    position_id = db.Column(db.String, nullable=False, index=True)
    commission = db.Column(db.Float, default=0)
    closed_pnl = db.Column(db.Float)
    net_closed_pnl = db.Column(db.Float)
    expiry_time = db.Column(db.String)
    created_at = db.Column(db.DateTime, default=_utcnow)


class Trade(db.Model):
    __tablename__ = 'trades'

    id = db.Column(db.Integer, primary_key=True)
    position_id = db.Column(db.String, nullable=False, unique=True)
    symbol = db.Column(db.String, nullable=False, index=True)
    direction = db.Column(db.String, nullable=False)  # "Long" or "Short"
    entry_time = db.Column(db.String, nullable=False)
    exit_time = db.Column(db.String, index=True)
    entry_price = db.Column(db.Float, nullable=False)
    exit_price = db.Column(db.Float)
    qty = db.Column(db.Float, nullable=False)
    pnl = db.Column(db.Float)  # Broker-reported gross P&L
    commission = db.Column(db.Float, default=0)
    net_pnl = db.Column(db.Float)  # pnl + commission
    duration_seconds = db.Column(db.Integer)
    exit_type = db.Column(db.String)  # Stop Loss, Take Profit, Manual
    is_closed = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self):
        return {
            'id': self.id,
            'positionId': self.position_id,
            'symbol': self.symbol,
            'direction': self.direction,
            'entryTime': self.entry_time,
            'exitTime': self.exit_time,
            'entryPrice': self.entry_price,
            'exitPrice': self.exit_price,
            'qty': self.qty,
            'pnl': self.pnl,
            'commission': self.commission,
            'netPnl': self.net_pnl,
            'durationSeconds': self.duration_seconds,
            'exitType': self.exit_type,
            'isClosed': self.is_closed,
        }


class Import(db.Model):
    __tablename__ = 'imports'

    id = db.Column(db.Integer, primary_key=True)
    filename = db.Column(db.String, nullable=False)
    imported_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    order_count = db.Column(db.Integer, nullable=False, default=0)
    trade_count = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            'id': self.id,
            'filename': self.filename,
            'importedAt': self.imported_at.isoformat() if self.imported_at else None,
            'orderCount': self.order_count,
            'tradeCount': self.trade_count,
        }
