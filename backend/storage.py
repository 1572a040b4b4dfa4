"""
Journal Storage
Data access for the dashboard: users, open positions, summary metrics, history series and saved strategies
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import extract
from sqlalchemy.orm import Session

import models
from config import get_settings
from strategies import Strategy

logger = logging.getLogger(__name__)

# Fields a client may change through a partial trade update
EDITABLE_TRADE_FIELDS = {
    "symbol": "symbol",
    "direction": "direction",
    "entryPrice": "entry_price",
    "currentPrice": "current_price",
    "entryDate": "entry_date",
    "exitDate": "exit_date",
    "pnl": "pnl",
    "pnlPercent": "pnl_percent",
    "status": "status",
}

# NOT NULL columns among the editable fields
REQUIRED_TRADE_FIELDS = {"symbol", "direction", "entry_price", "entry_date", "status"}


class TradeNotFoundError(LookupError):
    """No trade with the requested id"""


class DataNotFoundError(LookupError):
    """No metrics / history stored for the user"""


class StrategyNotFoundError(LookupError):
    """No saved strategy with the requested id"""


class JournalStorage:
    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    # ----------------------------- users -----------------------------

    def get_user(self, user_id: int) -> Optional[models.User]:
        return self.db.get(models.User, user_id)

    def get_user_by_username(self, username: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.username == username).first()

    def create_user(self, username: str, password: str) -> models.User:
        user = models.User(username=username, password=password)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Created user {user.id} ({username})")
        return user

    # ----------------------------- trades -----------------------------

    def get_open_trades(self, user_id: int) -> List[models.Trade]:
        return self.db.query(models.Trade).filter(
            models.Trade.user_id == user_id,
            models.Trade.status == models.PositionStatus.OPEN
        ).order_by(models.Trade.entry_date.asc()).all()

    def _get_trade(self, trade_id: int) -> models.Trade:
        trade = self.db.get(models.Trade, trade_id)
        if not trade:
            raise TradeNotFoundError(f"Trade not found: {trade_id}")
        return trade

    def update_trade(self, trade_id: int, changes: Dict[str, Any]) -> models.Trade:
        """Apply a partial update; keys use the API's camelCase names"""
        trade = self._get_trade(trade_id)

        # Validate every field before touching the row
        updates = {}
        for key, value in changes.items():
            attr = EDITABLE_TRADE_FIELDS.get(key)
            if attr is None:
                logger.warning(f"Ignoring non-editable trade field {key!r}")
                continue
            if value is None and attr in REQUIRED_TRADE_FIELDS:
                raise ValueError(f"Trade field {key!r} cannot be null")
            if attr == "direction":
                value = models.PositionDirection(value)
            elif attr == "status":
                value = models.PositionStatus(value)
            updates[attr] = value

        for attr, value in updates.items():
            setattr(trade, attr, value)

        self.db.commit()
        self.db.refresh(trade)
        logger.info(f"Updated trade {trade_id}: {sorted(changes)}")
        return trade

    def close_trade(self, trade_id: int, exit_price: float, exit_date: datetime) -> models.Trade:
        """Close a position at `exit_price`, realizing a simplified P&L"""
        trade = self._get_trade(trade_id)

        entry_price = trade.entry_price
        if trade.direction == models.PositionDirection.LONG:
            move = exit_price - entry_price
        else:
            move = entry_price - exit_price

        trade.exit_date = exit_date
        trade.current_price = exit_price
        trade.status = models.PositionStatus.CLOSED
        trade.pnl = move * self.settings.pnl_multiplier
        trade.pnl_percent = move / entry_price * 100

        self.db.commit()
        self.db.refresh(trade)
        logger.info(f"Closed trade {trade_id} {trade.symbol} at {exit_price}: pnl={trade.pnl:.2f}")
        return trade

    # ----------------------------- summaries -----------------------------

    def get_metrics(self, user_id: int) -> models.Metrics:
        metrics = self.db.query(models.Metrics).filter(models.Metrics.user_id == user_id).first()
        if not metrics:
            raise DataNotFoundError(f"Metrics not found for user {user_id}")
        return metrics

    def get_equity_history(self, user_id: int) -> List[models.EquityHistory]:
        history = self.db.query(models.EquityHistory).filter(
            models.EquityHistory.user_id == user_id
        ).order_by(models.EquityHistory.date.asc()).all()
        if not history:
            raise DataNotFoundError(f"Equity history not found for user {user_id}")
        return history

    def get_drawdown_history(self, user_id: int) -> List[models.DrawdownHistory]:
        history = self.db.query(models.DrawdownHistory).filter(
            models.DrawdownHistory.user_id == user_id
        ).order_by(models.DrawdownHistory.date.asc()).all()
        if not history:
            raise DataNotFoundError(f"Drawdown history not found for user {user_id}")
        return history

    def get_daily_performance(
        self,
        user_id: int,
        year: Optional[int] = None,
        month: Optional[int] = None
    ) -> List[models.DailyPerformance]:
        query = self.db.query(models.DailyPerformance).filter(
            models.DailyPerformance.user_id == user_id
        )
        if year is not None:
            query = query.filter(extract("year", models.DailyPerformance.date) == year)
        if month is not None:
            query = query.filter(extract("month", models.DailyPerformance.date) == month)
        return query.order_by(models.DailyPerformance.date.asc()).all()

    # ----------------------------- strategies -----------------------------

    def list_strategies(self, user_id: int) -> List[Strategy]:
        records = self.db.query(models.StrategyRecord).filter(
            models.StrategyRecord.user_id == user_id
        ).order_by(models.StrategyRecord.created_at.asc()).all()
        return [Strategy.from_dict(r.definition) for r in records]

    def get_strategy(self, strategy_id: str) -> Strategy:
        record = self.db.get(models.StrategyRecord, strategy_id)
        if not record:
            raise StrategyNotFoundError(f"Strategy not found: {strategy_id}")
        return Strategy.from_dict(record.definition)

    def save_strategy(self, user_id: int, strategy: Strategy) -> Strategy:
        """Insert or replace a strategy by id"""
        record = self.db.get(models.StrategyRecord, strategy.id)
        if record is None:
            record = models.StrategyRecord(id=strategy.id, user_id=user_id)
            self.db.add(record)
            action = "Created"
        else:
            strategy.updated_at = datetime.now()
            action = "Updated"

        record.name = strategy.name
        record.definition = strategy.to_dict()
        self.db.commit()
        logger.info(f"{action} strategy {strategy.id} ({strategy.name})")
        return strategy

    def delete_strategy(self, strategy_id: str):
        record = self.db.get(models.StrategyRecord, strategy_id)
        if not record:
            raise StrategyNotFoundError(f"Strategy not found: {strategy_id}")
        self.db.delete(record)
        self.db.commit()
        logger.info(f"Deleted strategy {strategy_id}")
