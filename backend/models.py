from sqlalchemy import Column, Integer, String, Float, DateTime, JSON, ForeignKey, Enum as SQLEnum
from sqlalchemy.sql import func
from database import Base
import enum


class PositionDirection(str, enum.Enum):
    LONG = "long"
    SHORT = "short"


class PositionStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class User(Base):
    """Journal owner"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False, unique=True)
    password = Column(String(255), nullable=False)


class Trade(Base):
    """Position tracked on the dashboard (open or closed)"""
    __tablename__ = "trades"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    symbol = Column(String(20), nullable=False)
    direction = Column(SQLEnum(PositionDirection), nullable=False)
    entry_price = Column(Float, nullable=False)
    current_price = Column(Float)
    entry_date = Column(DateTime, nullable=False)
    exit_date = Column(DateTime)

    pnl = Column(Float)
    pnl_percent = Column(Float)
    status = Column(SQLEnum(PositionStatus), nullable=False, default=PositionStatus.OPEN)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "symbol": self.symbol,
            "direction": self.direction.value,
            "entryPrice": self.entry_price,
            "currentPrice": self.current_price,
            "entryDate": self.entry_date.isoformat() if self.entry_date else None,
            "exitDate": self.exit_date.isoformat() if self.exit_date else None,
            "pnl": self.pnl,
            "pnlPercent": self.pnl_percent,
            "status": self.status.value,
        }


class DailyPerformance(Base):
    """Per-day P&L summary used by the calendar heatmap"""
    __tablename__ = "daily_performance"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(DateTime, nullable=False, index=True)

    pnl = Column(Float, nullable=False)
    trades_count = Column(Integer, nullable=False)
    win_count = Column(Integer, nullable=False)
    loss_count = Column(Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": self.date.date().isoformat(),
            "pnl": self.pnl,
            "tradesCount": self.trades_count,
            "winCount": self.win_count,
            "lossCount": self.loss_count,
        }


class Metrics(Base):
    """Account-level summary cards, with change vs. the previous period"""
    __tablename__ = "metrics"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)

    total_pnl = Column(Float, nullable=False)
    pnl_change = Column(Float)
    win_rate = Column(Float, nullable=False)
    win_rate_change = Column(Float)
    total_trades = Column(Integer, nullable=False)
    trades_change = Column(Integer)
    avg_win = Column(Float, nullable=False)
    avg_win_change = Column(Float)
    avg_loss = Column(Float, nullable=False)
    avg_loss_change = Column(Float)

    last_updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "totalPnl": self.total_pnl,
            "pnlChange": self.pnl_change,
            "winRate": self.win_rate,
            "winRateChange": self.win_rate_change,
            "totalTrades": self.total_trades,
            "tradesChange": self.trades_change,
            "avgWin": self.avg_win,
            "avgWinChange": self.avg_win_change,
            "avgLoss": self.avg_loss,
            "avgLossChange": self.avg_loss_change,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
        }


class EquityHistory(Base):
    """Daily account equity"""
    __tablename__ = "equity_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(DateTime, nullable=False, index=True)
    equity = Column(Float, nullable=False)


class DrawdownHistory(Base):
    """Daily drawdown from the running equity peak, in percent (<= 0)"""
    __tablename__ = "drawdown_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(DateTime, nullable=False, index=True)
    drawdown_percent = Column(Float, nullable=False)


class StrategyRecord(Base):
    """Saved strategy built with the rule builder"""
    __tablename__ = "strategies"

    id = Column(String(36), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)

    # Full Strategy.to_dict() payload (rule groups, risk parameters, ...)
    definition = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
