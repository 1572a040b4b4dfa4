"""
Data Models for the Trading Journal
Dataclasses for journaled trades and the daily summary built from them
"""
import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional


class Direction(str, enum.Enum):
    LONG = "Long"
    SHORT = "Short"


class Outcome(str, enum.Enum):
    WIN = "Win"
    LOSS = "Loss"


@dataclass
class JournalTrade:
    """A closed, journaled trade"""
    open_date: datetime
    close_date: datetime
    direction: Direction
    entry_price: float
    exit_price: float
    net_pl: float  # Realized P&L, precomputed by the trade source
    status: Outcome  # Authoritative for win/loss classification
    stop_loss: Optional[float] = None  # Only needed for the R-multiple

    # Journal annotations
    id: str = ""
    symbol: str = ""
    instrument: str = ""
    net_roi: float = 0.0  # Percent
    setup_type: str = ""
    execution_rating: int = 3  # 1-5
    key_catalyst: str = ""
    insights: str = ""
    setups: List[str] = field(default_factory=list)
    scale: int = 5  # 1-10
    duration: str = ""
    best_id: str = ""

    def to_dict(self) -> dict:
        from trade_metrics import calculate_r_multiple

        return {
            "id": self.id,
            "openDate": self.open_date.isoformat(),
            "closeDate": self.close_date.isoformat(),
            "symbol": self.symbol,
            "direction": self.direction.value,
            "instrument": self.instrument,
            "status": self.status.value,
            "entryPrice": self.entry_price,
            "exitPrice": self.exit_price,
            "stopLoss": self.stop_loss,
            "netPL": self.net_pl,
            "netROI": self.net_roi,
            "rMultiple": calculate_r_multiple(self),
            "setupType": self.setup_type,
            "executionRating": self.execution_rating,
            "keyCatalyst": self.key_catalyst,
            "insights": self.insights,
            "setups": list(self.setups),
            "scale": self.scale,
            "duration": self.duration,
            "bestId": self.best_id,
        }


@dataclass
class DailyMetrics:
    """Intraday summary of one trading day"""
    date: date
    timestamps: List[str]  # Hourly labels, 09:00 .. 16:00
    net_cumulative_pl: List[float]  # Parallel to timestamps
    profit_factor: float
    win_percentage: float
    average_win: float
    average_loss: float  # Magnitude, never negative
    total_trades: int
    winning_trades: int
    losing_trades: int

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "timestamps": list(self.timestamps),
            "netCumulativePL": list(self.net_cumulative_pl),
            "profitFactor": self.profit_factor,
            "winPercentage": self.win_percentage,
            "averageWin": self.average_win,
            "averageLoss": self.average_loss,
            "totalTrades": self.total_trades,
            "winningTrades": self.winning_trades,
            "losingTrades": self.losing_trades,
        }
