"""
Trade Metrics Module
Daily journal metrics: hourly cumulative P&L, win/loss stats, profit factor, R-multiple
"""
from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from data_models import DailyMetrics, Direction, JournalTrade, Outcome

# Trading-day hours covered by the intraday P&L series (inclusive)
FIRST_HOUR = 9
LAST_HOUR = 16

# Reported when there are wins but no losses; the dashboard gauge tops out here
PROFIT_FACTOR_CAP = 3


def round_half_up(value: float, places: int) -> float:
    """Fixed-point rounding of the float's exact value, ties away from zero"""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def hourly_labels(day: date) -> List[str]:
    return [
        datetime.combine(day, time(hour)).strftime("%H:%M")
        for hour in range(FIRST_HOUR, LAST_HOUR + 1)
    ]


def empty_daily_metrics(day: date) -> DailyMetrics:
    """Metrics for a day without trades"""
    timestamps = hourly_labels(day)
    return DailyMetrics(
        date=day,
        timestamps=timestamps,
        net_cumulative_pl=[0.0] * len(timestamps),
        profit_factor=0,
        win_percentage=0,
        average_win=0,
        average_loss=0,
        total_trades=0,
        winning_trades=0,
        losing_trades=0,
    )


def _mean(values: List[float]) -> float:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values), 2)


def calculate_daily_metrics(trades: List[JournalTrade], day: date) -> DailyMetrics:
    """
    Summarize one day of trades.

    Args:
        trades: Trades to summarize, in any order. Filtering to `day` is the caller's job.
        day: Calendar day the hourly labels are generated for

    Returns:
        DailyMetrics with an 8-point cumulative P&L series (09:00 .. 16:00)
    """
    if not trades:
        return empty_daily_metrics(day)

    sorted_trades = sorted(trades, key=lambda t: t.close_date)

    # Bucket h holds every trade closed at or before hour h
    timestamps = hourly_labels(day)
    net_cumulative_pl = []
    for hour in range(FIRST_HOUR, LAST_HOUR + 1):
        running_pl = sum(t.net_pl for t in sorted_trades if t.close_date.hour <= hour)
        net_cumulative_pl.append(round_half_up(running_pl, 2))

    winning_trades = [t for t in sorted_trades if t.status == Outcome.WIN]
    losing_trades = [t for t in sorted_trades if t.status == Outcome.LOSS]

    winning_values = [t.net_pl for t in winning_trades]
    losing_values = [abs(t.net_pl) for t in losing_trades]

    total_wins = sum(winning_values)
    total_losses = sum(losing_values)

    if total_losses == 0:
        profit_factor = PROFIT_FACTOR_CAP if total_wins > 0 else 0
    else:
        profit_factor = round_half_up(total_wins / total_losses, 2)

    win_percentage = round_half_up(len(winning_trades) / len(sorted_trades) * 100, 1)

    return DailyMetrics(
        date=day,
        timestamps=timestamps,
        net_cumulative_pl=net_cumulative_pl,
        profit_factor=profit_factor,
        win_percentage=win_percentage,
        average_win=_mean(winning_values),
        average_loss=_mean(losing_values),
        total_trades=len(sorted_trades),
        winning_trades=len(winning_trades),
        losing_trades=len(losing_trades),
    )


def calculate_r_multiple(trade: JournalTrade) -> Optional[float]:
    """Reward relative to planned risk; None without a usable stop loss"""
    if not trade.stop_loss:
        return None

    if trade.direction == Direction.LONG:
        risk = trade.entry_price - trade.stop_loss
        reward = trade.exit_price - trade.entry_price
    else:
        risk = trade.stop_loss - trade.entry_price
        reward = trade.entry_price - trade.exit_price

    # Stop on the wrong side of the entry
    if risk <= 0:
        return None

    return round_half_up(reward / risk, 2)
