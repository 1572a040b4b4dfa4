"""
Mock Data Generators
Demo journal trades and equity/drawdown series. All randomness comes from an
injected numpy Generator so tests can pin the output with a seed.
"""
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

import numpy as np

from data_models import Direction, JournalTrade, Outcome

SYMBOLS = ['AAPL', 'MSFT', 'AMZN', 'TSLA', 'GOOGL', 'META', 'NFLX', 'SPY', 'QQQ']
INSTRUMENTS = ['Stock', 'Option', 'Future', 'Forex', 'Crypto']
SETUPS = ['Breakout', 'Pullback', 'Support/Resistance', 'Gap Fill', 'Trend Continuation', 'Reversal', 'News Play']
SETUP_TYPES = ['Momentum', 'Reversal', 'Breakout', 'Pullback', 'Support/Resistance', 'Trend Continuation']
CATALYSTS = ['Earnings', 'Economic Data', 'Technical Pattern', 'News', 'Sector Move', 'Market Momentum', 'Volume Spike']

TARGET_WIN_RATE = 0.286
STOP_LOSS_PROBABILITY = 0.8
MIN_EQUITY = 5000.0

WIN_INSIGHT = 'Followed the trading plan and managed risk well.'
LOSS_INSIGHT = 'Entered too early, should have waited for confirmation.'


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Random source for the generators; seed=None gives fresh data every call"""
    return np.random.default_rng(seed)


def _pick(rng: np.random.Generator, options: List[str]) -> str:
    return options[int(rng.integers(len(options)))]


def _stop_loss(rng: np.random.Generator, direction: Direction, entry_price: float) -> Optional[float]:
    if rng.random() >= STOP_LOSS_PROBABILITY:
        return None
    # 0.5% - 1.5% away from entry, on the risk side
    distance = entry_price * (0.5 + rng.random()) / 100
    if direction == Direction.LONG:
        return round(entry_price - distance, 2)
    return round(entry_price + distance, 2)


def generate_mock_trades(day: date, rng: np.random.Generator) -> List[JournalTrade]:
    """Generate 3-7 journaled trades opened during the trading hours of `day`"""
    num_trades = int(rng.integers(3, 8))
    day_start = datetime.combine(day, time())
    trades = []

    for i in range(num_trades):
        is_win = rng.random() < TARGET_WIN_RATE
        direction = Direction.LONG if rng.random() > 0.5 else Direction.SHORT

        open_time = day_start + timedelta(hours=9 + int(rng.integers(6)), minutes=int(rng.integers(60)))
        duration_minutes = 15 + int(rng.integers(120))
        close_time = open_time + timedelta(minutes=duration_minutes)

        entry_price = round(50 + rng.random() * 200, 2)

        # Average loss deliberately larger than average win
        if is_win:
            net_pl = 120 + rng.random() * 80
        else:
            net_pl = -(280 + rng.random() * 220)
        net_pl = round(net_pl, 2)

        if direction == Direction.LONG:
            exit_price = round(entry_price + net_pl / 100, 2)
            net_roi = round((exit_price - entry_price) / entry_price * 100, 2)
        else:
            exit_price = round(entry_price - net_pl / 100, 2)
            net_roi = round((entry_price - exit_price) / entry_price * 100, 2)

        trade_setups = []
        for _ in range(1 + int(rng.integers(3))):
            setup = _pick(rng, SETUPS)
            if setup not in trade_setups:
                trade_setups.append(setup)

        execution_rating = 3 + int(rng.integers(3)) if is_win else 1 + int(rng.integers(3))

        trades.append(JournalTrade(
            id=f"T-{day.year}{day.month}{day.day}-{i + 1}",
            open_date=open_time,
            close_date=close_time,
            symbol=_pick(rng, SYMBOLS),
            direction=direction,
            instrument=_pick(rng, INSTRUMENTS),
            status=Outcome.WIN if is_win else Outcome.LOSS,
            entry_price=entry_price,
            exit_price=exit_price,
            stop_loss=_stop_loss(rng, direction, entry_price),
            net_pl=net_pl,
            net_roi=net_roi,
            setup_type=_pick(rng, SETUP_TYPES),
            execution_rating=execution_rating,
            key_catalyst=_pick(rng, CATALYSTS),
            insights=WIN_INSIGHT if is_win else LOSS_INSIGHT,
            setups=trade_setups,
            scale=1 + int(rng.integers(10)),
            duration=f"{duration_minutes}m",
            best_id=f"ID-{int(rng.integers(1000))}",
        ))

    return sorted(trades, key=lambda t: t.open_date)


def generate_equity_history(
    rng: np.random.Generator,
    end: date,
    days: int = 30,
    start_equity: float = 10000.0
) -> List[Tuple[date, float]]:
    """Random-walk daily equity for the `days + 1` days ending at `end`"""
    # Each day moves equity by -2% .. +3%
    changes = rng.uniform(-0.02, 0.03, size=days + 1)

    history = []
    equity = start_equity
    for offset, change in zip(range(days, -1, -1), changes):
        equity += equity * float(change)
        history.append((end - timedelta(days=offset), max(equity, MIN_EQUITY)))

    return history


def calculate_drawdown_history(equity_points: List[Tuple[date, float]]) -> List[Tuple[date, float]]:
    """Percent decline from the running equity peak (0 at a new high, negative below it)"""
    if not equity_points:
        return []

    equity = np.array([value for _, value in equity_points], dtype=float)
    peaks = np.maximum.accumulate(equity)
    drawdowns = (equity - peaks) / peaks * 100

    return [(day, float(dd)) for (day, _), dd in zip(equity_points, drawdowns)]
