"""
Demo Data Seeding
Fills an empty store with the demo user's metrics, open positions, equity/drawdown history and January 2023 calendar
"""
import logging
from datetime import date, datetime
from typing import Optional

import numpy as np
from sqlalchemy.orm import Session

import models
from mock_data import calculate_drawdown_history, generate_equity_history

logger = logging.getLogger(__name__)

DEMO_USERNAME = "trader"

# (day, pnl, trades, wins, losses)
JANUARY_2023_PERFORMANCE = [
    (1, 243, 5, 3, 2),
    (2, -125, 3, 1, 2),
    (3, 187, 4, 3, 1),
    (6, 321, 6, 4, 2),
    (7, 156, 5, 3, 2),
    (8, -92, 2, 0, 2),
    (9, 210, 4, 3, 1),
    (10, 175, 3, 2, 1),
    (13, -145, 4, 1, 3),
    (14, 283, 5, 4, 1),
    (15, 196, 3, 2, 1),
]


def seed_demo_data(db: Session, rng: np.random.Generator, today: Optional[date] = None) -> bool:
    """
    Insert the demo dataset unless the demo user already exists.

    Returns:
        True if data was inserted
    """
    if db.query(models.User).filter(models.User.username == DEMO_USERNAME).first():
        logger.info("Demo data already present, skipping seed")
        return False

    today = today or date.today()

    user = models.User(username=DEMO_USERNAME, password="password")
    db.add(user)
    db.flush()

    db.add(models.Metrics(
        user_id=user.id,
        total_pnl=12450,
        pnl_change=4.5,
        win_rate=67.3,
        win_rate_change=2.1,
        total_trades=183,
        trades_change=12,
        avg_win=342,
        avg_win_change=-1.2,
        avg_loss=-125,
        avg_loss_change=3.8,
    ))

    db.add_all([
        models.Trade(
            user_id=user.id, symbol="EURUSD", direction=models.PositionDirection.LONG,
            entry_price=1.0865, current_price=1.0948, entry_date=datetime(2023, 1, 14, 9, 45),
            pnl=124.50, pnl_percent=0.76, status=models.PositionStatus.OPEN
        ),
        models.Trade(
            user_id=user.id, symbol="GOLD", direction=models.PositionDirection.SHORT,
            entry_price=2035.67, current_price=2044.42, entry_date=datetime(2023, 1, 15, 11, 23),
            pnl=-78.25, pnl_percent=-0.43, status=models.PositionStatus.OPEN
        ),
        models.Trade(
            user_id=user.id, symbol="BTCUSD", direction=models.PositionDirection.LONG,
            entry_price=42156.78, current_price=42676.25, entry_date=datetime(2023, 1, 15, 8, 17),
            pnl=312.40, pnl_percent=1.23, status=models.PositionStatus.OPEN
        ),
    ])

    equity_points = generate_equity_history(rng, end=today)
    db.add_all([
        models.EquityHistory(user_id=user.id, date=datetime.combine(day, datetime.min.time()), equity=equity)
        for day, equity in equity_points
    ])
    db.add_all([
        models.DrawdownHistory(user_id=user.id, date=datetime.combine(day, datetime.min.time()), drawdown_percent=dd)
        for day, dd in calculate_drawdown_history(equity_points)
    ])

    db.add_all([
        models.DailyPerformance(
            user_id=user.id, date=datetime(2023, 1, day), pnl=pnl,
            trades_count=trades, win_count=wins, loss_count=losses
        )
        for day, pnl, trades, wins, losses in JANUARY_2023_PERFORMANCE
    ])

    db.commit()
    logger.info(f"Seeded demo data for user {user.id}: {len(equity_points)} equity points, "
                f"{len(JANUARY_2023_PERFORMANCE)} performance days")
    return True
