import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

import models
from calendar_view import build_month_grid
from config import get_settings
from database import SessionLocal, engine, get_db
from mock_data import generate_mock_trades, make_rng
from schemas import StrategyPayload, TradeClose, TradeUpdate
from seed import seed_demo_data
from storage import DataNotFoundError, JournalStorage, StrategyNotFoundError, TradeNotFoundError
from strategies import (
    INDICATOR_OPERATOR_MAPPING, INDICATOR_OPTIONS, OPERATOR_OPTIONS, STRATEGY_TEMPLATES,
    Strategy, StrategyValidationError, TemplateNotFoundError, new_id, strategy_from_template, validate_strategy
)
from trade_metrics import calculate_daily_metrics

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create tables
models.Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = SessionLocal()
    try:
        seed_demo_data(db, make_rng(settings.mock_seed))
    finally:
        db.close()
    yield


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    lifespan=lifespan
)

# CORS middleware for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_storage(db: Session = Depends(get_db)) -> JournalStorage:
    return JournalStorage(db)


def _server_error(message: str, error: Exception) -> HTTPException:
    logger.error(f"{message}: {error}", exc_info=True)
    return HTTPException(status_code=500, detail=message)


@app.get("/")
def root():
    """Health check endpoint"""
    return {
        "status": "online",
        "app": settings.api_title,
        "version": settings.api_version
    }


@app.get("/api/metrics")
def get_metrics(storage: JournalStorage = Depends(get_storage)):
    """Get summary metrics of the demo user"""
    try:
        return storage.get_metrics(settings.demo_user_id).to_dict()
    except DataNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise _server_error("Failed to fetch metrics", e)


@app.get("/api/trades/open")
def get_open_trades(storage: JournalStorage = Depends(get_storage)):
    """Get open positions"""
    try:
        return [t.to_dict() for t in storage.get_open_trades(settings.demo_user_id)]
    except Exception as e:
        raise _server_error("Failed to fetch open trades", e)


@app.get("/api/equity-history")
def get_equity_history(storage: JournalStorage = Depends(get_storage)):
    """Get daily equity curve"""
    try:
        history = storage.get_equity_history(settings.demo_user_id)
    except DataNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise _server_error("Failed to fetch equity history", e)

    return [
        {"date": item.date.date().isoformat(), "equity": float(item.equity)}
        for item in history
    ]


@app.get("/api/drawdown-history")
def get_drawdown_history(storage: JournalStorage = Depends(get_storage)):
    """Get daily drawdown from the equity peak"""
    try:
        history = storage.get_drawdown_history(settings.demo_user_id)
    except DataNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise _server_error("Failed to fetch drawdown history", e)

    return [
        {"date": item.date.date().isoformat(), "drawdown": float(item.drawdown_percent)}
        for item in history
    ]


@app.get("/api/daily-performance")
def get_daily_performance(
    year: Optional[int] = None,
    month: Optional[int] = None,
    storage: JournalStorage = Depends(get_storage)
):
    """Get per-day P&L rows, optionally for one year / month"""
    try:
        rows = storage.get_daily_performance(settings.demo_user_id, year=year, month=month)
        return [row.to_dict() for row in rows]
    except Exception as e:
        raise _server_error("Failed to fetch daily performance", e)


@app.get("/api/calendar/{year}/{month}")
def get_calendar(year: int, month: int, storage: JournalStorage = Depends(get_storage)):
    """Get the month grid for the calendar heatmap"""
    if not 1 <= month <= 12:
        raise HTTPException(status_code=422, detail=f"Invalid month: {month}")
    try:
        rows = storage.get_daily_performance(settings.demo_user_id, year=year, month=month)
        return build_month_grid(year, month, rows)
    except Exception as e:
        raise _server_error("Failed to build calendar", e)


@app.patch("/api/trades/{trade_id}")
def update_trade(trade_id: int, payload: TradeUpdate, storage: JournalStorage = Depends(get_storage)):
    """Edit an open position"""
    try:
        return storage.update_trade(trade_id, payload.model_dump(exclude_unset=True)).to_dict()
    except TradeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        raise _server_error("Failed to update trade", e)


@app.post("/api/trades/{trade_id}/close")
def close_trade(trade_id: int, payload: TradeClose, storage: JournalStorage = Depends(get_storage)):
    """Close a position at the given exit price"""
    try:
        trade = storage.close_trade(trade_id, payload.exitPrice, payload.exitDate or datetime.now())
        return trade.to_dict()
    except TradeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        raise _server_error("Failed to close trade", e)


@app.get("/api/journal/{day}")
def get_journal_day(day: date):
    """Get the journaled trades of a day with their daily metrics"""
    seed = None if settings.mock_seed is None else settings.mock_seed + day.toordinal()
    trades = generate_mock_trades(day, make_rng(seed))
    metrics = calculate_daily_metrics(trades, day)

    return {
        "date": day.isoformat(),
        "trades": [t.to_dict() for t in trades],
        "metrics": metrics.to_dict()
    }


@app.get("/api/strategies/indicators")
def get_indicators():
    """Get the rule builder's indicator and operator catalogue"""
    return {
        "indicators": INDICATOR_OPTIONS,
        "operators": OPERATOR_OPTIONS,
        "indicatorOperators": INDICATOR_OPERATOR_MAPPING
    }


@app.get("/api/strategies/templates")
def get_templates():
    """Get strategy templates"""
    return {"templates": STRATEGY_TEMPLATES}


@app.post("/api/strategies/templates/{template_id}")
def create_from_template(template_id: str):
    """Build an unsaved strategy from a template"""
    try:
        return strategy_from_template(template_id).to_dict()
    except TemplateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/api/strategies")
def list_strategies(storage: JournalStorage = Depends(get_storage)):
    """Get saved strategies"""
    try:
        return {"strategies": [s.to_dict() for s in storage.list_strategies(settings.demo_user_id)]}
    except Exception as e:
        raise _server_error("Failed to fetch strategies", e)


def _to_strategy(payload: StrategyPayload, strategy_id: str) -> Strategy:
    data = payload.model_dump()
    data["id"] = strategy_id
    try:
        strategy = Strategy.from_dict(data)
    except TypeError as e:
        raise HTTPException(status_code=422, detail=f"Malformed strategy: {e}")
    try:
        validate_strategy(strategy)
    except StrategyValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return strategy


@app.post("/api/strategies", status_code=201)
def create_strategy(payload: StrategyPayload, storage: JournalStorage = Depends(get_storage)):
    """Save a new strategy"""
    if payload.id:
        try:
            storage.get_strategy(payload.id)
        except StrategyNotFoundError:
            pass
        else:
            raise HTTPException(status_code=409, detail=f"Strategy already exists: {payload.id}")

    strategy = _to_strategy(payload, payload.id or new_id())
    return storage.save_strategy(settings.demo_user_id, strategy).to_dict()


@app.get("/api/strategies/{strategy_id}")
def get_strategy(strategy_id: str, storage: JournalStorage = Depends(get_storage)):
    """Get one saved strategy"""
    try:
        return storage.get_strategy(strategy_id).to_dict()
    except StrategyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.put("/api/strategies/{strategy_id}")
def replace_strategy(strategy_id: str, payload: StrategyPayload, storage: JournalStorage = Depends(get_storage)):
    """Replace a saved strategy"""
    try:
        existing = storage.get_strategy(strategy_id)
    except StrategyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    strategy = _to_strategy(payload, strategy_id)
    strategy.created_at = existing.created_at
    return storage.save_strategy(settings.demo_user_id, strategy).to_dict()


@app.delete("/api/strategies/{strategy_id}", status_code=204)
def delete_strategy(strategy_id: str, storage: JournalStorage = Depends(get_storage)):
    """Delete a saved strategy"""
    try:
        storage.delete_strategy(strategy_id)
    except StrategyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
