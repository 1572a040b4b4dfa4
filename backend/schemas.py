"""Request bodies accepted by the API"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TradeUpdate(BaseModel):
    symbol: Optional[str] = None
    direction: Optional[str] = None
    entryPrice: Optional[float] = None
    currentPrice: Optional[float] = None
    entryDate: Optional[datetime] = None
    exitDate: Optional[datetime] = None
    pnl: Optional[float] = None
    pnlPercent: Optional[float] = None
    status: Optional[str] = None


class TradeClose(BaseModel):
    exitPrice: float = Field(gt=0)
    exitDate: Optional[datetime] = None  # Defaults to now


class StrategyPayload(BaseModel):
    """Strategy as sent by the builder; nested rule groups are validated by strategies.validate_strategy"""
    id: Optional[str] = None
    name: str
    description: str = ""
    type: str = "custom"
    asset_classes: List[str] = []
    timeframes: List[str] = []
    complexity: str = "beginner"
    entry_rules: List[Dict[str, Any]] = []
    exit_rules: List[Dict[str, Any]] = []
    market_conditions: List[Dict[str, Any]] = []
    risk_parameters: Dict[str, Any] = {}
    notes: Optional[str] = None
