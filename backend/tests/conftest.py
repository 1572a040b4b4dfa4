"""
Shared pytest fixtures for all test modules.
Provides an isolated in-memory database, seeded storage, sample journal trades and an API client.
"""
import os
import sys

# CRITICAL: Set environment variables BEFORE any other imports
# This must happen before any module tries to load Settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("API_TITLE", "Trading Journal API")
os.environ.setdefault("API_VERSION", "1.0.0")
os.environ.setdefault("MOCK_SEED", "42")
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from unittest.mock import Mock
from datetime import date, datetime

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


@pytest.fixture
def mock_settings():
    """Mock application settings"""
    settings = Mock()
    settings.database_url = "sqlite://"
    settings.api_title = "Trading Journal API"
    settings.api_version = "1.0.0"
    settings.demo_user_id = 1
    settings.mock_seed = 42
    settings.pnl_multiplier = 100.0
    settings.cors_origins = ["*"]
    settings.log_level = "WARNING"
    return settings


@pytest.fixture
def db_session():
    """Fresh in-memory SQLite session with all tables created"""
    import models

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    models.Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def rng():
    """Deterministic random source"""
    from mock_data import make_rng
    return make_rng(42)


@pytest.fixture
def seeded_session(db_session, rng):
    """Session holding the demo dataset (equity history ends 2023-02-15)"""
    from seed import seed_demo_data
    seed_demo_data(db_session, rng, today=date(2023, 2, 15))
    return db_session


@pytest.fixture
def storage(seeded_session):
    from storage import JournalStorage
    return JournalStorage(seeded_session)


@pytest.fixture
def client(seeded_session):
    """TestClient whose requests use the seeded test session"""
    from fastapi.testclient import TestClient
    import main
    from database import get_db

    def override_get_db():
        yield seeded_session

    main.app.dependency_overrides[get_db] = override_get_db
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


def make_trade(close_hour, net_pl, status, close_minute=0, day=date(2024, 3, 4), **kwargs):
    """Build a JournalTrade closing at close_hour:close_minute on `day`"""
    from data_models import Direction, JournalTrade, Outcome

    close_date = datetime(day.year, day.month, day.day, close_hour, close_minute)
    open_date = kwargs.pop("open_date", close_date.replace(minute=0))
    defaults = dict(
        direction=Direction.LONG,
        entry_price=100.0,
        exit_price=100.0 + net_pl / 100,
    )
    defaults.update(kwargs)
    return JournalTrade(
        open_date=open_date,
        close_date=close_date,
        net_pl=net_pl,
        status=Outcome(status),
        **defaults
    )


@pytest.fixture
def trade_factory():
    return make_trade


@pytest.fixture
def sample_day():
    return date(2024, 3, 4)


@pytest.fixture
def sample_trades(trade_factory):
    """Win at 10:xx, loss at 14:xx"""
    return [
        trade_factory(10, 100.0, "Win", close_minute=30),
        trade_factory(14, -40.0, "Loss", close_minute=15),
    ]
