"""
Application Configuration
Loads API metadata, store location and demo-data options from the environment / .env
"""
from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings
    Everything has a default so the demo API starts without a .env file
    """

    # Database (in-memory SQLite unless overridden)
    database_url: str = "sqlite://"
    sql_echo: bool = False

    # API metadata
    api_title: str = "Trading Journal API"
    api_version: str = "1.0.0"
    cors_origins: List[str] = ["*"]

    # Demo data
    demo_user_id: int = 1
    mock_seed: Optional[int] = None  # None -> different demo data every start

    # Simplified P&L when closing a position: price move * multiplier
    pnl_multiplier: float = 100.0

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
