"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode connection strings or provider URLs in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = os.getenv("APP_NAME", "Expense Ledger")
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Gateway
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))

    # Store
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./expense_ledger.db"
    )

    # Longest start..end range a history or export request may cover
    MAX_RANGE_DAYS: int = int(os.getenv("MAX_RANGE_DAYS", "366"))

    # Currency
    BASE_CURRENCY: str = os.getenv("BASE_CURRENCY", "USD").upper()
    TARGET_CURRENCY: str = os.getenv("TARGET_CURRENCY", "INR").upper()
    RATE_API_URL: str = os.getenv(
        "RATE_API_URL",
        "https://open.er-api.com/v6/latest"
    )
    RATE_TIMEOUT: float = float(os.getenv("RATE_TIMEOUT", "10"))


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    The Settings object is created once and reused, so
    environment variables are read a single time.
    """
    return Settings()
