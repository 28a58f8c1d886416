"""
Configuration & Settings
Streamer Brand-Fit Evaluator
"""

from pydantic import BaseModel
from typing import List
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # App
    APP_NAME: str = "Streamer Brand-Fit Evaluator"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = _env_bool("DEBUG", False)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG" if _env_bool("DEBUG", False) else "INFO")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./brand_fit.db")

    # LLM analysis gateway (Anthropic messages API)
    LLM_API_URL: str = os.getenv("LLM_API_URL", "https://api.anthropic.com/v1/messages")
    LLM_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    LLM_API_VERSION: str = "2023-06-01"
    LLM_MODEL: str = os.getenv("LLM_MODEL", "claude-3-opus-20240229")
    LLM_MAX_TOKENS: int = 1000

    # Twitch data + discovery services
    TWITCH_DATA_URL: str = os.getenv("TWITCH_DATA_URL", "http://localhost:5000")
    STREAMER_SEARCH_URL: str = os.getenv("STREAMER_SEARCH_URL", "http://localhost:5000")
    REQUEST_TIMEOUT: int = 60
    USER_AGENT: str = "streamer-brand-fit/1.0"

    # Batched writes (bulk recompute + migrations)
    BATCH_WRITE_SIZE: int = 400
    BATCH_WRITE_DELAY_SECONDS: float = 1.0

    # Discovery
    MAX_CANDIDATES: int = 3

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


settings = Settings()
