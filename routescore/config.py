"""
Configuration settings for the routescore service

Values are read from the environment (optionally via a .env file) each time
get_settings() is called, so tests can override them with monkeypatch.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///routescore.db"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    score_recompute_interval_seconds: int = 3600
    score_scheduler_enabled: bool = True
    analytics_max_workers: int = 4
    log_level: str = "INFO"
    log_json: bool = False


def get_settings() -> Settings:
    """Build Settings from the current environment"""
    return Settings(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        score_recompute_interval_seconds=int(os.getenv("SCORE_RECOMPUTE_INTERVAL_SECONDS", "3600")),
        score_scheduler_enabled=_env_bool("SCORE_SCHEDULER_ENABLED", True),
        analytics_max_workers=max(1, int(os.getenv("ANALYTICS_MAX_WORKERS", "4"))),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=_env_bool("LOG_JSON", False),
    )
