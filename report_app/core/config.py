"""
Application configuration — Pydantic Settings.

Loads from .env with strict validation. Single source of truth
for all environment-dependent values.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────
    APP_NAME: str = "ReportDashboard"
    APP_ENV: str = "development"
    DEBUG: bool = False

    # ── API server ───────────────────────────────────────────────
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # ── HTTP data sources ────────────────────────────────────────
    HTTP_TIMEOUT: float = 15.0

    # ── Query simulation (OpenAI-compatible chat endpoint) ───────
    QUERY_SIMULATOR_BASE_URL: str = "https://api.openai.com/v1"
    QUERY_SIMULATOR_API_KEY: str = ""
    QUERY_SIMULATOR_MODEL: str = "gpt-4o-mini"
    QUERY_SIMULATOR_MAX_ROWS: int = 10
    QUERY_SIMULATOR_TIMEOUT: float = 60.0

    # ── Storage ──────────────────────────────────────────────────
    TEMPLATES_PATH: Path = _CONFIG_DIR / "dashboard_templates.yml"
    SNAPSHOT_PATH: Path = Path("data/dashboard_snapshot.json")

    # ── Logging ──────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def query_simulator_enabled(self) -> bool:
        return bool(self.QUERY_SIMULATOR_API_KEY)


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()
