"""Application configuration loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    app_name: str = "ecomarine"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5001
    cors_origins: list[str] = ["*"]

    # Storage
    storage_backend: Literal["sql", "memory"] = "sql"
    database_url: str | None = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "ecomarine_db"
    db_user: str = "postgres"
    db_password: str = ""
    db_echo: bool = False

    # External classification service
    classifier_base_url: str = "http://localhost:8000"
    classifier_mode: Literal["json", "file"] = "json"
    http_timeout_seconds: float = 30.0

    # Ingestion cycle
    poll_interval_seconds: float = 30.0
    batch_size: int = 3
    work_source: Literal["catalog", "storage"] = "catalog"
    scheduler_enabled: bool = True

    # Imagery
    imagery_delta_degrees: float = 0.05
    imagery_lag_days: int = 7

    # Read surface
    recent_records_limit: int = 20
    statistics_window_hours: int = 24

    model_config = {"env_prefix": "ECOMARINE_"}

    @property
    def resolved_database_url(self) -> str | URL:
        """Explicit database_url, or a PostgreSQL URL assembled from db_* fields.

        Credentials go through URL.create() so reserved characters in the
        password are escaped.
        """
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


settings = Settings()
