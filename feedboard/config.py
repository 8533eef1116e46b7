"""
Feedboard Application Configuration
===================================

PURPOSE:
    Pydantic-Settings based configuration for the Feedboard backend.
    All settings can be overridden via environment variables (FEEDBOARD_ prefix).

    The relational store is selected by, in order:
      1. FEEDBOARD_DATABASE_URL (or bare DATABASE_URL)
      2. FEEDBOARD_DB_HOST / _PORT / _USER / _PASSWORD / _NAME (PostgreSQL)
      3. SQLite file under FEEDBOARD_DATA_DIRECTORY
"""

import logging
import os
from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    app_name: str = "Feedboard"
    debug: bool = False

    # Relational store
    database_url: Optional[str] = None
    db_host: Optional[str] = None
    db_port: int = 5432
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_name: str = "feedboard"
    data_directory: str = "./data"

    # Storage selection: "auto" tries relational then falls back to memory
    storage_backend: Literal["auto", "relational", "memory"] = "auto"
    # When False, an unreachable relational store aborts startup instead of
    # degrading to the in-memory store.
    storage_fallback: bool = True

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Logging
    log_dir: str = "logs"
    log_level: str = "INFO"

    # CORS
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_prefix = "FEEDBOARD_"

    def resolve_database_url(self) -> str:
        """Return the connection string for the relational store.

        A bare ``DATABASE_URL`` is honoured for container platforms that
        inject it without our prefix.
        """
        url = self.database_url or os.environ.get("DATABASE_URL")
        if url:
            return url

        if self.db_host:
            return URL.create(
                "postgresql",
                username=self.db_user,
                password=self.db_password,
                host=self.db_host,
                port=self.db_port,
                database=self.db_name,
            ).render_as_string(hide_password=False)

        return f"sqlite:///{Path(self.data_directory) / 'feedboard.db'}"


settings = Settings()
