"""Configuration management for sqlscope."""

import os
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional


def _find_env_file() -> Optional[str]:
    """Find .env file in multiple locations.

    Search order:
    1. Current working directory
    2. ~/.sqlscope/.env
    3. Package directory (where this file is located)
    """
    # Current directory
    if os.path.exists(".env"):
        return ".env"

    # User config directory
    user_env = Path.home() / ".sqlscope" / ".env"
    if user_env.exists():
        return str(user_env)

    # Package directory
    package_dir = Path(__file__).parent.parent
    package_env = package_dir / ".env"
    if package_env.exists():
        return str(package_env)

    return None


class Settings(BaseSettings):
    """Application settings loaded from SQLSCOPE_* environment variables."""

    # Paging
    page_size: int = Field(
        default=50,
        ge=1,
        description="Rows per table data page (fixed for the process)"
    )

    # Pooling
    pool_max_size: int = Field(
        default=5,
        ge=1,
        description="Maximum pooled connections for server-based engines"
    )
    file_pool_size: int = Field(
        default=2,
        ge=1,
        description="Maximum pooled connections for file-based engines"
    )
    connect_timeout: int = Field(
        default=10,
        description="Seconds to wait when opening a server connection"
    )
    http_timeout: float = Field(
        default=30.0,
        description="Seconds before an HTTP engine request (libSQL, ClickHouse) times out"
    )

    # Introspection
    exact_row_counts: bool = Field(
        default=False,
        description="Always run count(*) on server engines instead of using catalog estimates"
    )
    postgres_schema: str = Field(
        default="public",
        description="PostgreSQL schema to explore when the connection URL does not name one"
    )
    duckdb_schema: str = Field(
        default="main",
        description="DuckDB schema to explore"
    )

    # Process behaviour reported through metadata
    allow_shutdown: bool = Field(
        default=True,
        description="Whether the embedding server may honour remote shutdown requests"
    )

    # Sample database
    preview_path: str = Field(
        default="sample.db",
        description="Where the 'preview' sample SQLite database is written"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level for sqlscope loggers"
    )

    class Config:
        env_prefix = "SQLSCOPE_"
        env_file = _find_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()
