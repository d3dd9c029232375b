"""
Configuration settings for the record store.

Uses Pydantic Settings to load environment variables for the PostgreSQL
connection source, the dialect selection, pool sizing and logging. The store
itself never reads settings directly; the CLI and factory use them to build
the connection source and pick defaults.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("recordstore", alias="DB_NAME")

    # Pool
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE")
    db_connect_attempts: int = Field(3, alias="DB_CONNECT_ATTEMPTS")

    # Store
    datasource: str = Field("default", alias="RECORDSTORE_DATASOURCE")
    dialect: Optional[str] = Field(None, alias="RECORDSTORE_DIALECT")
    sqlite_path: Optional[str] = Field(None, alias="RECORDSTORE_SQLITE_PATH")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def dialect_name(self) -> str:
        """
        Dialect to use: the explicit setting, else the one matching the source.
        """
        if self.dialect:
            return self.dialect
        return "sqlite" if self.sqlite_path else "postgresql"

    @property
    def dsn(self) -> str:
        """Compose a PostgreSQL DSN string from the connection fields."""
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
