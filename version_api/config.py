"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - verbose=true always wins over log_level (effective level DEBUG)
    - An empty database_url is allowed here; open_database() reports it

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - POSTGRES_DSN accepted alongside DATABASE_URL (deployment compatibility)
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore",
    )

    # Database
    database_url: str = Field(
        "", validation_alias=AliasChoices("postgres_dsn", "database_url"),
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Plain postgres DSNs need the asyncpg driver prefix."""
        if isinstance(v, str):
            v = v.strip()
            for prefix in ("postgresql://", "postgres://"):
                if v.startswith(prefix):
                    return v.replace(prefix, "postgresql+asyncpg://", 1)
        return v

    latest_versions_limit: int = Field(100, gt=0)

    # Server
    host: str = "127.0.0.1"
    port: int = Field(2137, ge=0, le=65535)
    shutdown_timeout_seconds: float = Field(10.0, gt=0)

    # Observability
    verbose: bool = False
    log_level: str = "INFO"
    log_format: str = "text"
    log_file: str = "log.txt"

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.verbose else self.log_level.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
