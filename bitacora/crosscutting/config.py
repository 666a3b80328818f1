"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults that keep local development DB-free (in-memory stores)

Collaborators:
  - container.py: decides Postgres vs in-memory stores, audit executor size
  - api/main.py: reads settings for CORS and pool lifecycle
  - crosscutting/logger.py: log level / JSON format
  - domain/report_rules.py (via use cases): enforce_known_sources

Constraints:
  - No business logic — pure configuration

Notes:
  - Singleton via lru_cache
  - Empty DATABASE_URL means "no database": in-memory repositories are used
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: PostgreSQL connection string ("" => in-memory stores)
        app_env: Application environment (development/test/production)
        log_level: Root level for the JSON logger (default: INFO)
        log_json: Emit JSON lines instead of plain text (default: True)
        allowed_origins: Comma-separated CORS origins
        db_pool_min_size / db_pool_max_size: psycopg_pool bounds
        db_statement_timeout_ms: statement_timeout applied per connection
        db_slow_query_ms: queries slower than this are logged as WARNING
        db_healthcheck_on_acquire: SELECT 1 when a connection is checked out
        audit_async: Write audit entries on a background thread pool
        audit_max_workers: Threads dedicated to audit writes
        audit_default_page_size / audit_max_page_size: paging bounds for queries
        audit_top_actors: N for the "top actors" statistic
        enforce_known_sources: Reject unknown `fuente` values (InvalidSourceValue)
    """

    database_url: str = ""
    app_env: str = "development"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # CORS
    allowed_origins: str = "http://localhost:3000"

    # Database - Connection Pool
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000
    db_slow_query_ms: int = 250
    db_healthcheck_on_acquire: bool = True

    # Audit trail
    audit_async: bool = True
    audit_max_workers: int = 2
    audit_default_page_size: int = 10
    audit_max_page_size: int = 200
    audit_top_actors: int = 10

    # Reports
    enforce_known_sources: bool = False

    @field_validator("log_level")
    @classmethod
    def log_level_upper(cls, v: str) -> str:
        return (v or "INFO").strip().upper()

    @field_validator("database_url")
    @classmethod
    def strip_database_url(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("audit_max_workers", "audit_default_page_size", "audit_top_actors")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be greater than 0")
        return v

    @model_validator(mode="after")
    def validate_page_bounds(self):
        if self.audit_default_page_size > self.audit_max_page_size:
            raise ValueError(
                f"audit_default_page_size ({self.audit_default_page_size}) must be "
                f"<= audit_max_page_size ({self.audit_max_page_size})"
            )
        return self

    @model_validator(mode="after")
    def validate_production_requirements(self):
        if self.is_production() and not self.database_url:
            raise ValueError("DATABASE_URL is required in production")
        return self

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test(self) -> bool:
        return self.app_env.strip().lower() in {"test", "testing", "ci"}

    def uses_database(self) -> bool:
        """True when Postgres-backed repositories should be wired."""
        return bool(self.database_url) and not self.is_test()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
