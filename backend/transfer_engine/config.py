"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets and endpoints come from environment variables or .env
    - get_settings() is cached (lru_cache) — single instance per process
    - Money-valued settings are Decimal, never float

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - SQLite default so the service runs without external infrastructure;
      production points DATABASE_URL at PostgreSQL
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "sqlite+aiosqlite:///./wallet.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres URLs come as postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_auto_create: bool = True

    # Rate oracle
    rate_oracle_base_url: str = "https://api.skip.build/v2"
    rate_oracle_timeout_seconds: float = 10.0
    fallback_rate: Decimal = Decimal("0.0004")

    # Quotes and execution
    quote_ttl_seconds: int = 30
    slippage_tolerance: Decimal = Decimal("0.01")
    history_limit: int = 50

    # Registration seed balance (native units)
    seed_balance_min: Decimal = Decimal("1")
    seed_balance_max: Decimal = Decimal("10")

    @model_validator(mode="after")
    def check_seed_range(self) -> "Settings":
        if self.seed_balance_min <= 0 or self.seed_balance_max < self.seed_balance_min:
            raise ValueError(
                "seed balance range must satisfy 0 < seed_balance_min <= seed_balance_max",
            )
        return self

    # Notifications
    notifications_enabled: bool = True
    notification_sender: str = "Transfer Engine <noreply@transfer-engine.local>"

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
