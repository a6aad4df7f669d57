"""Settings — environment-driven configuration."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from transfer_engine.config import Settings


def test_postgres_url_gets_async_driver():
    settings = Settings(database_url="postgresql://u:p@db/wallet")
    assert settings.database_url == "postgresql+asyncpg://u:p@db/wallet"


def test_money_settings_are_decimal():
    settings = Settings()
    assert settings.fallback_rate == Decimal("0.0004")
    assert settings.slippage_tolerance == Decimal("0.01")


def test_seed_range_must_be_ordered():
    with pytest.raises(ValidationError):
        Settings(seed_balance_min=Decimal("10"), seed_balance_max=Decimal("1"))


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("QUOTE_TTL_SECONDS", "45")
    assert Settings().quote_ttl_seconds == 45
