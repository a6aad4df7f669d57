"""API test fixtures — FastAPI app over the per-test database.

Invariants:
    - get_db, get_rate_oracle, get_notifier and get_settings are overridden;
      the lifespan never runs under ASGITransport
    - db_manager is swapped for the readiness probe and restored afterwards
    - Registration seeds exactly 5 ETH so balances are predictable
"""

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

import transfer_engine.infrastructure.database as db_module
from transfer_engine.config import Settings, get_settings
from transfer_engine.infrastructure.database import DatabaseSessionManager, get_db
from transfer_engine.infrastructure.email_notifier import get_notifier
from transfer_engine.infrastructure.rate_oracle import get_rate_oracle
from transfer_engine.main import app


@pytest.fixture
def api_settings():
    return Settings(
        seed_balance_min=Decimal("5"),
        seed_balance_max=Decimal("5"),
        database_auto_create=False,
    )


@pytest.fixture
async def client(test_engine, test_session_factory, fake_oracle, notifier, api_settings):
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_oracle] = lambda: fake_oracle
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_settings] = lambda: api_settings

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
