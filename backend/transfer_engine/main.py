"""Transfer Engine API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map TransferEngineError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, oracle client and notifier initialized in the lifespan and
      released on shutdown

Design Decisions:
    - Lifespan over @app.on_event (FastAPI recommended pattern, cleaner cleanup)
    - database_auto_create for dev/SQLite; production schemas come from Alembic
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from transfer_engine import __version__
from transfer_engine.api.error_handlers import register_error_handlers
from transfer_engine.api.routes import health, transactions, wallets
from transfer_engine.config import get_settings
from transfer_engine.infrastructure.database import init_db
from transfer_engine.infrastructure.email_notifier import init_notifier
from transfer_engine.infrastructure.observability import setup_logging
from transfer_engine.infrastructure.rate_oracle import init_rate_oracle

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.database_auto_create:
        await db.create_all()
    oracle = init_rate_oracle(
        settings.rate_oracle_base_url,
        settings.fallback_rate,
        settings.rate_oracle_timeout_seconds,
    )
    init_notifier(settings.notification_sender, settings.notifications_enabled)
    logger.info("Transfer Engine API started")
    yield
    logger.info("Transfer Engine API shutting down")
    await oracle.aclose()
    await db.dispose()


app = FastAPI(
    title="Transfer Engine API", version=__version__, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(wallets.router)
app.include_router(transactions.router)

register_error_handlers(app)
