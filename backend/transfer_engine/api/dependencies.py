"""Request-scoped service wiring for the routers.

Invariants:
    - One AsyncSession per request, shared by Ledger and QuoteStore
    - Oracle client and notifier are process singletons from the lifespan
    - Policy knobs (TTL, slippage, seed range) come from Settings only
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from transfer_engine.config import Settings, get_settings
from transfer_engine.infrastructure.database import get_db
from transfer_engine.infrastructure.email_notifier import LoggingEmailNotifier, get_notifier
from transfer_engine.infrastructure.rate_oracle import RateOracleAdapter, get_rate_oracle
from transfer_engine.services.ledger import Ledger, random_seed_policy
from transfer_engine.services.quote_store import QuoteStore
from transfer_engine.services.transaction_orchestrator import TransactionOrchestrator


def get_ledger(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Ledger:
    return Ledger(
        db,
        seed_policy=random_seed_policy(
            settings.seed_balance_min, settings.seed_balance_max,
        ),
    )


def get_quote_store(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> QuoteStore:
    return QuoteStore(db, ttl_seconds=settings.quote_ttl_seconds)


def get_orchestrator(
    ledger: Ledger = Depends(get_ledger),
    quotes: QuoteStore = Depends(get_quote_store),
    oracle: RateOracleAdapter = Depends(get_rate_oracle),
    notifier: LoggingEmailNotifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> TransactionOrchestrator:
    return TransactionOrchestrator(
        ledger,
        quotes,
        oracle,
        notifier,
        slippage_tolerance=settings.slippage_tolerance,
        quote_ttl_seconds=settings.quote_ttl_seconds,
    )
