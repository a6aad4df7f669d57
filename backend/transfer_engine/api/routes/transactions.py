"""Transaction Routes — quote, execute and history.

Invariants:
    - Handlers translate bodies into orchestrator calls and outcomes into
      responses; no gate logic lives here
    - A rejected outcome is raised as its TransferEngineError so every failure
      leaves through the global error envelope

Design Decisions:
    - History page size defaults to settings.history_limit, capped at 200
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from transfer_engine.api.dependencies import get_ledger, get_orchestrator
from transfer_engine.config import Settings, get_settings
from transfer_engine.core.enforce_transfer import ExecuteRequest
from transfer_engine.schemas.transaction import (
    ExecuteBody,
    ExecuteResponse,
    HistoryResponse,
    QuoteRequest,
    QuoteResponse,
    TransferResponse,
)
from transfer_engine.schemas.wallet import ADDRESS_PATTERN
from transfer_engine.services.ledger import Ledger
from transfer_engine.services.transaction_orchestrator import TransactionOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])

MAX_HISTORY_LIMIT = 200


@router.post("/quote", response_model=QuoteResponse)
async def create_quote(
    body: QuoteRequest,
    orchestrator: TransactionOrchestrator = Depends(get_orchestrator),
):
    """Price a transfer. Fiat amounts get a persisted, time-limited quote."""
    outcome = await orchestrator.quote(body.amount, body.currency)
    if not outcome.ok:
        raise outcome.error
    return QuoteResponse(
        quote_id=outcome.quote_id,
        currency=outcome.currency.value,
        native_amount=outcome.native_amount,
        fiat_amount=outcome.fiat_amount,
        rate=outcome.rate,
        fallback=outcome.is_fallback if outcome.quote_id else None,
        expires_at=outcome.expires_at,
    )


@router.post("/execute", response_model=ExecuteResponse)
async def execute_transfer(
    body: ExecuteBody,
    orchestrator: TransactionOrchestrator = Depends(get_orchestrator),
):
    """Authorize and commit a signed transfer."""
    outcome = await orchestrator.execute(ExecuteRequest(
        sender=body.sender,
        recipient=body.recipient,
        amount=body.amount,
        currency=body.currency,
        signature=body.signature,
        message=body.message,
        quote_id=body.quote_id,
    ))
    if not outcome.ok:
        raise outcome.error
    record = outcome.transfer
    return ExecuteResponse(
        transaction_id=record.id,
        status=record.status,
        native_amount=record.native_amount,
        fiat_amount=record.fiat_amount,
    )


@router.get("/history/{address}", response_model=HistoryResponse)
async def get_history(
    address: Annotated[str, Path(pattern=ADDRESS_PATTERN)],
    limit: Annotated[int | None, Query(ge=1, le=MAX_HISTORY_LIMIT)] = None,
    ledger: Ledger = Depends(get_ledger),
    settings: Settings = Depends(get_settings),
):
    """Transfers where address is sender or recipient, newest first."""
    records = await ledger.history(address, limit or settings.history_limit)
    return HistoryResponse(
        address=address,
        transactions=[
            TransferResponse(
                id=r.id,
                sender=r.sender,
                recipient=r.recipient,
                amount=r.declared_amount,
                currency=r.declared_currency,
                native_amount=r.native_amount,
                fiat_amount=r.fiat_amount,
                quote_id=r.quote_id,
                status=r.status,
                created_at=r.created_at,
            )
            for r in records
        ],
    )
