"""Transaction Orchestrator — quote issuance and the execute state machine.

Invariants:
    - execute() walks Received -> Validated -> QuoteResolved -> Authorized ->
      Committed; any gate failure ends in Rejected with the failing stage recorded
    - Nothing reaches the Ledger before signature AND message binding pass
    - Fiat transfers settle at the QUOTED amounts, never the fresh re-quote
    - A rejection has no side effects; a commit is never undone by a later step
    - Notification failures are logged and swallowed

Design Decisions:
    - Outcomes over exceptions: quote()/execute() always return a value object
      carrying either the result or the rejection; routes raise at the boundary
    - Funds are checked before authorization; the Ledger's atomic debit
      remains the authoritative check
    - Collaborators injected (Ledger, QuoteStore, RateConverter, NotificationSink,
      clock): no module-level state
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from transfer_engine.core.domain_types import Currency, ExecutionStage
from transfer_engine.core.enforce_transfer import (
    ExecuteRequest,
    authorize,
    check_amount,
    check_currency,
    check_quote_fresh,
    check_quote_id_present,
    check_quote_matches_amount,
    check_slippage,
    check_sufficient_funds,
    validate_request,
)
from transfer_engine.core.errors import (
    ErrorContext,
    InvalidAmountError,
    MissingParamsError,
    QuoteAlreadyUsedError,
    QuoteNotFoundError,
    SenderNotFoundError,
    TransferEngineError,
)
from transfer_engine.core.format_notification import TransferNotification
from transfer_engine.core.money import fits_storage
from transfer_engine.core.pricing import quote_expires_at, utc_now
from transfer_engine.core.repository_protocols import NotificationSink, RateConverter
from transfer_engine.models.price_quote import PriceQuote
from transfer_engine.models.transfer import Transfer
from transfer_engine.models.wallet import Wallet
from transfer_engine.services.ledger import Ledger
from transfer_engine.services.quote_store import QUOTE_TTL_SECONDS, QuoteStore

logger = logging.getLogger(__name__)

SLIPPAGE_TOLERANCE = Decimal("0.01")


@dataclass
class QuoteOutcome:
    """Result of quote(): a price lock (fiat), an advisory echo (native), or an error."""
    currency: Currency | None = None
    native_amount: Decimal | None = None
    fiat_amount: Decimal | None = None
    expires_at: datetime | None = None
    quote_id: UUID | None = None
    rate: Decimal | None = None
    is_fallback: bool = False
    error: TransferEngineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ExecutionOutcome:
    """Result of execute(): the committed transfer or the rejection and where it happened."""
    stage: ExecutionStage
    transfer: Transfer | None = None
    error: TransferEngineError | None = None
    failed_at: ExecutionStage | None = None

    @property
    def ok(self) -> bool:
        return self.stage is ExecutionStage.COMMITTED

    @property
    def transfer_id(self) -> UUID | None:
        return self.transfer.id if self.transfer else None


@dataclass
class _ResolvedAmounts:
    native_amount: Decimal
    fiat_amount: Decimal | None = None
    quote_id: UUID | None = None


class TransactionOrchestrator:
    """Composes oracle, quote store, verifier and ledger into quote/execute."""

    def __init__(
        self,
        ledger: Ledger,
        quotes: QuoteStore,
        oracle: RateConverter,
        notifier: NotificationSink | None = None,
        *,
        slippage_tolerance: Decimal = SLIPPAGE_TOLERANCE,
        quote_ttl_seconds: int = QUOTE_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ledger = ledger
        self.quotes = quotes
        self.oracle = oracle
        self.notifier = notifier
        self.slippage_tolerance = slippage_tolerance
        self.quote_ttl_seconds = quote_ttl_seconds
        self.clock = clock

    # ─── quote ──────────────────────────────────────────────────

    async def quote(
        self, amount: Decimal | None, currency: str | None,
    ) -> QuoteOutcome:
        """Native: echo with advisory expiry. Fiat: convert, lock, persist."""
        if amount is None or not currency:
            missing = [
                n for n, v in (("amount", amount), ("currency", currency))
                if v is None or v == ""
            ]
            return QuoteOutcome(error=MissingParamsError(missing))
        error = check_amount(amount) or check_currency(currency)
        if error:
            return QuoteOutcome(error=error)

        parsed = Currency.parse(currency)
        if parsed is Currency.NATIVE:
            return QuoteOutcome(
                currency=parsed,
                native_amount=amount,
                expires_at=quote_expires_at(self.clock(), self.quote_ttl_seconds),
            )

        conversion = await self.oracle.convert(amount)
        if conversion.native_amount <= 0:
            return QuoteOutcome(
                error=InvalidAmountError("converts to zero native units"),
            )
        if not fits_storage(conversion.native_amount):
            return QuoteOutcome(
                error=InvalidAmountError("exceeds the largest storable amount"),
            )
        try:
            stored = await self.quotes.put(conversion)
        except TransferEngineError as e:
            return QuoteOutcome(error=e)
        return QuoteOutcome(
            currency=parsed,
            native_amount=stored.native_amount,
            fiat_amount=stored.fiat_amount,
            expires_at=stored.expires_at,
            quote_id=stored.id,
            rate=conversion.rate,
            is_fallback=conversion.is_fallback,
        )

    # ─── execute ────────────────────────────────────────────────

    async def execute(self, request: ExecuteRequest) -> ExecutionOutcome:
        """Run one execute attempt through every gate, committing only at the end."""
        stage = ExecutionStage.RECEIVED
        error = validate_request(request)
        if error:
            return self._reject(stage, error, request)

        currency = Currency.parse(request.currency)
        sender = await self.ledger.get_account(request.sender)
        if sender is None:
            return self._reject(stage, SenderNotFoundError(request.sender), request)
        stage = ExecutionStage.VALIDATED

        amounts, error = await self._resolve_amounts(request, currency)
        if error:
            return self._reject(stage, error, request)
        stage = ExecutionStage.QUOTE_RESOLVED

        error = (
            check_sufficient_funds(sender.balance, amounts.native_amount)
            or authorize(request, currency, amounts.native_amount)
        )
        if error:
            return self._reject(stage, error, request)
        stage = ExecutionStage.AUTHORIZED

        try:
            record = await self.ledger.transfer(
                sender=request.sender,
                recipient=request.recipient,
                native_amount=amounts.native_amount,
                declared_amount=request.amount,
                declared_currency=currency,
                fiat_amount=amounts.fiat_amount,
                quote_id=amounts.quote_id,
            )
        except TransferEngineError as e:
            return self._reject(stage, e, request)

        await self._notify(sender, record, currency)
        return ExecutionOutcome(stage=ExecutionStage.COMMITTED, transfer=record)

    async def _resolve_amounts(
        self, request: ExecuteRequest, currency: Currency,
    ) -> tuple[_ResolvedAmounts | None, TransferEngineError | None]:
        """Native: the declared amount. Fiat: the locked quote, re-checked for drift."""
        if currency is Currency.NATIVE:
            return _ResolvedAmounts(native_amount=request.amount), None

        error = check_quote_id_present(request.quote_id)
        if error:
            return None, error
        quote = await self.quotes.get(request.quote_id)
        if quote is None:
            return None, QuoteNotFoundError(
                str(request.quote_id), ErrorContext(quote_id=str(request.quote_id)),
            )
        error = (
            check_quote_fresh(quote, self.clock())
            or check_quote_matches_amount(quote, request.amount)
        )
        if error:
            return None, error
        if await self.ledger.quote_settled(quote.id):
            return None, QuoteAlreadyUsedError(ErrorContext(quote_id=str(quote.id)))

        fresh = await self.oracle.convert(request.amount)
        error = check_slippage(quote, fresh.rate, self.slippage_tolerance)
        if error:
            return None, error
        return _bind_quote(quote), None

    async def _notify(
        self, sender: Wallet, record: Transfer, currency: Currency,
    ) -> None:
        if not sender.email or self.notifier is None:
            logger.debug(
                "No contact email for sender, skipping notification",
                extra={"address": sender.address},
            )
            return
        event = TransferNotification(
            transfer_id=record.id,
            sender=record.sender,
            recipient=record.recipient,
            native_amount=record.native_amount,
            fiat_amount=record.fiat_amount,
            currency=currency,
        )
        try:
            await self.notifier.notify(sender.email, event)
        except Exception as e:
            logger.error(
                f"Notification failed after commit: {e}",
                extra={"transfer_id": str(record.id)},
            )

    def _reject(
        self,
        stage: ExecutionStage,
        error: TransferEngineError,
        request: ExecuteRequest,
    ) -> ExecutionOutcome:
        error.context.stage = stage.value
        logger.info(
            f"Execute rejected: {error.code}",
            extra={
                "error_code": error.code,
                "stage": stage.value,
                "address": request.sender,
            },
        )
        return ExecutionOutcome(
            stage=ExecutionStage.REJECTED, error=error, failed_at=stage,
        )


def _bind_quote(quote: PriceQuote) -> _ResolvedAmounts:
    return _ResolvedAmounts(
        native_amount=quote.native_amount,
        fiat_amount=quote.fiat_amount,
        quote_id=quote.id,
    )
