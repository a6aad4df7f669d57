"""Transfer Gate Enforcement — pure validation for each execute stage.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Return the rejection (a TransferEngineError instance, NOT raised) on
      violation, None on success
    - validate_request chains the Received -> Validated checks — first error wins
    - authorize chains signature then message binding — first error wins

Design Decisions:
    - Return values over exceptions: the orchestrator records the stage at which
      a gate failed and hands the caller an explicit outcome
    - Sufficiency check here is advisory (fail cheaply); the Ledger re-checks
      atomically with the debit
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from transfer_engine.core.authorize_transfer import validate_message, verify_signature
from transfer_engine.core.domain_types import Currency
from transfer_engine.core.errors import (
    ErrorContext,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidCurrencyError,
    InvalidMessageError,
    InvalidSignatureError,
    MissingParamsError,
    MissingQuoteIdError,
    PriceChangedError,
    QuoteAmountMismatchError,
    QuoteExpiredError,
    TransferEngineError,
)
from transfer_engine.core.money import fits_storage, has_storage_precision
from transfer_engine.core.pricing import (
    is_expired, is_price_change_significant, locked_rate, rate_drift,
)
from transfer_engine.core.repository_protocols import QuoteLike

REQUIRED_FIELDS = ("sender", "recipient", "amount", "currency", "signature", "message")


@dataclass
class ExecuteRequest:
    """Caller-declared transfer, before any gate has run."""
    sender: str | None = None
    recipient: str | None = None
    amount: Decimal | None = None
    currency: str | None = None
    signature: str | None = None
    message: str | None = None
    quote_id: UUID | None = None
    context: ErrorContext = field(default_factory=ErrorContext)


def check_required_fields(request: ExecuteRequest) -> TransferEngineError | None:
    """Stage 1: every required field present and non-empty."""
    missing = [
        name for name in REQUIRED_FIELDS
        if getattr(request, name) in (None, "")
    ]
    if missing:
        return MissingParamsError(missing, request.context)
    return None


def check_amount(amount: Decimal) -> TransferEngineError | None:
    """Amounts are positive and representable at storage precision."""
    if not amount.is_finite() or amount <= 0:
        return InvalidAmountError("must be greater than zero")
    if not fits_storage(amount):
        return InvalidAmountError("exceeds the largest storable amount")
    if not has_storage_precision(amount):
        return InvalidAmountError("too many decimal places")
    return None


def check_currency(currency: str | None) -> TransferEngineError | None:
    if Currency.parse(currency) is None:
        return InvalidCurrencyError(currency)
    return None


def validate_request(request: ExecuteRequest) -> TransferEngineError | None:
    """Chain Received -> Validated checks. Returns first error or None."""
    return (
        check_required_fields(request)
        or check_amount(request.amount)
        or check_currency(request.currency)
    )


def check_quote_id_present(quote_id: UUID | None) -> TransferEngineError | None:
    if quote_id is None:
        return MissingQuoteIdError()
    return None


def check_quote_fresh(quote: QuoteLike, now: datetime) -> TransferEngineError | None:
    """Expiry is evaluated at read time; a stale quote is invalid, never renewed."""
    if is_expired(quote.expires_at, now):
        return QuoteExpiredError(ErrorContext(quote_id=str(quote.id)))
    return None


def check_quote_matches_amount(
    quote: QuoteLike, amount: Decimal,
) -> TransferEngineError | None:
    """The cited quote must lock the same fiat amount the caller declares."""
    if quote.fiat_amount != amount:
        return QuoteAmountMismatchError(ErrorContext(quote_id=str(quote.id)))
    return None


def check_slippage(
    quote: QuoteLike, fresh_rate: Decimal, tolerance: Decimal,
) -> TransferEngineError | None:
    """Reject iff |fresh - locked| / locked > tolerance, or the lock bought nothing."""
    old_rate = locked_rate(quote.native_amount, quote.fiat_amount)
    if old_rate <= 0:
        return PriceChangedError(context=ErrorContext(quote_id=str(quote.id)))
    if is_price_change_significant(old_rate, fresh_rate, tolerance):
        return PriceChangedError(
            drift=rate_drift(old_rate, fresh_rate),
            context=ErrorContext(quote_id=str(quote.id)),
        )
    return None


def check_sufficient_funds(
    balance: Decimal, native_amount: Decimal,
) -> TransferEngineError | None:
    if balance < native_amount:
        return InsufficientFundsError()
    return None


def check_signature(
    message: str, signature: str, sender: str,
) -> TransferEngineError | None:
    result = verify_signature(message, signature, sender)
    if not result.valid:
        return InvalidSignatureError(result.reason or "Invalid signature")
    return None


def check_message_binding(
    message: str,
    *,
    amount: Decimal,
    currency: Currency,
    recipient: str,
    native_amount: Decimal,
) -> TransferEngineError | None:
    if not validate_message(
        message,
        amount=amount,
        currency=currency,
        recipient_address=recipient,
        native_amount=native_amount,
    ):
        return InvalidMessageError()
    return None


def authorize(
    request: ExecuteRequest, currency: Currency, native_amount: Decimal,
) -> TransferEngineError | None:
    """Chain Authorized-stage checks: signer identity, then message binding."""
    return (
        check_signature(request.message, request.signature, request.sender)
        or check_message_binding(
            request.message,
            amount=request.amount,
            currency=currency,
            recipient=request.recipient,
            native_amount=native_amount,
        )
    )
