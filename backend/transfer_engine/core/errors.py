"""Error Hierarchy — typed, categorized failures for every transfer-engine rejection.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Codes are stable and machine-readable; messages are human-readable
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - Authorization and state-conflict rejections share one HTTP status and envelope shape
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with TransferEngineError base: FastAPI global handler catches all
    - Errors double as outcome values: gate checks return them, the orchestrator
      threads them through its state machine, routes raise them at the boundary
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    STATE_CONFLICT = "state_conflict"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    address: str | None = None
    quote_id: str | None = None
    stage: str | None = None
    debug_info: dict[str, Any] | None = None


class TransferEngineError(Exception):
    """Base exception for all transfer-engine errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "address": self.context.address,
                    "quote_id": self.context.quote_id,
                    "stage": self.context.stage,
                },
            }
        }


# ─── Validation Errors (400) ────────────────────────────────────

class MissingParamsError(TransferEngineError):
    """One or more required fields were absent."""
    def __init__(self, missing: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"Missing required fields: {', '.join(missing)}",
            "MISSING_PARAMS", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.missing = missing


class InvalidAmountError(TransferEngineError):
    """Amount is non-positive or finer than the ledger's fixed-point scale."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid amount: {reason}",
            "INVALID_AMOUNT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class InvalidCurrencyError(TransferEngineError):
    """Currency symbol is neither the native nor the fiat unit."""
    def __init__(self, currency: str | None, context: ErrorContext | None = None):
        super().__init__(
            f"Unsupported currency '{currency}'. Currency must be ETH or USD",
            "INVALID_CURRENCY", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class MissingQuoteIdError(TransferEngineError):
    """Fiat-denominated execute without a quote id."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Quote ID required for USD transactions",
            "MISSING_QUOTE_ID", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── State-Conflict Errors (400) ────────────────────────────────

class QuoteNotFoundError(TransferEngineError):
    """Cited quote id does not exist."""
    def __init__(self, quote_id: str, context: ErrorContext | None = None):
        super().__init__(
            "Price quote not found",
            "QUOTE_NOT_FOUND", ErrorCategory.STATE_CONFLICT,
            ErrorSeverity.ERROR, context, 400,
        )
        self.quote_id = quote_id


class QuoteExpiredError(TransferEngineError):
    """Cited quote is past its expiry."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Price quote has expired",
            "QUOTE_EXPIRED", ErrorCategory.STATE_CONFLICT,
            ErrorSeverity.ERROR, context, 400,
        )


class QuoteAmountMismatchError(TransferEngineError):
    """Cited quote locks a different fiat amount than the one requested."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Requested amount does not match the quoted amount",
            "QUOTE_AMOUNT_MISMATCH", ErrorCategory.STATE_CONFLICT,
            ErrorSeverity.ERROR, context, 400,
        )


class QuoteAlreadyUsedError(TransferEngineError):
    """Cited quote already settled a transfer."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Price quote has already been used",
            "QUOTE_ALREADY_USED", ErrorCategory.STATE_CONFLICT,
            ErrorSeverity.ERROR, context, 400,
        )


class PriceChangedError(TransferEngineError):
    """Fresh rate drifted beyond the slippage tolerance."""
    def __init__(self, drift: Any = None, context: ErrorContext | None = None):
        super().__init__(
            "Price has changed significantly. Please get a new quote.",
            "PRICE_CHANGED", ErrorCategory.STATE_CONFLICT,
            ErrorSeverity.ERROR, context, 400,
        )
        self.drift = drift


class InsufficientFundsError(TransferEngineError):
    """Sender balance cannot cover the native amount."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Insufficient balance",
            "INSUFFICIENT_FUNDS", ErrorCategory.STATE_CONFLICT,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Authorization Errors (400) ─────────────────────────────────

class InvalidSignatureError(TransferEngineError):
    """Signature did not recover to the claimed sender."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            reason, "INVALID_SIGNATURE", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.ERROR, context, 400,
        )


class InvalidMessageError(TransferEngineError):
    """Signed message is not the canonical form of the declared transfer."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Transaction message format is invalid",
            "INVALID_MESSAGE", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Not Found (404) ────────────────────────────────────────────

class SenderNotFoundError(TransferEngineError):
    """Execute cited a sender with no wallet."""
    def __init__(self, address: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.address = address
        super().__init__(
            "Sender wallet not found",
            "SENDER_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class WalletNotFoundError(TransferEngineError):
    """Requested wallet does not exist."""
    def __init__(self, address: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.address = address
        super().__init__(
            "Wallet not found",
            "WALLET_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(TransferEngineError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
