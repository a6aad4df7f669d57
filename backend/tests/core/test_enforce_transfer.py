"""Transfer Gate Enforcement — tests for the pure execute-stage checks.

Tests cover:
    - validate_request chains required fields, amount, currency
    - quote checks: presence, freshness, amount match, slippage
    - check_sufficient_funds
    - authorize chains signature then message binding
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from transfer_engine.core.domain_types import Currency
from transfer_engine.core.enforce_transfer import (
    ExecuteRequest,
    authorize,
    check_amount,
    check_currency,
    check_quote_fresh,
    check_quote_id_present,
    check_quote_matches_amount,
    check_required_fields,
    check_slippage,
    check_sufficient_funds,
    validate_request,
)
from transfer_engine.core.money import MAX_AMOUNT

RECIPIENT = "0x742d35Cc6634C0532925a3b8D4C9db96c728b0B4"
NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
TOLERANCE = Decimal("0.01")


@dataclass
class _Quote:
    id: UUID
    native_amount: Decimal
    fiat_amount: Decimal
    expires_at: datetime


def _quote(**overrides) -> _Quote:
    fields = {
        "id": uuid4(),
        "native_amount": Decimal("0.04"),
        "fiat_amount": Decimal("100"),
        "expires_at": NOW + timedelta(seconds=30),
    }
    fields.update(overrides)
    return _Quote(**fields)


def _request(**overrides) -> ExecuteRequest:
    fields = {
        "sender": "0x" + "ab" * 20,
        "recipient": RECIPIENT,
        "amount": Decimal("2"),
        "currency": "ETH",
        "signature": "0xsig",
        "message": f"Transfer 2 ETH to {RECIPIENT}",
    }
    fields.update(overrides)
    return ExecuteRequest(**fields)


# ─── validate_request ───────────────────────────────────────────

def test_complete_request_passes():
    assert validate_request(_request()) is None


def test_missing_fields_are_listed():
    error = check_required_fields(_request(signature=None, message=""))
    assert error.code == "MISSING_PARAMS"
    assert error.missing == ["signature", "message"]
    assert error.http_status == 400


def test_quote_id_is_not_required_at_validation():
    assert check_required_fields(_request(quote_id=None)) is None


def test_non_positive_amount_rejected():
    assert check_amount(Decimal("0")).code == "INVALID_AMOUNT"
    assert check_amount(Decimal("-1")).code == "INVALID_AMOUNT"


def test_amount_beyond_storage_precision_rejected():
    assert check_amount(Decimal("0.0000000001")).code == "INVALID_AMOUNT"


def test_amount_above_storage_range_rejected():
    assert check_amount(MAX_AMOUNT) is None
    assert check_amount(Decimal("20000000000")).code == "INVALID_AMOUNT"
    assert check_amount(Decimal("1e30")).code == "INVALID_AMOUNT"


def test_invalid_currency():
    error = check_currency("BTC")
    assert error.code == "INVALID_CURRENCY"


def test_validate_request_first_error_wins():
    error = validate_request(_request(amount=Decimal("-1"), currency="BTC"))
    assert error.code == "INVALID_AMOUNT"


# ─── quote checks ───────────────────────────────────────────────

def test_missing_quote_id():
    assert check_quote_id_present(None).code == "MISSING_QUOTE_ID"
    assert check_quote_id_present(uuid4()) is None


def test_quote_fresh_until_expiry_instant():
    quote = _quote(expires_at=NOW)
    assert check_quote_fresh(quote, NOW) is None


def test_quote_expired_one_second_ago():
    quote = _quote(expires_at=NOW - timedelta(seconds=1))
    error = check_quote_fresh(quote, NOW)
    assert error.code == "QUOTE_EXPIRED"
    assert error.context.quote_id == str(quote.id)


def test_quote_amount_must_match_declared_amount():
    quote = _quote()
    assert check_quote_matches_amount(quote, Decimal("100.00")) is None
    assert check_quote_matches_amount(quote, Decimal("99")).code == "QUOTE_AMOUNT_MISMATCH"


def test_slippage_at_tolerance_passes():
    assert check_slippage(_quote(), Decimal("0.000404"), TOLERANCE) is None
    assert check_slippage(_quote(), Decimal("0.000396"), TOLERANCE) is None


def test_slippage_beyond_tolerance_rejected():
    error = check_slippage(_quote(), Decimal("0.0004041"), TOLERANCE)
    assert error.code == "PRICE_CHANGED"


def test_quote_locking_zero_native_is_price_changed():
    quote = _quote(native_amount=Decimal("0"), fiat_amount=Decimal("0.000000001"))
    error = check_slippage(quote, Decimal("0.0004"), TOLERANCE)
    assert error.code == "PRICE_CHANGED"


# ─── funds ──────────────────────────────────────────────────────

def test_sufficient_funds():
    assert check_sufficient_funds(Decimal("1"), Decimal("1")) is None
    assert check_sufficient_funds(Decimal("1"), Decimal("2")).code == "INSUFFICIENT_FUNDS"


# ─── authorize ──────────────────────────────────────────────────

def test_authorize_accepts_signed_canonical_message(sender_account, sign):
    message = f"Transfer 2 ETH to {RECIPIENT}"
    request = _request(
        sender=sender_account.address,
        message=message,
        signature=sign(sender_account, message),
    )
    assert authorize(request, Currency.NATIVE, Decimal("2")) is None


def test_authorize_checks_signature_before_message(sender_account, stranger_account, sign):
    message = "Transfer 999 ETH to somebody"
    request = _request(
        sender=sender_account.address,
        message=message,
        signature=sign(stranger_account, message),
    )
    assert authorize(request, Currency.NATIVE, Decimal("2")).code == "INVALID_SIGNATURE"


def test_authorize_rejects_signed_but_unbound_message(sender_account, sign):
    message = f"Transfer 1 ETH to {RECIPIENT}"
    request = _request(
        sender=sender_account.address,
        message=message,
        signature=sign(sender_account, message),
    )
    assert authorize(request, Currency.NATIVE, Decimal("2")).code == "INVALID_MESSAGE"
