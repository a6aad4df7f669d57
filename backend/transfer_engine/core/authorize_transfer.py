"""Transfer Authorization — signer recovery and canonical message binding.

Invariants:
    - verify_signature never raises: malformed input yields SignatureCheck(valid=False)
    - Signer comparison is case-insensitive (checksum vs lowercase hex addresses)
    - validate_message is byte equality against build_transfer_message — no
      trimming, no case folding
    - Fiat messages bind BOTH the user-facing fiat amount and the locked native
      amount (6 dp), so a signed fiat intent cannot settle a different native amount

Design Decisions:
    - EIP-191 personal_sign via eth_account: same scheme wallets use for
      "Sign message" prompts
    - Pure functions, no IO: recovery is a deterministic function of
      (message, signature)
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from eth_account import Account
from eth_account.messages import encode_defunct

from transfer_engine.core.domain_types import Currency
from transfer_engine.core.money import format_native, plain

logger = logging.getLogger(__name__)

BAD_FORMAT = "Invalid signature format"
SIGNER_MISMATCH = "Signature does not match sender address"


@dataclass(frozen=True)
class SignatureCheck:
    """Result of recovering the signer of a personal message."""
    valid: bool
    reason: str | None = None
    recovered_address: str | None = None


def verify_signature(
    message: str, signature: str, claimed_address: str,
) -> SignatureCheck:
    """Recover the personal-message signer and compare with claimed_address."""
    try:
        recovered = Account.recover_message(
            encode_defunct(text=message), signature=signature,
        )
    except Exception as e:
        logger.info(f"Signature recovery failed: {type(e).__name__}")
        return SignatureCheck(valid=False, reason=BAD_FORMAT)

    if recovered.lower() != claimed_address.lower():
        return SignatureCheck(
            valid=False, reason=SIGNER_MISMATCH, recovered_address=recovered,
        )
    return SignatureCheck(valid=True, recovered_address=recovered)


def build_transfer_message(
    amount: Decimal,
    currency: Currency,
    recipient_address: str,
    native_amount: Decimal | None = None,
) -> str:
    """Canonical string a sender must sign to authorize a transfer.

    native: ``Transfer 2 ETH to 0xabc...``
    fiat:   ``Transfer 0.040000 ETH ($100 USD) to 0xabc...``
    """
    if currency is Currency.NATIVE:
        return (
            f"Transfer {plain(amount)} {Currency.NATIVE.value} "
            f"to {recipient_address}"
        )
    if native_amount is None:
        raise ValueError("fiat transfer messages require the locked native amount")
    return (
        f"Transfer {format_native(native_amount)} {Currency.NATIVE.value} "
        f"(${plain(amount)} {Currency.FIAT.value}) to {recipient_address}"
    )


def validate_message(
    message: str,
    *,
    amount: Decimal,
    currency: Currency,
    recipient_address: str,
    native_amount: Decimal | None = None,
) -> bool:
    """True iff message is exactly the canonical form of the declared transfer."""
    expected = build_transfer_message(
        amount, currency, recipient_address, native_amount,
    )
    return message == expected
