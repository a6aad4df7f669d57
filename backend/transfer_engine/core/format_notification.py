"""Transfer Notification Formatting — event shape and rendered confirmation text.

Invariants:
    - All functions are pure (no IO, no async, no DB)
    - fiat_amount appears in the rendered amount only for fiat-denominated transfers
    - Native amounts rendered at 4 dp, fiat at 2 dp

Design Decisions:
    - Rendering lives in core so the delivery sink only handles transport
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from transfer_engine.core.domain_types import Currency
from transfer_engine.core.money import format_fiat, format_native

SUBJECT = "Transfer Engine - Transaction Confirmation"


@dataclass(frozen=True)
class TransferNotification:
    """Structured event emitted after a transfer commits."""
    transfer_id: UUID
    sender: str
    recipient: str
    native_amount: Decimal
    currency: Currency
    fiat_amount: Decimal | None = None

    def to_dict(self) -> dict:
        return {
            "transfer_id": str(self.transfer_id),
            "sender": self.sender,
            "recipient": self.recipient,
            "native_amount": str(self.native_amount),
            "fiat_amount": (
                str(self.fiat_amount) if self.fiat_amount is not None else None
            ),
            "currency": self.currency.value,
        }


def format_amount_text(event: TransferNotification) -> str:
    """'0.0400 ETH' or '0.0400 ETH ($100.00 USD)'."""
    text = f"{format_native(event.native_amount, 4)} {Currency.NATIVE.value}"
    if event.currency is Currency.FIAT and event.fiat_amount is not None:
        text += f" (${format_fiat(event.fiat_amount)} {Currency.FIAT.value})"
    return text


def format_notification_body(event: TransferNotification) -> str:
    return "\n".join([
        "Transaction Successful!",
        "",
        f"Amount: {format_amount_text(event)}",
        f"From: {event.sender}",
        f"To: {event.recipient}",
        f"Transaction ID: {event.transfer_id}",
        "",
        "This transaction has been processed and recorded on your wallet.",
    ])
