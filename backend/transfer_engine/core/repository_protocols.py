"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - External capabilities (rate conversion, notification delivery) accessed
      through Protocol types, implementations injected by the shell

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: implementations do IO; the pure gate functions that
      consume their results stay synchronous
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from transfer_engine.core.pricing import Conversion
from transfer_engine.core.format_notification import TransferNotification


class QuoteLike(Protocol):
    """Structural contract for a stored price quote."""
    id: UUID
    native_amount: Decimal
    fiat_amount: Decimal
    expires_at: datetime


class RateConverter(Protocol):
    """Fiat -> native conversion capability. Must not raise on upstream failure."""
    async def convert(self, fiat_amount: Decimal) -> Conversion: ...


class NotificationSink(Protocol):
    """Fire-and-forget delivery of a committed-transfer event."""
    async def notify(self, recipient_email: str, event: TransferNotification) -> None: ...
