"""Transfer ORM — the append-only record of committed transfers.

Invariants:
    - Rows are inserted once by Ledger.transfer and never updated or deleted
    - status is always 'completed' (atomic commit leaves no partial state)
    - fiat_amount is set only for fiat-denominated transfers
    - quote_id is UNIQUE: a quote settles at most one transfer

Design Decisions:
    - sender/recipient indexed with created_at: history queries filter by
      either side and order newest first
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from transfer_engine.core.domain_types import TransferStatus
from transfer_engine.db.base import Base
from transfer_engine.models.types import FixedPointAmount


class Transfer(Base):
    """Immutable transfer record."""
    __tablename__ = "transfers"
    __table_args__ = (
        Index("ix_transfers_sender_created", "sender", "created_at"),
        Index("ix_transfers_recipient_created", "recipient", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    sender: Mapped[str] = mapped_column(
        String(64), ForeignKey("wallets.address"), nullable=False,
    )
    recipient: Mapped[str] = mapped_column(
        String(64), ForeignKey("wallets.address"), nullable=False,
    )
    declared_amount: Mapped[Decimal] = mapped_column(
        FixedPointAmount, nullable=False,
    )
    declared_currency: Mapped[str] = mapped_column(String(8), nullable=False)
    native_amount: Mapped[Decimal] = mapped_column(
        FixedPointAmount, nullable=False,
    )
    fiat_amount: Mapped[Decimal | None] = mapped_column(
        FixedPointAmount, nullable=True,
    )
    quote_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, unique=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TransferStatus.COMPLETED.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
