"""PriceQuote ORM — a time-boxed lock of a native/fiat conversion pair.

Invariants:
    - Rows are never updated; validity is decided at read time from expires_at
    - fiat_amount > 0 (the locked rate is native_amount / fiat_amount)
    - is_fallback records whether the pair came from the fallback rate

Design Decisions:
    - No background sweeper: expired rows are invalid, not absent
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from transfer_engine.db.base import Base
from transfer_engine.models.types import FixedPointAmount


class PriceQuote(Base):
    """Locked conversion cited by a fiat-denominated execute."""
    __tablename__ = "price_quotes"
    __table_args__ = (
        CheckConstraint("fiat_amount > 0", name="ck_price_quotes_fiat_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    native_amount: Mapped[Decimal] = mapped_column(
        FixedPointAmount, nullable=False,
    )
    fiat_amount: Mapped[Decimal] = mapped_column(
        FixedPointAmount, nullable=False,
    )
    is_fallback: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
