"""Wallet ORM — one account per address, holding a native-unit balance.

Invariants:
    - address is the primary key (hex address as submitted)
    - balance >= 0, enforced by a CHECK constraint as a storage backstop
    - Only the Ledger writes balance

Design Decisions:
    - email nullable: used only for notification routing
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from transfer_engine.db.base import Base
from transfer_engine.models.types import FixedPointAmount


class Wallet(Base):
    """Account entity — address, balance, optional contact email."""
    __tablename__ = "wallets"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),
    )

    address: Mapped[str] = mapped_column(String(64), primary_key=True)
    balance: Mapped[Decimal] = mapped_column(
        FixedPointAmount, nullable=False, default=Decimal("0"),
    )
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
