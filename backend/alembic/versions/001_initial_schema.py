"""Initial schema — wallets, transfers, price_quotes.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Amount columns hold minor units (10**-9 of the currency unit) as BIGINT.
    op.create_table(
        "wallets",
        sa.Column("address", sa.String(64), primary_key=True),
        sa.Column("balance", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),
    )

    op.create_table(
        "price_quotes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("native_amount", sa.BigInteger, nullable=False),
        sa.Column("fiat_amount", sa.BigInteger, nullable=False),
        sa.Column("is_fallback", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("fiat_amount > 0", name="ck_price_quotes_fiat_positive"),
    )

    op.create_table(
        "transfers",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("sender", sa.String(64), sa.ForeignKey("wallets.address"), nullable=False),
        sa.Column("recipient", sa.String(64), sa.ForeignKey("wallets.address"), nullable=False),
        sa.Column("declared_amount", sa.BigInteger, nullable=False),
        sa.Column("declared_currency", sa.String(8), nullable=False),
        sa.Column("native_amount", sa.BigInteger, nullable=False),
        sa.Column("fiat_amount", sa.BigInteger, nullable=True),
        sa.Column("quote_id", UUID(as_uuid=True), nullable=True, unique=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="completed"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_transfers_sender_created", "transfers", ["sender", "created_at"])
    op.create_index("ix_transfers_recipient_created", "transfers", ["recipient", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_transfers_recipient_created", table_name="transfers")
    op.drop_index("ix_transfers_sender_created", table_name="transfers")
    op.drop_table("transfers")
    op.drop_table("price_quotes")
    op.drop_table("wallets")
