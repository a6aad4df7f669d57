"""Ledger — wallet balances and the append-only transfer record.

Invariants:
    - The Ledger is the only writer of Wallet.balance
    - transfer() is one database transaction: debit, recipient auto-vivify,
      credit, record insert — all committed together or all rolled back
    - The sufficiency check IS the debit: `UPDATE ... SET balance = balance - :n
      WHERE address = :s AND balance >= :n` — two concurrent spenders cannot both
      pass against the same balance
    - create_account() is idempotent: never creates twice, never resets a balance
    - history() returns records touching the address, newest first

Design Decisions:
    - Compare-and-swap debit over SELECT ... FOR UPDATE: identical semantics on
      PostgreSQL and SQLite (which has no row locks)
    - Dialect-specific INSERT ... ON CONFLICT DO NOTHING for wallet creation so a
      racing creator never aborts the surrounding transaction
    - Reads use populate_existing: Core UPDATEs bypass the identity map, so a
      cached Wallet would otherwise report a stale balance
"""

import logging
import random
import uuid
from collections.abc import Callable
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from transfer_engine.core.domain_types import Currency, TransferStatus
from transfer_engine.core.errors import (
    DatabaseError,
    ErrorContext,
    InsufficientFundsError,
    QuoteAlreadyUsedError,
    SenderNotFoundError,
    WalletNotFoundError,
)
from transfer_engine.core.money import from_minor_units, to_minor_units
from transfer_engine.core.pricing import utc_now
from transfer_engine.models.transfer import Transfer
from transfer_engine.models.wallet import Wallet

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50

SeedPolicy = Callable[[], Decimal]


def random_seed_policy(
    low: Decimal = Decimal("1"), high: Decimal = Decimal("10"),
) -> SeedPolicy:
    """Uniform seed balance in [low, high], drawn in whole minor units."""
    low_units, high_units = to_minor_units(low), to_minor_units(high)

    def seed() -> Decimal:
        return from_minor_units(random.randint(low_units, high_units))

    return seed


def fixed_seed_policy(amount: Decimal) -> SeedPolicy:
    return lambda: amount


class Ledger:
    """Account store and transfer journal over one AsyncSession."""

    def __init__(self, db: AsyncSession, seed_policy: SeedPolicy | None = None):
        self.db = db
        self.seed_policy = seed_policy or random_seed_policy()

    # ─── Accounts ───────────────────────────────────────────────

    async def get_account(self, address: str) -> Wallet | None:
        result = await self.db.execute(
            select(Wallet)
            .where(Wallet.address == address)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def create_account(
        self, address: str, email: str | None = None,
    ) -> tuple[Wallet, bool]:
        """Return (wallet, created). Existing wallets only get an email refresh."""
        existing = await self.get_account(address)
        if existing is not None:
            return await self._refresh_email(existing, email), False

        now = utc_now()
        seed = self.seed_policy()
        stmt = self._insert(Wallet).values(
            address=address, balance=seed, email=email or None,
            created_at=now, updated_at=now,
        ).on_conflict_do_nothing(index_elements=["address"])
        result = await self._commit_statement(stmt, "create wallet")
        wallet = await self.get_account(address)
        if result.rowcount != 1:
            # Lost a creation race; the winner's row stands.
            return await self._refresh_email(wallet, email), False
        logger.info(
            f"Created wallet with {seed} ETH",
            extra={"address": address},
        )
        return wallet, True

    async def update_email(self, address: str, email: str | None) -> Wallet:
        wallet = await self.get_account(address)
        if wallet is None:
            raise WalletNotFoundError(address)
        wallet.email = email or None
        wallet.updated_at = utc_now()
        await self._commit("update email")
        return wallet

    async def _refresh_email(self, wallet: Wallet, email: str | None) -> Wallet:
        if email and email != wallet.email:
            wallet.email = email
            wallet.updated_at = utc_now()
            await self._commit("update email")
            logger.info("Updated wallet email", extra={"address": wallet.address})
        return wallet

    # ─── Transfers ──────────────────────────────────────────────

    async def transfer(
        self,
        sender: str,
        recipient: str,
        native_amount: Decimal,
        declared_amount: Decimal,
        declared_currency: Currency,
        fiat_amount: Decimal | None = None,
        quote_id: uuid.UUID | None = None,
    ) -> Transfer:
        """Atomically move native_amount from sender to recipient and journal it."""
        now = utc_now()
        try:
            debit = await self.db.execute(
                update(Wallet)
                .where(Wallet.address == sender)
                .where(Wallet.balance >= native_amount)
                .values(balance=Wallet.balance - native_amount, updated_at=now)
                .execution_options(synchronize_session=False),
            )
            if debit.rowcount != 1:
                await self.db.rollback()
                if await self.get_account(sender) is None:
                    raise SenderNotFoundError(sender)
                raise InsufficientFundsError(ErrorContext(address=sender))

            await self.db.execute(
                self._insert(Wallet).values(
                    address=recipient, balance=Decimal("0"),
                    created_at=now, updated_at=now,
                ).on_conflict_do_nothing(index_elements=["address"]),
            )
            await self.db.execute(
                update(Wallet)
                .where(Wallet.address == recipient)
                .values(balance=Wallet.balance + native_amount, updated_at=now)
                .execution_options(synchronize_session=False),
            )
            record = Transfer(
                id=uuid.uuid4(),
                sender=sender,
                recipient=recipient,
                declared_amount=declared_amount,
                declared_currency=declared_currency.value,
                native_amount=native_amount,
                fiat_amount=fiat_amount,
                quote_id=quote_id,
                status=TransferStatus.COMPLETED.value,
                created_at=now,
            )
            self.db.add(record)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if quote_id is not None and "quote_id" in str(e.orig):
                raise QuoteAlreadyUsedError(ErrorContext(quote_id=str(quote_id)))
            logger.error(f"Transfer rolled back on integrity error: {e}")
            raise DatabaseError("Integrity constraint violated", "commit")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Transfer rolled back: {e}")
            raise DatabaseError("Transfer could not be committed", "commit")

        logger.info(
            f"Transfer committed: {native_amount} ETH {sender} -> {recipient}",
            extra={"transfer_id": str(record.id), "address": sender},
        )
        return record

    async def quote_settled(self, quote_id: uuid.UUID) -> bool:
        """True when a committed transfer already cites quote_id."""
        result = await self.db.execute(
            select(Transfer.id).where(Transfer.quote_id == quote_id),
        )
        return result.first() is not None

    async def history(
        self, address: str, limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[Transfer]:
        result = await self.db.execute(
            select(Transfer)
            .where(or_(Transfer.sender == address, Transfer.recipient == address))
            .order_by(Transfer.created_at.desc())
            .limit(limit),
        )
        return list(result.scalars().all())

    async def total_supply(self) -> Decimal:
        """Sum of all balances — constant across transfers."""
        result = await self.db.execute(select(func.sum(Wallet.balance)))
        total = result.scalar_one_or_none()
        return total if total is not None else from_minor_units(0)

    # ─── Internals ──────────────────────────────────────────────

    def _insert(self, model):
        """INSERT supporting ON CONFLICT for the bound dialect."""
        if self.db.get_bind().dialect.name == "postgresql":
            return postgresql.insert(model.__table__)
        return sqlite.insert(model.__table__)

    async def _commit_statement(self, stmt, operation: str):
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Ledger {operation} failed: {e}")
            raise DatabaseError(f"Could not {operation}", "commit")
        return result

    async def _commit(self, operation: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Ledger {operation} failed: {e}")
            raise DatabaseError(f"Could not {operation}", "commit")
