"""Ledger — balances, atomic transfers and the transfer journal.

Tests cover:
    - create_account is idempotent and seeds once
    - Scenario A: transfer to an unknown recipient auto-creates it
    - Scenario D: insufficient funds leaves no trace
    - conservation of total supply across transfers
    - Scenario E: two concurrent spenders, one balance, exactly one wins
    - history ordering and filtering, quote reuse guard
"""

import asyncio
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from transfer_engine.core.domain_types import Currency
from transfer_engine.core.errors import (
    InsufficientFundsError,
    QuoteAlreadyUsedError,
    SenderNotFoundError,
    TransferEngineError,
    WalletNotFoundError,
)
from transfer_engine.models.transfer import Transfer
from transfer_engine.services.ledger import Ledger, fixed_seed_policy, random_seed_policy

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20


async def _transfer_count(db) -> int:
    result = await db.execute(select(func.count()).select_from(Transfer))
    return result.scalar_one()


async def _native(ledger: Ledger, sender: str, recipient: str, amount: str):
    value = Decimal(amount)
    return await ledger.transfer(
        sender=sender, recipient=recipient, native_amount=value,
        declared_amount=value, declared_currency=Currency.NATIVE,
    )


# ─── Accounts ───────────────────────────────────────────────────

async def test_create_account_seeds_balance(ledger):
    wallet, created = await ledger.create_account(ALICE, "alice@example.com")
    assert created
    assert wallet.balance == Decimal("5")
    assert wallet.email == "alice@example.com"


async def test_create_account_is_idempotent(ledger, test_db):
    await ledger.create_account(ALICE)
    await _native(ledger, ALICE, BOB, "1.5")

    wallet, created = await ledger.create_account(ALICE)

    assert not created
    assert wallet.balance == Decimal("3.5")


async def test_second_registration_refreshes_email(ledger):
    await ledger.create_account(ALICE)
    wallet, created = await ledger.create_account(ALICE, "new@example.com")
    assert not created
    assert wallet.email == "new@example.com"


def test_random_seed_within_range():
    seed = random_seed_policy(Decimal("1"), Decimal("10"))
    for _ in range(50):
        value = seed()
        assert Decimal("1") <= value <= Decimal("10")


async def test_update_email_unknown_wallet(ledger):
    with pytest.raises(WalletNotFoundError):
        await ledger.update_email(ALICE, "x@example.com")


async def test_update_email_clears_with_none(ledger):
    await ledger.create_account(ALICE, "alice@example.com")
    wallet = await ledger.update_email(ALICE, None)
    assert wallet.email is None


async def test_get_account_unknown_is_none(ledger):
    assert await ledger.get_account(ALICE) is None


# ─── Transfers ──────────────────────────────────────────────────

async def test_transfer_to_unknown_recipient_creates_it(ledger, test_db):
    """Scenario A."""
    await ledger.create_account(ALICE)

    record = await _native(ledger, ALICE, BOB, "2.0")

    assert (await ledger.get_account(ALICE)).balance == Decimal("3.0")
    assert (await ledger.get_account(BOB)).balance == Decimal("2.0")
    assert record.status == "completed"
    assert await _transfer_count(test_db) == 1


async def test_insufficient_funds_changes_nothing(test_db):
    """Scenario D."""
    ledger = Ledger(test_db, seed_policy=fixed_seed_policy(Decimal("1.0")))
    await ledger.create_account(ALICE)

    with pytest.raises(InsufficientFundsError):
        await _native(ledger, ALICE, BOB, "2.0")

    assert (await ledger.get_account(ALICE)).balance == Decimal("1.0")
    assert await ledger.get_account(BOB) is None
    assert await _transfer_count(test_db) == 0


async def test_unknown_sender(ledger):
    with pytest.raises(SenderNotFoundError):
        await _native(ledger, ALICE, BOB, "1")


async def test_spending_entire_balance_leaves_zero(ledger):
    await ledger.create_account(ALICE)
    await _native(ledger, ALICE, BOB, "5")
    assert (await ledger.get_account(ALICE)).balance == Decimal("0")


async def test_total_supply_is_conserved(ledger):
    await ledger.create_account(ALICE)
    await ledger.create_account(BOB)
    before = await ledger.total_supply()

    await _native(ledger, ALICE, BOB, "1.123456789")
    await _native(ledger, BOB, CAROL, "0.5")
    await _native(ledger, CAROL, ALICE, "0.1")

    assert await ledger.total_supply() == before == Decimal("10")


async def test_self_transfer_keeps_balance(ledger):
    await ledger.create_account(ALICE)
    await _native(ledger, ALICE, ALICE, "2")
    assert (await ledger.get_account(ALICE)).balance == Decimal("5")


async def test_fiat_transfer_records_both_amounts(ledger):
    await ledger.create_account(ALICE)
    quote_id = uuid4()

    record = await ledger.transfer(
        sender=ALICE, recipient=BOB, native_amount=Decimal("0.04"),
        declared_amount=Decimal("100"), declared_currency=Currency.FIAT,
        fiat_amount=Decimal("100"), quote_id=quote_id,
    )

    assert record.declared_currency == "USD"
    assert record.fiat_amount == Decimal("100")
    assert await ledger.quote_settled(quote_id)


async def test_quote_settles_at_most_one_transfer(ledger, test_db):
    await ledger.create_account(ALICE)
    quote_id = uuid4()
    kwargs = dict(
        sender=ALICE, recipient=BOB, native_amount=Decimal("0.04"),
        declared_amount=Decimal("100"), declared_currency=Currency.FIAT,
        fiat_amount=Decimal("100"), quote_id=quote_id,
    )
    await ledger.transfer(**kwargs)

    with pytest.raises(QuoteAlreadyUsedError):
        await ledger.transfer(**kwargs)

    assert (await ledger.get_account(ALICE)).balance == Decimal("4.96")
    assert await _transfer_count(test_db) == 1


async def test_concurrent_spenders_cannot_double_spend(test_session_factory):
    """Scenario E: 3 + 3 against a balance of 5."""
    async with test_session_factory() as db:
        await Ledger(db, fixed_seed_policy(Decimal("5"))).create_account(ALICE)

    async def spend():
        async with test_session_factory() as db:
            return await _native(Ledger(db), ALICE, BOB, "3")

    results = await asyncio.gather(spend(), spend(), return_exceptions=True)

    successes = [r for r in results if isinstance(r, Transfer)]
    failures = [r for r in results if isinstance(r, TransferEngineError)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientFundsError)

    async with test_session_factory() as db:
        ledger = Ledger(db)
        assert (await ledger.get_account(ALICE)).balance == Decimal("2")
        assert (await ledger.get_account(BOB)).balance == Decimal("3")


# ─── History ────────────────────────────────────────────────────

async def test_history_newest_first_both_directions(ledger, test_db):
    await ledger.create_account(ALICE)
    await ledger.create_account(BOB)
    first = await _native(ledger, ALICE, BOB, "1")
    second = await _native(ledger, BOB, ALICE, "0.5")
    await _native(ledger, BOB, CAROL, "0.25")
    # Pin timestamps so ordering does not depend on clock resolution.
    first.created_at = first.created_at - timedelta(seconds=10)
    second.created_at = second.created_at - timedelta(seconds=5)
    await test_db.commit()

    history = await ledger.history(ALICE)

    assert [r.id for r in history] == [second.id, first.id]


async def test_history_limit(ledger):
    await ledger.create_account(ALICE)
    for _ in range(3):
        await _native(ledger, ALICE, BOB, "0.1")
    assert len(await ledger.history(ALICE, limit=2)) == 2


async def test_history_of_unknown_address_is_empty(ledger):
    assert await ledger.history(CAROL) == []
