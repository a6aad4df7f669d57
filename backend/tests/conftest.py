"""Root conftest — shared test configuration and fixtures.

Invariants:
    - Every test gets a fresh file-backed SQLite database under tmp_path
      (separate connections per session, so concurrent transfers really race)
    - Signing keys are fixed so addresses are stable across runs
    - The upstream oracle is replaced by FakeOracle unless a test builds
      a RateOracleAdapter over httpx.MockTransport itself
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("DATABASE_AUTO_CREATE", "false")
os.environ.setdefault("LOG_FORMAT", "text")

from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from eth_account import Account  # noqa: E402
from eth_account.messages import encode_defunct  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, async_sessionmaker, create_async_engine,
)

from transfer_engine.core.format_notification import TransferNotification  # noqa: E402
from transfer_engine.core.money import native_for_fiat  # noqa: E402
from transfer_engine.core.pricing import Conversion  # noqa: E402
from transfer_engine.db.session import create_schema  # noqa: E402
from transfer_engine.infrastructure.database import engine_options  # noqa: E402
from transfer_engine.services.ledger import Ledger, fixed_seed_policy  # noqa: E402
from transfer_engine.services.quote_store import QuoteStore  # noqa: E402

SENDER_KEY = "0x" + "11" * 32
RECIPIENT_KEY = "0x" + "22" * 32
STRANGER_KEY = "0x" + "33" * 32

FALLBACK_RATE = Decimal("0.0004")


def _sign(account, message: str) -> str:
    """EIP-191 personal_sign signature as 0x-prefixed hex."""
    signed = account.sign_message(encode_defunct(text=message))
    return "0x" + bytes(signed.signature).hex()


class FakeOracle:
    """RateConverter with a settable rate; records every conversion."""

    def __init__(self, rate: Decimal = FALLBACK_RATE, is_fallback: bool = False):
        self.rate = rate
        self.is_fallback = is_fallback
        self.calls: list[Decimal] = []

    async def convert(self, fiat_amount: Decimal) -> Conversion:
        self.calls.append(fiat_amount)
        return Conversion(
            native_amount=native_for_fiat(fiat_amount, self.rate),
            fiat_amount=fiat_amount,
            rate=self.rate,
            is_fallback=self.is_fallback,
        )


class RecordingNotifier:
    """NotificationSink that keeps events in memory; can be told to fail."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, TransferNotification]] = []

    async def notify(self, recipient_email: str, event: TransferNotification) -> None:
        if self.fail:
            raise ConnectionError("mail relay unreachable")
        self.sent.append((recipient_email, event))


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


# ─── Accounts ───────────────────────────────────────────────────

@pytest.fixture
def sender_account():
    return Account.from_key(SENDER_KEY)


@pytest.fixture
def recipient_account():
    return Account.from_key(RECIPIENT_KEY)


@pytest.fixture
def stranger_account():
    return Account.from_key(STRANGER_KEY)


@pytest.fixture
def sign():
    return _sign


# ─── Database ───────────────────────────────────────────────────

@pytest.fixture
async def test_engine(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url, echo=False, **engine_options(url))
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def seed_policy():
    return fixed_seed_policy(Decimal("5"))


@pytest.fixture
async def ledger(test_db, seed_policy):
    return Ledger(test_db, seed_policy=seed_policy)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
async def quote_store(test_db, clock):
    return QuoteStore(test_db, clock=clock)


@pytest.fixture
def fake_oracle():
    return FakeOracle()


@pytest.fixture
def notifier():
    return RecordingNotifier()
