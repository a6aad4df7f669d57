"""Pricing — conversion results, quote expiry, and slippage math.

Invariants:
    - Rates are native units per one fiat unit, as Decimal
    - A quote is expired iff now > expires_at (the boundary instant is still valid)
    - Slippage is relative to the OLD (quoted) rate: |new - old| / old
    - Naive datetimes are interpreted as UTC (SQLite drops tzinfo on read)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal


@dataclass(frozen=True)
class Conversion:
    """A fiat -> native conversion, live or fallback."""
    native_amount: Decimal
    fiat_amount: Decimal
    rate: Decimal
    is_fallback: bool = False


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def quote_expires_at(issued_at: datetime, ttl_seconds: int) -> datetime:
    return as_utc(issued_at) + timedelta(seconds=ttl_seconds)


def is_expired(expires_at: datetime, now: datetime) -> bool:
    return as_utc(now) > as_utc(expires_at)


def locked_rate(native_amount: Decimal, fiat_amount: Decimal) -> Decimal:
    """Rate implied by a stored quote's amount pair."""
    return native_amount / fiat_amount


def rate_drift(old_rate: Decimal, new_rate: Decimal) -> Decimal:
    return abs(new_rate - old_rate) / old_rate


def is_price_change_significant(
    old_rate: Decimal, new_rate: Decimal, threshold: Decimal = Decimal("0.01"),
) -> bool:
    """True when the fresh rate drifted strictly more than threshold."""
    return rate_drift(old_rate, new_rate) > threshold
