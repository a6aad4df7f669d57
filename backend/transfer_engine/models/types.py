"""Column Types — fixed-point amount stored as integer minor units.

Invariants:
    - Python side is always Decimal; storage side is always a BIGINT count of 1e-9 units
    - Binding a value with more than 9 fractional digits raises (never rounds silently)
    - Literals compared or combined with an amount column pass through the same conversion

Design Decisions:
    - TypeDecorator over Numeric: SQLite has no exact decimal storage, so
      `balance - :amount` would degrade to REAL arithmetic; integers stay exact everywhere
"""

from decimal import Decimal

from sqlalchemy import BigInteger
from sqlalchemy.types import TypeDecorator

from transfer_engine.core.money import from_minor_units, to_minor_units


class FixedPointAmount(TypeDecorator):
    """Decimal <-> BIGINT minor units."""
    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return to_minor_units(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return from_minor_units(int(value))

    def coerce_compared_value(self, op, value):
        return self
