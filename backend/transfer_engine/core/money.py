"""Money Arithmetic — fixed-point helpers for native and fiat amounts.

Invariants:
    - Every amount is a Decimal; binary float never enters a balance computation
    - Stored amounts carry at most AMOUNT_SCALE fractional digits
    - Native amounts derived from a rate are rounded DOWN (never over-debit)

Design Decisions:
    - 9 fractional digits (gwei) so storage can use signed 64-bit integers:
      9.2e9 ETH fits, arithmetic stays exact on SQLite and PostgreSQL alike
"""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

AMOUNT_SCALE = 9
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_SCALE)
WEI_PER_NATIVE = Decimal(10) ** 18
FIAT_MICRO_UNITS = Decimal(10) ** 6
MAX_MINOR_UNITS = 2**63 - 1

_TWO_PLACES = Decimal("0.01")


def quantize_amount(value: Decimal) -> Decimal:
    """Round toward zero to the storage scale."""
    return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_DOWN)


def has_storage_precision(value: Decimal) -> bool:
    """True when value needs no rounding to be stored."""
    return value == quantize_amount(value)


def fits_storage(value: Decimal) -> bool:
    """True when value is within the signed 64-bit minor-unit column range."""
    return value <= MAX_AMOUNT


def to_minor_units(value: Decimal) -> int:
    """Decimal amount -> integer minor units. Raises ValueError on excess precision."""
    scaled = value.scaleb(AMOUNT_SCALE)
    if scaled != scaled.to_integral_value():
        raise ValueError(
            f"amount {value} has more than {AMOUNT_SCALE} fractional digits",
        )
    return int(scaled)


def from_minor_units(units: int) -> Decimal:
    return quantize_amount(Decimal(units).scaleb(-AMOUNT_SCALE))


MAX_AMOUNT = from_minor_units(MAX_MINOR_UNITS)


def native_for_fiat(fiat_amount: Decimal, rate: Decimal) -> Decimal:
    """Native amount bought by fiat_amount at rate (native per fiat unit)."""
    return quantize_amount(fiat_amount * rate)


def wei_to_native(wei: Decimal) -> Decimal:
    return quantize_amount(wei / WEI_PER_NATIVE)


def fiat_to_micro_units(fiat_amount: Decimal) -> int:
    """USD -> USDC base units (6 decimals), floored."""
    return int((fiat_amount * FIAT_MICRO_UNITS).to_integral_value(rounding=ROUND_DOWN))


def plain(value: Decimal) -> str:
    """Shortest plain-notation rendering: 100, 2.5, 0.04 (no exponent, no trailing zeros)."""
    return format(value.normalize(), "f")


def format_native(value: Decimal, places: int = 6) -> str:
    quantum = Decimal(1).scaleb(-places)
    return format(value.quantize(quantum, rounding=ROUND_HALF_UP), "f")


def format_fiat(value: Decimal) -> str:
    return format(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP), "f")
