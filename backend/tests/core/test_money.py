"""Money Arithmetic — tests for fixed-point conversion and formatting.

Tests cover:
    - minor-unit conversion is exact and rejects excess precision
    - derived native amounts round down to storage scale
    - wire conversions (wei, USDC micro-units)
    - plain/native/fiat rendering
"""

from decimal import Decimal

import pytest

from transfer_engine.core.money import (
    MAX_AMOUNT,
    MAX_MINOR_UNITS,
    format_fiat,
    format_native,
    fiat_to_micro_units,
    fits_storage,
    from_minor_units,
    has_storage_precision,
    native_for_fiat,
    plain,
    quantize_amount,
    to_minor_units,
    wei_to_native,
)


# ─── minor units ────────────────────────────────────────────────

def test_to_minor_units_is_exact():
    assert to_minor_units(Decimal("2.5")) == 2_500_000_000
    assert to_minor_units(Decimal("0.000000001")) == 1


def test_to_minor_units_rejects_excess_precision():
    with pytest.raises(ValueError):
        to_minor_units(Decimal("0.0000000001"))


def test_from_minor_units_inverts_to_minor_units():
    assert from_minor_units(40_000_000) == Decimal("0.04")


def test_tenths_add_up_exactly():
    total = sum(to_minor_units(Decimal("0.1")) for _ in range(10))
    assert from_minor_units(total) == Decimal("1")


def test_has_storage_precision():
    assert has_storage_precision(Decimal("1.123456789"))
    assert not has_storage_precision(Decimal("1.1234567891"))


def test_quantize_amount_rounds_toward_zero():
    assert quantize_amount(Decimal("0.9999999999")) == Decimal("0.999999999")


# ─── conversions ────────────────────────────────────────────────

def test_native_for_fiat_at_fallback_rate():
    assert native_for_fiat(Decimal("100"), Decimal("0.0004")) == Decimal("0.04")


def test_native_for_fiat_never_rounds_up():
    result = native_for_fiat(Decimal("1"), Decimal("0.0000000019"))
    assert result == Decimal("0.000000001")


def test_wei_to_native():
    assert wei_to_native(Decimal("40000000000000000")) == Decimal("0.04")


def test_fiat_to_micro_units_floors():
    assert fiat_to_micro_units(Decimal("100")) == 100_000_000
    assert fiat_to_micro_units(Decimal("0.0000019")) == 1


# ─── rendering ──────────────────────────────────────────────────

@pytest.mark.parametrize("value,expected", [
    (Decimal("100"), "100"),
    (Decimal("100.00"), "100"),
    (Decimal("2.50"), "2.5"),
    (Decimal("1E+2"), "100"),
    (Decimal("0.040000000"), "0.04"),
])
def test_plain(value, expected):
    assert plain(value) == expected


def test_format_native_six_places():
    assert format_native(Decimal("0.04")) == "0.040000"
    assert format_native(Decimal("0.0400005")) == "0.040001"


def test_format_fiat_two_places():
    assert format_fiat(Decimal("100")) == "100.00"
    assert format_fiat(Decimal("99.995")) == "100.00"


def test_storage_ceiling_is_signed_64_bit():
    assert to_minor_units(MAX_AMOUNT) == MAX_MINOR_UNITS
    assert fits_storage(MAX_AMOUNT)
    assert not fits_storage(MAX_AMOUNT + Decimal("0.000000001"))
