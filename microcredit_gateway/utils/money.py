"""Conversions between Decimal amounts and integer cents"""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    """Convert a decimal amount to integer cents, rounding half-up"""
    return int(Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP) * 100)


def to_decimal(cents: int) -> Decimal:
    """Convert integer cents back to a 2-place Decimal"""
    return (Decimal(cents) / 100).quantize(CENT)


def round_half_up(value: Decimal) -> int:
    """Round a fractional cent value to the nearest whole cent"""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
