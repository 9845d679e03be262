"""Cash rounding to the nearest distributable coin value"""

from decimal import Decimal
from microcredit_gateway.domain.models import RoundingResult
from microcredit_gateway.utils.money import to_cents


def round_cash(amount_cents: int) -> RoundingResult:
    """
    Nudge an amount so it can be paid with the coins a drawer holds.

    Rules on the last cent digit:
    - 0 or 5: no adjustment (payable with 0.05 / 0.10 coins)
    - 1-4: round down to the 0.10 below
    - 6-9: round up to the 0.10 above

    Negative amounts (refunds) are rounded symmetrically: the rule is applied
    to the magnitude and the adjustment sign flipped.

    Example:
        1023 -> adjustment -3, rounded 1020
        1027 -> adjustment +3, rounded 1030
        1025 -> adjustment 0,  rounded 1025
    """
    if amount_cents < 0:
        mirrored = round_cash(-amount_cents)
        return RoundingResult(
            adjustment_cents=-mirrored.adjustment_cents,
            rounded_cents=-mirrored.rounded_cents,
        )

    last_digit = amount_cents % 10

    if last_digit in (0, 5):
        adjustment = 0
    elif last_digit < 5:
        adjustment = -last_digit
    else:
        adjustment = 10 - last_digit

    return RoundingResult(adjustment_cents=adjustment, rounded_cents=amount_cents + adjustment)


def round_cash_amount(amount: Decimal) -> RoundingResult:
    """Decimal entry point: converts to cents (half-up) before rounding"""
    return round_cash(to_cents(amount))
