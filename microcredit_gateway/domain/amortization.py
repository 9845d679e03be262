"""Fixed-installment (French) amortization schedules for personal loans"""

import logging
from decimal import Decimal
from typing import List

from microcredit_gateway.domain.exceptions import ValidationError
from microcredit_gateway.domain.models import Installment, LoanTerms, ScheduleTotals
from microcredit_gateway.utils.date_utils import add_months
from microcredit_gateway.utils.money import round_half_up

logger = logging.getLogger(__name__)


def validate_terms(terms: LoanTerms) -> None:
    """Raise ValidationError unless the terms can produce a schedule"""
    if terms.principal_cents <= 0:
        raise ValidationError("Loan principal must be greater than zero")
    if Decimal(terms.annual_rate_percent) < 0:
        raise ValidationError("Annual interest rate cannot be negative")
    if terms.installment_count <= 0:
        raise ValidationError("Installment count must be greater than zero")


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return Decimal(annual_rate_percent) / 12 / 100


def base_payment_cents(principal_cents: int, rate: Decimal, installment_count: int) -> int:
    """
    Equal monthly payment, rounded to the cent.

    Annuity formula: P * r * (1+r)^n / ((1+r)^n - 1). At r = 0 the formula
    divides by zero, so an interest-free loan is split evenly instead.
    """
    if rate == 0:
        return round_half_up(Decimal(principal_cents) / installment_count)

    growth = (1 + rate) ** installment_count
    return round_half_up(Decimal(principal_cents) * rate * growth / (growth - 1))


def compute_schedule(terms: LoanTerms) -> List[Installment]:
    """
    Generate the full repayment schedule for a loan.

    Requirements:
    - installment_count installments, one per calendar month after start_date
    - Every installment but the last pays the rounded annuity amount
    - Interest and balance are carried unrounded; only emitted cents are rounded
    - Last installment pays whatever closes the balance (absorbs rounding drift)
    - Principal portions are rounded cumulatively so they add up to the loan

    Returns:
        List of Installment objects, remaining balance is exactly 0 afterwards

    Example:
        1000.00 at 24% over 3 months -> rate 0.02, payment 346.75
        [346.75, 346.75, 346.76]
    """
    validate_terms(terms)

    rate = monthly_rate(terms.annual_rate_percent)
    payment = base_payment_cents(terms.principal_cents, rate, terms.installment_count)

    schedule = []
    remaining = Decimal(terms.principal_cents)
    repaid = Decimal(0)
    repaid_cents = 0
    for number in range(1, terms.installment_count + 1):
        interest = remaining * rate

        if number == terms.installment_count:
            principal = remaining
            amount = remaining + interest
        else:
            amount = Decimal(payment)
            principal = amount - interest

        remaining -= principal
        repaid += principal

        # Emitted portions: cumulative rounding keeps their sum equal to the loan
        amount_cents = round_half_up(amount)
        if number == terms.installment_count:
            principal_cents = terms.principal_cents - repaid_cents
        else:
            principal_cents = round_half_up(repaid) - repaid_cents
        repaid_cents += principal_cents

        schedule.append(
            Installment(
                installment_number=number,
                due_date=add_months(terms.start_date, number),
                amount_cents=amount_cents,
                interest_cents=amount_cents - principal_cents,
                principal_cents=principal_cents,
            )
        )

    logger.debug(
        "Schedule computed",
        extra={
            "principal_cents": terms.principal_cents,
            "installment_count": terms.installment_count,
            "base_payment_cents": payment,
        },
    )
    return schedule


def summarize_schedule(schedule: List[Installment]) -> ScheduleTotals:
    return ScheduleTotals(
        total_payment_cents=sum(inst.amount_cents for inst in schedule),
        total_interest_cents=sum(inst.interest_cents for inst in schedule),
        total_principal_cents=sum(inst.principal_cents for inst in schedule),
    )
