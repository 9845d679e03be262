"""POST /v1/loans/schedule and /v1/loans/quote - amortization for loan registration"""

import logging
from datetime import date
from typing import List

from fastapi import APIRouter, HTTPException, Request

from microcredit_gateway.api.dependencies import get_request_id
from microcredit_gateway.api.v1.schemas import (
    InstallmentSchema,
    LoanTermsRequest,
    QuoteRequest,
    QuoteResponse,
    ScheduleResponse,
)
from microcredit_gateway.config import settings
from microcredit_gateway.domain.amortization import compute_schedule, summarize_schedule
from microcredit_gateway.domain.clients import required_declarations, validate_client
from microcredit_gateway.domain.exceptions import ValidationError
from microcredit_gateway.domain.models import Installment, LoanTerms
from microcredit_gateway.infrastructure.observability.metrics import schedule_counter

router = APIRouter()


def _schedule_fields(terms: LoanTerms) -> dict:
    try:
        schedule: List[Installment] = compute_schedule(terms)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    schedule_counter.inc()
    totals = summarize_schedule(schedule)
    return {
        "installments": [
            InstallmentSchema(
                installment_number=inst.installment_number,
                due_date=inst.due_date,
                amount_cents=inst.amount_cents,
                interest_cents=inst.interest_cents,
                principal_cents=inst.principal_cents,
            )
            for inst in schedule
        ],
        "total_payment_cents": totals.total_payment_cents,
        "total_interest_cents": totals.total_interest_cents,
        "total_principal_cents": totals.total_principal_cents,
    }


@router.post("/loans/schedule", response_model=ScheduleResponse)
def create_schedule(request_body: LoanTermsRequest):
    """
    Compute the repayment schedule for loan terms.

    Returns:
        Monthly installments whose principal portions add up to the loan
    """
    return ScheduleResponse(**_schedule_fields(request_body.to_domain()))


@router.post("/loans/quote", response_model=QuoteResponse)
def create_quote(request_body: QuoteRequest, request: Request):
    """
    Validate the applicant and quote the loan.

    Flow:
    1. Check the client profile against onboarding rules
    2. Compute the schedule
    3. List the sworn declarations (PEP, UIT) to print with the contract
    """
    profile = request_body.client_profile()
    try:
        validate_client(profile, today=date.today(), legal_age_years=settings.legal_age_years)
    except ValidationError as e:
        logging.info(f"Client rejected: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    declarations = required_declarations(profile, request_body.terms.principal_cents, settings.uit_value_cents)

    return QuoteResponse(
        **_schedule_fields(request_body.terms.to_domain()),
        client_kind=profile.kind.value,
        required_declarations=[d.value for d in declarations],
    )

