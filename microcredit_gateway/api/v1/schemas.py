"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from microcredit_gateway.domain.clients import ClientProfile, JuridicalPerson, NaturalPerson
from microcredit_gateway.domain.models import LoanTerms, PaymentMethod


class LoanTermsRequest(BaseModel):
    """Loan terms for schedule generation"""

    principal_cents: int = Field(..., gt=0, description="Amount lent in cents")
    annual_rate_percent: Decimal = Field(..., ge=0, description="Nominal annual interest rate, e.g. 24")
    start_date: date = Field(..., description="Loan date; first installment falls one month later")
    installment_count: int = Field(..., gt=0, le=360, description="Number of monthly installments")

    def to_domain(self) -> LoanTerms:
        return LoanTerms(
            principal_cents=self.principal_cents,
            annual_rate_percent=self.annual_rate_percent,
            start_date=self.start_date,
            installment_count=self.installment_count,
        )


class InstallmentSchema(BaseModel):
    """Single installment in an amortization schedule"""

    installment_number: int
    due_date: date
    amount_cents: int
    interest_cents: int
    principal_cents: int


class ScheduleResponse(BaseModel):
    """Response for POST /v1/loans/schedule"""

    installments: List[InstallmentSchema]
    total_payment_cents: int
    total_interest_cents: int
    total_principal_cents: int


class NaturalPersonSchema(BaseModel):
    kind: Literal["NATURAL"]
    dni: str
    first_name: str
    last_name: str
    birth_date: date
    email: str
    phone: str
    address: str
    is_pep: bool = False

    def to_domain(self) -> NaturalPerson:
        return NaturalPerson(**self.model_dump(exclude={"kind"}))


class JuridicalPersonSchema(BaseModel):
    kind: Literal["JURIDICAL"]
    ruc: str
    business_name: str
    fiscal_address: str
    incorporation_date: date
    representative_dni: str
    representative_name: str
    email: str
    phone: str
    is_pep: bool = False

    def to_domain(self) -> JuridicalPerson:
        return JuridicalPerson(**self.model_dump(exclude={"kind"}))


ClientProfileSchema = Annotated[Union[NaturalPersonSchema, JuridicalPersonSchema], Field(discriminator="kind")]


class QuoteRequest(BaseModel):
    """Request body for POST /v1/loans/quote"""

    client: ClientProfileSchema
    terms: LoanTermsRequest

    def client_profile(self) -> ClientProfile:
        return self.client.to_domain()


class QuoteResponse(ScheduleResponse):
    """Schedule plus the sworn declarations the loan requires"""

    client_kind: str
    required_declarations: List[str]


class RoundingRequest(BaseModel):
    amount_cents: int = Field(..., description="Amount owed in cents; negative for refunds")


class RoundingResponse(BaseModel):
    amount_cents: int
    adjustment_cents: int
    rounded_cents: int


class OpenRegisterRequest(BaseModel):
    """Request body for POST /v1/cash-register/open"""

    operator_id: str = Field(..., min_length=1, description="Cashier opening the drawer")
    opening_balance_cents: int = Field(..., ge=0, description="Float counted into the drawer")


class PaymentRequest(BaseModel):
    """Request body for POST /v1/cash-register/payments"""

    amount_cents: int = Field(..., gt=0, description="Amount owed before rounding")
    method: PaymentMethod
    client_ref: Optional[str] = Field(None, description="Loan or client reference")
    transaction_id: Optional[str] = Field(None, max_length=36, description="Caller id; resubmitting it returns the original payment")


class CloseRegisterRequest(BaseModel):
    """Request body for POST /v1/cash-register/close"""

    counted_cash_cents: int = Field(..., ge=0, description="Physically counted cash")


class TransactionSchema(BaseModel):
    id: str
    timestamp: datetime
    kind: str
    method: str
    nominal_cents: int
    rounding_adjustment_cents: int
    settled_cents: int
    client_ref: Optional[str] = None


class SessionResponse(BaseModel):
    session_id: str
    operator_id: str
    status: str
    opening_balance_cents: int
    opened_at: datetime
    closed_at: Optional[datetime] = None
    counted_cash_cents: Optional[int] = None


class SummaryResponse(BaseModel):
    """Response for GET /v1/cash-register/summary"""

    session_id: str
    status: str
    opening_balance_cents: int
    cash_entries_cents: int
    digital_entries_cents: int
    total_rounding_adjustment_cents: int
    theoretical_total_cents: int
    transaction_count: int


class TransactionLogResponse(BaseModel):
    session_id: str
    transactions: List[TransactionSchema]


class ClosureResponse(BaseModel):
    """Response for POST /v1/cash-register/close"""

    session_id: str
    theoretical_total_cents: int
    counted_cash_cents: int
    difference_cents: int
    is_balanced: bool
    closing_transaction_id: str
