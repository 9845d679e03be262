"""Domain models - pure Python dataclasses representing business entities"""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from microcredit_gateway.utils.money import to_decimal


class TransactionKind(str, enum.Enum):
    OPENING = "OPENING"
    PAYMENT = "PAYMENT"
    CLOSING = "CLOSING"
    ADJUSTMENT = "ADJUSTMENT"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    DIGITAL = "DIGITAL"


class SessionStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class LoanTerms:
    """Input to amortization: what was lent, at what rate, over how many months"""

    principal_cents: int
    annual_rate_percent: Decimal
    start_date: date
    installment_count: int


@dataclass(frozen=True)
class Installment:
    """Single payment in an amortization schedule"""

    installment_number: int
    due_date: date
    amount_cents: int
    interest_cents: int
    principal_cents: int

    @property
    def amount(self) -> Decimal:
        return to_decimal(self.amount_cents)


@dataclass(frozen=True)
class ScheduleTotals:
    """Aggregates shown next to a printed schedule"""

    total_payment_cents: int
    total_interest_cents: int
    total_principal_cents: int


@dataclass(frozen=True)
class RoundingResult:
    """Adjustment needed to settle an amount with physical coins"""

    adjustment_cents: int
    rounded_cents: int

    @property
    def adjustment(self) -> Decimal:
        return to_decimal(self.adjustment_cents)

    @property
    def rounded_amount(self) -> Decimal:
        return to_decimal(self.rounded_cents)


@dataclass(frozen=True)
class Transaction:
    """Immutable entry in a cash register session log"""

    id: str
    timestamp: datetime
    kind: TransactionKind
    method: PaymentMethod
    nominal_cents: int
    rounding_adjustment_cents: int
    settled_cents: int
    client_ref: Optional[str] = None


@dataclass
class CashRegisterSession:
    """One business day of a cash drawer, from opening to closing"""

    id: str
    operator_id: str
    opening_balance_cents: int
    opened_at: datetime
    status: SessionStatus = SessionStatus.OPEN
    closed_at: Optional[datetime] = None
    counted_cash_cents: Optional[int] = None
    transactions: List[Transaction] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.OPEN


@dataclass(frozen=True)
class LedgerSummary:
    """Aggregates folded from a session's transaction log"""

    session_id: str
    status: SessionStatus
    opening_balance_cents: int
    cash_entries_cents: int
    digital_entries_cents: int
    total_rounding_adjustment_cents: int
    transaction_count: int

    @property
    def theoretical_total_cents(self) -> int:
        # Digital money never reaches the drawer
        return self.opening_balance_cents + self.cash_entries_cents


@dataclass(frozen=True)
class ClosureResult:
    """Outcome of the end-of-day cash count"""

    difference_cents: int
    is_balanced: bool
    theoretical_total_cents: int
    transaction: Transaction
