"""Cash register ledger - one drawer session from opening to end-of-day count"""

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Protocol, Tuple

from microcredit_gateway.domain.exceptions import LedgerStateError, ValidationError
from microcredit_gateway.domain.models import (
    CashRegisterSession,
    ClosureResult,
    LedgerSummary,
    PaymentMethod,
    SessionStatus,
    Transaction,
    TransactionKind,
)
from microcredit_gateway.domain.rounding import round_cash
from microcredit_gateway.utils.date_utils import utcnow

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Durable storage for cash register sessions, injected by the caller"""

    def save(self, session: CashRegisterSession) -> None: ...

    def load(self, session_id: str) -> Optional[CashRegisterSession]: ...

    def find_open(self) -> Optional[CashRegisterSession]: ...

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]: ...


def summarize(session: CashRegisterSession) -> LedgerSummary:
    """Fold a session's transaction log into its aggregates"""
    opening_balance = 0
    cash_entries = 0
    digital_entries = 0
    rounding_total = 0

    for txn in session.transactions:
        if txn.kind == TransactionKind.OPENING:
            opening_balance = txn.settled_cents
        elif txn.kind == TransactionKind.PAYMENT:
            if txn.method == PaymentMethod.CASH:
                cash_entries += txn.settled_cents
                rounding_total += txn.rounding_adjustment_cents
            else:
                digital_entries += txn.settled_cents

    return LedgerSummary(
        session_id=session.id,
        status=session.status,
        opening_balance_cents=opening_balance,
        cash_entries_cents=cash_entries,
        digital_entries_cents=digital_entries,
        total_rounding_adjustment_cents=rounding_total,
        transaction_count=len(session.transactions),
    )


class CashRegisterLedger:
    """
    State machine over a single cash drawer: CLOSED -> open() -> OPEN -> close() -> CLOSED.

    The ledger assumes one writer. Callers sharing an instance across threads
    must serialize open/record_payment/close themselves.

    When a repository is given, every mutation is saved before it becomes
    visible; a failing save rolls the mutation back and re-raises.
    """

    def __init__(
        self,
        repository: Optional[SessionRepository] = None,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.repository = repository
        self.clock = clock
        self.id_factory = id_factory
        self.session: Optional[CashRegisterSession] = None

        if repository is not None:
            self.session = repository.find_open()

    @property
    def is_open(self) -> bool:
        return self.session is not None and self.session.is_open

    def open(self, initial_balance_cents: int, operator_id: str) -> CashRegisterSession:
        """
        Start a new drawer session with the float counted in by the operator.

        Raises:
            LedgerStateError: A session is already open
            ValidationError: Negative float or missing operator
        """
        if self.is_open:
            raise LedgerStateError(f"Cash register session {self.session.id} is already open")
        if initial_balance_cents < 0:
            raise ValidationError("Opening balance cannot be negative")
        if not operator_id or not operator_id.strip():
            raise ValidationError("Operator id is required to open the cash register")

        now = self.clock()
        session = CashRegisterSession(
            id=self.id_factory(),
            operator_id=operator_id,
            opening_balance_cents=initial_balance_cents,
            opened_at=now,
        )
        session.transactions.append(
            Transaction(
                id=self.id_factory(),
                timestamp=now,
                kind=TransactionKind.OPENING,
                method=PaymentMethod.CASH,
                nominal_cents=initial_balance_cents,
                rounding_adjustment_cents=0,
                settled_cents=initial_balance_cents,
            )
        )

        previous = self.session
        self.session = session
        self._persist(rollback=lambda: setattr(self, "session", previous))

        logger.info(
            "Cash register opened",
            extra={"session_id": session.id, "operator_id": operator_id, "opening_balance_cents": initial_balance_cents},
        )
        return session

    def record_payment(
        self,
        amount_cents: int,
        method: PaymentMethod,
        client_ref: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Transaction:
        """
        Append a collected payment to the open session.

        Cash payments are rounded to distributable coins and the adjustment is
        kept on the transaction; digital payments settle at face value.
        Passing a transaction_id already in the log returns that transaction
        unchanged, so a retried write never re-rounds a payment.

        Raises:
            LedgerStateError: No session is open, or transaction_id belongs to
                another session
            ValidationError: Non-positive amount, or transaction_id names an
                entry that is not this same payment
        """
        session = self._require_open("record a payment")
        if amount_cents <= 0:
            raise ValidationError("Payment amount must be greater than zero")

        try:
            method = PaymentMethod(method)
        except ValueError as e:
            raise ValidationError(f"Unknown payment method: {method}") from e

        if transaction_id is not None:
            existing = self._find_retry(session, transaction_id, amount_cents, method)
            if existing is not None:
                return existing

        if method == PaymentMethod.CASH:
            adjustment = round_cash(amount_cents).adjustment_cents
        else:
            adjustment = 0

        txn = Transaction(
            id=transaction_id or self.id_factory(),
            timestamp=self.clock(),
            kind=TransactionKind.PAYMENT,
            method=method,
            nominal_cents=amount_cents,
            rounding_adjustment_cents=adjustment,
            settled_cents=amount_cents + adjustment,
            client_ref=client_ref,
        )
        session.transactions.append(txn)
        self._persist(rollback=session.transactions.pop)
        return txn

    def summary(self) -> LedgerSummary:
        """Aggregates for the current (or most recently closed) session"""
        if self.session is None:
            raise LedgerStateError("No cash register session has been opened")
        return summarize(self.session)

    def transactions(self) -> Tuple[Transaction, ...]:
        if self.session is None:
            return ()
        return tuple(self.session.transactions)

    def close(self, counted_cash_cents: int) -> ClosureResult:
        """
        Reconcile the drawer against the physically counted cash and close.

        Closing is allowed when the count does not match: the discrepancy is
        recorded on the CLOSING transaction, not rejected.

        Raises:
            LedgerStateError: No session is open
            ValidationError: Negative count
        """
        session = self._require_open("close the cash register")
        if counted_cash_cents < 0:
            raise ValidationError("Counted cash cannot be negative")

        theoretical_total = summarize(session).theoretical_total_cents
        difference = counted_cash_cents - theoretical_total

        now = self.clock()
        closing = Transaction(
            id=self.id_factory(),
            timestamp=now,
            kind=TransactionKind.CLOSING,
            method=PaymentMethod.CASH,
            nominal_cents=counted_cash_cents,
            rounding_adjustment_cents=0,
            settled_cents=counted_cash_cents,
        )

        def rollback() -> None:
            session.transactions.pop()
            session.status = SessionStatus.OPEN
            session.closed_at = None
            session.counted_cash_cents = None

        session.transactions.append(closing)
        session.status = SessionStatus.CLOSED
        session.closed_at = now
        session.counted_cash_cents = counted_cash_cents
        self._persist(rollback=rollback)

        # Whole cents: |difference| < 0.01 means exactly zero
        is_balanced = difference == 0
        log_level = logging.INFO if is_balanced else logging.WARNING
        logger.log(
            log_level,
            "Cash register closed",
            extra={
                "session_id": session.id,
                "theoretical_total_cents": theoretical_total,
                "counted_cash_cents": counted_cash_cents,
                "difference_cents": difference,
            },
        )

        return ClosureResult(
            difference_cents=difference,
            is_balanced=is_balanced,
            theoretical_total_cents=theoretical_total,
            transaction=closing,
        )

    def _find_retry(
        self, session: CashRegisterSession, transaction_id: str, amount_cents: int, method: PaymentMethod
    ) -> Optional[Transaction]:
        """Return the stored payment a retry refers to, rejecting ids reused for anything else"""
        for txn in session.transactions:
            if txn.id != transaction_id:
                continue
            if txn.kind != TransactionKind.PAYMENT:
                raise ValidationError(f"Transaction id {transaction_id} is already used by the {txn.kind.value} entry")
            if txn.nominal_cents != amount_cents or txn.method != method:
                raise ValidationError(
                    f"Transaction id {transaction_id} was recorded as {txn.method.value} {txn.nominal_cents} cents"
                )
            return txn

        if self.repository is not None and self.repository.find_transaction(transaction_id) is not None:
            raise LedgerStateError(f"Transaction id {transaction_id} belongs to another cash register session")
        return None

    def _require_open(self, action: str) -> CashRegisterSession:
        if not self.is_open:
            raise LedgerStateError(f"Cannot {action}: no cash register session is open")
        return self.session

    def _persist(self, rollback: Callable[[], object]) -> None:
        if self.repository is None:
            return
        try:
            self.repository.save(self.session)
        except Exception:
            rollback()
            raise
