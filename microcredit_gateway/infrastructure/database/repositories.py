"""Data access layer for cash register sessions"""

from typing import Optional
from sqlalchemy.orm import Session
from microcredit_gateway.infrastructure.database.models import (
    CashRegisterSessionRecord,
    CashRegisterTransactionRecord,
)
from microcredit_gateway.domain.models import (
    CashRegisterSession,
    PaymentMethod,
    SessionStatus,
    Transaction,
    TransactionKind,
)


def _transaction_to_domain(record: CashRegisterTransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        timestamp=record.timestamp,
        kind=TransactionKind(record.kind),
        method=PaymentMethod(record.method),
        nominal_cents=record.nominal_cents,
        rounding_adjustment_cents=record.rounding_adjustment_cents,
        settled_cents=record.settled_cents,
        client_ref=record.client_ref,
    )


def _to_domain(record: CashRegisterSessionRecord) -> CashRegisterSession:
    return CashRegisterSession(
        id=record.id,
        operator_id=record.operator_id,
        opening_balance_cents=record.opening_balance_cents,
        opened_at=record.opened_at,
        status=SessionStatus(record.status),
        closed_at=record.closed_at,
        counted_cash_cents=record.counted_cash_cents,
        transactions=[_transaction_to_domain(t) for t in record.transactions],
    )


class SqlSessionRepository:
    """Repository for cash register sessions backed by SQLAlchemy"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, session: CashRegisterSession) -> None:
        """
        Upsert the session header and append transactions not yet stored.

        Stored transactions are never rewritten; the log is append-only.
        """
        record = self.db.get(CashRegisterSessionRecord, session.id)
        if record is None:
            record = CashRegisterSessionRecord(id=session.id)
            self.db.add(record)

        record.operator_id = session.operator_id
        record.opening_balance_cents = session.opening_balance_cents
        record.opened_at = session.opened_at
        record.status = session.status.value
        record.closed_at = session.closed_at
        record.counted_cash_cents = session.counted_cash_cents

        stored = {t.id for t in record.transactions}
        for sequence, txn in enumerate(session.transactions):
            if txn.id in stored:
                continue
            record.transactions.append(
                CashRegisterTransactionRecord(
                    id=txn.id,
                    sequence=sequence,
                    timestamp=txn.timestamp,
                    kind=txn.kind.value,
                    method=txn.method.value,
                    nominal_cents=txn.nominal_cents,
                    rounding_adjustment_cents=txn.rounding_adjustment_cents,
                    settled_cents=txn.settled_cents,
                    client_ref=txn.client_ref,
                )
            )

        self.db.flush()  # Surface constraint errors to the ledger before it commits state

    def load(self, session_id: str) -> Optional[CashRegisterSession]:
        """Fetch a session with its transaction log"""
        record = self.db.get(CashRegisterSessionRecord, session_id)
        return _to_domain(record) if record else None

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Look up a transaction id across every stored session"""
        record = self.db.get(CashRegisterTransactionRecord, transaction_id)
        return _transaction_to_domain(record) if record else None

    def find_open(self) -> Optional[CashRegisterSession]:
        """Fetch the session currently open, if any"""
        record = (
            self.db.query(CashRegisterSessionRecord)
            .filter(CashRegisterSessionRecord.status == SessionStatus.OPEN.value)
            .order_by(CashRegisterSessionRecord.opened_at.desc())
            .first()
        )
        return _to_domain(record) if record else None

    def find_latest(self) -> Optional[CashRegisterSession]:
        """Fetch the most recently opened session, open or closed"""
        record = (
            self.db.query(CashRegisterSessionRecord)
            .order_by(CashRegisterSessionRecord.opened_at.desc())
            .first()
        )
        return _to_domain(record) if record else None
