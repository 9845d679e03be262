"""Cash register endpoints - open, collect, reconcile and close the daily drawer"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from microcredit_gateway.api.dependencies import get_records_client, get_request_id, ledger_scope
from microcredit_gateway.api.v1.schemas import (
    CloseRegisterRequest,
    ClosureResponse,
    OpenRegisterRequest,
    PaymentRequest,
    RoundingRequest,
    RoundingResponse,
    SessionResponse,
    SummaryResponse,
    TransactionLogResponse,
    TransactionSchema,
)
from microcredit_gateway.domain.ledger import CashRegisterLedger, summarize
from microcredit_gateway.domain.models import CashRegisterSession, Transaction
from microcredit_gateway.domain.rounding import round_cash
from microcredit_gateway.infrastructure.clients.records import RecordsClient, closure_payload, deliver_closure_report
from microcredit_gateway.infrastructure.database.session import get_db
from microcredit_gateway.infrastructure.observability.logging import log_closure, log_payment
from microcredit_gateway.infrastructure.observability.metrics import record_closure, record_payment

router = APIRouter()


def _transaction_schema(txn: Transaction) -> TransactionSchema:
    return TransactionSchema(
        id=txn.id,
        timestamp=txn.timestamp,
        kind=txn.kind.value,
        method=txn.method.value,
        nominal_cents=txn.nominal_cents,
        rounding_adjustment_cents=txn.rounding_adjustment_cents,
        settled_cents=txn.settled_cents,
        client_ref=txn.client_ref,
    )


def _session_response(session: CashRegisterSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.id,
        operator_id=session.operator_id,
        status=session.status.value,
        opening_balance_cents=session.opening_balance_cents,
        opened_at=session.opened_at,
        closed_at=session.closed_at,
        counted_cash_cents=session.counted_cash_cents,
    )


def _current_session(ledger: CashRegisterLedger) -> CashRegisterSession:
    """Open session, else the last closed one so the day's figures stay visible"""
    session = ledger.session or ledger.repository.find_latest()
    if session is None:
        raise HTTPException(status_code=404, detail="No cash register session found")
    return session


@router.post("/rounding", response_model=RoundingResponse)
def preview_rounding(request_body: RoundingRequest):
    """Preview what the cashier will collect for a cash payment"""
    result = round_cash(request_body.amount_cents)
    return RoundingResponse(
        amount_cents=request_body.amount_cents,
        adjustment_cents=result.adjustment_cents,
        rounded_cents=result.rounded_cents,
    )


@router.post("/cash-register/open", response_model=SessionResponse)
def open_cash_register(
    request_body: OpenRegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Open the day's drawer; 409 if one is already open"""
    with ledger_scope(db, get_request_id(request)) as ledger:
        session = ledger.open(request_body.opening_balance_cents, request_body.operator_id)

    return _session_response(session)


@router.post("/cash-register/payments", response_model=TransactionSchema)
def record_cash_register_payment(
    request_body: PaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Record a collected payment.

    Cash is rounded to distributable coins, digital settles at face value.
    Resubmitting a transaction_id returns the stored payment untouched.
    """
    request_id = get_request_id(request)
    with ledger_scope(db, request_id) as ledger:
        already_recorded = {t.id for t in ledger.transactions()}
        txn = ledger.record_payment(
            request_body.amount_cents,
            request_body.method,
            client_ref=request_body.client_ref,
            transaction_id=request_body.transaction_id,
        )
        session_id = ledger.session.id

    if txn.id not in already_recorded:
        record_payment(txn)
        log_payment(request_id, session_id, txn)

    return _transaction_schema(txn)


@router.get("/cash-register/summary", response_model=SummaryResponse)
def get_cash_register_summary(request: Request, db: Session = Depends(get_db)):
    """Running totals for the drawer: opening float, cash, digital, rounding"""
    with ledger_scope(db, get_request_id(request)) as ledger:
        summary = summarize(_current_session(ledger))

    return SummaryResponse(
        session_id=summary.session_id,
        status=summary.status.value,
        opening_balance_cents=summary.opening_balance_cents,
        cash_entries_cents=summary.cash_entries_cents,
        digital_entries_cents=summary.digital_entries_cents,
        total_rounding_adjustment_cents=summary.total_rounding_adjustment_cents,
        theoretical_total_cents=summary.theoretical_total_cents,
        transaction_count=summary.transaction_count,
    )


@router.get("/cash-register/transactions", response_model=TransactionLogResponse)
def get_cash_register_transactions(request: Request, db: Session = Depends(get_db)):
    """Transaction log of the current (or last closed) session"""
    with ledger_scope(db, get_request_id(request)) as ledger:
        session = _current_session(ledger)

    return TransactionLogResponse(
        session_id=session.id,
        transactions=[_transaction_schema(t) for t in session.transactions],
    )


@router.post("/cash-register/close", response_model=ClosureResponse)
def close_cash_register(
    request_body: CloseRegisterRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    records_client: RecordsClient = Depends(get_records_client),
):
    """
    Reconcile and close the drawer.

    Flow:
    1. Compare counted cash with opening float + cash collected
    2. Record the CLOSING transaction, balanced or not
    3. Schedule the closure report to the system of record
    """
    request_id = get_request_id(request)
    with ledger_scope(db, request_id) as ledger:
        result = ledger.close(request_body.counted_cash_cents)
        session = ledger.session

    record_closure(result)
    log_closure(request_id, session.id, result)
    background_tasks.add_task(deliver_closure_report, records_client, closure_payload(session, result))

    return ClosureResponse(
        session_id=session.id,
        theoretical_total_cents=result.theoretical_total_cents,
        counted_cash_cents=request_body.counted_cash_cents,
        difference_cents=result.difference_cents,
        is_balanced=result.is_balanced,
        closing_transaction_id=result.transaction.id,
    )
