"""Unit tests for the cash register ledger"""

import pytest
from microcredit_gateway.domain.exceptions import LedgerStateError, ValidationError
from microcredit_gateway.domain.ledger import CashRegisterLedger
from microcredit_gateway.domain.models import PaymentMethod, SessionStatus, TransactionKind


def test_ledger_happy_path(ledger: CashRegisterLedger):
    """Test open 500.00, cash 123.47 collected as 123.50, balanced close"""
    session = ledger.open(50000, "op1")
    assert session.status == SessionStatus.OPEN

    txn = ledger.record_payment(12347, PaymentMethod.CASH, client_ref="loan-17")
    assert txn.kind == TransactionKind.PAYMENT
    assert txn.rounding_adjustment_cents == 3
    assert txn.settled_cents == 12350
    assert txn.client_ref == "loan-17"

    assert ledger.summary().theoretical_total_cents == 62350

    result = ledger.close(62350)
    assert result.is_balanced is True
    assert result.difference_cents == 0
    assert ledger.session.status == SessionStatus.CLOSED
    assert ledger.session.counted_cash_cents == 62350


def test_ledger_imbalanced_close_is_recorded(ledger: CashRegisterLedger):
    """Test a short drawer still closes and keeps the count on the log"""
    ledger.open(50000, "op1")
    ledger.record_payment(12347, PaymentMethod.CASH)

    result = ledger.close(62000)

    assert result.difference_cents == -350
    assert result.is_balanced is False
    closing = ledger.transactions()[-1]
    assert closing.kind == TransactionKind.CLOSING
    assert closing.settled_cents == 62000
    assert closing is result.transaction
    assert ledger.session.status == SessionStatus.CLOSED


def test_ledger_summary_separates_cash_and_digital(ledger: CashRegisterLedger):
    """Test digital payments settle at face value and stay out of the drawer total"""
    ledger.open(10000, "op1")
    ledger.record_payment(2023, PaymentMethod.CASH)  # -> 20.20
    ledger.record_payment(1576, PaymentMethod.CASH)  # -> 15.80
    digital = ledger.record_payment(4999, PaymentMethod.DIGITAL)

    assert digital.rounding_adjustment_cents == 0
    assert digital.settled_cents == 4999

    summary = ledger.summary()
    assert summary.opening_balance_cents == 10000
    assert summary.cash_entries_cents == 2020 + 1580
    assert summary.digital_entries_cents == 4999
    assert summary.total_rounding_adjustment_cents == -3 + 4
    assert summary.theoretical_total_cents == 10000 + 2020 + 1580
    assert summary.transaction_count == 4


def test_ledger_summary_available_after_close(ledger: CashRegisterLedger):
    """Test the closed session's figures remain readable"""
    ledger.open(50000, "op1")
    ledger.record_payment(12347, PaymentMethod.CASH)
    ledger.close(62350)

    summary = ledger.summary()
    assert summary.status == SessionStatus.CLOSED
    # CLOSING entry does not count as collected cash
    assert summary.theoretical_total_cents == 62350


def test_record_payment_before_open_fails(ledger: CashRegisterLedger):
    with pytest.raises(LedgerStateError):
        ledger.record_payment(1000, PaymentMethod.CASH)


def test_open_while_open_fails(ledger: CashRegisterLedger):
    first = ledger.open(50000, "op1")

    with pytest.raises(LedgerStateError):
        ledger.open(10000, "op2")

    assert ledger.session is first
    assert len(first.transactions) == 1


def test_close_while_closed_fails(ledger: CashRegisterLedger):
    with pytest.raises(LedgerStateError):
        ledger.close(0)

    ledger.open(0, "op1")
    ledger.close(0)
    with pytest.raises(LedgerStateError):
        ledger.close(0)


def test_summary_without_session_fails(ledger: CashRegisterLedger):
    with pytest.raises(LedgerStateError):
        ledger.summary()


def test_reopen_after_close_starts_new_session(ledger: CashRegisterLedger):
    """Test the next business day gets a fresh session and log"""
    first = ledger.open(50000, "op1")
    ledger.record_payment(1000, PaymentMethod.CASH)
    ledger.close(51000)

    second = ledger.open(20000, "op1")

    assert second.id != first.id
    assert first.status == SessionStatus.CLOSED
    assert ledger.summary().theoretical_total_cents == 20000
    assert len(ledger.transactions()) == 1


@pytest.mark.parametrize("amount", [0, -500])
def test_record_payment_rejects_non_positive_amount(ledger: CashRegisterLedger, amount: int):
    ledger.open(50000, "op1")

    with pytest.raises(ValidationError):
        ledger.record_payment(amount, PaymentMethod.CASH)

    assert len(ledger.transactions()) == 1


def test_open_rejects_bad_input(ledger: CashRegisterLedger):
    with pytest.raises(ValidationError):
        ledger.open(-1, "op1")
    with pytest.raises(ValidationError):
        ledger.open(1000, "  ")
    assert ledger.session is None


def test_record_payment_rejects_unknown_method(ledger: CashRegisterLedger):
    ledger.open(0, "op1")
    with pytest.raises(ValidationError):
        ledger.record_payment(1000, "CHEQUE")


def test_record_payment_retry_returns_original(ledger: CashRegisterLedger):
    """Test resubmitting a transaction id does not add or re-round a payment"""
    ledger.open(0, "op1")
    original = ledger.record_payment(1023, PaymentMethod.CASH, transaction_id="pay-1")
    retried = ledger.record_payment(1023, PaymentMethod.CASH, transaction_id="pay-1")

    assert retried is original
    assert original.id == "pay-1"
    assert ledger.summary().cash_entries_cents == 1020
    assert len(ledger.transactions()) == 2


def test_record_payment_rejects_id_of_opening_or_closing_entry(ledger: CashRegisterLedger):
    """Test an id already used by a non-payment entry cannot be passed off as a retry"""
    ledger.open(50000, "op1")
    opening_id = ledger.transactions()[0].id

    with pytest.raises(ValidationError, match="OPENING"):
        ledger.record_payment(1000, PaymentMethod.CASH, transaction_id=opening_id)

    assert len(ledger.transactions()) == 1
    assert ledger.summary().theoretical_total_cents == 50000


def test_record_payment_rejects_id_reused_with_other_details(ledger: CashRegisterLedger):
    """Test a retry must repeat the original amount and method"""
    ledger.open(0, "op1")
    ledger.record_payment(1023, PaymentMethod.CASH, transaction_id="pay-1")

    with pytest.raises(ValidationError):
        ledger.record_payment(5000, PaymentMethod.CASH, transaction_id="pay-1")
    with pytest.raises(ValidationError):
        ledger.record_payment(1023, PaymentMethod.DIGITAL, transaction_id="pay-1")

    assert len(ledger.transactions()) == 2
    assert ledger.summary().cash_entries_cents == 1020


def test_record_payment_rejects_id_from_previous_session(repository, clock):
    """Test an id stored in an earlier session is a conflict, not a retry"""
    ledger = CashRegisterLedger(repository=repository, clock=clock)
    ledger.open(0, "op1")
    ledger.record_payment(1023, PaymentMethod.CASH, transaction_id="pay-1")
    ledger.close(1020)
    ledger.open(0, "op1")

    with pytest.raises(LedgerStateError, match="another"):
        ledger.record_payment(1023, PaymentMethod.CASH, transaction_id="pay-1")

    assert len(ledger.transactions()) == 1


def test_transactions_are_append_only(ledger: CashRegisterLedger):
    """Test earlier entries are untouched by later operations"""
    ledger.open(50000, "op1")
    first = ledger.record_payment(12347, PaymentMethod.CASH)
    snapshot = ledger.transactions()

    ledger.record_payment(500, PaymentMethod.DIGITAL)
    ledger.close(0)

    assert ledger.transactions()[: len(snapshot)] == snapshot
    assert ledger.transactions()[1] is first


def test_ledger_persists_every_mutation(repository, clock):
    ledger = CashRegisterLedger(repository=repository, clock=clock)
    session = ledger.open(50000, "op1")
    ledger.record_payment(12347, PaymentMethod.CASH)
    ledger.close(62350)

    assert repository.saves == 3
    assert repository.load(session.id).status == SessionStatus.CLOSED


def test_ledger_resumes_open_session(repository, clock):
    """Test a new ledger picks up the session left open by a previous one"""
    CashRegisterLedger(repository=repository, clock=clock).open(50000, "op1")

    resumed = CashRegisterLedger(repository=repository, clock=clock)

    assert resumed.is_open
    with pytest.raises(LedgerStateError):
        resumed.open(1000, "op2")


def test_failed_save_rolls_back_payment(repository, clock):
    """Test a storage failure leaves the ledger as it was"""
    ledger = CashRegisterLedger(repository=repository, clock=clock)
    ledger.open(50000, "op1")

    repository.fail_next = True
    with pytest.raises(ConnectionError):
        ledger.record_payment(12347, PaymentMethod.CASH)

    assert len(ledger.transactions()) == 1
    assert ledger.summary().theoretical_total_cents == 50000


def test_failed_save_rolls_back_close(repository, clock):
    ledger = CashRegisterLedger(repository=repository, clock=clock)
    ledger.open(50000, "op1")

    repository.fail_next = True
    with pytest.raises(ConnectionError):
        ledger.close(50000)

    assert ledger.is_open
    assert ledger.session.closed_at is None
    assert ledger.session.counted_cash_cents is None
    assert [t.kind for t in ledger.transactions()] == [TransactionKind.OPENING]


def test_failed_save_rolls_back_open(repository, clock):
    ledger = CashRegisterLedger(repository=repository, clock=clock)

    repository.fail_next = True
    with pytest.raises(ConnectionError):
        ledger.open(50000, "op1")

    assert ledger.session is None
    assert not ledger.is_open
