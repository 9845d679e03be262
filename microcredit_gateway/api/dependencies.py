"""Dependency injection for FastAPI endpoints"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from microcredit_gateway.domain.exceptions import LedgerStateError, ValidationError
from microcredit_gateway.domain.ledger import CashRegisterLedger
from microcredit_gateway.infrastructure.clients.records import RecordsClient
from microcredit_gateway.infrastructure.database.repositories import SqlSessionRepository

# One cashier terminal per process: ledger calls must not interleave
ledger_lock = threading.Lock()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_records_client() -> RecordsClient:
    """Provide system-of-record client instance"""
    return RecordsClient()


@contextmanager
def ledger_scope(db: Session, request_id: str = "unknown") -> Iterator[CashRegisterLedger]:
    """
    Serialized unit of work around the cash register ledger.

    Loads the open session under the lock, commits on success, rolls back and
    maps domain errors to HTTP responses on failure:
    - LedgerStateError -> 409
    - ValidationError  -> 422
    """
    with ledger_lock:
        try:
            yield CashRegisterLedger(repository=SqlSessionRepository(db))
            db.commit()

        except HTTPException:
            db.rollback()
            raise

        except LedgerStateError as e:
            db.rollback()
            logging.warning(f"Ledger state error: {e}", extra={"request_id": request_id})
            raise HTTPException(status_code=409, detail=str(e))

        except ValidationError as e:
            db.rollback()
            raise HTTPException(status_code=422, detail=str(e))

        except Exception as e:
            db.rollback()
            logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
            raise HTTPException(status_code=500, detail="Internal server error")
