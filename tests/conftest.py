"""Pytest fixtures for testing"""

import itertools
import os
from datetime import datetime, timedelta, timezone
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

# Test database; must be set before settings are loaded
TEST_DATABASE_URL = "sqlite:///./test.db"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from microcredit_gateway.api.dependencies import get_records_client
from microcredit_gateway.api.main import create_app
from microcredit_gateway.domain.ledger import CashRegisterLedger
from microcredit_gateway.infrastructure.database.models import Base
from microcredit_gateway.infrastructure.database.session import get_db

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class InMemorySessionRepository:
    """Dict-backed repository; set fail_next to simulate a storage outage"""

    def __init__(self):
        self.sessions = {}
        self.saves = 0
        self.fail_next = False

    def save(self, session) -> None:
        if self.fail_next:
            self.fail_next = False
            raise ConnectionError("storage unavailable")
        self.saves += 1
        self.sessions[session.id] = session

    def load(self, session_id):
        return self.sessions.get(session_id)

    def find_open(self):
        return next((s for s in self.sessions.values() if s.is_open), None)

    def find_transaction(self, transaction_id):
        for session in self.sessions.values():
            for txn in session.transactions:
                if txn.id == transaction_id:
                    return txn
        return None


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def records_client() -> MagicMock:
    """Stand-in for the system of record; no network in tests"""
    client = MagicMock()
    client.send_closure_report = AsyncMock(return_value=None)
    return client


@pytest.fixture
def client(db: Session, records_client: MagicMock) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_records_client] = lambda: records_client
    return TestClient(app)


@pytest.fixture
def clock():
    """Deterministic clock advancing one minute per call"""
    start = datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)
    ticks = itertools.count()
    return lambda: start + timedelta(minutes=next(ticks))


@pytest.fixture
def repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def ledger(clock) -> CashRegisterLedger:
    """Ledger without persistence and with readable sequential ids"""
    ids = itertools.count(1)
    return CashRegisterLedger(clock=clock, id_factory=lambda: f"id-{next(ids)}")
