"""SQLAlchemy ORM models for cash register sessions and their transaction log"""

from sqlalchemy import Column, String, BigInteger, DateTime, Integer, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class CashRegisterSessionRecord(Base):
    """One drawer session (business day)"""

    __tablename__ = "cash_register_session"

    id = Column(String(36), primary_key=True)
    operator_id = Column(Text, nullable=False, index=True)
    opening_balance_cents = Column(BigInteger, nullable=False)
    opened_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(16), nullable=False, index=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    counted_cash_cents = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    transactions = relationship(
        "CashRegisterTransactionRecord",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="CashRegisterTransactionRecord.sequence",
    )


class CashRegisterTransactionRecord(Base):
    """Append-only entry in a session log"""

    __tablename__ = "cash_register_transaction"

    id = Column(String(36), primary_key=True)
    session_id = Column(String(36), ForeignKey("cash_register_session.id", ondelete="CASCADE"), nullable=False)
    sequence = Column(Integer, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    kind = Column(String(16), nullable=False)
    method = Column(String(16), nullable=False)
    nominal_cents = Column(BigInteger, nullable=False)
    rounding_adjustment_cents = Column(BigInteger, nullable=False, default=0)
    settled_cents = Column(BigInteger, nullable=False)
    client_ref = Column(Text, nullable=True)

    session = relationship("CashRegisterSessionRecord", back_populates="transactions")
