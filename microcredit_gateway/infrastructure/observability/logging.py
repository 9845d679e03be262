"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from microcredit_gateway.domain.models import ClosureResult, Transaction


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "microcredit-gateway"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_payment(request_id: str, session_id: str, txn: Transaction) -> None:
    """Log a recorded payment with its rounding for audit"""
    logging.info(
        "Payment recorded",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "step": "payment_recorded",
            "transaction_id": txn.id,
            "method": txn.method.value,
            "nominal_cents": txn.nominal_cents,
            "rounding_adjustment_cents": txn.rounding_adjustment_cents,
            "settled_cents": txn.settled_cents,
        },
    )


def log_closure(request_id: str, session_id: str, result: ClosureResult) -> None:
    """Log end-of-day reconciliation outcome"""
    logging.info(
        "Cash register reconciled",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "step": "closure_complete",
            "outcome": "balanced" if result.is_balanced else "unbalanced",
            "theoretical_total_cents": result.theoretical_total_cents,
            "difference_cents": result.difference_cents,
        },
    )
