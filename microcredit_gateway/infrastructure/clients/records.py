"""System-of-record client: delivers closure reports with exponential backoff"""

import asyncio
import logging
from typing import Any, Dict

import httpx

from microcredit_gateway.config import settings
from microcredit_gateway.domain.exceptions import RecordsDeliveryError
from microcredit_gateway.domain.models import CashRegisterSession, ClosureResult
from microcredit_gateway.infrastructure.observability.metrics import records_latency_histogram, records_failure_counter

logger = logging.getLogger(__name__)


def closure_payload(session: CashRegisterSession, result: ClosureResult) -> Dict[str, Any]:
    """Report body the system of record stores for each closed drawer"""
    return {
        "event": "CASH_REGISTER_CLOSED",
        "session_id": session.id,
        "operator_id": session.operator_id,
        "opened_at": session.opened_at.isoformat(),
        "closed_at": session.closed_at.isoformat() if session.closed_at else None,
        "opening_balance_cents": session.opening_balance_cents,
        "theoretical_total_cents": result.theoretical_total_cents,
        "counted_cash_cents": session.counted_cash_cents,
        "difference_cents": result.difference_cents,
        "is_balanced": result.is_balanced,
        "closing_transaction_id": result.transaction.id,
    }


class RecordsClient:
    """Client for pushing cash register events to the system of record"""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None):
        self.webhook_url = webhook_url or settings.records_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    async def send_closure_report(self, payload: Dict[str, Any]) -> None:
        """
        Deliver a closure report, retrying on 5xx and network errors.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - 4xx responses are not retried; the payload will not improve

        Raises:
            RecordsDeliveryError: Delivery failed after all retries or was rejected
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                try:
                    with records_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                    return

                except httpx.HTTPStatusError as e:
                    records_failure_counter.inc()
                    if e.response.status_code < 500:
                        raise RecordsDeliveryError(
                            f"System of record rejected closure report: {e.response.status_code}"
                        ) from e
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise RecordsDeliveryError(f"Closure report failed after {attempt} attempts") from e

                except httpx.RequestError as e:
                    records_failure_counter.inc()
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise RecordsDeliveryError(f"Closure report failed after {attempt} attempts") from e

                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)


async def deliver_closure_report(client: RecordsClient, payload: Dict[str, Any]) -> None:
    """Background task wrapper: delivery failures are logged, the closure itself already stands"""
    try:
        await client.send_closure_report(payload)
    except RecordsDeliveryError as e:
        logger.error(f"Closure report not delivered: {e}", extra={"session_id": payload.get("session_id")})
