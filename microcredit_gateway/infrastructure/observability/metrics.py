"""Prometheus metrics for monitoring collections, rounding and cash reconciliation"""

from prometheus_client import Counter, Histogram

from microcredit_gateway.domain.models import ClosureResult, Transaction

# Loan metrics
schedule_counter = Counter(
    "microcredit_schedules_total",
    "Amortization schedules generated",
)

# Cash register metrics
payment_counter = Counter(
    "microcredit_payments_total",
    "Payments recorded in the cash register",
    ["method"],  # CASH | DIGITAL
)

rounding_adjustment_counter = Counter(
    "microcredit_rounding_adjustment_cents_total",
    "Absolute cents moved by cash rounding",
    ["direction"],  # up | down
)

closure_counter = Counter(
    "microcredit_closures_total",
    "Cash register closures",
    ["outcome"],  # balanced | unbalanced
)

# Records webhook metrics
records_latency_histogram = Histogram(
    "records_webhook_latency_seconds",
    "Closure report delivery response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

records_failure_counter = Counter(
    "records_webhook_failures_total",
    "Failed closure report deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment(txn: Transaction) -> None:
    """Count the payment and how far rounding moved it"""
    payment_counter.labels(method=txn.method.value).inc()

    if txn.rounding_adjustment_cents > 0:
        rounding_adjustment_counter.labels(direction="up").inc(txn.rounding_adjustment_cents)
    elif txn.rounding_adjustment_cents < 0:
        rounding_adjustment_counter.labels(direction="down").inc(-txn.rounding_adjustment_cents)


def record_closure(result: ClosureResult) -> None:
    outcome = "balanced" if result.is_balanced else "unbalanced"
    closure_counter.labels(outcome=outcome).inc()
