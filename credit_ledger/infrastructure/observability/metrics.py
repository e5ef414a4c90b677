"""Prometheus metrics for monitoring payments, credit extension, and reminder sweeps"""

from prometheus_client import Counter, Histogram

# Ledger metrics
payments_applied_counter = Counter(
    "ledger_payments_applied_total",
    "Payments reconciled against credit sales",
    ["method"],
)

payment_amount_histogram = Histogram(
    "ledger_payment_amount_cents",
    "Size of reconciled payments",
    buckets=[1_000, 5_000, 10_000, 50_000, 100_000, 500_000, 1_000_000],
)

reconciliation_failure_counter = Counter(
    "ledger_reconciliation_failures_total",
    "Rejected or failed ledger operations",
    ["code"],
)

credit_extended_counter = Counter(
    "ledger_credit_extended_total",
    "Credit sales booked",
)

credit_extended_cents_counter = Counter(
    "ledger_credit_extended_cents_total",
    "Principal booked on credit",
)

lock_timeout_counter = Counter(
    "ledger_lock_timeouts_total",
    "Account lock acquisitions that timed out",
)

# Notification metrics
notification_intent_counter = Counter(
    "ledger_notification_intents_total",
    "Notification intents emitted",
    ["kind"],  # upcoming | overdue | credit_warning | payment_received
)

notification_failure_counter = Counter(
    "ledger_notification_failures_total",
    "Notification deliveries that failed after retries",
)

webhook_latency_histogram = Histogram(
    "notification_webhook_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

sweep_duration_histogram = Histogram(
    "ledger_sweep_duration_seconds",
    "Reminder sweep wall time",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment(method: str, amount_cents: int) -> None:
    payments_applied_counter.labels(method=method).inc()
    payment_amount_histogram.observe(amount_cents)


def record_failure(code: str) -> None:
    reconciliation_failure_counter.labels(code=code).inc()


def record_credit_extended(principal_cents: int) -> None:
    credit_extended_counter.inc()
    credit_extended_cents_counter.inc(principal_cents)
