"""Prometheus metrics for ledger activity, expense sizes and webhook performance"""

from typing import Optional

from prometheus_client import Counter, Histogram

# Ledger metrics
ledger_operation_counter = Counter(
    "ledger_operations_total",
    "Ledger operations applied to budgets",
    ["operation", "outcome"],  # outcome: ok | rejected
)

ledger_rejection_counter = Counter(
    "ledger_rejections_total",
    "Ledger operations refused, by reason",
    ["reason"],
)

version_conflict_counter = Counter(
    "ledger_version_conflicts_total",
    "Writes refused because the budget changed since it was read",
)

expense_amount_histogram = Histogram(
    "expense_amount_cents",
    "Amounts of submitted expenses",
    buckets=[1_000, 10_000, 50_000, 100_000, 500_000, 1_000_000, 5_000_000],
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Expense webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_operation(operation: str, ok: bool, reason: Optional[str] = None) -> None:
    """Record the outcome of one ledger operation"""
    ledger_operation_counter.labels(operation=operation, outcome="ok" if ok else "rejected").inc()
    if not ok and reason:
        ledger_rejection_counter.labels(reason=reason).inc()
