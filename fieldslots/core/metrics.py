"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Availability metrics
availability_checks = Counter(
    'availability_checks_total',
    'Availability checks by outcome',
    ['result']  # available, booking, recurring
)

availability_latency = Histogram(
    'availability_check_latency_seconds',
    'Availability check latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Reconciliation metrics
reconciliation_outcomes = Counter(
    'recurring_reconciliation_outcomes_total',
    'Per-subscription outcomes of reconciliation passes',
    ['pass_name', 'outcome']  # created, skipped, failed, cancelled
)

reconciliation_duration = Histogram(
    'recurring_reconciliation_duration_seconds',
    'Duration of a full reconciliation pass',
    ['pass_name'],
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0]
)

materialization_races = Counter(
    'recurring_materialization_races_total',
    'Occurrences another writer materialized first'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_availability_check(result: str):
    """Record an availability decision. Result: available, booking, recurring"""
    availability_checks.labels(result=result).inc()


def record_reconciliation(pass_name: str, summary) -> None:
    """Fold a ReconciliationSummary into the outcome counters."""
    for outcome in ("created", "skipped", "failed", "cancelled"):
        count = getattr(summary, outcome)
        if count:
            reconciliation_outcomes.labels(pass_name=pass_name, outcome=outcome).inc(count)


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
