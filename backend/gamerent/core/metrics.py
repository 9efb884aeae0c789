"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Reservation metrics
reservation_operations = Counter(
    'reservation_operations_total',
    'Reservation lifecycle operations',
    ['operation', 'outcome']  # create/update/cancel, success or error code
)

reservation_latency = Histogram(
    'reservation_latency_seconds',
    'Reservation create/update latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

slot_claim_retries = Counter(
    'reservation_slot_claim_retries_total',
    'Slot claims retried because another transaction claimed the slot first'
)

# Availability metrics
availability_checks = Counter(
    'availability_checks_total',
    'Availability queries',
    ['result']  # available, unavailable
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation_operation(operation: str, outcome: str):
    """Record a lifecycle operation. Outcome: success or a domain error code."""
    reservation_operations.labels(operation=operation, outcome=outcome).inc()


def record_availability_check(available: bool):
    result = "available" if available else "unavailable"
    availability_checks.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
