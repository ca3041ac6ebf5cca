"""
Prometheus metrics for the ticketing API, exposed at /metrics.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

event_mutations = Counter(
    "event_mutations_total",
    "Event create/update/delete requests that reached the service layer",
    ["operation", "result"],  # result: success, forbidden, not_found, invalid
)

validation_rejections = Counter(
    "event_validation_rejections_total",
    "Event payloads rejected by the validation chain",
    ["operation"],
)

booking_attempts = Counter(
    "booking_attempts_total",
    "Total booking attempts",
    ["status"],  # success, conflict, error
)

booking_latency = Histogram(
    "booking_latency_seconds",
    "Booking request latency",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

cache_operations = Counter(
    "cache_operations_total",
    "Cache operations",
    ["operation", "result"],  # get/set/invalidate, hit/miss/error
)


def metrics_endpoint() -> Response:
    """Render the default registry in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_event_mutation(operation: str, result: str) -> None:
    event_mutations.labels(operation=operation, result=result).inc()


def record_validation_rejection(operation: str) -> None:
    validation_rejections.labels(operation=operation).inc()


def record_booking_attempt(status: str) -> None:
    """Status: success, conflict, error"""
    booking_attempts.labels(status=status).inc()


def record_cache_operation(operation: str, result: str) -> None:
    cache_operations.labels(operation=operation, result=result).inc()
