"""
Prometheus metrics for the lesson booking API.

Service timings come from ``BaseService.measure_operation``; order outcomes
are counted by the order service. Everything lives on a dedicated registry
exposed at ``/metrics``.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

http_request_duration_seconds = Histogram(
    "lessonbook_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "status_code"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

service_operation_duration_seconds = Histogram(
    "lessonbook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "lessonbook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "lessonbook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

orders_placed_total = Counter(
    "lessonbook_orders_placed_total",
    "Orders committed successfully",
    registry=REGISTRY,
)

order_failures_total = Counter(
    "lessonbook_order_failures_total",
    "Order placements that were rolled back",
    ["reason"],  # not_found | insufficient_capacity | store_error
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so callers do not import individual metric objects."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str,
        error_type: Optional[str] = None,
    ) -> None:
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_http_request(method: str, status_code: int, duration: float) -> None:
        http_request_duration_seconds.labels(method=method, status_code=str(status_code)).observe(
            duration
        )

    @staticmethod
    def record_order_placed() -> None:
        orders_placed_total.inc()

    @staticmethod
    def record_order_failure(reason: str) -> None:
        order_failures_total.labels(reason=reason).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
