"""
Prometheus metrics for the Picadero backend.

Service timings come from the ``@measure_operation`` decorator; domain
counters track booking outcomes, credit movements and billing runs.
"""

from typing import Optional, cast

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "picadero_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "picadero_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "picadero_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

# Domain-specific counters
lesson_requests_total = Counter(
    "picadero_lesson_requests_total",
    "Lesson requests by operation and outcome",
    ["operation", "outcome"],  # outcome: success or a rejection reason
    registry=REGISTRY,
)

credit_movements_total = Counter(
    "picadero_credit_movements_total",
    "Class credit counter changes",
    ["scope", "direction"],  # scope: global | monthly; direction: consume | refund
    registry=REGISTRY,
)

invoices_issued_total = Counter(
    "picadero_invoices_issued_total",
    "Invoices created",
    ["source"],  # monthly_batch | signup
    registry=REGISTRY,
)

batch_item_failures_total = Counter(
    "picadero_batch_item_failures_total",
    "Items skipped because of an error during a batch job",
    ["job"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Records academy metrics and renders them for a scrape endpoint."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record one call of a ``@measure_operation`` method.

        Args:
            service: Service class name (e.g., 'ReservationService')
            operation: Operation name (e.g., 'book_lesson')
            duration: Operation duration in seconds
            status: 'success' or 'error'
            error_type: Exception class name when status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Metrics in Prometheus exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    # Domain helpers
    @staticmethod
    def record_lesson_request(operation: str, outcome: str) -> None:
        lesson_requests_total.labels(operation=operation, outcome=outcome).inc()

    @staticmethod
    def record_credit_movement(scope: str, direction: str) -> None:
        credit_movements_total.labels(scope=scope, direction=direction).inc()

    @staticmethod
    def inc_invoices_issued(source: str, count: int = 1) -> None:
        if count > 0:
            invoices_issued_total.labels(source=source).inc(count)

    @staticmethod
    def inc_batch_failure(job: str) -> None:
        batch_item_failures_total.labels(job=job).inc()


# Singleton instance
prometheus_metrics = PrometheusMetrics()
