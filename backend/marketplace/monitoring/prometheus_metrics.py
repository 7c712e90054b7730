# backend/marketplace/monitoring/prometheus_metrics.py
"""
Prometheus metrics for the booking core.

Service latency comes from @measure_operation; booking decisions, lock
outcomes and notification dispatch are recorded by their owners.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry keeps test runs and app metrics isolated from the default one
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "marketplace_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "marketplace_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "marketplace_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_decisions_total = Counter(
    "marketplace_booking_decisions_total",
    "Booking creation outcomes",
    ["outcome"],  # created | rejected_validation | rejected_unavailable | rejected_conflict
    registry=REGISTRY,
)

booking_lock_total = Counter(
    "marketplace_booking_lock_total",
    "Vendor day lock operations",
    ["action", "outcome"],
    registry=REGISTRY,
)

booking_lock_wait_seconds = Histogram(
    "marketplace_booking_lock_wait_seconds",
    "Time spent waiting for the vendor day lock",
    registry=REGISTRY,
    buckets=(0.001, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

notifications_total = Counter(
    "marketplace_notifications_total",
    "Booking notification dispatch outcomes",
    ["notification_type", "status"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation name (e.g., 'create_booking')
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
    def record_booking_decision(outcome: str) -> None:
        booking_decisions_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_booking_lock(action: str, outcome: str) -> None:
        booking_lock_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def observe_booking_lock_wait(duration: float) -> None:
        booking_lock_wait_seconds.observe(max(duration, 0.0))

    @staticmethod
    def record_notification_outcome(notification_type: str, status: str) -> None:
        notifications_total.labels(notification_type=notification_type, status=status).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Metrics in Prometheus text exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()
