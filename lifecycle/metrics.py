"""Prometheus metrics for the reconciler."""

from typing import Optional

import structlog
from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    push_to_gateway,
)

logger = structlog.get_logger()


class ReconcileMetrics:
    """Prometheus metrics for reconciliation cycles.

    Pass a dedicated CollectorRegistry in tests; the default registry only
    accepts one instance per process.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY

        self.cycles_total = Counter(
            "lifecycle_reconcile_cycles_total",
            "Total reconciliation cycles",
            labelnames=["status"],
            registry=self.registry,
        )
        self.cycle_duration_seconds = Histogram(
            "lifecycle_reconcile_cycle_duration_seconds",
            "Reconciliation cycle duration",
            registry=self.registry,
        )
        self.cycle_errors_total = Counter(
            "lifecycle_reconcile_cycle_errors_total",
            "Reconciliation cycles aborted by an error",
            labelnames=["error_type"],
            registry=self.registry,
        )
        self.operations_total = Counter(
            "lifecycle_reconcile_operations_total",
            "Pending operations processed, by outcome",
            labelnames=["status", "event_type"],
            registry=self.registry,
        )
        self.operation_failures_total = Counter(
            "lifecycle_reconcile_operation_failures_total",
            "Operations that failed to reconcile, by step",
            labelnames=["stage"],
            registry=self.registry,
        )
        self.malformed_keys_total = Counter(
            "lifecycle_reconcile_malformed_keys_total",
            "Tracking records ignored because of a malformed key",
            registry=self.registry,
        )
        self.pending_operations = Gauge(
            "lifecycle_reconcile_pending_operations",
            "Pending operations seen at the start of the last cycle",
            registry=self.registry,
        )

    def record_cycle_success(self, duration: float):
        """Record a completed cycle."""
        self.cycles_total.labels(status="success").inc()
        self.cycle_duration_seconds.observe(duration)

    def record_cycle_failure(self, error_type: str):
        """Record an aborted cycle."""
        self.cycles_total.labels(status="error").inc()
        self.cycle_errors_total.labels(error_type=error_type).inc()

    def record_pending(self, pending: int, malformed: int):
        self.pending_operations.set(pending)
        if malformed:
            self.malformed_keys_total.inc(malformed)

    def record_operation(self, status: str, event_type: Optional[str] = None, stage: Optional[str] = None):
        """Record the outcome of one operation."""
        self.operations_total.labels(status=status, event_type=event_type or "none").inc()
        if stage:
            self.operation_failures_total.labels(stage=stage).inc()

    def push(self, gateway_url: Optional[str], job: str = "lifecycle-reconcile"):
        """Push metrics to a Prometheus push gateway if one is configured."""
        if not gateway_url:
            return
        try:
            push_to_gateway(gateway_url, job=job, registry=self.registry)
            logger.debug("Metrics pushed to gateway", gateway_url=gateway_url)
        except Exception as e:
            logger.warning("Failed to push metrics", gateway_url=gateway_url, error=str(e))


_metrics: Optional[ReconcileMetrics] = None


def get_metrics() -> ReconcileMetrics:
    """Get the process-wide metrics instance, creating it on first use."""
    global _metrics
    if _metrics is None:
        _metrics = ReconcileMetrics()
    return _metrics
