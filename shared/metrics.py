"""
Shared metrics configuration for the master server.
"""

from typing import Dict, Any, Optional
import time
from contextlib import contextmanager

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry


class MetricsCollector:
    """Centralized metrics collector for the user service client."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # A private registry per collector; several clients may coexist in one process
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up metrics for remote calls, the cache and the liveness gate."""

        self._metrics["user_service_calls_total"] = Counter(
            "user_service_calls_total",
            "Total user service operations by outcome",
            ["operation", "outcome"],
            registry=self.registry
        )

        self._metrics["user_service_request_duration_seconds"] = Histogram(
            "user_service_request_duration_seconds",
            "User service HTTP request duration in seconds",
            ["operation"],
            registry=self.registry
        )

        self._metrics["user_cache_lookups_total"] = Counter(
            "user_cache_lookups_total",
            "Total user cache lookups",
            ["result"],
            registry=self.registry
        )

        self._metrics["user_cache_entries"] = Gauge(
            "user_cache_entries",
            "Number of entries held by the user cache",
            registry=self.registry
        )

        self._metrics["liveness_rechecks_total"] = Counter(
            "liveness_rechecks_total",
            "Total liveness re-checks triggered by transport failures",
            ["status"],
            registry=self.registry
        )

        self._metrics["gate_short_circuits_total"] = Counter(
            "gate_short_circuits_total",
            "Total operations refused because the remote was not alive",
            ["operation"],
            registry=self.registry
        )

    def get_sample_value(self, name: str, **labels) -> Optional[float]:
        """Read the current value of a sample from this collector's registry."""
        return self.registry.get_sample_value(name, labels)

    def record_call(self, operation: str, outcome: str):
        """Record the outcome of a user service operation."""
        self.increment_counter("user_service_calls_total", operation=operation, outcome=outcome)

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(**labels).observe(duration)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            metric = self._metrics[metric_name]
            (metric.labels(**labels) if labels else metric).inc()

    def set_gauge(self, metric_name: str, value: float, **labels):
        """Set a gauge metric value."""
        if metric_name in self._metrics:
            metric = self._metrics[metric_name]
            (metric.labels(**labels) if labels else metric).set(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
