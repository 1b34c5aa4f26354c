"""
Shared metrics configuration for the auth client.
"""

from typing import Any, Dict, Optional
import threading

from prometheus_client import CollectorRegistry, Counter, Info


class MetricsCollector:
    """Centralized metrics collector for token validation."""

    def __init__(self, service_name: str = "auth_client", registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # Each collector gets its own registry so several clients can coexist
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up token validation metrics."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        self._metrics["token_validations_total"] = Counter(
            "token_validations_total",
            "Total token validations by outcome",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["token_cache_lookups_total"] = Counter(
            "token_cache_lookups_total",
            "Total token cache lookups",
            ["result"],
            registry=self.registry
        )

        self._metrics["auth_service_queries_total"] = Counter(
            "auth_service_queries_total",
            "Total auth service endpoint queries",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["token_cache_errors_total"] = Counter(
            "token_cache_errors_total",
            "Total token cache backend errors",
            ["backend", "operation"],
            registry=self.registry
        )

        self._metrics["token_cache_evictions_total"] = Counter(
            "token_cache_evictions_total",
            "Total tokens evicted by the in-memory sweep",
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def increment_counter(self, metric_name: str, amount: float = 1, **labels):
        """Increment a counter metric."""
        metric = self._metrics.get(metric_name)
        if metric is None:
            return
        with self._lock:
            if labels:
                metric.labels(**labels).inc(amount)
            else:
                metric.inc(amount)

    def get_sample_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Read back a sample, mostly useful for tests and health pages."""
        return self.registry.get_sample_value(name, labels or {})


def get_metrics_collector(service_name: str = "auth_client", registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector."""
    return MetricsCollector(service_name, registry)
