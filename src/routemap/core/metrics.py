"""Metrics module for routemap.

Counts match outcomes and URI generations with Prometheus collectors.
"""

from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from routemap.core.collection import RouteCollection
from routemap.core.config import MetricsConfig


class RoutemapMetrics:
    """Routing metrics collector using Prometheus."""

    def __init__(self, config: MetricsConfig, registry: CollectorRegistry = REGISTRY):
        """Initialize the metrics collector.

        Args:
            config: Metrics configuration
            registry: Registry the collectors are registered with
        """
        self.config = config
        self.registry = registry
        prefix = config.namespace

        self.match_total = Counter(
            f"{prefix}_match_total",
            "Total number of route match attempts",
            ["outcome"],
            registry=registry,
        )

        self.match_duration = Histogram(
            f"{prefix}_match_duration_seconds",
            "Route match latency in seconds",
            buckets=(0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05),
            registry=registry,
        )

        self.uri_generation_total = Counter(
            f"{prefix}_uri_generation_total",
            "Total number of URI generation attempts",
            ["result"],
            registry=registry,
        )

        self.registered_routes = Gauge(
            f"{prefix}_registered_routes",
            "Number of routes in the collection",
            registry=registry,
        )

    def record_match(self, outcome: str, duration_seconds: float) -> None:
        """Record a match attempt.

        Args:
            outcome: found, not_found or method_not_allowed
            duration_seconds: Match duration in seconds
        """
        if not self.config.enabled:
            return
        self.match_total.labels(outcome=outcome).inc()
        self.match_duration.observe(duration_seconds)

    def record_generation(self, success: bool) -> None:
        if not self.config.enabled:
            return
        self.uri_generation_total.labels(result="success" if success else "failure").inc()

    def update_registered_routes(self, collection: RouteCollection) -> None:
        if not self.config.enabled:
            return
        self.registered_routes.set(collection.count())

    def export_metrics(self) -> bytes:
        """Export metrics in Prometheus format."""
        return generate_latest(self.registry)


# Global metrics instance (will be initialized by the application)
_routemap_metrics: Optional[RoutemapMetrics] = None


def initialize_metrics(config: MetricsConfig) -> RoutemapMetrics:
    """Initialize the global routemap metrics.

    Args:
        config: Metrics configuration

    Returns:
        Initialized RoutemapMetrics instance
    """
    global _routemap_metrics
    _routemap_metrics = RoutemapMetrics(config)
    return _routemap_metrics


def get_metrics() -> RoutemapMetrics:
    """Get the global routemap metrics.

    Raises:
        RuntimeError: If metrics have not been initialized
    """
    if _routemap_metrics is None:
        raise RuntimeError("Metrics not initialized. Call initialize_metrics() first.")
    return _routemap_metrics
