"""Prometheus metrics for the record store."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all record store metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Table operations
        self.operations_total = Counter(
            "record_store_operations_total",
            "Total number of table engine operations",
            ["operation"],  # insert, find, update, delete, drop_table, close
            registry=self._registry,
        )

        self.tables = Gauge(
            "record_store_tables",
            "Number of tables held in memory",
            registry=self._registry,
        )

        # Persistence
        self.persist_total = Counter(
            "record_store_persist_total",
            "Total full-dataset persist attempts",
            ["status"],  # success, error
            registry=self._registry,
        )

        self.persist_latency_seconds = Histogram(
            "record_store_persist_latency_seconds",
            "Time spent encoding and writing the dataset",
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
            registry=self._registry,
        )

        self.dataset_bytes = Gauge(
            "record_store_dataset_bytes",
            "Size of the last persisted dataset document",
            registry=self._registry,
        )

        self.load_recoveries_total = Counter(
            "record_store_load_recoveries_total",
            "Loads that fell back to an empty dataset after an error",
            registry=self._registry,
        )

        self.info = Info(
            "record_store",
            "Record store information",
            registry=self._registry,
        )


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(port: int = 8011, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Set up Prometheus metrics server.

    Args:
        port: Port for the metrics HTTP server
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    _metrics = MetricsRegistry(registry)

    from record_store import FORMAT_VERSION, __version__
    _metrics.info.info({
        "version": __version__,
        "format_version": FORMAT_VERSION,
    })

    start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
