"""Infrastructure layer - cross-cutting concerns."""

from record_store.infrastructure.config import Config, get_config
from record_store.infrastructure.logging import configure_logging, setup_logging, get_logger
from record_store.infrastructure.metrics import setup_metrics, MetricsRegistry
from record_store.infrastructure.tracing import configure_tracing, setup_tracing, get_tracer

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "configure_logging",
    "get_logger",
    "setup_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "configure_tracing",
    "get_tracer",
]
