"""Dependency container for the record store.

Builds one TableEngine per configuration together with its backend,
codec, logger, tracer and metrics, so that callers pass a single handle
around instead of reaching for module-level state.

Usage:
    container = Container.create(config)
    container.start()
    users = ModelRepository(container.engine, "users", User)
    ...
    container.shutdown()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from opentelemetry import trace

from record_store.adapters.outbound import (
    FileStorageBackend,
    InMemoryStorageBackend,
    JsonDatasetCodec,
)
from record_store.application import CrudOperations, TableEngine
from record_store.infrastructure.config import Config, get_config
from record_store.infrastructure import logging as store_logging
from record_store.infrastructure.metrics import MetricsRegistry, get_metrics
from record_store.infrastructure.tracing import configure_tracing, shutdown_tracing
from record_store.ports.outbound import StorageBackend


def create_storage_backend(config: Config) -> StorageBackend:
    """Build the storage backend selected by ``storage.backend``."""
    storage = config.storage
    if storage.backend == "memory":
        return InMemoryStorageBackend()
    return FileStorageBackend(
        storage.data_dir,
        suffix=storage.file_suffix,
        fsync=storage.fsync,
    )


@dataclass
class Container:
    """Handle holding the engine and its collaborators."""

    config: Config
    logger: Any  # structlog BoundLogger
    tracer: trace.Tracer
    metrics: MetricsRegistry
    storage: StorageBackend
    engine: TableEngine

    @classmethod
    def create(
        cls,
        config: Config | None = None,
        metrics: MetricsRegistry | None = None,
        configure_logging: bool = False,
    ) -> "Container":
        """Create the container with all dependencies.

        Args:
            config: Configuration (default: environment via get_config()).
            metrics: Metrics registry (default: the process registry).
            configure_logging: Also apply the configured structlog setup.
        """
        config = config or get_config()
        observability = config.observability

        if configure_logging:
            store_logging.configure_logging(observability)
        tracer = configure_tracing(observability)

        metrics = metrics or get_metrics()
        storage = create_storage_backend(config)
        engine = TableEngine(
            codec=JsonDatasetCodec(),
            metrics=metrics,
            backend_factory=lambda: storage,
        )

        logger = store_logging.get_logger(__name__, dataset=config.storage.dataset_name)
        logger.info(
            "record_store_container_created",
            backend=config.storage.backend,
            data_dir=str(config.storage.data_dir),
        )

        return cls(
            config=config,
            logger=logger,
            tracer=tracer,
            metrics=metrics,
            storage=storage,
            engine=engine,
        )

    def start(self) -> TableEngine:
        """Initialize the engine on the configured dataset."""
        self.engine.initialize(self.config.storage.dataset_name, self.storage)
        return self.engine

    def crud(self) -> CrudOperations:
        return CrudOperations(self.engine)

    def shutdown(self) -> None:
        """Close the engine, then flush any exported spans."""
        self.engine.close()
        shutdown_tracing()

    def __enter__(self) -> "Container":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
