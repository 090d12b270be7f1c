"""Pytest configuration and fixtures for record_store tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from record_store.adapters.outbound import InMemoryStorageBackend
from record_store.application import TableEngine
from record_store.infrastructure.config import Config, StorageConfig
from record_store.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(temp_dir: Path) -> Config:
    """Provide a test configuration with a temporary data directory."""
    return Config(
        storage=StorageConfig(
            data_dir=temp_dir / "data",
            dataset_name="test_db",
            fsync=False,  # Faster for tests
        ),
    )


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def memory_storage() -> InMemoryStorageBackend:
    return InMemoryStorageBackend()


@pytest.fixture
def engine(
    memory_storage: InMemoryStorageBackend,
    metrics_registry: MetricsRegistry,
) -> Generator[TableEngine, None, None]:
    """Provide an engine initialized over in-memory storage."""
    eng = TableEngine(metrics=metrics_registry)
    eng.initialize("test_db", memory_storage)
    yield eng
    eng.close()


@pytest.fixture
def people() -> list[dict]:
    return [
        {"id": 1, "name": "Ada", "age": 36, "city": "London"},
        {"id": 2, "name": "Grace", "age": 45, "city": "Arlington"},
        {"id": 3, "name": "Alan", "age": 41, "city": "London"},
        {"id": 4, "name": "Edsger", "age": None, "city": "Nuenen"},
        {"id": 5, "name": "Barbara", "age": 36},
    ]


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
