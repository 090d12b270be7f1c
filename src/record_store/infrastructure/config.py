"""Configuration management for the record store."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageConfig(BaseModel):
    """Storage configuration."""

    data_dir: Path = Field(
        default=Path.home() / ".local" / "share" / "record_store",
        description="Application-support directory holding dataset files",
    )
    backend: Literal["file", "memory"] = Field(
        default="file", description="Storage backend used when none is supplied"
    )
    dataset_name: str = Field(
        default="database", min_length=1, description="Default dataset name"
    )
    file_suffix: str = Field(default=".json", description="Dataset file suffix")
    fsync: bool = Field(default=True, description="fsync dataset files after writing")

    @field_validator("file_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        """Suffix must look like a file extension."""
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"file_suffix must start with '.', got {v!r}")
        return v


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="record_store", description="Service name for tracing")
    metrics_port: int = Field(default=8011, ge=1, le=65535, description="Prometheus metrics port")


class Config(BaseSettings):
    """Main configuration for the record store."""

    model_config = SettingsConfigDict(
        env_prefix="RECORD_STORE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    def ensure_directories(self) -> None:
        """Ensure the data directory exists."""
        self.storage.data_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
