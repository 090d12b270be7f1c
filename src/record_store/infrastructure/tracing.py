"""OpenTelemetry tracing for dataset load and persist.

Without setup_tracing() the global no-op provider is used and spans
cost next to nothing. Span attributes are namespaced under
``record_store.``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Mapping

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from record_store.infrastructure.config import ObservabilityConfig

ATTRIBUTE_PREFIX = "record_store."

_tracer: trace.Tracer | None = None
_provider: TracerProvider | None = None


def setup_tracing(
    service_name: str = "record_store",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Install an SDK tracer provider.

    Args:
        service_name: Reported as ``service.name``
        otlp_endpoint: OTLP gRPC collector endpoint (e.g. "http://localhost:4317")
        console_export: Also print finished spans to stdout

    Returns:
        The record store tracer
    """
    global _tracer, _provider

    from record_store import FORMAT_VERSION, __version__

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": __version__,
            f"{ATTRIBUTE_PREFIX}format_version": FORMAT_VERSION,
        }
    )
    provider = TracerProvider(resource=resource)

    if otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
    if console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _provider = provider
    _tracer = provider.get_tracer("record_store")
    return _tracer


def configure_tracing(config: ObservabilityConfig) -> trace.Tracer:
    """Install tracing when an OTLP endpoint is configured, else use the global tracer."""
    if config.otel_endpoint:
        return setup_tracing(config.otel_service_name, config.otel_endpoint)
    return get_tracer()


def shutdown_tracing() -> None:
    """Flush and shut down the provider installed by setup_tracing()."""
    global _tracer, _provider
    if _provider is None:
        return
    _provider.shutdown()
    _provider = None
    _tracer = None


def get_tracer() -> trace.Tracer:
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer("record_store")
    return _tracer


def _namespaced(attributes: Mapping[str, Any] | None) -> dict[str, Any]:
    if not attributes:
        return {}
    return {
        key if key.startswith(ATTRIBUTE_PREFIX) else f"{ATTRIBUTE_PREFIX}{key}": value
        for key, value in attributes.items()
    }


@contextmanager
def trace_span(
    name: str,
    attributes: Mapping[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """
    Run a block inside a span.

    Exceptions leaving the block are recorded on the span and mark it
    as failed.

    Args:
        name: Span name (e.g. "record_store.persist")
        attributes: Span attributes, prefixed with ``record_store.``
    """
    with get_tracer().start_as_current_span(name, attributes=_namespaced(attributes)) as span:
        yield span


def mark_recovered(span: trace.Span, error: BaseException) -> None:
    """Note on a span that an error was absorbed rather than raised."""
    span.set_attribute(f"{ATTRIBUTE_PREFIX}recovered", True)
    span.add_event(
        "recovered_error",
        {"exception.type": type(error).__name__, "exception.message": str(error)},
    )
