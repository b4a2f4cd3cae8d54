"""OpenTelemetry tracing setup (OTLP/HTTP export)."""

import logging

from rxreturns.config import (
    DEPLOYMENT_ENVIRONMENT,
    OTLP_API_KEY,
    OTLP_ENDPOINT,
    SERVICE_NAME,
    TRACING_ENABLED,
)

logger = logging.getLogger(__name__)
_initialized = False
_tracer_provider = None


def _resolve_endpoint() -> str:
    """Ensure HTTP endpoint includes the /v1/traces path."""
    endpoint = OTLP_ENDPOINT.rstrip("/")
    if not endpoint.endswith("/v1/traces"):
        endpoint = f"{endpoint}/v1/traces"
    return endpoint


def _build_resource():
    """Build Resource with service identity."""
    from opentelemetry.sdk.resources import Resource

    return Resource.create(
        {
            "service.name": SERVICE_NAME,
            "service.version": "0.1.0",
            "deployment.environment": DEPLOYMENT_ENVIRONMENT,
        }
    )


def _build_pipeline():
    """Build a TracerProvider exporting spans in batches over OTLP/HTTP."""
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    headers = None
    if OTLP_API_KEY:
        headers = {"authorization": f"Bearer {OTLP_API_KEY}"}

    provider = TracerProvider(resource=_build_resource())
    exporter = OTLPSpanExporter(endpoint=_resolve_endpoint(), headers=headers)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    return provider


def init_tracing() -> None:
    """Initialize OTLP tracing (call once at startup). No-op unless TRACING_ENABLED."""
    global _initialized, _tracer_provider
    if _initialized or not TRACING_ENABLED:
        return

    _tracer_provider = _build_pipeline()
    _initialized = True
    logger.info("Tracing enabled, exporting to %s", _resolve_endpoint())


def get_tracer():
    """Return the OpenTelemetry tracer (no-op tracer until init_tracing has run)."""
    from opentelemetry import trace

    return trace.get_tracer("rxreturns", "0.1.0")


def get_tracer_provider():
    """Return the global tracer provider (for shutdown)."""
    from opentelemetry import trace

    return _tracer_provider if _tracer_provider is not None else trace.get_tracer_provider()


def shutdown_tracing() -> None:
    """Flush and shutdown the tracer provider so spans are exported before process exit."""
    from opentelemetry.sdk.trace import TracerProvider

    provider = get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.force_flush(timeout_millis=5000)
        provider.shutdown()
