"""
Tracing for journey planning.

Planner spans come from a TracerProvider owned by this module; the
process-wide OpenTelemetry provider is left untouched. The provider is built
on first use when OTEL_ENABLED is set. With tracing off the API's no-op
tracer is used.
"""

import threading
from collections.abc import Generator
from contextlib import contextmanager

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from journey_planner import __version__
from journey_planner.core.config import require_config, settings

logger = structlog.get_logger(__name__)

_tracer_provider: TracerProvider | None = None
_tracer_provider_lock = threading.Lock()

# Span attribute values accepted by the OpenTelemetry API
AttributeValue = str | int | float | bool | list[str] | list[int] | list[float] | list[bool]


def get_tracer_provider() -> TracerProvider | None:
    """
    Return the planner's TracerProvider, building it on first call.

    Returns:
        The provider, or None while OTEL_ENABLED is off
    """
    if not settings.OTEL_ENABLED:
        return None

    global _tracer_provider  # noqa: PLW0603
    if _tracer_provider is None:
        with _tracer_provider_lock:
            if _tracer_provider is None:
                _tracer_provider = _build_tracer_provider()
    return _tracer_provider


def _build_tracer_provider() -> TracerProvider:
    """
    Build a provider describing this service, exporting over OTLP/HTTP when an endpoint is set.

    Raises:
        ValueError: If OTEL_EXPORTER_OTLP_TRACES_ENDPOINT is missing outside DEBUG mode
    """
    if not settings.DEBUG:
        require_config("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.OTEL_SERVICE_NAME,
                "service.version": __version__,
                "deployment.environment": settings.OTEL_ENVIRONMENT,
            }
        )
    )

    endpoint = settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT
    if not endpoint:
        logger.warning("journey_tracing_without_exporter", service_name=settings.OTEL_SERVICE_NAME)
        return provider

    exporter = OTLPSpanExporter(
        endpoint=endpoint,
        headers=_parse_otlp_headers(settings.OTEL_EXPORTER_OTLP_HEADERS or ""),
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    logger.info(
        "journey_tracing_enabled",
        endpoint=endpoint,
        service_name=settings.OTEL_SERVICE_NAME,
        environment=settings.OTEL_ENVIRONMENT,
    )
    return provider


def _parse_otlp_headers(raw: str) -> dict[str, str]:
    """Split ``"key=value,key=value"`` into exporter headers; only the first ``=`` in a pair separates."""
    headers: dict[str, str] = {}
    for pair in (part.strip() for part in raw.split(",")):
        if not pair:
            continue
        key, separator, value = pair.partition("=")
        if not separator:
            logger.warning("otel_malformed_header", pair=pair)
            continue
        headers[key.strip()] = value.strip()
    return headers


@contextmanager
def journey_span(name: str, **attributes: AttributeValue) -> Generator[Span]:
    """
    Run a block inside an INTERNAL planner span.

    The span ends with OK status when the block completes. An exception
    leaving the block is recorded on the span, sets ERROR status and
    propagates unchanged.

    Args:
        name: Span name, e.g. "journey.plan"
        **attributes: Initial span attributes

    Yields:
        The active span
    """
    tracer = trace.get_tracer(__name__, __version__, tracer_provider=get_tracer_provider())
    with tracer.start_as_current_span(name, kind=SpanKind.INTERNAL, attributes=attributes) as span:
        yield span
        span.set_status(Status(StatusCode.OK))


def annotate_current_span(**attributes: AttributeValue) -> None:
    """Add attributes to the active span. Does nothing outside a recording span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(attributes)
