"""OpenTelemetry wiring for the statement service.

Statement builds and the collector's fetch waves open their own spans on
`tracer`; FastAPI instrumentation adds the request span around them. Probe
routes are left untraced.
"""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from loanledger.common.config import settings


UNTRACED_ROUTES = "health,metrics"

tracer = trace.get_tracer("loanledger")


def setup_tracing(service_name: str) -> None:
    """Install an OTLP-exporting provider, sampled by `otel_sample_ratio`."""

    if not settings.otel_enabled:
        return
    provider = TracerProvider(
        resource=Resource.create({"service.name": service_name}),
        sampler=ParentBased(TraceIdRatioBased(settings.otel_sample_ratio)),
    )
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint)))
    trace.set_tracer_provider(provider)


def instrument_app(app: FastAPI) -> None:
    """Attach FastAPI request spans when tracing is enabled."""

    if settings.otel_enabled:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=UNTRACED_ROUTES)


def current_trace_id() -> str:
    """Hex trace id of the active span, or empty when none is recording."""

    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return ""
    return format(context.trace_id, "032x")
