"""OpenTelemetry wiring for the transform engine.

The provider is returned to the caller so app shutdown can flush buffered spans.
"""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter


def build_tracer_provider(
    service_name: str,
    endpoint: str,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Provider tagged with `service.name`, batching spans to OTLP over HTTP."""

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter or OTLPSpanExporter(endpoint=endpoint)))
    return provider


def setup_tracing(service_name: str, endpoint: str) -> TracerProvider:
    """Register the process-wide provider and hand it back for shutdown."""

    provider = build_tracer_provider(service_name, endpoint)
    trace.set_tracer_provider(provider)
    return provider


def instrument_app(app: FastAPI) -> None:
    FastAPIInstrumentor.instrument_app(app)
