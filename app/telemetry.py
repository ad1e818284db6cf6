"""OpenTelemetry setup for the Todo API.

Configures traces, metrics, and logs with OTLP exporters, plus
auto-instrumentation for FastAPI and SQLAlchemy.
"""

import atexit
import logging
import os
from typing import Any

from opentelemetry import _logs, metrics, trace
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor


logger = logging.getLogger(__name__)

_initialized: bool = False


def telemetry_disabled() -> bool:
    return os.environ.get("OTEL_SDK_DISABLED") == "true"


def _tracer_provider(resource: Resource, otlp_endpoint: str) -> TracerProvider:
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{otlp_endpoint}/v1/traces"))
    )
    return provider


def _meter_provider(resource: Resource, otlp_endpoint: str) -> MeterProvider:
    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=f"{otlp_endpoint}/v1/metrics"),
        export_interval_millis=10000,
    )
    return MeterProvider(resource=resource, metric_readers=[reader])


def _logger_provider(resource: Resource, otlp_endpoint: str) -> LoggerProvider:
    provider = LoggerProvider(resource=resource)
    provider.add_log_record_processor(
        BatchLogRecordProcessor(OTLPLogExporter(endpoint=f"{otlp_endpoint}/v1/logs"))
    )
    return provider


def setup_telemetry(service_name: str, otlp_endpoint: str, environment: str = "development") -> None:
    """Install the global tracer, meter and logger providers for the todo service.

    Call before the FastAPI app is built. Repeated calls, and calls with
    OTEL_SDK_DISABLED=true, leave the providers untouched.
    """
    global _initialized

    if _initialized:
        return

    if telemetry_disabled():
        logger.info("OpenTelemetry disabled")
        return

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": os.getenv("OTEL_SERVICE_VERSION", "1.0.0"),
            "deployment.environment": environment,
        }
    )

    tracer_provider = _tracer_provider(resource, otlp_endpoint)
    meter_provider = _meter_provider(resource, otlp_endpoint)
    logger_provider = _logger_provider(resource, otlp_endpoint)

    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(meter_provider)
    _logs.set_logger_provider(logger_provider)
    logging.getLogger().addHandler(
        LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
    )

    for provider in (tracer_provider, meter_provider, logger_provider):
        atexit.register(provider.shutdown)

    # log records carry otelTraceID/otelSpanID from here on
    LoggingInstrumentor().instrument(set_logging_format=True)

    _initialized = True
    logger.info("Telemetry for %s exporting to %s", service_name, otlp_endpoint)


def instrument_fastapi(app: Any) -> None:
    """One server span per request; /health is left out."""
    if telemetry_disabled():
        return

    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

    FastAPIInstrumentor.instrument_app(
        app,
        excluded_urls="health",
        exclude_spans=["receive", "send"],
    )


def instrument_engine(engine: Any) -> None:
    """Trace every SQL statement issued through the engine."""
    if telemetry_disabled():
        return

    from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor

    SQLAlchemyInstrumentor().instrument(engine=engine, enable_commenter=True)


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name)


def get_meter(name: str) -> metrics.Meter:
    return metrics.get_meter(name)
