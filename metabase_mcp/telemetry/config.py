"""
OpenTelemetry setup for the Metabase MCP server

Telemetry is opt-in through OTEL_TELEMETRY_ENABLED. When it is on, spans and
metrics are exported over OTLP gRPC and outbound httpx calls are instrumented.
"""

import os
import sys
from metabase_mcp.logging import get_logger

logger = get_logger('TELEMETRY')

SERVICE_NAMESPACE = "metabase-mcp"

# Milliseconds between metric exports
METRIC_EXPORT_INTERVAL_MS = 10000

_telemetry_initialized = False
_tracer = None
_meter = None


def is_telemetry_enabled() -> bool:
    return os.getenv('OTEL_TELEMETRY_ENABLED', 'false').lower() in ('true', '1', 'yes', 'on')


def _service_name() -> str:
    return os.getenv('OTEL_SERVICE_NAME', 'metabase-mcp')


def _install_providers(resource, endpoint: str):
    """Register global tracer and meter providers exporting to `endpoint`."""
    from opentelemetry import trace, metrics
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True)))
    trace.set_tracer_provider(tracer_provider)

    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=endpoint, insecure=True),
        export_interval_millis=METRIC_EXPORT_INTERVAL_MS
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

    return trace.get_tracer(__name__), metrics.get_meter(__name__)


def initialize_telemetry() -> bool:
    """
    Start tracing and metrics export if telemetry is enabled.

    Returns:
        True once telemetry is running, False when disabled or setup failed
    """
    global _telemetry_initialized, _tracer, _meter

    if _telemetry_initialized:
        return True

    if not is_telemetry_enabled():
        logger.debug("telemetry disabled via configuration")
        return False

    endpoint = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT', 'http://localhost:4317')
    logger.info(f"initializing telemetry | endpoint:{endpoint} | service:{_service_name()}")

    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

        from metabase_mcp import __version__

        resource = Resource.create({
            "service.name": _service_name(),
            "service.version": __version__,
            "service.namespace": SERVICE_NAMESPACE
        })
        _tracer, _meter = _install_providers(resource, endpoint)

        # Outbound Metabase calls get client spans automatically
        HTTPXClientInstrumentor().instrument()

    except ImportError as e:
        logger.warning(f"telemetry disabled | missing dependencies: {e}")
        return False
    except Exception as e:
        logger.error(f"telemetry initialization failed | error: {e}")
        import traceback
        traceback.print_exc(file=sys.stderr)
        return False

    _telemetry_initialized = True
    logger.info("telemetry initialization complete")
    return True


def get_tracer():
    """Tracer for spans, or None while telemetry is off."""
    return _tracer if _telemetry_initialized else None


def get_meter():
    """Meter for instruments, or None while telemetry is off."""
    return _meter if _telemetry_initialized else None


def shutdown_telemetry():
    """Flush pending spans and metrics and stop the providers."""
    global _telemetry_initialized

    if not _telemetry_initialized:
        return

    from opentelemetry import trace, metrics

    try:
        for provider in (trace.get_tracer_provider(), metrics.get_meter_provider()):
            if hasattr(provider, 'shutdown'):
                provider.shutdown()
        logger.info("telemetry shutdown complete")
    except Exception as e:
        logger.error(f"telemetry shutdown error | error: {e}")
    finally:
        _telemetry_initialized = False


def get_telemetry_status() -> dict:
    return {
        "enabled": is_telemetry_enabled(),
        "initialized": _telemetry_initialized,
        "service_name": _service_name()
    }
