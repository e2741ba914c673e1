"""
OpenTelemetry instrumentation package for the Metabase MCP server

Provides centralized configuration and initialization for OpenTelemetry
tracing and metrics.
"""

from .config import (
    initialize_telemetry,
    get_tracer,
    get_meter,
    shutdown_telemetry,
    is_telemetry_enabled,
    get_telemetry_status
)

from .decorators import (
    trace_mcp_tool,
    trace_metabase_api_call
)

from .metrics import (
    initialize_metrics,
    record_tool_invocation,
    record_api_request,
    record_error,
    get_metrics_status
)

__all__ = [
    # Core configuration
    'initialize_telemetry',
    'get_tracer',
    'get_meter',
    'shutdown_telemetry',
    'is_telemetry_enabled',
    'get_telemetry_status',

    # Decorators
    'trace_mcp_tool',
    'trace_metabase_api_call',

    # Metrics
    'initialize_metrics',
    'record_tool_invocation',
    'record_api_request',
    'record_error',
    'get_metrics_status'
]
