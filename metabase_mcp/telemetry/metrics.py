"""
OpenTelemetry metrics for Metabase MCP server operations

Counts tool invocations, Metabase API requests and errors. Every recorder is
a no-op until initialize_metrics() succeeds.
"""

from metabase_mcp.logging import get_logger

logger = get_logger('TELEMETRY_METRICS')

_metrics_enabled = False

# Metric instruments
_tool_invocation_counter = None
_tool_duration_histogram = None
_api_request_counter = None
_api_duration_histogram = None
_error_counter = None


def initialize_metrics():
    """Initialize OpenTelemetry metrics instruments."""
    global _metrics_enabled
    global _tool_invocation_counter, _tool_duration_histogram
    global _api_request_counter, _api_duration_histogram
    global _error_counter

    try:
        from metabase_mcp.telemetry.config import get_meter
        meter = get_meter()

        if not meter:
            logger.debug("metrics not available | meter not initialized")
            return False

        _tool_invocation_counter = meter.create_counter(
            name="mcp_tool_invocations_total",
            description="Total number of MCP tool invocations",
            unit="1"
        )
        _tool_duration_histogram = meter.create_histogram(
            name="mcp_tool_duration_seconds",
            description="Duration of MCP tool executions",
            unit="s"
        )

        _api_request_counter = meter.create_counter(
            name="metabase_api_requests_total",
            description="Total number of Metabase API requests",
            unit="1"
        )
        _api_duration_histogram = meter.create_histogram(
            name="metabase_api_duration_seconds",
            description="Duration of Metabase API requests",
            unit="s"
        )

        _error_counter = meter.create_counter(
            name="mcp_errors_total",
            description="Total number of errors by type",
            unit="1"
        )

        _metrics_enabled = True
        logger.info("metrics initialization complete")
        return True

    except ImportError:
        logger.debug("metrics not available | opentelemetry not installed")
        return False
    except Exception as e:
        logger.error(f"metrics initialization failed | error: {e}")
        return False


def record_tool_invocation(tool_name: str, duration: float, success: bool, **attributes):
    """
    Record metrics for MCP tool invocations.

    Args:
        tool_name: Name of the MCP tool
        duration: Execution duration in seconds
        success: Whether the invocation was successful
        **attributes: Additional attributes to record
    """
    if not _metrics_enabled or not _tool_invocation_counter:
        return

    try:
        metric_attributes = {
            "tool_name": tool_name,
            "status": "success" if success else "error"
        }
        for key, value in attributes.items():
            if isinstance(value, (str, int, float, bool)):
                metric_attributes[f"tool.{key}"] = str(value)

        _tool_invocation_counter.add(1, metric_attributes)
        _tool_duration_histogram.record(duration, metric_attributes)

        logger.debug(f"recorded tool metrics | tool:{tool_name} | duration:{duration:.3f}s | success:{success}")

    except Exception as e:
        logger.debug(f"failed to record tool metrics | error: {e}")


def record_api_request(endpoint: str, method: str, status_code: int, duration: float):
    """
    Record metrics for Metabase API requests.

    Args:
        endpoint: API endpoint
        method: HTTP method
        status_code: HTTP status code
        duration: Request duration in seconds
    """
    if not _metrics_enabled or not _api_request_counter:
        return

    try:
        metric_attributes = {
            "endpoint": endpoint,
            "method": method,
            "status_code": str(status_code),
            "status": "success" if status_code < 400 else "error"
        }

        _api_request_counter.add(1, metric_attributes)
        _api_duration_histogram.record(duration, metric_attributes)

        logger.debug(f"recorded API metrics | endpoint:{endpoint} | status:{status_code} | duration:{duration:.3f}s")

    except Exception as e:
        logger.debug(f"failed to record API metrics | error: {e}")


def record_error(error_type: str, component: str):
    """
    Record an error occurrence.

    Args:
        error_type: Exception class name or error category
        component: Component where the error occurred
    """
    if not _metrics_enabled or not _error_counter:
        return

    try:
        _error_counter.add(1, {"error_type": error_type, "component": component})
    except Exception as e:
        logger.debug(f"failed to record error metric | error: {e}")


def get_metrics_status() -> dict:
    """Get the current metrics configuration status."""
    return {
        "enabled": _metrics_enabled,
        "instruments": {
            "tool_invocations": _tool_invocation_counter is not None,
            "api_requests": _api_request_counter is not None,
            "errors": _error_counter is not None
        }
    }
