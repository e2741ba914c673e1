"""
OpenTelemetry decorators for instrumenting MCP server operations

Provides decorators for tracing MCP tool execution and Metabase API calls.
Both fall through to the wrapped coroutine when telemetry is off.
"""

import functools
import inspect
import time
from typing import Callable, Optional
from metabase_mcp.logging import get_logger

logger = get_logger('TELEMETRY_DECORATORS')

# Never recorded as span attributes
SENSITIVE_PARAMS = {
    'token', 'password', 'secret', 'key', 'auth', 'authorization',
    'cookie', 'cookies', 'credential', 'config'
}


def trace_mcp_tool(tool_name: Optional[str] = None,
                   record_args: bool = True,
                   record_result: bool = False):
    """
    Decorator to trace MCP tool execution.

    Args:
        tool_name: Custom name for the tool (defaults to function name)
        record_args: Whether to record function arguments as span attributes
        record_result: Whether to record the result as a span attribute
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            from .config import get_tracer
            from .metrics import record_tool_invocation

            start_time = time.time()
            success = True
            name = tool_name or func.__name__

            try:
                tracer = get_tracer()
                if not tracer:
                    return await func(*args, **kwargs)

                with tracer.start_as_current_span(f"mcp_tool.{name}") as span:
                    from opentelemetry import trace
                    try:
                        span.set_attribute("mcp.tool.name", name)
                        span.set_attribute("mcp.operation.type", "tool_execution")

                        if record_args:
                            _record_function_args(span, func, args, kwargs)

                        result = await func(*args, **kwargs)

                        if record_result and result is not None:
                            result_str = str(result)
                            if len(result_str) <= 1000:
                                span.set_attribute("mcp.tool.result", result_str)
                            else:
                                span.set_attribute("mcp.tool.result_size", len(result_str))

                        span.set_status(trace.Status(trace.StatusCode.OK))
                        return result

                    except Exception as e:
                        span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                        span.record_exception(e)
                        span.set_attribute("mcp.tool.error", True)
                        span.set_attribute("mcp.tool.error_type", type(e).__name__)
                        raise

            except Exception:
                success = False
                raise
            finally:
                attributes = {}
                if 'query' in kwargs:
                    attributes['query_length'] = len(str(kwargs.get('query', '')))
                record_tool_invocation(name, time.time() - start_time, success, **attributes)

        return wrapper
    return decorator


def trace_metabase_api_call(operation: Optional[str] = None):
    """
    Decorator to trace Metabase API calls.

    The wrapped coroutine is expected to return an object exposing
    ``status_code``; it is recorded on the span and in the request metrics.

    Args:
        operation: Description of the API operation
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            from .config import get_tracer
            from .metrics import record_api_request

            endpoint = kwargs.get('endpoint', operation or func.__name__)
            start_time = time.time()

            tracer = get_tracer()
            if not tracer:
                result = await func(*args, **kwargs)
                record_api_request(endpoint, "POST", getattr(result, 'status_code', 0), time.time() - start_time)
                return result

            with tracer.start_as_current_span(f"metabase_api.{operation or func.__name__}") as span:
                from opentelemetry import trace
                try:
                    span.set_attribute("metabase.operation.type", "api_call")
                    span.set_attribute("metabase.function.name", func.__name__)
                    if operation:
                        span.set_attribute("metabase.operation.name", operation)
                    if 'timeout' in kwargs:
                        span.set_attribute("metabase.api.timeout", kwargs['timeout'])

                    result = await func(*args, **kwargs)

                    status_code = getattr(result, 'status_code', None)
                    if status_code is not None:
                        span.set_attribute("metabase.api.status_code", status_code)
                        record_api_request(endpoint, "POST", status_code, time.time() - start_time)

                    span.set_status(trace.Status(trace.StatusCode.OK))
                    return result

                except Exception as e:
                    span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    span.set_attribute("metabase.api.error", True)
                    span.set_attribute("metabase.api.error_type", type(e).__name__)
                    raise

        return wrapper
    return decorator


def _record_function_args(span, func: Callable, args: tuple, kwargs: dict):
    """
    Record function arguments as span attributes with sensitive data filtering.

    Args:
        span: OpenTelemetry span
        func: Function being traced
        args: Positional arguments
        kwargs: Keyword arguments
    """
    try:
        bound_args = inspect.signature(func).bind_partial(*args, **kwargs)
        bound_args.apply_defaults()

        for param_name, value in bound_args.arguments.items():
            if param_name.lower() in SENSITIVE_PARAMS:
                span.set_attribute(f"mcp.args.{param_name}", "[REDACTED]")
                continue
            value_str = str(value)
            if len(value_str) <= 200:
                span.set_attribute(f"mcp.args.{param_name}", value_str)
            else:
                span.set_attribute(f"mcp.args.{param_name}_size", len(value_str))

    except Exception as e:
        # Don't fail the main operation if argument recording fails
        logger.debug(f"failed to record function args | error: {e}")
