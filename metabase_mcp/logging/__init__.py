"""
Logging utilities for the Metabase MCP server.
"""

from .mcp_logger import (
    get_logger,
    log_tool_call,
    sanitize_headers,
    server_logger,
    config_logger,
    query_logger,
    http_logger
)

__all__ = [
    'get_logger',
    'log_tool_call',
    'sanitize_headers',
    'server_logger',
    'config_logger',
    'query_logger',
    'http_logger'
]
