"""
Standardized logging setup for the Metabase MCP server.

Everything goes to stderr: stdout carries the MCP stdio transport and must
only ever contain protocol frames.
"""

import logging
import sys
import os
from typing import Dict, Mapping


class ColoredFormatter(logging.Formatter):
    """Colored logging formatter with timestamps."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, use_colors=True):
        super().__init__(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record):
        if not self.use_colors:
            return super().format(record)

        level_color = self.COLORS.get(record.levelname, '')
        reset_color = self.COLORS['RESET']

        # Temporarily modify the record to add colors
        original_levelname = record.levelname
        record.levelname = f"{level_color}{record.levelname}{reset_color}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


class ComponentHandler(logging.StreamHandler):
    """Stderr handler with colored formatting for our component loggers."""

    def __init__(self, use_colors=True):
        super().__init__(sys.stderr)
        self.setFormatter(ColoredFormatter(use_colors=use_colors))


# Get log level from environment variable, default to INFO
log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
log_level_value = getattr(logging, log_level, logging.INFO)

use_colors = os.getenv('LOG_COLORS', 'true').lower() in ('true', '1', 'yes', 'on')

# Leave the root logger alone if something already configured it; otherwise
# give third-party libraries a quiet stderr handler.
if not logging.getLogger().handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(levelname)s:%(name)s:%(message)s'))
    logging.getLogger().addHandler(handler)
    logging.getLogger().setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a component logger writing colored lines to stderr."""
    logger = logging.getLogger(name)
    if not any(isinstance(h, ComponentHandler) for h in logger.handlers):
        logger.addHandler(ComponentHandler(use_colors=use_colors))
        logger.propagate = False
        logger.setLevel(log_level_value)
    return logger


SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key", "x-metabase-session"}


def sanitize_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """
    Sanitize headers for logging by redacting credentials.

    Args:
        headers: Original headers

    Returns:
        Copy of the headers safe for logging
    """
    return {
        key: "[REDACTED]" if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


# Component-specific loggers
server_logger = get_logger('SERVER')
config_logger = get_logger('CONFIG')
query_logger = get_logger('QUERY')
http_logger = get_logger('HTTP')


def log_tool_call(tool_name: str, **params):
    """Helper to log tool execution."""
    extra_str = " | ".join(f"{k}:{str(v)[:50]}" for k, v in params.items() if v is not None)
    query_logger.info(f"executing {tool_name} | {extra_str}" if extra_str else f"executing {tool_name}")
