"""
Error types raised while bridging a tool call to Metabase.

Messages are shown to the MCP caller verbatim, so they must never contain
the session cookie.
"""

from typing import Optional


class MetabaseBridgeError(Exception):
    """Base class for per-request failures reported as tool-level errors."""


class ValidationError(MetabaseBridgeError):
    """Tool arguments are missing, mistyped or empty."""


class SerializationError(MetabaseBridgeError):
    """The outbound query or the final result could not be encoded."""


class TransportError(MetabaseBridgeError):
    """Connection, DNS, TLS or timeout failure before a response arrived."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ReadError(MetabaseBridgeError):
    """The response body could not be read to the end."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StartupConfigurationError(Exception):
    """Required startup configuration is missing or invalid. Fatal."""

    def __init__(self, message: str, missing: Optional[list] = None):
        super().__init__(message)
        self.missing = missing or []
