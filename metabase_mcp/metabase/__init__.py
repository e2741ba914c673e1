"""
Metabase API client package

Provides configuration, wire models and the native query pipeline behind
the metabase-tool.
"""

from .client import RawResponse, post_dataset
from .config import (
    MetabaseConfig,
    get_metabase_config,
    REQUEST_TIMEOUT_SECONDS,
    DATASET_ENDPOINT
)
from .errors import (
    MetabaseBridgeError,
    ValidationError,
    SerializationError,
    TransportError,
    ReadError,
    StartupConfigurationError
)
from .models import (
    ToolArguments,
    decode_tool_arguments,
    NativeQuery,
    MetabaseQuery,
    MetabaseResponse,
    Column,
    QueryResult,
    RawFallbackResult,
    BridgeResult
)
from .queries import (
    encode_query,
    parse_dataset_response,
    format_result,
    execute_native_query,
    run_metabase_tool
)

__all__ = [
    # Client
    'RawResponse',
    'post_dataset',

    # Configuration
    'MetabaseConfig',
    'get_metabase_config',
    'REQUEST_TIMEOUT_SECONDS',
    'DATASET_ENDPOINT',

    # Errors
    'MetabaseBridgeError',
    'ValidationError',
    'SerializationError',
    'TransportError',
    'ReadError',
    'StartupConfigurationError',

    # Models
    'ToolArguments',
    'decode_tool_arguments',
    'NativeQuery',
    'MetabaseQuery',
    'MetabaseResponse',
    'Column',
    'QueryResult',
    'RawFallbackResult',
    'BridgeResult',

    # Query operations
    'encode_query',
    'parse_dataset_response',
    'format_result',
    'execute_native_query',
    'run_metabase_tool'
]
