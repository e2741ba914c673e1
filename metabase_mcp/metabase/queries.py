"""
Native query execution for the metabase-tool

Validates the tool arguments, posts the query to Metabase and turns the
response into either a QueryResult or, when the body is not a dataset
response (HTML error page, expired session, ...), a RawFallbackResult.
"""

import json
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError

from metabase_mcp.logging import get_logger

from .client import RawResponse, post_dataset
from .config import MetabaseConfig
from .errors import SerializationError
from .models import (
    BridgeResult,
    MetabaseQuery,
    MetabaseResponse,
    QueryResult,
    RawFallbackResult,
    decode_tool_arguments
)

logger = get_logger('QUERY')


def encode_query(query: MetabaseQuery) -> bytes:
    """Serialize a query to the compact JSON body expected by /api/dataset."""
    try:
        return query.model_dump_json(by_alias=True).encode("utf-8")
    except (PydanticSerializationError, ValueError) as e:
        raise SerializationError(f"failed to create query JSON: {e}") from e


def parse_dataset_response(response: RawResponse, query: MetabaseQuery) -> BridgeResult:
    """
    Interpret a Metabase response.

    A body that validates as MetabaseResponse becomes a QueryResult; anything
    else is kept verbatim in a RawFallbackResult.
    """
    try:
        parsed = MetabaseResponse.model_validate_json(response.body)
    except PydanticValidationError as e:
        logger.info(
            f"response is not a dataset result | status:{response.status_code} | "
            f"size:{len(response.body)} | errors:{e.error_count()}"
        )
        return RawFallbackResult(
            status_code=response.status_code,
            status=response.status_line,
            body=response.text,
            query_sent=query
        )

    logger.info(
        f"query completed | status:{parsed.status} | rows:{parsed.row_count} | "
        f"running_time:{parsed.running_time}ms | cached:{parsed.cached}"
    )
    return QueryResult.from_response(parsed, query)


def format_result(result: BridgeResult) -> str:
    """Render a tool result as pretty-printed JSON."""
    try:
        return json.dumps(result.to_payload(), indent=2, ensure_ascii=False)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise SerializationError(f"failed to format response: {e}") from e


async def execute_native_query(
    arguments: Any,
    config: MetabaseConfig,
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None
) -> BridgeResult:
    """
    Run one native query against the configured Metabase database.

    Args:
        arguments: Raw tool arguments, expected to be {"query": "<statement>"}
        config: Startup configuration
        http_client: Optional shared httpx client
        timeout: Overall deadline in seconds, defaults to config.timeout

    Returns:
        QueryResult or RawFallbackResult

    Raises:
        ValidationError: Bad arguments; no request is made
        SerializationError: The query could not be encoded
        TransportError: The request did not complete
        ReadError: The response body could not be read
    """
    tool_args = decode_tool_arguments(arguments)

    query = MetabaseQuery.native_sql(config.database_id, tool_args.query)
    content = encode_query(query)

    # Log the query operation with a truncated preview
    preview = tool_args.query[:100] + "..." if len(tool_args.query) > 100 else tool_args.query
    logger.info(f"query execution | database:{config.database_id} | query:'{preview}'")

    response = await post_dataset(config, content, http_client=http_client, timeout=timeout)
    return parse_dataset_response(response, query)


async def run_metabase_tool(
    arguments: Any,
    config: MetabaseConfig,
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None
) -> str:
    """Execute a native query and return the tool's JSON text."""
    result = await execute_native_query(arguments, config, http_client=http_client, timeout=timeout)
    if isinstance(result, QueryResult) and result.error is not None:
        logger.warning(f"metabase reported a query error | status:{result.status}")
    return format_result(result)
