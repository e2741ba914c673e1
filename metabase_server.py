#!/usr/bin/env python3
"""
Metabase MCP Server
A Model Context Protocol server that runs native queries against a Metabase
database through the /api/dataset endpoint and serves them over stdio.
"""

import sys
from typing import Annotated, Optional

import httpx
from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

# Load environment variables from .env file first
load_dotenv()

from metabase_mcp import __version__
from metabase_mcp.logging import config_logger, log_tool_call, server_logger
from metabase_mcp.metabase import (
    MetabaseBridgeError,
    MetabaseConfig,
    StartupConfigurationError,
    get_metabase_config,
    run_metabase_tool
)
from metabase_mcp.telemetry import record_error, trace_mcp_tool

SERVER_NAME = "metabase-mcp"
TOOL_NAME = "metabase-tool"
TOOL_DESCRIPTION = (
    "Execute a native query (for example SQL) against the configured Metabase database "
    "and return the status, row count, running time, rows and column metadata as JSON. "
    "If Metabase answers with something other than a query result (expired session, "
    "HTML error page), the raw HTTP status and body are returned instead."
)


def create_server(config: MetabaseConfig, http_client: Optional[httpx.AsyncClient] = None) -> FastMCP:
    """
    Create the FastMCP server with the metabase-tool registered.

    Args:
        config: Startup configuration, captured once and shared read-only
        http_client: Optional shared httpx client for outbound calls

    Returns:
        Configured FastMCP instance
    """
    mcp = FastMCP(name=SERVER_NAME)

    @mcp.tool(name=TOOL_NAME, description=TOOL_DESCRIPTION)
    @trace_mcp_tool(tool_name=TOOL_NAME, record_args=True, record_result=False)
    async def metabase_tool(
        query: Annotated[str, Field(description="The query to execute against the db")]
    ) -> str:
        log_tool_call(TOOL_NAME, database=config.database_id, query_length=len(query))
        try:
            return await run_metabase_tool({"query": query}, config, http_client=http_client)
        except MetabaseBridgeError as e:
            record_error(type(e).__name__, "query_bridge")
            server_logger.warning(f"tool error | type:{type(e).__name__} | error:{e}")
            raise ToolError(str(e)) from e
        except Exception as e:
            # Keep the server alive on anything unexpected
            record_error(type(e).__name__, "query_bridge")
            server_logger.exception(f"unexpected tool failure | type:{type(e).__name__}")
            raise ToolError(f"internal error: {type(e).__name__}: {e}") from e

    return mcp


def main() -> None:
    import atexit
    from metabase_mcp.telemetry import initialize_telemetry, initialize_metrics, shutdown_telemetry

    try:
        config = get_metabase_config()
    except StartupConfigurationError as e:
        config_logger.critical(str(e))
        sys.exit(1)

    if initialize_telemetry():
        initialize_metrics()
        atexit.register(shutdown_telemetry)

    server_logger.info(
        f"Metabase MCP server starting | version:{__version__} | "
        f"host:{config.base_url} | database:{config.database_id}"
    )

    mcp = create_server(config)

    # Run the MCP server
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
