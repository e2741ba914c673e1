"""
Metabase MCP server package.

Exposes a single MCP tool that runs native queries against a Metabase
database through the `/api/dataset` endpoint.
"""

__version__ = "1.0.0"
