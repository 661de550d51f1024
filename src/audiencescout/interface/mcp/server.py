"""MCP server factory."""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from .tools import register_admin_tools, register_search_tools

SERVER_NAME = "audiencescout"


def create_server(include_admin: bool = True) -> FastMCP:
    """Build and return a configured FastMCP server.

    Args:
        include_admin: also register reload and cache-purge tools.
    """
    server = FastMCP(SERVER_NAME)
    register_search_tools(server)
    if include_admin:
        register_admin_tools(server)
    return server


if __name__ == "__main__":
    create_server().run(transport="stdio")
