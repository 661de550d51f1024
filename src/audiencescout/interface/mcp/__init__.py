"""MCP surface: server factory, tools and observability."""
