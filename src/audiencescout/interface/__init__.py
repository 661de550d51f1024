"""Outer surfaces: CLI, MCP server and request validation."""
