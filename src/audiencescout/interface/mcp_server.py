"""MCP server entrypoint.

Usage:
    python -m audiencescout.interface.mcp_server
    # or via the script entrypoint:
    audiencescout-mcp
"""

from __future__ import annotations

import argparse
import logging

from .mcp.server import create_server


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the audience search MCP server (stdio)")
    parser.add_argument("--read-only", action="store_true", help="Do not register admin tools")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper())
    server = create_server(include_admin=not args.read_only)
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
