# Quire Sheets
# File: transports/stdio_server.py
# Version: v1

"""STDIO entrypoint for the Quire Sheets MCP server.

This is the script behind the ``quire-mcp`` console command.

It creates a FastMCP server, registers the table tools and runs the
built-in stdio transport.
"""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from ..tools import tasks


def main() -> None:
    """Synchronous entrypoint for console_scripts."""
    mcp = FastMCP("quire-sheets-mcp")

    # Register MCP tools (ping, describe_table, query_table, insert_rows, …)
    tasks.register_tools(mcp)

    # Let FastMCP handle stdio + event loop setup.
    mcp.run()


if __name__ == "__main__":
    main()
