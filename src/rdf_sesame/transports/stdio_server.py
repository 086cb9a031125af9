# Sesame RDF Client
# File: transports/stdio_server.py
# Version: v1

"""STDIO entrypoint for the Sesame MCP server.

This is the script behind the ``sesame-mcp`` console command.

It:

- creates a FastMCP server,
- registers the Sesame repository tools, and
- runs the built-in stdio transport.

The server location comes from SESAME_* environment variables (see
``SesameConfig.from_env``).
"""

from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from ..tools import tasks

logger = logging.getLogger(__name__)


def main() -> None:
    """Synchronous entrypoint for console_scripts."""
    mcp = FastMCP("sesame-mcp")

    tasks.register_tools(mcp)
    logger.info("Registered Sesame tools; serving over stdio")

    # Let FastMCP handle stdio + event loop setup.
    mcp.run()


if __name__ == "__main__":
    main()
