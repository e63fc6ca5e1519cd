#!/usr/bin/env python3
"""Main entry point for Creator Scout MCP Server

Supports multiple transport modes:
- stdio: For local desktop MCP clients
- streamable-http: For remote access
"""

import os
import sys

from creator_scout.fastmcp_server import mcp

if __name__ == "__main__":
    # Get transport mode from environment or command line
    transport = os.getenv("MCP_TRANSPORT", "stdio")

    if len(sys.argv) > 1:
        transport = sys.argv[1]

    print(f"Starting Creator Scout MCP Server with {transport} transport...", file=sys.stderr)

    if transport == "stdio":
        mcp.run(transport=transport)
    else:
        mcp.run(
            transport=transport,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
        )
