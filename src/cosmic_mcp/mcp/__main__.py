"""
Entry point for running the Cosmic MCP server as a module.

Usage:
    python -m cosmic_mcp.mcp
    uv run python -m cosmic_mcp.mcp
"""

from cosmic_mcp.mcp.server import main

if __name__ == "__main__":
    main()
