"""Entry point for running Cosmic MCP as a module: python -m cosmic_mcp"""

from cosmic_mcp.cli.main import cli

if __name__ == "__main__":
    cli()
