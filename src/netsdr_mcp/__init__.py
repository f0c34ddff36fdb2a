"""Client, codec and MCP server for NetSDR-style receivers."""

__version__ = "0.1.0"
