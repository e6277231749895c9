"""MCP server exposing the checkers as tools."""

from planproof.mcp.server import configure, get_registry, mcp

__all__ = ["configure", "get_registry", "mcp"]
