"""MCP server module for Swagger MCP."""

from .server import MCPServer

__all__ = ["MCPServer"]
