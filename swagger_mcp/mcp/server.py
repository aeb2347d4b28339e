"""
Name: MCP Server.
Description: Provides the MCP Server implementation that exposes every registered API tool through a FastMCP instance.
"""

import logging

from fastmcp import FastMCP

from ..models import MCPToolsetConfig
from ..openapi.tools import FastMCPOpenAPITool
from ..constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
)

logger = logging.getLogger(__name__)


class MCPServer:
    """MCP Server implementation."""

    def __init__(
        self,
        mcp_config: MCPToolsetConfig,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        debug: bool = False,
    ):
        """Initialize an MCP server.

        Args:
            mcp_config: MCP toolset configuration
            host: Host for the server
            port: Port for the server
            debug: Whether to enable debug mode
        """
        self.mcp_config = mcp_config
        self.host = host
        self.port = port
        self.debug = debug

        self.api_toolkit = self.mcp_config.toolkit

        # Create FastMCP instance
        self.mcp = self._create_mcp_instance()

    @property
    def is_ready(self) -> bool:
        """Whether the tool set has finished loading."""
        return self.api_toolkit is not None

    @property
    def tool_count(self) -> int:
        return len(self.api_toolkit.tools) if self.api_toolkit else 0

    def _create_mcp_instance(self) -> FastMCP:
        """Create a FastMCP instance for this server.

        Returns:
            FastMCP instance
        """
        mcp = FastMCP(
            self.mcp_config.name,
            instructions=self.mcp_config.api_description or None,
        )

        if self.api_toolkit:
            for rest_tool in self.api_toolkit.get_tools():
                mcp.add_tool(FastMCPOpenAPITool(rest_tool))
                logger.debug(f"Registered tool: {rest_tool.name}")

        return mcp

    def sse_app(self):
        """ASGI app serving the SSE stream at /sse and message posts at /messages/."""
        return self.mcp.http_app(transport="sse")
