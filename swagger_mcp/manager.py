"""
Name: Core functionality manager.
Description: Loads the OpenAPI spec named by the configuration, builds the tool set from it, wraps it in an MCP server and serves it over SSE next to a health route. Orchestrates the different components of Swagger MCP to create a complete MCP server.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from .config import AppConfig
from .constants import HEALTH_PATH
from .mcp.server import MCPServer
from .models import MCPToolsetConfig
from .openapi.auth import resolve_auth
from .openapi.spec import load_spec
from .openapi.tools import OpenAPIToolkit

logger = logging.getLogger(__name__)


def build_toolkit(config: AppConfig) -> OpenAPIToolkit:
    """Load the configured spec and register a tool for every operation.

    Args:
        config: Server configuration

    Returns:
        The toolkit holding every registered tool

    Raises:
        SpecLoadError: If the spec cannot be fetched or parsed
        SchemaResolutionError: If any operation's schema cannot be built
    """
    swagger = config.swagger

    # Credentials for fetching the spec come from the default auth only
    headers, _ = resolve_auth(swagger.default_auth)

    logger.info(f"Loading OpenAPI spec from {swagger.url}")
    spec = load_spec(swagger.url, headers=headers)

    return OpenAPIToolkit(
        spec,
        base_url=swagger.api_base_url,
        default_auth=swagger.default_auth,
    )


def create_mcp_config(toolkit: OpenAPIToolkit) -> MCPToolsetConfig:
    """Create an MCP configuration for a toolkit.

    Args:
        toolkit: Toolkit with the registered tools

    Returns:
        MCP configuration
    """
    mcp_config = MCPToolsetConfig.from_toolkit(toolkit)
    logger.info(f"Creating MCP configuration for {mcp_config.name}")
    return mcp_config


def create_app(server: Optional[MCPServer] = None):
    """Create the HTTP application.

    Serves ``GET /health`` and, once a server is given, the MCP SSE endpoints
    (``/sse`` and ``/messages/``). The toolkit's HTTP client is closed on
    shutdown.

    Args:
        server: The MCP server, or None while tools are not loaded

    Returns:
        FastAPI application
    """
    from fastapi import FastAPI

    mcp_app = server.sse_app() if server else None

    @asynccontextmanager
    async def lifespan(app):
        if mcp_app is None:
            yield
            return
        async with mcp_app.lifespan(app):
            yield
        if server.api_toolkit:
            await server.api_toolkit.aclose()

    app = FastAPI(
        title="Swagger MCP Server",
        description="MCP server exposing the operations of an OpenAPI spec as tools",
        lifespan=lifespan,
    )

    # Add health check endpoint
    @app.get(HEALTH_PATH)
    async def health_check():
        ready = server is not None and server.is_ready
        return {
            "status": "ok",
            "mcpServer": "initialized" if ready else "not initialized",
            "tools": server.tool_count if server else 0,
        }

    if mcp_app is not None:
        # Mounted last so the health route takes precedence
        app.mount("/", mcp_app)

    return app


def start_mcp_server(
    config: AppConfig,
    host: Optional[str] = None,
    port: Optional[int] = None,
    debug: bool = False,
):
    """Start an MCP server for the configured API.

    Args:
        config: Server configuration
        host: Host to bind the server to; defaults to the configured one
        port: Port to bind the server to; defaults to the configured one
        debug: Whether to enable debug mode
    """
    import uvicorn

    host = host or config.server.host
    port = port or config.server.port

    toolkit = build_toolkit(config)
    server = MCPServer(
        mcp_config=create_mcp_config(toolkit),
        host=host,
        port=port,
        debug=debug,
    )
    app = create_app(server)

    logger.info(
        f"Starting MCP server for {server.mcp_config.name} {server.mcp_config.version} "
        f"on {host}:{port} with {server.tool_count} tools"
    )

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="debug" if debug else "warning",
    )
