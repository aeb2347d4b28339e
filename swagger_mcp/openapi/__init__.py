"""OpenAPI handling module for Swagger MCP."""

from .exceptions import InputValidationError, SchemaResolutionError, SpecLoadError
from .models import ApiEndpoint, ApiParameter, AuthInput, SecurityScheme, ToolResult
from .spec import OpenAPISpecParser, load_spec
from .tools import FastMCPOpenAPITool, OpenAPIToolkit, RestApiTool

__all__ = [
    "OpenAPISpecParser",
    "load_spec",
    "OpenAPIToolkit",
    "RestApiTool",
    "FastMCPOpenAPITool",
    "ApiEndpoint",
    "ApiParameter",
    "AuthInput",
    "SecurityScheme",
    "ToolResult",
    "SpecLoadError",
    "SchemaResolutionError",
    "InputValidationError",
]
