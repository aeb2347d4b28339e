"""
Name: Shared models.
Description: Contains models shared across multiple modules to avoid circular imports.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from .constants import DEFAULT_SERVER_NAME, DEFAULT_SERVER_VERSION
from .openapi.tools import OpenAPIToolkit


class MCPToolsetConfig(BaseModel):
    """Configuration for an MCP toolset."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = DEFAULT_SERVER_NAME
    api_description: str = ""
    version: str = DEFAULT_SERVER_VERSION

    # None until the spec has been loaded and every tool registered
    toolkit: Optional[OpenAPIToolkit] = None

    @classmethod
    def from_toolkit(cls, toolkit: OpenAPIToolkit) -> "MCPToolsetConfig":
        """Build a toolset config named after the spec's info block."""
        info = toolkit.spec_parser.get_info()
        return cls(
            name=info.get("title") or DEFAULT_SERVER_NAME,
            api_description=info.get("description") or "",
            version=str(info.get("version") or DEFAULT_SERVER_VERSION),
            toolkit=toolkit,
        )
