"""
Name: Configuration.
Description: Pydantic models for the server configuration file (spec source, upstream base URL, default auth, log level and bind address), with loading, default-file creation and environment variable substitution in credentials.
"""

import json
import logging
import os
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_KEY,
    DEFAULT_API_KEY_NAME,
    DEFAULT_CONFIG_FILE,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    DEFAULT_SPEC_URL,
)
from .openapi.models import ApiKeyAuth, AuthInput
from .utils import substitute_env_vars

logger = logging.getLogger(__name__)

# Credential fields of defaultAuth that may reference environment variables
_AUTH_SECRET_FIELDS = ("token", "username", "password", "apiKey")


class SwaggerConfig(BaseModel):
    """Where the spec lives and how to reach the API it describes."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = DEFAULT_SPEC_URL
    # Falls back to the base URL declared by the spec
    api_base_url: Optional[str] = Field(default=None, alias="apiBaseUrl")
    default_auth: Optional[AuthInput] = Field(default=None, alias="defaultAuth")


class LogConfig(BaseModel):
    level: Literal["debug", "info", "warn", "warning", "error"] = DEFAULT_LOG_LEVEL


class ServerConfig(BaseModel):
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


class AppConfig(BaseModel):
    """Configuration for a Swagger MCP server."""

    swagger: SwaggerConfig = Field(default_factory=SwaggerConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the file's key names."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def default_config() -> AppConfig:
    """The configuration used when none is available: the public Petstore."""
    return AppConfig(
        swagger=SwaggerConfig(
            url=DEFAULT_SPEC_URL,
            api_base_url=DEFAULT_API_BASE_URL,
            default_auth=ApiKeyAuth(
                api_key=DEFAULT_API_KEY,
                api_key_name=DEFAULT_API_KEY_NAME,
                api_key_in="header",
            ),
        )
    )


def write_default_config(path: str) -> str:
    """Write the default configuration as JSON.

    Args:
        path: Destination file

    Returns:
        The path written
    """
    with open(path, "w") as f:
        json.dump(default_config().to_dict(), f, indent=2)
    return path


def substitute_auth_env_vars(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """Replace `{VAR}` references in the default auth credentials, in place."""
    swagger = config_data.get("swagger") if isinstance(config_data, dict) else None
    if not isinstance(swagger, dict):
        return config_data

    auth_config = swagger.get("defaultAuth")
    if isinstance(auth_config, dict):
        for key in _AUTH_SECRET_FIELDS:
            if key in auth_config:
                auth_config[key] = substitute_env_vars(auth_config[key])
    return config_data


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load the server configuration.

    Without a path, ``config.json`` in the working directory is used and
    created with the defaults when missing. A missing, unreadable or invalid
    file is logged and the defaults are returned.

    Args:
        config_path: Path to a JSON configuration file

    Returns:
        The configuration
    """
    try:
        if not config_path:
            config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if not os.path.exists(config_path):
                write_default_config(config_path)
                logger.info(f"Created default configuration file at {config_path}")

        with open(config_path, "r") as f:
            config_data = json.load(f)

        return AppConfig.model_validate(substitute_auth_env_vars(config_data))
    except ValidationError as e:
        logger.error(f"Invalid configuration in {config_path}: {e}")
    except (OSError, ValueError) as e:
        logger.error(f"Error loading configuration from {config_path}: {e}")

    logger.info("Using default configuration")
    return default_config()
