"""
Name: Utility functions.
Description: Common utility functions for Swagger MCP, including logging setup, loading OpenAPI specs from files or URLs, and environment variable substitution.
"""

import json
import logging
import os
import sys
from typing import Any, Dict, Optional, Union

import requests
import yaml

from .constants import DEFAULT_SPEC_FETCH_TIMEOUT, LOG_FORMAT

# Configure logging
logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: Union[str, int] = logging.INFO):
    """Configure logging for the application.

    Args:
        level: A logging level or one of "debug", "info", "warn", "error"
    """
    if isinstance(level, str):
        logging_level = _LEVELS.get(level.lower(), logging.INFO)
    else:
        logging_level = level

    root_logger = logging.getLogger()
    root_logger.setLevel(logging_level)

    # Check if handlers are already configured to prevent duplicates
    if root_logger.handlers:
        for handler in root_logger.handlers:
            if isinstance(handler, logging.StreamHandler):
                handler.setLevel(logging_level)
        return

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)


def load_spec_from_file(file_path: str) -> Dict[str, Any]:
    """Load OpenAPI spec from a file.

    Args:
        file_path: Path to the OpenAPI spec file

    Returns:
        Dict containing the OpenAPI spec
    """
    _, ext = os.path.splitext(file_path)
    with open(file_path, "r") as f:
        if ext.lower() in (".yaml", ".yml"):
            return yaml.safe_load(f)
        elif ext.lower() == ".json":
            return json.load(f)
        else:
            raise ValueError(f"Unsupported file extension: {ext}")


def load_spec_from_url(
    url: str, headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Load OpenAPI spec from a URL.

    Args:
        url: URL to the OpenAPI spec
        headers: Optional request headers (e.g. credentials)

    Returns:
        Dict containing the OpenAPI spec
    """
    response = requests.get(url, headers=headers or {}, timeout=DEFAULT_SPEC_FETCH_TIMEOUT)
    response.raise_for_status()
    content_type = response.headers.get("Content-Type", "")

    if "application/json" in content_type:
        return response.json()
    elif "yaml" in content_type or url.endswith((".yaml", ".yml")):
        return yaml.safe_load(response.text)
    else:
        # Try to parse as JSON first, then fall back to YAML
        try:
            return response.json()
        except ValueError:
            try:
                return yaml.safe_load(response.text)
            except yaml.YAMLError:
                raise ValueError("Unable to parse response as JSON or YAML")


def substitute_env_vars(value: Optional[str]) -> Optional[str]:
    """Substitute environment variables in a string.

    Handles `{VAR_NAME}`.
    Keeps the original placeholder if the environment variable is not found.

    Args:
        value: String potentially containing environment variable references

    Returns:
        String with environment variables substituted
    """
    if not value or not isinstance(value, str) or "{" not in value:
        return value

    try:
        return value.format(**os.environ)
    except KeyError as e:
        logger.warning(f"Environment variable not found in environment: {e}")
    except (IndexError, ValueError) as e:
        logger.warning(f"Error substituting env vars: {e}")

    return value


def setup_environment(level: Union[str, int] = logging.INFO):
    """Setup the environment for the application.

    - Configures logging
    - Loads environment variables from .env file
    """
    from dotenv import load_dotenv

    configure_logging(level)
    load_dotenv()
    logger.debug("Loaded environment variables from .env file")
