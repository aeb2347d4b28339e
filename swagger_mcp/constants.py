"""
Name: Constants and settings.
Description: Centralized location for constants and default settings used throughout Swagger MCP.
"""


# Configuration file
DEFAULT_CONFIG_FILE = "config.json"

# Default upstream (public Petstore)
DEFAULT_SPEC_URL = "https://petstore.swagger.io/v2/swagger.json"
DEFAULT_API_BASE_URL = "https://petstore.swagger.io/v2"
DEFAULT_API_KEY = "special-key"
DEFAULT_API_KEY_NAME = "api_key"

# Logging
DEFAULT_LOG_LEVEL = "info"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Server settings
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_SERVER_NAME = "Swagger API MCP Server"
DEFAULT_SERVER_VERSION = "1.0.0"
SSE_PATH = "/sse"
HEALTH_PATH = "/health"

# Outbound HTTP
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_SPEC_FETCH_TIMEOUT = 30

# HTTP methods that can appear as operations in a path item
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Methods that accept a JSON requestBody field
BODY_METHODS = ("post", "put", "patch")

# Methods that get a JSON Content-Type header
MUTATING_METHODS = ("post", "put", "patch", "delete")

# Reserved input field names
AUTH_FIELD = "auth"
REQUEST_BODY_FIELD = "requestBody"

STATUS_LINE_PREFIX = "HTTP Status Code: "
