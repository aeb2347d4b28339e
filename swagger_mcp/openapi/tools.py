"""
Name: OpenAPI tools.
Description: Implements RestApiTool and OpenAPIToolkit classes that turn every operation of an OpenAPI specification into a schema-validated tool, plus the FastMCPOpenAPITool bridge that exposes them through FastMCP.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import httpx
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import Tool
from fastmcp.tools.tool import ToolResult as MCPToolResult
from mcp.types import TextContent
from pydantic import ValidationError

from ..constants import (
    AUTH_FIELD,
    BODY_METHODS,
    DEFAULT_REQUEST_TIMEOUT,
    REQUEST_BODY_FIELD,
)
from .auth import AuthSchema, AuthSchemaBuilder, SessionAuthCache
from .dispatcher import RequestDispatcher, create_client
from .exceptions import InputValidationError
from .models import (
    ApiEndpoint,
    ApiParameter,
    AuthInput,
    SecuritySchemeKind,
    ToolResult,
    parse_auth_input,
)
from .schema import SchemaSynthesizer, build_input_model, model_name
from .spec import OpenAPISpecParser

logger = logging.getLogger(__name__)

# Parameter keys that describe placement rather than the value's type
_PARAMETER_META_KEYS = ("name", "in", "required", "description")


class RestApiTool:
    """Tool for making requests to a REST API endpoint."""

    def __init__(
        self,
        name: str,
        description: str,
        endpoint: ApiEndpoint,
        input_model: type,
        auth_schema: AuthSchema,
        dispatcher: RequestDispatcher,
    ):
        """Initialize a REST API tool.

        Args:
            name: Name of the tool (the operation id)
            description: Description of the tool
            endpoint: API endpoint details
            input_model: Pydantic model validating the tool's input
            auth_schema: The operation's auth input model
            dispatcher: Dispatcher executing the HTTP calls
        """
        self.name = name
        self.description = description
        self.endpoint = endpoint
        self.input_model = input_model
        self.auth_schema = auth_schema
        self.dispatcher = dispatcher

    def to_schema(self) -> Dict[str, Any]:
        """Convert the tool to a schema for LLM function calling.

        Returns:
            A schema for the tool
        """
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.input_model.model_json_schema(by_alias=True),
        }

    def validate_input(self, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Validate call input against the tool's input model.

        Args:
            arguments: Raw input keyed by the spec's parameter names

        Returns:
            The validated input keyed by the spec's names. Values the caller
            did not send are left out; explicit nulls are kept.

        Raises:
            InputValidationError: If the input does not match the model
        """
        try:
            validated = self.input_model.model_validate(arguments or {})
        except ValidationError as e:
            raise InputValidationError(self.name, e) from e

        data = validated.model_dump(by_alias=True, exclude_unset=True, mode="json")
        # Auth keeps its defaults (apiKeyIn, apiKeyName)
        auth = getattr(validated, AUTH_FIELD, None)
        if auth is not None:
            data[AUTH_FIELD] = auth.model_dump(
                by_alias=True, exclude_none=True, mode="json"
            )
        return data

    def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the API request (synchronous wrapper).

        Args:
            **kwargs: Parameters for the API request

        Returns:
            The normalized tool result
        """
        import anyio

        async def _execute():
            return await self.execute_async(**kwargs)

        return anyio.run(_execute)

    async def execute_async(self, **kwargs: Any) -> ToolResult:
        """Validate the input and execute the API request.

        Args:
            **kwargs: Parameters for the API request

        Returns:
            The normalized tool result

        Raises:
            InputValidationError: If the input does not match the model; no
                request is made in that case
        """
        arguments = self.validate_input(kwargs)
        return await self.dispatcher.invoke(self, arguments)


class OpenAPIToolkit:
    """Toolkit for creating tools from an OpenAPI specification."""

    def __init__(
        self,
        spec: Dict[str, Any],
        base_url: Optional[str] = None,
        default_auth: Optional[Union[AuthInput, Dict[str, Any]]] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize an OpenAPI toolkit.

        Args:
            spec: Dereferenced OpenAPI specification as a dictionary
            base_url: Base URL for API calls; defaults to the one the spec declares
            default_auth: Auth used by secured operations when a call supplies none
            timeout: Timeout in seconds for outbound calls
            client: HTTP client to use instead of creating one

        Raises:
            SchemaResolutionError: If any operation's schema cannot be built;
                no tools are published in that case
        """
        self.spec_parser = OpenAPISpecParser(spec)
        self.base_url = (base_url or self.spec_parser.get_base_url()).rstrip("/")
        if not self.base_url:
            logger.warning("No base URL configured or declared by the spec")

        self.security_schemes = self.spec_parser.get_security_schemes()
        if isinstance(default_auth, dict):
            default_auth = parse_auth_input(default_auth)
        self.default_auth = default_auth

        self.session = SessionAuthCache()
        self._client = client or create_client(timeout)
        self.dispatcher = RequestDispatcher(
            self.base_url,
            self._client,
            session=self.session,
            default_auth=default_auth,
            default_api_key_name=self._default_api_key_name(),
        )

        self._synthesizer = SchemaSynthesizer(spec)
        self._auth_builder = AuthSchemaBuilder(self.security_schemes)

        # Create tools
        self.tools: Dict[str, RestApiTool] = {}
        self._create_tools()

    async def aclose(self):
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()

    def _default_api_key_name(self) -> Optional[str]:
        for scheme in self.security_schemes.values():
            if scheme.kind == SecuritySchemeKind.apiKey and scheme.name:
                return scheme.name
        return None

    def _create_tools(self):
        """Create one tool per operation of the OpenAPI specification."""
        count = 0
        for path, method, operation, shared_parameters in self.spec_parser.get_operations():
            logger.debug(f"Processing operation {method.upper()} {path}")
            tool = self._create_tool(path, method, operation, shared_parameters)
            if tool.name in self.tools:
                logger.debug(
                    f"Operation id '{tool.name}' is declared more than once; "
                    f"{method.upper()} {path} replaces the earlier tool"
                )
            self.tools[tool.name] = tool
            count += 1

        logger.info(f"Registered {len(self.tools)} tools from {count} operations")

    def _create_tool(
        self,
        path: str,
        method: str,
        operation: Dict[str, Any],
        shared_parameters: List[Dict[str, Any]],
    ) -> RestApiTool:
        operation_id = operation.get("operationId") or f"{method}-{path}"
        summary = operation.get("summary") or f"{method.upper()} {path}"
        description = f"{summary}\n\n{operation.get('description') or ''}"

        parameter_specs = merge_parameters(shared_parameters, operation.get("parameters"))
        required_schemes = self.spec_parser.get_operation_requirements(operation)
        auth_schema = self._auth_builder.build(operation_id, required_schemes)

        entries: List[Tuple[str, Any, bool, str]] = [
            (AUTH_FIELD, auth_schema.model, False, auth_schema.description)
        ]

        request_body = operation.get("requestBody")
        body_schema = json_body_schema(request_body) if method in BODY_METHODS else None
        if body_schema is not None:
            annotation, body_description = self._synthesizer.resolve_type(
                body_schema, model_name(operation_id, "Body")
            )
            entries.append(
                (
                    REQUEST_BODY_FIELD,
                    annotation,
                    bool(request_body.get("required")),
                    body_description or request_body.get("description") or "",
                )
            )

        parameters: List[ApiParameter] = []
        for param_spec in parameter_specs:
            location = param_spec.get("in", "query")
            if location == "formData":
                logger.debug(
                    f"Skipping formData parameter '{param_spec['name']}' of {operation_id}"
                )
                continue

            annotation, param_description = self._synthesizer.resolve_type(
                param_spec, model_name(operation_id, param_spec["name"])
            )
            required = bool(param_spec.get("required")) or location == "path"
            entries.append((param_spec["name"], annotation, required, param_description))
            parameters.append(
                ApiParameter(
                    name=param_spec["name"],
                    description=param_description,
                    required=required,
                    location=location,
                    schema_definition=parameter_schema(param_spec),
                )
            )

        endpoint = ApiEndpoint(
            operation_id=operation_id,
            method=method,
            path=path,
            summary=operation.get("summary") or "",
            description=operation.get("description") or "",
            parameters=parameters,
            request_body=request_body if isinstance(request_body, dict) else None,
            required_schemes=required_schemes,
        )

        return RestApiTool(
            name=operation_id,
            description=description,
            endpoint=endpoint,
            input_model=build_input_model(operation_id, entries),
            auth_schema=auth_schema,
            dispatcher=self.dispatcher,
        )

    def get_tools(self) -> List[RestApiTool]:
        """Get all tools from the toolkit.

        Returns:
            A list of REST API tools
        """
        return list(self.tools.values())

    def get_tool(self, name: str) -> Optional[RestApiTool]:
        """Get a tool by name.

        Args:
            name: Name of the tool

        Returns:
            The tool if found, None otherwise
        """
        return self.tools.get(name)


def merge_parameters(
    shared: Optional[Iterable[Dict[str, Any]]],
    own: Optional[Iterable[Dict[str, Any]]],
) -> List[Dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    An operation parameter replaces a path-level one with the same name and
    location.
    """
    merged: Dict[Tuple[str, str], Dict[str, Any]] = {}
    for param in list(shared or []) + list(own or []):
        if not isinstance(param, dict) or not param.get("name"):
            continue
        merged[(param["name"], param.get("in", "query"))] = param
    return list(merged.values())


def parameter_schema(param_spec: Dict[str, Any]) -> Dict[str, Any]:
    """Schema of a parameter: its ``schema`` node, or its inline type keys."""
    if isinstance(param_spec.get("schema"), dict):
        return param_spec["schema"]
    return {k: v for k, v in param_spec.items() if k not in _PARAMETER_META_KEYS}


def json_body_schema(request_body: Any) -> Optional[Dict[str, Any]]:
    """Schema of the JSON media type of a requestBody, if it declares one."""
    if not isinstance(request_body, dict):
        return None
    for content_type, media in (request_body.get("content") or {}).items():
        if "json" in content_type.lower() and isinstance(media, dict):
            return media.get("schema") or {}
    return None


class FastMCPOpenAPITool(Tool):
    """Bridges RestApiTool -> FastMCP Tool object."""

    def __init__(self, rest_tool: RestApiTool):
        """Initialize a FastMCPOpenAPITool.

        Args:
            rest_tool: RestApiTool instance to wrap
        """
        super().__init__(
            name=rest_tool.name,
            description=rest_tool.description,
            parameters=rest_tool.to_schema()["parameters"],
        )
        self._rest_tool = rest_tool

    async def run(self, arguments: Dict[str, Any]) -> MCPToolResult:
        """Execute the tool asynchronously.

        Args:
            arguments: Parameters for the tool

        Returns:
            Tool execution result as MCP-compatible content
        """
        try:
            result = await self._rest_tool.execute_async(**arguments)
        except InputValidationError as e:
            raise ToolError(str(e)) from e

        return MCPToolResult(
            content=[TextContent(type="text", text=segment) for segment in result.segments]
        )
