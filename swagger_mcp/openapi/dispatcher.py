"""
Name: Request dispatcher.
Description: Turns a tool's validated input into an outbound HTTP request (path substitution, query serialization, body placement and auth injection), executes it with httpx and normalizes the response or failure into a ToolResult.
"""

import json
import logging
import re
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Tuple
from urllib.parse import quote

import httpx

from ..constants import (
    AUTH_FIELD,
    DEFAULT_REQUEST_TIMEOUT,
    MUTATING_METHODS,
    REQUEST_BODY_FIELD,
    STATUS_LINE_PREFIX,
)
from .auth import SessionAuthCache, resolve_auth
from .models import ApiEndpoint, AuthInput, ToolResult, parse_auth_input

if TYPE_CHECKING:
    from .tools import RestApiTool

logger = logging.getLogger(__name__)

_PATH_PARAM = re.compile(r"\{([^{}/]+)\}")


def extract_path_params(path: str) -> Set[str]:
    """Names of the ``{name}`` segments of a path template."""
    return set(_PATH_PARAM.findall(path))


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


def substitute_path(path: str, values: Dict[str, Any]) -> str:
    """Fill a path template with percent-encoded values.

    Raises:
        KeyError: If a path parameter has no value
    """

    def replace(match):
        name = match.group(1)
        if values.get(name) is None:
            raise KeyError(name)
        return quote(_stringify(values[name]), safe="!'()*")

    return _PATH_PARAM.sub(replace, path)


def serialize_query(query: Dict[str, Any]) -> List[Tuple[str, str]]:
    """Flatten a query object into key/value pairs.

    Sequences become repeated pairs in order (``k=a&k=b``); None is dropped.
    """
    pairs: List[Tuple[str, str]] = []
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _stringify(item)) for item in value if item is not None)
        else:
            pairs.append((key, _stringify(value)))
    return pairs


def format_body(response: httpx.Response) -> str:
    """Pretty-print a response body; non-JSON bodies become a JSON string."""
    try:
        data = response.json()
    except ValueError:
        data = response.text
    return json.dumps(data, indent=2, ensure_ascii=False)


def create_client(
    timeout: float = DEFAULT_REQUEST_TIMEOUT, **kwargs: Any
) -> httpx.AsyncClient:
    """Create the shared HTTP client.

    The client follows redirects and refuses to store cookies; session
    cookies live in SessionAuthCache and are only sent with cookie auth.

    Args:
        timeout: Timeout in seconds for each request
        **kwargs: Extra httpx.AsyncClient arguments (e.g. ``transport``)
    """
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
        **kwargs,
    )


class RequestDispatcher:
    """Executes tool calls against one upstream API."""

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        session: Optional[SessionAuthCache] = None,
        default_auth: Optional[AuthInput] = None,
        default_api_key_name: Optional[str] = None,
    ):
        """Initialize the dispatcher.

        Args:
            base_url: Base URL every path template is appended to
            client: Shared HTTP client
            session: Session cookie cache for this upstream target
            default_auth: Auth used when a call supplies none
            default_api_key_name: apiKey name used when an apiKey auth has none
        """
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.session = session or SessionAuthCache()
        self.default_auth = default_auth
        self.default_api_key_name = default_api_key_name

    def effective_auth(
        self, auth: Any, endpoint: ApiEndpoint
    ) -> Optional[AuthInput]:
        """Per-call auth when given, else the default for secured operations."""
        if auth:
            if isinstance(auth, dict):
                return parse_auth_input(auth)
            return auth
        if not endpoint.required_schemes:
            return None
        return self.default_auth

    def build_request(
        self, endpoint: ApiEndpoint, arguments: Dict[str, Any]
    ) -> Tuple[str, str, Dict[str, str], List[Tuple[str, str]], Any]:
        """Build (method, url, headers, query pairs, json body) for a call.

        Raises:
            KeyError: If a path parameter has no value
        """
        params = dict(arguments)
        auth = params.pop(AUTH_FIELD, None)
        request_body = params.pop(REQUEST_BODY_FIELD, None)
        method = endpoint.method.lower()

        path_names = extract_path_params(endpoint.path)
        url = self.base_url + substitute_path(endpoint.path, params)

        header_names = {p.name for p in endpoint.parameters_in("header")}
        body_names = [p.name for p in endpoint.parameters_in("body")]

        headers: Dict[str, str] = {
            name: _stringify(params[name])
            for name in header_names
            if params.get(name) is not None
        }

        query: Dict[str, Any] = {}
        if method == "get":
            excluded = path_names | header_names | set(body_names)
            query = {k: v for k, v in params.items() if k not in excluded}

        auth_headers, auth_query = resolve_auth(
            self.effective_auth(auth, endpoint),
            session_cookie=self.session.cookie,
            default_api_key_name=self.default_api_key_name,
        )
        headers.update(auth_headers)
        if method in MUTATING_METHODS:
            headers["Content-Type"] = "application/json"
        query.update(auth_query)

        body = None
        if method != "get":
            body = request_body
            if body is None and body_names:
                body = params.get(body_names[0])

        return method.upper(), url, headers, serialize_query(query), body

    async def invoke(self, tool: "RestApiTool", arguments: Dict[str, Any]) -> ToolResult:
        """Execute a tool call. Failures are returned, never raised.

        Args:
            tool: The tool being called
            arguments: Validated input (external parameter names)

        Returns:
            ToolResult with the response body and status, or an error text
        """
        try:
            method, url, headers, query, body = self.build_request(
                tool.endpoint, arguments
            )
        except KeyError as e:
            logger.warning(f"Tool '{tool.name}' called without path parameter {e}")
            return ToolResult(
                segments=[f"Error: missing value for path parameter {e}"],
                is_error=True,
            )

        logger.debug(f"{tool.name}: {method} {url}")

        try:
            response = await self.client.request(
                method, url, params=query, headers=headers, json=body
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"{tool.name}: upstream returned HTTP {status}")
            return ToolResult(
                segments=[f"Error {status}: {format_body(e.response)}"],
                is_error=True,
                status_code=status,
            )
        except httpx.HTTPError as e:
            logger.error(f"{tool.name}: request to {url} failed: {e!r}")
            return ToolResult(
                segments=[f"Error: {str(e) or e.__class__.__name__}"], is_error=True
            )
        except Exception as e:
            logger.exception(f"{tool.name}: unexpected error during request")
            return ToolResult(segments=[f"Error: {e}"], is_error=True)

        self.session.capture(response.headers.get_list("set-cookie"))

        return ToolResult(
            segments=[
                format_body(response),
                f"{STATUS_LINE_PREFIX}{response.status_code}",
            ],
            status_code=response.status_code,
        )
