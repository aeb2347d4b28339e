"""Authentication helpers for OpenAPI tools.

Builds the per-operation ``auth`` input model from the spec's security
schemes, and turns a caller's AuthInput into request headers and query
parameters.
"""

import base64
import logging
from typing import Any, Dict, Iterable, List, Literal, NamedTuple, Optional, Tuple

from pydantic import ConfigDict, Field, create_model

from ..models import (
    ApiKeyAuth,
    AuthInput,
    BasicAuth,
    BearerAuth,
    CookieAuth,
    OAuth2Auth,
    SecurityScheme,
    SecuritySchemeKind,
)
from ..schema import model_name

logger = logging.getLogger(__name__)


class AuthSchema(NamedTuple):
    """The ``auth`` input model generated for one operation."""

    model: type
    description: str
    auth_types: List[str]


class AuthSchemaBuilder:
    """Derives an operation's auth input model from the registered schemes."""

    def __init__(self, security_schemes: Dict[str, SecurityScheme]):
        """Initialize the builder.

        Args:
            security_schemes: Registered schemes keyed by name, in spec order
        """
        self.security_schemes = security_schemes

    def build(self, operation_id: str, required_schemes: Iterable[str]) -> AuthSchema:
        """Build the auth input model for an operation.

        A scheme's fields are required when the operation lists the scheme, or
        when no earlier scheme has contributed a required field. Bearer and
        oauth2 tokens only follow the first rule, and the oauth2 token is
        always optional once an apiKey field exists.

        Args:
            operation_id: Tool name, used for the model name
            required_schemes: Scheme keys satisfying the operation's security

        Returns:
            AuthSchema with the model, its documentation and the auth types
        """
        required = set(required_schemes)
        auth_types: List[str] = ["none"]
        # name -> (annotation, required, default)
        fields: Dict[str, Tuple[Any, bool, Optional[str]]] = {}
        required_contributed = False
        api_key_added = False

        for key, scheme in self.security_schemes.items():
            is_required = key in required
            field_required = False

            if scheme.kind == SecuritySchemeKind.basic:
                field_required = is_required or not required_contributed
                fields["username"] = (str, field_required, None)
                fields["password"] = (str, field_required, None)

            elif scheme.kind == SecuritySchemeKind.bearer:
                field_required = is_required
                fields["token"] = (str, field_required, None)

            elif scheme.kind == SecuritySchemeKind.apiKey:
                field_required = is_required or not required_contributed
                fields["apiKey"] = (str, field_required, None)
                api_key_added = True
                if scheme.location and scheme.name:
                    fields["apiKeyIn"] = (
                        Literal["header", "query"],
                        False,
                        scheme.location,
                    )
                    fields["apiKeyName"] = (str, False, scheme.name)

            elif scheme.kind == SecuritySchemeKind.oauth2:
                field_required = is_required and not api_key_added
                fields["token"] = (str, field_required, None)

            required_contributed = required_contributed or field_required
            if scheme.kind.value not in auth_types:
                auth_types.append(scheme.kind.value)

        description = self.describe(auth_types, required)

        model_fields: Dict[str, Any] = {
            "type": (Literal[tuple(auth_types)], Field(..., description="Authentication method")),
        }
        for name, (annotation, field_required, default) in fields.items():
            if field_required:
                model_fields[name] = (annotation, Field(...))
            else:
                model_fields[name] = (Optional[annotation], Field(default))

        model = create_model(
            model_name(operation_id, "Auth"),
            __config__=ConfigDict(extra="ignore"),
            __doc__=description,
            **model_fields,
        )
        return AuthSchema(model=model, description=description, auth_types=auth_types)

    def describe(self, auth_types: List[str], required: Iterable[str]) -> str:
        required = set(required)
        details = ". ".join(
            f"{key}: {scheme.label}{' (Required)' if key in required else ' (Optional)'}"
            for key, scheme in self.security_schemes.items()
        )
        return (
            f"Authentication configuration. Available methods: {', '.join(auth_types)}. "
            + details
        )


def resolve_auth(
    auth: Optional[AuthInput],
    session_cookie: Optional[str] = None,
    default_api_key_name: Optional[str] = None,
) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Convert an AuthInput to request headers and query parameters.

    Args:
        auth: The effective auth for the call
        session_cookie: Cached session cookie, used by cookie auth
        default_api_key_name: apiKey name used when the input carries none

    Returns:
        Tuple: (headers, query parameters)
    """
    if auth is None:
        return {}, {}

    if isinstance(auth, CookieAuth):
        if session_cookie:
            return {"Cookie": session_cookie}, {}
        return {}, {}

    if isinstance(auth, BasicAuth):
        if auth.username and auth.password:
            credentials = base64.b64encode(
                f"{auth.username}:{auth.password}".encode()
            ).decode()
            return {"Authorization": f"Basic {credentials}"}, {}
        return {}, {}

    if isinstance(auth, (BearerAuth, OAuth2Auth)):
        if auth.token:
            return {"Authorization": f"Bearer {auth.token}"}, {}
        return {}, {}

    if isinstance(auth, ApiKeyAuth):
        if not auth.api_key:
            return {}, {}
        name = auth.api_key_name or default_api_key_name
        if not name:
            logger.warning("apiKey auth supplied without a key name; not sending it")
            return {}, {}
        if auth.api_key_in == "query":
            return {}, {name: auth.api_key}
        return {name: auth.api_key}, {}

    # none
    return {}, {}
