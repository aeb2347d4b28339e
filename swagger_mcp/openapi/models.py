"""Common models for OpenAPI tools."""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ApiParameter(BaseModel):
    """Parameter for an API request."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    required: bool = False
    location: str  # path, query, header, cookie, body, formData
    schema_definition: Dict[str, Any] = {}


class ApiEndpoint(BaseModel):
    """Endpoint for an API request."""

    model_config = ConfigDict(frozen=True)

    operation_id: str
    method: str
    path: str
    summary: str = ""
    description: str = ""
    parameters: List[ApiParameter] = []
    request_body: Optional[Dict[str, Any]] = None
    # Security scheme keys that satisfy this operation; empty means no auth
    required_schemes: List[str] = []

    def parameters_in(self, location: str) -> List[ApiParameter]:
        return [param for param in self.parameters if param.location == location]


class SecuritySchemeKind(str, Enum):
    """Kinds of authentication a tool understands."""

    basic = "basic"
    bearer = "bearer"
    apiKey = "apiKey"
    oauth2 = "oauth2"
    cookie = "cookie"


class SecurityScheme(BaseModel):
    """A security scheme declared by the spec, normalized to a kind."""

    model_config = ConfigDict(frozen=True)

    key: str
    kind: SecuritySchemeKind
    declared_type: str
    location: Optional[Literal["header", "query"]] = None  # apiKey only
    name: Optional[str] = None
    description: str = ""

    @property
    def label(self) -> str:
        """Human description used in auth documentation."""
        return self.description or self.declared_type


class _AuthBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class NoAuth(_AuthBase):
    type: Literal["none"] = "none"


class BasicAuth(_AuthBase):
    type: Literal["basic"] = "basic"
    username: Optional[str] = None
    password: Optional[str] = None


class BearerAuth(_AuthBase):
    type: Literal["bearer"] = "bearer"
    token: Optional[str] = None


class ApiKeyAuth(_AuthBase):
    type: Literal["apiKey"] = "apiKey"
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    api_key_in: Optional[Literal["header", "query"]] = Field(
        default=None, alias="apiKeyIn"
    )
    api_key_name: Optional[str] = Field(default=None, alias="apiKeyName")


class OAuth2Auth(_AuthBase):
    type: Literal["oauth2"] = "oauth2"
    token: Optional[str] = None


class CookieAuth(_AuthBase):
    type: Literal["cookie"] = "cookie"


AuthInput = Annotated[
    Union[NoAuth, BasicAuth, BearerAuth, ApiKeyAuth, OAuth2Auth, CookieAuth],
    Field(discriminator="type"),
]

AUTH_INPUT_ADAPTER = TypeAdapter(AuthInput)


def parse_auth_input(data: Dict[str, Any]) -> AuthInput:
    """Convert a validated auth mapping into its tagged AuthInput variant."""
    return AUTH_INPUT_ADAPTER.validate_python(data)


class ToolResult(BaseModel):
    """Normalized outcome of a tool invocation, as text segments."""

    segments: List[str]
    is_error: bool = False
    status_code: Optional[int] = None

    @property
    def text(self) -> str:
        return "\n".join(self.segments)
