"""Authentication support for OpenAPI tools."""

from .auth_helpers import AuthSchema, AuthSchemaBuilder, resolve_auth
from .session import SessionAuthCache

__all__ = ["AuthSchema", "AuthSchemaBuilder", "SessionAuthCache", "resolve_auth"]
