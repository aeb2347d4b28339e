"""
Name: OpenAPI specification loader and parser.
Description: Loads Swagger 2 / OpenAPI 3 documents from a URL or a file, inlines internal $ref pointers, and provides the OpenAPISpecParser class for extracting operations, base URLs, security schemes and per-operation security requirements.
"""

import copy
import logging
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple
from urllib.parse import unquote

from ..constants import HTTP_METHODS
from ..utils import load_spec_from_file, load_spec_from_url
from .exceptions import SchemaResolutionError, SpecLoadError
from .models import SecurityScheme, SecuritySchemeKind

logger = logging.getLogger(__name__)


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_spec(source: str, headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Fetch or read a spec and return it fully dereferenced.

    Args:
        source: URL or local path of a JSON/YAML OpenAPI or Swagger document
        headers: Extra headers sent when fetching over the network

    Returns:
        The dereferenced spec as a dictionary

    Raises:
        SpecLoadError: If the document cannot be fetched or parsed
        SchemaResolutionError: If an internal reference cannot be resolved
    """
    try:
        if is_url(source):
            spec = load_spec_from_url(source, headers=headers)
        else:
            spec = load_spec_from_file(source)
    except Exception as e:
        raise SpecLoadError(f"Failed to load spec from {source}: {e}") from e

    if not isinstance(spec, dict) or not isinstance(spec.get("paths"), dict):
        raise SpecLoadError(f"Document at {source} is not an OpenAPI/Swagger spec")

    return dereference_spec(spec)


def _unescape_pointer(part: str) -> str:
    return unquote(part).replace("~1", "/").replace("~0", "~")


def resolve_pointer(document: Any, ref: str) -> Any:
    """Walk a local JSON pointer such as ``#/components/schemas/Pet``.

    Raises:
        SchemaResolutionError: For non-local or dangling references
    """
    if not ref.startswith("#"):
        raise SchemaResolutionError(f"External references not supported: {ref}")

    current = document
    for raw_part in ref[1:].lstrip("/").split("/"):
        if raw_part == "":
            continue
        part = _unescape_pointer(raw_part)
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            raise SchemaResolutionError(f"Unresolvable reference: {ref}")
    return current


def dereference_spec(spec: Dict[str, Any]) -> Dict[str, Any]:
    """Inline every internal $ref of a spec.

    A reference that would re-enter one already being expanded is left as a
    ``$ref`` node, which keeps the document finite.

    Args:
        spec: The raw spec

    Returns:
        A dereferenced deep copy of the spec
    """
    document = copy.deepcopy(spec)
    resolved_cache: Dict[str, Any] = {}

    def recursive_resolve(obj: Any, expanding: Tuple[str, ...]) -> Any:
        if isinstance(obj, dict):
            ref = obj.get("$ref")
            if isinstance(ref, str):
                if ref in expanding:
                    logger.debug(f"Leaving circular reference in place: {ref}")
                    return dict(obj)
                if ref in resolved_cache:
                    return copy.deepcopy(resolved_cache[ref])

                target = resolve_pointer(document, ref)
                resolved = recursive_resolve(target, expanding + (ref,))
                resolved_cache[ref] = resolved
                return copy.deepcopy(resolved)

            return {key: recursive_resolve(value, expanding) for key, value in obj.items()}

        if isinstance(obj, list):
            return [recursive_resolve(item, expanding) for item in obj]

        return obj

    return recursive_resolve(document, ())


def _normalize_scheme(key: str, raw: Dict[str, Any]) -> Optional[SecurityScheme]:
    declared_type = raw.get("type", "")
    description = raw.get("description") or ""
    http_scheme = str(raw.get("scheme", "")).lower()

    if declared_type == "basic" or (declared_type == "http" and http_scheme == "basic"):
        kind = SecuritySchemeKind.basic
    elif declared_type == "bearer" or (declared_type == "http" and http_scheme == "bearer"):
        kind = SecuritySchemeKind.bearer
    elif declared_type == "apiKey":
        location = raw.get("in")
        if location == "cookie":
            return SecurityScheme(
                key=key,
                kind=SecuritySchemeKind.cookie,
                declared_type=declared_type,
                name=raw.get("name"),
                description=description,
            )
        return SecurityScheme(
            key=key,
            kind=SecuritySchemeKind.apiKey,
            declared_type=declared_type,
            location=location if location in ("header", "query") else None,
            name=raw.get("name"),
            description=description,
        )
    elif declared_type == "oauth2":
        kind = SecuritySchemeKind.oauth2
    else:
        logger.debug(f"Skipping unsupported security scheme '{key}' ({declared_type})")
        return None

    return SecurityScheme(
        key=key, kind=kind, declared_type=declared_type, description=description
    )


def extract_security_schemes(spec: Dict[str, Any]) -> Dict[str, SecurityScheme]:
    """Extract the declared security schemes, keyed by scheme name.

    ``components.securitySchemes`` (OpenAPI 3) is preferred over the legacy
    ``securityDefinitions`` (Swagger 2) when both are present.
    """
    raw_schemes = (spec.get("components") or {}).get("securitySchemes")
    if not raw_schemes:
        raw_schemes = spec.get("securityDefinitions") or {}

    schemes: Dict[str, SecurityScheme] = {}
    for key, raw in raw_schemes.items():
        if not isinstance(raw, dict):
            continue
        scheme = _normalize_scheme(key, raw)
        if scheme is not None:
            schemes[key] = scheme
    return schemes


class OpenAPISpecParser:
    """Parser for OpenAPI specifications."""

    def __init__(self, spec: Dict[str, Any]):
        """Initialize the parser with a dereferenced OpenAPI spec.

        Args:
            spec: The OpenAPI spec as a dictionary
        """
        self.spec = spec
        self._security_schemes = extract_security_schemes(spec)

    def get_info(self) -> Dict[str, Any]:
        return self.spec.get("info") or {}

    def get_base_url(self) -> str:
        """Get the base URL from the OpenAPI spec.

        Returns:
            The base URL for API requests, without a trailing slash
        """
        servers = self.spec.get("servers") or []
        if servers:
            return str(servers[0].get("url", "")).rstrip("/")

        host = self.spec.get("host")
        if not host:
            return ""
        schemes = self.spec.get("schemes") or ["https"]
        scheme = "https" if "https" in schemes else schemes[0]
        base_path = self.spec.get("basePath", "")
        return f"{scheme}://{host}{base_path}".rstrip("/")

    def get_operations(
        self,
    ) -> Iterator[Tuple[str, str, Dict[str, Any], List[Dict[str, Any]]]]:
        """Iterate over every (path, method) operation in the spec.

        Structural path-item entries ($ref, parameters, summary, ...) are skipped.

        Yields:
            (path, method, operation, path-level parameters)
        """
        for path, path_item in (self.spec.get("paths") or {}).items():
            if not isinstance(path_item, dict):
                continue
            shared_parameters = path_item.get("parameters") or []
            for method, operation in path_item.items():
                if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                    continue
                yield path, method.lower(), operation, shared_parameters

    def get_security_schemes(self) -> Dict[str, SecurityScheme]:
        """Security schemes defined in the specification, keyed by name."""
        return self._security_schemes

    def get_security_requirements(self) -> List[Dict[str, List[str]]]:
        """Global security requirements defined in the specification."""
        return self.spec.get("security") or []

    def get_operation_requirements(self, operation: Dict[str, Any]) -> List[str]:
        """Scheme keys that satisfy an operation's security, in declaration order.

        An operation-level ``security`` list overrides the global one, even
        when it is empty.
        """
        requirements = operation.get("security")
        if requirements is None:
            requirements = self.get_security_requirements()

        keys: List[str] = []
        seen: Set[str] = set()
        for requirement in requirements:
            for key in requirement or {}:
                if key not in seen:
                    seen.add(key)
                    keys.append(key)
        return keys
