"""
Name: Schema synthesizer.
Description: Converts OpenAPI parameter and schema nodes into pydantic field definitions, building record models with create_model and resolving internal $ref pointers with cycle detection.
"""

import keyword
import re
from typing import Annotated, Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic.fields import FieldInfo

from .exceptions import SchemaResolutionError
from .spec import resolve_pointer

FieldDefinition = Tuple[Any, FieldInfo]

_PRIMITIVE_TYPES = {
    "string": str,
    "number": Union[int, float],
    "integer": int,
    "boolean": bool,
}

_RESERVED_NAMES = set(dir(BaseModel))


def field_name(name: str, used: Optional[Set[str]] = None) -> str:
    """Return a valid, non-clashing attribute name for a spec property name.

    Args:
        name: The name used in the spec
        used: Attribute names already taken in the same model (updated in place)
    """
    candidate = re.sub(r"\W", "_", name)
    if (
        not candidate
        or candidate[0].isdigit()
        or candidate.startswith("_")
        or candidate.startswith("model_")
        or keyword.iskeyword(candidate)
        or candidate in _RESERVED_NAMES
    ):
        candidate = "field_" + candidate.lstrip("_")

    if used is not None:
        base, index = candidate, 2
        while candidate in used:
            candidate = f"{base}_{index}"
            index += 1
        used.add(candidate)
    return candidate


def model_name(*parts: str) -> str:
    """CamelCase model name built from name hints."""
    words: List[str] = []
    for part in parts:
        words.extend(w for w in re.split(r"[^0-9A-Za-z]+", part) if w)
    name = "".join(w[0].upper() + w[1:] for w in words) or "Schema"
    return name if not name[0].isdigit() else f"Schema{name}"


def make_field(
    annotation: Any,
    required: bool,
    description: str = "",
    alias: Optional[str] = None,
) -> FieldDefinition:
    """Wrap a type as a create_model field, optional unless required."""
    if required:
        return annotation, Field(..., description=description or None, alias=alias)
    return Optional[annotation], Field(None, description=description or None, alias=alias)


class SchemaSynthesizer:
    """Builds runtime input types from OpenAPI schema trees.

    The result for a node depends only on the node and the document its
    references point into.
    """

    def __init__(self, document: Optional[Dict[str, Any]] = None):
        """Initialize the synthesizer.

        Args:
            document: The (dereferenced) spec that $ref pointers resolve against
        """
        self.document = document or {}

    def synthesize(
        self,
        node: Dict[str, Any],
        required: bool = False,
        name_hint: str = "Schema",
        alias: Optional[str] = None,
    ) -> FieldDefinition:
        """Convert a parameter or schema node into a create_model field.

        Args:
            node: Parameter or schema node, possibly a $ref
            required: Whether the containing schema marks the node as required
            name_hint: Base name for any record models created
            alias: External name when the field name had to be sanitized

        Returns:
            (annotation, FieldInfo) tuple

        Raises:
            SchemaResolutionError: For dangling or cyclic references
        """
        annotation, description = self.resolve_type(node, name_hint)
        return make_field(annotation, required, description, alias)

    def resolve_type(
        self, node: Dict[str, Any], name_hint: str = "Schema"
    ) -> Tuple[Any, str]:
        """Convert a node into its bare type (no optional wrapping) and description."""
        return self._build(node, name_hint, ())

    def _deref(
        self, node: Any, resolving: Tuple[str, ...]
    ) -> Tuple[Dict[str, Any], Tuple[str, ...]]:
        while isinstance(node, dict) and isinstance(node.get("$ref"), str):
            ref = node["$ref"]
            if ref in resolving:
                chain = " -> ".join(resolving + (ref,))
                raise SchemaResolutionError(f"Circular reference detected: {chain}")
            resolving = resolving + (ref,)
            node = resolve_pointer(self.document, ref)
        if not isinstance(node, dict):
            return {}, resolving
        return node, resolving

    def _build(
        self, node: Any, name_hint: str, resolving: Tuple[str, ...]
    ) -> Tuple[Any, str]:
        node, resolving = self._deref(node, resolving)
        description = node.get("description") or ""

        # Parameters carry their type in a nested schema (OpenAPI 3, Swagger 2 body)
        if isinstance(node.get("schema"), dict):
            node, resolving = self._deref(node["schema"], resolving)
            description = node.get("description") or description

        schema_type = node.get("type")
        if isinstance(schema_type, list):
            schema_type = next((t for t in schema_type if t != "null"), None)

        if schema_type in _PRIMITIVE_TYPES:
            return _PRIMITIVE_TYPES[schema_type], description

        if schema_type == "array":
            item_type, item_description = self._build(
                node.get("items") or {}, f"{name_hint}Item", resolving
            )
            if item_description:
                item_type = Annotated[item_type, Field(description=item_description)]
            return List[item_type], description

        if schema_type == "object":
            properties = node.get("properties")
            if properties:
                return self._build_record(node, properties, name_hint, resolving), description
            return Dict[str, Any], description

        return Any, description

    def _build_record(
        self,
        node: Dict[str, Any],
        properties: Dict[str, Any],
        name_hint: str,
        resolving: Tuple[str, ...],
    ) -> type:
        required_names = set(node.get("required") or [])
        used: Set[str] = set()
        fields: Dict[str, FieldDefinition] = {}

        for prop_name, prop in properties.items():
            attribute = field_name(prop_name, used)
            annotation, description = self._build(
                prop, f"{name_hint}_{prop_name}", resolving
            )
            fields[attribute] = make_field(
                annotation,
                prop_name in required_names,
                description,
                alias=prop_name if attribute != prop_name else None,
            )

        return create_model(
            model_name(node.get("title") or name_hint),
            __config__=ConfigDict(extra="allow", populate_by_name=True),
            __doc__=node.get("description") or None,
            **fields,
        )


def build_input_model(
    name: str, entries: Iterable[Tuple[str, Any, bool, str]]
) -> type:
    """Create a tool input model.

    Args:
        name: Tool name, used for the model name
        entries: (external name, annotation, required, description) tuples;
            a later entry with the same external name replaces an earlier one

    Returns:
        A pydantic model class validating the tool's input
    """
    by_name: Dict[str, Tuple[Any, bool, str]] = {}
    for external_name, annotation, required, description in entries:
        by_name[external_name] = (annotation, required, description)

    used: Set[str] = set()
    fields: Dict[str, FieldDefinition] = {}
    for external_name, (annotation, required, description) in by_name.items():
        attribute = field_name(external_name, used)
        fields[attribute] = make_field(
            annotation,
            required,
            description,
            alias=external_name if attribute != external_name else None,
        )

    return create_model(
        model_name(name, "Input"),
        __config__=ConfigDict(populate_by_name=True),
        **fields,
    )
