"""Exceptions raised while loading specs and building or calling tools."""

from pydantic import ValidationError


class SpecLoadError(ValueError):
    """The spec could not be fetched or parsed."""


class SchemaResolutionError(ValueError):
    """A reference is unresolvable, external or cyclic."""


class InputValidationError(ValueError):
    """Call input does not match the tool's input model."""

    def __init__(self, tool_name: str, error: ValidationError):
        self.tool_name = tool_name
        self.error = error
        super().__init__(f"Invalid input for tool '{tool_name}': {error}")
