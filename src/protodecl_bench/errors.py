"""
Error types for schema import.

This module provides:
- SchemaImportError: base class for every failure raised while importing a schema
- MalformedSchemaError: Marshmallow-compatible error carrying per-path messages
- Error path building and Pydantic→Marshmallow message conversion
"""

from __future__ import annotations

from typing import Any

from marshmallow.exceptions import ValidationError as MarshmallowValidationError
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import ErrorDetails


class SchemaImportError(Exception):
    """Raised when a schema source cannot be imported."""


class SchemaSourceNotFoundError(SchemaImportError):
    """The schema source names a file that does not exist."""

    def __init__(self, path: Any) -> None:
        self.path = path
        super().__init__(f"Schema source not found: {path}")


class SchemaLookupError(SchemaImportError, LookupError):
    """A symbol, package, or descriptor index does not exist in the schema."""


class MalformedSchemaError(SchemaImportError, MarshmallowValidationError):
    """
    The schema source was found but its content could not be parsed.

    Extends Marshmallow's ValidationError so the messages follow the familiar
    ``{"path.to.field": ["message", ...]}`` layout.

    Attributes:
        messages: Dict of error path -> error messages (Marshmallow format)
        source: Name of the file or source the error came from
        data: Original input that failed to parse, when available
    """

    def __init__(
        self,
        message: str | list[Any] | dict[str, Any],
        source: str | None = None,
        data: Any | None = None,
    ) -> None:
        self.source = source
        super().__init__(message, "_schema", data)

    def __str__(self) -> str:
        prefix = f"{self.source}: " if self.source else ""
        return f"{prefix}{self.messages}"


def build_error_path(loc: tuple[Any, ...]) -> str:
    """Join a Pydantic location tuple into a dotted path: ("files", 0, "name") -> "files.0.name"."""
    return ".".join(str(part) for part in loc)


def format_pydantic_error(error: ErrorDetails) -> str:
    """
    Format one Pydantic error as a message.

    Type mismatches also name the type that was found.
    """
    msg: str = error.get("msg", "Validation error")
    error_type: str = error.get("type", "")
    if error_type.endswith("_type") and "input" in error:
        return f"{msg}, got {type(error['input']).__name__}"
    return msg


def convert_pydantic_errors(
    pydantic_error: PydanticValidationError,
    source: str | None = None,
) -> MalformedSchemaError:
    """
    Convert a Pydantic ValidationError to MalformedSchemaError.

    Args:
        pydantic_error: The Pydantic ValidationError to convert
        source: Name of the schema source being parsed

    Returns:
        MalformedSchemaError with Marshmallow-formatted messages
    """
    errors: dict[str, list[str]] = {}

    for error in pydantic_error.errors():
        loc = error.get("loc", ())
        msg = format_pydantic_error(error)
        key = build_error_path(loc) if loc else "_schema"
        errors.setdefault(key, []).append(msg)

    return MalformedSchemaError(errors, source=source)
