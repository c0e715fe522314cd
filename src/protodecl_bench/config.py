"""
Benchmark settings.

Settings are a Pydantic model so a JSON config file gets the same validation
and error reporting as schema sources do.
"""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from .errors import SchemaSourceNotFoundError, convert_pydantic_errors
from .importer import load_schema

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class BenchmarkSettings(BaseModel):
    """Where the two schema variants live and how to import them."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    indexed_source: str = "proto.protodecl"
    non_indexed_source: str = "proto_noidx.protodecl"
    resource_root: Path | None = None
    skip_index: bool = False
    message_count: int = Field(default=1000, ge=0)
    enum_count: int = Field(default=200, ge=0)
    log_level: LogLevel = "INFO"

    @classmethod
    def from_file(cls, path: str | Path, **overrides: Any) -> BenchmarkSettings:
        """
        Load settings from a JSON file, then apply non-None overrides.

        Raises:
            SchemaSourceNotFoundError: If the file does not exist
            MalformedSchemaError: If the file content does not validate
        """
        path = Path(path)
        if not path.is_file():
            raise SchemaSourceNotFoundError(path)
        try:
            settings = cls.model_validate_json(path.read_bytes())
        except PydanticValidationError as e:
            raise convert_pydantic_errors(e, str(path)) from e
        return settings.with_overrides(**overrides)

    def with_overrides(self, **overrides: Any) -> BenchmarkSettings:
        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        return type(self).model_validate({**self.model_dump(), **changes})

    def loader(self) -> functools.partial[Any]:
        """Importer bound to this configuration's root directory and index policy."""
        return functools.partial(load_schema, skip_index=self.skip_index, root=self.resource_root)
