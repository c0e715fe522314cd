"""
Pydantic models for protocol declaration descriptors and their lookup index.

Descriptor models mirror what a ``.proto`` file declares: files holding
packages of messages and enums. Index models describe the precomputed
lookup structure stored ahead of the descriptor body in indexed sources.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

IDENTIFIER = r"^[A-Za-z_][A-Za-z0-9_]*$"
QUALIFIED_NAME = r"^([A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*)?$"
TYPE_NAME = r"^\.?[A-Za-z_][A-Za-z0-9_.]*(<[A-Za-z0-9_., ]+>)?$"


class FieldLabel(str, Enum):
    """Cardinality of a message field."""
    OPTIONAL = "optional"
    REQUIRED = "required"
    REPEATED = "repeated"


class _Descriptor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class FieldDescriptor(_Descriptor):
    """A single message field."""
    name: str = Field(pattern=IDENTIFIER)
    number: int = Field(ge=1, le=536_870_911)
    type_name: str = Field(pattern=TYPE_NAME)
    label: FieldLabel = FieldLabel.OPTIONAL


class EnumValueDescriptor(_Descriptor):
    name: str = Field(pattern=IDENTIFIER)
    number: int


class EnumDescriptor(_Descriptor):
    name: str = Field(pattern=IDENTIFIER)
    values: list[EnumValueDescriptor] = Field(min_length=1)


class MessageDescriptor(_Descriptor):
    """A message type, possibly declaring nested messages and enums."""
    name: str = Field(pattern=IDENTIFIER)
    fields: list[FieldDescriptor] = Field(default_factory=list)
    nested_messages: list[MessageDescriptor] = Field(default_factory=list)
    enums: list[EnumDescriptor] = Field(default_factory=list)


class FileDescriptor(_Descriptor):
    """Everything declared by one schema file."""
    name: str = Field(min_length=1)
    package: str = Field(default="", pattern=QUALIFIED_NAME)
    dependencies: list[str] = Field(default_factory=list)
    messages: list[MessageDescriptor] = Field(default_factory=list)
    enums: list[EnumDescriptor] = Field(default_factory=list)


class FileDescriptorSet(_Descriptor):
    files: list[FileDescriptor] = Field(default_factory=list)


# =============================================================================
# Lookup index
# =============================================================================

SymbolKind = Literal["message", "enum"]


class IndexedFile(_Descriptor):
    """Location of one file's JSON object inside the descriptor body."""
    file_name: str
    data_offset: int = Field(ge=0)
    length: int = Field(ge=0)


class IndexedSymbol(_Descriptor):
    full_name: str = Field(pattern=QUALIFIED_NAME)
    file_index: int = Field(ge=0)
    kind: SymbolKind = "message"


class IndexedPackage(_Descriptor):
    full_name: str = Field(pattern=QUALIFIED_NAME)
    symbol_indexes: list[int] = Field(default_factory=list)
    nested_package_indexes: list[int] = Field(default_factory=list)


class DescriptorIndex(_Descriptor):
    """
    Precomputed lookup structure for a descriptor body.

    ``packages[0]`` is always the root package (empty name). Indexes in
    ``symbol_indexes``, ``nested_package_indexes`` and ``file_index`` point
    into the sibling lists.
    """
    files: list[IndexedFile] = Field(default_factory=list)
    symbols: list[IndexedSymbol] = Field(default_factory=list)
    packages: list[IndexedPackage] = Field(
        default_factory=lambda: [IndexedPackage(full_name="")],
        min_length=1,
    )
