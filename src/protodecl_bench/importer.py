"""
Schema importer: turns a schema source into a queryable ProtoSchema.

A source may be raw container bytes, a path to a ``.protodecl`` or ``.proto``
file, or inline schema text (descriptor-set JSON or proto source).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from .database import Declaration, DescriptorDatabase
from .descriptors import FileDescriptor, IndexedPackage, MessageDescriptor
from .errors import MalformedSchemaError, SchemaLookupError, SchemaSourceNotFoundError

logger = logging.getLogger(__name__)

SchemaSource = Union[str, bytes, os.PathLike]

INLINE_FILENAME = "<inline>"


@dataclass(frozen=True)
class NamespaceEntry:
    """A child of a package: either a symbol or a nested package."""

    id: int
    name: str
    is_message: bool


def _last_component(full_name: str) -> str:
    return full_name.rpartition(".")[2]


def _find_declaration(file: FileDescriptor, full_name: str) -> Declaration | None:
    relative = full_name
    if file.package:
        prefix = file.package + "."
        if not full_name.startswith(prefix):
            return None
        relative = full_name[len(prefix):]

    *scopes, name = relative.split(".")
    messages = file.messages
    enums = file.enums
    for scope in scopes:
        parent = next((m for m in messages if m.name == scope), None)
        if parent is None:
            return None
        messages, enums = parent.nested_messages, parent.enums

    for message in messages:
        if message.name == name:
            return message
    for enum in enums:
        if enum.name == name:
            return enum
    return None


class ProtoSchema:
    """
    An imported schema.

    Symbols are addressed by their position in the lookup index; their
    declarations are resolved from the owning file on first access.
    """

    def __init__(self, database: DescriptorDatabase) -> None:
        self.database = database

    @property
    def symbol_count(self) -> int:
        return self.database.symbols_size

    def descriptor_names(self) -> list[str]:
        return self.database.symbol_names()

    def file_names(self) -> list[str]:
        return self.database.find_all_file_names()

    def prototype_index_for(self, full_name: str) -> int:
        index = self.database.symbol_index_for_name(full_name)
        if index is None:
            raise SchemaLookupError(f"Unrecognized descriptor: {full_name}")
        return index

    def descriptor_at_index(self, index: int) -> Declaration:
        if not 0 <= index < self.database.symbols_size:
            raise SchemaLookupError(f"Invalid descriptor index: {index}")

        descriptor = self.database.descriptor_at(index)
        if descriptor is None:
            symbol_name = self.database.symbol_name_at(index)
            file = self.database.find_file_containing_symbol(symbol_name)
            descriptor = _find_declaration(file, symbol_name) if file is not None else None
            if descriptor is None:
                raise SchemaLookupError(f"Cannot find declaration of {symbol_name}")
            self.database.set_descriptor_at(index, descriptor)
        return descriptor

    def message(self, full_name: str) -> MessageDescriptor:
        """Look up a message declaration by its fully qualified name."""
        descriptor = self.descriptor_at_index(self.prototype_index_for(full_name))
        if not isinstance(descriptor, MessageDescriptor):
            raise SchemaLookupError(f"{full_name} is not a message")
        return descriptor

    def root_namespace_entries(self) -> list[NamespaceEntry]:
        return self._namespace_entries(self.database.root_package)

    def namespace_entries_for_id(self, package_id: int) -> list[NamespaceEntry]:
        if not 0 <= package_id < self.database.packages_size:
            raise SchemaLookupError(f"Invalid package id: {package_id}")
        return self._namespace_entries(self.database.package_at(package_id))

    def _namespace_entries(self, package: IndexedPackage) -> list[NamespaceEntry]:
        entries = [
            NamespaceEntry(
                id=symbol_index,
                name=_last_component(self.database.symbol_name_at(symbol_index)),
                is_message=self.database.symbol_kind_at(symbol_index) == "message",
            )
            for symbol_index in package.symbol_indexes
        ]
        entries.extend(
            NamespaceEntry(
                id=package_index,
                name=_last_component(self.database.package_at(package_index).full_name),
                is_message=False,
            )
            for package_index in package.nested_package_indexes
        )
        return entries

    def to_debug_json(self) -> dict[str, Any]:
        return self.database.to_debug_json()

    def __repr__(self) -> str:
        return f"<ProtoSchema symbols={self.symbol_count} files={len(self.file_names())}>"


def _looks_like_path(text: str) -> bool:
    return "\n" not in text and "{" not in text and ";" not in text


def resolve_path(source: str | os.PathLike[str], root: str | os.PathLike[str] | None = None) -> Path:
    path = Path(source)
    if root is not None and not path.is_absolute():
        path = Path(root) / path
    if not path.is_file():
        raise SchemaSourceNotFoundError(path)
    return path


def load_schema(
    source: SchemaSource,
    *,
    skip_index: bool = False,
    root: str | os.PathLike[str] | None = None,
) -> ProtoSchema:
    """
    Import a schema source.

    Args:
        source: Container bytes, a file path, or inline schema text
        skip_index: Ignore any prebuilt lookup index in the source
        root: Directory that relative paths are resolved against

    Returns:
        ProtoSchema over a freshly built DescriptorDatabase

    Raises:
        SchemaSourceNotFoundError: If a path source does not exist
        MalformedSchemaError: If the source content cannot be parsed
    """
    database = DescriptorDatabase(skip_index=skip_index)

    if isinstance(source, bytes):
        database.add_file_descriptor_set(source)
    elif isinstance(source, os.PathLike) or _looks_like_path(source):
        path = resolve_path(source, root)
        logger.debug("Importing schema file %s", path)
        if path.suffix == ".proto":
            try:
                text = path.read_text(encoding="utf-8")
            except UnicodeDecodeError as e:
                raise MalformedSchemaError(
                    {path.name: [f"Not valid UTF-8 at byte {e.start}"]},
                    source=str(path),
                ) from e
            database.parse_and_add_proto(path.name, text)
        else:
            database.add_file_descriptor_set(path.read_bytes(), source=str(path))
    elif source.lstrip().startswith("{"):
        logger.debug("Importing inline descriptor set")
        database.add_file_descriptor_set(source.encode("utf-8"), source=INLINE_FILENAME)
    else:
        logger.debug("Importing inline proto source")
        database.parse_and_add_proto(INLINE_FILENAME, source)

    return ProtoSchema(database)
