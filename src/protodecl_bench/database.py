"""
Descriptor database: symbol and package lookup over a loaded schema body.

The database either adopts a prebuilt DescriptorIndex shipped inside an
indexed container, or falls back to DescriptorDatabaseBuilder, which walks
every file and derives the same index. Files are parsed from the body only
when a lookup needs them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .descriptors import (
    DescriptorIndex,
    EnumDescriptor,
    FileDescriptor,
    FileDescriptorSet,
    IndexedPackage,
    IndexedSymbol,
    MessageDescriptor,
    SymbolKind,
)
from .encoding import encode_body, split_container
from .errors import MalformedSchemaError, SchemaImportError, convert_pydantic_errors
from .proto_parser import parse_proto
from .schemas import PackageDebugSchema

logger = logging.getLogger(__name__)

Declaration = MessageDescriptor | EnumDescriptor


def qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


@dataclass
class _PackageEntry:
    full_name: str
    symbol_indexes: list[int] = field(default_factory=list)
    nested_package_indexes: list[int] = field(default_factory=list)


class DescriptorDatabaseBuilder:
    """
    Builds a DescriptorIndex by walking descriptor files.

    Only used when a source carries no prebuilt index (or the index is
    skipped). Every message and enum becomes a symbol; nested declarations
    are placed in a package named after their enclosing message.
    """

    def __init__(self) -> None:
        self._files: list[FileDescriptor] = []
        self._file_index_by_name: dict[str, int] = {}
        self._symbols: list[IndexedSymbol] = []
        self._symbol_index_by_name: dict[str, int] = {}
        self._packages: list[_PackageEntry] = [_PackageEntry(full_name="")]
        self._package_index_by_name: dict[str, int] = {"": 0}

    def add_file_descriptor_set(self, data: bytes, source: str | None = None) -> None:
        try:
            file_set = FileDescriptorSet.model_validate_json(data)
        except PydanticValidationError as e:
            raise convert_pydantic_errors(e, source) from e
        for file in file_set.files:
            self.add_file(file)

    def parse_and_add_proto(self, filename: str, text: str) -> None:
        self.add_file(parse_proto(filename, text))

    def add_file(self, file: FileDescriptor) -> None:
        if file.name in self._file_index_by_name:
            raise MalformedSchemaError({"files": [f"Duplicate file name: {file.name}"]}, source=file.name)

        file_index = len(self._files)
        self._files.append(file)
        self._file_index_by_name[file.name] = file_index

        package_index = self._get_or_create_package_index(file.package)
        for message in file.messages:
            self._add_message(file_index, package_index, file.package, message)
        for enum in file.enums:
            self._add_symbol(file_index, package_index, qualify(file.package, enum.name), "enum")

    def build(self) -> tuple[DescriptorIndex, bytes]:
        """
        Produce the index and the descriptor body it points into.

        Returns:
            ``(index, body)`` where ``body`` is the FileDescriptorSet JSON
        """
        body, file_entries = encode_body(self._files)
        index = DescriptorIndex(
            files=file_entries,
            symbols=list(self._symbols),
            packages=[
                IndexedPackage(
                    full_name=p.full_name,
                    symbol_indexes=list(p.symbol_indexes),
                    nested_package_indexes=list(p.nested_package_indexes),
                )
                for p in self._packages
            ],
        )
        return index, body

    def _add_message(
        self,
        file_index: int,
        package_index: int,
        scope: str,
        message: MessageDescriptor,
    ) -> None:
        full_name = qualify(scope, message.name)
        self._add_symbol(file_index, package_index, full_name, "message")

        if not message.nested_messages and not message.enums:
            return

        nested_package_index = self._get_or_create_package_index(full_name)
        for nested in message.nested_messages:
            self._add_message(file_index, nested_package_index, full_name, nested)
        for enum in message.enums:
            self._add_symbol(file_index, nested_package_index, qualify(full_name, enum.name), "enum")

    def _add_symbol(self, file_index: int, package_index: int, full_name: str, kind: SymbolKind) -> None:
        if full_name in self._symbol_index_by_name:
            existing = self._symbols[self._symbol_index_by_name[full_name]]
            raise MalformedSchemaError(
                {full_name: [f"Symbol already defined in {self._files[existing.file_index].name}"]},
                source=self._files[file_index].name,
            )

        symbol_index = len(self._symbols)
        self._symbols.append(IndexedSymbol(full_name=full_name, file_index=file_index, kind=kind))
        self._symbol_index_by_name[full_name] = symbol_index
        self._packages[package_index].symbol_indexes.append(symbol_index)

    def _get_or_create_package_index(self, name: str) -> int:
        existing = self._package_index_by_name.get(name)
        if existing is not None:
            return existing

        parent_index = self._get_or_create_package_index(name.rpartition(".")[0])
        package_index = len(self._packages)
        self._packages.append(_PackageEntry(full_name=name))
        self._package_index_by_name[name] = package_index
        self._packages[parent_index].nested_package_indexes.append(package_index)
        return package_index


class DescriptorDatabase:
    """
    Lookup structure over the symbols, packages, and files of one schema.

    Args:
        skip_index: Ignore prebuilt indexes and always derive the index with
            DescriptorDatabaseBuilder.
    """

    def __init__(self, skip_index: bool = False) -> None:
        self.skip_index = skip_index
        self._index = DescriptorIndex()
        self._body = b""
        self._parsed_files: dict[int, FileDescriptor] = {}
        self._descriptors: list[Declaration | None] = []
        self._file_index_by_name: dict[str, int] = {}
        self._symbol_index_by_name: dict[str, int] = {}
        self._package_index_by_name: dict[str, int] = {}
        self._prebuilt_index_loaded = False
        self._builder: DescriptorDatabaseBuilder | None = None

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def add_file_descriptor_set(self, data: bytes, source: str | None = None) -> None:
        """
        Load container data, using its prebuilt index when present.

        Raises:
            MalformedSchemaError: If the index or body cannot be parsed
            SchemaImportError: If a prebuilt index is loaded into a non-empty database
        """
        if self._prebuilt_index_loaded:
            raise SchemaImportError("A prebuilt index was already loaded into this database")

        parts = split_container(data)
        if parts is None:
            logger.debug("No prebuilt index in %s, building one", source or "<data>")
            self._add_with_builder(data, source)
            return

        raw_index, body = parts
        if self.skip_index:
            logger.debug("Skipping prebuilt index of %s", source or "<data>")
            self._add_with_builder(body, source)
            return

        if self._builder is not None:
            raise SchemaImportError("Cannot load a prebuilt index after descriptors were added")

        try:
            index = DescriptorIndex.model_validate_json(raw_index)
        except PydanticValidationError as e:
            raise convert_pydantic_errors(e, source) from e

        _check_index_bounds(index, len(body), source)
        logger.debug("Loaded prebuilt index of %s (%d symbols)", source or "<data>", len(index.symbols))
        self._finalise_index(index, body)
        self._prebuilt_index_loaded = True

    def parse_and_add_proto(self, filename: str, text: str) -> None:
        """Parse proto source text and add it to the database."""
        if self._prebuilt_index_loaded:
            raise SchemaImportError("A prebuilt index was already loaded into this database")
        builder = self._get_builder()
        builder.parse_and_add_proto(filename, text)
        self._finalise_index(*builder.build())

    def _add_with_builder(self, data: bytes, source: str | None) -> None:
        builder = self._get_builder()
        builder.add_file_descriptor_set(data, source)
        self._finalise_index(*builder.build())

    def _get_builder(self) -> DescriptorDatabaseBuilder:
        if self._builder is None:
            self._builder = DescriptorDatabaseBuilder()
        return self._builder

    def _finalise_index(self, index: DescriptorIndex, body: bytes) -> None:
        self._index = index
        self._body = body
        self._parsed_files = {}
        self._file_index_by_name = {f.file_name: i for i, f in enumerate(index.files)}
        self._symbol_index_by_name = {s.full_name: i for i, s in enumerate(index.symbols)}
        self._package_index_by_name = {p.full_name: i for i, p in enumerate(index.packages)}
        self._descriptors = [None] * len(index.symbols)

    # -------------------------------------------------------------------------
    # File lookup
    # -------------------------------------------------------------------------

    def find_file_by_name(self, filename: str) -> FileDescriptor | None:
        file_index = self._file_index_by_name.get(filename)
        if file_index is None:
            return None
        return self._file_at(file_index)

    def find_file_containing_symbol(self, symbol_name: str) -> FileDescriptor | None:
        symbol_index = self._symbol_index_by_name.get(symbol_name)
        if symbol_index is None:
            return None
        return self._file_at(self._index.symbols[symbol_index].file_index)

    def find_file_containing_extension(self, containing_type: str, field_number: int) -> FileDescriptor | None:
        # Extensions are not indexed.
        return None

    def find_all_extension_numbers(self, extendee_type: str) -> list[int]:
        return []

    def find_all_file_names(self) -> list[str]:
        return [f.file_name for f in self._index.files]

    def _file_at(self, file_index: int) -> FileDescriptor:
        parsed = self._parsed_files.get(file_index)
        if parsed is not None:
            return parsed

        entry = self._index.files[file_index]
        raw = self._body[entry.data_offset:entry.data_offset + entry.length]
        try:
            parsed = FileDescriptor.model_validate_json(raw)
        except PydanticValidationError as e:
            raise convert_pydantic_errors(e, entry.file_name) from e
        self._parsed_files[file_index] = parsed
        return parsed

    # -------------------------------------------------------------------------
    # Symbols and packages
    # -------------------------------------------------------------------------

    def symbol_names(self) -> list[str]:
        return [s.full_name for s in self._index.symbols]

    @property
    def symbols_size(self) -> int:
        return len(self._index.symbols)

    def symbol_name_at(self, index: int) -> str:
        return self._index.symbols[index].full_name

    def symbol_kind_at(self, index: int) -> SymbolKind:
        return self._index.symbols[index].kind

    def descriptor_at(self, index: int) -> Declaration | None:
        """Return the memoized declaration for a symbol, or None if not resolved yet."""
        return self._descriptors[index]

    def set_descriptor_at(self, index: int, descriptor: Declaration) -> None:
        self._descriptors[index] = descriptor

    def symbol_index_for_name(self, name: str) -> int | None:
        return self._symbol_index_by_name.get(name)

    @property
    def packages_size(self) -> int:
        return len(self._index.packages)

    def package_at(self, index: int) -> IndexedPackage:
        return self._index.packages[index]

    def package_index_for_name(self, name: str) -> int | None:
        return self._package_index_by_name.get(name)

    @property
    def root_package(self) -> IndexedPackage:
        return self._index.packages[0]

    def to_debug_json(self) -> dict[str, Any]:
        """Dump the package tree with sorted symbol names, omitting empty lists."""
        return PackageDebugSchema().dump(self._package_tree(self.root_package))

    def _package_tree(self, package: IndexedPackage) -> dict[str, Any]:
        return {
            "name": package.full_name,
            "symbols": sorted(self.symbol_name_at(i) for i in package.symbol_indexes),
            "packages": [self._package_tree(self.package_at(i)) for i in package.nested_package_indexes],
        }


def _check_index_bounds(index: DescriptorIndex, body_size: int, source: str | None) -> None:
    errors: dict[str, list[str]] = {}

    if index.packages[0].full_name != "":
        errors.setdefault("packages.0.full_name", []).append("Root package must have an empty name")

    for i, entry in enumerate(index.files):
        if entry.data_offset + entry.length > body_size:
            errors.setdefault(f"files.{i}", []).append(
                f"File data [{entry.data_offset}, {entry.data_offset + entry.length}) "
                f"exceeds body size {body_size}"
            )

    for i, symbol in enumerate(index.symbols):
        if symbol.file_index >= len(index.files):
            errors.setdefault(f"symbols.{i}.file_index", []).append(f"No file at index {symbol.file_index}")

    parents: dict[int, int] = {}
    for i, package in enumerate(index.packages):
        for symbol_index in package.symbol_indexes:
            if not 0 <= symbol_index < len(index.symbols):
                errors.setdefault(f"packages.{i}.symbol_indexes", []).append(f"No symbol at index {symbol_index}")
        for nested_index in package.nested_package_indexes:
            if not 0 < nested_index < len(index.packages):
                errors.setdefault(f"packages.{i}.nested_package_indexes", []).append(
                    f"No package at index {nested_index}"
                )
            elif nested_index in parents:
                errors.setdefault(f"packages.{i}.nested_package_indexes", []).append(
                    f"Package {nested_index} is already nested in package {parents[nested_index]}"
                )
            else:
                parents[nested_index] = i

    # With one parent per package, a package unreachable from the root sits on a cycle.
    reachable = {0}
    pending = [0]
    while pending:
        for nested_index in index.packages[pending.pop()].nested_package_indexes:
            if parents.get(nested_index) is not None and nested_index not in reachable:
                reachable.add(nested_index)
                pending.append(nested_index)
    for i in range(1, len(index.packages)):
        if i not in reachable:
            parent = parents.get(i)
            key = f"packages.{parent}.nested_package_indexes" if parent is not None else f"packages.{i}"
            errors.setdefault(key, []).append(f"Package {i} is not reachable from the root package")

    if errors:
        raise MalformedSchemaError(errors, source=source)
