"""
Reading and writing the ``.protodecl`` container format.

A non-indexed container is the UTF-8 JSON of a FileDescriptorSet. An indexed
container prefixes that same body with a header:

    b"PROTODCL" | uint32 little-endian index length | index JSON | body

Each ``IndexedFile`` entry in the index records where that file's JSON object
sits inside the body, so files can be parsed on demand.
"""

from __future__ import annotations

import struct

from .descriptors import DescriptorIndex, FileDescriptor, FileDescriptorSet, IndexedFile
from .errors import MalformedSchemaError

SIGNATURE = b"PROTODCL"
HEADER_SIZE = len(SIGNATURE) + 4

_INDEX_SIZE = struct.Struct("<I")


def encode_body(files: list[FileDescriptor]) -> tuple[bytes, list[IndexedFile]]:
    """
    Serialize files into a FileDescriptorSet JSON body.

    Returns:
        The body bytes and one IndexedFile per file, in input order
    """
    prefix = b'{"files":['
    parts: list[bytes] = []
    entries: list[IndexedFile] = []
    offset = len(prefix)

    for i, file in enumerate(files):
        if i:
            offset += 1  # comma separator
        raw = file.model_dump_json().encode()
        entries.append(IndexedFile(file_name=file.name, data_offset=offset, length=len(raw)))
        parts.append(raw)
        offset += len(raw)

    return prefix + b",".join(parts) + b"]}", entries


def encode_plain(file_set: FileDescriptorSet) -> bytes:
    """Encode a descriptor set without a lookup index."""
    body, _ = encode_body(file_set.files)
    return body


def encode_indexed(file_set: FileDescriptorSet) -> bytes:
    """Encode a descriptor set with a precomputed lookup index."""
    # Imported here to avoid a cycle: the builder depends on encode_body.
    from .database import DescriptorDatabaseBuilder

    builder = DescriptorDatabaseBuilder()
    for file in file_set.files:
        builder.add_file(file)
    index, body = builder.build()
    return pack_container(index, body)


def pack_container(index: DescriptorIndex, body: bytes) -> bytes:
    raw_index = index.model_dump_json().encode()
    return SIGNATURE + _INDEX_SIZE.pack(len(raw_index)) + raw_index + body


def split_container(data: bytes) -> tuple[bytes, bytes] | None:
    """
    Split indexed container data into its index and body.

    Returns:
        ``(index_bytes, body)``, or None when ``data`` carries no index header

    Raises:
        MalformedSchemaError: If the header announces more index bytes than exist
    """
    if len(data) <= HEADER_SIZE or not data.startswith(SIGNATURE):
        return None
    (index_size,) = _INDEX_SIZE.unpack_from(data, len(SIGNATURE))
    index_end = HEADER_SIZE + index_size
    if index_end > len(data):
        raise MalformedSchemaError(
            {"_header": [f"Index length {index_size} exceeds container size {len(data)}"]}
        )
    return data[HEADER_SIZE:index_end], data[index_end:]
