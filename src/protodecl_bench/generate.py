"""
Deterministic benchmark schema generation.

Produces a descriptor set of N messages and M enums spread over several
files, and writes it out in both the indexed and the non-indexed container
form.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .descriptors import (
    EnumDescriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    FieldLabel,
    FileDescriptor,
    FileDescriptorSet,
    MessageDescriptor,
)
from .encoding import encode_indexed, encode_plain

logger = logging.getLogger(__name__)

INDEXED_FILENAME = "proto.protodecl"
NON_INDEXED_FILENAME = "proto_noidx.protodecl"

SCALAR_TYPES = ("string", "int32", "int64", "bool", "double", "bytes", "uint32", "float")
FIELDS_PER_MESSAGE = 6
VALUES_PER_ENUM = 4


def _spread(count: int, buckets: int) -> list[int]:
    base, extra = divmod(count, buckets)
    return [base + (1 if i < extra else 0) for i in range(buckets)]


def _make_enum(index: int) -> EnumDescriptor:
    name = f"Enum{index}"
    return EnumDescriptor(
        name=name,
        values=[
            EnumValueDescriptor(name=f"{name.upper()}_VALUE_{v}", number=v)
            for v in range(VALUES_PER_ENUM)
        ],
    )


def _make_message(index: int, enum_names: list[str], message_names: list[str]) -> MessageDescriptor:
    fields: list[FieldDescriptor] = []
    for f in range(FIELDS_PER_MESSAGE):
        number = f + 1
        if f == 4 and enum_names:
            type_name = enum_names[index % len(enum_names)]
        elif f == 5 and message_names:
            type_name = message_names[index % len(message_names)]
        else:
            type_name = SCALAR_TYPES[(index + f) % len(SCALAR_TYPES)]
        label = FieldLabel.REPEATED if f == 5 else FieldLabel.OPTIONAL
        fields.append(FieldDescriptor(name=f"field_{number}", number=number, type_name=type_name, label=label))
    return MessageDescriptor(name=f"Message{index}", fields=fields)


def generate_file_descriptor_set(
    message_count: int = 1000,
    enum_count: int = 200,
    file_count: int = 10,
) -> FileDescriptorSet:
    """
    Build a synthetic schema with exactly ``message_count`` top-level messages
    and ``enum_count`` top-level enums.

    Files are named ``bench/file_N.proto`` in package ``bench.pkgN``. Message
    fields reference scalars, enums of the same file and earlier messages.
    """
    if file_count < 1:
        raise ValueError("file_count must be at least 1")

    files: list[FileDescriptor] = []
    message_offset = 0
    enum_offset = 0

    for file_index, (messages_here, enums_here) in enumerate(
        zip(_spread(message_count, file_count), _spread(enum_count, file_count))
    ):
        package = f"bench.pkg{file_index}"
        enums = [_make_enum(enum_offset + i) for i in range(enums_here)]
        enum_names = [f".{package}.{e.name}" for e in enums]

        messages: list[MessageDescriptor] = []
        for i in range(messages_here):
            previous = [f".{package}.{m.name}" for m in messages[-3:]]
            messages.append(_make_message(message_offset + i, enum_names, previous))

        files.append(
            FileDescriptor(
                name=f"bench/file_{file_index}.proto",
                package=package,
                dependencies=[f"bench/file_{file_index - 1}.proto"] if file_index else [],
                messages=messages,
                enums=enums,
            )
        )
        message_offset += messages_here
        enum_offset += enums_here

    return FileDescriptorSet(files=files)


def write_variants(
    out_dir: str | Path,
    message_count: int = 1000,
    enum_count: int = 200,
    file_count: int = 10,
) -> tuple[Path, Path]:
    """
    Write the indexed and non-indexed forms of one generated schema.

    Returns:
        ``(indexed_path, non_indexed_path)``
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    file_set = generate_file_descriptor_set(message_count, enum_count, file_count)
    indexed_path = out / INDEXED_FILENAME
    non_indexed_path = out / NON_INDEXED_FILENAME
    indexed_path.write_bytes(encode_indexed(file_set))
    non_indexed_path.write_bytes(encode_plain(file_set))

    logger.info("Wrote %s and %s", indexed_path, non_indexed_path)
    return indexed_path, non_indexed_path
