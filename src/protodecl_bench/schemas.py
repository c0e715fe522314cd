"""
Marshmallow schemas for the JSON the tool prints.

PackageDebugSchema dumps a descriptor database's package tree;
ImportReportSchema dumps the two import latencies of a benchmark run.
"""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, fields as ma_fields, post_dump


class PackageDebugSchema(Schema):
    """One package with its symbol names and nested packages."""

    name = ma_fields.String(required=True)
    symbols = ma_fields.List(ma_fields.String())
    packages = ma_fields.List(ma_fields.Nested(lambda: PackageDebugSchema()))

    @post_dump
    def drop_empty(self, data: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        return {key: value for key, value in data.items() if key == "name" or value}


class ImportReportSchema(Schema):
    """Import latencies in milliseconds, indexed and non-indexed."""

    indexed_ms = ma_fields.Float(attribute="import_latency")
    non_indexed_ms = ma_fields.Float(attribute="import_latency_no_index")
    message_count = ma_fields.Integer()
    enum_count = ma_fields.Integer()
