"""
Example: Importing protocol declaration schemas and timing the import

This example shows the importer, the lookup API, and the benchmark page.
"""

import tempfile
from pathlib import Path

from protodecl_bench import (
    BenchmarkSettings,
    MalformedSchemaError,
    ProtoImportPage,
    load_schema,
    measure_import,
)
from protodecl_bench.generate import write_variants

# =============================================================================
# Example 1: Importing inline proto source
# =============================================================================

print("=" * 60)
print("Example 1: Inline proto source")
print("=" * 60)

schema = load_schema("""
syntax = "proto3";
package shop;

message Order {
  string id = 1;
  repeated Item items = 2;

  message Item {
    string sku = 1;
    int32 quantity = 2;
  }
}

enum OrderState {
  ORDER_STATE_OPEN = 0;
  ORDER_STATE_PAID = 1;
}
""")

print(f"Loaded: {schema}")
print(f"Symbols: {schema.descriptor_names()}")

order = schema.message("shop.Order")
for field in order.fields:
    print(f"  {field.label.value} {field.type_name} {field.name} = {field.number}")
print()


# =============================================================================
# Example 2: Browsing the package tree
# =============================================================================

print("=" * 60)
print("Example 2: Package tree")
print("=" * 60)

for entry in schema.root_namespace_entries():
    print(f"  {entry.name} (package {entry.id})")
    for child in schema.namespace_entries_for_id(entry.id):
        kind = "message" if child.is_message else "enum or package"
        print(f"    {child.name}: {kind}")
print()


# =============================================================================
# Example 3: Malformed input
# =============================================================================

print("=" * 60)
print("Example 3: Malformed input")
print("=" * 60)

try:
    load_schema("message Broken {\n  int32 x = 0;\n}")
except MalformedSchemaError as e:
    print(f"Errors: {e.messages}")
print()


# =============================================================================
# Example 4: Timing indexed and non-indexed imports
# =============================================================================

print("=" * 60)
print("Example 4: Import latency")
print("=" * 60)

with tempfile.TemporaryDirectory() as tmp:
    indexed_path, non_indexed_path = write_variants(Path(tmp), message_count=1000, enum_count=200)

    print(f"Indexed import:     {measure_import(indexed_path):.2f} ms")
    print(f"Non-indexed import: {measure_import(non_indexed_path):.2f} ms")

    page = ProtoImportPage(BenchmarkSettings(resource_root=Path(tmp)))
    for line in page.mount():
        print(f"  {line}")
print()


print("=" * 60)
print("All examples completed!")
print("=" * 60)
