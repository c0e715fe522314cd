"""
protodecl-bench: time how long protocol declaration schemas take to import.

The benchmark imports the same schema twice, once from a source carrying a
precomputed lookup index and once from a source without it, and reports both
durations in milliseconds.

Core Components:
    now: Monotonic millisecond clock
    measure_import: Time one synchronous schema import
    load_schema: Import a schema source into a ProtoSchema
    ProtoImportPage: One-shot page that runs both measurements
    SchemaImportError: Base class of every import failure

Basic Usage:
    >>> from protodecl_bench import measure_import
    >>>
    >>> indexed = measure_import("data/proto.protodecl")
    >>> non_indexed = measure_import("data/proto_noidx.protodecl")
    >>> print(f"{indexed:.2f} ms vs {non_indexed:.2f} ms")

With the page lifecycle:
    >>> from protodecl_bench import BenchmarkSettings, ProtoImportPage
    >>>
    >>> page = ProtoImportPage(BenchmarkSettings(resource_root="data"))
    >>> print("\\n".join(page.mount()))
"""

from .config import BenchmarkSettings
from .errors import MalformedSchemaError, SchemaImportError, SchemaLookupError, SchemaSourceNotFoundError
from .importer import NamespaceEntry, ProtoSchema, load_schema
from .page import ImportLatencyState, NavigationPage, ProtoImportPage
from .runner import measure_import
from .timer import now

# Version comes from the installed distribution metadata
from importlib.metadata import version as _version

__version__ = _version("protodecl-bench")
__all__ = [
    "BenchmarkSettings",
    "ImportLatencyState",
    "MalformedSchemaError",
    "NamespaceEntry",
    "NavigationPage",
    "ProtoImportPage",
    "ProtoSchema",
    "SchemaImportError",
    "SchemaLookupError",
    "SchemaSourceNotFoundError",
    "load_schema",
    "measure_import",
    "now",
]
