"""Shared test fixtures for protodecl-bench tests.

This module provides reusable descriptor sets, proto sources, schema files,
and fake importers. Import constants from here rather than redefining them in
each test file.
"""

import time
from collections.abc import Callable

import pytest

from protodecl_bench.descriptors import (
    EnumDescriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    FieldLabel,
    FileDescriptor,
    FileDescriptorSet,
    MessageDescriptor,
)
from protodecl_bench.generate import write_variants

# Scheduling jitter allowed on top of a synthetic delay, in ms
JITTER_MS = 40.0

# =============================================================================
# Shared Descriptors
# =============================================================================

STATUS_ENUM = EnumDescriptor(
    name="Status",
    values=[
        EnumValueDescriptor(name="STATUS_UNKNOWN", number=0),
        EnumValueDescriptor(name="STATUS_ACTIVE", number=1),
    ],
)

ADDRESS_MESSAGE = MessageDescriptor(
    name="Address",
    fields=[
        FieldDescriptor(name="street", number=1, type_name="string"),
        FieldDescriptor(name="city", number=2, type_name="string"),
    ],
)

USER_MESSAGE = MessageDescriptor(
    name="User",
    fields=[
        FieldDescriptor(name="name", number=1, type_name="string"),
        FieldDescriptor(name="status", number=2, type_name=".demo.users.Status"),
        FieldDescriptor(name="addresses", number=3, type_name="Address", label=FieldLabel.REPEATED),
    ],
    nested_messages=[
        MessageDescriptor(
            name="Preferences",
            fields=[FieldDescriptor(name="theme", number=1, type_name="string")],
        ),
    ],
    enums=[
        EnumDescriptor(name="Role", values=[EnumValueDescriptor(name="ROLE_MEMBER", number=0)]),
    ],
)

USERS_FILE = FileDescriptor(
    name="demo/users.proto",
    package="demo.users",
    messages=[USER_MESSAGE, ADDRESS_MESSAGE],
    enums=[STATUS_ENUM],
)

EVENTS_FILE = FileDescriptor(
    name="demo/events.proto",
    package="demo.events",
    dependencies=["demo/users.proto"],
    messages=[
        MessageDescriptor(
            name="Event",
            fields=[FieldDescriptor(name="user", number=1, type_name=".demo.users.User")],
        ),
    ],
)

DEMO_FILE_SET = FileDescriptorSet(files=[USERS_FILE, EVENTS_FILE])

# Every symbol of DEMO_FILE_SET, in builder order
DEMO_SYMBOLS = [
    "demo.users.User",
    "demo.users.User.Preferences",
    "demo.users.User.Role",
    "demo.users.Address",
    "demo.users.Status",
    "demo.events.Event",
]


# =============================================================================
# Proto Sources
# =============================================================================

USERS_PROTO = """\
syntax = "proto3";

package demo.users;

import "google/protobuf/timestamp.proto";

option java_package = "com.example.demo";

// A registered user
message User {
  string name = 1;
  Status status = 2 [deprecated = true];
  repeated Address addresses = 3;
  map<string, int32> scores = 4;

  /* Nested declarations */
  message Preferences {
    string theme = 1;
  }

  enum Role {
    ROLE_MEMBER = 0;
    ROLE_ADMIN = 1;
  }

  oneof contact {
    string email = 5;
    string phone = 6;
  }

  reserved 7, 8;
}

message Address {
  string street = 1;
  string city = 2;
}

enum Status {
  option allow_alias = true;
  STATUS_UNKNOWN = 0;
  STATUS_ACTIVE = 1;
  STATUS_DISABLED = -1;
}

service UserService {
  rpc Get (User) returns (User) {}
}
"""


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def schema_dir(tmp_path):
    """Directory holding small indexed and non-indexed variants of one schema."""
    write_variants(tmp_path, message_count=40, enum_count=8, file_count=3)
    return tmp_path


@pytest.fixture
def delayed_loader() -> Callable[[dict[str, float]], Callable[[str], object]]:
    """Factory for fake importers that sleep a fixed number of ms per source."""

    def make(delays_ms: dict[str, float]) -> Callable[[str], object]:
        def load(source: str) -> object:
            time.sleep(delays_ms[source] / 1000)
            return object()

        return load

    return make


@pytest.fixture
def recording_loader():
    """Fake importer that records every source it is asked to load."""

    class RecordingLoader:
        def __init__(self):
            self.calls: list[str] = []

        def __call__(self, source):
            self.calls.append(source)
            return {"source": source}

    return RecordingLoader()
