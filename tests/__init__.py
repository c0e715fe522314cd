"""Test suite for protodecl-bench."""
