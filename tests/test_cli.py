"""Tests for the protodecl-bench command line."""

import json
import logging

import pytest

from protodecl_bench.cli import main
from protodecl_bench.descriptors import DescriptorIndex, IndexedPackage
from protodecl_bench.encoding import pack_container


@pytest.fixture(autouse=True)
def reset_package_logger():
    """setup_logger() installs handlers bound to the captured streams; drop them after each test."""
    yield
    logger = logging.getLogger("protodecl_bench")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


class TestGenerate:
    """Test the generate subcommand."""

    def test_writes_both_variants(self, tmp_path, capsys):
        """Both schema files are written and the write is logged."""
        assert main(["generate", str(tmp_path), "--messages", "10", "--enums", "2", "--files", "2"]) == 0
        assert (tmp_path / "proto.protodecl").is_file()
        assert (tmp_path / "proto_noidx.protodecl").is_file()

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "[INFO] Wrote" in captured.err


class TestRun:
    """Test the run subcommand."""

    def test_prints_page(self, schema_dir, capsys):
        """The rendered page is printed one line per row."""
        assert main(["run", "--root", str(schema_dir)]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "1000 messages and 200 enums imported in"
        assert len(lines) == 3
        assert all(line.endswith(" ms") for line in lines[1:])

    def test_json_output(self, schema_dir, capsys):
        """--json prints the import report."""
        assert main(["run", "--root", str(schema_dir), "--json", "--skip-index"]) == 0
        report = json.loads(capsys.readouterr().out)
        assert set(report) == {"indexed_ms", "non_indexed_ms", "message_count", "enum_count"}
        assert report["indexed_ms"] > 0
        assert report["non_indexed_ms"] > 0

    def test_config_file(self, schema_dir, tmp_path, capsys):
        """Settings are read from --config, with command-line overrides on top."""
        config = tmp_path / "bench.json"
        config.write_text(json.dumps({"resource_root": str(schema_dir), "message_count": 40, "enum_count": 8}))

        assert main(["run", "--config", str(config), "--no-index", "proto.protodecl", "--json"]) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["message_count"] == 40
        assert report["enum_count"] == 8

    def test_quiet_suppresses_debug(self, schema_dir, capsys):
        """--quiet wins over a DEBUG log level."""
        assert main(["--log-level", "DEBUG", "run", "--root", str(schema_dir), "--quiet"]) == 0
        assert capsys.readouterr().err == ""

    def test_debug_logs_measurements(self, schema_dir, capsys):
        assert main(["--log-level", "DEBUG", "run", "--root", str(schema_dir)]) == 0
        assert "[DEBUG] Imported" in capsys.readouterr().err

    def test_log_file_gets_debug_records(self, schema_dir, tmp_path, capsys):
        """--log-file records DEBUG detail while the console stays at INFO."""
        log_file = tmp_path / "logs" / "bench.log"
        assert main(["--log-file", str(log_file), "run", "--root", str(schema_dir)]) == 0

        assert "[DEBUG] protodecl_bench.runner - Imported" in log_file.read_text(encoding="utf-8")
        assert "[DEBUG]" not in capsys.readouterr().err

    def test_missing_schema_exits_nonzero(self, tmp_path, capsys):
        """A failed import is logged and nothing is printed."""
        assert main(["run", "--root", str(tmp_path)]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "[ERROR] Import failed: Schema source not found" in captured.err

    def test_invalid_config_exits_nonzero(self, tmp_path, capsys):
        config = tmp_path / "bench.json"
        config.write_text(json.dumps({"skip_index": "sometimes"}))
        assert main(["run", "--config", str(config)]) == 1
        assert capsys.readouterr().out == ""

    def test_missing_config_exits_nonzero(self, tmp_path, capsys):
        """A config path that does not exist is reported, not raised."""
        assert main(["run", "--config", str(tmp_path / "nope.json")]) == 1
        assert capsys.readouterr().out == ""


class TestInspect:
    """Test the inspect subcommand."""

    def test_prints_package_tree(self, schema_dir, capsys):
        """The debug JSON of the schema is printed."""
        assert main(["inspect", str(schema_dir / "proto.protodecl")]) == 0
        tree = json.loads(capsys.readouterr().out)
        assert tree["name"] == ""
        assert [p["name"] for p in tree["packages"]] == ["bench"]
        assert [p["name"] for p in tree["packages"][0]["packages"]] == ["bench.pkg0", "bench.pkg1", "bench.pkg2"]

    def test_indexed_and_skip_index_agree(self, schema_dir, capsys):
        main(["inspect", str(schema_dir / "proto.protodecl")])
        indexed = capsys.readouterr().out
        main(["inspect", str(schema_dir / "proto.protodecl"), "--skip-index"])
        assert capsys.readouterr().out == indexed

    def test_malformed_file_exits_nonzero(self, tmp_path, capsys):
        path = tmp_path / "broken.protodecl"
        path.write_bytes(b"PROTODCL\xff\xff\x00\x00{}")
        assert main(["inspect", str(path)]) == 1
        assert "[ERROR] Import failed" in capsys.readouterr().err

    def test_cyclic_index_exits_nonzero(self, tmp_path, capsys):
        """A prebuilt index with a package cycle is reported as an import failure."""
        index = DescriptorIndex(
            packages=[
                IndexedPackage(full_name="", nested_package_indexes=[1]),
                IndexedPackage(full_name="a", nested_package_indexes=[1]),
            ]
        )
        path = tmp_path / "cyclic.protodecl"
        path.write_bytes(pack_container(index, b'{"files":[]}'))
        assert main(["inspect", str(path)]) == 1
        assert "[ERROR] Import failed" in capsys.readouterr().err


def test_subcommand_required(capsys):
    """Running without a subcommand is a usage error."""
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 2
