"""Tests for the command line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dumpheaders.__main__ import main


@pytest.fixture
def project(tmp_path: Path, sample_dump: str, methods_source: str, extensions_source: str) -> Path:
    """A configuration file plus dump and augmentation sources."""
    (tmp_path / "types.h").write_bytes(sample_dump.encode("latin-1"))
    framework = tmp_path / "charon" / "framework"
    framework.mkdir(parents=True)
    (framework / "ghidra.extensions.cpp").write_text(methods_source, encoding="latin-1")
    (framework / "ghidra.extensions.h").write_text(extensions_source, encoding="latin-1")
    config = {
        "structs": ["UnitAny"],
        "enums": ["UnitType"],
        "charonDirectory": "charon",
        "ghidraFile": "types.h",
    }
    path = tmp_path / "StructureConfig.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return path


class TestMain:
    def test_writes_headers(self, project):
        assert main([str(project)]) == 0
        headers = project.parent / "charon" / "headers"
        assert sorted(p.name for p in headers.iterdir()) == ["ghidra.enums.h", "ghidra.h", "ghidra.naked.h"]
        main_header = (headers / "ghidra.h").read_bytes().decode("latin-1")
        assert "\tint GetHealth(int nIndex);\r\n" in main_header
        assert "undefined4 _0[3]; // compressed" in main_header
        assert "struct PlayerUnit;" in (headers / "ghidra.naked.h").read_text(encoding="latin-1")

    def test_output_dir_option(self, project, tmp_path):
        out = tmp_path / "out"
        assert main([str(project), "--output-dir", str(out)]) == 0
        assert (out / "ghidra.h").is_file()
        assert not (project.parent / "charon" / "headers").exists()

    def test_no_compress(self, project):
        assert main([str(project), "--no-compress"]) == 0
        text = (project.parent / "charon" / "headers" / "ghidra.h").read_text(encoding="latin-1")
        assert "field_0x14;" in text
        assert "// compressed" not in text

    def test_json_format(self, project, capsys):
        assert main([str(project), "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["roots"] == ["UnitType", "UnitAny"]
        assert not (project.parent / "charon" / "headers").exists()

    def test_missing_config(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.json")]) == 1
        assert capsys.readouterr().err.startswith("ERROR: Cannot read configuration")

    def test_parse_error_reported(self, project, capsys):
        (project.parent / "types.h").write_text("struct A {\n int x\n", encoding="latin-1")
        assert main([str(project)]) == 1
        err = capsys.readouterr().err
        assert "ERROR:" in err
        assert "line 2" in err
        assert not (project.parent / "charon" / "headers").exists()

    def test_unknown_format_rejected(self, project):
        with pytest.raises(SystemExit):
            main([str(project), "--format", "yaml"])

    def test_header_writers_are_not_formats(self, project):
        with pytest.raises(SystemExit):
            main([str(project), "--format", "naked"])

    def test_help_lists_formats(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--help"])
        assert exc.value.code == 0
        out = capsys.readouterr().out
        assert "{headers,json}" in out
        assert "json      JSON dump of the resolved closure" in out

    def test_registered_writer_becomes_format(self, project, capsys, monkeypatch):
        import dumpheaders.writers as writers
        from dumpheaders.writers import list_writers, register_writer

        class NamesWriter:
            def write(self, closure):
                return ",".join(decl.name for decl in closure.declarations())

            @property
            def name(self):
                return "names"

            @property
            def format_description(self):
                return "Resolved type names"

        list_writers()
        monkeypatch.setattr(writers, "_WRITERS", dict(writers._WRITERS))
        register_writer("names", NamesWriter)

        assert main([str(project), "--format", "names"]) == 0
        assert capsys.readouterr().out.strip().endswith("UnitAny")
