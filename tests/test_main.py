# tests/test_main.py
"""
Tests for the command-line interface and diagnostic output formats.
"""

import io
import json

import pytest

from untypedconst import __version__
from untypedconst.ast import Pos
from untypedconst.diagnostics import Diagnostic, write_json, write_text
from untypedconst.main import EXIT_FINDINGS, EXIT_INFRA, EXIT_OK, main
from tests.conftest import CALL_ARG_DUMP, COMPOSITE_DUMP, TYPED_RETURN_DUMP


@pytest.fixture
def diag():
    return Diagnostic(
        start=Pos("units.go", 4, 4),
        end=Pos("units.go", 4, 5),
        message='passing naked literal to parameter of defined type "p.T"',
    )


@pytest.fixture
def write_dump(tmp_path):
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


class TestDiagnosticFormats:

    def test_gcc_format(self, diag):
        assert diag.to_gcc_format() == (
            'units.go:4:4: passing naked literal to parameter of defined '
            'type "p.T" [untypedconst]'
        )

    def test_json(self, diag):
        data = json.loads(diag.to_json_str())
        assert data["file"] == "units.go"
        assert (data["line"], data["column"]) == (4, 4)
        assert (data["endLine"], data["endColumn"]) == (4, 5)
        assert data["category"] == "untypedconst"

    def test_write_text(self, diag):
        out = io.StringIO()
        assert write_text([diag, diag], out) == 2
        assert out.getvalue().count("\n") == 2

    def test_write_json_empty(self):
        out = io.StringIO()
        assert write_json([], out) == 0
        assert json.loads(out.getvalue()) == []


class TestMain:

    def test_findings_exit_code(self, write_dump, capsys):
        path = write_dump("units.sexp", CALL_ARG_DUMP)
        assert main([path]) == EXIT_FINDINGS
        out = capsys.readouterr().out
        assert out.startswith("units.go:4:4: passing naked literal")

    def test_clean_exit_code(self, write_dump, capsys):
        path = write_dump("clean.sexp", TYPED_RETURN_DUMP)
        assert main([path]) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_multiple_dumps_json(self, write_dump, capsys):
        paths = [
            write_dump("a.sexp", CALL_ARG_DUMP),
            write_dump("b.sexp", COMPOSITE_DUMP),
        ]
        assert main(["--format", "json", *paths]) == EXIT_FINDINGS
        data = json.loads(capsys.readouterr().out)
        assert len(data) == 3

    def test_output_file(self, write_dump, tmp_path):
        path = write_dump("units.sexp", CALL_ARG_DUMP)
        out = tmp_path / "out" / "findings.txt"
        assert main(["-o", str(out), path]) == EXIT_FINDINGS
        assert "[untypedconst]" in out.read_text(encoding="utf-8")

    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / "nope.sexp")]) == EXIT_INFRA

    def test_malformed_dump(self, write_dump):
        path = write_dump("bad.sexp", "(package \"p\" p (file \"a.go\" (bogus)))")
        assert main([path]) == EXIT_INFRA

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out
