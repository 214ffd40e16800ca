"""Tests for the Dragon CLI, config, and error rendering."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from yeoldedragon.cli import main
from yeoldedragon.config import find_config, load_config
from yeoldedragon.errors import (
    CompileError,
    Diagnostic,
    DiagnosticLabel,
    DiagnosticRenderer,
    SemanticError,
    Severity,
)
from yeoldedragon.source import SourceFile, Span


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def program(tmp_path):
    """A small valid Dragon program in a temp dir."""
    path = tmp_path / "hello.dragon"
    path.write_text('fact greeting: string = "hail";\nproclaim 1 + 2;\n')
    return path


@pytest.fixture
def broken(tmp_path):
    path = tmp_path / "broken.dragon"
    path.write_text("proclaim ghost;\n")
    return path


# --- CLI tests ---


class TestCLI:
    """Test the dragon command line."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Dragon" in result.output
        for command in ("compile", "check", "view", "lsp"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_compile_to_js(self, runner, program):
        result = runner.invoke(main, ["compile", str(program)])
        assert result.exit_code == 0
        assert 'const greeting_1 = "hail";' in result.output
        assert "console.log(3);" in result.output

    def test_compile_no_optimize(self, runner, program):
        result = runner.invoke(main, ["compile", str(program), "--no-optimize"])
        assert result.exit_code == 0
        assert "console.log(1 + 2);" in result.output

    def test_compile_parsed(self, runner, program):
        result = runner.invoke(main, ["compile", str(program), "-o", "parsed"])
        assert result.exit_code == 0
        assert result.output.strip() == "Syntax is ok"

    def test_compile_analyzed_dumps_ir(self, runner, program):
        result = runner.invoke(main, ["compile", str(program), "--output", "analyzed"])
        assert result.exit_code == 0
        assert "ConstantDeclaration" in result.output
        assert "Variable greeting: string" in result.output
        assert "BinaryExpression" in result.output

    def test_compile_optimized_dumps_ir(self, runner, program):
        result = runner.invoke(main, ["compile", str(program), "-o", "optimized"])
        assert result.exit_code == 0
        assert "BinaryExpression" not in result.output
        assert "value: 3" in result.output

    def test_compile_bad_output_type(self, runner, program):
        result = runner.invoke(main, ["compile", str(program), "-o", "wasm"])
        assert result.exit_code != 0

    def test_compile_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["compile", str(tmp_path / "nope.dragon")])
        assert result.exit_code != 0

    def test_compile_error(self, runner, broken):
        result = runner.invoke(main, ["compile", str(broken)])
        assert result.exit_code == 1
        assert "line 1, column 10: Identifier ghost not declared" in result.output

    def test_compile_error_pretty(self, runner, broken):
        result = runner.invoke(main, ["compile", str(broken), "--pretty"])
        assert result.exit_code == 1
        assert "error[E310]" in result.output
        assert "proclaim ghost;" in result.output

    def test_compile_not_utf8(self, runner, tmp_path):
        path = tmp_path / "latin.dragon"
        path.write_bytes(b"proclaim \xff;\n")
        result = runner.invoke(main, ["compile", str(path)])
        assert result.exit_code == 1
        assert "error:" in result.output
        assert "utf-8" in result.output

    def test_check_ok(self, runner, program):
        result = runner.invoke(main, ["check", str(program)])
        assert result.exit_code == 0
        assert "no errors" in result.output

    def test_check_error(self, runner, broken):
        result = runner.invoke(main, ["check", str(broken)])
        assert result.exit_code == 1

    def test_view_ast(self, runner, program):
        result = runner.invoke(main, ["view", str(program)])
        assert result.exit_code == 0
        assert "Program" in result.output
        assert "VarDecl" in result.output
        assert "name: 'greeting'" in result.output
        assert "span" not in result.output

    def test_view_ir(self, runner, program):
        result = runner.invoke(main, ["view", str(program), "--ir"])
        assert result.exit_code == 0
        assert "PrintStatement" in result.output

    def test_view_recursive_function(self, runner, tmp_path):
        path = tmp_path / "rec.dragon"
        path.write_text("don f(n: int) -> int { return f(n: n); }\n")
        result = runner.invoke(main, ["view", str(path), "--ir"])
        assert result.exit_code == 0
        assert "Function f: (int)->int" in result.output

    def test_verbose(self, runner, program):
        result = runner.invoke(main, ["-v", "compile", str(program)])
        assert result.exit_code == 0

    def test_lsp_help(self, runner):
        result = runner.invoke(main, ["lsp", "--help"])
        assert result.exit_code == 0
        assert "language server" in result.output


# --- Config tests ---


class TestConfig:
    """Test dragon.toml loading and precedence."""

    def test_load_config(self, tmp_path):
        toml = tmp_path / "dragon.toml"
        toml.write_text(
            '[build]\noutput = "optimized"\noptimize = false\n'
            "[diagnostics]\npretty = true\ncolor = false\n"
        )
        config = load_config(toml)
        assert config.build.output == "optimized"
        assert config.build.optimize is False
        assert config.diagnostics.pretty is True
        assert config.diagnostics.color is False

    def test_load_config_defaults(self):
        config = load_config(None)
        assert config.build.output == "js"
        assert config.build.optimize is True
        assert config.diagnostics.pretty is False

    def test_load_config_invalid_output(self, tmp_path):
        toml = tmp_path / "dragon.toml"
        toml.write_text('[build]\noutput = "wasm"\n')
        with pytest.raises(ValueError, match="output must be one of"):
            load_config(toml)

    def test_find_config(self, tmp_path):
        (tmp_path / "dragon.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(nested) == (tmp_path / "dragon.toml").resolve()

    def test_find_config_from_file(self, tmp_path, program):
        (tmp_path / "dragon.toml").write_text("")
        assert find_config(program) == (tmp_path / "dragon.toml").resolve()

    def test_config_selects_output(self, runner, tmp_path, program):
        (tmp_path / "dragon.toml").write_text('[build]\noutput = "parsed"\n')
        result = runner.invoke(main, ["compile", str(program)])
        assert result.output.strip() == "Syntax is ok"

    def test_flag_overrides_config(self, runner, tmp_path, program):
        (tmp_path / "dragon.toml").write_text("[build]\noptimize = false\n")
        result = runner.invoke(main, ["compile", str(program)])
        assert "console.log(1 + 2);" in result.output
        result = runner.invoke(main, ["compile", str(program), "--optimize"])
        assert "console.log(3);" in result.output

    def test_config_pretty_without_color(self, runner, tmp_path, broken):
        (tmp_path / "dragon.toml").write_text("[diagnostics]\npretty = true\ncolor = false\n")
        result = runner.invoke(main, ["check", str(broken)])
        assert result.exit_code == 1
        assert "error[E310]: Identifier ghost not declared" in result.output
        assert "\033[" not in result.output

    def test_invalid_config_reported(self, runner, tmp_path, program):
        (tmp_path / "dragon.toml").write_text('[build]\noutput = "wasm"\n')
        result = runner.invoke(main, ["compile", str(program)])
        assert result.exit_code == 1
        assert "error:" in result.output


# --- Error rendering tests ---


class TestErrorRendering:
    """Test Rust-style diagnostic rendering."""

    def test_render_error(self):
        source = SourceFile("t.dragon", "thine x: int = 1.5;\n")
        diag = Diagnostic(
            severity=Severity.ERROR,
            code="E321",
            message="Cannot assign a float to a int",
            labels=[DiagnosticLabel(span=Span("t.dragon", 1, 16, 1, 18))],
        )
        output = DiagnosticRenderer(color=False, sources={"t.dragon": source}).render(diag)
        lines = output.splitlines()
        assert lines[0] == "error[E321]: Cannot assign a float to a int"
        assert lines[1] == "  --> t.dragon:1:16"
        assert "   1 | thine x: int = 1.5;" in output
        assert lines[-1].endswith(" " * 15 + "^^^")

    def test_render_notes(self):
        diag = Diagnostic(
            severity=Severity.ERROR, code="E301", message="dup",
            notes=["previously declared at line 1, column 1"],
        )
        output = DiagnosticRenderer(color=False).render(diag)
        assert "= note: previously declared at line 1, column 1" in output

    def test_render_reads_file(self, tmp_path):
        path = tmp_path / "f.dragon"
        path.write_text("proclaim ghost;\n")
        diag = SemanticError("Identifier ghost not declared", Span(str(path), 1, 10, 1, 14),
                             code="E310").diagnostic
        output = DiagnosticRenderer(color=False).render(diag)
        assert "proclaim ghost;" in output
        assert "^^^^^" in output

    def test_render_with_color(self):
        diag = Diagnostic(severity=Severity.WARNING, code="W001", message="hmm")
        output = DiagnosticRenderer(color=True).render(diag)
        assert "\033[1;33m" in output

    def test_compile_error_message(self):
        err = SemanticError("bad", Span("f", 3, 7, 3, 9), code="E399")
        assert str(err) == "line 3, column 7: bad"
        assert isinstance(err, CompileError)
        assert err.diagnostic.code == "E399"
        assert err.diagnostic.span.start_line == 3

    def test_default_codes(self):
        err = SemanticError("bad", Span("f", 1, 1, 1, 1))
        assert err.diagnostic.code == "E300"
