"""Tests for the compiler driver."""

from __future__ import annotations

import logging

import pytest

from yeoldedragon import ir
from yeoldedragon.compiler import OUTPUT_TYPES, compile
from yeoldedragon.errors import CompileError, DragonSyntaxError, SemanticError

GCD = """\
don gcd(a: int, b: int) -> int {
  thine x: int = a;
  thine y: int = b;
  whilst y != 0 {
    fact t: int = y;
    y = x - (x / y) * y;
    x = t;
  }
  return x;
}
proclaim gcd(a: 12 * 2, b: 18);
"""


class TestCompile:
    """Test the staged compile entry point."""

    def test_output_types(self):
        assert OUTPUT_TYPES == ("parsed", "analyzed", "optimized", "js")

    def test_parsed(self):
        assert compile("proclaim 1;", "parsed") == "Syntax is ok"

    def test_parsed_skips_analysis(self):
        assert compile("proclaim ghost;", "parsed") == "Syntax is ok"

    def test_analyzed(self):
        program = compile("proclaim 1 + 2;", "analyzed")
        assert isinstance(program, ir.Program)
        assert isinstance(program.statements[0].expression, ir.BinaryExpression)

    def test_optimized(self):
        program = compile("proclaim 1 + 2;", "optimized")
        assert program.statements[0].expression.value == 3

    def test_js_is_default(self):
        assert compile("proclaim 1 + 2;") == "console.log(3);"

    def test_js_unoptimized(self):
        assert compile("proclaim 1 + 2;", optimize_ir=False) == "console.log(1 + 2);"

    def test_whole_program(self):
        out = compile(GCD)
        assert "function gcd_3(a_1, b_2) {" in out
        assert "while (y_5 !== 0) {" in out
        assert "Math.trunc(x_4 / y_5)" in out
        assert out.endswith("console.log(gcd_3(24, 18));")

    def test_unknown_output_type(self):
        with pytest.raises(ValueError, match="Unknown output type"):
            compile("proclaim 1;", "wasm")

    def test_syntax_error(self):
        with pytest.raises(DragonSyntaxError):
            compile("proclaim (1;")

    def test_semantic_error(self):
        with pytest.raises(SemanticError) as exc_info:
            compile("proclaim ghost;", filename="ghost.dragon")
        assert exc_info.value.span.file == "ghost.dragon"

    def test_errors_share_a_base(self):
        with pytest.raises(CompileError):
            compile("breaketh;")

    def test_debug_logging(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="yeoldedragon"):
            compile("proclaim 1;", "analyzed", "log.dragon")
        assert "parsed log.dragon: 1 statement(s)" in caplog.text
