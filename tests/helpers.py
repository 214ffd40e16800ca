"""Shared test helpers for the Dragon compiler test suite."""

from __future__ import annotations

import pytest

from yeoldedragon import ir
from yeoldedragon.ast_nodes import Program
from yeoldedragon.checker import Checker
from yeoldedragon.errors import SemanticError
from yeoldedragon.lexer import Lexer
from yeoldedragon.parser import Parser


def parse(source: str) -> Program:
    """Lex and parse source, returning the syntax tree."""
    tokens = Lexer(source, "<test>").lex()
    return Parser(tokens, "<test>").parse()


def analyze(source: str) -> ir.Program:
    """Parse and analyze source, asserting no errors. Returns the IR."""
    return Checker().check(parse(source))


def analyze_fails(source: str, error_code: str) -> SemanticError:
    """Parse and analyze source, asserting the given error code is raised."""
    program = parse(source)
    with pytest.raises(SemanticError) as exc_info:
        Checker().check(program)
    err = exc_info.value
    assert err.diagnostic.code == error_code, (
        f"Expected error {error_code} but got {err.diagnostic.code}: {err.message}"
    )
    return err
