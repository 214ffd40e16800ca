"""Compiler driver: runs the pipeline up to a requested stage."""

from __future__ import annotations

import logging
from typing import Any

from yeoldedragon.checker import Checker
from yeoldedragon.js_emitter import generate
from yeoldedragon.lexer import Lexer
from yeoldedragon.optimizer import optimize
from yeoldedragon.parser import Parser

logger = logging.getLogger(__name__)

OUTPUT_TYPES = ("parsed", "analyzed", "optimized", "js")


def compile(
    source: str,
    output_type: str = "js",
    filename: str = "<stdin>",
    *,
    optimize_ir: bool = True,
) -> Any:
    """Compile Dragon source text.

    ``output_type`` selects the last stage to run:

    - ``parsed``: only checks the syntax and returns ``"Syntax is ok"``
    - ``analyzed``: the typed IR program
    - ``optimized``: the optimized IR program
    - ``js``: JavaScript source text (optimized unless ``optimize_ir`` is false)

    Raises DragonSyntaxError or SemanticError on the first error, and
    ValueError for an unknown output type.
    """
    if output_type not in OUTPUT_TYPES:
        raise ValueError("Unknown output type")

    program = Parser(Lexer(source, filename).lex(), filename).parse()
    logger.debug("parsed %s: %d statement(s)", filename, len(program.statements))
    if output_type == "parsed":
        return "Syntax is ok"

    analyzed = Checker().check(program)
    if output_type == "analyzed":
        return analyzed

    if output_type == "optimized" or optimize_ir:
        analyzed = optimize(analyzed)
    if output_type == "optimized":
        return analyzed
    return generate(analyzed)
