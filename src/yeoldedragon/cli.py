"""Ye Olde Dragon compiler CLI."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import click

from yeoldedragon import __version__
from yeoldedragon import ir
from yeoldedragon.compiler import OUTPUT_TYPES, compile
from yeoldedragon.config import DragonConfig, find_config, load_config
from yeoldedragon.errors import CompileError, DiagnosticRenderer
from yeoldedragon.source import SourceFile
from yeoldedragon.symbols import FieldArgument, Function, Variable
from yeoldedragon.types import Field, ObjectType, type_description

_SYMBOLS = (Variable, FieldArgument, Function, ObjectType, Field)


def _load(file: str) -> tuple[SourceFile, DragonConfig]:
    try:
        source = SourceFile.load(Path(file))
        config = load_config(find_config(Path(file)))
    except ValueError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)
    return source, config


def _run(source: SourceFile, config: DragonConfig, output: str, *,
         optimize: bool, pretty: bool) -> Any:
    """Compile, reporting the first error on stderr and exiting 1."""
    try:
        return compile(source.text, output, source.name, optimize_ir=optimize)
    except CompileError as e:
        if pretty:
            renderer = DiagnosticRenderer(
                color=config.diagnostics.color, sources={source.name: source},
            )
            for diag in e.diagnostics:
                click.echo(renderer.render(diag), err=True)
        else:
            click.echo(str(e), err=True)
        raise SystemExit(1)


@click.group()
@click.version_option(__version__, prog_name="dragon")
@click.option("-v", "--verbose", is_flag=True, help="Log compiler internals to stderr.")
def main(verbose: bool) -> None:
    """The Ye Olde Dragon compiler."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@main.command(name="compile")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o", "--output", type=click.Choice(OUTPUT_TYPES), default=None,
    help="Stage to stop at (default from dragon.toml, else js).",
)
@click.option("--optimize/--no-optimize", default=None, help="Run the optimizer before emitting.")
@click.option("--pretty", is_flag=True, help="Render errors with source context.")
def compile_cmd(file: str, output: str | None, optimize: bool | None, pretty: bool) -> None:
    """Compile a Dragon source file."""
    source, config = _load(file)
    output = output or config.build.output
    result = _run(
        source, config, output,
        optimize=config.build.optimize if optimize is None else optimize,
        pretty=pretty or config.diagnostics.pretty,
    )
    if isinstance(result, ir.Program):
        _dump_ir(result, 0)
    else:
        click.echo(result)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def check(file: str) -> None:
    """Type-check a Dragon source file without generating code."""
    source, config = _load(file)
    _run(source, config, "analyzed", optimize=False, pretty=config.diagnostics.pretty)
    click.echo(f"checked {file}: no errors")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--ir", "show_ir", is_flag=True, help="Show the analyzed IR instead of the syntax tree.")
def view(file: str, show_ir: bool) -> None:
    """View the syntax tree (or IR) of a Dragon source file."""
    from yeoldedragon.parser import parse

    source, config = _load(file)
    if show_ir:
        program = _run(source, config, "analyzed", optimize=False, pretty=config.diagnostics.pretty)
        _dump_ir(program, 0)
        return
    _run(source, config, "parsed", optimize=False, pretty=config.diagnostics.pretty)
    _dump_ast(parse(source.text, source.name), 0)


@main.command()
def lsp() -> None:
    """Start the Dragon language server."""
    from yeoldedragon.lsp import main as lsp_main

    lsp_main()


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable syntax tree dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            if field_name == "span":
                continue
            value = getattr(node, field_name)
            if isinstance(value, list):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_ast(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2)
            elif value is not None:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")


def _dump_ir(node: object, depth: int, *, declaring: bool = False) -> None:
    """Print a readable IR dump.

    Symbol records are expanded only where they are declared; references
    print as ``Kind name: type`` so recursive calls do not loop.
    """
    indent = "  " * depth
    name = type(node).__name__

    if isinstance(node, _SYMBOLS) and not declaring:
        click.echo(f"{indent}{name} {node.name}: {type_description(_symbol_type(node))}")
        return
    if not hasattr(node, "__dataclass_fields__"):
        click.echo(f"{indent}{node!r}")
        return

    click.echo(f"{indent}{name}")
    expand = isinstance(node, (
        ir.FunctionDeclaration, ir.StructDeclaration, ir.ClassDeclaration, ObjectType,
    ))
    for field_name in node.__dataclass_fields__:  # type: ignore[attr-defined]
        if field_name == "span":
            continue
        value = getattr(node, field_name)
        if field_name == "type" and not expand:
            click.echo(f"{indent}  type: {type_description(value)}")
        elif isinstance(value, list):
            if value:
                click.echo(f"{indent}  {field_name}:")
                for item in value:
                    _dump_ir(item, depth + 2, declaring=expand or isinstance(node, Function))
            else:
                click.echo(f"{indent}  {field_name}: []")
        elif hasattr(value, "__dataclass_fields__"):
            click.echo(f"{indent}  {field_name}:")
            _dump_ir(value, depth + 2, declaring=expand)
        elif value is not None:
            click.echo(f"{indent}  {field_name}: {value!r}")


def _symbol_type(node: Any) -> Any:
    return node if isinstance(node, ObjectType) else node.type
