"""Dragon Language Server: pygls-based LSP for .dragon files.

Provides diagnostics, hover, completion and document symbols via stdio
transport. Each open document is re-analyzed in full on every change.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from yeoldedragon import __version__
from yeoldedragon.ast_nodes import FunctionDef, GuildDef, MatterDef, Program, VarDecl
from yeoldedragon.checker import Checker
from yeoldedragon.errors import CompileError, Diagnostic, Severity
from yeoldedragon.lexer import Lexer
from yeoldedragon.parser import Parser
from yeoldedragon.source import Span
from yeoldedragon.symbols import FieldArgument, Function, Scope, Symbol, Variable
from yeoldedragon.tokens import KEYWORDS, TYPE_NAMES
from yeoldedragon.types import ObjectType, type_description

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}

_KEYWORD_COMPLETIONS = sorted(set(KEYWORDS) | TYPE_NAMES)


def span_to_range(span: Span) -> lsp.Range:
    """Convert a 1-indexed Dragon Span to a 0-indexed LSP Range."""
    return lsp.Range(
        start=lsp.Position(line=span.start_line - 1, character=span.start_col - 1),
        end=lsp.Position(line=span.end_line - 1, character=span.end_col),
    )


def _compile_diag(d: Diagnostic) -> lsp.Diagnostic:
    """Convert a Dragon Diagnostic to an LSP Diagnostic."""
    span_range = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    if d.span is not None:
        span_range = span_to_range(d.span)
    return lsp.Diagnostic(
        range=span_range,
        severity=_SEVERITY_MAP.get(d.severity, lsp.DiagnosticSeverity.Error),
        source="dragon",
        code=d.code,
        message=f"[{d.code}] {d.message}",
    )


def _symbol_kind(sym: Symbol) -> str:
    match sym:
        case Function(is_method=True):
            return "method"
        case Function():
            return "function"
        case ObjectType():
            return "guild" if sym.is_class else "matter"
        case FieldArgument():
            return "parameter"
        case Variable(mutable=True):
            return "variable"
    return "constant"


def _symbol_display(name: str, sym: Symbol) -> str:
    if isinstance(sym, ObjectType):
        params = ", ".join(f"{n}: {type_description(t)}" for n, t in sym.signature)
        return f"{name}({params})"
    if isinstance(sym, Function):
        params = ", ".join(f"{p.name}: {type_description(p.type)}" for p in sym.params)
        return f"{name}({params}) -> {type_description(sym.type.return_type)}"
    return f"{name}: {type_description(sym.type)}"


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    program: Program | None = None
    globals: Scope | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


server = LanguageServer(
    "dragon-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _analyze(uri: str, source: str) -> DocumentState:
    """Run Lexer, Parser and Checker; cache and return the document state.

    Top-level symbols stay available for hover and completion even when
    the analyzer stops part-way through the file.
    """
    ds = DocumentState(source=source)
    _state[uri] = ds
    try:
        ds.program = Parser(Lexer(source, uri).lex(), uri).parse()
    except CompileError as e:
        ds.diagnostics = [_compile_diag(d) for d in e.diagnostics]
        return ds

    checker = Checker()
    ds.globals = checker.globals
    try:
        checker.check(ds.program)
    except CompileError as e:
        ds.diagnostics = [_compile_diag(d) for d in e.diagnostics]
    return ds


def _get_word_at(source: str, line: int, character: int) -> str:
    """Extract the word at the given 0-indexed position."""
    lines = source.splitlines()
    if line < 0 or line >= len(lines):
        return ""
    text = lines[line]
    if character < 0 or character >= len(text):
        if 0 < character <= len(text):
            character -= 1
        else:
            return ""

    start = character
    while start > 0 and (text[start - 1].isalnum() or text[start - 1] == "_"):
        start -= 1
    end = character
    while end < len(text) and (text[end].isalnum() or text[end] == "_"):
        end += 1
    return text[start:end]


def _hover_text(ds: DocumentState, word: str) -> str | None:
    if ds.globals is None or not word:
        return None
    sym = ds.globals.lookup(word)
    if sym is None:
        return None
    return f"**{_symbol_kind(sym)}** `{_symbol_display(word, sym)}`"


def _completion_items(ds: DocumentState | None) -> list[lsp.CompletionItem]:
    items = [
        lsp.CompletionItem(label=kw, kind=lsp.CompletionItemKind.Keyword)
        for kw in _KEYWORD_COMPLETIONS
    ]
    if ds is None or ds.globals is None:
        return items

    kinds = {
        "function": lsp.CompletionItemKind.Function,
        "method": lsp.CompletionItemKind.Method,
        "matter": lsp.CompletionItemKind.Struct,
        "guild": lsp.CompletionItemKind.Class,
    }
    seen = set(_KEYWORD_COMPLETIONS)
    scope: Scope | None = ds.globals
    while scope is not None:
        for name, sym in scope.symbols().items():
            if name in seen:
                continue
            seen.add(name)
            items.append(lsp.CompletionItem(
                label=name,
                kind=kinds.get(_symbol_kind(sym), lsp.CompletionItemKind.Variable),
                detail=_symbol_display(name, sym),
            ))
        scope = scope.parent
    return items


def _document_symbols(program: Program) -> list[lsp.DocumentSymbol]:
    symbols: list[lsp.DocumentSymbol] = []
    for stmt in program.statements:
        match stmt:
            case FunctionDef():
                kind = lsp.SymbolKind.Function
                children = None
            case MatterDef():
                kind = lsp.SymbolKind.Struct
                children = [_field_symbol(f.name, f.span) for f in stmt.fields] or None
            case GuildDef():
                kind = lsp.SymbolKind.Class
                children = [_field_symbol(f.name, f.span) for f in stmt.fields]
                children += [
                    lsp.DocumentSymbol(
                        name=m.name, kind=lsp.SymbolKind.Method,
                        range=span_to_range(m.span),
                        selection_range=span_to_range(m.span),
                    )
                    for m in stmt.methods
                ]
                children = children or None
            case VarDecl(mutable=True):
                kind = lsp.SymbolKind.Variable
                children = None
            case VarDecl():
                kind = lsp.SymbolKind.Constant
                children = None
            case _:
                continue
        symbols.append(lsp.DocumentSymbol(
            name=stmt.name,
            kind=kind,
            range=span_to_range(stmt.span),
            selection_range=span_to_range(stmt.span),
            children=children,
        ))
    return symbols


def _field_symbol(name: str, span: Span) -> lsp.DocumentSymbol:
    return lsp.DocumentSymbol(
        name=name, kind=lsp.SymbolKind.Field,
        range=span_to_range(span), selection_range=span_to_range(span),
    )


# ── LSP Feature Handlers ─────────────────────────────────────────


def _publish(uri: str, ds: DocumentState) -> None:
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    _publish(uri, _analyze(uri, params.text_document.text))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: the last change holds the whole text.
    source = params.content_changes[-1].text if params.content_changes else ""
    _publish(uri, _analyze(uri, source))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    word = _get_word_at(ds.source, params.position.line, params.position.character)
    content = _hover_text(ds, word)
    if content is None:
        return None
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=content,
    ))


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(trigger_characters=["."]),
)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    ds = _state.get(params.text_document.uri)
    return lsp.CompletionList(is_incomplete=False, items=_completion_items(ds))


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.program is None:
        return []
    return _document_symbols(ds.program)


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the Dragon language server on stdio."""
    server.start_io()
