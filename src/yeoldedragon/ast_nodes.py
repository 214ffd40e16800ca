"""Syntax tree node definitions for the Dragon language.

These nodes are produced by the parser and are purely syntactic; the
analyzer turns them into the typed IR in ``yeoldedragon.ir``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from yeoldedragon.source import Span

# ── Type expressions ─────────────────────────────────────────────


@dataclass(frozen=True)
class NamedType:
    name: str
    span: Span


@dataclass(frozen=True)
class ListTypeExpr:
    element: TypeExpr
    span: Span


@dataclass(frozen=True)
class OptionalTypeExpr:
    base: TypeExpr
    span: Span


@dataclass(frozen=True)
class FunctionTypeExpr:
    params: list[TypeExpr]
    result: TypeExpr
    span: Span


TypeExpr = Union[NamedType, ListTypeExpr, OptionalTypeExpr, FunctionTypeExpr]


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class IntegerLit:
    value: str
    span: Span


@dataclass(frozen=True)
class FloatLit:
    value: str
    span: Span


@dataclass(frozen=True)
class BooleanLit:
    value: bool
    span: Span


@dataclass(frozen=True)
class StringLit:
    value: str
    span: Span


@dataclass(frozen=True)
class StringInterp:
    parts: list[Expr]
    span: Span


@dataclass(frozen=True)
class IdentifierExpr:
    name: str
    span: Span


@dataclass(frozen=True)
class SelfExpr:
    span: Span


@dataclass(frozen=True)
class NaughtExpr:
    type_expr: TypeExpr
    span: Span


@dataclass(frozen=True)
class ListLiteral:
    elements: list[Expr]
    span: Span


@dataclass(frozen=True)
class UnaryExpr:
    op: str
    operand: Expr
    span: Span


@dataclass(frozen=True)
class BinaryExpr:
    left: Expr
    op: str
    right: Expr
    span: Span


@dataclass(frozen=True)
class TernaryExpr:
    condition: Expr
    consequent: Expr
    alternate: Expr
    span: Span


@dataclass(frozen=True)
class CoalesceExpr:
    optional: Expr
    fallback: Expr
    span: Span


@dataclass(frozen=True)
class Argument:
    name: str | None
    value: Expr
    span: Span


@dataclass(frozen=True)
class CallExpr:
    callee: Expr
    args: list[Argument]
    span: Span


@dataclass(frozen=True)
class IndexExpr:
    collection: Expr
    index: Expr
    span: Span


@dataclass(frozen=True)
class MemberExpr:
    obj: Expr
    op: str  # "." or "?."
    name: str
    span: Span


Expr = Union[
    IntegerLit, FloatLit, BooleanLit, StringLit, StringInterp,
    IdentifierExpr, SelfExpr, NaughtExpr, ListLiteral,
    UnaryExpr, BinaryExpr, TernaryExpr, CoalesceExpr,
    CallExpr, IndexExpr, MemberExpr,
]


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class VarDecl:
    mutable: bool
    name: str
    type_expr: TypeExpr
    value: Expr
    span: Span


@dataclass(frozen=True)
class Param:
    name: str
    type_expr: TypeExpr
    span: Span


@dataclass(frozen=True)
class FunctionDef:
    name: str
    params: list[Param]
    return_type: TypeExpr | None
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class FieldDef:
    name: str
    type_expr: TypeExpr
    span: Span


@dataclass(frozen=True)
class MatterDef:
    name: str
    fields: list[FieldDef]
    span: Span


@dataclass(frozen=True)
class Initializer:
    params: list[Param]
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class GuildDef:
    name: str
    fields: list[FieldDef]
    initializer: Initializer | None
    methods: list[FunctionDef]
    span: Span


@dataclass(frozen=True)
class PrintStmt:
    value: Expr
    span: Span


@dataclass(frozen=True)
class Assignment:
    target: Expr
    value: Expr
    span: Span


@dataclass(frozen=True)
class IncDecStmt:
    target: Expr
    op: str  # "++" or "--"
    span: Span


@dataclass(frozen=True)
class ReturnStmt:
    value: Expr | None
    span: Span


@dataclass(frozen=True)
class IfStmt:
    condition: Expr
    consequent: list[Stmt]
    alternate: list[Stmt] | IfStmt | None
    span: Span


@dataclass(frozen=True)
class WhileStmt:
    condition: Expr
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class RepeatStmt:
    count: Expr
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class RangeLoop:
    iterator: str
    low: Expr
    op: str  # "..." or "..<"
    high: Expr
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class ForEachLoop:
    iterator: str
    collection: Expr
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class BreakStmt:
    span: Span


@dataclass(frozen=True)
class CallStmt:
    call: CallExpr
    span: Span


Stmt = Union[
    VarDecl, FunctionDef, MatterDef, GuildDef, PrintStmt, Assignment,
    IncDecStmt, ReturnStmt, IfStmt, WhileStmt, RepeatStmt, RangeLoop,
    ForEachLoop, BreakStmt, CallStmt,
]


@dataclass(frozen=True)
class Program:
    statements: list[Stmt]
    span: Span
