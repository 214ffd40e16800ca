"""Typed intermediate representation produced by the analyzer.

Each class is one variant of a closed sum type; consumers dispatch with
``match`` over the class. Expressions carry their resolved ``type``.
Symbol records (``Variable``, ``Function``, ``ObjectType``, ...) also appear
directly as expressions where a name is referenced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from yeoldedragon.symbols import FieldArgument, Function, Variable
from yeoldedragon.types import ObjectType, Type

# ── Program and declarations ─────────────────────────────────────


@dataclass
class Program:
    statements: list[Any]


@dataclass
class VariableDeclaration:
    variable: Variable
    initializer: Any


@dataclass
class ConstantDeclaration:
    variable: Variable
    initializer: Any


@dataclass
class FunctionDeclaration:
    function: Function


@dataclass
class StructDeclaration:
    type: ObjectType


@dataclass
class ClassDeclaration:
    type: ObjectType


# ── Statements ───────────────────────────────────────────────────


@dataclass
class PrintStatement:
    expression: Any


@dataclass
class IncrementStatement:
    variable: Any


@dataclass
class DecrementStatement:
    variable: Any


@dataclass
class AssignmentStatement:
    target: Any
    source: Any


@dataclass
class ReturnStatement:
    expression: Any


@dataclass
class ShortReturnStatement:
    pass


@dataclass
class IfStatement:
    test: Any
    consequent: list[Any]
    alternate: list[Any] | IfStatement | ShortIfStatement


@dataclass
class ShortIfStatement:
    test: Any
    consequent: list[Any]


@dataclass
class WhileStatement:
    test: Any
    body: list[Any]


@dataclass
class RepeatStatement:
    count: Any
    body: list[Any]


@dataclass
class ForRangeStatement:
    iterator: Variable
    low: Any
    op: str  # "..." inclusive, "..<" exclusive
    high: Any
    body: list[Any]


@dataclass
class ForEachStatement:
    iterator: Variable
    collection: Any
    body: list[Any]


@dataclass
class BreakStatement:
    pass


@dataclass
class CallStatement:
    call: Any


# ── Expressions ──────────────────────────────────────────────────


@dataclass
class Literal:
    value: Any
    type: Type


@dataclass
class UnaryExpression:
    op: str  # "-", "ne" or "some"
    operand: Any
    type: Type


@dataclass
class BinaryExpression:
    op: str
    left: Any
    right: Any
    type: Type


@dataclass
class TernaryExpression:
    test: Any
    consequent: Any
    alternate: Any
    type: Type


@dataclass
class NilCoalescingExpression:
    optional: Any
    fallback: Any
    type: Type


@dataclass
class EmptyOptional:
    type: Type


@dataclass
class ListExpression:
    elements: list[Any]
    type: Type


@dataclass
class EmptyListExpression:
    type: Type


@dataclass
class SubscriptExpression:
    collection: Any
    index: Any
    type: Type


@dataclass
class MemberExpression:
    object: Any
    op: str  # "." or "?."
    member: Any  # Field or Function
    type: Type


@dataclass
class SelfReference:
    type: ObjectType


@dataclass
class Argument:
    name: str | None
    value: Any


@dataclass
class FunctionCall:
    callee: Any
    args: list[Argument]
    type: Type


@dataclass
class ObjectCall:
    callee: ObjectType
    args: list[Argument]
    type: Type


@dataclass
class StringExpression:
    parts: list[Any]  # str chunks and expressions, in source order
    type: Type


Expression = Union[
    Literal, UnaryExpression, BinaryExpression, TernaryExpression,
    NilCoalescingExpression, EmptyOptional, ListExpression,
    EmptyListExpression, SubscriptExpression, MemberExpression,
    SelfReference, FunctionCall, ObjectCall, StringExpression,
    Variable, FieldArgument, Function,
]
