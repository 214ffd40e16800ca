"""IR optimizer for the Dragon language.

Sits between the analyzer and the JavaScript emitter. A single recursive
rewrite folds constants, applies algebraic identities, short-circuits
boolean operators with literal operands and removes dead branches,
self-assignments and loops that can never run. Statements may rewrite to
a list of statements (possibly empty), which is spliced into the
enclosing block. New nodes are built with ``dataclasses.replace()``;
function and method bodies live on their symbol records and are updated
in place.

The optimizer never raises: a fold that would fail at compile time (a
division by zero, a negative integer exponent, a non-finite result) is
left for run time. Running it twice gives the same tree as running it once.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any

from yeoldedragon import ir
from yeoldedragon.symbols import Function
from yeoldedragon.types import BOOLEAN, FLOAT, INT, MAX_SAFE_INTEGER, ObjectType

logger = logging.getLogger(__name__)


def _is_literal(node: Any, *types: Any) -> bool:
    return isinstance(node, ir.Literal) and node.type in types


def _is_number(node: Any, value: int) -> bool:
    return _is_literal(node, INT, FLOAT) and node.value == value


def _is_bool(node: Any, value: bool) -> bool:
    return _is_literal(node, BOOLEAN) and node.value is value


def _int_divide(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _fold_arithmetic(op: str, a: Any, b: Any, is_int: bool) -> Any:
    """Evaluate ``a op b``; None when the result is not a safe constant."""
    try:
        match op:
            case "+":
                result = a + b
            case "-":
                result = a - b
            case "*":
                result = a * b
            case "/":
                if b == 0:
                    return None
                result = _int_divide(a, b) if is_int else a / b
            case "**":
                if is_int and (b < 0 or (abs(a) > 1 and b > 64)):
                    return None
                result = a ** b
            case _:
                return None
    except (ZeroDivisionError, OverflowError):
        return None
    if is_int:
        return result if abs(result) <= MAX_SAFE_INTEGER else None
    if not isinstance(result, float) or not math.isfinite(result):
        return None
    return result


def _fold_comparison(op: str, a: Any, b: Any) -> bool | None:
    match op:
        case "<":
            return a < b
        case "<=":
            return a <= b
        case ">":
            return a > b
        case ">=":
            return a >= b
        case "==":
            return a == b
        case "!=":
            return a != b
    return None


class Optimizer:
    """Recursive IR-to-IR rewriter."""

    def optimize(self, node: Any) -> Any:
        """Optimize a program, statement, expression or list of statements."""
        if isinstance(node, list):
            return self._block(node)
        match node:
            case ir.Program(statements=statements):
                return replace(node, statements=self._block(statements))
            case ir.VariableDeclaration() | ir.ConstantDeclaration():
                return replace(node, initializer=self.optimize(node.initializer))
            case ir.FunctionDeclaration(function=fun):
                self._optimize_function(fun)
                return node
            case ir.StructDeclaration():
                return node
            case ir.ClassDeclaration(type=obj):
                self._optimize_class(obj)
                return node
            case ir.PrintStatement(expression=expression):
                return replace(node, expression=self.optimize(expression))
            case ir.IncrementStatement() | ir.DecrementStatement():
                return replace(node, variable=self.optimize(node.variable))
            case ir.AssignmentStatement():
                return self._assignment(node)
            case ir.ReturnStatement(expression=expression):
                return replace(node, expression=self.optimize(expression))
            case ir.IfStatement() | ir.ShortIfStatement():
                return self._if(node)
            case ir.WhileStatement():
                return self._while(node)
            case ir.RepeatStatement():
                return self._repeat(node)
            case ir.ForRangeStatement():
                return self._for_range(node)
            case ir.ForEachStatement():
                return self._for_each(node)
            case ir.CallStatement(call=call):
                return replace(node, call=self.optimize(call))
            case ir.BinaryExpression():
                return self._binary(node)
            case ir.UnaryExpression():
                return self._unary(node)
            case ir.TernaryExpression():
                return self._ternary(node)
            case ir.NilCoalescingExpression():
                return self._nil_coalescing(node)
            case ir.ListExpression(elements=elements):
                return replace(node, elements=[self.optimize(e) for e in elements])
            case ir.SubscriptExpression():
                return replace(
                    node,
                    collection=self.optimize(node.collection),
                    index=self.optimize(node.index),
                )
            case ir.FunctionCall() | ir.ObjectCall():
                return replace(node, args=[
                    replace(arg, value=self.optimize(arg.value)) for arg in node.args
                ])
            case ir.StringExpression(parts=parts):
                return replace(node, parts=[
                    p if isinstance(p, str) else self.optimize(p) for p in parts
                ])
        # Literals, names, members, empty lists and optionals, breaks and
        # short returns have nothing to rewrite.
        return node

    def _block(self, statements: list[Any]) -> list[Any]:
        result: list[Any] = []
        for stmt in statements:
            optimized = self.optimize(stmt)
            if isinstance(optimized, list):
                result.extend(optimized)
            else:
                result.append(optimized)
        return result

    def _removed(self, node: Any, reason: str) -> list[Any]:
        logger.debug("removed %s: %s", type(node).__name__, reason)
        return []

    # ── Declarations ──────────────────────────────────────────────

    def _optimize_function(self, fun: Function) -> None:
        if not fun.intrinsic:
            fun.body = self._block(fun.body)

    def _optimize_class(self, obj: ObjectType) -> None:
        for field in obj.fields:
            if field.value is not None:
                field.value = self.optimize(field.value)
        for method in obj.methods:
            self._optimize_function(method)

    # ── Statements ───────────────────────────────────────────────

    def _assignment(self, node: ir.AssignmentStatement) -> Any:
        target = self.optimize(node.target)
        source = self.optimize(node.source)
        if source is target:
            return self._removed(node, "self-assignment")
        return replace(node, target=target, source=source)

    def _if(self, node: ir.IfStatement | ir.ShortIfStatement) -> Any:
        test = self.optimize(node.test)
        consequent = self._block(node.consequent)
        alternate: Any = []
        if isinstance(node, ir.IfStatement):
            alternate = self.optimize(node.alternate)
        if _is_bool(test, True):
            logger.debug("if with constant test: kept consequent")
            return consequent
        if _is_bool(test, False):
            logger.debug("if with constant test: kept alternate")
            return alternate
        if isinstance(node, ir.ShortIfStatement):
            return replace(node, test=test, consequent=consequent)
        if isinstance(alternate, list) and not alternate:
            return ir.ShortIfStatement(test, consequent)
        return replace(node, test=test, consequent=consequent, alternate=alternate)

    def _while(self, node: ir.WhileStatement) -> Any:
        test = self.optimize(node.test)
        if _is_bool(test, False):
            return self._removed(node, "condition is shant")
        return replace(node, test=test, body=self._block(node.body))

    def _repeat(self, node: ir.RepeatStatement) -> Any:
        count = self.optimize(node.count)
        if _is_literal(count, INT) and count.value <= 0:
            return self._removed(node, f"repeats {count.value} times")
        return replace(node, count=count, body=self._block(node.body))

    def _for_range(self, node: ir.ForRangeStatement) -> Any:
        low = self.optimize(node.low)
        high = self.optimize(node.high)
        if _is_literal(low, INT) and _is_literal(high, INT):
            empty = low.value > high.value if node.op == "..." else low.value >= high.value
            if empty:
                return self._removed(node, "empty range")
        return replace(node, low=low, high=high, body=self._block(node.body))

    def _for_each(self, node: ir.ForEachStatement) -> Any:
        collection = self.optimize(node.collection)
        if isinstance(collection, ir.EmptyListExpression):
            return self._removed(node, "iterates an empty list")
        return replace(node, collection=collection, body=self._block(node.body))

    # ── Expressions ──────────────────────────────────────────────

    def _binary(self, node: ir.BinaryExpression) -> Any:
        op = node.op
        left = self.optimize(node.left)
        right = self.optimize(node.right)

        if op in ("&&", "||"):
            return self._logical(node, left, right)

        if _is_literal(left, INT, FLOAT) and _is_literal(right, INT, FLOAT):
            folded = self._fold(node, left, right)
            if folded is not None:
                return folded
        elif _is_literal(left, BOOLEAN) and _is_literal(right, BOOLEAN) and op in ("==", "!="):
            value = _fold_comparison(op, left.value, right.value)
            return ir.Literal(value, BOOLEAN)

        if node.type in (INT, FLOAT):
            simplified = self._identity(node, op, left, right)
            if simplified is not None:
                logger.debug("simplified %s with an identity", op)
                return simplified
        return replace(node, left=left, right=right)

    def _fold(self, node: ir.BinaryExpression, left: ir.Literal, right: ir.Literal) -> Any:
        if node.type == BOOLEAN:
            value = _fold_comparison(node.op, left.value, right.value)
            if value is None:
                return None
            return ir.Literal(value, BOOLEAN)
        value = _fold_arithmetic(node.op, left.value, right.value, node.type == INT)
        if value is None:
            return None
        logger.debug("folded %r %s %r to %r", left.value, node.op, right.value, value)
        return ir.Literal(value, node.type)

    def _identity(self, node: ir.BinaryExpression, op: str, left: Any, right: Any) -> Any:
        zero_left, zero_right = _is_number(left, 0), _is_number(right, 0)
        one_left, one_right = _is_number(left, 1), _is_number(right, 1)
        match op:
            case "+" if zero_right:
                return left
            case "+" if zero_left:
                return right
            case "-" if zero_right:
                return left
            case "-" if zero_left:
                return self.optimize(ir.UnaryExpression("-", right, node.type))
            case "*" if one_right:
                return left
            case "*" if one_left:
                return right
            case "*" if zero_right:
                return right
            case "*" if zero_left:
                return left
            case "/" if one_right:
                return left
            case "/" if zero_left:
                return left
            case "**" if zero_right:
                return ir.Literal(1 if node.type == INT else 1.0, node.type)
        return None

    def _logical(self, node: ir.BinaryExpression, left: Any, right: Any) -> Any:
        if node.op == "&&":
            if _is_bool(left, True):
                return right
            if _is_bool(right, True):
                return left
            if _is_bool(left, False):
                return left
        else:
            if _is_bool(left, False):
                return right
            if _is_bool(right, False):
                return left
            if _is_bool(left, True):
                return left
        return replace(node, left=left, right=right)

    def _unary(self, node: ir.UnaryExpression) -> Any:
        operand = self.optimize(node.operand)
        if node.op == "-" and _is_literal(operand, INT, FLOAT):
            return ir.Literal(-operand.value, operand.type)
        if node.op == "ne" and _is_literal(operand, BOOLEAN):
            return ir.Literal(not operand.value, BOOLEAN)
        if node.op == "-" and isinstance(operand, ir.UnaryExpression) and operand.op == "-":
            return operand.operand
        return replace(node, operand=operand)

    def _ternary(self, node: ir.TernaryExpression) -> Any:
        test = self.optimize(node.test)
        consequent = self.optimize(node.consequent)
        alternate = self.optimize(node.alternate)
        if _is_bool(test, True):
            return consequent
        if _is_bool(test, False):
            return alternate
        return replace(node, test=test, consequent=consequent, alternate=alternate)

    def _nil_coalescing(self, node: ir.NilCoalescingExpression) -> Any:
        optional = self.optimize(node.optional)
        fallback = self.optimize(node.fallback)
        if isinstance(optional, ir.EmptyOptional):
            return fallback
        if isinstance(optional, ir.UnaryExpression) and optional.op == "some":
            return optional.operand
        return replace(node, optional=optional, fallback=fallback)


def optimize(node: Any) -> Any:
    """Optimize an IR node, list of statements or whole program."""
    return Optimizer().optimize(node)
