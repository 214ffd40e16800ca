"""Generate JavaScript source code from a (usually optimized) IR program."""

from __future__ import annotations

import json
import math
from typing import Any

from yeoldedragon import ir
from yeoldedragon.symbols import FieldArgument, Function, Variable
from yeoldedragon.types import BOOLEAN, FLOAT, INT

_OPERATORS = {"==": "===", "!=": "!==", "&&": "&&", "||": "||"}

_INTRINSICS = {
    "π": "Math.PI",
    "sin": "Math.sin",
    "cos": "Math.cos",
    "exp": "Math.exp",
    "ln": "Math.log",
    "sqrt": "Math.sqrt",
    "hypot": "Math.hypot",
    "bytes": "(s) => [...new TextEncoder().encode(s)]",
}

# Nodes whose JavaScript form needs no parentheses as an operand.
_ATOMIC = (
    Variable, FieldArgument, Function, ir.SelfReference, ir.EmptyOptional,
    ir.ListExpression, ir.EmptyListExpression, ir.SubscriptExpression,
    ir.MemberExpression, ir.FunctionCall, ir.ObjectCall, ir.StringExpression,
)


class JsEmitter:
    """Emits JavaScript for an IR program.

    Every variable, function, type and parameter is renamed ``<name>_<n>``
    in order of first appearance so that shadowed Dragon names and
    JavaScript reserved words never collide. Fields and methods keep their
    names.
    """

    def __init__(self, program: ir.Program) -> None:
        self._program = program
        self._out: list[str] = []
        self._indent = 0
        self._names: dict[int, str] = {}
        self._counter = 0

    def emit(self) -> str:
        for stmt in self._program.statements:
            self._stmt(stmt)
        return "\n".join(self._out)

    # ── Helpers ───────────────────────────────────────────────────

    def _line(self, text: str) -> None:
        self._out.append("    " * self._indent + text)

    def _fresh(self, base: str) -> str:
        self._counter += 1
        return f"{base}_{self._counter}"

    def _name(self, entity: Any) -> str:
        key = id(entity)
        if key not in self._names:
            self._names[key] = self._fresh(entity.name)
        return self._names[key]

    def _body(self, statements: list[Any]) -> None:
        self._indent += 1
        for stmt in statements:
            self._stmt(stmt)
        self._indent -= 1

    # ── Statements ───────────────────────────────────────────────

    def _stmt(self, node: Any) -> None:
        match node:
            case ir.VariableDeclaration(variable=v, initializer=init):
                self._line(f"let {self._name(v)} = {self._expr(init)};")
            case ir.ConstantDeclaration(variable=v, initializer=init):
                self._line(f"const {self._name(v)} = {self._expr(init)};")
            case ir.FunctionDeclaration(function=fun):
                params = ", ".join(self._name(p) for p in fun.params)
                self._line(f"function {self._name(fun)}({params}) {{")
                self._body(fun.body)
                self._line("}")
            case ir.StructDeclaration(type=obj):
                self._line(f"class {self._name(obj)} {{")
                self._indent += 1
                params = ", ".join(self._name(f) for f in obj.fields)
                self._line(f"constructor({params}) {{")
                self._indent += 1
                for f in obj.fields:
                    self._line(f"this.{f.name} = {self._name(f)};")
                self._indent -= 1
                self._line("}")
                self._indent -= 1
                self._line("}")
            case ir.ClassDeclaration(type=obj):
                self._emit_class(obj)
            case ir.PrintStatement(expression=e):
                self._line(f"console.log({self._expr(e)});")
            case ir.IncrementStatement(variable=v):
                self._line(f"{self._expr(v)}++;")
            case ir.DecrementStatement(variable=v):
                self._line(f"{self._expr(v)}--;")
            case ir.AssignmentStatement(target=target, source=source):
                self._line(f"{self._expr(target)} = {self._expr(source)};")
            case ir.ReturnStatement(expression=e):
                self._line(f"return {self._expr(e)};")
            case ir.ShortReturnStatement():
                self._line("return;")
            case ir.IfStatement() | ir.ShortIfStatement():
                self._emit_if(node)
            case ir.WhileStatement(test=test, body=body):
                self._line(f"while ({self._expr(test)}) {{")
                self._body(body)
                self._line("}")
            case ir.RepeatStatement(count=count, body=body):
                i = self._fresh("i")
                if isinstance(count, ir.Literal):
                    header = f"let {i} = 0; {i} < {self._expr(count)}; {i}++"
                else:
                    n = self._fresh("n")
                    header = f"let {i} = 0, {n} = {self._expr(count)}; {i} < {n}; {i}++"
                self._line(f"for ({header}) {{")
                self._body(body)
                self._line("}")
            case ir.ForRangeStatement(iterator=it, low=low, op=op, high=high, body=body):
                name = self._name(it)
                cmp = "<=" if op == "..." else "<"
                self._line(
                    f"for (let {name} = {self._expr(low)}; "
                    f"{name} {cmp} {self._expr(high)}; {name}++) {{"
                )
                self._body(body)
                self._line("}")
            case ir.ForEachStatement(iterator=it, collection=collection, body=body):
                self._line(f"for (const {self._name(it)} of {self._expr(collection)}) {{")
                self._body(body)
                self._line("}")
            case ir.BreakStatement():
                self._line("break;")
            case ir.CallStatement(call=call):
                self._line(f"{self._expr(call)};")
            case _:
                raise TypeError(f"cannot emit {type(node).__name__}")

    def _emit_if(self, node: Any, keyword: str = "if") -> None:
        self._line(f"{keyword} ({self._expr(node.test)}) {{")
        self._body(node.consequent)
        match node:
            case ir.IfStatement(alternate=list() as alternate):
                self._line("} else {")
                self._body(alternate)
                self._line("}")
            case ir.IfStatement(alternate=alternate):
                self._emit_if(alternate, "} else if")
            case _:
                self._line("}")

    def _emit_class(self, obj: Any) -> None:
        self._line(f"class {self._name(obj)} {{")
        self._indent += 1
        params = ", ".join(self._name(p) for p in obj.parameters or [])
        self._line(f"constructor({params}) {{")
        self._indent += 1
        for f in obj.fields:
            self._line(f"this.{f.name} = {self._expr(f.value)};")
        self._indent -= 1
        self._line("}")
        for method in obj.methods:
            method_params = ", ".join(self._name(p) for p in method.params)
            self._line(f"{method.name}({method_params}) {{")
            self._body(method.body)
            self._line("}")
        self._indent -= 1
        self._line("}")

    # ── Expressions ──────────────────────────────────────────────

    def _operand(self, node: Any) -> str:
        text = self._expr(node)
        if isinstance(node, Function) and node.intrinsic and node.name == "bytes":
            return f"({text})"
        if isinstance(node, _ATOMIC):
            return text
        if isinstance(node, ir.Literal) and not text.startswith("-"):
            return text
        return f"({text})"

    def _expr(self, node: Any) -> str:
        match node:
            case ir.Literal(value=value, type=t):
                return self._literal(value, t)
            case Variable() | Function() if node.intrinsic:
                return _INTRINSICS.get(node.name, node.name)
            case Variable() | FieldArgument() | Function():
                return self._name(node)
            case ir.UnaryExpression(op="some", operand=operand):
                return self._expr(operand)
            case ir.UnaryExpression(op=op, operand=operand):
                return f"{'!' if op == 'ne' else '-'}{self._operand(operand)}"
            case ir.BinaryExpression(op="/", left=left, right=right, type=t) if t == INT:
                return f"Math.trunc({self._operand(left)} / {self._operand(right)})"
            case ir.BinaryExpression(op=op, left=left, right=right):
                js_op = _OPERATORS.get(op, op)
                return f"{self._operand(left)} {js_op} {self._operand(right)}"
            case ir.TernaryExpression(test=test, consequent=c, alternate=a):
                return f"{self._operand(test)} ? {self._operand(c)} : {self._operand(a)}"
            case ir.NilCoalescingExpression(optional=optional, fallback=fallback):
                return f"{self._operand(optional)} ?? {self._operand(fallback)}"
            case ir.EmptyOptional():
                return "null"
            case ir.ListExpression(elements=elements):
                return f"[{', '.join(self._expr(e) for e in elements)}]"
            case ir.EmptyListExpression():
                return "[]"
            case ir.SubscriptExpression(collection=collection, index=index):
                return f"{self._operand(collection)}[{self._expr(index)}]"
            case ir.MemberExpression(object=obj, op=op, member=member):
                return f"{self._operand(obj)}{op}{member.name}"
            case ir.SelfReference():
                return "this"
            case ir.FunctionCall(callee=callee, args=args):
                values = ", ".join(self._expr(a.value) for a in args)
                if isinstance(callee, Function) and callee.intrinsic and callee.name == "bytes":
                    return f"[...new TextEncoder().encode({values})]"
                return f"{self._operand(callee)}({values})"
            case ir.ObjectCall(callee=obj, args=args):
                values = ", ".join(self._expr(a.value) for a in args)
                return f"new {self._name(obj)}({values})"
            case ir.StringExpression(parts=parts):
                return self._template(parts)
        raise TypeError(f"cannot emit {type(node).__name__}")

    def _literal(self, value: Any, t: Any) -> str:
        if t == BOOLEAN:
            return "true" if value else "false"
        if t == INT:
            return str(value)
        if t == FLOAT:
            if math.isnan(value):
                return "NaN"
            if math.isinf(value):
                return "Infinity" if value > 0 else "-Infinity"
            return repr(value)
        return json.dumps(value)

    def _template(self, parts: list[Any]) -> str:
        chunks = []
        for part in parts:
            if isinstance(part, str):
                chunks.append(
                    part.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
                )
            else:
                chunks.append(f"${{{self._expr(part)}}}")
        return "`" + "".join(chunks) + "`"


def generate(program: ir.Program) -> str:
    """Translate an IR program to JavaScript source text."""
    return JsEmitter(program).emit()
