"""Semantic analyzer for the Dragon language.

Walks the syntax tree once, resolving names through a stack of lexical
scopes and checking every static rule. The result is a fully typed IR
program. Analysis stops at the first violation with a ``SemanticError``.

Functions, matters and guilds are declared before their parameters,
fields and bodies are analyzed, so recursive references resolve; their
symbol records are completed in place afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, NoReturn

from yeoldedragon import ast_nodes as ast
from yeoldedragon import ir
from yeoldedragon.errors import SemanticError
from yeoldedragon.source import Span
from yeoldedragon.symbols import (
    AlreadyDeclared,
    FieldArgument,
    Function,
    Scope,
    Symbol,
    Variable,
    standard_library,
)
from yeoldedragon.types import (
    ANY,
    BOOLEAN,
    BUILTINS,
    FLOAT,
    INT,
    MAX_SAFE_INTEGER,
    STRING,
    VOID,
    Field,
    FunctionType,
    ListType,
    ObjectType,
    OptionalType,
    Type,
    assignable,
    equivalent,
    is_numeric,
    is_self_containing,
    type_description,
)

logger = logging.getLogger(__name__)

_ARITHMETIC = frozenset({"+", "-", "*", "/", "**"})
_COMPARISON = frozenset({"<", "<=", ">", ">="})
_EQUALITY = frozenset({"==", "!="})
_LOGICAL = frozenset({"&&", "||"})


class Checker:
    """Turns a syntax tree into typed IR, enforcing the language's static rules."""

    def __init__(self) -> None:
        self.root: Scope = standard_library()
        self.scope: Scope = self.root.child()
        self.globals: Scope = self.scope

    def check(self, program: ast.Program) -> ir.Program:
        """Analyze a whole program. Raises SemanticError on the first violation."""
        return ir.Program(self._check_block(program.statements))

    # ── Helpers ───────────────────────────────────────────────────

    def _error(self, code: str, message: str, span: Span,
               notes: list[str] | None = None) -> NoReturn:
        raise SemanticError(message, span, code=code, notes=notes)

    @contextmanager
    def _enter(self, **flags: Any) -> Iterator[Scope]:
        """Run the body in a child scope, restoring the current scope on exit."""
        previous = self.scope
        self.scope = previous.child(**flags)
        try:
            yield self.scope
        finally:
            self.scope = previous

    def _declare(self, name: str, symbol: Symbol, span: Span) -> None:
        try:
            self.scope.declare(name, symbol)
        except AlreadyDeclared as e:
            notes = []
            previous = getattr(e.previous, "span", None)
            if previous is not None:
                notes.append(f"previously declared at {previous.location}")
            self._error("E301", str(e), span, notes)
        logger.debug("declared %s (%s)", name, type(symbol).__name__)

    def _resolve_type(self, te: ast.TypeExpr) -> Type:
        match te:
            case ast.NamedType(name=name):
                if name in BUILTINS:
                    return BUILTINS[name]
                sym = self.scope.lookup(name)
                if sym is None:
                    self._error("E300", f"Unknown type {name}", te.span)
                if not isinstance(sym, ObjectType):
                    self._error("E300", f"Type expected but {name} is not a type", te.span)
                return sym
            case ast.ListTypeExpr(element=element):
                return ListType(self._resolve_type(element))
            case ast.OptionalTypeExpr(base=base):
                return OptionalType(self._resolve_type(base))
            case ast.FunctionTypeExpr(params=params, result=result):
                return FunctionType(
                    tuple(self._resolve_type(p) for p in params),
                    self._resolve_type(result),
                )
        raise TypeError(f"unknown type expression {type(te).__name__}")

    def _coerce(self, expr: Any, target: Type, span: Span) -> Any:
        """Check that ``expr`` may be stored as ``target``.

        An empty list literal takes on the target's list type here.
        """
        if isinstance(expr, ir.EmptyListExpression) and isinstance(target, ListType):
            return ir.EmptyListExpression(target)
        if not assignable(expr.type, target):
            self._error(
                "E321",
                f"Cannot assign a {type_description(expr.type)} "
                f"to a {type_description(target)}",
                span,
            )
        return expr

    def _unify(self, a: Any, b: Any) -> tuple[Any, Any]:
        """Narrow an empty list operand to the other operand's list type."""
        if isinstance(a, ir.EmptyListExpression) and isinstance(b.type, ListType):
            return ir.EmptyListExpression(b.type), b
        if isinstance(b, ir.EmptyListExpression) and isinstance(a.type, ListType):
            return a, ir.EmptyListExpression(a.type)
        return a, b

    def _expect(self, expr: Any, ok: bool, what: str, span: Span) -> Any:
        if not ok:
            self._error(
                "E324", f"Expected {what} but got {type_description(expr.type)}", span,
            )
        return expr

    def _check_boolean(self, expr: Any, span: Span) -> Any:
        return self._expect(expr, expr.type == BOOLEAN, "a boolean", span)

    def _check_integer(self, expr: Any, span: Span) -> Any:
        return self._expect(expr, expr.type == INT, "an integer", span)

    def _check_numeric(self, expr: Any, span: Span) -> Any:
        return self._expect(expr, is_numeric(expr.type), "a number", span)

    def _check_same_type(self, left: Any, right: Any, span: Span) -> None:
        if not equivalent(left.type, right.type):
            self._error(
                "E322",
                f"Operands must have the same type, got {type_description(left.type)} "
                f"and {type_description(right.type)}",
                span,
            )

    def _is_mutable(self, expr: Any) -> bool:
        match expr:
            case Variable(mutable=mutable):
                return mutable
            case ir.SubscriptExpression(collection=collection):
                return isinstance(collection.type, ListType) and self._is_mutable(collection)
            case ir.MemberExpression(object=obj, op=op, member=member):
                return op == "." and isinstance(member, Field) and self._is_mutable(obj)
            case ir.SelfReference():
                return True
        return False

    def _check_mutable(self, target: Any, span: Span) -> None:
        if self._is_mutable(target):
            return
        if isinstance(target, (Variable, FieldArgument, Function)):
            self._error("E350", f"Cannot assign to constant {target.name}", span)
        self._error("E350", "Cannot assign to an immutable expression", span)

    # ── Statements ───────────────────────────────────────────────

    def _check_block(self, statements: list[ast.Stmt]) -> list[Any]:
        return [self._check_stmt(s) for s in statements]

    def _check_stmt(self, stmt: ast.Stmt) -> Any:
        match stmt:
            case ast.VarDecl():
                return self._check_var_decl(stmt)
            case ast.FunctionDef():
                fun = self._declare_function(stmt)
                self._check_function_body(fun, stmt)
                return ir.FunctionDeclaration(fun)
            case ast.MatterDef():
                return self._check_matter(stmt)
            case ast.GuildDef():
                return self._check_guild(stmt)
            case ast.PrintStmt(value=value):
                return ir.PrintStatement(self._check_value(value))
            case ast.Assignment():
                target = self._expr(stmt.target)
                self._check_mutable(target, stmt.target.span)
                source = self._coerce(self._check_value(stmt.value), target.type, stmt.value.span)
                return ir.AssignmentStatement(target, source)
            case ast.IncDecStmt(target=target_expr, op=op):
                target = self._check_numeric(self._expr(target_expr), target_expr.span)
                self._check_mutable(target, target_expr.span)
                if op == "++":
                    return ir.IncrementStatement(target)
                return ir.DecrementStatement(target)
            case ast.ReturnStmt():
                return self._check_return(stmt)
            case ast.IfStmt():
                return self._check_if(stmt)
            case ast.WhileStmt(condition=condition, body=body):
                test = self._check_boolean(self._expr(condition), condition.span)
                with self._enter(in_loop=True):
                    return ir.WhileStatement(test, self._check_block(body))
            case ast.RepeatStmt(count=count, body=body):
                times = self._check_integer(self._expr(count), count.span)
                with self._enter(in_loop=True):
                    return ir.RepeatStatement(times, self._check_block(body))
            case ast.RangeLoop():
                low = self._check_integer(self._expr(stmt.low), stmt.low.span)
                high = self._check_integer(self._expr(stmt.high), stmt.high.span)
                iterator = Variable(stmt.iterator, INT, mutable=False, span=stmt.span)
                with self._enter(in_loop=True):
                    self._declare(stmt.iterator, iterator, stmt.span)
                    body = self._check_block(stmt.body)
                return ir.ForRangeStatement(iterator, low, stmt.op, high, body)
            case ast.ForEachLoop():
                collection = self._expr(stmt.collection)
                self._expect(
                    collection, isinstance(collection.type, ListType), "a list",
                    stmt.collection.span,
                )
                iterator = Variable(
                    stmt.iterator, collection.type.element, mutable=False, span=stmt.span,
                )
                with self._enter(in_loop=True):
                    self._declare(stmt.iterator, iterator, stmt.span)
                    body = self._check_block(stmt.body)
                return ir.ForEachStatement(iterator, collection, body)
            case ast.BreakStmt(span=span):
                if not self.scope.in_loop:
                    self._error("E370", "Break can only appear in a loop", span)
                return ir.BreakStatement()
            case ast.CallStmt(call=call):
                return ir.CallStatement(self._check_call(call))
        raise TypeError(f"unknown statement {type(stmt).__name__}")

    def _check_var_decl(self, decl: ast.VarDecl) -> Any:
        var_type = self._resolve_type(decl.type_expr)
        if var_type == VOID:
            self._error("E300", f"Variable {decl.name} cannot have type zilch", decl.type_expr.span)
        initializer = self._coerce(self._check_value(decl.value), var_type, decl.value.span)
        variable = Variable(decl.name, var_type, mutable=decl.mutable, span=decl.span)
        self._declare(decl.name, variable, decl.span)
        if decl.mutable:
            return ir.VariableDeclaration(variable, initializer)
        return ir.ConstantDeclaration(variable, initializer)

    def _declare_function(self, fd: ast.FunctionDef, owner: ObjectType | None = None) -> Function:
        """Create a function's symbol and resolve its signature, leaving the body empty.

        Free functions are bound in the current scope before their
        parameter types are resolved; methods are attached to ``owner`` by
        the caller.
        """
        fun = Function(fd.name, is_method=owner is not None, span=fd.span)
        if owner is None:
            self._declare(fd.name, fun, fd.span)
        fun.params = [
            Variable(p.name, self._resolve_type(p.type_expr), mutable=False, span=p.span)
            for p in fd.params
        ]
        return_type = VOID if fd.return_type is None else self._resolve_type(fd.return_type)
        fun.type = FunctionType(
            tuple(p.type for p in fun.params),
            return_type,
            tuple(p.name for p in fun.params),
        )
        return fun

    def _check_function_body(
        self, fun: Function, fd: ast.FunctionDef, owner: ObjectType | None = None,
    ) -> None:
        with self._enter(function=fun, in_loop=False, enclosing_class=owner):
            for param in fun.params:
                self._declare(param.name, param, param.span or fd.span)
            fun.body = self._check_block(fd.body)
        logger.debug("analyzed %s %s", "method" if owner else "function", fun.name)

    def _check_return(self, stmt: ast.ReturnStmt) -> Any:
        fun = self.scope.function
        if fun is None:
            self._error("E360", "Return can only appear in a function", stmt.span)
        return_type = fun.type.return_type
        if stmt.value is None:
            if return_type != VOID:
                self._error("E361", f"Function {fun.name} must return a value", stmt.span)
            return ir.ShortReturnStatement()
        if return_type == VOID:
            self._error("E362", f"Function {fun.name} cannot return a value", stmt.span)
        value = self._coerce(self._check_value(stmt.value), return_type, stmt.value.span)
        return ir.ReturnStatement(value)

    def _check_fields(self, obj: ObjectType, defs: list[ast.FieldDef], span: Span) -> None:
        seen: set[str] = set()
        for fd in defs:
            if fd.name in seen:
                self._error("E341", f"Fields must be distinct, {fd.name} repeats", fd.span)
            seen.add(fd.name)
            field_type = self._resolve_type(fd.type_expr)
            if field_type == VOID:
                self._error("E300", f"Field {fd.name} cannot have type zilch", fd.type_expr.span)
            obj.fields.append(Field(fd.name, field_type))
        if is_self_containing(obj):
            self._error("E342", f"Object type {obj.name} cannot contain itself", span)

    def _check_matter(self, md: ast.MatterDef) -> ir.StructDeclaration:
        obj = ObjectType(md.name)
        self._declare(md.name, obj, md.span)
        self._check_fields(obj, md.fields, md.span)
        return ir.StructDeclaration(obj)

    def _check_guild(self, gd: ast.GuildDef) -> ir.ClassDeclaration:
        obj = ObjectType(gd.name, parameters=[])
        self._declare(gd.name, obj, gd.span)
        self._check_fields(obj, gd.fields, gd.span)

        members = {f.name for f in obj.fields}
        for md in gd.methods:
            if md.name in members:
                self._error("E341", f"Member {md.name} already declared in {gd.name}", md.span)
            members.add(md.name)
            obj.methods.append(self._declare_function(md, owner=obj))

        self._check_initializer(obj, gd)
        for fun, md in zip(obj.methods, gd.methods):
            self._check_function_body(fun, md, owner=obj)
        return ir.ClassDeclaration(obj)

    def _check_initializer(self, obj: ObjectType, gd: ast.GuildDef) -> None:
        init = gd.initializer
        assigned: set[str] = set()
        if init is not None:
            with self._enter(enclosing_class=obj, function=None, in_loop=False):
                params = []
                for p in init.params:
                    arg = FieldArgument(p.name, self._resolve_type(p.type_expr), span=p.span)
                    self._declare(p.name, arg, p.span)
                    params.append(arg)
                obj.parameters = params
                for stmt in init.body:
                    field = self._initialized_field(obj, stmt)
                    if field.name in assigned:
                        self._error(
                            "E344", f"Field {field.name} initialized more than once", stmt.span,
                        )
                    assigned.add(field.name)
                    value = self._check_value(stmt.value)
                    field.value = self._coerce(value, field.type, stmt.value.span)

        missing = [f.name for f in obj.fields if f.name not in assigned]
        if missing:
            self._error(
                "E343",
                f"Not all fields initialized in {obj.name}: missing {', '.join(missing)}",
                init.span if init is not None else gd.span,
            )

    def _initialized_field(self, obj: ObjectType, stmt: ast.Stmt) -> Field:
        match stmt:
            case ast.Assignment(target=ast.MemberExpr(obj=ast.SelfExpr(), op=".", name=name)):
                member = obj.member(name)
                if not isinstance(member, Field):
                    self._error("E340", f"Object type {obj.name} has no field {name}", stmt.target.span)
                return member
        self._error(
            "E345", f"The forge of {obj.name} may only assign fields of mine", stmt.span,
        )

    def _check_if(self, stmt: ast.IfStmt) -> ir.IfStatement | ir.ShortIfStatement:
        test = self._check_boolean(self._expr(stmt.condition), stmt.condition.span)
        with self._enter():
            consequent = self._check_block(stmt.consequent)
        if stmt.alternate is None:
            return ir.ShortIfStatement(test, consequent)
        if isinstance(stmt.alternate, ast.IfStmt):
            return ir.IfStatement(test, consequent, self._check_if(stmt.alternate))
        with self._enter():
            alternate = self._check_block(stmt.alternate)
        return ir.IfStatement(test, consequent, alternate)

    # ── Expressions ──────────────────────────────────────────────

    def _check_value(self, e: ast.Expr) -> Any:
        """Analyze an expression whose value is used."""
        expr = self._expr(e)
        if expr.type == VOID:
            self._error("E324", "Expected a value but got a zilch call", e.span)
        return expr

    def _expr(self, e: ast.Expr) -> Any:
        match e:
            case ast.IntegerLit(value=value):
                if int(value) > MAX_SAFE_INTEGER:
                    self._error("E325", f"Integer {value} is too large", e.span)
                return ir.Literal(int(value), INT)
            case ast.FloatLit(value=value):
                return ir.Literal(float(value), FLOAT)
            case ast.BooleanLit(value=value):
                return ir.Literal(value, BOOLEAN)
            case ast.StringLit(value=value):
                return ir.Literal(value, STRING)
            case ast.StringInterp(parts=parts):
                return ir.StringExpression(
                    [p.value if isinstance(p, ast.StringLit) else self._check_value(p)
                     for p in parts],
                    STRING,
                )
            case ast.IdentifierExpr(name=name):
                sym = self._lookup(e)
                if isinstance(sym, ObjectType):
                    self._error("E300", f"Type {name} cannot be used as a value", e.span)
                return sym
            case ast.SelfExpr():
                if self.scope.enclosing_class is None:
                    self._error("E346", "mine can only be used inside a guild", e.span)
                return ir.SelfReference(self.scope.enclosing_class)
            case ast.NaughtExpr(type_expr=type_expr):
                return ir.EmptyOptional(OptionalType(self._resolve_type(type_expr)))
            case ast.ListLiteral(elements=elements):
                return self._check_list(e, elements)
            case ast.UnaryExpr():
                return self._check_unary(e)
            case ast.BinaryExpr():
                return self._check_binary(e)
            case ast.TernaryExpr():
                test = self._check_boolean(self._expr(e.condition), e.condition.span)
                consequent, alternate = self._unify(
                    self._check_value(e.consequent), self._check_value(e.alternate),
                )
                self._check_same_type(consequent, alternate, e.span)
                return ir.TernaryExpression(test, consequent, alternate, consequent.type)
            case ast.CoalesceExpr():
                optional = self._expr(e.optional)
                self._expect(
                    optional, isinstance(optional.type, OptionalType), "an optional",
                    e.optional.span,
                )
                base = optional.type.base
                fallback = self._coerce(self._check_value(e.fallback), base, e.fallback.span)
                return ir.NilCoalescingExpression(optional, fallback, base)
            case ast.CallExpr():
                return self._check_call(e)
            case ast.IndexExpr():
                return self._check_index(e)
            case ast.MemberExpr():
                return self._check_member(e)
        raise TypeError(f"unknown expression {type(e).__name__}")

    def _lookup(self, e: ast.IdentifierExpr) -> Symbol:
        sym = self.scope.lookup(e.name)
        if sym is None:
            self._error("E310", f"Identifier {e.name} not declared", e.span)
        return sym

    def _check_list(self, e: ast.ListLiteral, elements: list[ast.Expr]) -> Any:
        if not elements:
            return ir.EmptyListExpression(ListType(ANY))
        checked = [self._check_value(x) for x in elements]
        first = next(
            (v.type for v in checked if not isinstance(v, ir.EmptyListExpression)),
            checked[0].type,
        )
        if isinstance(first, ListType):
            checked = [
                ir.EmptyListExpression(first) if isinstance(v, ir.EmptyListExpression) else v
                for v in checked
            ]
        for value, x in zip(checked, elements):
            if not equivalent(value.type, first):
                self._error("E323", "All elements must have the same type", x.span)
        return ir.ListExpression(checked, ListType(first))

    def _check_unary(self, e: ast.UnaryExpr) -> ir.UnaryExpression:
        operand = self._check_value(e.operand)
        if e.op == "-":
            self._check_numeric(operand, e.operand.span)
            return ir.UnaryExpression("-", operand, operand.type)
        if e.op == "ne":
            self._check_boolean(operand, e.operand.span)
            return ir.UnaryExpression("ne", operand, BOOLEAN)
        return ir.UnaryExpression("some", operand, OptionalType(operand.type))

    def _check_binary(self, e: ast.BinaryExpr) -> ir.BinaryExpression:
        op = e.op
        left = self._check_value(e.left)
        right = self._check_value(e.right)
        if op in _LOGICAL:
            self._check_boolean(left, e.left.span)
            self._check_boolean(right, e.right.span)
            return ir.BinaryExpression(op, left, right, BOOLEAN)
        if op in _EQUALITY:
            left, right = self._unify(left, right)
            self._check_same_type(left, right, e.span)
            return ir.BinaryExpression(op, left, right, BOOLEAN)
        if op == "+":
            self._expect(
                left, is_numeric(left.type) or left.type == STRING,
                "a number or string", e.left.span,
            )
        else:
            self._check_numeric(left, e.left.span)
        self._check_same_type(left, right, e.span)
        if op in _COMPARISON:
            return ir.BinaryExpression(op, left, right, BOOLEAN)
        if op in _ARITHMETIC:
            return ir.BinaryExpression(op, left, right, left.type)
        raise TypeError(f"unknown operator {op}")

    def _check_index(self, e: ast.IndexExpr) -> ir.SubscriptExpression:
        collection = self._check_value(e.collection)
        index = self._check_integer(self._check_value(e.index), e.index.span)
        if isinstance(collection.type, ListType):
            return ir.SubscriptExpression(collection, index, collection.type.element)
        self._expect(collection, collection.type == STRING, "a list or string", e.collection.span)
        return ir.SubscriptExpression(collection, index, STRING)

    def _check_member(self, e: ast.MemberExpr) -> ir.MemberExpression:
        obj = self._check_value(e.obj)
        if e.op == ".":
            self._expect(obj, isinstance(obj.type, ObjectType), "an object", e.obj.span)
            owner = obj.type
        else:
            self._expect(
                obj,
                isinstance(obj.type, OptionalType) and isinstance(obj.type.base, ObjectType),
                "an optional object", e.obj.span,
            )
            owner = obj.type.base
        member = owner.member(e.name)
        if member is None:
            self._error("E340", f"Object type {owner.name} has no field {e.name}", e.span)
        member_type = member.type
        if e.op == "?." and not isinstance(member_type, OptionalType):
            member_type = OptionalType(member_type)
        return ir.MemberExpression(obj, e.op, member, member_type)

    def _check_call(self, call: ast.CallExpr) -> ir.FunctionCall | ir.ObjectCall:
        if isinstance(call.callee, ast.IdentifierExpr):
            callee = self._lookup(call.callee)
        else:
            callee = self._check_value(call.callee)

        if isinstance(callee, ObjectType):
            args = self._check_arguments(call, callee.signature)
            return ir.ObjectCall(callee, args, callee)

        function_type = getattr(callee, "type", None)
        if not isinstance(function_type, FunctionType):
            self._error(
                "E332",
                f"Call of non-function: {type_description(function_type)} is not callable",
                call.callee.span,
            )
        names = function_type.param_names or (None,) * len(function_type.param_types)
        args = self._check_arguments(call, list(zip(names, function_type.param_types)))
        return ir.FunctionCall(callee, args, function_type.return_type)

    def _check_arguments(
        self, call: ast.CallExpr, params: list[tuple[str | None, Type]],
    ) -> list[ir.Argument]:
        if len(call.args) != len(params):
            self._error(
                "E330",
                f"{len(params)} argument(s) required but {len(call.args)} passed",
                call.span,
            )
        args = []
        for arg, (name, param_type) in zip(call.args, params):
            if name is not None and arg.name != name:
                if arg.name is None:
                    self._error("E331", f"Argument for {name} must be named {name}", arg.span)
                self._error(
                    "E331", f"Argument {arg.name} does not match parameter {name}", arg.span,
                )
            value = self._coerce(self._check_value(arg.value), param_type, arg.value.span)
            args.append(ir.Argument(arg.name, value))
        return args


def analyze(program: ast.Program) -> ir.Program:
    """Analyze a parsed program with a fresh standard-library scope."""
    return Checker().check(program)
