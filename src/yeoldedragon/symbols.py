"""Symbol records and lexical scopes for the Dragon semantic analyzer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from yeoldedragon.source import Span
from yeoldedragon.types import (
    FLOAT,
    INT,
    STRING,
    FunctionType,
    ListType,
    ObjectType,
    Type,
)


@dataclass(eq=False)
class Variable:
    name: str
    type: Type
    mutable: bool = False
    intrinsic: bool = False
    span: Span | None = None


@dataclass(eq=False)
class FieldArgument:
    """A guild initializer parameter. Never assignable."""

    name: str
    type: Type
    span: Span | None = None


@dataclass(eq=False)
class Function:
    """A declared function or method.

    Created as a stub before its parameters and body are analyzed so that
    recursive references resolve; ``params``, ``type`` and ``body`` are
    filled in afterwards.
    """

    name: str
    params: list[Variable] = field(default_factory=list)
    body: list[Any] = field(default_factory=list)
    type: FunctionType | None = None
    is_method: bool = False
    intrinsic: bool = False
    span: Span | None = None


Symbol = Variable | FieldArgument | Function | ObjectType


class AlreadyDeclared(Exception):
    """Raised when a name is declared twice in the same scope."""

    def __init__(self, name: str, previous: Symbol) -> None:
        self.name = name
        self.previous = previous
        super().__init__(f"Identifier {name} already declared")


class Scope:
    """A single lexical scope level with its ambient flags."""

    def __init__(
        self,
        parent: Scope | None = None,
        *,
        in_loop: bool = False,
        function: Function | None = None,
        enclosing_class: ObjectType | None = None,
    ) -> None:
        self.parent = parent
        self.in_loop = in_loop
        self.function = function
        self.enclosing_class = enclosing_class
        self._symbols: dict[str, Symbol] = {}

    def declare(self, name: str, symbol: Symbol) -> None:
        """Bind ``name`` in this scope. Shadowing a parent binding is allowed."""
        existing = self._symbols.get(name)
        if existing is not None:
            raise AlreadyDeclared(name, existing)
        self._symbols[name] = symbol

    def lookup(self, name: str) -> Symbol | None:
        """Look up a name in this scope and all parent scopes."""
        scope: Scope | None = self
        while scope is not None:
            sym = scope._symbols.get(name)
            if sym is not None:
                return sym
            scope = scope.parent
        return None

    def lookup_local(self, name: str) -> Symbol | None:
        return self._symbols.get(name)

    def child(self, **overrides: Any) -> Scope:
        """Create a nested scope inheriting this scope's flags unless overridden."""
        flags = {
            "in_loop": self.in_loop,
            "function": self.function,
            "enclosing_class": self.enclosing_class,
        }
        flags.update(overrides)
        return Scope(self, **flags)

    def symbols(self) -> dict[str, Symbol]:
        return dict(self._symbols)


def _intrinsic(name: str, params: list[tuple[str, Type]], ret: Type) -> Function:
    return Function(
        name,
        params=[Variable(n, t) for n, t in params],
        type=FunctionType(
            tuple(t for _, t in params), ret, tuple(n for n, _ in params),
        ),
        intrinsic=True,
    )


def standard_library() -> Scope:
    """A root scope holding the pre-declared constants and intrinsics."""
    root = Scope()
    root.declare("π", Variable("π", FLOAT, mutable=False, intrinsic=True))
    for name in ("sin", "cos", "exp", "ln", "sqrt"):
        root.declare(name, _intrinsic(name, [("x", FLOAT)], FLOAT))
    root.declare("hypot", _intrinsic("hypot", [("x", FLOAT), ("y", FLOAT)], FLOAT))
    root.declare("bytes", _intrinsic("bytes", [("s", STRING)], ListType(INT)))
    return root
