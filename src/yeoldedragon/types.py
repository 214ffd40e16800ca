"""Resolved type representations for the Dragon type system.

These are distinct from syntax-tree type expressions. Primitive, list,
optional and function types are compared structurally; object types are
nominal and compare by identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from yeoldedragon.symbols import FieldArgument, Function

# ── Resolved types ──────────────────────────────────────────────


@dataclass(frozen=True)
class PrimitiveType:
    name: str


@dataclass(frozen=True)
class ListType:
    element: Type


@dataclass(frozen=True)
class OptionalType:
    base: Type


@dataclass(frozen=True)
class FunctionType:
    param_types: tuple[Type, ...]
    return_type: Type
    # Empty when the type was written in source rather than declared.
    param_names: tuple[str, ...] = ()


@dataclass(eq=False)
class Field:
    name: str
    type: Type
    value: object = None  # initializer expression, for guild fields


@dataclass(eq=False)
class ObjectType:
    """A matter or guild. Doubles as the constructor symbol."""

    name: str
    fields: list[Field] = field(default_factory=list)
    # None for matters, whose constructor takes the fields in order.
    parameters: list[FieldArgument] | None = None
    methods: list[Function] = field(default_factory=list)

    @property
    def is_class(self) -> bool:
        return self.parameters is not None

    @property
    def signature(self) -> list[tuple[str, Type]]:
        """Constructor parameters as (name, type) pairs."""
        if self.parameters is None:
            return [(f.name, f.type) for f in self.fields]
        return [(p.name, p.type) for p in self.parameters]

    def member(self, name: str) -> Field | Function | None:
        for f in self.fields:
            if f.name == name:
                return f
        for m in self.methods:
            if m.name == name:
                return m
        return None


Type = PrimitiveType | ListType | OptionalType | FunctionType | ObjectType


# ── Built-in type constants ─────────────────────────────────────

VOID = PrimitiveType("zilch")
ANY = PrimitiveType("any")
INT = PrimitiveType("int")
FLOAT = PrimitiveType("float")
STRING = PrimitiveType("string")
BOOLEAN = PrimitiveType("bool")

BUILTINS: dict[str, PrimitiveType] = {
    t.name: t for t in (VOID, ANY, INT, FLOAT, STRING, BOOLEAN)
}

NUMERIC = (INT, FLOAT)

# Largest integer a JavaScript number holds exactly.
MAX_SAFE_INTEGER = 2**53 - 1


# ── Type relations ──────────────────────────────────────────────


def equivalent(t1: Type, t2: Type) -> bool:
    """Structural equality for composite types, identity for objects."""
    if isinstance(t1, ObjectType) or isinstance(t2, ObjectType):
        return t1 is t2
    if isinstance(t1, ListType) and isinstance(t2, ListType):
        return equivalent(t1.element, t2.element)
    if isinstance(t1, OptionalType) and isinstance(t2, OptionalType):
        return equivalent(t1.base, t2.base)
    if isinstance(t1, FunctionType) and isinstance(t2, FunctionType):
        return (
            len(t1.param_types) == len(t2.param_types)
            and equivalent(t1.return_type, t2.return_type)
            and all(equivalent(a, b) for a, b in zip(t1.param_types, t2.param_types))
        )
    return t1 == t2


def assignable(source: Type, target: Type) -> bool:
    """Whether a value of type ``source`` may be stored where ``target`` is expected."""
    if target == ANY or equivalent(source, target):
        return True
    if isinstance(source, FunctionType) and isinstance(target, FunctionType):
        # covariant return, contravariant parameters
        return (
            len(source.param_types) == len(target.param_types)
            and assignable(source.return_type, target.return_type)
            and all(
                assignable(t, s)
                for s, t in zip(source.param_types, target.param_types)
            )
        )
    return False


def type_description(t: Type) -> str:
    """Render a type the way it is written in Dragon source."""
    match t:
        case PrimitiveType(name=name):
            return name
        case ObjectType(name=name):
            return name
        case ListType(element=element):
            return f"[{type_description(element)}]"
        case OptionalType(base=base):
            return f"{type_description(base)}?"
        case FunctionType(param_types=params, return_type=ret):
            inner = ", ".join(type_description(p) for p in params)
            return f"({inner})->{type_description(ret)}"
    return str(t)


def is_self_containing(object_type: ObjectType) -> bool:
    """True if a field contains the object type, directly or via nested objects.

    Only plain object-typed fields count; lists, optionals and functions of
    the type are fine since they need not hold a value.
    """
    seen: set[int] = set()

    def contains(t: Type) -> bool:
        if t is object_type:
            return True
        if not isinstance(t, ObjectType) or id(t) in seen:
            return False
        seen.add(id(t))
        return any(contains(f.type) for f in t.fields)

    return any(contains(f.type) for f in object_type.fields)


def is_numeric(t: Type) -> bool:
    return t in NUMERIC
