"""
Type expressions describing declared and primitive types.

Class and enum references are weak, name-only links. Resolving them against a
type universe is the execution engine's job, which is what lets a class refer to
itself or to a class declared later without building a cyclic object graph.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, TypeAlias

from baml_bridge.tagged import Tag

PRIMITIVE_KINDS: Final[frozenset[str]] = frozenset({"string", "int", "float", "bool"})


def _validate_name(value: str, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    if not value or value != value.strip():
        raise ValueError(f"{field_name} must be non-empty without surrounding whitespace")
    return value


@dataclass(frozen=True, slots=True)
class PrimitiveType:
    kind: str

    def __post_init__(self) -> None:
        if self.kind not in PRIMITIVE_KINDS:
            raise ValueError(f"PrimitiveType.kind must be one of {sorted(PRIMITIVE_KINDS)}")


@dataclass(frozen=True, slots=True)
class LiteralType:
    value: str | int | bool

    def __post_init__(self) -> None:
        if not isinstance(self.value, (str, int)):
            raise TypeError("LiteralType.value must be a string, int or bool")


@dataclass(frozen=True, slots=True)
class ListType:
    inner: TypeExpression


@dataclass(frozen=True, slots=True)
class MapType:
    key: TypeExpression
    value: TypeExpression


@dataclass(frozen=True, slots=True)
class ClassRef:
    name: str

    def __post_init__(self) -> None:
        _validate_name(self.name, "ClassRef.name")


@dataclass(frozen=True, slots=True)
class EnumRef:
    name: str

    def __post_init__(self) -> None:
        _validate_name(self.name, "EnumRef.name")


@dataclass(frozen=True, slots=True)
class UnionType:
    options: tuple[TypeExpression, ...]

    def __post_init__(self) -> None:
        options = tuple(self.options)
        if not options:
            raise ValueError("UnionType.options cannot be empty")
        object.__setattr__(self, "options", options)

    @property
    def is_literal_enumeration(self) -> bool:
        """True for a closed set of literal scalars such as ``"alive" | "dead"``."""

        return all(isinstance(option, LiteralType) for option in self.options)


@dataclass(frozen=True, slots=True)
class OptionalType:
    inner: TypeExpression


@dataclass(frozen=True, slots=True)
class TupleType:
    items: tuple[TypeExpression, ...]

    def __post_init__(self) -> None:
        items = tuple(self.items)
        if not items:
            raise ValueError("TupleType.items cannot be empty")
        object.__setattr__(self, "items", items)


TypeExpression: TypeAlias = (
    PrimitiveType
    | LiteralType
    | ListType
    | MapType
    | ClassRef
    | EnumRef
    | UnionType
    | OptionalType
    | TupleType
)

TYPE_EXPRESSION_TYPES: Final[tuple[type, ...]] = (
    PrimitiveType,
    LiteralType,
    ListType,
    MapType,
    ClassRef,
    EnumRef,
    UnionType,
    OptionalType,
    TupleType,
)

STRING: Final[PrimitiveType] = PrimitiveType("string")
INT: Final[PrimitiveType] = PrimitiveType("int")
FLOAT: Final[PrimitiveType] = PrimitiveType("float")
BOOL: Final[PrimitiveType] = PrimitiveType("bool")


def is_type_expression(value: object) -> bool:
    return isinstance(value, TYPE_EXPRESSION_TYPES)


def to_tagged(expr: TypeExpression) -> Tag | str | int | bool:
    """Render ``expr`` in the caller grammar accepted by the type-spec parser."""

    if isinstance(expr, PrimitiveType):
        return Tag(expr.kind)
    if isinstance(expr, LiteralType):
        return Tag("literal", expr.value)
    if isinstance(expr, ListType):
        return Tag("list", to_tagged(expr.inner))
    if isinstance(expr, MapType):
        return Tag("map", to_tagged(expr.key), to_tagged(expr.value))
    if isinstance(expr, ClassRef):
        return Tag("class", expr.name)
    if isinstance(expr, EnumRef):
        return Tag("enum", expr.name)
    if isinstance(expr, UnionType):
        return Tag("union", [to_tagged(option) for option in expr.options])
    if isinstance(expr, OptionalType):
        return Tag("optional", to_tagged(expr.inner))
    if isinstance(expr, TupleType):
        return Tag("tuple", [to_tagged(item) for item in expr.items])
    raise TypeError(f"not a type expression: {type(expr).__name__}")


def render(expr: TypeExpression) -> str:
    """Short human-readable form, e.g. ``map<string, list<Pet>>``."""

    if isinstance(expr, PrimitiveType):
        return expr.kind
    if isinstance(expr, LiteralType):
        if isinstance(expr.value, bool):
            return "true" if expr.value else "false"
        if isinstance(expr.value, str):
            return f'"{expr.value}"'
        return str(expr.value)
    if isinstance(expr, ListType):
        return f"list<{render(expr.inner)}>"
    if isinstance(expr, MapType):
        return f"map<{render(expr.key)}, {render(expr.value)}>"
    if isinstance(expr, (ClassRef, EnumRef)):
        return expr.name
    if isinstance(expr, UnionType):
        return " | ".join(_render_member(option) for option in expr.options)
    if isinstance(expr, OptionalType):
        return f"{_render_member(expr.inner)}?"
    if isinstance(expr, TupleType):
        return "(" + ", ".join(render(item) for item in expr.items) + ")"
    raise TypeError(f"not a type expression: {type(expr).__name__}")


def _render_member(expr: TypeExpression) -> str:
    if isinstance(expr, (UnionType, OptionalType)):
        return f"({render(expr)})"
    return render(expr)


def referenced_names(expr: TypeExpression) -> tuple[set[str], set[str]]:
    """Return the (class names, enum names) an expression refers to."""

    classes: set[str] = set()
    enums: set[str] = set()
    pending: list[TypeExpression] = [expr]
    while pending:
        current = pending.pop()
        if isinstance(current, ClassRef):
            classes.add(current.name)
        elif isinstance(current, EnumRef):
            enums.add(current.name)
        elif isinstance(current, (ListType, OptionalType)):
            pending.append(current.inner)
        elif isinstance(current, MapType):
            pending.extend((current.key, current.value))
        elif isinstance(current, UnionType):
            pending.extend(current.options)
        elif isinstance(current, TupleType):
            pending.extend(current.items)
    return classes, enums


__all__ = [
    "BOOL",
    "FLOAT",
    "INT",
    "PRIMITIVE_KINDS",
    "STRING",
    "TYPE_EXPRESSION_TYPES",
    "ClassRef",
    "EnumRef",
    "ListType",
    "LiteralType",
    "MapType",
    "OptionalType",
    "PrimitiveType",
    "TupleType",
    "TypeExpression",
    "UnionType",
    "is_type_expression",
    "referenced_names",
    "render",
    "to_tagged",
]
