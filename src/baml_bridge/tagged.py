"""Caller-side dynamic value grammar: plain Python values plus named ``Tag`` markers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final, TypeAlias

MAX_TAG_ARGS: Final[int] = 3


@dataclass(frozen=True, slots=True, init=False)
class Tag:
    """Named marker: atomic when ``args`` is empty, otherwise a shape with 1-3 sub-terms."""

    name: str
    args: tuple[object, ...]

    def __init__(self, name: str, *args: object) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("Tag.name must be a non-empty string")
        if len(args) > MAX_TAG_ARGS:
            raise ValueError(f"Tag carries at most {MAX_TAG_ARGS} sub-terms, got {len(args)}")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "args", tuple(args))

    @property
    def is_atom(self) -> bool:
        return not self.args

    @property
    def arity(self) -> int:
        return len(self.args)

    def __repr__(self) -> str:
        if not self.args:
            return f"Tag({self.name!r})"
        rendered = ", ".join(repr(item) for item in self.args)
        return f"Tag({self.name!r}, {rendered})"


TaggedScalar: TypeAlias = str | int | float | bool | None
TaggedValue: TypeAlias = (
    TaggedScalar | Tag | list["TaggedValue"] | dict["str | Tag", "TaggedValue"]
)

STRING: Final[Tag] = Tag("string")
INT: Final[Tag] = Tag("int")
FLOAT: Final[Tag] = Tag("float")
BOOL: Final[Tag] = Tag("bool")
NIL: Final[Tag] = Tag("nil")


def as_tag(value: object) -> Tag | None:
    """Return ``value`` as a ``Tag`` when it is one or uses the tuple shorthand."""

    if isinstance(value, Tag):
        return value
    if isinstance(value, tuple) and value:
        head = value[0]
        if isinstance(head, Tag) and head.is_atom:
            head = head.name
        if isinstance(head, str) and head and len(value) - 1 <= MAX_TAG_ARGS:
            return Tag(head, *value[1:])
    return None


def is_null(value: object) -> bool:
    return value is None or value == NIL


def describe_shape(value: object) -> str:
    """Short, deterministic description of a value's shape for error messages."""

    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, Tag):
        if value.is_atom:
            return f"atom:{value.name}"
        return f"tag:{value.name}/{value.arity}"
    if isinstance(value, tuple):
        tag = as_tag(value)
        if tag is not None:
            return f"tag:{tag.name}/{tag.arity}"
        return f"tuple/{len(value)}"
    if isinstance(value, Mapping):
        return f"map/{len(value)}"
    if isinstance(value, list):
        return f"list/{len(value)}"
    return type(value).__name__


__all__ = [
    "BOOL",
    "FLOAT",
    "INT",
    "MAX_TAG_ARGS",
    "NIL",
    "STRING",
    "Tag",
    "TaggedScalar",
    "TaggedValue",
    "as_tag",
    "describe_shape",
    "is_null",
]
