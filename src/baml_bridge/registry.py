"""
baml-bridge — per-call schema registry

File: src/baml_bridge/registry.py
Last updated: 2026-10-17

Purpose
- Name-indexed store of class and enum definitions built before a call is
  dispatched, then frozen into an immutable snapshot for the engine.

What should be included in this file
- Get-or-create handles for classes, enums, class properties and enum values.
- Independent class and enum namespaces.
- Immutable definitions and a snapshot with introspection helpers.

Functional requirements
- Upserting an existing name returns a handle to the same entry; fields added
  through separate handles accumulate on one class.
- Mutation after freeze() is rejected.

Non-functional requirements
- Construction and reading may run on different threads; every entry carries
  its own lock and namespace creation is guarded by a registry lock.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from contextlib import ExitStack
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from baml_bridge.errors import MissingField, RegistryFrozenError
from baml_bridge.types import is_type_expression, referenced_names, to_tagged

if TYPE_CHECKING:
    from baml_bridge.tagged import TaggedValue
    from baml_bridge.types import TypeExpression


def _validate_name(value: str, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    if not value or value != value.strip():
        raise ValueError(f"{field_name} must be non-empty without surrounding whitespace")
    return value


def _validate_optional_text(value: str | None, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    return value


# ---------------------------------------------------------------------------
# Immutable definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldDefinition:
    name: str
    type: TypeExpression
    description: str | None = None
    alias: str | None = None
    skip: bool = False


@dataclass(frozen=True, slots=True)
class ClassDefinition:
    """One class; ``fields`` keeps declaration order."""

    name: str
    fields: tuple[FieldDefinition, ...] = ()

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.fields)

    def field(self, name: str) -> FieldDefinition:
        for item in self.fields:
            if item.name == name:
                return item
        raise KeyError(name)


@dataclass(frozen=True, slots=True)
class EnumValueDefinition:
    name: str
    description: str | None = None
    alias: str | None = None
    skip: bool = False


@dataclass(frozen=True, slots=True)
class EnumDefinition:
    name: str
    values: tuple[EnumValueDefinition, ...] = ()

    @property
    def value_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.values)


@dataclass(frozen=True, slots=True)
class SchemaSnapshot:
    """Read-only view of a frozen registry handed to the execution engine."""

    classes: Mapping[str, ClassDefinition] = field(default_factory=dict)
    enums: Mapping[str, EnumDefinition] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "classes", MappingProxyType(dict(self.classes)))
        object.__setattr__(self, "enums", MappingProxyType(dict(self.enums)))

    @property
    def is_empty(self) -> bool:
        return not self.classes and not self.enums

    def get_class(self, name: str) -> ClassDefinition:
        return self.classes[name]

    def get_enum(self, name: str) -> EnumDefinition:
        return self.enums[name]

    def dangling_references(self) -> tuple[tuple[str, ...], tuple[str, ...]]:
        """Class and enum names referenced by fields but not declared here.

        These are legal; they are left for the engine to resolve against its
        own type universe.
        """

        classes: set[str] = set()
        enums: set[str] = set()
        for definition in self.classes.values():
            for item in definition.fields:
                class_refs, enum_refs = referenced_names(item.type)
                classes |= class_refs
                enums |= enum_refs
        return (
            tuple(sorted(classes - set(self.classes))),
            tuple(sorted(enums - set(self.enums))),
        )

    def describe(self) -> dict[str, dict[str, TaggedValue]]:
        """Render the snapshot in the caller grammar, keyed by type name."""

        classes: dict[str, TaggedValue] = {}
        for name, definition in self.classes.items():
            classes[name] = {
                "fields": {item.name: to_tagged(item.type) for item in definition.fields}
            }
        enums: dict[str, TaggedValue] = {
            name: list(definition.value_names) for name, definition in self.enums.items()
        }
        return {"classes": classes, "enums": enums}


# ---------------------------------------------------------------------------
# Mutable entries (construction phase only)
# ---------------------------------------------------------------------------


class _FieldEntry:
    __slots__ = ("alias", "description", "name", "skip", "type")

    def __init__(self, name: str) -> None:
        self.name = name
        self.type: TypeExpression | None = None
        self.description: str | None = None
        self.alias: str | None = None
        self.skip = False


class _ClassEntry:
    __slots__ = ("fields", "lock", "name")

    def __init__(self, name: str) -> None:
        self.name = name
        self.lock = threading.Lock()
        self.fields: dict[str, _FieldEntry] = {}

    def definition(self) -> ClassDefinition:
        with self.lock:
            return self.build()

    def build(self) -> ClassDefinition:
        """Caller holds ``lock``."""
        fields: list[FieldDefinition] = []
        for entry in self.fields.values():
            if entry.type is None:
                raise MissingField("type", declaration=self.name, field=entry.name)
            fields.append(
                FieldDefinition(
                    name=entry.name,
                    type=entry.type,
                    description=entry.description,
                    alias=entry.alias,
                    skip=entry.skip,
                )
            )
        return ClassDefinition(name=self.name, fields=tuple(fields))


class _ValueEntry:
    __slots__ = ("alias", "description", "name", "skip")

    def __init__(self, name: str) -> None:
        self.name = name
        self.description: str | None = None
        self.alias: str | None = None
        self.skip = False


class _EnumEntry:
    __slots__ = ("lock", "name", "values")

    def __init__(self, name: str) -> None:
        self.name = name
        self.lock = threading.Lock()
        self.values: dict[str, _ValueEntry] = {}

    def definition(self) -> EnumDefinition:
        with self.lock:
            return self.build()

    def build(self) -> EnumDefinition:
        """Caller holds ``lock``."""
        values = tuple(
            EnumValueDefinition(
                name=entry.name,
                description=entry.description,
                alias=entry.alias,
                skip=entry.skip,
            )
            for entry in self.values.values()
        )
        return EnumDefinition(name=self.name, values=values)


# ---------------------------------------------------------------------------
# Handles
# ---------------------------------------------------------------------------


class FieldHandle:
    """Mutable accessor for one class property."""

    __slots__ = ("_class", "_entry", "_registry")

    def __init__(self, registry: SchemaRegistry, owner: _ClassEntry, entry: _FieldEntry) -> None:
        self._registry = registry
        self._class = owner
        self._entry = entry

    @property
    def name(self) -> str:
        return self._entry.name

    @property
    def class_name(self) -> str:
        return self._class.name

    @property
    def type(self) -> TypeExpression | None:
        with self._class.lock:
            return self._entry.type

    def set_type(self, expr: TypeExpression) -> FieldHandle:
        if not is_type_expression(expr):
            raise TypeError(f"{self._class.name}.{self.name} type must be a type expression")
        with self._class.lock:
            self._registry._ensure_mutable()
            self._entry.type = expr
        return self

    def set_description(self, text: str | None) -> FieldHandle:
        text = _validate_optional_text(text, "description")
        with self._class.lock:
            self._registry._ensure_mutable()
            self._entry.description = text
        return self

    def set_alias(self, alias: str | None) -> FieldHandle:
        alias = _validate_optional_text(alias, "alias")
        with self._class.lock:
            self._registry._ensure_mutable()
            self._entry.alias = alias
        return self

    def set_skip(self, skip: bool = True) -> FieldHandle:
        with self._class.lock:
            self._registry._ensure_mutable()
            self._entry.skip = bool(skip)
        return self


class ClassHandle:
    """Mutable accessor for one class; obtained idempotently by name."""

    __slots__ = ("_entry", "_registry")

    def __init__(self, registry: SchemaRegistry, entry: _ClassEntry) -> None:
        self._registry = registry
        self._entry = entry

    @property
    def name(self) -> str:
        return self._entry.name

    @property
    def field_names(self) -> tuple[str, ...]:
        with self._entry.lock:
            return tuple(self._entry.fields)

    def upsert_property(self, name: str) -> FieldHandle:
        _validate_name(name, "field name")
        with self._entry.lock:
            self._registry._ensure_mutable()
            entry = self._entry.fields.get(name)
            if entry is None:
                entry = _FieldEntry(name)
                self._entry.fields[name] = entry
        return FieldHandle(self._registry, self._entry, entry)

    def definition(self) -> ClassDefinition:
        return self._entry.definition()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClassHandle):
            return NotImplemented
        return self._entry is other._entry

    def __hash__(self) -> int:
        return id(self._entry)


class ValueHandle:
    """Mutable accessor for one enum variant."""

    __slots__ = ("_enum", "_entry", "_registry")

    def __init__(self, registry: SchemaRegistry, owner: _EnumEntry, entry: _ValueEntry) -> None:
        self._registry = registry
        self._enum = owner
        self._entry = entry

    @property
    def name(self) -> str:
        return self._entry.name

    def set_description(self, text: str | None) -> ValueHandle:
        text = _validate_optional_text(text, "description")
        with self._enum.lock:
            self._registry._ensure_mutable()
            self._entry.description = text
        return self

    def set_alias(self, alias: str | None) -> ValueHandle:
        alias = _validate_optional_text(alias, "alias")
        with self._enum.lock:
            self._registry._ensure_mutable()
            self._entry.alias = alias
        return self

    def set_skip(self, skip: bool = True) -> ValueHandle:
        with self._enum.lock:
            self._registry._ensure_mutable()
            self._entry.skip = bool(skip)
        return self


class EnumHandle:
    """Mutable accessor for one enum; obtained idempotently by name."""

    __slots__ = ("_entry", "_registry")

    def __init__(self, registry: SchemaRegistry, entry: _EnumEntry) -> None:
        self._registry = registry
        self._entry = entry

    @property
    def name(self) -> str:
        return self._entry.name

    @property
    def value_names(self) -> tuple[str, ...]:
        with self._entry.lock:
            return tuple(self._entry.values)

    def upsert_value(self, name: str) -> ValueHandle:
        _validate_name(name, "enum value")
        with self._entry.lock:
            self._registry._ensure_mutable()
            entry = self._entry.values.get(name)
            if entry is None:
                entry = _ValueEntry(name)
                self._entry.values[name] = entry
        return ValueHandle(self._registry, self._entry, entry)

    def definition(self) -> EnumDefinition:
        return self._entry.definition()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EnumHandle):
            return NotImplemented
        return self._entry is other._entry

    def __hash__(self) -> int:
        return id(self._entry)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class SchemaRegistry:
    """Per-call store of class and enum definitions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._classes: dict[str, _ClassEntry] = {}
        self._enums: dict[str, _EnumEntry] = {}
        self._frozen = False

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def upsert_class(self, name: str) -> ClassHandle:
        _validate_name(name, "class name")
        with self._lock:
            self._ensure_mutable()
            entry = self._classes.get(name)
            if entry is None:
                entry = _ClassEntry(name)
                self._classes[name] = entry
        return ClassHandle(self, entry)

    def upsert_enum(self, name: str) -> EnumHandle:
        _validate_name(name, "enum name")
        with self._lock:
            self._ensure_mutable()
            entry = self._enums.get(name)
            if entry is None:
                entry = _EnumEntry(name)
                self._enums[name] = entry
        return EnumHandle(self, entry)

    def has_class(self, name: str) -> bool:
        with self._lock:
            return name in self._classes

    def has_enum(self, name: str) -> bool:
        with self._lock:
            return name in self._enums

    def class_names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._classes)

    def enum_names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._enums)

    def get_class(self, name: str) -> ClassDefinition:
        with self._lock:
            entry = self._classes[name]
        return entry.definition()

    def get_enum(self, name: str) -> EnumDefinition:
        with self._lock:
            entry = self._enums[name]
        return entry.definition()

    def freeze(self) -> SchemaSnapshot:
        """Stop accepting mutations and return an immutable snapshot.

        Raises ``MissingField("type")`` when a property was upserted but never
        given a type; the registry stays mutable in that case.
        """

        with self._lock, ExitStack() as held:
            # Entry locks stay held until the frozen flag is set.
            for entry in (*self._classes.values(), *self._enums.values()):
                held.enter_context(entry.lock)
            classes = {name: entry.build() for name, entry in self._classes.items()}
            enums = {name: entry.build() for name, entry in self._enums.items()}
            self._frozen = True
        return SchemaSnapshot(classes=classes, enums=enums)

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("schema registry is frozen")


__all__ = [
    "ClassDefinition",
    "ClassHandle",
    "EnumDefinition",
    "EnumHandle",
    "EnumValueDefinition",
    "FieldDefinition",
    "FieldHandle",
    "SchemaRegistry",
    "SchemaSnapshot",
    "ValueHandle",
]
