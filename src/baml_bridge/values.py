"""Engine-side runtime value tree with strict construction-time validation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, TypeAlias

INT64_MIN: Final[int] = -(2**63)
INT64_MAX: Final[int] = 2**63 - 1


def _validate_type_name(value: str, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    if not value or value != value.strip():
        raise ValueError(f"{field_name} must be non-empty without surrounding whitespace")
    return value


def _freeze_entries(
    entries: Mapping[str, RuntimeValue] | Iterable[tuple[str, RuntimeValue]],
    field_name: str,
) -> Mapping[str, RuntimeValue]:
    pairs = entries.items() if isinstance(entries, Mapping) else entries
    frozen: dict[str, RuntimeValue] = {}
    for key, item in pairs:
        if not isinstance(key, str):
            raise TypeError(f"{field_name} keys must be strings")
        if not is_runtime_value(item):
            raise TypeError(f"{field_name}[{key!r}] must be a runtime value")
        frozen[key] = item
    return MappingProxyType(frozen)


@dataclass(frozen=True, slots=True)
class NullValue:
    pass


@dataclass(frozen=True, slots=True)
class BoolValue:
    value: bool

    def __post_init__(self) -> None:
        if not isinstance(self.value, bool):
            raise TypeError("BoolValue.value must be a bool")


@dataclass(frozen=True, slots=True)
class IntValue:
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("IntValue.value must be an int")
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise ValueError("IntValue.value must fit a signed 64-bit integer")


@dataclass(frozen=True, slots=True)
class FloatValue:
    value: float

    def __post_init__(self) -> None:
        if not isinstance(self.value, float):
            raise TypeError("FloatValue.value must be a float")


@dataclass(frozen=True, slots=True)
class StringValue:
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError("StringValue.value must be a string")


@dataclass(frozen=True, slots=True)
class ListValue:
    items: tuple[RuntimeValue, ...] = ()

    def __post_init__(self) -> None:
        items = tuple(self.items)
        for index, item in enumerate(items):
            if not is_runtime_value(item):
                raise TypeError(f"ListValue.items[{index}] must be a runtime value")
        object.__setattr__(self, "items", items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class MapValue:
    entries: Mapping[str, RuntimeValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", _freeze_entries(self.entries, "MapValue.entries"))


@dataclass(frozen=True, slots=True)
class ClassValue:
    """Class instance; ``type_name`` is data, never a link into a registry."""

    type_name: str
    fields: Mapping[str, RuntimeValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _validate_type_name(self.type_name, "ClassValue.type_name")
        object.__setattr__(self, "fields", _freeze_entries(self.fields, "ClassValue.fields"))


@dataclass(frozen=True, slots=True)
class EnumValue:
    type_name: str
    variant: str

    def __post_init__(self) -> None:
        _validate_type_name(self.type_name, "EnumValue.type_name")
        _validate_type_name(self.variant, "EnumValue.variant")


@dataclass(frozen=True, slots=True)
class MediaValue:
    """Opaque media reference; the codec refuses to carry it across the boundary."""

    media_type: str | None = None
    url: str | None = None
    base64: str | None = None

    def __post_init__(self) -> None:
        if (self.url is None) == (self.base64 is None):
            raise ValueError("MediaValue requires exactly one of url or base64")


RuntimeValue: TypeAlias = (
    NullValue
    | BoolValue
    | IntValue
    | FloatValue
    | StringValue
    | ListValue
    | MapValue
    | ClassValue
    | EnumValue
    | MediaValue
)

RUNTIME_VALUE_TYPES: Final[tuple[type, ...]] = (
    NullValue,
    BoolValue,
    IntValue,
    FloatValue,
    StringValue,
    ListValue,
    MapValue,
    ClassValue,
    EnumValue,
    MediaValue,
)

NULL: Final[NullValue] = NullValue()


def is_runtime_value(value: object) -> bool:
    return isinstance(value, RUNTIME_VALUE_TYPES)


def fits_int64(value: int) -> bool:
    return INT64_MIN <= value <= INT64_MAX


def contains_media(value: RuntimeValue) -> bool:
    """Return whether ``value`` holds a ``MediaValue`` anywhere in its tree."""

    if isinstance(value, MediaValue):
        return True
    if isinstance(value, ListValue):
        return any(contains_media(item) for item in value.items)
    if isinstance(value, MapValue):
        return any(contains_media(item) for item in value.entries.values())
    if isinstance(value, ClassValue):
        return any(contains_media(item) for item in value.fields.values())
    return False


__all__ = [
    "INT64_MAX",
    "INT64_MIN",
    "NULL",
    "RUNTIME_VALUE_TYPES",
    "BoolValue",
    "ClassValue",
    "EnumValue",
    "FloatValue",
    "IntValue",
    "ListValue",
    "MapValue",
    "MediaValue",
    "NullValue",
    "RuntimeValue",
    "StringValue",
    "contains_media",
    "fits_int64",
    "is_runtime_value",
]
