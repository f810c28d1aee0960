"""
baml-bridge — value codec

File: src/baml_bridge/codec.py
Last updated: 2026-10-17

Purpose
- Two-way conversion between caller TaggedValues and engine RuntimeValues.

What should be included in this file
- Reserved marker keys that distinguish class/enum payloads from plain maps.
- Decoding with integer-first numeric interpretation and one rejecting arm.
- Encoding that refuses media payloads.

Functional requirements
- decode(encode(v)) == v for every runtime value without media.
- A caller map without the class marker never decodes to a class instance.

Non-functional requirements
- Stateless; safe to call on successive streaming snapshots.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

from baml_bridge.errors import BridgeError, InvalidShape, UnsupportedValue
from baml_bridge.tagged import Tag, TaggedValue, describe_shape, is_null
from baml_bridge.values import (
    NULL,
    BoolValue,
    ClassValue,
    EnumValue,
    FloatValue,
    IntValue,
    ListValue,
    MapValue,
    MediaValue,
    NullValue,
    RuntimeValue,
    StringValue,
    fits_int64,
)

# Tag keys never collide with str field names.
CLASS_KEY: Final[Tag] = Tag("__baml_class__")
ENUM_KEY: Final[Tag] = Tag("__baml_enum__")
ENUM_VALUE_KEY: Final[Tag] = Tag("value")
MARKER_KEYS: Final[frozenset[Tag]] = frozenset({CLASS_KEY, ENUM_KEY})

DEFAULT_MAX_DEPTH: Final[int] = 64


class ValueCodec:
    """Converts between the caller grammar and the engine value tree."""

    __slots__ = ("_max_depth",)

    def __init__(self, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth <= 0:
            raise ValueError("max_depth must be > 0")
        self._max_depth = max_depth

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def decode(self, value: TaggedValue) -> RuntimeValue:
        return self._decode(value, 0)

    def decode_arguments(
        self, arguments: Mapping[object, TaggedValue]
    ) -> dict[str, RuntimeValue]:
        """Decode a top-level argument map into named runtime values."""

        if not isinstance(arguments, Mapping):
            raise InvalidShape("argument map", describe_shape(arguments))
        decoded: dict[str, RuntimeValue] = {}
        for key, item in arguments.items():
            name = _decode_key(key)
            try:
                decoded[name] = self._decode(item, 1)
            except BridgeError as exc:
                raise exc.with_context(field=name) from None
        return decoded

    def encode(self, value: RuntimeValue) -> TaggedValue:
        return self._encode(value, 0)

    def try_encode(self, value: RuntimeValue) -> TaggedValue | None:
        """Encode ``value`` or return ``None`` when it has no tagged form."""

        try:
            return self._encode(value, 0)
        except BridgeError:
            return None

    def _check_depth(self, depth: int) -> None:
        if depth > self._max_depth:
            raise InvalidShape(f"nesting depth <= {self._max_depth}", f"depth {depth}")

    def _decode(self, value: object, depth: int) -> RuntimeValue:
        self._check_depth(depth)
        if is_null(value):
            return NULL
        if isinstance(value, bool):
            return BoolValue(value)
        if isinstance(value, int):
            return _decode_int(value)
        if isinstance(value, float):
            return FloatValue(value)
        if isinstance(value, str):
            return StringValue(value)
        if isinstance(value, list):
            return ListValue(tuple(self._decode(item, depth + 1) for item in value))
        if isinstance(value, Mapping):
            if CLASS_KEY in value:
                return self._decode_class(value, depth)
            if ENUM_KEY in value:
                return _decode_enum(value)
            return MapValue(self._decode_entries(value, depth))
        raise UnsupportedValue(describe_shape(value))

    def _decode_entries(
        self, value: Mapping[object, object], depth: int
    ) -> dict[str, RuntimeValue]:
        entries: dict[str, RuntimeValue] = {}
        for key, item in value.items():
            entries[_decode_key(key)] = self._decode(item, depth + 1)
        return entries

    def _decode_class(self, value: Mapping[object, object], depth: int) -> ClassValue:
        type_name = value[CLASS_KEY]
        if not isinstance(type_name, str) or not type_name or type_name != type_name.strip():
            raise InvalidShape("class name string", describe_shape(type_name))
        body = {key: item for key, item in value.items() if key != CLASS_KEY}
        try:
            fields = self._decode_entries(body, depth)
        except BridgeError as exc:
            raise exc.with_context(declaration=type_name) from None
        return ClassValue(type_name, fields)

    def _encode(self, value: RuntimeValue, depth: int) -> TaggedValue:
        self._check_depth(depth)
        if isinstance(value, NullValue):
            return None
        if isinstance(value, (BoolValue, IntValue, FloatValue, StringValue)):
            return value.value
        if isinstance(value, ListValue):
            return [self._encode(item, depth + 1) for item in value.items]
        if isinstance(value, MapValue):
            return {key: self._encode(item, depth + 1) for key, item in value.entries.items()}
        if isinstance(value, ClassValue):
            encoded: dict[str | Tag, TaggedValue] = {CLASS_KEY: value.type_name}
            for key, item in value.fields.items():
                encoded[key] = self._encode(item, depth + 1)
            return encoded
        if isinstance(value, EnumValue):
            return {ENUM_KEY: value.type_name, ENUM_VALUE_KEY: value.variant}
        if isinstance(value, MediaValue):
            raise UnsupportedValue("media")
        raise UnsupportedValue(describe_shape(value))


def _decode_int(value: int) -> RuntimeValue:
    if fits_int64(value):
        return IntValue(value)
    try:
        return FloatValue(float(value))
    except OverflowError:
        raise UnsupportedValue("int beyond float range") from None


def _decode_key(key: object) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, Tag) and key.is_atom:
        if key in MARKER_KEYS:
            raise UnsupportedValue(f"misplaced marker key {key.name}")
        return key.name
    raise UnsupportedValue(f"map key {describe_shape(key)}")


def _decode_enum(value: Mapping[object, object]) -> EnumValue:
    if len(value) != 2 or ENUM_VALUE_KEY not in value:
        raise InvalidShape("enum payload with type and value keys", describe_shape(value))
    type_name = value[ENUM_KEY]
    variant = value[ENUM_VALUE_KEY]
    if not isinstance(type_name, str) or not isinstance(variant, str):
        raise InvalidShape("enum type and variant strings", describe_shape(value))
    try:
        return EnumValue(type_name, variant)
    except ValueError as exc:
        raise InvalidShape("enum type and variant names", str(exc)) from None


_DEFAULT_CODEC: Final[ValueCodec] = ValueCodec()


def decode(value: TaggedValue) -> RuntimeValue:
    """Decode with the default codec."""

    return _DEFAULT_CODEC.decode(value)


def encode(value: RuntimeValue) -> TaggedValue:
    """Encode with the default codec."""

    return _DEFAULT_CODEC.encode(value)


__all__ = [
    "CLASS_KEY",
    "DEFAULT_MAX_DEPTH",
    "ENUM_KEY",
    "ENUM_VALUE_KEY",
    "MARKER_KEYS",
    "ValueCodec",
    "decode",
    "encode",
]
