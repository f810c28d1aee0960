"""
baml-bridge — YAML declaration files

File: src/baml_bridge/schema_file.py
Last updated: 2026-10-17

Purpose
- Read class and enum declarations from YAML documents and translate them into
  the tagged declaration grammar consumed by the type-spec parser.

What should be included in this file
- Loading via ``yaml.safe_load`` with path-qualified errors.
- Translation of plain YAML scalars/maps into atoms and tagged shapes.

Functional requirements
- A YAML string in type position names a primitive or a class; literal
  strings must be spelled ``{literal: "..."}``.
- Declaration order in the file is the order applied to the registry.

Document layout::

    - class:
        name: Person
        fields:
          - {name: name, type: string}
          - {name: pets, type: {list: Pet}}
    - enum:
        name: Color
        values: [RED, GREEN]
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

import yaml

from baml_bridge.codec import DEFAULT_MAX_DEPTH
from baml_bridge.registry import SchemaRegistry
from baml_bridge.tagged import Tag
from baml_bridge.type_spec import DECLARATION_KINDS, SHAPE_KINDS, TypeSpecParser


class SchemaFileError(ValueError):
    """Raised when a declaration file cannot be read or has the wrong layout."""


def load_schema_file(
    path: str | Path,
    registry: SchemaRegistry | None = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    logger: Any | None = None,
) -> SchemaRegistry:
    """Apply the declarations in ``path`` to ``registry`` (or a fresh one)."""

    declarations = read_declarations(path)
    parser = TypeSpecParser(registry, max_depth=max_depth, logger=logger)
    return parser.apply(declarations)


def read_declarations(path: str | Path) -> list[Tag]:
    resolved = Path(path)
    try:
        with resolved.open("r", encoding="utf-8") as handle:
            loaded = cast("object", yaml.safe_load(handle))
    except OSError as exc:
        raise SchemaFileError(f"{resolved}: unable to read ({exc})") from exc
    except yaml.YAMLError as exc:
        raise SchemaFileError(f"{resolved}: invalid YAML ({exc})") from exc
    return declarations_from_document(loaded, source=resolved.name)


def declarations_from_document(document: object, *, source: str = "<document>") -> list[Tag]:
    """Translate an already-parsed YAML document into tagged declarations."""

    if document is None:
        return []
    if isinstance(document, Mapping) and "declarations" in document:
        document = document["declarations"]
    if not isinstance(document, list):
        raise SchemaFileError(
            f"{source}: expected a list of declarations, got {type(document).__name__}"
        )

    declarations: list[Tag] = []
    for index, item in enumerate(document):
        location = f"{source}[{index}]"
        if not isinstance(item, Mapping) or len(item) != 1:
            raise SchemaFileError(f"{location}: expected a single-key 'class' or 'enum' map")
        ((kind, body),) = item.items()
        if kind not in DECLARATION_KINDS:
            raise SchemaFileError(
                f"{location}: unknown declaration kind {kind!r}; "
                f"allowed kinds: {sorted(DECLARATION_KINDS)}"
            )
        if kind == "class":
            declarations.append(Tag("class", _class_body(body, location)))
        else:
            declarations.append(Tag("enum", body))
    return declarations


def _class_body(body: object, location: str) -> object:
    # Layout errors inside the body are left for the parser to report.
    if not isinstance(body, Mapping):
        return body
    converted = dict(body)
    fields = converted.get("fields")
    if isinstance(fields, list):
        converted["fields"] = [
            _field(item, f"{location}.fields[{index}]") for index, item in enumerate(fields)
        ]
    return converted


def _field(item: object, location: str) -> object:
    if not isinstance(item, Mapping) or "type" not in item:
        return item
    converted = dict(item)
    converted["type"] = _type_term(item["type"], f"{location}.type")
    return converted


def _type_term(value: object, location: str) -> object:
    if isinstance(value, str):
        if not value:
            raise SchemaFileError(f"{location}: empty type name")
        return Tag(value)
    if isinstance(value, (bool, int)) or value is None:
        return value
    if isinstance(value, list):
        return [_type_term(item, f"{location}[{index}]") for index, item in enumerate(value)]
    if not isinstance(value, Mapping):
        raise SchemaFileError(f"{location}: unsupported type value {type(value).__name__}")

    if len(value) == 1:
        ((kind, payload),) = value.items()
        if kind in SHAPE_KINDS:
            return _shape_term(kind, payload, f"{location}.{kind}")
    # A bare map is an inline class body.
    return Tag("class", _class_body(value, location))


def _shape_term(kind: str, payload: object, location: str) -> Tag:
    if kind == "map":
        if not isinstance(payload, list) or len(payload) != 2:
            raise SchemaFileError(f"{location}: expected [key_type, value_type]")
        return Tag("map", _type_term(payload[0], location), _type_term(payload[1], location))
    if kind in {"union", "tuple"}:
        if not isinstance(payload, list):
            raise SchemaFileError(f"{location}: expected a list of member types")
        return Tag(kind, [_type_term(item, location) for item in payload])
    if kind == "literal":
        return Tag("literal", payload)
    if kind == "class":
        return Tag("class", _class_body(payload, location))
    if kind == "enum":
        return Tag("enum", payload)
    return Tag(kind, _type_term(payload, location))


__all__ = [
    "SchemaFileError",
    "declarations_from_document",
    "load_schema_file",
    "read_declarations",
]
