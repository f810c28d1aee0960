"""
baml-bridge — unit tests for the type-spec parser

File: tests/unit/type_spec/test_type_spec.py
Last updated: 2026-10-17

Purpose
- Validate declaration application and the recursive type grammar.

What this test file should cover
- Self and forward references through name-only class refs.
- Enum declaration order and value bodies.
- Partial failure without rollback and error context.
- Every shape of the type grammar, including inline declarations.
"""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from baml_bridge.errors import InvalidShape, MissingField, UnresolvedDeclaration
from baml_bridge.registry import SchemaRegistry
from baml_bridge.tagged import Tag
from baml_bridge.type_spec import TypeSpecParser, build_registry, parse_type
from baml_bridge.types import (
    BOOL,
    FLOAT,
    INT,
    STRING,
    ClassRef,
    EnumRef,
    ListType,
    LiteralType,
    MapType,
    OptionalType,
    TupleType,
    UnionType,
)


def _field(name: str, type_: object, **extra: object) -> dict[str, object]:
    return {"name": name, "type": type_, **extra}


def test_self_reference_is_a_name_only_class_ref() -> None:
    registry = build_registry(
        [("class", {"name": "Node", "fields": [_field("next", ("class", "Node"))]})]
    )

    assert registry.get_class("Node").field("next").type == ClassRef("Node")


def test_forward_reference_succeeds_in_either_order() -> None:
    person = ("class", {"name": "Person", "fields": [_field("pet", ("class", "Pet"))]})
    pet = ("class", {"name": "Pet", "fields": [_field("name", Tag("string"))]})

    for declarations in ([person, pet], [pet, person]):
        snapshot = build_registry(declarations).freeze()
        assert snapshot.get_class("Person").field("pet").type == ClassRef("Pet")
        assert snapshot.dangling_references() == ((), ())


def test_enum_declaration_keeps_value_order() -> None:
    registry = build_registry([("enum", {"name": "Color", "values": ["red", "green", "blue"]})])

    assert registry.get_enum("Color").value_names == ("red", "green", "blue")


def test_enum_values_accept_bodies_and_atoms() -> None:
    registry = build_registry(
        [
            (
                "enum",
                {
                    "name": "Mood",
                    "values": [
                        Tag("HAPPY"),
                        {"value": "SAD", "description": "down", "alias": "blue"},
                        {"name": "ANGRY", "skip": True},
                    ],
                },
            )
        ]
    )
    definition = registry.get_enum("Mood")

    assert definition.value_names == ("HAPPY", "SAD", "ANGRY")
    assert definition.values[1].description == "down"
    assert definition.values[1].alias == "blue"
    assert definition.values[2].skip is True


def test_partial_failure_keeps_already_applied_fields() -> None:
    registry = SchemaRegistry()
    parser = TypeSpecParser(registry)
    declaration = (
        "class",
        {"name": "Person", "fields": [_field("name", Tag("string")), {"type": Tag("int")}]},
    )

    with pytest.raises(MissingField) as excinfo:
        parser.apply([declaration])

    assert excinfo.value.which == "name"
    assert excinfo.value.declaration == "Person"
    assert registry.get_class("Person").field_names == ("name",)


def test_upsert_across_declarations_merges_fields() -> None:
    registry = build_registry(
        [
            ("class", {"name": "Pet", "fields": [_field("name", Tag("string"))]}),
            ("class", {"name": "Pet", "fields": [_field("age", Tag("int"))]}),
        ]
    )

    assert registry.get_class("Pet").field_names == ("name", "age")


def test_field_metadata_is_applied() -> None:
    registry = build_registry(
        [
            (
                "class",
                {
                    "name": "Resume",
                    "fields": [
                        _field("name", Tag("string"), description="full name", alias="n"),
                        _field("secret", Tag("string"), skip=True),
                    ],
                },
            )
        ]
    )
    definition = registry.get_class("Resume")

    assert definition.field("name").description == "full name"
    assert definition.field("name").alias == "n"
    assert definition.field("secret").skip is True


def test_unknown_declaration_tag_is_unresolved() -> None:
    with pytest.raises(UnresolvedDeclaration) as excinfo:
        build_registry([("interface", {"name": "X"})])

    assert excinfo.value.tag == "interface"


@pytest.mark.parametrize(
    ("declarations", "error"),
    [
        ("not a list", InvalidShape),
        (["class"], InvalidShape),
        ([("class", {"name": "X"})], MissingField),
        ([("class", {"fields": []})], MissingField),
        ([("class", {"name": "X", "fields": "name"})], InvalidShape),
        ([("class", {"name": "X", "fields": [{"name": "a"}]})], MissingField),
        ([("enum", {"name": "E"})], MissingField),
        ([("class", "X")], InvalidShape),
        ([("class", {"name": "X"}, "extra")], InvalidShape),
    ],
)
def test_malformed_declarations(declarations: object, error: type[Exception]) -> None:
    with pytest.raises(error):
        build_registry(declarations)


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (Tag("string"), STRING),
        (Tag("int"), INT),
        (Tag("float"), FLOAT),
        (Tag("bool"), BOOL),
        (Tag("Pet"), ClassRef("Pet")),
        ("alive", LiteralType("alive")),
        (3, LiteralType(3)),
        (("literal", Tag("dead")), LiteralType("dead")),
        (("list", Tag("int")), ListType(INT)),
        ([Tag("string")], ListType(STRING)),
        (("map", Tag("string"), Tag("int")), MapType(STRING, INT)),
        (("class", "Pet"), ClassRef("Pet")),
        (("enum", "Color"), EnumRef("Color")),
        (("enum", {"name": "Color"}), EnumRef("Color")),
        (("optional", Tag("string")), OptionalType(STRING)),
        (("union", [Tag("string"), Tag("int")]), UnionType((STRING, INT))),
        (("tuple", [Tag("string"), Tag("bool")]), TupleType((STRING, BOOL))),
    ],
)
def test_type_grammar(payload: object, expected: object) -> None:
    assert parse_type(payload) == expected


@pytest.mark.parametrize(
    "payload",
    [
        None,
        1.5,
        [],
        ("map", Tag("string")),
        ("list", Tag("int"), Tag("int")),
        ("union", []),
        ("tuple", Tag("int")),
        ("literal", 1.5),
        ("class", 3),
    ],
)
def test_invalid_type_shapes(payload: object) -> None:
    with pytest.raises(InvalidShape):
        parse_type(payload)


def test_unknown_shape_tag_is_unresolved() -> None:
    with pytest.raises(UnresolvedDeclaration):
        parse_type(("set", Tag("int")))


def test_inline_class_declaration_defines_the_type() -> None:
    registry = build_registry(
        [
            (
                "class",
                {
                    "name": "Person",
                    "fields": [
                        _field(
                            "address",
                            (
                                "class",
                                {"name": "Address", "fields": [_field("city", Tag("string"))]},
                            ),
                        ),
                        _field("home", {"name": "Home", "fields": [_field("rooms", Tag("int"))]}),
                    ],
                },
            )
        ]
    )

    assert registry.class_names() == ("Person", "Address", "Home")
    assert registry.get_class("Person").field("address").type == ClassRef("Address")
    assert registry.get_class("Home").field("rooms").type == INT


def test_inline_declaration_without_name_is_rejected() -> None:
    with pytest.raises(MissingField) as excinfo:
        build_registry(
            [
                (
                    "class",
                    {
                        "name": "Person",
                        "fields": [_field("address", {"fields": [_field("city", Tag("string"))]})],
                    },
                )
            ]
        )

    assert excinfo.value.which == "name"


def test_inline_enum_declaration() -> None:
    registry = build_registry(
        [
            (
                "class",
                {
                    "name": "Shirt",
                    "fields": [_field("color", ("enum", {"name": "Color", "values": ["RED"]}))],
                },
            )
        ]
    )

    assert registry.get_enum("Color").value_names == ("RED",)
    assert registry.get_class("Shirt").field("color").type == EnumRef("Color")


def test_parse_type_refuses_inline_declarations() -> None:
    with pytest.raises(InvalidShape, match="inline declaration"):
        parse_type(("class", {"name": "Pet", "fields": [_field("name", Tag("string"))]}))


def test_error_context_names_declaration_and_field() -> None:
    with pytest.raises(InvalidShape) as excinfo:
        build_registry([("class", {"name": "Pet", "fields": [_field("age", 1.5)]})])

    assert excinfo.value.declaration == "Pet"
    assert excinfo.value.field == "age"
    assert "(declaration=Pet field=age)" in str(excinfo.value)


def test_depth_limit_bounds_nested_types() -> None:
    payload: object = Tag("int")
    for _ in range(10):
        payload = ("list", payload)
    parser = TypeSpecParser(max_depth=5)

    with pytest.raises(InvalidShape, match="nesting depth"):
        parser.parse_type(payload)


def test_declarations_are_logged() -> None:
    with capture_logs() as logs:
        build_registry([("enum", {"name": "Color", "values": ["RED", "GREEN"]})])

    assert {
        "event": "type_spec_declaration_applied",
        "kind": "enum",
        "name": "Color",
        "value_count": 2,
        "log_level": "debug",
    } in logs
