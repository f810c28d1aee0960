"""Unit tests for the tagged value grammar and the bridge error taxonomy."""

from __future__ import annotations

import pytest

from baml_bridge.errors import (
    BridgeError,
    EngineError,
    InvalidShape,
    MissingField,
    UnresolvedDeclaration,
    UnsupportedValue,
    bridge_error_types,
)
from baml_bridge.tagged import NIL, Tag, as_tag, describe_shape, is_null


def test_tag_arity_and_atoms() -> None:
    assert Tag("string").is_atom
    assert Tag("map", Tag("string"), Tag("int")).arity == 2
    with pytest.raises(ValueError):
        Tag("")
    with pytest.raises(ValueError):
        Tag("x", 1, 2, 3, 4)


def test_tuple_shorthand_converts_to_tag() -> None:
    assert as_tag(("list", Tag("int"))) == Tag("list", Tag("int"))
    assert as_tag((Tag("class"), "Pet")) == Tag("class", "Pet")
    assert as_tag((1, 2)) is None
    assert as_tag(()) is None
    assert as_tag("list") is None


def test_null_forms() -> None:
    assert is_null(None)
    assert is_null(NIL)
    assert not is_null(Tag("none"))


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, "nil"),
        (True, "bool"),
        (Tag("x"), "atom:x"),
        (Tag("x", 1), "tag:x/1"),
        (("x", 1, 2), "tag:x/2"),
        ((1, 2), "tuple/2"),
        ({"a": 1}, "map/1"),
        ([1, 2, 3], "list/3"),
        (1.5, "float"),
    ],
)
def test_describe_shape(value: object, expected: str) -> None:
    assert describe_shape(value) == expected


def test_bridge_errors_render_code_detail_and_location() -> None:
    error = MissingField("type", declaration="Pet", field="name")

    assert str(error) == "missing_field: missing required key 'type' (declaration=Pet field=name)"
    assert isinstance(error, ValueError)


def test_with_context_only_fills_missing_location() -> None:
    error = InvalidShape("string", "int", field="age")

    error.with_context(declaration="Pet", field="other")

    assert (error.declaration, error.field) == ("Pet", "age")
    assert str(error) == "invalid_shape: expected string, got int (declaration=Pet field=age)"


def test_error_codes_are_distinct() -> None:
    codes = [error_type.code for error_type in bridge_error_types()]

    assert len(set(codes)) == len(codes)
    assert all(issubclass(error_type, BridgeError) for error_type in bridge_error_types())
    assert UnsupportedValue("x").code == "unsupported_value"
    assert UnresolvedDeclaration("x").code == "unresolved_declaration"


def test_engine_error_keeps_diagnostic_verbatim() -> None:
    error = EngineError("upstream 500", function="ExtractResume")

    assert error.diagnostic == "upstream 500"
    assert str(error) == "ExtractResume: upstream 500"
    assert not isinstance(error, BridgeError)
