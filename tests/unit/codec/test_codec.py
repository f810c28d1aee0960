"""
baml-bridge — unit tests for the value codec

File: tests/unit/codec/test_codec.py
Last updated: 2026-10-17

Purpose
- Validate two-way conversion between tagged caller values and runtime values.

What this test file should cover
- Round-trip law for runtime values without media.
- Integer-first numeric decoding and the int64 overflow path.
- Class/enum marker handling and the rejecting arm for unsupported shapes.
- Argument map decoding with field context on errors.

Functional requirements
- Offline and engine-free.
"""

from __future__ import annotations

import pytest

from baml_bridge.codec import (
    CLASS_KEY,
    ENUM_KEY,
    ENUM_VALUE_KEY,
    ValueCodec,
    decode,
    encode,
)
from baml_bridge.errors import BridgeError, InvalidShape, UnsupportedValue
from baml_bridge.tagged import NIL, Tag
from baml_bridge.values import (
    INT64_MAX,
    INT64_MIN,
    NULL,
    BoolValue,
    ClassValue,
    EnumValue,
    FloatValue,
    IntValue,
    ListValue,
    MapValue,
    MediaValue,
    StringValue,
)

try:
    from hypothesis import given, settings
    from hypothesis import strategies as st
except ModuleNotFoundError:
    HYPOTHESIS_AVAILABLE = False
else:
    HYPOTHESIS_AVAILABLE = True


def test_scalars_decode_to_matching_runtime_values() -> None:
    assert decode(None) == NULL
    assert decode(NIL) == NULL
    assert decode(True) == BoolValue(True)
    assert decode(7) == IntValue(7)
    assert decode(2.5) == FloatValue(2.5)
    assert decode("hi") == StringValue("hi")


def test_bool_is_never_decoded_as_int() -> None:
    assert decode(False) == BoolValue(False)
    assert not isinstance(decode(False), IntValue)


def test_int64_bounds_stay_integers_and_overflow_becomes_float() -> None:
    assert decode(INT64_MAX) == IntValue(INT64_MAX)
    assert decode(INT64_MIN) == IntValue(INT64_MIN)
    assert decode(INT64_MAX + 1) == FloatValue(float(INT64_MAX + 1))


def test_int_beyond_float_range_is_rejected() -> None:
    with pytest.raises(UnsupportedValue, match="int beyond float range"):
        decode(10**400)


def test_empty_list_decodes_to_empty_list_value() -> None:
    assert decode([]) == ListValue(())
    assert encode(ListValue(())) == []


def test_plain_map_decodes_to_map_value_not_class() -> None:
    decoded = decode({"name": "Rex", "age": 3})

    assert decoded == MapValue({"name": StringValue("Rex"), "age": IntValue(3)})


def test_atom_keys_decode_to_their_names() -> None:
    decoded = decode({Tag("name"): "Rex", ENUM_VALUE_KEY: 1})

    assert decoded == MapValue({"name": StringValue("Rex"), "value": IntValue(1)})


def test_class_marker_decodes_to_class_value() -> None:
    decoded = decode({CLASS_KEY: "Person", "name": "Ada", "pets": [{CLASS_KEY: "Pet"}]})

    assert decoded == ClassValue(
        "Person",
        {"name": StringValue("Ada"), "pets": ListValue((ClassValue("Pet", {}),))},
    )


def test_class_value_encodes_with_marker_and_fields() -> None:
    value = ClassValue("Person", {"name": StringValue("Ada"), "age": IntValue(36)})

    assert encode(value) == {CLASS_KEY: "Person", "name": "Ada", "age": 36}


def test_string_key_named_like_marker_is_an_ordinary_field() -> None:
    decoded = decode({"__baml_class__": "Person"})

    assert decoded == MapValue({"__baml_class__": StringValue("Person")})


def test_enum_round_trip() -> None:
    value = EnumValue("Color", "RED")
    encoded = encode(value)

    assert encoded == {ENUM_KEY: "Color", ENUM_VALUE_KEY: "RED"}
    assert decode(encoded) == value


@pytest.mark.parametrize(
    "payload",
    [
        {ENUM_KEY: "Color"},
        {ENUM_KEY: "Color", ENUM_VALUE_KEY: "RED", "extra": 1},
        {ENUM_KEY: "Color", ENUM_VALUE_KEY: 3},
        {ENUM_KEY: "", ENUM_VALUE_KEY: "RED"},
    ],
)
def test_malformed_enum_payloads_are_invalid_shapes(payload: dict[object, object]) -> None:
    with pytest.raises(InvalidShape):
        decode(payload)


def test_class_name_must_be_a_clean_string() -> None:
    with pytest.raises(InvalidShape, match="class name string"):
        decode({CLASS_KEY: 5})
    with pytest.raises(InvalidShape):
        decode({CLASS_KEY: " Person"})


@pytest.mark.parametrize(
    "value",
    [
        ("pair", 1),
        (1, 2),
        Tag("custom"),
        Tag("custom", 1),
        {1, 2},
        b"bytes",
        object(),
    ],
)
def test_unsupported_shapes_take_the_rejecting_arm(value: object) -> None:
    with pytest.raises(UnsupportedValue) as excinfo:
        decode(value)

    assert excinfo.value.code == "unsupported_value"


def test_non_string_map_keys_are_rejected() -> None:
    with pytest.raises(UnsupportedValue, match="map key"):
        decode({1: "one"})


def test_marker_key_in_nested_position_is_rejected() -> None:
    with pytest.raises(UnsupportedValue, match="misplaced marker key"):
        decode({CLASS_KEY: "Person", ENUM_KEY: "Color"})


def test_nested_class_error_names_the_declaration() -> None:
    with pytest.raises(UnsupportedValue) as excinfo:
        decode({CLASS_KEY: "Person", "pet": ("bad", 1)})

    assert excinfo.value.declaration == "Person"


def test_media_cannot_be_encoded() -> None:
    media = MediaValue(media_type="image/png", url="https://example.test/cat.png")

    with pytest.raises(UnsupportedValue, match="media"):
        encode(ListValue((media,)))


def test_try_encode_returns_none_instead_of_raising() -> None:
    codec = ValueCodec()
    media = MediaValue(base64="aGVsbG8=")

    assert codec.try_encode(media) is None
    assert codec.try_encode(StringValue("ok")) == "ok"


def test_depth_limit_is_enforced() -> None:
    codec = ValueCodec(max_depth=3)

    assert codec.decode([[["deep"]]]) == ListValue(
        (ListValue((ListValue((StringValue("deep"),)),)),)
    )
    with pytest.raises(InvalidShape, match="nesting depth"):
        codec.decode([[[["too deep"]]]])


def test_max_depth_must_be_positive() -> None:
    with pytest.raises(ValueError, match="max_depth"):
        ValueCodec(max_depth=0)


def test_decode_arguments_accepts_string_and_atom_keys() -> None:
    arguments = ValueCodec().decode_arguments({"resume": "text", Tag("count"): 2})

    assert arguments == {"resume": StringValue("text"), "count": IntValue(2)}


def test_decode_arguments_rejects_non_mapping() -> None:
    with pytest.raises(InvalidShape, match="argument map"):
        ValueCodec().decode_arguments(["resume"])  # type: ignore[arg-type]


def test_decode_arguments_last_spelling_of_a_name_wins() -> None:
    arguments = ValueCodec().decode_arguments({"name": 1, Tag("name"): 2})

    assert arguments == {"name": IntValue(2)}


def test_map_with_string_and_atom_spelling_of_a_key_keeps_last_entry() -> None:
    assert decode({"a": 1, Tag("a"): 2}) == MapValue({"a": IntValue(2)})
    assert decode({Tag("a"): 2, "a": 1}) == MapValue({"a": IntValue(1)})
    assert decode({CLASS_KEY: "Pet", "name": "x", Tag("name"): "Rex"}) == ClassValue(
        "Pet", {"name": StringValue("Rex")}
    )


def test_decode_arguments_error_names_the_argument() -> None:
    with pytest.raises(BridgeError) as excinfo:
        ValueCodec().decode_arguments({"good": 1, "bad": ("x", 1)})

    assert excinfo.value.field == "bad"
    assert "field=bad" in str(excinfo.value)


if HYPOTHESIS_AVAILABLE:
    _names = st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=8)
    _scalars = st.one_of(
        st.just(NULL),
        st.booleans().map(BoolValue),
        st.integers(min_value=INT64_MIN, max_value=INT64_MAX).map(IntValue),
        st.floats(allow_nan=False).map(FloatValue),
        st.text(max_size=12).map(StringValue),
        st.builds(EnumValue, _names, _names),
    )
    _runtime_values = st.recursive(
        _scalars,
        lambda children: st.one_of(
            st.lists(children, max_size=4).map(lambda items: ListValue(tuple(items))),
            st.dictionaries(st.text(max_size=6), children, max_size=4).map(MapValue),
            st.builds(
                ClassValue,
                _names,
                st.dictionaries(_names, children, max_size=4),
            ),
        ),
        max_leaves=20,
    )

    @given(value=_runtime_values)
    @settings(max_examples=200, deadline=None)
    def test_decode_inverts_encode_for_media_free_values(value: object) -> None:
        assert decode(encode(value)) == value  # type: ignore[arg-type]

    @given(value=st.integers(min_value=-(2**200), max_value=2**200))
    @settings(max_examples=100, deadline=None)
    def test_integers_decode_as_int_when_they_fit(value: int) -> None:
        decoded = decode(value)
        if INT64_MIN <= value <= INT64_MAX:
            assert decoded == IntValue(value)
        else:
            assert isinstance(decoded, FloatValue)
