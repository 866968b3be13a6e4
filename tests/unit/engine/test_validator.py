"""
Unit tests for the structural validator: acceptance per variant, the
first-mismatch path, and struct closedness.
"""

from __future__ import annotations

import math

import pytest

from conformos.engine.descriptors import (
    BOOLEAN,
    INT,
    NUMBER,
    STRING,
    UINT8,
    enum_of,
    fn,
    int_range,
    maybe,
    named,
    pair,
    struct,
    vector,
)
from conformos.engine.errors import ValidationError
from conformos.engine.types import MISSING, Just
from conformos.engine.validator import check, conforms, validate

Stats = struct(atk=UINT8, **{"def": UINT8})
Fighter = struct(name=STRING, stats=Stats)


# ── Primitives ────────────────────────────────────────────────────────────────


class TestPrimitives:
    def test_uint8_bounds(self):
        assert conforms(UINT8, 0)
        assert conforms(UINT8, 255)
        assert not conforms(UINT8, 256)
        assert not conforms(UINT8, -1)

    def test_bool_is_not_an_integer(self):
        mismatch = validate(INT, True)
        assert mismatch is not None
        assert mismatch.reason == "expected an int"

    def test_float_is_not_an_integer(self):
        assert not conforms(INT, 1.0)

    def test_narrowed_range(self):
        assert conforms(int_range(0, 9), 9)
        mismatch = validate(int_range(0, 9), 10)
        assert mismatch is not None
        assert "out of range [0, 9]" in mismatch.reason

    def test_number_accepts_ints_and_floats(self):
        assert conforms(NUMBER, 3)
        assert conforms(NUMBER, -2.5)

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, True, "1"])
    def test_number_rejects(self, value):
        assert not conforms(NUMBER, value)

    def test_boolean_and_string(self):
        assert conforms(BOOLEAN, False)
        assert not conforms(BOOLEAN, 0)
        assert conforms(STRING, "")
        assert not conforms(STRING, b"x")

    def test_enum_labels_exact(self):
        colour = enum_of("red", "green")
        assert conforms(colour, "red")
        assert not conforms(colour, "RED")
        assert not conforms(colour, 0)


# ── Composites ────────────────────────────────────────────────────────────────


class TestComposites:
    def test_vector_arity_mismatch_at_container(self):
        mismatch = validate(vector(4, STRING), ["a", "b", "c"])
        assert mismatch is not None
        assert mismatch.path == ()
        assert mismatch.reason == "arity 3 != 4"

    def test_vector_element_mismatch_path(self):
        mismatch = validate(vector(3, UINT8), [1, 2, 300])
        assert mismatch is not None
        assert mismatch.path == (2,)
        assert mismatch.actual == 300

    def test_vector_accepts_tuple(self):
        assert conforms(vector(2, UINT8), (1, 2))

    def test_pair(self):
        assert conforms(pair(INT, STRING), (1, "x"))
        assert conforms(pair(INT, STRING), [1, "x"])
        assert not conforms(pair(INT, STRING), ("x", 1))
        assert not conforms(pair(INT, STRING), (1, "x", 2))

    def test_maybe(self):
        assert conforms(maybe(BOOLEAN), None)
        assert conforms(maybe(BOOLEAN), Just(True))
        assert not conforms(maybe(BOOLEAN), Just(1))
        # a bare inner value is not a Maybe
        assert not conforms(maybe(BOOLEAN), True)

    def test_maybe_does_not_extend_path(self):
        mismatch = validate(struct(x=maybe(UINT8)), {"x": Just(999)})
        assert mismatch is not None
        assert mismatch.path == ("x",)

    def test_fn_accepts_callables(self):
        assert conforms(fn(INT, INT), abs)
        assert conforms(fn(INT, INT), lambda x: "not checked")
        assert not conforms(fn(INT, INT), 3)


# ── Structs ───────────────────────────────────────────────────────────────────


class TestStructs:
    def test_nested_field_path(self):
        value = {"name": "ann", "stats": {"atk": 10, "def": 300}}
        mismatch = validate(Fighter, value)
        assert mismatch is not None
        assert mismatch.path == ("stats", "def")
        assert mismatch.location == "stats.def"
        assert mismatch.expected == UINT8
        assert mismatch.actual == 300

    def test_first_mismatch_in_declaration_order(self):
        mismatch = validate(Stats, {"atk": -1, "def": -1})
        assert mismatch is not None
        assert mismatch.path == ("atk",)

    def test_extra_field_rejected_at_struct(self):
        mismatch = validate(Stats, {"atk": 1, "def": 2, "hp": 3})
        assert mismatch is not None
        assert mismatch.path == ()
        assert "'hp'" in mismatch.reason

    def test_missing_field_reported_at_field(self):
        mismatch = validate(Stats, {"atk": 1})
        assert mismatch is not None
        assert mismatch.path == ("def",)
        assert mismatch.actual is MISSING
        assert "missing" in mismatch.describe()

    def test_non_mapping_rejected(self):
        assert not conforms(Stats, [1, 2])

    def test_index_inside_struct_path(self):
        roster = vector(2, struct(id=UINT8))
        mismatch = validate(roster, [{"id": 1}, {"id": "two"}])
        assert mismatch is not None
        assert mismatch.location == "[1].id"

    def test_empty_struct(self):
        assert conforms(struct(), {})
        assert not conforms(struct(), {"a": 1})


# ── check() ───────────────────────────────────────────────────────────────────


class TestCheck:
    def test_returns_value_unchanged(self):
        value = {"atk": 1, "def": 2}
        assert check(Stats, value) is value

    def test_raises_with_mismatch(self):
        with pytest.raises(ValidationError) as info:
            check(Fighter, {"name": "x", "stats": {"atk": 1, "def": 999}})
        assert info.value.mismatch.location == "stats.def"
        assert "stats.def" in str(info.value)

    def test_named_descriptor_renders_name(self):
        byte = named(UINT8, "Byte")
        with pytest.raises(ValidationError, match="expected Byte"):
            check(byte, 256)

    def test_root_location(self):
        with pytest.raises(ValidationError, match="<root>"):
            check(UINT8, "x")
