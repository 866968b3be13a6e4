"""
Unit tests for the descriptor model.

Covers construction-time validation, structural equality, name handling,
rendering, and structural navigation (descriptor_at / leaf_paths).
"""

from __future__ import annotations

import dataclasses

import pytest

from conformos.engine.descriptors import (
    BOOLEAN,
    INT,
    INT8,
    NUMBER,
    STRING,
    UINT8,
    UINT16,
    UINT32,
    EnumType,
    Primitive,
    PrimitiveKind,
    Struct,
    TypeDescriptor,
    descriptor_at,
    enum_of,
    fn,
    int_range,
    leaf_paths,
    maybe,
    named,
    pair,
    struct,
    vector,
)
from conformos.engine.errors import DescriptorError

# ── Primitives ────────────────────────────────────────────────────────────────


class TestPrimitives:
    def test_integer_kinds_carry_bit_ranges(self):
        assert UINT8.range == (0, 255)
        assert UINT16.range == (0, 65535)
        assert UINT32.range == (0, 2**32 - 1)
        assert INT8.range == (-128, 127)
        assert INT.range == (-(2**63), 2**63 - 1)

    def test_non_integer_kinds_have_no_range(self):
        assert BOOLEAN.range is None
        assert STRING.range is None
        assert NUMBER.range is None

    def test_kind_accepts_string_value(self):
        assert Primitive("Uint8") == UINT8

    def test_unknown_kind_rejected(self):
        with pytest.raises(DescriptorError, match="unknown primitive kind"):
            Primitive("Float")

    def test_narrowed_range(self):
        small = int_range(0, 10)
        assert small.range == (0, 10)
        assert small.render() == "Int[0, 10]"
        assert small != INT

    def test_inverted_range_rejected(self):
        with pytest.raises(DescriptorError, match="empty"):
            int_range(5, 1)

    def test_range_beyond_kind_rejected(self):
        with pytest.raises(DescriptorError, match="exceeds"):
            int_range(0, 300, PrimitiveKind.UINT8)

    def test_range_on_non_integer_kind_rejected(self):
        with pytest.raises(DescriptorError):
            Primitive(PrimitiveKind.BOOLEAN, (0, 1))

    def test_bool_range_bounds_rejected(self):
        with pytest.raises(DescriptorError):
            Primitive(PrimitiveKind.INT, (False, True))


# ── Combinators ───────────────────────────────────────────────────────────────


class TestConstruction:
    @pytest.mark.parametrize("length", [0, -1, 2.0, True, "3"])
    def test_vector_length_must_be_positive_int(self, length):
        with pytest.raises(DescriptorError, match="vector length"):
            vector(length, STRING)

    def test_enum_needs_labels(self):
        with pytest.raises(DescriptorError, match="at least one label"):
            enum_of()

    def test_enum_labels_unique(self):
        with pytest.raises(DescriptorError, match="unique"):
            enum_of("a", "a")

    def test_enum_labels_are_strings(self):
        with pytest.raises(DescriptorError, match="must be a string"):
            enum_of("a", 1)

    def test_enum_rejects_bare_string(self):
        with pytest.raises(DescriptorError):
            EnumType("ab")

    def test_struct_duplicate_fields_rejected(self):
        with pytest.raises(DescriptorError, match="duplicate struct field 'a'"):
            struct([("a", UINT8), ("a", INT)])

    def test_struct_mapping_and_keyword_collision_rejected(self):
        with pytest.raises(DescriptorError, match="duplicate"):
            struct({"a": UINT8}, a=INT)

    def test_struct_field_must_be_descriptor(self):
        with pytest.raises(DescriptorError, match="struct field 'a'"):
            struct(a=5)

    def test_struct_field_name_must_be_string(self):
        with pytest.raises(DescriptorError, match="field name"):
            struct([(1, UINT8)])

    def test_empty_struct_allowed(self):
        assert struct().fields == ()

    def test_components_must_be_descriptors(self):
        with pytest.raises(DescriptorError):
            pair(UINT8, "x")
        with pytest.raises(DescriptorError):
            maybe(None)
        with pytest.raises(DescriptorError):
            fn(UINT8, int)

    def test_base_class_is_abstract(self):
        with pytest.raises(DescriptorError):
            TypeDescriptor()

    def test_descriptors_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            UINT8.kind = PrimitiveKind.INT  # type: ignore[misc]

    def test_struct_accepts_mapping_directly(self):
        assert Struct({"a": UINT8}) == struct(a=UINT8)


# ── Equality & Naming ─────────────────────────────────────────────────────────


class TestEqualityAndNames:
    def test_structural_equality(self):
        assert struct(a=UINT8, b=maybe(STRING)) == struct({"a": UINT8, "b": maybe(STRING)})
        assert vector(3, BOOLEAN) == vector(3, BOOLEAN)
        assert vector(3, BOOLEAN) != vector(4, BOOLEAN)
        assert hash(pair(INT, STRING)) == hash(pair(INT, STRING))

    def test_struct_field_order_is_part_of_identity(self):
        assert struct(a=UINT8, b=UINT8) != struct(b=UINT8, a=UINT8)

    def test_name_does_not_affect_equality(self):
        byte = named(UINT8, "Byte")
        assert byte == UINT8
        assert hash(byte) == hash(UINT8)

    def test_named_returns_new_descriptor(self):
        byte = named(UINT8, "Byte")
        assert byte.render() == "Byte"
        assert UINT8.render() == "Uint8"
        assert UINT8.name is None

    def test_name_used_inside_composite_rendering(self):
        stats = named(struct(atk=UINT8), "Stats")
        assert pair(stats, stats).render() == "(Stats, Stats)"
        assert stats.shape() == "{atk: Uint8}"

    def test_empty_name_rejected(self):
        with pytest.raises(DescriptorError):
            named(UINT8, "")


# ── Rendering ─────────────────────────────────────────────────────────────────


class TestRendering:
    @pytest.mark.parametrize(
        ("descriptor", "expected"),
        [
            (UINT8, "Uint8"),
            (enum_of("a", "b"), 'Enum("a", "b")'),
            (struct(stats=struct({"def": UINT8})), "{stats: {def: Uint8}}"),
            (pair(INT, STRING), "(Int, String)"),
            (vector(4, STRING), "Vector[4, String]"),
            (maybe(BOOLEAN), "Maybe<Boolean>"),
            (fn(INT, STRING), "Int -> String"),
            (fn(fn(INT, INT), BOOLEAN), "(Int -> Int) -> Boolean"),
        ],
    )
    def test_shape_rendering(self, descriptor, expected):
        assert descriptor.render() == expected
        assert str(descriptor) == expected


# ── Navigation ────────────────────────────────────────────────────────────────


class TestNavigation:
    def test_descriptor_at_follows_fields_and_indices(self):
        d = pair(struct(stats=struct({"def": UINT8})), vector(3, STRING))
        assert descriptor_at(d, (0, "stats", "def")) == UINT8
        assert descriptor_at(d, (1, 2)) == STRING
        assert descriptor_at(d, ()) is d

    def test_descriptor_at_rejects_bad_path(self):
        with pytest.raises(KeyError):
            descriptor_at(struct(a=UINT8), ("b",))
        with pytest.raises(KeyError):
            descriptor_at(vector(2, UINT8), (2,))

    def test_leaf_paths_in_declaration_order(self):
        d = pair(struct(a=BOOLEAN, b=maybe(UINT8)), vector(2, STRING))
        assert list(leaf_paths(d)) == [
            ((0, "a"), BOOLEAN),
            ((0, "b"), maybe(UINT8)),
            ((1, 0), STRING),
            ((1, 1), STRING),
        ]

    def test_leaf_paths_of_primitive_is_root(self):
        assert list(leaf_paths(UINT8)) == [((), UINT8)]
