"""
ConformOS — Type Descriptor Model

A closed family of immutable descriptors describing the shape of values:

  Primitive   -- Boolean, String, Number and the bit-ranged integer kinds
  EnumType    -- a closed, ordered set of string labels
  Struct      -- ordered named fields (closed under validation)
  Pair        -- two independently typed components
  Vector      -- fixed-length homogeneous sequence
  Maybe       -- None ("nothing") or Just(inner)
  Fn          -- single-argument function signature (input -> output)

Descriptors compare structurally. The optional display name only changes
how a descriptor renders; it never takes part in equality, hashing,
generation or validation. Malformed arguments raise DescriptorError at
construction time.

Usage:
    Stats = named(struct(atk=UINT8, def_=UINT8), "Stats")
    Attack = fn(pair(Stats, Stats), UINT16)
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from conformos.engine.errors import DescriptorError

Path = tuple[str | int, ...]


# ── Primitive kinds ──────────────────────────────────────────────────────────


class PrimitiveKind(enum.StrEnum):
    BOOLEAN = "Boolean"
    STRING = "String"
    NUMBER = "Number"
    INT = "Int"
    INT8 = "Int8"
    INT16 = "Int16"
    INT32 = "Int32"
    UINT8 = "Uint8"
    UINT16 = "Uint16"
    UINT32 = "Uint32"


# Inclusive (low, high) bounds per integer kind
INTEGER_RANGES: dict[PrimitiveKind, tuple[int, int]] = {
    PrimitiveKind.INT:    (-(2**63), 2**63 - 1),
    PrimitiveKind.INT8:   (-(2**7), 2**7 - 1),
    PrimitiveKind.INT16:  (-(2**15), 2**15 - 1),
    PrimitiveKind.INT32:  (-(2**31), 2**31 - 1),
    PrimitiveKind.UINT8:  (0, 2**8 - 1),
    PrimitiveKind.UINT16: (0, 2**16 - 1),
    PrimitiveKind.UINT32: (0, 2**32 - 1),
}


def _require_descriptor(value: object, role: str) -> None:
    if not isinstance(value, TypeDescriptor):
        raise DescriptorError(f"{role} must be a TypeDescriptor, got {value!r}")


# ── Descriptor variants ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class TypeDescriptor:
    """Base of the descriptor variants. Never instantiated directly."""

    name: str | None = field(default=None, compare=False, kw_only=True)

    def __post_init__(self) -> None:
        if type(self) is TypeDescriptor:
            raise DescriptorError("TypeDescriptor is abstract; use a variant")
        if self.name is not None and (not isinstance(self.name, str) or not self.name):
            raise DescriptorError(f"descriptor name must be a non-empty string, got {self.name!r}")

    def render(self) -> str:
        return self.name if self.name is not None else self.shape()

    def shape(self) -> str:
        """Rendering derived from structure alone, ignoring any name."""
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class Primitive(TypeDescriptor):
    kind: PrimitiveKind
    range: tuple[int, int] | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        try:
            kind = PrimitiveKind(self.kind)
        except ValueError:
            raise DescriptorError(f"unknown primitive kind {self.kind!r}") from None
        object.__setattr__(self, "kind", kind)

        if kind not in INTEGER_RANGES:
            if self.range is not None:
                raise DescriptorError(f"{kind} does not take a range")
            return

        if self.range is None:
            object.__setattr__(self, "range", INTEGER_RANGES[kind])
            return

        low, high = self.range
        if isinstance(low, bool) or isinstance(high, bool) or not (
            isinstance(low, int) and isinstance(high, int)
        ):
            raise DescriptorError(f"{kind} range bounds must be integers, got {self.range!r}")
        if low > high:
            raise DescriptorError(f"{kind} range is empty: [{low}, {high}]")
        kind_low, kind_high = INTEGER_RANGES[kind]
        if low < kind_low or high > kind_high:
            raise DescriptorError(
                f"{kind} range [{low}, {high}] exceeds [{kind_low}, {kind_high}]"
            )
        object.__setattr__(self, "range", (low, high))

    @property
    def is_integer(self) -> bool:
        return self.kind in INTEGER_RANGES

    def shape(self) -> str:
        if self.is_integer and self.range != INTEGER_RANGES[self.kind]:
            low, high = self.range  # type: ignore[misc]
            return f"{self.kind}[{low}, {high}]"
        return str(self.kind)


@dataclass(frozen=True)
class EnumType(TypeDescriptor):
    labels: tuple[str, ...]

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.labels, str):
            raise DescriptorError("enum labels must be a sequence of strings, not a string")
        labels = tuple(self.labels)
        if not labels:
            raise DescriptorError("enum needs at least one label")
        for label in labels:
            if not isinstance(label, str):
                raise DescriptorError(f"enum label must be a string, got {label!r}")
        if len(set(labels)) != len(labels):
            raise DescriptorError(f"enum labels must be unique: {labels!r}")
        object.__setattr__(self, "labels", labels)

    def shape(self) -> str:
        return "Enum(" + ", ".join(f'"{label}"' for label in self.labels) + ")"


@dataclass(frozen=True)
class Struct(TypeDescriptor):
    fields: tuple[tuple[str, TypeDescriptor], ...]

    def __post_init__(self) -> None:
        super().__post_init__()
        items = self.fields.items() if isinstance(self.fields, Mapping) else self.fields
        normalized: list[tuple[str, TypeDescriptor]] = []
        seen: set[str] = set()
        for item in items:
            try:
                field_name, descriptor = item
            except (TypeError, ValueError):
                raise DescriptorError(f"struct field must be a (name, descriptor) pair, got {item!r}") from None
            if not isinstance(field_name, str) or not field_name:
                raise DescriptorError(f"struct field name must be a non-empty string, got {field_name!r}")
            if field_name in seen:
                raise DescriptorError(f"duplicate struct field {field_name!r}")
            _require_descriptor(descriptor, f"struct field {field_name!r}")
            seen.add(field_name)
            normalized.append((field_name, descriptor))
        object.__setattr__(self, "fields", tuple(normalized))

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(field_name for field_name, _ in self.fields)

    def field_map(self) -> dict[str, TypeDescriptor]:
        return dict(self.fields)

    def shape(self) -> str:
        inner = ", ".join(f"{field_name}: {d.render()}" for field_name, d in self.fields)
        return "{" + inner + "}"


@dataclass(frozen=True)
class Pair(TypeDescriptor):
    first: TypeDescriptor
    second: TypeDescriptor

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_descriptor(self.first, "pair first component")
        _require_descriptor(self.second, "pair second component")

    def shape(self) -> str:
        return f"({self.first.render()}, {self.second.render()})"


@dataclass(frozen=True)
class Vector(TypeDescriptor):
    length: int
    element: TypeDescriptor

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.length, bool) or not isinstance(self.length, int) or self.length <= 0:
            raise DescriptorError(f"vector length must be a positive integer, got {self.length!r}")
        _require_descriptor(self.element, "vector element")

    def shape(self) -> str:
        return f"Vector[{self.length}, {self.element.render()}]"


@dataclass(frozen=True)
class Maybe(TypeDescriptor):
    inner: TypeDescriptor

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_descriptor(self.inner, "maybe inner")

    def shape(self) -> str:
        return f"Maybe<{self.inner.render()}>"


@dataclass(frozen=True)
class Fn(TypeDescriptor):
    input: TypeDescriptor
    output: TypeDescriptor

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_descriptor(self.input, "function input")
        _require_descriptor(self.output, "function output")

    def shape(self) -> str:
        left = self.input.render()
        if isinstance(self.input, Fn) and self.input.name is None:
            left = f"({left})"
        return f"{left} -> {self.output.render()}"


# ── Construction API ─────────────────────────────────────────────────────────

BOOLEAN = Primitive(PrimitiveKind.BOOLEAN)
STRING = Primitive(PrimitiveKind.STRING)
NUMBER = Primitive(PrimitiveKind.NUMBER)
INT = Primitive(PrimitiveKind.INT)
INT8 = Primitive(PrimitiveKind.INT8)
INT16 = Primitive(PrimitiveKind.INT16)
INT32 = Primitive(PrimitiveKind.INT32)
UINT8 = Primitive(PrimitiveKind.UINT8)
UINT16 = Primitive(PrimitiveKind.UINT16)
UINT32 = Primitive(PrimitiveKind.UINT32)


def int_range(low: int, high: int, kind: PrimitiveKind = PrimitiveKind.INT) -> Primitive:
    """An integer kind narrowed to the inclusive range [low, high]."""
    return Primitive(kind, (low, high))


def enum_of(*labels: str) -> EnumType:
    return EnumType(labels)


def struct(
    fields: Mapping[str, TypeDescriptor] | Iterable[tuple[str, TypeDescriptor]] | None = None,
    **kwargs: TypeDescriptor,
) -> Struct:
    """
    Build a Struct from a mapping, an iterable of (name, descriptor) pairs,
    keyword arguments, or a mix. Names given twice are rejected.
    """
    items: list[tuple[str, TypeDescriptor]] = []
    if fields is not None:
        items.extend(fields.items() if isinstance(fields, Mapping) else fields)
    items.extend(kwargs.items())
    return Struct(tuple(items))


def pair(first: TypeDescriptor, second: TypeDescriptor) -> Pair:
    return Pair(first, second)


def vector(length: int, element: TypeDescriptor) -> Vector:
    return Vector(length, element)


def maybe(inner: TypeDescriptor) -> Maybe:
    return Maybe(inner)


def fn(input: TypeDescriptor, output: TypeDescriptor) -> Fn:
    return Fn(input, output)


def named(descriptor: TypeDescriptor, name: str) -> TypeDescriptor:
    """Return a copy of descriptor that renders as name. The original is untouched."""
    _require_descriptor(descriptor, "named() target")
    return dataclasses.replace(descriptor, name=name)


def render(descriptor: TypeDescriptor) -> str:
    return descriptor.render()


# ── Structural navigation ────────────────────────────────────────────────────


def descriptor_at(descriptor: TypeDescriptor, path: Path) -> TypeDescriptor:
    """Follow a validation path from descriptor down to a sub-descriptor."""
    current = descriptor
    for segment in path:
        if isinstance(current, Struct) and isinstance(segment, str):
            fields = current.field_map()
            if segment not in fields:
                raise KeyError(f"{current.render()} has no field {segment!r}")
            current = fields[segment]
        elif isinstance(current, Pair) and segment in (0, 1):
            current = current.first if segment == 0 else current.second
        elif isinstance(current, Vector) and isinstance(segment, int) and 0 <= segment < current.length:
            current = current.element
        else:
            raise KeyError(f"path segment {segment!r} does not apply to {current.render()}")
    return current


def leaf_paths(descriptor: TypeDescriptor, prefix: Path = ()) -> Iterator[tuple[Path, TypeDescriptor]]:
    """
    Yield (path, descriptor) for every non-composite position.

    Primitive, EnumType, Maybe and Fn are leaves; Struct, Pair and Vector
    are descended into.
    """
    if isinstance(descriptor, Struct):
        for field_name, sub in descriptor.fields:
            yield from leaf_paths(sub, (*prefix, field_name))
    elif isinstance(descriptor, Pair):
        yield from leaf_paths(descriptor.first, (*prefix, 0))
        yield from leaf_paths(descriptor.second, (*prefix, 1))
    elif isinstance(descriptor, Vector):
        for index in range(descriptor.length):
            yield from leaf_paths(descriptor.element, (*prefix, index))
    else:
        yield prefix, descriptor
