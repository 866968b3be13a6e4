"""
ConformOS — Structural Validator

Decides whether a value conforms to a descriptor. Validation stops at the
first mismatch and reports the full path from the root descriptor, so a
failure inside a nested struct names the exact field ("stats.def").

Host representations accepted:
  Boolean        -- bool
  String         -- str
  Number         -- finite int or float (never bool)
  Integer kinds  -- int (never bool) within the kind's range
  EnumType       -- one of the labels, compared exactly
  Struct         -- Mapping with exactly the declared keys (closed)
  Pair           -- tuple or list of length 2
  Vector         -- tuple or list of exactly `length` items
  Maybe          -- None, or Just(v) with v conforming to inner
  Fn             -- any callable; future calls are not checked here
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from conformos.engine.descriptors import (
    EnumType,
    Fn,
    Maybe,
    Pair,
    Path,
    Primitive,
    PrimitiveKind,
    Struct,
    TypeDescriptor,
    Vector,
)
from conformos.engine.errors import ValidationError
from conformos.engine.types import MISSING, Just, Mismatch

_SEQUENCE_TYPES = (tuple, list)


def validate(descriptor: TypeDescriptor, value: Any) -> Mismatch | None:
    """Return None when value conforms, else the first Mismatch found."""
    return _validate(descriptor, value, ())


def conforms(descriptor: TypeDescriptor, value: Any) -> bool:
    return _validate(descriptor, value, ()) is None


def check(descriptor: TypeDescriptor, value: Any) -> Any:
    """Return value unchanged if it conforms, else raise ValidationError."""
    mismatch = _validate(descriptor, value, ())
    if mismatch is not None:
        raise ValidationError(mismatch)
    return value


def _validate(descriptor: TypeDescriptor, value: Any, path: Path) -> Mismatch | None:
    if isinstance(descriptor, Primitive):
        return _validate_primitive(descriptor, value, path)

    if isinstance(descriptor, EnumType):
        if isinstance(value, str) and value in descriptor.labels:
            return None
        return Mismatch(path, descriptor, value, "not one of the declared labels")

    if isinstance(descriptor, Struct):
        if not isinstance(value, Mapping):
            return Mismatch(path, descriptor, value, "expected a mapping")
        declared = descriptor.field_map()
        extra = [key for key in value if key not in declared]
        if extra:
            names = ", ".join(repr(key) for key in extra)
            return Mismatch(path, descriptor, value, f"unexpected field(s) {names}")
        for field_name, sub in descriptor.fields:
            if field_name not in value:
                return Mismatch((*path, field_name), sub, MISSING, "missing field")
            mismatch = _validate(sub, value[field_name], (*path, field_name))
            if mismatch is not None:
                return mismatch
        return None

    if isinstance(descriptor, Pair):
        if not isinstance(value, _SEQUENCE_TYPES):
            return Mismatch(path, descriptor, value, "expected a 2-item tuple")
        if len(value) != 2:
            return Mismatch(path, descriptor, value, f"arity {len(value)} != 2")
        return _validate(descriptor.first, value[0], (*path, 0)) or _validate(
            descriptor.second, value[1], (*path, 1)
        )

    if isinstance(descriptor, Vector):
        if not isinstance(value, _SEQUENCE_TYPES):
            return Mismatch(path, descriptor, value, "expected a list")
        if len(value) != descriptor.length:
            return Mismatch(
                path, descriptor, value, f"arity {len(value)} != {descriptor.length}"
            )
        for index, item in enumerate(value):
            mismatch = _validate(descriptor.element, item, (*path, index))
            if mismatch is not None:
                return mismatch
        return None

    if isinstance(descriptor, Maybe):
        if value is None:
            return None
        if isinstance(value, Just):
            return _validate(descriptor.inner, value.value, path)
        return Mismatch(path, descriptor, value, "expected None or Just(...)")

    if isinstance(descriptor, Fn):
        if callable(value):
            return None
        return Mismatch(path, descriptor, value, "not callable")

    raise TypeError(f"not a descriptor variant: {descriptor!r}")


def _validate_primitive(descriptor: Primitive, value: Any, path: Path) -> Mismatch | None:
    kind = descriptor.kind

    if kind == PrimitiveKind.BOOLEAN:
        if isinstance(value, bool):
            return None
        return Mismatch(path, descriptor, value, "expected a bool")

    if kind == PrimitiveKind.STRING:
        if isinstance(value, str):
            return None
        return Mismatch(path, descriptor, value, "expected a str")

    if kind == PrimitiveKind.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return Mismatch(path, descriptor, value, "expected a number")
        if isinstance(value, float) and not math.isfinite(value):
            return Mismatch(path, descriptor, value, "number is not finite")
        return None

    # Integer kinds
    if isinstance(value, bool) or not isinstance(value, int):
        return Mismatch(path, descriptor, value, "expected an int")
    low, high = descriptor.range  # type: ignore[misc]
    if not low <= value <= high:
        return Mismatch(path, descriptor, value, f"out of range [{low}, {high}]")
    return None
