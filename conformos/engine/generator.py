"""
ConformOS — Random Value Generator

Produces values that conform to a descriptor. The generator is a pure
function of its random source: two generators seeded alike, given the same
descriptors in the same order, yield identical values.

Sampling policy:
  Integer kinds  -- uniform over the declared inclusive range
  Number         -- uniform float over [number_min, number_max]
  String         -- length uniform in [0, max_string_length], printable ASCII
  Boolean        -- fair coin
  EnumType       -- uniform over labels
  Maybe          -- None with maybe_nothing_probability, else Just(inner)
  Struct / Pair / Vector -- each component drawn independently
  Fn             -- UnsupportedGenerationError
"""

from __future__ import annotations

import random
import string
from typing import Any

from conformos.config import GeneratorConfig
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
from conformos.engine.errors import UnsupportedGenerationError
from conformos.engine.types import Just, render_path

PRINTABLE_ALPHABET = string.ascii_letters + string.digits + string.punctuation + " "


def ensure_generable(descriptor: TypeDescriptor, path: Path = ()) -> None:
    """
    Raise UnsupportedGenerationError if any position, including the inner of
    a Maybe, is a function. Checked up front so the outcome never depends on
    which Maybe arm a trial happens to draw.
    """
    if isinstance(descriptor, Fn):
        where = render_path(path) or "<root>"
        raise UnsupportedGenerationError(
            f"cannot generate a value for function type {descriptor.render()} at {where}",
            path=path,
        )
    if isinstance(descriptor, Struct):
        for field_name, sub in descriptor.fields:
            ensure_generable(sub, (*path, field_name))
    elif isinstance(descriptor, Pair):
        ensure_generable(descriptor.first, (*path, 0))
        ensure_generable(descriptor.second, (*path, 1))
    elif isinstance(descriptor, Vector):
        ensure_generable(descriptor.element, (*path, 0))
    elif isinstance(descriptor, Maybe):
        ensure_generable(descriptor.inner, path)


class ValueGenerator:
    """
    Draws conforming values from an explicit random source.

    Parameters
    ----------
    rng     -- the random source; the generator never touches the global one
    config  -- sampling bounds (string length, Maybe bias, Number range)
    """

    def __init__(self, rng: random.Random, config: GeneratorConfig | None = None) -> None:
        self._rng = rng
        self._config = config or GeneratorConfig()

    @property
    def rng(self) -> random.Random:
        return self._rng

    def generate(self, descriptor: TypeDescriptor) -> Any:
        ensure_generable(descriptor)
        return self._generate(descriptor, ())

    def _generate(self, descriptor: TypeDescriptor, path: Path) -> Any:
        if isinstance(descriptor, Primitive):
            return self._primitive(descriptor)
        if isinstance(descriptor, EnumType):
            return self._rng.choice(descriptor.labels)
        if isinstance(descriptor, Struct):
            return {
                field_name: self._generate(sub, (*path, field_name))
                for field_name, sub in descriptor.fields
            }
        if isinstance(descriptor, Pair):
            return (
                self._generate(descriptor.first, (*path, 0)),
                self._generate(descriptor.second, (*path, 1)),
            )
        if isinstance(descriptor, Vector):
            return [
                self._generate(descriptor.element, (*path, index))
                for index in range(descriptor.length)
            ]
        if isinstance(descriptor, Maybe):
            if self._rng.random() < self._config.maybe_nothing_probability:
                return None
            return Just(self._generate(descriptor.inner, path))
        if isinstance(descriptor, Fn):
            ensure_generable(descriptor, path)
        raise TypeError(f"not a descriptor variant: {descriptor!r}")

    def _primitive(self, descriptor: Primitive) -> Any:
        kind = descriptor.kind
        if descriptor.range is not None:
            low, high = descriptor.range
            return self._rng.randint(low, high)
        if kind == PrimitiveKind.BOOLEAN:
            return self._rng.random() < 0.5
        if kind == PrimitiveKind.STRING:
            length = self._rng.randint(0, self._config.max_string_length)
            return "".join(self._rng.choice(PRINTABLE_ALPHABET) for _ in range(length))
        if kind == PrimitiveKind.NUMBER:
            return self._rng.uniform(self._config.number_min, self._config.number_max)
        raise TypeError(f"unhandled primitive kind {kind!r}")

    def generate_at(self, descriptor: TypeDescriptor, value: Any, path: Path) -> Any:
        """
        Return a copy of value with only the sub-value at path redrawn.

        Containers along the path are copied; value itself is not mutated.
        Used to perturb one position of a counterexample while holding the
        rest fixed.
        """
        if not path:
            return self.generate(descriptor)
        head, rest = path[0], path[1:]
        if isinstance(descriptor, Struct) and isinstance(head, str):
            updated = dict(value)
            updated[head] = self.generate_at(descriptor.field_map()[head], value[head], rest)
            return updated
        if isinstance(descriptor, Pair) and head in (0, 1):
            items = list(value)
            sub = descriptor.first if head == 0 else descriptor.second
            items[head] = self.generate_at(sub, items[head], rest)
            return tuple(items)
        if isinstance(descriptor, Vector) and isinstance(head, int):
            items = list(value)
            items[head] = self.generate_at(descriptor.element, items[head], rest)
            return items
        raise KeyError(f"path segment {head!r} does not apply to {descriptor.render()}")


def generate(
    descriptor: TypeDescriptor,
    rng: random.Random,
    config: GeneratorConfig | None = None,
) -> Any:
    """Draw one value conforming to descriptor from rng."""
    return ValueGenerator(rng, config).generate(descriptor)
