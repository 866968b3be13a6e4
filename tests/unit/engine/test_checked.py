"""
Unit tests for checked functions: transparency on conforming calls, the
argument check before invocation and the result check after it.
"""

from __future__ import annotations

import pytest

from conformos.engine.checked import CheckedFunction, checked, wrap
from conformos.engine.descriptors import INT, STRING, UINT8, UINT16, fn, int_range, struct
from conformos.engine.errors import ArgumentTypeError, DescriptorError, ReturnTypeError


class _Spy:
    def __init__(self, impl):
        self.impl = impl
        self.calls = []

    def __call__(self, argument):
        self.calls.append(argument)
        return self.impl(argument)


# ── Conforming calls ──────────────────────────────────────────────────────────


class TestTransparency:
    def test_returns_implementation_result(self):
        double = wrap(fn(UINT8, UINT16), lambda x: x * 2)
        for x in range(256):
            assert double(x) == x * 2

    def test_implementation_called_once(self):
        spy = _Spy(lambda x: x + 1)
        wrapped = wrap(fn(UINT8, UINT16), spy)
        wrapped(4)
        assert spy.calls == [4]

    def test_argument_not_copied_or_mutated(self):
        value = {"atk": 1}
        seen = []
        wrapped = wrap(fn(struct(atk=UINT8), UINT8), lambda s: seen.append(s) or s["atk"])
        wrapped(value)
        assert seen[0] is value
        assert value == {"atk": 1}

    def test_decorator_keeps_metadata(self):
        @checked(fn(STRING, INT))
        def length(text):
            """Count characters."""
            return len(text)

        assert isinstance(length, CheckedFunction)
        assert length.__name__ == "length"
        assert length.__doc__ == "Count characters."
        assert length("abc") == 3
        assert length.signature == fn(STRING, INT)
        assert length.input == STRING
        assert length.output == INT

    def test_repr_names_signature(self):
        wrapped = wrap(fn(UINT8, UINT8), abs)
        assert repr(wrapped) == "<checked abs: Uint8 -> Uint8>"

    def test_wrapping_a_wrapper_keeps_its_own_signature(self):
        inner = wrap(fn(UINT8, UINT8), lambda x: x)
        outer = wrap(fn(int_range(0, 9, UINT8.kind), UINT8), inner)
        assert outer.signature == fn(int_range(0, 9, UINT8.kind), UINT8)
        assert inner.signature == fn(UINT8, UINT8)
        with pytest.raises(ArgumentTypeError):
            outer(10)


# ── Argument check ────────────────────────────────────────────────────────────


class TestArgumentCheck:
    def test_rejected_before_invocation(self):
        spy = _Spy(lambda x: x)
        wrapped = wrap(fn(UINT8, UINT8), spy)
        with pytest.raises(ArgumentTypeError) as info:
            wrapped(256)
        assert spy.calls == []
        assert info.value.argument == 256
        assert info.value.mismatch.actual == 256

    def test_struct_field_path(self):
        wrapped = wrap(fn(struct(stats=struct(atk=UINT8)), UINT8), lambda s: 0)
        with pytest.raises(ArgumentTypeError) as info:
            wrapped({"stats": {"atk": -3}})
        assert info.value.mismatch.path == ("stats", "atk")
        assert "stats.atk" in str(info.value)

    def test_error_names_function(self):
        @checked(fn(UINT8, UINT8))
        def identity(x):
            return x

        with pytest.raises(ArgumentTypeError) as info:
            identity("x")
        assert "identity" in info.value.function_name


# ── Result check ──────────────────────────────────────────────────────────────


class TestReturnCheck:
    def test_rejected_after_exactly_one_call(self):
        spy = _Spy(lambda x: x + 200)
        wrapped = wrap(fn(UINT8, UINT8), spy)
        with pytest.raises(ReturnTypeError) as info:
            wrapped(100)
        assert spy.calls == [100]
        assert info.value.result == 300
        assert info.value.argument == 100
        assert info.value.mismatch.path == ()

    def test_return_error_is_not_argument_error(self):
        wrapped = wrap(fn(UINT8, STRING), lambda x: x)
        with pytest.raises(ReturnTypeError):
            wrapped(1)
        assert not issubclass(ReturnTypeError, ArgumentTypeError)


# ── Propagation ───────────────────────────────────────────────────────────────


class TestPropagation:
    def test_implementation_exception_passes_through(self):
        boom = ZeroDivisionError("nope")

        def explode(x):
            raise boom

        wrapped = wrap(fn(UINT8, UINT8), explode)
        with pytest.raises(ZeroDivisionError) as info:
            wrapped(1)
        assert info.value is boom


# ── Construction ──────────────────────────────────────────────────────────────


class TestConstruction:
    def test_signature_must_be_fn(self):
        with pytest.raises(DescriptorError):
            CheckedFunction(UINT8, abs)  # type: ignore[arg-type]

    def test_implementation_must_be_callable(self):
        with pytest.raises(DescriptorError):
            CheckedFunction(fn(UINT8, UINT8), 3)  # type: ignore[arg-type]
