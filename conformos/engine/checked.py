"""
ConformOS — Checked Functions

A CheckedFunction holds an Fn descriptor and an implementation and exposes
a single call operation:

  1. validate the argument against Fn.input  -> ArgumentTypeError, impl not called
  2. call the implementation exactly once    -> its exceptions propagate unchanged
  3. validate the result against Fn.output   -> ReturnTypeError, result discarded
  4. return the result unchanged

The original function object is never modified; callers receive the
wrapper instead.

Usage:
    @checked(fn(UINT8, UINT16))
    def double(x):
        return x * 2
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any

import structlog

from conformos.engine.descriptors import Fn, TypeDescriptor
from conformos.engine.errors import ArgumentTypeError, DescriptorError, ReturnTypeError
from conformos.engine.validator import validate

logger = structlog.get_logger()


class CheckedFunction:
    """Transparent, validating wrapper around a single-argument function."""

    def __init__(self, signature: Fn, implementation: Callable[[Any], Any]) -> None:
        if not isinstance(signature, Fn):
            raise DescriptorError(f"a checked function needs an Fn descriptor, got {signature!r}")
        if not callable(implementation):
            raise DescriptorError(f"implementation must be callable, got {implementation!r}")
        # before our own attributes, since it copies implementation.__dict__
        functools.update_wrapper(self, implementation)
        self._signature = signature
        self._implementation = implementation

    @property
    def signature(self) -> Fn:
        return self._signature

    @property
    def input(self) -> TypeDescriptor:
        return self._signature.input

    @property
    def output(self) -> TypeDescriptor:
        return self._signature.output

    @property
    def implementation(self) -> Callable[[Any], Any]:
        return self._implementation

    @property
    def function_name(self) -> str:
        return getattr(self._implementation, "__qualname__", None) or repr(self._implementation)

    def __call__(self, argument: Any) -> Any:
        mismatch = validate(self._signature.input, argument)
        if mismatch is not None:
            logger.debug(
                "argument_rejected",
                system="conformos.engine.checked",
                function=self.function_name,
                path=mismatch.location,
                expected=mismatch.expected.render(),
            )
            raise ArgumentTypeError(mismatch, self.function_name, argument)

        result = self._implementation(argument)

        mismatch = validate(self._signature.output, result)
        if mismatch is not None:
            logger.debug(
                "result_rejected",
                system="conformos.engine.checked",
                function=self.function_name,
                path=mismatch.location,
                expected=mismatch.expected.render(),
            )
            raise ReturnTypeError(mismatch, self.function_name, argument, result)

        return result

    def __repr__(self) -> str:
        return f"<checked {self.function_name}: {self._signature.render()}>"


def wrap(signature: Fn, implementation: Callable[[Any], Any]) -> CheckedFunction:
    return CheckedFunction(signature, implementation)


def checked(signature: Fn) -> Callable[[Callable[[Any], Any]], CheckedFunction]:
    """Decorator form of wrap()."""

    def decorator(implementation: Callable[[Any], Any]) -> CheckedFunction:
        return CheckedFunction(signature, implementation)

    return decorator
