"""
ConformOS — Engine Error Hierarchy

All exceptions raised by the conformance-checking engine.

Namespace: conformos.engine.errors

Every engine failure is terminal for the operation that raised it
(construction, call, or trial) and leaves descriptors and generators usable.
Exceptions raised by user implementations are never wrapped or hidden; the
engine only adds checks around them.

Severity guide:
  DescriptorError             FATAL  -- malformed descriptor, raised at construction
  ArgumentTypeError           CALL   -- argument rejected, implementation never invoked
  ReturnTypeError             CALL   -- result rejected, result discarded
  UnsupportedGenerationError  TRIAL  -- no sample can be drawn for the descriptor
  InvariantViolation          TRIAL  -- predicate falsified or raised
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from conformos.engine.types import CounterExample, Mismatch


class ConformanceError(RuntimeError):
    """Base for all conformance-engine errors."""


class DescriptorError(ConformanceError):
    """A descriptor was constructed from malformed arguments."""


class UnsupportedGenerationError(ConformanceError):
    """A sample was requested for a descriptor kind that cannot be synthesised (Fn)."""

    def __init__(self, message: str, path: tuple[str | int, ...] = ()) -> None:
        super().__init__(message)
        self.path = path


class ValidationError(ConformanceError):
    """A value did not structurally conform to a descriptor."""

    def __init__(self, mismatch: Mismatch, message: str = "") -> None:
        super().__init__(message or mismatch.describe())
        self.mismatch = mismatch


class ArgumentTypeError(ValidationError):
    """
    A checked function received an argument that does not match its input.

    The implementation was never invoked.
    """

    def __init__(self, mismatch: Mismatch, function_name: str, argument: Any) -> None:
        super().__init__(
            mismatch,
            f"argument to {function_name}() rejected: {mismatch.describe()}",
        )
        self.function_name = function_name
        self.argument = argument


class ReturnTypeError(ValidationError):
    """
    A checked function returned a value that does not match its output.

    The result is discarded from the caller's perspective.
    """

    def __init__(
        self,
        mismatch: Mismatch,
        function_name: str,
        argument: Any,
        result: Any,
    ) -> None:
        super().__init__(
            mismatch,
            f"result of {function_name}({argument!r}) rejected: {mismatch.describe()}",
        )
        self.function_name = function_name
        self.argument = argument
        self.result = result


class InvariantViolation(ConformanceError):
    """A declared invariant was falsified by a sampled tuple."""

    def __init__(self, counterexample: CounterExample, invariant: str = "") -> None:
        label = f"invariant {invariant!r}" if invariant else "invariant"
        super().__init__(
            f"{label} falsified on trial {counterexample.trial_index}: "
            f"{counterexample.describe()}"
        )
        self.counterexample = counterexample
        self.invariant = invariant
