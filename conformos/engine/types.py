"""
ConformOS — Engine Types

Two layers:

  Live carriers (frozen dataclasses) -- hold the actual Python values a
  check produced: Just, Mismatch, CounterExample, InvariantReport.

  Failure channel (pydantic models) -- JSON-ready records handed to
  reporters and the driver: FailureRecord, InvariantOutcome, RunSummary.
"""

from __future__ import annotations

import enum
import reprlib
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import Field

from conformos.engine.descriptors import Path, TypeDescriptor
from conformos.engine.errors import ConformanceError, InvariantViolation
from conformos.primitives.common import ConformBaseModel, new_id, utc_now

_repr = reprlib.Repr()
_repr.maxstring = 60
_repr.maxother = 60
_repr.maxlist = 8
_repr.maxdict = 8


def short_repr(value: Any) -> str:
    """Bounded repr used in every failure message."""
    return _repr.repr(value)


# ── Values ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Just:
    """The "just" arm of a Maybe. The "nothing" arm is None."""

    value: Any

    def __repr__(self) -> str:
        return f"Just({self.value!r})"


class _Missing:
    """Marks a struct field that was absent from the checked value."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()


# ── Paths ────────────────────────────────────────────────────────────────────


def render_path(path: Path) -> str:
    """("stats", "def") -> "stats.def"; ("items", 2, "id") -> "items[2].id"."""
    out = ""
    for segment in path:
        if isinstance(segment, int):
            out += f"[{segment}]"
        else:
            out += f".{segment}" if out else segment
    return out


def value_at(value: Any, path: Path) -> Any:
    """Follow a validation path into a concrete value. Just wrappers are transparent."""
    current = value
    for segment in path:
        while isinstance(current, Just):
            current = current.value
        if isinstance(segment, str) and isinstance(current, Mapping):
            current = current.get(segment, MISSING)
        elif isinstance(segment, int) and isinstance(current, Sequence) and not isinstance(current, str):
            current = current[segment] if 0 <= segment < len(current) else MISSING
        else:
            return MISSING
    return current


# ── Live carriers ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Mismatch:
    """The first place a value departs from its descriptor."""

    path: Path
    expected: TypeDescriptor
    actual: Any
    reason: str = ""

    @property
    def location(self) -> str:
        return render_path(self.path) or "<root>"

    def describe(self) -> str:
        message = (
            f"at {self.location}: expected {self.expected.render()}, "
            f"got {short_repr(self.actual)}"
        )
        if self.reason:
            message += f" ({self.reason})"
        return message


@dataclass(frozen=True)
class CounterExample:
    """
    A sampled tuple that falsified an invariant.

    argument_index/path name the implicated sub-value when it is known,
    either from localisation or from a conformance error raised inside
    the predicate. trial_seed regenerates the exact tuple via replay().
    """

    values: tuple[Any, ...]
    descriptors: tuple[TypeDescriptor, ...]
    trial_index: int
    trial_seed: int
    argument_index: int | None = None
    path: Path = ()
    cause: BaseException | None = None

    @property
    def implicated_value(self) -> Any:
        if self.argument_index is None:
            return MISSING
        return value_at(self.values[self.argument_index], self.path)

    def location(self) -> str:
        """Human location such as "field `def` of argument 1"."""
        if self.argument_index is None:
            return ""
        argument = f"argument {self.argument_index + 1}"
        if not self.path:
            return argument
        return f"field `{render_path(self.path)}` of {argument}"

    def describe(self) -> str:
        rendered = ", ".join(short_repr(v) for v in self.values)
        message = f"({rendered})"
        if where := self.location():
            message += f", implicating {where} = {short_repr(self.implicated_value)}"
        if self.cause is not None:
            message += f", raised {type(self.cause).__name__}: {self.cause}"
        return message


class InvariantStatus(enum.StrEnum):
    HELD = "held"          # no counterexample in trials_run samples; not a proof
    VIOLATED = "violated"  # counterexample found
    ABORTED = "aborted"    # could not sample (e.g. a Fn descriptor)


@dataclass
class InvariantReport:
    """Outcome of one forall declaration."""

    invariant: str
    status: InvariantStatus
    trials_requested: int
    trials_run: int
    seed: int
    counterexample: CounterExample | None = None
    error: ConformanceError | None = None
    duration_ms: int = 0
    report_id: str = field(default_factory=new_id)

    @property
    def held(self) -> bool:
        return self.status == InvariantStatus.HELD

    def summary(self) -> str:
        label = self.invariant or "invariant"
        if self.status == InvariantStatus.HELD:
            return f"{label}: held for {self.trials_run} trials (seed={self.seed})"
        if self.status == InvariantStatus.VIOLATED and self.counterexample is not None:
            return (
                f"{label}: violated on trial {self.counterexample.trial_index}"
                f"/{self.trials_requested}: {self.counterexample.describe()}"
            )
        return f"{label}: aborted: {self.error}"

    def raise_for_violation(self) -> None:
        """Raise InvariantViolation (or the abort error) unless the invariant held."""
        if self.status == InvariantStatus.VIOLATED and self.counterexample is not None:
            raise InvariantViolation(self.counterexample, self.invariant)
        if self.status == InvariantStatus.ABORTED and self.error is not None:
            raise self.error


# ── Failure channel ──────────────────────────────────────────────────────────


class FailureKind(enum.StrEnum):
    DESCRIPTOR_ERROR = "descriptor_error"
    ARGUMENT_TYPE_ERROR = "argument_type_error"
    RETURN_TYPE_ERROR = "return_type_error"
    INVARIANT_VIOLATION = "invariant_violation"
    UNSUPPORTED_GENERATION = "unsupported_generation"
    LOAD_ERROR = "load_error"  # user module raised something outside the engine


class FailureRecord(ConformBaseModel):
    """
    Structured failure handed to reporters.

    All fields are pre-rendered strings so any reporter (console, JSON,
    test harness) can display them without importing the engine.
    """

    kind: FailureKind
    message: str
    path: str = ""
    expected: str = ""
    actual: str = ""
    trial_index: int | None = None
    argument: int | None = None  # 1-based position in the forall tuple
    invariant: str = ""
    function: str = ""
    recorded_at: datetime = Field(default_factory=utc_now)


class InvariantOutcome(ConformBaseModel):
    """Serialisable projection of an InvariantReport."""

    invariant: str
    status: InvariantStatus
    trials_requested: int
    trials_run: int
    seed: int
    duration_ms: int = 0
    summary: str = ""

    @classmethod
    def from_report(cls, report: InvariantReport) -> InvariantOutcome:
        return cls(
            invariant=report.invariant,
            status=report.status,
            trials_requested=report.trials_requested,
            trials_run=report.trials_run,
            seed=report.seed,
            duration_ms=report.duration_ms,
            summary=report.summary(),
        )


class RunSummary(ConformBaseModel):
    """Everything a check session produced."""

    run_id: str = Field(default_factory=new_id)
    seed: int = 0
    started_at: datetime = Field(default_factory=utc_now)
    invariants: list[InvariantOutcome] = Field(default_factory=list)
    failures: list[FailureRecord] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def held_count(self) -> int:
        return sum(1 for outcome in self.invariants if outcome.status == InvariantStatus.HELD)
