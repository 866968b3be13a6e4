"""
ConformOS — Failure Channel

Turns engine failures into FailureRecords and hands them to a Reporter.
The engine never prints and never exits; presentation belongs to whoever
implements Reporter (the driver, a test harness, a log pipeline).

Record construction prefers the most specific triple available:
  conformance error inside a predicate  -> that error's path/expected/actual
  localised counterexample              -> implicated sub-descriptor and value
  otherwise                             -> the whole argument tuple
"""

from __future__ import annotations

from typing import Protocol

import structlog

from conformos.engine.descriptors import descriptor_at
from conformos.engine.errors import (
    ArgumentTypeError,
    DescriptorError,
    ReturnTypeError,
    UnsupportedGenerationError,
    ValidationError,
)
from conformos.engine.types import (
    CounterExample,
    FailureKind,
    FailureRecord,
    InvariantReport,
    InvariantStatus,
    render_path,
    short_repr,
)

logger = structlog.get_logger()


class Reporter(Protocol):
    """Receives every outcome of a check session."""

    def report_failure(self, record: FailureRecord) -> None: ...

    def report_success(self, report: InvariantReport) -> None: ...


# ── Record builders ──────────────────────────────────────────────────────────


def failure_from_exception(exc: BaseException, invariant: str = "") -> FailureRecord:
    """Build a record for an engine error, or LOAD_ERROR for anything else."""
    if isinstance(exc, ValidationError):
        mismatch = exc.mismatch
        if isinstance(exc, ArgumentTypeError):
            kind, function = FailureKind.ARGUMENT_TYPE_ERROR, exc.function_name
        elif isinstance(exc, ReturnTypeError):
            kind, function = FailureKind.RETURN_TYPE_ERROR, exc.function_name
        else:
            # a bare check() failure is reported as an argument rejection
            kind, function = FailureKind.ARGUMENT_TYPE_ERROR, ""
        return FailureRecord(
            kind=kind,
            message=str(exc),
            path=render_path(mismatch.path),
            expected=mismatch.expected.render(),
            actual=short_repr(mismatch.actual),
            invariant=invariant,
            function=function,
        )
    if isinstance(exc, DescriptorError):
        return FailureRecord(kind=FailureKind.DESCRIPTOR_ERROR, message=str(exc), invariant=invariant)
    if isinstance(exc, UnsupportedGenerationError):
        return FailureRecord(
            kind=FailureKind.UNSUPPORTED_GENERATION,
            message=str(exc),
            path=render_path(exc.path),
            invariant=invariant,
        )
    return FailureRecord(
        kind=FailureKind.LOAD_ERROR,
        message=f"{type(exc).__name__}: {exc}",
        invariant=invariant,
    )


def failure_from_counterexample(counterexample: CounterExample, invariant: str = "") -> FailureRecord:
    message = f"falsified on trial {counterexample.trial_index}: {counterexample.describe()}"
    cause = counterexample.cause

    if isinstance(cause, ValidationError):
        mismatch = cause.mismatch
        return FailureRecord(
            kind=FailureKind.INVARIANT_VIOLATION,
            message=message,
            path=render_path(mismatch.path),
            expected=mismatch.expected.render(),
            actual=short_repr(mismatch.actual),
            trial_index=counterexample.trial_index,
            argument=(
                counterexample.argument_index + 1
                if counterexample.argument_index is not None
                else None
            ),
            invariant=invariant,
            function=getattr(cause, "function_name", ""),
        )

    if counterexample.argument_index is not None:
        root = counterexample.descriptors[counterexample.argument_index]
        return FailureRecord(
            kind=FailureKind.INVARIANT_VIOLATION,
            message=message,
            path=render_path(counterexample.path),
            argument=counterexample.argument_index + 1,
            expected=descriptor_at(root, counterexample.path).render(),
            actual=short_repr(counterexample.implicated_value),
            trial_index=counterexample.trial_index,
            invariant=invariant,
        )

    return FailureRecord(
        kind=FailureKind.INVARIANT_VIOLATION,
        message=message,
        expected="(" + ", ".join(d.render() for d in counterexample.descriptors) + ")",
        actual="(" + ", ".join(short_repr(v) for v in counterexample.values) + ")",
        trial_index=counterexample.trial_index,
        invariant=invariant,
    )


def failure_from_report(report: InvariantReport) -> FailureRecord | None:
    """None when the invariant held."""
    if report.status == InvariantStatus.VIOLATED and report.counterexample is not None:
        return failure_from_counterexample(report.counterexample, report.invariant)
    if report.status == InvariantStatus.ABORTED and report.error is not None:
        return failure_from_exception(report.error, report.invariant)
    return None


# ── Reporters ────────────────────────────────────────────────────────────────


class LogReporter:
    """Emits every outcome as a structlog event."""

    def __init__(self) -> None:
        self._log = logger.bind(system="conformos.engine.reporting")

    def report_failure(self, record: FailureRecord) -> None:
        self._log.error(
            "conformance_failure",
            kind=record.kind.value,
            invariant=record.invariant or None,
            function=record.function or None,
            path=record.path or None,
            expected=record.expected or None,
            actual=record.actual or None,
            trial=record.trial_index,
            message=record.message,
        )

    def report_success(self, report: InvariantReport) -> None:
        self._log.info(
            "invariant_held",
            invariant=report.invariant,
            trials=report.trials_run,
            seed=report.seed,
        )


class CollectingReporter:
    """Keeps everything in memory. Used by tests and by the driver's summary."""

    def __init__(self) -> None:
        self.failures: list[FailureRecord] = []
        self.successes: list[InvariantReport] = []

    def report_failure(self, record: FailureRecord) -> None:
        self.failures.append(record)

    def report_success(self, report: InvariantReport) -> None:
        self.successes.append(report)
