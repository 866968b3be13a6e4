"""
ConformOS — Check Sessions

A CheckSession binds a configuration, a master seed and a Reporter, and
collects everything declared while it is active into a RunSummary. The
module-level forall()/annotate() entry points act on the active session,
so a user module can declare invariants at import time and the driver
decides where the results go.

The active session lives in a ContextVar. Outside use_session() a default
session is created on first use from load_config() (CONFORMOS_CONFIG may
point at a YAML file); its reporter logs through structlog.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

from conformos.config import ConformOSConfig, load_config
from conformos.engine.checked import CheckedFunction
from conformos.engine.descriptors import Fn, TypeDescriptor
from conformos.engine.errors import ConformanceError
from conformos.engine.invariants import InvariantRunner
from conformos.engine.reporting import (
    LogReporter,
    Reporter,
    failure_from_exception,
    failure_from_report,
)
from conformos.engine.types import FailureRecord, InvariantOutcome, InvariantReport, RunSummary

logger = structlog.get_logger()


class CheckSession:
    """
    One checking pass: every forall declared while the session is active
    shares its master seed, its trial defaults and its reporter.
    """

    def __init__(
        self,
        config: ConformOSConfig | None = None,
        reporter: Reporter | None = None,
        seed: int | None = None,
    ) -> None:
        self._config = config or ConformOSConfig()
        self._reporter: Reporter = reporter or LogReporter()
        self._runner = InvariantRunner(self._config.checking, self._config.generator, seed)
        self.summary = RunSummary(seed=self._runner.seed)
        # errors forall() recorded before raising them under fail_fast
        self._raised: list[BaseException] = []
        self._log = logger.bind(
            system="conformos.session", run_id=self.summary.run_id, seed=self._runner.seed
        )

    @property
    def config(self) -> ConformOSConfig:
        return self._config

    @property
    def seed(self) -> int:
        return self._runner.seed

    @property
    def runner(self) -> InvariantRunner:
        return self._runner

    @property
    def reporter(self) -> Reporter:
        return self._reporter

    def forall(
        self,
        descriptors: Iterable[TypeDescriptor] | TypeDescriptor,
        predicate: Callable[..., Any],
        trials: int | None = None,
        name: str = "",
    ) -> InvariantReport:
        """
        Run one invariant and hand its outcome to the reporter.

        A violation stops sampling for this invariant only; later
        declarations still run unless checking.fail_fast is set, in which
        case InvariantViolation (or the abort error) is raised after
        reporting.
        """
        report = self._runner.forall(descriptors, predicate, trials=trials, name=name)
        self.summary.invariants.append(InvariantOutcome.from_report(report))

        record = failure_from_report(report)
        if record is None:
            self._reporter.report_success(report)
        else:
            self.record_failure(record)
            if self._config.checking.fail_fast:
                try:
                    report.raise_for_violation()
                except ConformanceError as exc:
                    self._raised.append(exc)
                    raise
        return report

    def annotate(self, signature: Fn, implementation: Callable[[Any], Any]) -> CheckedFunction:
        return CheckedFunction(signature, implementation)

    def record_failure(self, record: FailureRecord) -> None:
        self.summary.failures.append(record)
        self._reporter.report_failure(record)

    def record_exception(self, exc: BaseException) -> FailureRecord | None:
        """
        Record an exception that escaped user code. An error raised by a
        fail-fast forall() was already recorded there and is skipped.
        """
        if any(exc is raised for raised in self._raised):
            return None
        record = failure_from_exception(exc)
        self._log.debug("exception_recorded", kind=record.kind.value, error=str(exc))
        self.record_failure(record)
        return record


# ── Active session ───────────────────────────────────────────────────────────

_active_session: ContextVar[CheckSession | None] = ContextVar("conformos_session", default=None)
_default_session: CheckSession | None = None


def current_session() -> CheckSession:
    global _default_session
    session = _active_session.get()
    if session is not None:
        return session
    if _default_session is None:
        _default_session = CheckSession(load_config(os.environ.get("CONFORMOS_CONFIG")))
    return _default_session


@contextmanager
def use_session(session: CheckSession) -> Iterator[CheckSession]:
    """Make session the target of module-level forall() within the block."""
    token = _active_session.set(session)
    try:
        yield session
    finally:
        _active_session.reset(token)


# ── Declaration API ──────────────────────────────────────────────────────────


def forall(
    descriptors: Iterable[TypeDescriptor] | TypeDescriptor,
    predicate: Callable[..., Any],
    trials: int | None = None,
    name: str = "",
) -> InvariantReport:
    """Declare an invariant on the active session. See CheckSession.forall."""
    return current_session().forall(descriptors, predicate, trials=trials, name=name)


def annotate(signature: Fn, implementation: Callable[[Any], Any]) -> CheckedFunction:
    """Declare a function with a type: returns the checked wrapper."""
    return CheckedFunction(signature, implementation)
