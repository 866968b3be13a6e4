"""
ConformOS — Invariant Runner

Checks a property by sampling, never by proof. Each forall draws up to
`trials` independent argument tuples, applies the predicate, and stops at
the first tuple for which the predicate returns a falsy value or raises.

Reproducibility: the runner owns a master random.Random(seed). Every trial
takes a fresh 64-bit trial seed from it and draws its tuple from
random.Random(trial_seed), so replay(descriptors, trial_seed) regenerates
any counterexample exactly. Same seed + same declarations = same samples.

Localisation: when a predicate merely returns false, the runner redraws one
leaf position of one argument at a time (holding everything else fixed)
and reports the first position whose redraw makes the predicate hold. The
predicate is therefore assumed to be deterministic and may be called more
than `trials` times on a failing run. Localisation draws from its own
derived stream and never advances the master sequence.

No shrinking is performed; replay() and ValueGenerator.generate_at() are
the seams a minimiser would build on.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable, Iterable
from typing import Any

import structlog

from conformos.config import CheckingConfig, GeneratorConfig
from conformos.engine.descriptors import Path, TypeDescriptor, leaf_paths
from conformos.engine.errors import ArgumentTypeError, DescriptorError, UnsupportedGenerationError
from conformos.engine.generator import ValueGenerator, ensure_generable
from conformos.engine.types import CounterExample, InvariantReport, InvariantStatus
from conformos.engine.validator import validate

logger = structlog.get_logger()

# Mixed into a trial seed to derive the localisation stream
_LOCALIZE_SALT = 0x5EED_10CA_11E5


def fresh_seed() -> int:
    """A seed for sessions that were not given one. Recorded in every report."""
    return random.SystemRandom().getrandbits(32)


class InvariantRunner:
    """
    Runs forall declarations against one master random stream.

    Parameters
    ----------
    checking   -- trial budget and localisation settings
    generator  -- sampling bounds passed to every ValueGenerator
    seed       -- master seed; falls back to checking.seed, then a fresh one
    """

    def __init__(
        self,
        checking: CheckingConfig | None = None,
        generator: GeneratorConfig | None = None,
        seed: int | None = None,
    ) -> None:
        self._checking = checking or CheckingConfig()
        self._generator_config = generator or GeneratorConfig()
        if seed is None:
            seed = self._checking.seed if self._checking.seed is not None else fresh_seed()
        self._seed = seed
        self._rng = random.Random(seed)
        self._log = logger.bind(system="conformos.engine.invariants", seed=seed)

    @property
    def seed(self) -> int:
        return self._seed

    def forall(
        self,
        descriptors: Iterable[TypeDescriptor] | TypeDescriptor,
        predicate: Callable[..., Any],
        trials: int | None = None,
        name: str = "",
    ) -> InvariantReport:
        """
        Sample `trials` tuples (default: checking.default_trials) and report
        the first one that falsifies predicate.

        A HELD report means "no counterexample in trials_run samples".
        """
        if isinstance(descriptors, TypeDescriptor):
            descriptors = (descriptors,)
        descriptors = tuple(descriptors)
        for index, descriptor in enumerate(descriptors):
            if not isinstance(descriptor, TypeDescriptor):
                raise DescriptorError(
                    f"forall argument {index + 1} must be a TypeDescriptor, got {descriptor!r}"
                )
        if not callable(predicate):
            raise TypeError(f"forall predicate must be callable, got {predicate!r}")

        budget = self._checking.default_trials if trials is None else trials
        if isinstance(budget, bool) or not isinstance(budget, int) or budget < 1:
            raise ValueError(f"trials must be a positive integer, got {trials!r}")

        label = name or getattr(predicate, "__name__", "") or "invariant"
        if label == "<lambda>":
            label = "forall(" + ", ".join(d.render() for d in descriptors) + ")"
        start = time.monotonic()

        try:
            for descriptor in descriptors:
                ensure_generable(descriptor)
        except UnsupportedGenerationError as exc:
            self._log.warning("invariant_aborted", invariant=label, error=str(exc))
            return InvariantReport(
                invariant=label,
                status=InvariantStatus.ABORTED,
                trials_requested=budget,
                trials_run=0,
                seed=self._seed,
                error=exc,
                duration_ms=_elapsed_ms(start),
            )

        for trial_index in range(1, budget + 1):
            trial_seed = self._rng.getrandbits(64)
            values = self.replay(descriptors, trial_seed)

            try:
                holds = predicate(*values)
            except Exception as exc:
                counterexample = self._from_exception(
                    descriptors, values, predicate, trial_index, trial_seed, exc
                )
                return self._violated(label, budget, counterexample, start)

            if not holds:
                argument_index, path = self._localize(descriptors, values, predicate, trial_seed)
                counterexample = CounterExample(
                    values=values,
                    descriptors=descriptors,
                    trial_index=trial_index,
                    trial_seed=trial_seed,
                    argument_index=argument_index,
                    path=path,
                )
                return self._violated(label, budget, counterexample, start)

        report = InvariantReport(
            invariant=label,
            status=InvariantStatus.HELD,
            trials_requested=budget,
            trials_run=budget,
            seed=self._seed,
            duration_ms=_elapsed_ms(start),
        )
        self._log.info("invariant_held", invariant=label, trials=budget, time_ms=report.duration_ms)
        return report

    def replay(self, descriptors: Iterable[TypeDescriptor], trial_seed: int) -> tuple[Any, ...]:
        """Regenerate the exact tuple drawn for trial_seed."""
        generator = ValueGenerator(random.Random(trial_seed), self._generator_config)
        return tuple(generator.generate(descriptor) for descriptor in descriptors)

    # -- Private helpers ------------------------------------------------------

    def _violated(
        self,
        label: str,
        budget: int,
        counterexample: CounterExample,
        start: float,
    ) -> InvariantReport:
        report = InvariantReport(
            invariant=label,
            status=InvariantStatus.VIOLATED,
            trials_requested=budget,
            trials_run=counterexample.trial_index,
            seed=self._seed,
            counterexample=counterexample,
            duration_ms=_elapsed_ms(start),
        )
        self._log.info(
            "invariant_violated",
            invariant=label,
            trial=counterexample.trial_index,
            trial_seed=counterexample.trial_seed,
            location=counterexample.location(),
            cause=type(counterexample.cause).__name__ if counterexample.cause else None,
        )
        return report

    def _from_exception(
        self,
        descriptors: tuple[TypeDescriptor, ...],
        values: tuple[Any, ...],
        predicate: Callable[..., Any],
        trial_index: int,
        trial_seed: int,
        exc: Exception,
    ) -> CounterExample:
        argument_index: int | None = None
        path: Path = ()
        # A drawn argument handed straight to a checked function: its
        # mismatch path is also a path into that argument. Small ints,
        # labels and None are shared objects, so identity alone can match
        # several positions. A tie goes to the position whose redraw makes the
        # predicate hold; otherwise it is left unattributed.
        if isinstance(exc, ArgumentTypeError):
            candidates = [
                index
                for index, (descriptor, value) in enumerate(zip(descriptors, values))
                if value is exc.argument and validate(descriptor, value) is None
            ]
            if len(candidates) > 1:
                localized, _ = self._localize(descriptors, values, predicate, trial_seed)
                candidates = [localized] if localized in candidates else []
            if len(candidates) == 1:
                argument_index, path = candidates[0], exc.mismatch.path
        return CounterExample(
            values=values,
            descriptors=descriptors,
            trial_index=trial_index,
            trial_seed=trial_seed,
            argument_index=argument_index,
            path=path,
            cause=exc,
        )

    def _localize(
        self,
        descriptors: tuple[TypeDescriptor, ...],
        values: tuple[Any, ...],
        predicate: Callable[..., Any],
        trial_seed: int,
    ) -> tuple[int | None, Path]:
        if not self._checking.localize_failures:
            return None, ()

        generator = ValueGenerator(
            random.Random(trial_seed ^ _LOCALIZE_SALT), self._generator_config
        )
        attempts = self._checking.localization_attempts
        for index, (descriptor, value) in enumerate(zip(descriptors, values)):
            for path, _leaf in leaf_paths(descriptor):
                for _ in range(attempts):
                    perturbed = generator.generate_at(descriptor, value, path)
                    candidate = (*values[:index], perturbed, *values[index + 1:])
                    try:
                        if predicate(*candidate):
                            return index, path
                    except Exception:
                        # a redraw that raises says nothing about this position
                        continue
        return None, ()


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
