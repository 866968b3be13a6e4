"""
ConformOS — Check Driver

Runs a user module as a checking pass: the file is imported inside a fresh
CheckSession, every forall it declares is sampled, and a plain-text summary
is printed.

Usage:
    python -m conformos check examples/battle.py
    python -m conformos check battle.py --trials 500 --seed 1234
    python -m conformos check battle.py --config conformos.yaml --log-format json

Exit codes:
    0  every invariant held and nothing raised
    1  at least one failure was reported (violation, type error, load error)
    2  usage error (missing target or config file, bad arguments)
"""

from __future__ import annotations

import argparse
import importlib.util
import sys
from pathlib import Path

from conformos.config import ConformOSConfig, load_config
from conformos.engine.reporting import LogReporter
from conformos.engine.types import InvariantStatus, RunSummary
from conformos.session import CheckSession, use_session
from conformos.telemetry.logging import setup_logging


def load_module(path: Path) -> None:
    """Execute the file at path as a fresh module. Its siblings are importable."""
    module_name = f"_conformos_target_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot load {path} as a Python module")
    module = importlib.util.module_from_spec(spec)

    parent = str(path.parent.resolve())
    sys.path.insert(0, parent)
    try:
        spec.loader.exec_module(module)
    finally:
        try:
            sys.path.remove(parent)
        except ValueError:
            pass


def run_check(
    path: Path,
    config: ConformOSConfig,
    seed: int | None = None,
    trials: int | None = None,
) -> RunSummary:
    """Load path inside a new session and return what it produced."""
    if trials is not None:
        checking = config.checking.model_copy(update={"default_trials": trials})
        config = config.model_copy(update={"checking": checking})

    session = CheckSession(config, LogReporter(), seed)
    with use_session(session):
        try:
            load_module(path)
        except Exception as exc:
            # anything escaping the module halts it; the record says why
            session.record_exception(exc)
    return session.summary


def render_summary(summary: RunSummary, target: str = "") -> str:
    sep = "=" * 60
    lines = [sep, f"Checked {target or 'module'}  (seed={summary.seed}, run={summary.run_id})"]

    for outcome in summary.invariants:
        marker = {
            InvariantStatus.HELD: "[OK]  ",
            InvariantStatus.VIOLATED: "[FAIL]",
            InvariantStatus.ABORTED: "[SKIP]",
        }[outcome.status]
        lines.append(f"{marker} {outcome.summary}")

    for record in summary.failures:
        lines.append("─" * 60)
        lines.append(f"[{record.kind.value.upper()}] {record.invariant or record.function or ''}".rstrip())
        if record.argument is not None:
            where = f"argument {record.argument}"
            if record.path:
                where = f"field `{record.path}` of {where}"
            lines.append(f"Location : {where}")
        elif record.path:
            lines.append(f"Path     : {record.path}")
        if record.expected:
            lines.append(f"Expected : {record.expected}")
        if record.actual:
            lines.append(f"Actual   : {record.actual}")
        if record.trial_index is not None:
            lines.append(f"Trial    : {record.trial_index}")
        lines.append(f"Detail   : {record.message}")

    lines.append(sep)
    lines.append(
        f"[SUMMARY] {summary.held_count}/{len(summary.invariants)} invariant(s) held, "
        f"{len(summary.failures)} failure(s)"
    )
    if summary.invariants and summary.ok:
        lines.append("No counterexample found. This is evidence, not proof.")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="conformos",
        description="Sample-based conformance checking for Python modules.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser("check", help="load a module and run its invariants")
    check.add_argument("target", type=Path, help="Python file declaring invariants")
    check.add_argument("--trials", type=int, default=None, help="default trials per forall")
    check.add_argument("--seed", type=int, default=None, help="master seed for reproducible runs")
    check.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    check.add_argument("--log-level", default=None, help="override logging.level")
    check.add_argument("--log-format", choices=["console", "json"], default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    target: Path = args.target
    if not target.is_file():
        print(f"[ERROR] no such file: {target}", file=sys.stderr)
        return 2
    if args.config is not None and not args.config.is_file():
        print(f"[ERROR] no such config file: {args.config}", file=sys.stderr)
        return 2
    if args.trials is not None and args.trials < 1:
        print("[ERROR] --trials must be a positive integer", file=sys.stderr)
        return 2

    config = load_config(args.config)
    if args.log_level or args.log_format:
        logging_config = config.logging.model_copy(
            update={
                key: value
                for key, value in (("level", args.log_level), ("format", args.log_format))
                if value
            }
        )
        config = config.model_copy(update={"logging": logging_config})

    setup_logging(config.logging)
    summary = run_check(target, config, seed=args.seed, trials=args.trials)
    print(render_summary(summary, str(target)))
    return 0 if summary.ok else 1
