"""
ConformOS — Conformance-Checking Engine

Descriptors describe shapes, the generator samples them, the validator
checks values against them, checked functions validate every call, and the
invariant runner samples properties looking for counterexamples.

Check boundary: descriptors -> generation/validation -> checked calls -> forall
Nothing here claims proof; a held invariant means "no counterexample in N samples".
"""

from conformos.engine.checked import CheckedFunction, checked, wrap
from conformos.engine.descriptors import (
    BOOLEAN,
    INT,
    INT8,
    INT16,
    INT32,
    INTEGER_RANGES,
    NUMBER,
    STRING,
    UINT8,
    UINT16,
    UINT32,
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
    descriptor_at,
    enum_of,
    fn,
    int_range,
    leaf_paths,
    maybe,
    named,
    pair,
    render,
    struct,
    vector,
)
from conformos.engine.errors import (
    ArgumentTypeError,
    ConformanceError,
    DescriptorError,
    InvariantViolation,
    ReturnTypeError,
    UnsupportedGenerationError,
    ValidationError,
)
from conformos.engine.generator import ValueGenerator, ensure_generable, generate
from conformos.engine.invariants import InvariantRunner
from conformos.engine.reporting import (
    CollectingReporter,
    LogReporter,
    Reporter,
    failure_from_counterexample,
    failure_from_exception,
    failure_from_report,
)
from conformos.engine.types import (
    MISSING,
    CounterExample,
    FailureKind,
    FailureRecord,
    InvariantOutcome,
    InvariantReport,
    InvariantStatus,
    Just,
    Mismatch,
    RunSummary,
    render_path,
    value_at,
)
from conformos.engine.validator import check, conforms, validate

__all__ = [
    # Descriptors
    "BOOLEAN",
    "INT",
    "INT8",
    "INT16",
    "INT32",
    "INTEGER_RANGES",
    "NUMBER",
    "STRING",
    "UINT8",
    "UINT16",
    "UINT32",
    "EnumType",
    "Fn",
    "Maybe",
    "Pair",
    "Path",
    "Primitive",
    "PrimitiveKind",
    "Struct",
    "TypeDescriptor",
    "Vector",
    "descriptor_at",
    "enum_of",
    "fn",
    "int_range",
    "leaf_paths",
    "maybe",
    "named",
    "pair",
    "render",
    "struct",
    "vector",
    # Generation / validation
    "ValueGenerator",
    "ensure_generable",
    "generate",
    "check",
    "conforms",
    "validate",
    # Checked functions
    "CheckedFunction",
    "checked",
    "wrap",
    # Invariants
    "InvariantRunner",
    # Failure channel
    "CollectingReporter",
    "LogReporter",
    "Reporter",
    "failure_from_counterexample",
    "failure_from_exception",
    "failure_from_report",
    # Types
    "MISSING",
    "CounterExample",
    "FailureKind",
    "FailureRecord",
    "InvariantOutcome",
    "InvariantReport",
    "InvariantStatus",
    "Just",
    "Mismatch",
    "RunSummary",
    "render_path",
    "value_at",
    # Errors
    "ArgumentTypeError",
    "ConformanceError",
    "DescriptorError",
    "InvariantViolation",
    "ReturnTypeError",
    "UnsupportedGenerationError",
    "ValidationError",
]
