"""
ConformOS — generative conformance checking.

Declare shapes with descriptors, wrap functions so every call is checked,
and state invariants that are sampled (not proved) for counterexamples.

    from conformos import UINT8, fn, forall, struct, checked

    Stats = struct(atk=UINT8, def_=UINT8)

    @checked(fn(Stats, UINT8))
    def damage(stats):
        return max(stats["atk"] - stats["def_"], 0)

    forall([Stats], lambda s: damage(s) <= s["atk"])
"""

from conformos.engine import (
    BOOLEAN,
    INT,
    INT8,
    INT16,
    INT32,
    NUMBER,
    STRING,
    UINT8,
    UINT16,
    UINT32,
    ArgumentTypeError,
    CheckedFunction,
    ConformanceError,
    DescriptorError,
    InvariantReport,
    InvariantViolation,
    Just,
    ReturnTypeError,
    TypeDescriptor,
    UnsupportedGenerationError,
    ValidationError,
    checked,
    enum_of,
    fn,
    generate,
    int_range,
    maybe,
    named,
    pair,
    struct,
    validate,
    vector,
    wrap,
)
from conformos.session import CheckSession, annotate, current_session, forall, use_session

__version__ = "0.1.0"

__all__ = [
    "BOOLEAN",
    "INT",
    "INT8",
    "INT16",
    "INT32",
    "NUMBER",
    "STRING",
    "UINT8",
    "UINT16",
    "UINT32",
    "ArgumentTypeError",
    "CheckSession",
    "CheckedFunction",
    "ConformanceError",
    "DescriptorError",
    "InvariantReport",
    "InvariantViolation",
    "Just",
    "ReturnTypeError",
    "TypeDescriptor",
    "UnsupportedGenerationError",
    "ValidationError",
    "annotate",
    "checked",
    "current_session",
    "enum_of",
    "fn",
    "forall",
    "generate",
    "int_range",
    "maybe",
    "named",
    "pair",
    "struct",
    "use_session",
    "validate",
    "vector",
    "wrap",
]
