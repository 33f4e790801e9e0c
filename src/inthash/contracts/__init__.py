"""Contract helpers for the inthash tables and CLI."""

from .error import (
    BadInputError,
    DuplicateKeyError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    InvariantError,
    IOErrorEnvelope,
    OutOfMemoryError,
    PolicyError,
    TableReleasedError,
    classify,
    die,
    guard_cli,
)

__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "InvariantError",
    "PolicyError",
    "DuplicateKeyError",
    "TableReleasedError",
    "IOErrorEnvelope",
    "OutOfMemoryError",
    "classify",
    "guard_cli",
    "die",
]
