"""Error envelope helpers and exit codes for the inthash tables and CLI."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from functools import wraps
from typing import Any, NoReturn, TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")


class Exit(IntEnum):
    """Process exit codes returned by every inthash subcommand."""

    OK = 0
    BAD_INPUT = 2
    INVARIANT = 3
    POLICY = 4
    IO = 5
    RESOURCE = 6


@dataclass(slots=True)
class ErrorEnvelope:
    """JSON object written to stderr when a subcommand fails."""

    error: str
    detail: str
    hint: str | None = None

    def to_json(self) -> str:
        payload = {"error": self.error, "detail": self.detail}
        if self.hint:
            payload["hint"] = self.hint
        return json.dumps(payload, ensure_ascii=False)


def die(code: Exit, kind: str, detail: str, hint: str | None = None) -> NoReturn:
    """Write the envelope for ``kind`` to stderr and exit with ``code``."""

    envelope = ErrorEnvelope(error=kind, detail=detail, hint=hint)
    print(envelope.to_json(), file=sys.stderr, flush=True)
    sys.exit(int(code))


class EnvelopeError(Exception):
    """Root of the inthash errors; ``hint`` is copied into the envelope."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class BadInputError(EnvelopeError):
    """Bad workload rows, CLI flags or config values."""


class InvariantError(EnvelopeError):
    """A table failed verify_table: misplaced entry or wrong size count."""


class PolicyError(EnvelopeError):
    """An operation the table state or configuration does not allow."""


class DuplicateKeyError(PolicyError):
    """Raised when a table configured to reject duplicates sees a known key."""


class TableReleasedError(PolicyError):
    """Raised when a released table is used again."""


class IOErrorEnvelope(EnvelopeError):  # noqa: N818
    """Workload or export file could not be read or written."""


class OutOfMemoryError(EnvelopeError):
    """Raised when slot-array or entry allocation fails; the table is left untouched."""


# Subclasses precede their bases; the first isinstance match wins.
_EXIT_TABLE: tuple[tuple[type[EnvelopeError], Exit, str], ...] = (
    (BadInputError, Exit.BAD_INPUT, "BadInput"),
    (InvariantError, Exit.INVARIANT, "Invariant"),
    (DuplicateKeyError, Exit.POLICY, "DuplicateKey"),
    (TableReleasedError, Exit.POLICY, "TableReleased"),
    (PolicyError, Exit.POLICY, "Policy"),
    (IOErrorEnvelope, Exit.IO, "IO"),
    (OutOfMemoryError, Exit.RESOURCE, "OutOfMemory"),
)


def classify(exc: EnvelopeError) -> tuple[Exit, str]:
    for exc_type, exit_code, label in _EXIT_TABLE:
        if isinstance(exc, exc_type):
            return exit_code, label
    return Exit.POLICY, "UnhandledEnvelope"


def guard_cli(fn: Callable[..., T]) -> Callable[..., T]:
    """Wrap a subcommand so inthash errors become an envelope plus exit code."""

    @wraps(fn)
    def _wrapped(*args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except EnvelopeError as exc:
            exit_code, label = classify(exc)
            die(exit_code, label, str(exc), hint=exc.hint)
        except FileNotFoundError as exc:
            die(Exit.IO, "FileNotFound", str(exc))
        except Exception as exc:  # pragma: no cover
            logger.exception("Unhandled CLI exception")
            die(Exit.POLICY, "Unhandled", f"{type(exc).__name__}: {exc}")

    return _wrapped


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
