"""
Base Contracts and Shared Types

Foundational types used across all layers: explicit error codes, the
immutable Error record, and UTC timestamps.

BOUNDARY ENFORCEMENT:
=====================
- Errors are data first; exceptions only wrap an Error at a fatal boundary
- Entry-level problems are never raised, only recorded
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    Every recoverable and fatal state is enumerated.
    """
    # Whole-payload errors (fatal to one conversion)
    UNSUPPORTED_FORMAT = auto()

    # Entry-level errors (recovered locally by dropping the entry)
    UNCLASSIFIABLE_ENTRY = auto()

    # Migration errors (recovered locally by dropping to null/omitted)
    DANGLING_INDEX = auto()

    # Settings mutation errors
    PACK_CONFLICT = auto()
    EMPTY_PACK = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and reported.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str, **context: str) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=Timestamp.now().value,
            context=tuple((k, str(v)) for k, v in context.items())
        )


# =============================================================================
# EXCEPTIONS (fatal boundaries only)
# =============================================================================

class LumiverseError(Exception):
    """Base exception; always carries the Error record that caused it."""

    code = ErrorCode.UNSUPPORTED_FORMAT

    def __init__(self, message: str, **context: str):
        super().__init__(message)
        self.error = Error.create(self.code, message, **context)


class UnsupportedFormatError(LumiverseError, ValueError):
    """Top-level payload shape is not recognized. No partial pack exists."""

    code = ErrorCode.UNSUPPORTED_FORMAT


class PackConflictError(LumiverseError):
    """A pack with the same name is already loaded and overwrite was not requested."""

    code = ErrorCode.PACK_CONFLICT


class EmptyPackError(LumiverseError):
    """An import produced neither Lumia nor Loom items."""

    code = ErrorCode.EMPTY_PACK


# =============================================================================
# TEMPORAL TYPES
# =============================================================================

@dataclass(frozen=True)
class Timestamp:
    """
    Immutable timestamp with explicit semantics.
    All timestamps are UTC, never local time.
    """
    value: datetime

    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))

    def to_iso(self) -> str:
        return self.value.isoformat()
