"""
Contracts Module

This module defines the explicit data types shared by every layer of the
pack engine. All inter-layer communication MUST use these contracts.

DESIGN PRINCIPLES:
==================
1. Canonical content types are immutable (frozen dataclasses)
2. Wire keys stay camelCase; Python attributes are snake_case
3. Every error state is enumerated in ErrorCode
4. All timestamps are UTC
"""

from .base import (
    ErrorCode, Error, Timestamp,
    LumiverseError, UnsupportedFormatError, PackConflictError, EmptyPackError,
)
from .packs import (
    GenderIdentity, LoomCategory, LumiaItem, LoomItem, Pack, SelectionRef,
    CANONICAL_VERSION,
)
from .events import AuditEventType, AuditLogEntry

__all__ = [
    "ErrorCode", "Error", "Timestamp",
    "LumiverseError", "UnsupportedFormatError", "PackConflictError", "EmptyPackError",
    "GenderIdentity", "LoomCategory", "LumiaItem", "LoomItem", "Pack", "SelectionRef",
    "CANONICAL_VERSION",
    "AuditEventType", "AuditLogEntry",
]
