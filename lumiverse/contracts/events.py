"""
Audit Event Contracts

Immutable records emitted by every layer into the observability layer.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple
from enum import Enum

from .base import Timestamp


class AuditEventType(Enum):
    """Explicit audit event types."""
    CONVERSION = "conversion"
    CLASSIFICATION = "classification"
    MIGRATION = "migration"
    SETTINGS_CHANGE = "settings_change"
    ERROR = "error"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    layer: str  # Which layer generated this
    action: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def metadata_dict(self) -> dict:
        return dict(self.metadata)

    def to_dict(self) -> dict:
        return {
            'entry_id': self.entry_id,
            'event_type': self.event_type.value,
            'timestamp': self.timestamp.to_iso(),
            'layer': self.layer,
            'action': self.action,
            'entity_id': self.entity_id,
            'entity_type': self.entity_type,
            'metadata': self.metadata_dict(),
        }
