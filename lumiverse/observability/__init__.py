"""
Observability & Audit Layer

RESPONSIBILITY: Record every conversion, migration and settings decision
ALLOWED INPUTS: AuditLogEntry records from other layers
OUTPUTS: Read-only, filterable audit history

WHAT THIS LAYER MUST NOT DO:
============================
- Modify system behavior
- Filter or interpret events on the way in (only record them)
- Surface individual skipped entries to the user
"""

from __future__ import annotations
from collections import deque
from typing import Deque, List, Optional, Dict
import hashlib

from ..contracts.base import Timestamp
from ..contracts.events import AuditLogEntry, AuditEventType


DEFAULT_MAX_ENTRIES = 10_000


class AuditLog:
    """
    Append-only audit collector.

    Layers share one instance (passed explicitly) so a whole load/import
    sequence can be inspected afterwards. With `max_entries` set, only the
    newest entries are kept; None keeps everything.
    """

    def __init__(self, max_entries: Optional[int] = DEFAULT_MAX_ENTRIES):
        self._entries: Deque[AuditLogEntry] = deque(maxlen=max_entries)
        self._sequence: int = 0

    def record(
        self,
        event_type: AuditEventType,
        layer: str,
        action: str,
        entity_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        metadata: Optional[Dict[str, object]] = None
    ) -> AuditLogEntry:
        """Create and collect an entry."""
        now = Timestamp.now()
        self._sequence += 1
        digest = hashlib.sha256(
            f"{layer}|{action}|{self._sequence}|{now.value.timestamp()}".encode('utf-8')
        ).hexdigest()[:16]

        entry = AuditLogEntry(
            entry_id=f"audit_{digest}",
            event_type=event_type,
            timestamp=now,
            layer=layer,
            action=action,
            entity_id=entity_id,
            entity_type=entity_type,
            metadata=tuple((k, str(v)) for k, v in (metadata or {}).items())
        )
        self._entries.append(entry)
        return entry

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None,
        action: Optional[str] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        entries = self._entries
        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        if action:
            entries = [e for e in entries if e.action == action]
        return list(entries)

    @property
    def max_entries(self) -> Optional[int]:
        return self._entries.maxlen

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
