"""
Settings Service

Coordinates settings load, pack import/removal and selection changes.

DESIGN:
=======
1. Load once: persisted mapping -> SchemaMigrator -> SettingsState
2. Every mutation is applied in memory, then saved through the store
3. Imports are fully assembled before touching the packs mapping
"""

from __future__ import annotations
from typing import Any, Optional

from ..config import EngineConfig
from ..contracts.base import EmptyPackError
from ..contracts.events import AuditEventType
from ..contracts.packs import SelectionRef
from ..ingestion.assembler import ConversionReport, PackAssembler
from ..migration import MigrationReport, SchemaMigrator
from ..observability import AuditLog
from .state import SettingsState
from .store import SettingsStore


class SettingsService:
    """
    Owns the live SettingsState for one process.

    The state is passed by reference to presentation code; callers must
    route mutations through this service so each one is persisted.
    """

    LAYER = "settings"

    def __init__(
        self,
        store: SettingsStore,
        config: Optional[EngineConfig] = None,
        audit_log: Optional[AuditLog] = None
    ):
        self._store = store
        self._config = config or EngineConfig()
        self._audit_log = audit_log or AuditLog(max_entries=self._config.audit_log_max_entries)
        self._assembler = PackAssembler(audit_log=self._audit_log)
        self._migrator = SchemaMigrator(
            config=self._config,
            assembler=self._assembler,
            audit_log=self._audit_log
        )
        self._state: Optional[SettingsState] = None
        self._last_migration: Optional[MigrationReport] = None

    @property
    def state(self) -> SettingsState:
        if self._state is None:
            self.load()
        return self._state

    @property
    def audit_log(self) -> AuditLog:
        return self._audit_log

    @property
    def last_migration(self) -> Optional[MigrationReport]:
        return self._last_migration

    def load(self) -> SettingsState:
        """
        Load and migrate. Saves only when the persisted form changed, or
        when nothing was stored yet.
        """
        raw = self._store.load()
        result = self._migrator.migrate(raw)
        self._state = result.state
        self._last_migration = result.report
        if raw is None or result.report.changed:
            self.save()
        return self._state

    def save(self) -> None:
        self._store.save(self.state.to_dict())
        self._log("settings_saved", None, {'packs': len(self.state.packs)})

    # -------------------------------------------------------------------------
    # Packs
    # -------------------------------------------------------------------------

    def import_payload(self, source_name: str, payload: Any, overwrite: bool = False) -> ConversionReport:
        """
        Convert and insert a pack.

        Raises:
            UnsupportedFormatError: payload shape not recognized.
            EmptyPackError: conversion found no Lumia or Loom items.
            PackConflictError: name taken and overwrite is False.
        """
        result = self._assembler.assemble(source_name, payload)
        if result.pack.item_count == 0:
            raise EmptyPackError(
                "No valid Lumia or Loom entries found", source_name=source_name
            )
        self.state.add_pack(result.pack, overwrite=overwrite)
        self._log("pack_imported", result.pack.pack_name, {
            'lumia_items': result.report.lumia_count,
            'loom_items': result.report.loom_count,
            'overwrite': overwrite,
        })
        self.save()
        return result.report

    def remove_pack(self, pack_name: str) -> bool:
        removed = self.state.remove_pack(pack_name)
        if removed:
            self._log("pack_removed", pack_name, {})
            self.save()
        return removed

    # -------------------------------------------------------------------------
    # Selections
    # -------------------------------------------------------------------------

    def select_definition(self, ref: Optional[SelectionRef]) -> None:
        self.state.select_definition(ref)
        self.save()

    def select_loom_style(self, ref: Optional[SelectionRef]) -> None:
        self.state.select_loom_style(ref)
        self.save()

    def toggle_behavior(self, ref: SelectionRef) -> bool:
        selected = self.state.toggle_behavior(ref)
        self.save()
        return selected

    def toggle_personality(self, ref: SelectionRef) -> bool:
        selected = self.state.toggle_personality(ref)
        self.save()
        return selected

    def toggle_loom_utility(self, ref: SelectionRef) -> bool:
        selected = self.state.toggle_loom_utility(ref)
        self.save()
        return selected

    def toggle_loom_retrofit(self, ref: SelectionRef) -> bool:
        selected = self.state.toggle_loom_retrofit(ref)
        self.save()
        return selected

    def set_ooc_interval(self, interval: Optional[int]) -> None:
        """Non-positive values disable the trigger."""
        self.state.ooc_interval = interval if interval and interval > 0 else None
        self.save()

    def _log(self, action: str, entity_id: Optional[str], metadata: dict) -> None:
        self._audit_log.record(
            event_type=AuditEventType.SETTINGS_CHANGE,
            layer=self.LAYER,
            action=action,
            entity_id=entity_id,
            entity_type="pack" if entity_id else None,
            metadata=metadata
        )
