"""
Settings Migration Layer

RESPONSIBILITY: Upgrade older persisted settings into a canonical SettingsState
ALLOWED INPUTS: The raw settings mapping handed over by the persistence host
OUTPUTS: MigrationResult (SettingsState + MigrationReport)

WHAT THIS LAYER MUST NOT DO:
============================
- Raise on dangling legacy indices (they migrate to null / are omitted)
- Re-run on settings already flagged as migrated
- Keep legacy keys around after a pass

ONE-SHOT GUARD:
===============
Migration runs when legacy keys (`lumiaLibrary`, `worldBookData`) are
present, the packs mapping is empty, AND `schemaVersion` is below the
current version. Legacy keys are then deleted unconditionally: without
that, emptying the packs mapping later would re-trigger migration on stale
data. Settings that carry legacy keys but fail the guard have those keys
discarded without migrating.

STATE MACHINE:
==============
    unmigrated --migrate()--> migrated      (never reversed)
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config import EngineConfig
from ..contracts.base import ErrorCode, UnsupportedFormatError
from ..contracts.events import AuditEventType
from ..contracts.packs import LumiaItem, LoomItem, Pack, SelectionRef
from ..ingestion.assembler import PackAssembler, PayloadFormat
from ..observability import AuditLog
from ..settings.state import SettingsState, CURRENT_SCHEMA_VERSION


LEGACY_LIBRARY_KEY = 'lumiaLibrary'
LEGACY_PAYLOAD_KEY = 'worldBookData'
LEGACY_URL_KEY = 'worldBookUrl'
LEGACY_KEYS = (LEGACY_LIBRARY_KEY, LEGACY_PAYLOAD_KEY, LEGACY_URL_KEY)

SINGLE_SELECTION_KEYS = ('selectedDefinition',)
MULTI_SELECTION_KEYS = ('selectedBehaviors', 'selectedPersonalities')


@dataclass(frozen=True)
class DanglingIndex:
    """A legacy numeric selection that did not resolve to a named item."""
    slot: str
    index: Any

    @property
    def code(self) -> ErrorCode:
        return ErrorCode.DANGLING_INDEX

    def to_dict(self) -> dict:
        return {'slot': self.slot, 'index': self.index, 'code': self.code.name}


@dataclass
class MigrationReport:
    """What one settings load changed."""
    migrated: bool = False
    legacy_item_count: int = 0
    migrated_selection_count: int = 0
    dangling_indices: List[DanglingIndex] = field(default_factory=list)
    discarded_keys: List[str] = field(default_factory=list)
    normalized_packs: List[str] = field(default_factory=list)
    dropped_packs: List[str] = field(default_factory=list)
    flag_stamped: bool = False

    @property
    def changed(self) -> bool:
        """Whether the persisted form differs from what was loaded."""
        return bool(
            self.migrated or self.discarded_keys or self.normalized_packs
            or self.dropped_packs or self.flag_stamped
        )

    def to_dict(self) -> dict:
        return {
            'migrated': self.migrated,
            'legacy_item_count': self.legacy_item_count,
            'migrated_selection_count': self.migrated_selection_count,
            'dangling_indices': [d.to_dict() for d in self.dangling_indices],
            'discarded_keys': list(self.discarded_keys),
            'normalized_packs': list(self.normalized_packs),
            'dropped_packs': list(self.dropped_packs),
            'flag_stamped': self.flag_stamped,
        }


@dataclass(frozen=True)
class MigrationResult:
    state: SettingsState
    report: MigrationReport

    @property
    def migrated(self) -> bool:
        return self.report.migrated


class SchemaMigrator:
    """
    Runs once per settings load.

    Reuses the ingestion pipeline for raw payloads stored in older settings,
    so classification rules stay identical between import and migration.
    """

    LAYER = "migration"

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        assembler: Optional[PackAssembler] = None,
        audit_log: Optional[AuditLog] = None
    ):
        self._config = config or EngineConfig()
        self._audit_log = audit_log
        self._assembler = assembler or PackAssembler(audit_log=audit_log)

    def needs_migration(self, data: Mapping[str, Any]) -> bool:
        """The one-shot guard."""
        has_legacy = (
            data.get(LEGACY_LIBRARY_KEY) is not None
            or data.get(LEGACY_PAYLOAD_KEY) is not None
        )
        return (
            has_legacy
            and not data.get('packs')
            and _schema_version(data) < CURRENT_SCHEMA_VERSION
        )

    def migrate(self, raw_settings: Optional[Mapping[str, Any]]) -> MigrationResult:
        """
        Produce a canonical SettingsState from persisted settings of any
        generation. The input mapping is not modified.
        """
        data: Dict[str, Any] = dict(raw_settings or {})
        report = MigrationReport()

        packs = self._normalize_stored_packs(data.get('packs'), report)

        if self.needs_migration(data):
            legacy_pack, indexed_items = self._build_legacy_pack(data, report)
            if legacy_pack is not None:
                packs[legacy_pack.pack_name] = legacy_pack
            self._migrate_selections(data, indexed_items, report)
            report.migrated = True
            self._log("settings_migrated", {
                'legacy_items': report.legacy_item_count,
                'selections': report.migrated_selection_count,
                'dangling': len(report.dangling_indices),
            })

        for key in LEGACY_KEYS:
            if key in data:
                del data[key]
                if not report.migrated:
                    report.discarded_keys.append(key)
        if report.discarded_keys:
            self._log("legacy_keys_discarded", {'keys': ",".join(report.discarded_keys)})

        if not report.migrated and _schema_version(data) < CURRENT_SCHEMA_VERSION:
            report.flag_stamped = True
        data['schemaVersion'] = CURRENT_SCHEMA_VERSION
        data.pop('packs', None)

        state = SettingsState.from_dict(data)
        state.packs = packs
        if not state.ooc_style:
            state.ooc_style = self._config.default_ooc_style
        return MigrationResult(state=state, report=report)

    # -------------------------------------------------------------------------
    # Packs
    # -------------------------------------------------------------------------

    def _normalize_stored_packs(self, stored: Any, report: MigrationReport) -> Dict[str, Pack]:
        """
        Bring every stored pack to canonical form. Packs saved in the older
        internal shape (`{name, items, url}`) go through field renaming;
        packs that cannot be read at all are dropped and reported.
        """
        packs: Dict[str, Pack] = {}
        if not isinstance(stored, Mapping):
            return packs

        for name, payload in stored.items():
            try:
                result = self._assembler.assemble(name, payload)
            except UnsupportedFormatError:
                report.dropped_packs.append(name)
                self._log("stored_pack_dropped", {'pack': name})
                continue
            pack = result.pack
            renamed = pack.pack_name != name
            if renamed:
                pack = replace(pack, pack_name=name)
            if (
                renamed
                or result.report.payload_format != PayloadFormat.CANONICAL
                or result.report.skipped_count
            ):
                report.normalized_packs.append(name)
            packs[name] = pack
        return packs

    def _build_legacy_pack(
        self,
        data: Mapping[str, Any],
        report: MigrationReport
    ) -> Tuple[Optional[Pack], List[Optional[LumiaItem]]]:
        """
        Returns the synthetic legacy pack (None when nothing was derived) and
        the positional item list legacy indices point into.
        """
        indexed_items: List[Optional[LumiaItem]] = []
        loom_items: List[LoomItem] = []

        library = data.get(LEGACY_LIBRARY_KEY)
        if isinstance(library, (list, tuple)):
            indexed_items = [
                LumiaItem.from_legacy(item) if isinstance(item, Mapping) else None
                for item in library
            ]

        if not indexed_items and data.get(LEGACY_PAYLOAD_KEY) is not None:
            batch = self._assembler.process_entries(data[LEGACY_PAYLOAD_KEY])
            indexed_items = list(batch.lumia_items)
            loom_items = batch.loom_items

        lumia_items = _unique_by_name(item for item in indexed_items if item is not None)
        report.legacy_item_count = len(lumia_items) + len(loom_items)
        if not report.legacy_item_count:
            return None, indexed_items

        pack = Pack(
            pack_name=self._config.legacy_pack_label,
            lumia_items=tuple(lumia_items),
            loom_items=tuple(loom_items),
            source_url=data.get(LEGACY_URL_KEY) or self._config.legacy_source_marker,
        )
        return pack, indexed_items

    # -------------------------------------------------------------------------
    # Selections
    # -------------------------------------------------------------------------

    def _migrate_selections(
        self,
        data: Dict[str, Any],
        indexed_items: List[Optional[LumiaItem]],
        report: MigrationReport
    ) -> None:
        """Rewrite numeric selections in `data` into name-based references."""
        for key in SINGLE_SELECTION_KEYS:
            value = data.get(key)
            ref = self._migrate_one(key, value, indexed_items, report)
            data[key] = ref.to_dict() if ref else None

        for key in MULTI_SELECTION_KEYS:
            values = data.get(key)
            if not isinstance(values, (list, tuple)):
                data[key] = []
                continue
            migrated = []
            for value in values:
                ref = self._migrate_one(key, value, indexed_items, report)
                if ref is not None:
                    migrated.append(ref.to_dict())
            data[key] = migrated

    def _migrate_one(
        self,
        slot: str,
        value: Any,
        indexed_items: List[Optional[LumiaItem]],
        report: MigrationReport
    ) -> Optional[SelectionRef]:
        if not _is_index(value):
            return SelectionRef.from_value(value)

        ref = self.resolve_index(value, indexed_items)
        if ref is None:
            report.dangling_indices.append(DanglingIndex(slot=slot, index=value))
            self._log("dangling_index", {'slot': slot, 'index': value})
        else:
            report.migrated_selection_count += 1
        return ref

    def resolve_index(self, index: Any, items: List[Optional[LumiaItem]]) -> Optional[SelectionRef]:
        """
        Translate a legacy index into a reference into the legacy pack.

        Returns None for non-integers, negative or out-of-range indices, and
        targets without a name. Never raises.
        """
        if not _is_index(index) or index < 0 or index >= len(items):
            return None
        item = items[index]
        if item is None or not item.lumia_name:
            return None
        return SelectionRef(pack_name=self._config.legacy_pack_label, item_name=item.lumia_name)

    def _log(self, action: str, metadata: dict) -> None:
        if self._audit_log is None:
            return
        self._audit_log.record(
            event_type=AuditEventType.MIGRATION,
            layer=self.LAYER,
            action=action,
            entity_type="settings",
            metadata=metadata
        )


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _schema_version(data: Mapping[str, Any]) -> int:
    version = data.get('schemaVersion')
    return version if _is_index(version) else 1


def _unique_by_name(items) -> List[LumiaItem]:
    """First item of each name wins; nameless items are dropped."""
    seen = set()
    unique = []
    for item in items:
        if not item.lumia_name or item.lumia_name in seen:
            continue
        seen.add(item.lumia_name)
        unique.append(item)
    return unique
