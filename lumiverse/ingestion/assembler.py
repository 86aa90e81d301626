"""
Pack Assembler
==============

Detects the shape of a whole input payload and drives the classifier and
aggregator to produce one canonical Pack.

DETECTION ORDER:
================
1. Canonical pack (has `lumiaItems`/`loomItems`)     -> passthrough
2. Knowledge-entry collection (`entries` or a list)  -> classify + aggregate
3. Older internal pack (has an `items` list)         -> field renaming
4. Anything else                                     -> UnsupportedFormatError

GUARANTEES:
- The Pack is fully assembled before it is returned; a failure never
  leaves a partial pack behind
- Every input entry is either converted or recorded in the report
- Re-converting a canonical pack is a no-op
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Set
from enum import Enum

from ..contracts.base import ErrorCode, UnsupportedFormatError
from ..contracts.events import AuditEventType
from ..contracts.packs import (
    LoomItem, LumiaItem, Pack, Rejection, CANONICAL_VERSION, extras_tuple
)
from ..observability import AuditLog
from .aggregator import LumiaAggregator
from .classifier import EntryClassifier, EntryKind, iter_entries


class PayloadFormat(Enum):
    CANONICAL = "canonical"
    KNOWLEDGE_ENTRIES = "knowledge_entries"
    LEGACY_PACK = "legacy_pack"


@dataclass(frozen=True)
class SkippedEntry:
    """
    Record of an entry that contributed nothing to the pack.

    `index` is None when a whole field was left out rather than one entry.
    """
    index: Optional[int]
    reason: str

    @property
    def code(self) -> ErrorCode:
        return ErrorCode.UNCLASSIFIABLE_ENTRY

    def to_dict(self) -> dict:
        return {'index': self.index, 'reason': self.reason, 'code': self.code.name}


@dataclass
class EntryBatch:
    """Output of the classify + aggregate pipeline over one entry collection."""
    lumia_items: List[LumiaItem] = field(default_factory=list)
    loom_items: List[LoomItem] = field(default_factory=list)
    skipped: List[SkippedEntry] = field(default_factory=list)
    processed_count: int = 0


@dataclass
class ConversionReport:
    """
    Complete report of one conversion.

    TRACEABLE:
    Every input entry results in a Lumia contribution, a Loom item, or an
    entry in `skipped`. Skipped entries are for diagnostics only; users
    only ever see `summary()`.
    """
    source_name: str
    payload_format: Optional[PayloadFormat] = None
    processed_count: int = 0
    lumia_count: int = 0
    loom_count: int = 0
    skipped: List[SkippedEntry] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def item_count(self) -> int:
        return self.lumia_count + self.loom_count

    def summary(self) -> str:
        return f"Found {self.lumia_count} Lumia items and {self.loom_count} Loom items"

    def to_dict(self) -> dict:
        return {
            'source_name': self.source_name,
            'payload_format': self.payload_format.value if self.payload_format else None,
            'processed_count': self.processed_count,
            'lumia_count': self.lumia_count,
            'loom_count': self.loom_count,
            'skipped_count': self.skipped_count,
            'skipped': [s.to_dict() for s in self.skipped],
        }


@dataclass(frozen=True)
class AssemblyResult:
    pack: Pack
    report: ConversionReport


def detect_format(payload: Any) -> Optional[PayloadFormat]:
    """Return the payload's shape, or None when it is not recognized."""
    if isinstance(payload, (list, tuple)):
        return PayloadFormat.KNOWLEDGE_ENTRIES
    if not isinstance(payload, Mapping):
        return None
    if payload.get('lumiaItems') is not None or payload.get('loomItems') is not None:
        return PayloadFormat.CANONICAL
    if isinstance(payload.get('entries'), (Mapping, list, tuple)):
        return PayloadFormat.KNOWLEDGE_ENTRIES
    if isinstance(payload.get('items'), (list, tuple)):
        return PayloadFormat.LEGACY_PACK
    return None


class PackAssembler:
    """
    Converts any supported payload into a canonical Pack.

    The classifier is stateless and shared; a fresh LumiaAggregator is
    created per call so no state leaks between conversions.
    """

    LAYER = "ingestion"

    def __init__(
        self,
        classifier: Optional[EntryClassifier] = None,
        audit_log: Optional[AuditLog] = None
    ):
        self._classifier = classifier or EntryClassifier()
        self._audit_log = audit_log

    def assemble(self, source_name: str, payload: Any) -> AssemblyResult:
        """
        Convert `payload` into a Pack named after `source_name` where the
        payload does not name itself.

        Raises:
            UnsupportedFormatError: the top-level shape is not recognized.
        """
        payload_format = detect_format(payload)
        report = ConversionReport(source_name=source_name, payload_format=payload_format)

        if payload_format == PayloadFormat.CANONICAL:
            pack = self._from_canonical(source_name, payload, report)
        elif payload_format == PayloadFormat.KNOWLEDGE_ENTRIES:
            pack = self._from_entries(source_name, payload, report)
        elif payload_format == PayloadFormat.LEGACY_PACK:
            pack = self._from_legacy_pack(source_name, payload, report)
        else:
            self._log(
                AuditEventType.ERROR, "unsupported_format", source_name,
                {'payload_type': type(payload).__name__}
            )
            raise UnsupportedFormatError(
                "Unknown input format", source_name=source_name
            )

        report.lumia_count = len(pack.lumia_items)
        report.loom_count = len(pack.loom_items)
        if payload_format == PayloadFormat.CANONICAL:
            report.processed_count = pack.item_count + report.skipped_count

        self._log(
            AuditEventType.CONVERSION, "pack_assembled", pack.pack_name,
            {
                'format': payload_format.value,
                'processed': report.processed_count,
                'lumia_items': report.lumia_count,
                'loom_items': report.loom_count,
                'skipped': report.skipped_count,
            }
        )
        return AssemblyResult(pack=pack, report=report)

    def process_entries(self, payload: Any) -> EntryBatch:
        """
        Run the classify + aggregate pipeline over an entry collection.

        Loom fragments are collected separately, in entry order. Also used by
        the settings migrator on raw payloads found in older settings.
        """
        batch = EntryBatch()
        aggregator = LumiaAggregator()

        for index, entry in enumerate(iter_entries(payload)):
            batch.processed_count += 1
            classification = self._classifier.classify(entry)

            if classification.kind == EntryKind.LOOM:
                fragment = classification.loom
                batch.loom_items.append(LoomItem(
                    loom_name=fragment.loom_name,
                    loom_content=fragment.loom_content,
                    loom_category=fragment.loom_category,
                    author_name=None,
                    version=CANONICAL_VERSION,
                ))
            elif classification.kind == EntryKind.LUMIA:
                aggregator.add(classification.lumia)
            else:
                batch.skipped.append(SkippedEntry(index=index, reason=classification.reason))
                self._log(
                    AuditEventType.CLASSIFICATION, "entry_skipped", None,
                    {'index': index, 'reason': classification.reason}
                )

        batch.lumia_items = aggregator.items()
        return batch

    def convert_legacy_items(self, items: Iterable[Any]) -> EntryBatch:
        """
        Field-renaming conversion of older internal items.

        Routes by shape: a Lumia name field makes a LumiaItem, a Loom
        category field makes a LoomItem. The first item of a given Lumia
        name wins; later duplicates are skipped.
        """
        batch = EntryBatch()
        seen_names: Set[str] = set()

        for index, item in enumerate(items):
            batch.processed_count += 1
            if not isinstance(item, Mapping):
                batch.skipped.append(SkippedEntry(index, "Item is not an object"))
                continue

            if item.get('lumiaDefName') or item.get('lumiaName'):
                lumia = LumiaItem.from_legacy(item)
                if lumia.lumia_name in seen_names:
                    batch.skipped.append(SkippedEntry(index, f"Duplicate Lumia name '{lumia.lumia_name}'"))
                    continue
                seen_names.add(lumia.lumia_name)
                batch.lumia_items.append(lumia)
            elif item.get('loomCategory'):
                try:
                    batch.loom_items.append(LoomItem.from_legacy(item))
                except ValueError as e:
                    batch.skipped.append(SkippedEntry(index, str(e)))
            else:
                batch.skipped.append(SkippedEntry(index, "Item matches neither Lumia nor Loom shape"))

        for skipped in batch.skipped:
            self._log(
                AuditEventType.CLASSIFICATION, "item_skipped", None,
                {'index': skipped.index, 'reason': skipped.reason}
            )
        return batch

    # -------------------------------------------------------------------------
    # Per-format conversion
    # -------------------------------------------------------------------------

    def _from_canonical(self, source_name: str, payload: Mapping[str, Any], report: ConversionReport) -> Pack:
        """Passthrough: values this version does not know are kept, not rejected."""
        rejected: List[Rejection] = []
        pack = Pack.from_dict(payload, default_name=source_name, rejected=rejected)
        self._record_rejections(rejected, report)
        return pack

    def _from_entries(self, source_name: str, payload: Any, report: ConversionReport) -> Pack:
        batch = self.process_entries(payload)
        report.processed_count = batch.processed_count
        report.skipped.extend(batch.skipped)
        return Pack(
            pack_name=source_name,
            pack_author=None,
            cover_url=None,
            version=CANONICAL_VERSION,
            pack_extras=(),
            lumia_items=tuple(batch.lumia_items),
            loom_items=tuple(batch.loom_items),
        )

    def _from_legacy_pack(self, source_name: str, payload: Mapping[str, Any], report: ConversionReport) -> Pack:
        batch = self.convert_legacy_items(payload['items'])
        report.processed_count = batch.processed_count
        report.skipped.extend(batch.skipped)
        rejected: List[Rejection] = []
        pack_extras = extras_tuple(payload.get('packExtras'), rejected)
        self._record_rejections(rejected, report)
        return Pack(
            pack_name=payload.get('name') or payload.get('packName') or source_name,
            pack_author=payload.get('author') or payload.get('packAuthor') or None,
            cover_url=payload.get('coverUrl') or None,
            version=CANONICAL_VERSION,
            pack_extras=pack_extras,
            lumia_items=tuple(batch.lumia_items),
            loom_items=tuple(batch.loom_items),
            source_url=payload.get('url') or None,
        )

    def _record_rejections(self, rejected: List[Rejection], report: ConversionReport) -> None:
        for field_name, index, reason in rejected:
            skipped = SkippedEntry(index=index, reason=f"{field_name}: {reason}")
            report.skipped.append(skipped)
            self._log(
                AuditEventType.CLASSIFICATION, "item_skipped", None,
                {'field': field_name, 'index': index, 'reason': reason}
            )

    def _log(self, event_type: AuditEventType, action: str, entity_id: Optional[str], metadata: dict) -> None:
        if self._audit_log is None:
            return
        self._audit_log.record(
            event_type=event_type,
            layer=self.LAYER,
            action=action,
            entity_id=entity_id,
            entity_type="pack" if entity_id else None,
            metadata=metadata
        )
