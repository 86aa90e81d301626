"""
Settings State

The process-wide settings container: the packs mapping, every selection
slot, and configuration that lives beside them.

OWNERSHIP:
==========
- SettingsState exclusively owns its Packs
- SelectionRefs are weak: they may dangle after a pack disappears
- A SelectionRef is pruned ONLY when its pack is removed through
  `remove_pack`; resolution never prunes
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..config import DEFAULT_OOC_STYLE
from ..contracts.base import PackConflictError
from ..contracts.packs import Pack, SelectionRef


CURRENT_SCHEMA_VERSION = 2

# Persisted keys owned by this container; everything else is kept verbatim.
KNOWN_KEYS = frozenset({
    'packs', 'selectedDefinition', 'selectedBehaviors', 'selectedPersonalities',
    'selectedLoomStyle', 'selectedLoomUtils', 'selectedLoomRetrofits',
    'lumiaOOCInterval', 'lumiaOOCStyle', 'summarization', 'schemaVersion',
})


@dataclass
class SettingsState:
    """
    Mutable settings container, mutated in place by import, removal and
    selection actions. Persisting it after each mutation is the caller's
    job (see SettingsService).
    """
    packs: Dict[str, Pack] = field(default_factory=dict)
    selected_definition: Optional[SelectionRef] = None
    selected_behaviors: List[SelectionRef] = field(default_factory=list)
    selected_personalities: List[SelectionRef] = field(default_factory=list)
    selected_loom_style: Optional[SelectionRef] = None
    selected_loom_utils: List[SelectionRef] = field(default_factory=list)
    selected_loom_retrofits: List[SelectionRef] = field(default_factory=list)
    ooc_interval: Optional[int] = None
    ooc_style: str = DEFAULT_OOC_STYLE
    summarization: Dict[str, Any] = field(default_factory=dict)
    schema_version: int = CURRENT_SCHEMA_VERSION
    extra: Dict[str, Any] = field(default_factory=dict)

    # -------------------------------------------------------------------------
    # Packs
    # -------------------------------------------------------------------------

    def add_pack(self, pack: Pack, overwrite: bool = False) -> None:
        """
        Insert a fully assembled pack under its own name.

        Raises:
            PackConflictError: a pack of that name exists and overwrite is False.
        """
        if pack.pack_name in self.packs and not overwrite:
            raise PackConflictError(
                f'Pack "{pack.pack_name}" already exists', pack_name=pack.pack_name
            )
        self.packs[pack.pack_name] = pack

    def remove_pack(self, pack_name: str) -> bool:
        """
        Delete a pack and cascade: every selection naming it is pruned,
        single and multi slots alike. Other packs' selections are untouched.
        """
        if pack_name not in self.packs:
            return False
        del self.packs[pack_name]

        if self.selected_definition and self.selected_definition.pack_name == pack_name:
            self.selected_definition = None
        if self.selected_loom_style and self.selected_loom_style.pack_name == pack_name:
            self.selected_loom_style = None

        self.selected_behaviors = _without_pack(self.selected_behaviors, pack_name)
        self.selected_personalities = _without_pack(self.selected_personalities, pack_name)
        self.selected_loom_utils = _without_pack(self.selected_loom_utils, pack_name)
        self.selected_loom_retrofits = _without_pack(self.selected_loom_retrofits, pack_name)
        return True

    @property
    def total_items(self) -> int:
        return sum(pack.item_count for pack in self.packs.values())

    # -------------------------------------------------------------------------
    # Selections
    # -------------------------------------------------------------------------

    def select_definition(self, ref: Optional[SelectionRef]) -> None:
        self.selected_definition = ref

    def select_loom_style(self, ref: Optional[SelectionRef]) -> None:
        self.selected_loom_style = ref

    def toggle_behavior(self, ref: SelectionRef) -> bool:
        return _toggle(self.selected_behaviors, ref)

    def toggle_personality(self, ref: SelectionRef) -> bool:
        return _toggle(self.selected_personalities, ref)

    def toggle_loom_utility(self, ref: SelectionRef) -> bool:
        return _toggle(self.selected_loom_utils, ref)

    def toggle_loom_retrofit(self, ref: SelectionRef) -> bool:
        return _toggle(self.selected_loom_retrofits, ref)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            'packs': {name: pack.to_dict() for name, pack in self.packs.items()},
            'selectedDefinition': _ref_dict(self.selected_definition),
            'selectedBehaviors': [r.to_dict() for r in self.selected_behaviors],
            'selectedPersonalities': [r.to_dict() for r in self.selected_personalities],
            'selectedLoomStyle': _ref_dict(self.selected_loom_style),
            'selectedLoomUtils': [r.to_dict() for r in self.selected_loom_utils],
            'selectedLoomRetrofits': [r.to_dict() for r in self.selected_loom_retrofits],
            'lumiaOOCInterval': self.ooc_interval,
            'lumiaOOCStyle': self.ooc_style,
            'summarization': dict(self.summarization),
            'schemaVersion': self.schema_version,
        })
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SettingsState:
        """
        Build from canonical persisted settings.

        Older shapes must go through SchemaMigrator instead; stored
        references that are not well-formed are dropped here.
        """
        packs = {
            name: Pack.from_dict(pack, default_name=name)
            for name, pack in (data.get('packs') or {}).items()
        }
        return cls(
            packs=packs,
            selected_definition=SelectionRef.from_value(data.get('selectedDefinition')),
            selected_behaviors=_refs(data.get('selectedBehaviors')),
            selected_personalities=_refs(data.get('selectedPersonalities')),
            selected_loom_style=SelectionRef.from_value(data.get('selectedLoomStyle')),
            selected_loom_utils=_refs(data.get('selectedLoomUtils')),
            selected_loom_retrofits=_refs(data.get('selectedLoomRetrofits')),
            ooc_interval=data.get('lumiaOOCInterval'),
            ooc_style=data.get('lumiaOOCStyle') or DEFAULT_OOC_STYLE,
            summarization=dict(data.get('summarization') or {}),
            schema_version=data.get('schemaVersion', CURRENT_SCHEMA_VERSION),
            extra={k: v for k, v in data.items() if k not in KNOWN_KEYS},
        )


def _without_pack(refs: List[SelectionRef], pack_name: str) -> List[SelectionRef]:
    return [ref for ref in refs if ref.pack_name != pack_name]


def _toggle(refs: List[SelectionRef], ref: SelectionRef) -> bool:
    """Add `ref` if absent, remove it if present. Returns whether it is now selected."""
    if ref in refs:
        refs.remove(ref)
        return False
    refs.append(ref)
    return True


def _ref_dict(ref: Optional[SelectionRef]) -> Optional[dict]:
    return ref.to_dict() if ref else None


def _refs(values: Any) -> List[SelectionRef]:
    if not isinstance(values, (list, tuple)):
        return []
    refs = []
    for value in values:
        ref = SelectionRef.from_value(value)
        if ref is not None:
            refs.append(ref)
    return refs
