"""
Lumia Aggregator

Merges same-named Lumia fragments from many entries into one canonical
LumiaItem per name. Output order is first-seen order. Items with missing
fields are still emitted; showing "Unknown" is a presentation concern.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
import re

from ..contracts.packs import GenderIdentity, LumiaItem, CANONICAL_VERSION
from .classifier import FragmentType, LumiaFragment
from .metadata import extract_metadata


# Older personality entries carried behavior and personality as variable macros.
BEHAVIOR_MARKER = re.compile(r'\{\{setvar::lumia_behavior_\w+::([\s\S]*?)\}\}')
PERSONALITY_MARKER = re.compile(r'\{\{setglobalvar::lumia_personality_\w+::([\s\S]*?)\}\}')


@dataclass
class _LumiaDraft:
    name: str
    definition: Optional[str] = None
    personality: Optional[str] = None
    behavior: Optional[str] = None
    avatar_url: Optional[str] = None
    author_name: Optional[str] = None

    def freeze(self) -> LumiaItem:
        return LumiaItem(
            lumia_name=self.name,
            lumia_definition=self.definition,
            lumia_personality=self.personality,
            lumia_behavior=self.behavior,
            avatar_url=self.avatar_url,
            gender_identity=GenderIdentity.SHE_HER,
            author_name=self.author_name,
            version=CANONICAL_VERSION,
        )


class LumiaAggregator:
    """
    In-progress mapping from name to draft, local to one assembly call.

    Later fragments overwrite earlier ones field by field (last writer
    wins), except that a behavior recovered from a personality marker never
    replaces an existing behavior.
    """

    def __init__(self):
        self._drafts: Dict[str, _LumiaDraft] = {}

    def add(self, fragment: LumiaFragment) -> None:
        draft = self._drafts.get(fragment.name)
        if draft is None:
            draft = _LumiaDraft(name=fragment.name)
            self._drafts[fragment.name] = draft

        if fragment.fragment_type == FragmentType.DEFINITION:
            self._apply_definition(draft, fragment.raw_content)
        elif fragment.fragment_type == FragmentType.BEHAVIOR:
            draft.behavior = fragment.raw_content.strip()
        elif fragment.fragment_type == FragmentType.PERSONALITY:
            self._apply_personality(draft, fragment.raw_content)

    def add_all(self, fragments: Iterable[LumiaFragment]) -> None:
        for fragment in fragments:
            self.add(fragment)

    def items(self) -> List[LumiaItem]:
        return [draft.freeze() for draft in self._drafts.values()]

    def __len__(self) -> int:
        return len(self._drafts)

    @staticmethod
    def _apply_definition(draft: _LumiaDraft, raw_content: str) -> None:
        meta = extract_metadata(raw_content)
        draft.definition = meta.clean_content
        if meta.image:
            draft.avatar_url = meta.image
        if meta.author:
            draft.author_name = meta.author

    @staticmethod
    def _apply_personality(draft: _LumiaDraft, raw_content: str) -> None:
        behavior_match = BEHAVIOR_MARKER.search(raw_content)
        personality_match = PERSONALITY_MARKER.search(raw_content)

        if behavior_match and not draft.behavior:
            draft.behavior = behavior_match.group(1).strip()

        if personality_match:
            draft.personality = personality_match.group(1).strip()
        else:
            # No marker: the whole entry is personality text
            draft.personality = raw_content
