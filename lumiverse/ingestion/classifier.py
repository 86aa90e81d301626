"""
Entry Classifier
================

Turns one raw knowledge entry (`{comment, content, outletName?}`) into a
typed classification decision.

GUARANTEES:
- Every entry yields exactly one Classification: Loom, Lumia, or ignored
- Ignored entries carry a reason; they are never raised
- Type rules are evaluated top-to-bottom in a fixed order; content
  authored against the older importer depends on this priority

RULE ORDER:
===========
1. outlet Lumia_Description  -> definition
2. outlet Lumia_Behavior     -> behavior
3. outlet Lumia_Personality  -> personality
4. comment has "definition"  -> definition   (case-insensitive)
5. comment has "behavior"    -> behavior
6. comment has "personality" -> personality
7. category prefix "Lumia"   -> definition
8. content has [lumia_img=   -> definition
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Mapping, Optional, Tuple
from enum import Enum
import re

from ..contracts.packs import LoomCategory


LOOM_ENTRY = re.compile(
    r'^(Loom Utilities|Retrofits|Narrative Style)\s*\((.+)\)\s*$'
)
CATEGORY_PREFIX = re.compile(r'^(.+?)\s*\(')
PARENTHESIZED_NAME = re.compile(r'\((.+?)\)')


# =============================================================================
# CLASSIFICATION CONTRACTS
# =============================================================================

class EntryKind(Enum):
    IGNORED = "ignored"
    LOOM = "loom"
    LUMIA = "lumia"


class FragmentType(Enum):
    """Which part of a Lumia item an entry contributes."""
    DEFINITION = "definition"
    BEHAVIOR = "behavior"
    PERSONALITY = "personality"


@dataclass(frozen=True)
class LoomFragment:
    loom_name: str
    loom_content: str
    loom_category: LoomCategory


@dataclass(frozen=True)
class LumiaFragment:
    name: str
    fragment_type: FragmentType
    raw_content: str


@dataclass(frozen=True)
class Classification:
    """
    Decision for a single entry.

    Exactly one of `loom`/`lumia` is set unless the entry was ignored, in
    which case `reason` explains why.
    """
    kind: EntryKind
    loom: Optional[LoomFragment] = None
    lumia: Optional[LumiaFragment] = None
    reason: Optional[str] = None

    @staticmethod
    def ignored(reason: str) -> Classification:
        return Classification(kind=EntryKind.IGNORED, reason=reason)

    @property
    def is_ignored(self) -> bool:
        return self.kind == EntryKind.IGNORED


@dataclass(frozen=True)
class _EntryView:
    """Pre-trimmed fields the type rules look at."""
    comment: str
    comment_lower: str
    content: str
    outlet_name: Optional[str]
    category_prefix: Optional[str]


TypeRule = Tuple[Callable[[_EntryView], bool], FragmentType]


def _outlet(name: str) -> Callable[[_EntryView], bool]:
    return lambda view: view.outlet_name == name


def _keyword(word: str) -> Callable[[_EntryView], bool]:
    return lambda view: word in view.comment_lower


TYPE_RULES: Tuple[TypeRule, ...] = (
    (_outlet('Lumia_Description'), FragmentType.DEFINITION),
    (_outlet('Lumia_Behavior'), FragmentType.BEHAVIOR),
    (_outlet('Lumia_Personality'), FragmentType.PERSONALITY),
    (_keyword('definition'), FragmentType.DEFINITION),
    (_keyword('behavior'), FragmentType.BEHAVIOR),
    (_keyword('personality'), FragmentType.PERSONALITY),
    (lambda view: (view.category_prefix or '').lower() == 'lumia', FragmentType.DEFINITION),
    (lambda view: '[lumia_img=' in view.content, FragmentType.DEFINITION),
)


# =============================================================================
# CLASSIFIER
# =============================================================================

class EntryClassifier:
    """
    Classifies knowledge entries by their comment tags.

    NO SEMANTIC PROCESSING:
    - Does not read narrative text beyond the image-tag probe
    - Does not guess names for entries without a parenthesized name
    """

    def __init__(self, rules: Tuple[TypeRule, ...] = TYPE_RULES):
        self._rules = rules

    def classify(self, entry: Any) -> Classification:
        """Classify a single raw entry. Never raises."""
        if not isinstance(entry, Mapping):
            return Classification.ignored("Entry is not an object")

        content = entry.get('content')
        if not content or not isinstance(content, str):
            return Classification.ignored("Missing or non-text content")

        comment = entry.get('comment') or ''
        if not isinstance(comment, str):
            comment = ''
        comment = comment.strip()

        prefix_match = CATEGORY_PREFIX.match(comment)
        category_prefix = prefix_match.group(1).strip() if prefix_match else None

        if LoomCategory.from_label(category_prefix) is not None:
            return self._classify_loom(comment, content)

        name_match = PARENTHESIZED_NAME.search(comment)
        if not name_match:
            return Classification.ignored("No parenthesized name in comment")
        name = name_match.group(1).strip()
        if not name:
            return Classification.ignored("Empty parenthesized name")

        outlet_name = entry.get('outletName')
        view = _EntryView(
            comment=comment,
            comment_lower=comment.lower(),
            content=content,
            outlet_name=outlet_name if isinstance(outlet_name, str) else None,
            category_prefix=category_prefix,
        )
        fragment_type = self._determine_type(view)
        if fragment_type is None:
            return Classification.ignored(f"No determinable type for '{name}'")

        return Classification(
            kind=EntryKind.LUMIA,
            lumia=LumiaFragment(name=name, fragment_type=fragment_type, raw_content=content)
        )

    def classify_all(self, entries: Any) -> List[Classification]:
        return [self.classify(entry) for entry in iter_entries(entries)]

    def _classify_loom(self, comment: str, content: str) -> Classification:
        match = LOOM_ENTRY.match(comment)
        if not match:
            return Classification.ignored("Malformed Loom comment")
        name = match.group(2).strip()
        if not name:
            return Classification.ignored("Empty Loom name")
        return Classification(
            kind=EntryKind.LOOM,
            loom=LoomFragment(
                loom_name=name,
                loom_content=content.strip(),
                loom_category=LoomCategory(match.group(1)),
            )
        )

    def _determine_type(self, view: _EntryView) -> Optional[FragmentType]:
        for predicate, fragment_type in self._rules:
            if predicate(view):
                return fragment_type
        return None


def iter_entries(payload: Any) -> Iterator[Any]:
    """
    Yield raw entries from either an `entries` mapping or a bare sequence.

    Anything else yields nothing.
    """
    if isinstance(payload, (list, tuple)):
        yield from payload
    elif isinstance(payload, Mapping):
        entries = payload.get('entries')
        if isinstance(entries, Mapping):
            yield from entries.values()
        elif isinstance(entries, (list, tuple)):
            yield from entries
