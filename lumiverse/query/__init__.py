"""
Query Interfaces

RESPONSIBILITY: Read-only resolution of selection references
ALLOWED INPUTS: SelectionRef values and the current packs mapping
OUTPUTS: The referenced item, or None

WHAT THIS LAYER MUST NOT DO:
============================
- Raise on a dangling or malformed reference
- Prune stored selections (only explicit pack removal does that)
- Mutate packs
"""

from __future__ import annotations
from typing import Any, Callable, Iterable, List, Mapping, Optional, TypeVar

from ..contracts.packs import ContentItem, LoomItem, LumiaItem, Pack, SelectionRef


T = TypeVar('T')
Packs = Mapping[str, Pack]


class SelectionResolver:
    """
    Resolves weak references against a packs snapshot.

    Presentation code calls this repeatedly; unresolved references are
    filtered from rendered results but stay in storage untouched.
    """

    def __init__(self, packs: Optional[Packs]):
        self._packs = packs if isinstance(packs, Mapping) else {}

    def _pack(self, ref: Any) -> Optional[Pack]:
        if not isinstance(ref, SelectionRef):
            ref = SelectionRef.from_value(ref)
            if ref is None:
                return None
        pack = self._packs.get(ref.pack_name)
        return pack if isinstance(pack, Pack) else None

    def lumia(self, ref: Any) -> Optional[LumiaItem]:
        pack = self._pack(ref)
        return pack.find_lumia(_item_name(ref)) if pack else None

    def loom(self, ref: Any) -> Optional[LoomItem]:
        pack = self._pack(ref)
        return pack.find_loom(_item_name(ref)) if pack else None

    def resolve(self, ref: Any) -> Optional[ContentItem]:
        """Lumia items take precedence over Loom items of the same name."""
        return self.lumia(ref) or self.loom(ref)

    def resolve_many(
        self,
        refs: Optional[Iterable[Any]],
        resolver: Optional[Callable[[Any], Optional[T]]] = None
    ) -> List[T]:
        """Resolve in order, filtering out everything that did not resolve."""
        resolver = resolver or self.resolve
        resolved = []
        for ref in refs or ():
            item = resolver(ref)
            if item is not None:
                resolved.append(item)
        return resolved


def _item_name(ref: Any) -> Optional[str]:
    if isinstance(ref, SelectionRef):
        return ref.item_name
    parsed = SelectionRef.from_value(ref)
    return parsed.item_name if parsed else None


def resolve(ref: Any, packs: Packs) -> Optional[ContentItem]:
    """Return the referenced item, or None if its pack or item is gone."""
    return SelectionResolver(packs).resolve(ref)


def resolve_lumia(ref: Any, packs: Packs) -> Optional[LumiaItem]:
    return SelectionResolver(packs).lumia(ref)


def resolve_loom(ref: Any, packs: Packs) -> Optional[LoomItem]:
    return SelectionResolver(packs).loom(ref)


def resolve_many(refs: Optional[Iterable[Any]], packs: Packs) -> List[ContentItem]:
    return SelectionResolver(packs).resolve_many(refs)
