"""
Pack Contracts

Canonical, versioned content types. These are the ONLY shapes stored in
the packs mapping and handed to presentation code.

WIRE FORMAT:
============
Serialized keys are camelCase and match the canonical pack JSON:

    {
      "packName": ..., "packAuthor": ..., "coverUrl": ..., "version": 1,
      "packExtras": [...], "lumiaItems": [...], "loomItems": [...]
    }

`from_dict` accepts canonical input and never rejects a value it does not
recognize: unknown keys land in `extra`, unknown gender or category values
are kept verbatim, so `to_dict()` gives back what was read. Older field
names are handled by the `from_legacy` constructors, which do a 1:1 field
copy with fallbacks.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union
from enum import Enum


CANONICAL_VERSION = 1

PACK_KEYS = frozenset({
    'packName', 'packAuthor', 'coverUrl', 'version', 'packExtras',
    'lumiaItems', 'loomItems', 'url',
})
LUMIA_KEYS = frozenset({
    'lumiaName', 'lumiaDefinition', 'lumiaPersonality', 'lumiaBehavior',
    'avatarUrl', 'genderIdentity', 'authorName', 'version',
})
LOOM_KEYS = frozenset({
    'loomName', 'loomContent', 'loomCategory', 'authorName', 'version',
})

# (field, index or None, reason) for a part of a canonical pack left out
Rejection = Tuple[str, Optional[int], str]


# =============================================================================
# ENUMS
# =============================================================================

class GenderIdentity(Enum):
    """Pronoun set of a Lumia character. Serialized as its integer value."""
    SHE_HER = 0
    HE_HIM = 1
    THEY_THEM = 2

    @classmethod
    def lookup(cls, value: Any) -> Optional[GenderIdentity]:
        """Return the member for `value`, or None when it is not one."""
        if isinstance(value, cls):
            return value
        if value is None or isinstance(value, bool):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class LoomCategory(Enum):
    """Loom item categories. Serialized as the human-readable label."""
    NARRATIVE_STYLE = "Narrative Style"
    UTILITIES = "Loom Utilities"
    RETROFITS = "Retrofits"

    @classmethod
    def from_label(cls, label: Any) -> Optional[LoomCategory]:
        """Return the category for an exact label, or None."""
        for category in cls:
            if category.value == label:
                return category
        return None


def _wire(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _extra(data: Mapping[str, Any], known: frozenset) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


# =============================================================================
# CONTENT ITEMS
# =============================================================================

@dataclass(frozen=True)
class LumiaItem:
    """
    Character-definition record.

    Any text field may be None: an item assembled from partially tagged
    sources is still a valid item. Display fallbacks are a presentation
    concern. `gender_identity` holds the stored value itself when it is not
    a GenderIdentity this version knows.
    """
    lumia_name: Optional[str]
    lumia_definition: Optional[str] = None
    lumia_personality: Optional[str] = None
    lumia_behavior: Optional[str] = None
    avatar_url: Optional[str] = None
    gender_identity: Union[GenderIdentity, Any] = GenderIdentity.SHE_HER
    author_name: Optional[str] = None
    version: int = CANONICAL_VERSION
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> Optional[str]:
        return self.lumia_name

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            'lumiaName': self.lumia_name,
            'lumiaDefinition': self.lumia_definition,
            'lumiaPersonality': self.lumia_personality,
            'lumiaBehavior': self.lumia_behavior,
            'avatarUrl': self.avatar_url,
            'genderIdentity': _wire(self.gender_identity),
            'authorName': self.author_name,
            'version': self.version,
        })
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LumiaItem:
        """Build from a canonical item mapping. Never raises."""
        gender = data.get('genderIdentity')
        known = GenderIdentity.lookup(gender)
        if known is not None:
            gender = known
        elif gender is None:
            gender = GenderIdentity.SHE_HER
        return cls(
            lumia_name=data.get('lumiaName'),
            lumia_definition=data.get('lumiaDefinition'),
            lumia_personality=data.get('lumiaPersonality'),
            lumia_behavior=data.get('lumiaBehavior'),
            avatar_url=data.get('avatarUrl'),
            gender_identity=gender,
            author_name=data.get('authorName'),
            version=data.get('version', CANONICAL_VERSION),
            extra=_extra(data, LUMIA_KEYS),
        )

    @classmethod
    def from_legacy(cls, data: Mapping[str, Any]) -> LumiaItem:
        """
        Field-renaming conversion from the older item shape.

        No text classification happens here; each canonical field is copied
        from its legacy name, falling back to the canonical name. An
        unrecognized gender value becomes SHE_HER.
        """
        gender = GenderIdentity.lookup(data.get('genderIdentity'))
        return cls(
            lumia_name=data.get('lumiaDefName') or data.get('lumiaName'),
            lumia_definition=data.get('lumiaDef') or data.get('lumiaDefinition') or None,
            lumia_personality=data.get('lumia_personality') or data.get('lumiaPersonality') or None,
            lumia_behavior=data.get('lumia_behavior') or data.get('lumiaBehavior') or None,
            avatar_url=data.get('lumia_img') or data.get('avatarUrl') or None,
            gender_identity=gender if gender is not None else GenderIdentity.SHE_HER,
            author_name=data.get('defAuthor') or data.get('authorName') or None,
            version=CANONICAL_VERSION,
        )


@dataclass(frozen=True)
class LoomItem:
    """
    Narrative-modifier record (style, utility or retrofit).

    `loom_category` holds the stored label itself when it is not a
    LoomCategory this version knows.
    """
    loom_name: str
    loom_content: str
    loom_category: Union[LoomCategory, Any]
    author_name: Optional[str] = None
    version: int = CANONICAL_VERSION
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.loom_name

    @property
    def category_label(self) -> str:
        return str(_wire(self.loom_category))

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            'loomName': self.loom_name,
            'loomContent': self.loom_content,
            'loomCategory': _wire(self.loom_category),
            'authorName': self.author_name,
            'version': self.version,
        })
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoomItem:
        """Build from a canonical item mapping. Never raises."""
        label = data.get('loomCategory')
        category = LoomCategory.from_label(label)
        return cls(
            loom_name=data.get('loomName'),
            loom_content=data.get('loomContent'),
            loom_category=category if category is not None else label,
            author_name=data.get('authorName'),
            version=data.get('version', CANONICAL_VERSION),
            extra=_extra(data, LOOM_KEYS),
        )

    @classmethod
    def from_legacy(cls, data: Mapping[str, Any]) -> LoomItem:
        """
        Field-renaming conversion; version is reset to the canonical version.

        Raises ValueError on an unknown category.
        """
        category = LoomCategory.from_label(data.get('loomCategory'))
        if category is None:
            raise ValueError(f"Unknown loom category: {data.get('loomCategory')!r}")
        return cls(
            loom_name=data.get('loomName'),
            loom_content=data.get('loomContent'),
            loom_category=category,
            author_name=data.get('authorName') or None,
            version=CANONICAL_VERSION,
        )


ContentItem = Union[LumiaItem, LoomItem]


# =============================================================================
# PACK
# =============================================================================

@dataclass(frozen=True)
class Pack:
    """
    Named, versioned collection of Lumia and Loom items.

    The unit of import and removal. Owned exclusively by SettingsState.
    `source_url` records provenance and is only serialized when known;
    `extra` carries pack keys this version does not define.
    """
    pack_name: str
    pack_author: Optional[str] = None
    cover_url: Optional[str] = None
    version: int = CANONICAL_VERSION
    pack_extras: Tuple[Any, ...] = field(default_factory=tuple)
    lumia_items: Tuple[LumiaItem, ...] = field(default_factory=tuple)
    loom_items: Tuple[LoomItem, ...] = field(default_factory=tuple)
    source_url: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def item_count(self) -> int:
        return len(self.lumia_items) + len(self.loom_items)

    def iter_items(self) -> Iterator[ContentItem]:
        yield from self.lumia_items
        yield from self.loom_items

    def find_lumia(self, name: str) -> Optional[LumiaItem]:
        for item in self.lumia_items:
            if item.lumia_name == name:
                return item
        return None

    def find_loom(self, name: str) -> Optional[LoomItem]:
        for item in self.loom_items:
            if item.loom_name == name:
                return item
        return None

    def loom_categories(self) -> Tuple[Any, ...]:
        """Distinct Loom categories in first-seen order."""
        seen = []
        for item in self.loom_items:
            if item.loom_category not in seen:
                seen.append(item.loom_category)
        return tuple(seen)

    def loom_category_labels(self) -> Tuple[str, ...]:
        labels = []
        for item in self.loom_items:
            if item.category_label not in labels:
                labels.append(item.category_label)
        return tuple(labels)

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            'packName': self.pack_name,
            'packAuthor': self.pack_author,
            'coverUrl': self.cover_url,
            'version': self.version,
            'packExtras': list(self.pack_extras),
            'lumiaItems': [item.to_dict() for item in self.lumia_items],
            'loomItems': [item.to_dict() for item in self.loom_items],
        })
        if self.source_url is not None:
            data['url'] = self.source_url
        return data

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        default_name: str = '',
        rejected: Optional[List[Rejection]] = None
    ) -> Pack:
        """
        Build from a canonical pack mapping. Never raises.

        Parts that cannot be kept at all (item collections or `packExtras`
        that are not lists, items that are not objects) are left out and,
        when `rejected` is given, appended to it.
        """
        if rejected is None:
            rejected = []
        return cls(
            pack_name=data.get('packName') or data.get('name') or default_name,
            pack_author=data.get('packAuthor'),
            cover_url=data.get('coverUrl'),
            version=data.get('version', CANONICAL_VERSION),
            pack_extras=extras_tuple(data.get('packExtras'), rejected),
            lumia_items=tuple(
                LumiaItem.from_dict(i) for i in _mappings('lumiaItems', data.get('lumiaItems'), rejected)
            ),
            loom_items=tuple(
                LoomItem.from_dict(i) for i in _mappings('loomItems', data.get('loomItems'), rejected)
            ),
            source_url=data.get('url'),
            extra=_extra(data, PACK_KEYS),
        )


def extras_tuple(value: Any, rejected: List[Rejection]) -> Tuple[Any, ...]:
    """`packExtras` as a tuple; anything but a list is rejected."""
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        rejected.append(('packExtras', None, f"Expected a list, got {type(value).__name__}"))
        return ()
    return tuple(value)


def _mappings(key: str, values: Any, rejected: List[Rejection]) -> Iterator[Mapping[str, Any]]:
    if values is None:
        return
    if not isinstance(values, (list, tuple)):
        rejected.append((key, None, f"Expected a list, got {type(values).__name__}"))
        return
    for index, value in enumerate(values):
        if not isinstance(value, Mapping):
            rejected.append((key, index, f"Item must be an object, got {type(value).__name__}"))
            continue
        yield value


# =============================================================================
# SELECTION REFERENCES
# =============================================================================

@dataclass(frozen=True)
class SelectionRef:
    """
    Non-owning (weak) reference to an item by pack and item name.

    May go dangling when its pack is removed elsewhere; resolution
    returns None instead of raising.
    """
    pack_name: str
    item_name: str

    def to_dict(self) -> Dict[str, str]:
        return {'packName': self.pack_name, 'itemName': self.item_name}

    @classmethod
    def from_value(cls, value: Any) -> Optional[SelectionRef]:
        """Parse a stored reference; anything that is not a well-formed mapping yields None."""
        if isinstance(value, SelectionRef):
            return value
        if not isinstance(value, Mapping):
            return None
        pack_name = value.get('packName')
        item_name = value.get('itemName')
        if not isinstance(pack_name, str) or not isinstance(item_name, str):
            return None
        return cls(pack_name=pack_name, item_name=item_name)
