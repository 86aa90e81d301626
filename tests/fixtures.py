"""
Shared Test Fixtures

Versioned, deterministic payloads covering every supported input
generation. All fixtures are explicit - no random generation.
"""

import copy


# =============================================================================
# WORLD BOOK (knowledge-entry collection)
# =============================================================================

WORLD_BOOK = {
    "entries": {
        "0": {
            "comment": "Lumia_Description (Aria)",
            "content": "A quiet librarian. [lumia_img=http://x/img.png][lumia_author=Bob]",
        },
        "1": {
            "comment": "Lumia Behavior (Aria)",
            "content": "  Speaks softly.  ",
        },
        "2": {
            "comment": "Lumia Personality (Aria)",
            "content": "Patient and kind.",
        },
        "3": {
            "comment": "Narrative Style (Gothic)",
            "content": "Write in a dark tone.",
        },
        "4": {
            "comment": "Loom Utilities (Dice Roller)",
            "content": "  Roll a d20 when uncertain.  ",
        },
        "5": {
            "comment": "Retrofits (Fixer)",
            "content": "Repair broken continuity.",
        },
        "6": {
            "comment": "Random note without a name",
            "content": "Ignored entirely.",
        },
        "7": {
            "comment": "Lumia (Bram)",
            "content": "A blacksmith with soot on his hands.",
        },
        "8": {
            "comment": "Misc (Cora)",
            "content": "Nothing marks what this is.",
        },
        "9": {
            "comment": "Lumia Definition (Dahlia)",
        },
    }
}

WORLD_BOOK_LUMIA_NAMES = ["Aria", "Bram"]
WORLD_BOOK_LOOM_NAMES = ["Gothic", "Dice Roller", "Fixer"]
WORLD_BOOK_SKIPPED = 3


# =============================================================================
# OLDER FLAT LIBRARY (pre-pack settings)
# =============================================================================

LEGACY_LIBRARY = [
    {"lumiaDefName": "Aria", "lumiaDef": "A quiet librarian.", "lumia_img": "http://x/aria.png",
     "lumia_personality": "Patient.", "lumia_behavior": "Speaks softly.", "defAuthor": "Bob"},
    {"lumiaDefName": "Bram", "lumiaDef": "A blacksmith.", "lumia_img": None,
     "lumia_personality": None, "lumia_behavior": "Hammers.", "defAuthor": None},
    {"lumiaDefName": "Cora", "lumiaDef": "A cartographer.", "lumia_img": None,
     "lumia_personality": "Curious.", "lumia_behavior": None, "defAuthor": None},
    {"lumiaDefName": None, "lumiaDef": "Nameless.", "lumia_img": None,
     "lumia_personality": None, "lumia_behavior": None, "defAuthor": None},
    {"lumiaDefName": "Eve", "lumiaDef": "A diver.", "lumia_img": None,
     "lumia_personality": "Bold.", "lumia_behavior": "Dives.", "defAuthor": "Zed"},
]


def legacy_settings(**overrides):
    """Settings as saved before packs existed."""
    settings = {
        "lumiaLibrary": copy.deepcopy(LEGACY_LIBRARY),
        "worldBookUrl": "https://example.com/books/lumia.json",
        "selectedDefinition": 2,
        "selectedBehaviors": [0, 1],
        "selectedPersonalities": [4],
        "lumiaOOCInterval": 10,
    }
    settings.update(overrides)
    return settings


# =============================================================================
# OLDER INTERNAL PACK (items array)
# =============================================================================

LEGACY_PACK = {
    "name": "Old Pack",
    "author": "Mira",
    "coverUrl": "http://x/cover.png",
    "items": [
        {"lumiaDefName": "Aria", "lumiaDef": "A quiet librarian.", "lumia_img": "http://x/aria.png",
         "lumia_personality": "Patient.", "lumia_behavior": "Speaks softly.", "defAuthor": "Bob"},
        {"lumiaName": "Bram", "lumiaDefinition": "A blacksmith.", "genderIdentity": 1},
        {"loomName": "Gothic", "loomContent": "Write in a dark tone.", "loomCategory": "Narrative Style"},
        {"loomName": "Mystery", "loomContent": "???", "loomCategory": "Unknown Category"},
        {"note": "neither shape"},
    ],
}


# =============================================================================
# CANONICAL PACK
# =============================================================================

CANONICAL_PACK = {
    "packName": "Canon",
    "packAuthor": "Mira",
    "coverUrl": "http://x/cover.png",
    "version": 1,
    "packExtras": [{"type": "note", "text": "hello"}],
    "lumiaItems": [
        {
            "lumiaName": "Aria",
            "lumiaDefinition": "A quiet librarian.",
            "lumiaPersonality": "Patient.",
            "lumiaBehavior": "Speaks softly.",
            "avatarUrl": "http://x/aria.png",
            "genderIdentity": 0,
            "authorName": "Bob",
            "version": 1,
        },
        {
            "lumiaName": "Bram",
            "lumiaDefinition": "A blacksmith.",
            "lumiaPersonality": None,
            "lumiaBehavior": "Hammers.",
            "avatarUrl": None,
            "genderIdentity": 1,
            "authorName": None,
            "version": 1,
        },
    ],
    "loomItems": [
        {
            "loomName": "Gothic",
            "loomContent": "Write in a dark tone.",
            "loomCategory": "Narrative Style",
            "authorName": None,
            "version": 1,
        },
        {
            "loomName": "Dice Roller",
            "loomContent": "Roll a d20.",
            "loomCategory": "Loom Utilities",
            "authorName": None,
            "version": 1,
        },
    ],
}


def canonical_pack(**overrides):
    pack = copy.deepcopy(CANONICAL_PACK)
    pack.update(overrides)
    return pack
