"""
Content Rendering

Values the host's macro and panel layers display: selected content joined
into prompt text, the OOC trigger, a random Lumia pick, and short status
labels. Registration of macros is the host's concern; this module only
computes the strings.

All functions read a SettingsState snapshot and never mutate it. Dangling
selections are skipped, never pruned.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional
import math
import random

from ..contracts.packs import LumiaItem
from ..settings.state import SettingsState
from . import SelectionResolver


OOC_REMINDER = (
    "**OOC Commentary Reminder!** The Gods' want me to speak up to the Human "
    "now in the out-of-context comments! Perfect, I've got a lot I want to say "
    "and I want them to hear my voice loud and clear!"
)
ITEM_NOT_FOUND = "Item not found (Maybe pack removed?)"
NO_PACKS_SELECTION = "No selection possible (Load packs first)"


def _join(texts: Iterable[Optional[str]], separator: str) -> str:
    parts = [t.strip() for t in texts if t and t.strip()]
    return separator.join(parts).strip()


# =============================================================================
# SELECTED CONTENT
# =============================================================================

def definition_content(state: SettingsState) -> str:
    item = SelectionResolver(state.packs).lumia(state.selected_definition)
    if item is None:
        return ""
    return (item.lumia_definition or "").strip()


def behavior_content(state: SettingsState) -> str:
    resolver = SelectionResolver(state.packs)
    items = resolver.resolve_many(state.selected_behaviors, resolver.lumia)
    return _join((i.lumia_behavior for i in items), "\n")


def personality_content(state: SettingsState) -> str:
    resolver = SelectionResolver(state.packs)
    items = resolver.resolve_many(state.selected_personalities, resolver.lumia)
    return _join((i.lumia_personality for i in items), "\n\n")


def loom_style_content(state: SettingsState) -> str:
    item = SelectionResolver(state.packs).loom(state.selected_loom_style)
    if item is None:
        return ""
    return (item.loom_content or "").strip()


def loom_utilities_content(state: SettingsState) -> str:
    resolver = SelectionResolver(state.packs)
    items = resolver.resolve_many(state.selected_loom_utils, resolver.loom)
    return _join((i.loom_content for i in items), "\n\n")


def loom_retrofits_content(state: SettingsState) -> str:
    resolver = SelectionResolver(state.packs)
    items = resolver.resolve_many(state.selected_loom_retrofits, resolver.loom)
    return _join((i.loom_content for i in items), "\n\n")


# =============================================================================
# OOC TRIGGER
# =============================================================================

def ooc_trigger(message_count: int, interval: Optional[int]) -> str:
    """Reminder text when the message count lands on the interval."""
    if not interval or interval <= 0:
        return ""
    if message_count % interval == 0:
        return OOC_REMINDER
    return ""


def messages_until_ooc(message_count: int, interval: Optional[int]) -> str:
    if not interval or interval <= 0:
        return ""
    next_trigger = math.ceil(message_count / interval) * interval
    remaining = next_trigger - message_count
    if remaining == 0:
        return "OOC trigger active now!"
    return f"{remaining} message{'s' if remaining != 1 else ''} until next OOC trigger"


# =============================================================================
# RANDOM PICK
# =============================================================================

class RandomLumiaPicker:
    """
    Picks one Lumia item across all packs and keeps it until `reset()`,
    so every macro expanded during one generation sees the same character.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._current: Optional[LumiaItem] = None

    def current(self, state: SettingsState) -> Optional[LumiaItem]:
        if self._current is None:
            pool: List[LumiaItem] = [
                item for pack in state.packs.values() for item in pack.lumia_items
            ]
            if pool:
                self._current = self._rng.choice(pool)
        return self._current

    def reset(self) -> None:
        """Call at generation start."""
        self._current = None


# =============================================================================
# STATUS LABELS
# =============================================================================

def status_summary(state: SettingsState) -> str:
    if not state.packs:
        return "No Packs loaded"
    return f"Loaded {len(state.packs)} packs ({state.total_items} items total)"


def selection_labels(state: SettingsState) -> Dict[str, str]:
    """Display text for every selection slot, dangling references filtered."""
    slots = ('definition', 'behaviors', 'personalities', 'loom_style', 'loom_utils', 'loom_retrofits')
    if not state.packs:
        return {slot: NO_PACKS_SELECTION for slot in slots}

    resolver = SelectionResolver(state.packs)

    def single(ref, lookup, empty: str) -> str:
        if ref is None:
            return empty
        item = lookup(ref)
        return f"{item.name} ({ref.pack_name})" if item else ITEM_NOT_FOUND

    def multi(refs, lookup, empty: str) -> str:
        names = [item.name for item in resolver.resolve_many(refs, lookup) if item.name]
        return ", ".join(names) if names else empty

    return {
        'definition': single(state.selected_definition, resolver.lumia, "No definition selected"),
        'behaviors': multi(state.selected_behaviors, resolver.lumia, "No behaviors selected"),
        'personalities': multi(state.selected_personalities, resolver.lumia, "No personalities selected"),
        'loom_style': single(state.selected_loom_style, resolver.loom, "No style selected"),
        'loom_utils': multi(state.selected_loom_utils, resolver.loom, "No utilities selected"),
        'loom_retrofits': multi(state.selected_loom_retrofits, resolver.loom, "No retrofits selected"),
    }
