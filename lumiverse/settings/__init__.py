"""
Settings Layer

RESPONSIBILITY: The settings container and its persistence port
OUTPUTS: SettingsState mutated in place, saved through a SettingsStore

The coordinating SettingsService lives in `lumiverse.settings.service`;
it is not re-exported here because it depends on the migration layer,
which itself builds SettingsState values.
"""

from .state import SettingsState, CURRENT_SCHEMA_VERSION
from .store import (
    SettingsStore, InMemorySettingsStore, JsonFileSettingsStore, store_from_config
)

__all__ = [
    "SettingsState", "CURRENT_SCHEMA_VERSION",
    "SettingsStore", "InMemorySettingsStore", "JsonFileSettingsStore", "store_from_config",
]
