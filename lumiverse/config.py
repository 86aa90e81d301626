"""
Engine Configuration

Constants that older settings and converted files depend on, gathered in
one frozen config object. Defaults match what previously saved settings
expect; environment overrides exist for hosts that relocate the settings
file.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional
import os


LEGACY_PACK_LABEL = "Default (Legacy)"
LEGACY_SOURCE_MARKER = "Legacy"
CONVERTED_SUFFIX = ".converted.json"
DEFAULT_SOURCE_NAME = "Converted Pack"
DEFAULT_OOC_STYLE = "social"
AUDIT_LOG_MAX_ENTRIES = 10_000

SETTINGS_PATH_ENV = "LUMIVERSE_SETTINGS_PATH"
LEGACY_LABEL_ENV = "LUMIVERSE_LEGACY_LABEL"


@dataclass(frozen=True)
class EngineConfig:
    """Configuration shared by the assembler, migrator and settings service."""
    legacy_pack_label: str = LEGACY_PACK_LABEL
    legacy_source_marker: str = LEGACY_SOURCE_MARKER
    converted_suffix: str = CONVERTED_SUFFIX
    default_source_name: str = DEFAULT_SOURCE_NAME
    default_ooc_style: str = DEFAULT_OOC_STYLE
    settings_path: Optional[str] = None
    audit_log_max_entries: Optional[int] = AUDIT_LOG_MAX_ENTRIES

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Defaults overridden by LUMIVERSE_* environment variables."""
        config = cls()
        settings_path = os.environ.get(SETTINGS_PATH_ENV)
        if settings_path:
            config = replace(config, settings_path=settings_path)
        legacy_label = os.environ.get(LEGACY_LABEL_ENV)
        if legacy_label:
            config = replace(config, legacy_pack_label=legacy_label)
        return config
