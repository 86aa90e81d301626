"""
Settings Persistence Port

The engine never decides where settings live. The host supplies a
SettingsStore; the engine hands it the full settings mapping after every
mutation and receives it back verbatim on load.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional
import copy
import json
import os

from ..config import EngineConfig
from ..serialization import dumps_pretty


class SettingsStore(ABC):
    """Load/save port implemented by the persistence collaborator."""

    @abstractmethod
    def load(self) -> Optional[Dict[str, Any]]:
        """Return the persisted settings mapping, or None if nothing was saved yet."""

    @abstractmethod
    def save(self, settings: Dict[str, Any]) -> None:
        """Persist the full settings mapping."""


class InMemorySettingsStore(SettingsStore):
    """Keeps a deep copy; used by tests and by hosts that persist elsewhere."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data = copy.deepcopy(initial) if initial is not None else None
        self.save_count = 0

    def load(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data) if self._data is not None else None

    def save(self, settings: Dict[str, Any]) -> None:
        self._data = copy.deepcopy(settings)
        self.save_count += 1

    @property
    def data(self) -> Optional[Dict[str, Any]]:
        return self._data


class JsonFileSettingsStore(SettingsStore):
    """
    Settings kept as one pretty-printed JSON file.

    Writes go to a sibling temp file first and are moved into place, so a
    crash mid-write never leaves a truncated settings file. A failed
    write removes the temp file and re-raises.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[Dict[str, Any]]:
        if not self._path.exists():
            return None
        with open(self._path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def save(self, settings: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + '.tmp')
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                f.write(dumps_pretty(settings))
            os.replace(tmp_path, self._path)
        except Exception:
            if tmp_path.exists():
                tmp_path.unlink()
            raise


def store_from_config(config: EngineConfig) -> SettingsStore:
    """A file store when a settings path is configured, otherwise in-memory."""
    if config.settings_path:
        return JsonFileSettingsStore(Path(config.settings_path))
    return InMemorySettingsStore()
