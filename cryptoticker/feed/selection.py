"""
Persistence of the selected symbol set.
"""

import json
import os
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence

from cryptoticker.catalog import is_known_symbol
from cryptoticker.config import DEFAULT_SELECTION, SELECTION_KEY, SETTINGS_PATH
from cryptoticker.utils import setup_logging

logger = setup_logging()


class SettingsStore(Protocol):
    """Durable key-value storage for lists of strings."""

    def load(self, key: str) -> Optional[List[str]]:
        ...

    def save(self, key: str, values: Sequence[str]) -> None:
        ...


class JsonSettingsStore:
    """
    Settings kept as one JSON object in a file.

    A missing or unreadable file reads as empty. Writes replace the file
    atomically.
    """

    def __init__(self, path: str = SETTINGS_PATH):
        self.path = Path(path).expanduser()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read settings {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, key: str) -> Optional[List[str]]:
        value = self._read().get(key)
        if not isinstance(value, list):
            return None
        return [v for v in value if isinstance(v, str)]

    def save(self, key: str, values: Sequence[str]) -> None:
        data = self._read()
        data[key] = list(values)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)


class SelectionPersistence:
    """Loads and saves the selection set under one fixed key."""

    def __init__(
        self,
        settings: Optional[SettingsStore] = None,
        key: str = SELECTION_KEY,
        default: Iterable[str] = DEFAULT_SELECTION
    ):
        self._settings = settings if settings is not None else JsonSettingsStore()
        self._key = key
        self._default = list(default)

    def load(self) -> List[str]:
        """
        Load the saved selection.

        Unknown and duplicate symbols are dropped. Returns the default
        selection when nothing has been saved yet.
        """
        stored = self._settings.load(self._key)
        if stored is None:
            logger.info(f"No saved selection, using default {self._default}")
            return list(self._default)

        selection: List[str] = []
        for symbol in stored:
            if not is_known_symbol(symbol):
                logger.warning(f"Ignoring unknown saved symbol: {symbol}")
                continue
            if symbol not in selection:
                selection.append(symbol)
        return selection

    def save(self, symbols: Iterable[str]):
        self._settings.save(self._key, list(symbols))
