"""Save-game persistence for the MetroMap simulation.

Game state is written as JSON text. Storage goes through a small
key-value port so the controller never touches a global store:

    store = JsonFileStore("saves.json")
    slot = SaveSlot(store)
    slot.save(state)
    restored = slot.load()  # None if missing or corrupt

A corrupt or unreadable save is treated as no save at all.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Protocol

import structlog

from core.constants import SAVE_GAME_KEY
from core.game_state import GameState, StateLoadError


logger = structlog.get_logger()


def serialize_state(state: GameState) -> str:
    """Serialize a game state to JSON text."""
    return json.dumps(state.to_dict(), separators=(",", ":"))


def parse_state(text: Optional[str]) -> Optional[GameState]:
    """Parse JSON text back into a game state.

    Older saves missing optional fields are filled with defaults.

    Returns:
        The state, or None (with a warning logged) if the text is empty,
        not JSON, or not a valid game state.
    """
    if not text:
        return None
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        logger.warning("Saved game is not valid JSON", error=str(e))
        return None
    try:
        return GameState.from_dict(data)
    except StateLoadError as e:
        logger.warning("Saved game could not be loaded", error=str(e))
        return None


class KeyValueStore(Protocol):
    """Host storage for named text blobs."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStore:
    """Dict-backed store, for tests and headless hosts."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStore:
    """Store kept as a single JSON object on disk.

    The whole file is rewritten on every change.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Store file is unreadable; treating as empty", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("Store file is not a JSON object; treating as empty", path=str(self.path))
            return {}
        return data

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class SaveSlot:
    """One named save game in a key-value store.

    Attributes:
        store: Backing store.
        key: Name of the blob holding the save.
    """

    def __init__(self, store: KeyValueStore, key: str = SAVE_GAME_KEY):
        self.store = store
        self.key = key

    def load(self) -> Optional[GameState]:
        """Load the saved game, or None if there is no usable save."""
        return parse_state(self.store.get(self.key))

    def save(self, state: GameState) -> None:
        """Overwrite the save with a state."""
        self.store.set(self.key, serialize_state(state))

    def clear(self) -> None:
        """Delete the save."""
        self.store.delete(self.key)

    def exists(self) -> bool:
        """Check if a usable save is present."""
        return self.load() is not None
