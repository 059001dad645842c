"""Map generation and save-game persistence for the MetroMap engine."""

from .map_generator import (
    MapGenerator,
    generate_map,
)

from .persistence import (
    serialize_state,
    parse_state,
    KeyValueStore,
    InMemoryStore,
    JsonFileStore,
    SaveSlot,
)

__all__ = [
    # Generator
    "MapGenerator",
    "generate_map",
    # Persistence
    "serialize_state",
    "parse_state",
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
    "SaveSlot",
]
