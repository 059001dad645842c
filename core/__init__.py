"""Core data models for the MetroMap simulation."""

from .constants import (
    TileType,
    MapType,
    RiverType,
    Edge,
    LineColor,
    TrainState,
    LINE_COLOR_HEX,
    MAP_WIDTH,
    MAP_HEIGHT,
    TRAIN_MAX_CAPACITY,
    MAX_TRAINS_PER_LINE,
    MIN_TRAINS_PER_LINE,
    MIN_STATIONS_PER_LINE,
    STARTING_MONEY,
    VALID_SPEEDS,
    SAVE_GAME_KEY,
)

from .config import (
    MapConfig,
    TrainConfig,
    EconomyConfig,
    SpawnConfig,
    SimulationConfig,
    DEFAULT_CONFIG,
)

from .rng import SeededRandom

from .map_grid import TilePos, GridSquare, MapGrid

from .station import (
    StationId,
    Station,
    make_station_id,
    parse_station_id,
    generate_station_label,
)

from .metro_line import LineId, MetroLine, is_line_loop, can_add_station_to_line

from .components import Passenger, Train

from .game_state import GameState, StateLoadError, game_start_time_ms

__all__ = [
    # Constants
    "TileType",
    "MapType",
    "RiverType",
    "Edge",
    "LineColor",
    "TrainState",
    "LINE_COLOR_HEX",
    "MAP_WIDTH",
    "MAP_HEIGHT",
    "TRAIN_MAX_CAPACITY",
    "MAX_TRAINS_PER_LINE",
    "MIN_TRAINS_PER_LINE",
    "MIN_STATIONS_PER_LINE",
    "STARTING_MONEY",
    "VALID_SPEEDS",
    "SAVE_GAME_KEY",
    # Config
    "MapConfig",
    "TrainConfig",
    "EconomyConfig",
    "SpawnConfig",
    "SimulationConfig",
    "DEFAULT_CONFIG",
    # RNG
    "SeededRandom",
    # Map
    "TilePos",
    "GridSquare",
    "MapGrid",
    # Stations
    "StationId",
    "Station",
    "make_station_id",
    "parse_station_id",
    "generate_station_label",
    # Lines
    "LineId",
    "MetroLine",
    "is_line_loop",
    "can_add_station_to_line",
    # Components
    "Passenger",
    "Train",
    # Game State
    "GameState",
    "StateLoadError",
    "game_start_time_ms",
]
