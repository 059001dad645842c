"""Configuration for the MetroMap simulation.

Tunables are grouped into frozen dataclasses whose defaults come from
core.constants. Systems take a SimulationConfig so tests and hosts can
override balance values without touching module state.
"""

from dataclasses import dataclass, field

from .constants import (
    MAP_WIDTH,
    MAP_HEIGHT,
    TRAIN_MAX_CAPACITY,
    TRAIN_DEFAULT_SPEED,
    TRAIN_STOP_DURATION_SQUARES,
    TRAIN_ACCEL_DECEL_DISTANCE,
    TRAIN_MIN_SPEED_FACTOR,
    MAX_TRAINS_PER_LINE,
    MIN_TRAINS_PER_LINE,
    STARTING_MONEY,
    STATION_BUILD_COST,
    LINE_BUILD_COST_PER_SQUARE,
    TRAIN_RUNNING_COST_PER_SQUARE,
    TICKET_REVENUE,
    BASE_SPAWN_RATE,
    CATCHMENT_NORMALIZER,
    RUSH_HOUR_MULTIPLIER,
    NIGHT_MULTIPLIER,
    GAME_MS_PER_REAL_SECOND,
)


@dataclass(frozen=True)
class MapConfig:
    """Dimensions of generated maps."""

    WIDTH: int = MAP_WIDTH
    HEIGHT: int = MAP_HEIGHT


@dataclass(frozen=True)
class TrainConfig:
    """Train physics and capacity.

    Distances are grid units; dwell is expressed as the distance a train
    would cover at default speed, so stop time scales with speed.
    """

    SPEED: float = TRAIN_DEFAULT_SPEED
    DWELL_DISTANCE: float = TRAIN_STOP_DURATION_SQUARES
    ACCEL_DISTANCE: float = TRAIN_ACCEL_DECEL_DISTANCE
    MIN_SPEED_FACTOR: float = TRAIN_MIN_SPEED_FACTOR
    CAPACITY: int = TRAIN_MAX_CAPACITY
    MAX_PER_LINE: int = MAX_TRAINS_PER_LINE
    MIN_PER_LINE: int = MIN_TRAINS_PER_LINE


@dataclass(frozen=True)
class EconomyConfig:
    """Costs and revenue."""

    STARTING_MONEY: float = STARTING_MONEY
    STATION_COST: float = STATION_BUILD_COST
    LINE_COST_PER_UNIT: float = LINE_BUILD_COST_PER_SQUARE
    RUNNING_COST_PER_UNIT: float = TRAIN_RUNNING_COST_PER_SQUARE
    FARE: float = TICKET_REVENUE


@dataclass(frozen=True)
class SpawnConfig:
    """Passenger spawn tuning."""

    BASE_RATE: float = BASE_SPAWN_RATE
    CATCHMENT_NORMALIZER: float = CATCHMENT_NORMALIZER
    RUSH_MULTIPLIER: float = RUSH_HOUR_MULTIPLIER
    NIGHT_MULTIPLIER: float = NIGHT_MULTIPLIER


@dataclass(frozen=True)
class SimulationConfig:
    """All simulation tunables."""

    map: MapConfig = field(default_factory=MapConfig)
    train: TrainConfig = field(default_factory=TrainConfig)
    economy: EconomyConfig = field(default_factory=EconomyConfig)
    spawn: SpawnConfig = field(default_factory=SpawnConfig)
    GAME_MS_PER_REAL_SECOND: float = GAME_MS_PER_REAL_SECOND


DEFAULT_CONFIG = SimulationConfig()
