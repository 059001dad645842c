"""Train movement for the MetroMap simulation.

Each train runs a two-state machine, MOVING -> STOPPED -> MOVING, for as
long as its line exists. Distances are grid units; dwell is expressed as a
distance too, so stop time scales with train speed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from core.components import Train
from core.config import SimulationConfig, TrainConfig, DEFAULT_CONFIG
from core.constants import TrainState
from engine.route_geometry import (
    calculate_segment_path,
    calculate_segment_length,
    calculate_snap_angle,
    reverse_segment,
    zero_length_segment,
)
from engine.systems.economics import deduct_train_running_cost
from engine.systems.passenger_movement import update_passenger_movement

if TYPE_CHECKING:
    from core.game_state import GameState
    from core.metro_line import MetroLine


logger = structlog.get_logger()


# -----------------------------------------------------------------------------
# Placement
# -----------------------------------------------------------------------------


def calculate_start_station_idx(train_number: int, direction: int, station_count: int) -> int:
    """Starting index for the nth train on a line (1-based).

    Trains 1 and 2 start at opposite ends; later trains start mid-line so
    they spread out immediately.
    """
    if train_number <= 2:
        return 0 if direction == 1 else max(station_count - 1, 0)
    if direction == 1:
        return station_count // 2
    return station_count - 1 - station_count // 2


def create_train(
    train_id: str,
    line: MetroLine,
    direction: int,
    start_station_idx: int,
    capacity: int,
) -> Train:
    """Create a train at a station, aimed at the neighbor in its direction."""
    if direction == 1:
        target = min(start_station_idx + 1, len(line.station_ids) - 1)
    else:
        target = max(start_station_idx - 1, 0)
    return Train(
        train_id=train_id,
        line_id=line.line_id,
        state=TrainState.MOVING,
        current_station_idx=start_station_idx,
        target_station_idx=target,
        direction=direction,
        capacity=capacity,
    )


def place_next_train(state: GameState, line: MetroLine, train_config: TrainConfig) -> Train:
    """Create the line's next train by ordinal, cache its path and attach it.

    Odd ordinals run forward, even ordinals backward.
    """
    train_number = len(line.trains) + 1
    direction = 1 if train_number % 2 == 1 else -1
    start_idx = calculate_start_station_idx(train_number, direction, len(line.station_ids))
    train = create_train(
        state.next_id("train"), line, direction, start_idx, train_config.CAPACITY
    )
    line.trains.append(train)
    update_train_path(train, line, state)
    return train


def initialize_trains(state: GameState, config: SimulationConfig = DEFAULT_CONFIG) -> None:
    """Give every line without trains its first train and fill missing paths."""
    for line in state.lines.values():
        if not line.trains:
            if len(line.station_ids) >= 2:
                place_next_train(state, line, config.train)
            continue
        for train in line.trains:
            if train.current_segment is None:
                update_train_path(train, line, state)


# -----------------------------------------------------------------------------
# Path caching
# -----------------------------------------------------------------------------


def update_train_path(train: Train, line: MetroLine, state: GameState) -> bool:
    """Compute and cache the path for the train's current -> target leg.

    The path is always computed in increasing-index order, looking ahead to
    the station after the leg, and reversed for trains travelling towards
    lower indices. A train's path is therefore identical to the line's
    as-built path in either direction.

    Returns:
        True if a path was cached, False if a station lookup failed.
    """
    ids = line.station_ids
    idx_a, idx_b = train.current_station_idx, train.target_station_idx
    if not (0 <= idx_a < len(ids) and 0 <= idx_b < len(ids)):
        logger.warning(
            "Train station index out of range",
            train_id=train.train_id,
            line_id=line.line_id,
            current=idx_a,
            target=idx_b,
        )
        return False

    station_a = state.get_station(ids[idx_a])
    station_b = state.get_station(ids[idx_b])
    if station_a is None or station_b is None:
        logger.warning(
            "Train station not found",
            train_id=train.train_id,
            line_id=line.line_id,
            station_ids=[ids[idx_a], ids[idx_b]],
        )
        return False

    if station_a.station_id == station_b.station_id:
        train.current_segment = zero_length_segment(station_a)
        train.total_length = 0.0
        return True

    low, high = min(idx_a, idx_b), max(idx_a, idx_b)
    canonical_from = state.get_station(ids[low])
    canonical_to = state.get_station(ids[high])

    hint = None
    if high + 1 < len(ids):
        after = state.get_station(ids[high + 1])
        if after is not None:
            hint = calculate_snap_angle(canonical_to, after)

    segment = calculate_segment_path(canonical_from, canonical_to, hint)
    if idx_a > idx_b:
        segment = reverse_segment(segment)

    train.current_segment = segment
    train.total_length = calculate_segment_length(segment)
    return True


# -----------------------------------------------------------------------------
# Ticking
# -----------------------------------------------------------------------------


def advance_target(train: Train, line: MetroLine) -> None:
    """Pick the next target after arriving at the current station.

    Loop lines wrap around; linear lines reverse at either end.
    """
    count = len(line.station_ids)
    current = train.current_station_idx

    if line.is_loop:
        train.target_station_idx = (current + train.direction) % count
        return

    if train.direction == 1:
        if current >= count - 1:
            train.direction = -1
            train.target_station_idx = current - 1
        else:
            train.target_station_idx = current + 1
    else:
        if current <= 0:
            train.direction = 1
            train.target_station_idx = current + 1
        else:
            train.target_station_idx = current - 1


def speed_factor(covered: float, remaining: float, train_config: TrainConfig) -> float:
    """Linear ramp up leaving a station and down approaching the next."""
    accel = train_config.ACCEL_DISTANCE
    floor = train_config.MIN_SPEED_FACTOR
    factor = 1.0
    if covered < accel:
        factor = min(factor, max(floor, covered / accel))
    if remaining < accel:
        factor = min(factor, max(floor, remaining / accel))
    return factor


def arrive(train: Train, line: MetroLine, state: GameState, config: SimulationConfig) -> None:
    """Snap to the target station, stop, and exchange passengers."""
    train.current_station_idx = train.target_station_idx
    train.progress = 0.0
    train.state = TrainState.STOPPED
    train.dwell_remaining = config.train.DWELL_DISTANCE

    # Direction must be settled before boarding decisions
    advance_target(train, line)

    station = state.get_station(line.station_ids[train.current_station_idx])
    if station is None:
        logger.warning(
            "Arrival station not found",
            train_id=train.train_id,
            station_id=line.station_ids[train.current_station_idx],
        )
    else:
        update_passenger_movement(train, station, state, config.economy)

    update_train_path(train, line, state)


def update_train(
    train: Train,
    line: MetroLine,
    state: GameState,
    delta_seconds: float,
    config: SimulationConfig = DEFAULT_CONFIG,
) -> None:
    """Advance one train by delta_seconds of simulated time."""
    if train.current_segment is None and not update_train_path(train, line, state):
        return

    if train.state == TrainState.STOPPED:
        train.dwell_remaining -= config.train.SPEED * delta_seconds
        if train.dwell_remaining > 0:
            return
        train.state = TrainState.MOVING
        train.dwell_remaining = 0.0

    length = train.total_length
    covered = train.progress * length
    remaining = max(0.0, length - covered)

    move = config.train.SPEED * speed_factor(covered, remaining, config.train) * delta_seconds
    move = min(move, remaining)
    deduct_train_running_cost(state, move, config.economy)

    train.progress = train.progress + move / length if length > 0 else 1.0
    if train.progress >= 1.0 or move >= remaining:
        arrive(train, line, state, config)


def update_trains(
    state: GameState,
    delta_seconds: float,
    config: SimulationConfig = DEFAULT_CONFIG,
) -> None:
    """Advance every train on every line.

    Args:
        state: Game state to mutate.
        delta_seconds: Simulated seconds since the last tick (already
            scaled by game speed).
        config: Simulation tunables.
    """
    for line in list(state.lines.values()):
        for train in list(line.trains):
            update_train(train, line, state, delta_seconds, config)
