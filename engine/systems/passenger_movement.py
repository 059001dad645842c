"""Passenger boarding and alighting when a train arrives at a station.

Alighting always runs before boarding, so a passenger transferring at a
station can board the very train that is standing there if it serves
their next leg.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from core.config import EconomyConfig
from engine.systems.economics import add_ticket_revenue, DEFAULT_ECONOMY

if TYPE_CHECKING:
    from core.components import Passenger, Train
    from core.game_state import GameState
    from core.metro_line import MetroLine
    from core.station import Station


logger = structlog.get_logger()


def is_train_heading_towards(train: Train, station_id: str, line: MetroLine) -> bool:
    """Check if a station lies ahead of the train in its travel direction.

    Linear lines compare indices against the direction. On loop lines every
    station is ahead both ways, so the train counts as heading towards the
    station when it is no farther in the train's direction than in the
    opposite one.
    """
    target_idx = line.index_of(station_id)
    if target_idx == -1:
        return False
    current_idx = train.current_station_idx

    if line.is_loop:
        count = len(line.unique_station_ids())
        if count == 0:
            return False
        current_idx %= count
        forward = (target_idx - current_idx) % count
        backward = (current_idx - target_idx) % count
        if forward == 0:
            return False
        if train.direction == 1:
            return forward <= backward
        return backward <= forward

    if train.direction == 1:
        return target_idx > current_idx
    return target_idx < current_idx


def should_passenger_board(passenger: Passenger, train: Train, line: MetroLine) -> bool:
    """Check if a waiting passenger wants this train.

    The train's line must serve both the passenger's station and their next
    waypoint, and the train must be heading towards that waypoint.
    """
    next_waypoint = passenger.next_waypoint
    current = passenger.current_station_id
    if next_waypoint is None or current is None:
        return False
    if not (line.contains_station(current) and line.contains_station(next_waypoint)):
        return False
    return is_train_heading_towards(train, next_waypoint, line)


def complete_journey(
    passenger: Passenger,
    state: GameState,
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> None:
    """Remove a passenger who reached their destination and collect the fare."""
    state.passengers = [p for p in state.passengers if p is not passenger]
    for station in state.stations.values():
        if station.remove_passenger(passenger):
            logger.warning(
                "Completed passenger was still queued",
                passenger_id=passenger.passenger_id,
                station_id=station.station_id,
            )
    passenger.clear_location()
    add_ticket_revenue(state, economy)


def handle_alighting(
    train: Train,
    station: Station,
    state: GameState,
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> int:
    """Let off every passenger whose next waypoint is this station.

    Returns:
        Number of passengers who alighted.
    """
    alighting = [p for p in train.passengers if p.next_waypoint == station.station_id]
    for passenger in alighting:
        train.remove_passenger(passenger)
        if station.station_id == passenger.destination_station_id:
            complete_journey(passenger, state, economy)
        else:
            passenger.wait_at(station.station_id)
            passenger.next_waypoint_index += 1
            station.add_passenger(passenger)
    return len(alighting)


def handle_boarding(train: Train, station: Station, state: GameState) -> int:
    """Board waiting passengers bound for this train's next stops.

    Returns:
        Number of passengers who boarded.
    """
    line = state.get_line(train.line_id)
    if line is None:
        logger.warning("Train line not found", train_id=train.train_id, line_id=train.line_id)
        return 0

    boarded = 0
    for passenger in list(station.passengers):
        if train.is_full():
            break
        if not passenger.is_waiting() or passenger.current_station_id != station.station_id:
            continue
        if should_passenger_board(passenger, train, line):
            station.remove_passenger(passenger)
            passenger.board(train.train_id)
            train.passengers.append(passenger)
            boarded += 1
    return boarded


def update_passenger_movement(
    train: Train,
    station: Station,
    state: GameState,
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> None:
    """Run alighting then boarding for a train standing at a station."""
    handle_alighting(train, station, state, economy)
    handle_boarding(train, station, state)
