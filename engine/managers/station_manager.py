"""Station placement and removal."""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import structlog

from core.config import EconomyConfig
from core.station import Station, StationId, make_station_id, generate_station_label
from engine.systems.economics import deduct_station_cost

from .results import ActionResult, ValidationResult

if TYPE_CHECKING:
    from core.game_state import GameState


logger = structlog.get_logger()


class StationManager:
    """Validates and applies station operations on a game state.

    Placement rules:
    - The vertex lies on the grid (0 <= v <= width / height)
    - At least one of the four touching tiles is land
    - No station already sits on the vertex
    - No station sits on a 4-connected neighboring vertex
    """

    def __init__(self, state: GameState, economy: Optional[EconomyConfig] = None):
        self.state = state
        self.economy = economy or EconomyConfig()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def has_station_at(self, vertex_x: int, vertex_y: int) -> bool:
        """Check if a station occupies a vertex."""
        return make_station_id(vertex_x, vertex_y) in self.state.stations

    def has_adjacent_station(self, vertex_x: int, vertex_y: int) -> bool:
        """Check the four orthogonally neighboring vertices for stations."""
        return any(
            self.has_station_at(vertex_x + dx, vertex_y + dy)
            for dx, dy in ((-1, 0), (1, 0), (0, -1), (0, 1))
        )

    def is_water(self, vertex_x: int, vertex_y: int) -> bool:
        """Check if all four tiles around a vertex are water."""
        return self.state.map.is_water_vertex(vertex_x, vertex_y)

    def is_on_land(self, vertex_x: int, vertex_y: int) -> bool:
        """Check if any tile around a vertex is land."""
        return self.state.map.is_land_vertex(vertex_x, vertex_y)

    def get_station_at(self, vertex_x: int, vertex_y: int) -> Optional[Station]:
        return self.state.stations.get(make_station_id(vertex_x, vertex_y))

    def get_station_by_id(self, station_id: StationId) -> Optional[Station]:
        return self.state.stations.get(station_id)

    def get_all_stations(self) -> list[Station]:
        return list(self.state.stations.values())

    # -------------------------------------------------------------------------
    # Placement
    # -------------------------------------------------------------------------

    def can_place_station(self, vertex_x: int, vertex_y: int) -> ValidationResult:
        """Check every placement rule, in order."""
        game_map = self.state.map
        if not 0 <= vertex_x <= game_map.width:
            return ValidationResult(False, "X coordinate out of bounds")
        if not 0 <= vertex_y <= game_map.height:
            return ValidationResult(False, "Y coordinate out of bounds")
        if self.is_water(vertex_x, vertex_y):
            return ValidationResult(False, "Cannot place station on water")
        if self.has_station_at(vertex_x, vertex_y):
            return ValidationResult(False, "Station already exists at this location")
        if self.has_adjacent_station(vertex_x, vertex_y):
            return ValidationResult(False, "Cannot place station adjacent to another station")
        return ValidationResult(True)

    def place_station(self, vertex_x: int, vertex_y: int) -> ActionResult:
        """Place a station and charge for it.

        Returns:
            ActionResult with the new Station as data on success.
        """
        validation = self.can_place_station(vertex_x, vertex_y)
        if not validation.valid:
            return ActionResult.fail(validation.reason)

        label = generate_station_label(len(self.state.stations))
        station = Station.create(vertex_x, vertex_y, label)
        deduct_station_cost(self.state, self.economy)
        self.state.stations[station.station_id] = station

        logger.info("Station placed", station_id=station.station_id, label=label)
        return ActionResult.ok(station)

    # -------------------------------------------------------------------------
    # Removal
    # -------------------------------------------------------------------------

    def can_remove_station(self, station_id: StationId) -> ValidationResult:
        if station_id not in self.state.stations:
            return ValidationResult(False, "Station not found")
        if self.state.lines_for_station(station_id):
            return ValidationResult(False, "Cannot remove station that is part of a line")
        return ValidationResult(True)

    def remove_station(self, station_id: StationId) -> ActionResult:
        """Remove a station that no line references.

        Passengers still waiting there are dropped from the roster.
        """
        validation = self.can_remove_station(station_id)
        if not validation.valid:
            return ActionResult.fail(validation.reason)

        station = self.state.stations.pop(station_id)
        if station.passengers:
            dropped = {id(p) for p in station.passengers}
            self.state.passengers = [p for p in self.state.passengers if id(p) not in dropped]
            for passenger in station.passengers:
                passenger.clear_location()
            station.passengers.clear()

        logger.info("Station removed", station_id=station_id)
        return ActionResult.ok(station)
