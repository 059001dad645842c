"""Probabilistic passenger spawning for the MetroMap simulation.

Each tick every station runs an independent Bernoulli trial. The chance
scales with the station's catchment (density of the land tiles around it)
and with the time of day: mornings send residents to offices, evenings
send office workers home, and nights are quiet.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import structlog

from core.components import Passenger
from core.config import SpawnConfig
from core.map_grid import MapGrid, FOUR_NEIGHBORS
from engine.station_graph import StationGraph

if TYPE_CHECKING:
    from core.game_state import GameState
    from core.rng import SeededRandom
    from core.station import Station, StationId


logger = structlog.get_logger()


@dataclass(frozen=True)
class CatchmentStats:
    """Summed densities of the land tiles served by a station."""

    residential: int = 0
    office: int = 0


@dataclass(frozen=True)
class SpawnRegime:
    """Time-of-day spawn weighting.

    Attributes:
        name: "morning", "evening", "night" or "offpeak".
        multiplier: Scales every station's spawn chance.
    """

    name: str
    multiplier: float

    def source_potential(self, stats: CatchmentStats) -> float:
        """How strongly a station produces passengers."""
        if self.name == "morning":
            return float(stats.residential)
        if self.name == "evening":
            return float(stats.office)
        return (stats.residential + stats.office) * 0.5

    def destination_weight(self, stats: CatchmentStats) -> float:
        """How strongly a station attracts passengers."""
        if self.name == "morning":
            return 1.0 + stats.office * 2
        if self.name == "evening":
            return 1.0 + stats.residential * 2
        return 1.0 + stats.residential + stats.office


def regime_for_hour(hour: int, config: SpawnConfig) -> SpawnRegime:
    """Spawn regime for an hour of the day (0-23)."""
    if 6 <= hour < 10:
        return SpawnRegime("morning", config.RUSH_MULTIPLIER)
    if 16 <= hour < 20:
        return SpawnRegime("evening", config.RUSH_MULTIPLIER)
    if hour >= 22 or hour < 5:
        return SpawnRegime("night", config.NIGHT_MULTIPLIER)
    return SpawnRegime("offpeak", 1.0)


def hour_of_day(simulation_time: int) -> int:
    """UTC hour of a simulation clock value (ms since epoch)."""
    return datetime.fromtimestamp(simulation_time / 1000, tz=timezone.utc).hour


def calculate_catchment(vertex_x: int, vertex_y: int, game_map: MapGrid) -> CatchmentStats:
    """Sum densities over land reachable from a station vertex.

    Breadth-first search over 4-connected land tiles, starting from the
    tiles touching the vertex and confined to the box
    [vx-2, vx+1] x [vy-2, vy+1]. Water cuts the catchment off.
    """
    min_x, max_x = vertex_x - 2, vertex_x + 1
    min_y, max_y = vertex_y - 2, vertex_y + 1

    def inside(x: int, y: int) -> bool:
        return min_x <= x <= max_x and min_y <= y <= max_y and game_map.is_land(x, y)

    visited: set[tuple[int, int]] = set()
    queue: deque[tuple[int, int]] = deque()
    for x, y in MapGrid.vertex_adjacent_tiles(vertex_x, vertex_y):
        if inside(x, y) and (x, y) not in visited:
            visited.add((x, y))
            queue.append((x, y))

    residential = 0
    office = 0
    while queue:
        x, y = queue.popleft()
        residential += int(game_map.residential[y, x])
        office += int(game_map.office[y, x])
        for dx, dy in FOUR_NEIGHBORS:
            nxt = (x + dx, y + dy)
            if nxt not in visited and inside(*nxt):
                visited.add(nxt)
                queue.append(nxt)

    return CatchmentStats(residential=residential, office=office)


class PassengerSpawner:
    """Spawns passengers at stations.

    Catchments depend only on the frozen map, so they are cached per
    station. Stations placed later are filled in on first use; the whole
    cache is dropped by invalidate() when the map is replaced.
    """

    def __init__(self, config: Optional[SpawnConfig] = None):
        self.config = config or SpawnConfig()
        self._catchments: dict[StationId, CatchmentStats] = {}

    def invalidate(self) -> None:
        """Forget every cached catchment."""
        self._catchments.clear()

    def cached_station_ids(self) -> list[StationId]:
        """Station IDs with a cached catchment."""
        return list(self._catchments)

    def get_catchment(self, station: Station, game_map: MapGrid) -> CatchmentStats:
        """Catchment of a station, computed on first request."""
        stats = self._catchments.get(station.station_id)
        if stats is None:
            stats = calculate_catchment(station.vertex_x, station.vertex_y, game_map)
            self._catchments[station.station_id] = stats
        return stats

    def spawn_chance(self, source_potential: float, multiplier: float, game_seconds: float) -> float:
        """Per-tick spawn probability for a station, clamped to 1."""
        cfg = self.config
        chance = (
            cfg.BASE_RATE
            * multiplier
            * (source_potential / cfg.CATCHMENT_NORMALIZER)
            * game_seconds
            / 3600.0
        )
        return min(1.0, max(0.0, chance))

    def update(self, state: GameState, game_seconds: float, rng: SeededRandom) -> list[Passenger]:
        """Run one spawning tick.

        Args:
            state: Game state to mutate.
            game_seconds: In-game seconds elapsed this tick.
            rng: Random source for the trials and destination picks.

        Returns:
            Passengers spawned this tick.
        """
        stations = list(state.stations.values())
        if len(stations) < 2 or game_seconds <= 0:
            return []

        regime = regime_for_hour(hour_of_day(state.simulation_time), self.config)
        weights = {
            station.station_id: regime.destination_weight(self.get_catchment(station, state.map))
            for station in stations
        }

        graph: Optional[StationGraph] = None
        spawned: list[Passenger] = []
        for station in stations:
            stats = self.get_catchment(station, state.map)
            chance = self.spawn_chance(regime.source_potential(stats), regime.multiplier, game_seconds)
            if not rng.chance(chance):
                continue

            destination = self.pick_destination(station.station_id, stations, weights, rng)
            if destination is None:
                continue
            if graph is None:
                graph = StationGraph.build(state.stations, state.lines.values())
            route = graph.find_route(station.station_id, destination)
            if not route:
                continue

            passenger = Passenger.create(
                state.next_id("passenger"),
                station.station_id,
                destination,
                state.simulation_time,
            )
            passenger.path = route
            passenger.next_waypoint_index = 1
            state.passengers.append(passenger)
            station.add_passenger(passenger)
            spawned.append(passenger)

        if spawned:
            logger.debug("Passengers spawned", count=len(spawned), regime=regime.name)
        return spawned

    @staticmethod
    def pick_destination(
        source_id: StationId,
        stations: list[Station],
        weights: dict[StationId, float],
        rng: SeededRandom,
    ) -> Optional[StationId]:
        """Roulette-wheel pick over every station except the source."""
        others = [s.station_id for s in stations if s.station_id != source_id]
        total = sum(weights.get(station_id, 0.0) for station_id in others)
        if not others or total <= 0:
            return None

        roll = rng.random() * total
        for station_id in others:
            roll -= weights.get(station_id, 0.0)
            if roll <= 0:
                return station_id
        return others[-1]
