"""Game state for the MetroMap simulation.

GameState is the single source of truth for a running game. It owns the
frozen map, the station and line arenas, and the passenger roster, and
provides cloning, serialization and state hashing.

Passengers are stored once in the roster. Station and train queues hold
references to the same objects; serialized queues hold passenger IDs.
"""

from __future__ import annotations

import copy
import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .constants import (
    LineColor,
    TrainState,
    GAME_START_TIME_ISO,
    STARTING_MONEY,
    VALID_SPEEDS,
    TRAIN_MAX_CAPACITY,
)
from .map_grid import MapGrid
from .station import Station, StationId, generate_station_label, make_station_id
from .metro_line import MetroLine, LineId, is_line_loop
from .components import Passenger, Train


def game_start_time_ms() -> int:
    """Simulation clock value (ms since epoch, UTC) for a new game."""
    start = datetime.fromisoformat(GAME_START_TIME_ISO).replace(tzinfo=timezone.utc)
    return int(start.timestamp() * 1000)


class StateLoadError(Exception):
    """Raised when serialized game state is structurally invalid."""

    pass


def _default_id_counters() -> dict[str, int]:
    return {"line": 0, "train": 0, "passenger": 0}


@dataclass
class GameState:
    """The complete game state.

    Attributes:
        seed: Seed the map was generated from.
        map: The frozen map grid.
        stations: Stations keyed by ID, in placement order.
        lines: Completed lines keyed by ID, in completion order.
        passengers: Roster of every live passenger.
        simulation_time: Game clock in ms since the Unix epoch (UTC).
        money: Current balance. May go negative.
        is_paused: Whether the simulation clock is stopped.
        speed: Simulation speed multiplier (1, 2 or 4).
        id_counters: Monotonic counters used to mint line, train and
            passenger IDs.
    """

    seed: int
    map: MapGrid
    stations: dict[StationId, Station] = field(default_factory=dict)
    lines: dict[LineId, MetroLine] = field(default_factory=dict)
    passengers: list[Passenger] = field(default_factory=list)
    simulation_time: int = field(default_factory=game_start_time_ms)
    money: float = float(STARTING_MONEY)
    is_paused: bool = False
    speed: int = 1
    id_counters: dict[str, int] = field(default_factory=_default_id_counters)

    @classmethod
    def create_initial_state(
        cls,
        seed: int,
        game_map: MapGrid,
        starting_money: float = STARTING_MONEY,
    ) -> GameState:
        """Create an empty game on a generated map.

        Args:
            seed: Seed the map was generated from.
            game_map: The map grid. Frozen here if not already.
            starting_money: Opening balance.

        Returns:
            A new GameState with no stations, lines or passengers.
        """
        if not game_map.is_frozen:
            game_map.freeze()
        return cls(seed=seed, map=game_map, money=float(starting_money))

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_station(self, station_id: StationId) -> Optional[Station]:
        """Get a station by ID, or None."""
        return self.stations.get(station_id)

    def get_line(self, line_id: LineId) -> Optional[MetroLine]:
        """Get a line by ID, or None."""
        return self.lines.get(line_id)

    def find_train(self, train_id: str) -> Optional[Train]:
        """Find a train on any line."""
        for line in self.lines.values():
            train = line.get_train(train_id)
            if train is not None:
                return train
        return None

    def has_line_with_color(self, color: LineColor) -> bool:
        """Check if a line of this color already exists."""
        return any(line.color == color for line in self.lines.values())

    def lines_for_station(self, station_id: StationId) -> list[MetroLine]:
        """Get every line serving a station."""
        return [line for line in self.lines.values() if line.contains_station(station_id)]

    def next_id(self, kind: str) -> str:
        """Mint the next ID of a kind ("line", "train", "passenger").

        Counters only ever increase, so IDs are never reused.
        """
        self.id_counters[kind] = self.id_counters.get(kind, 0) + 1
        return f"{kind}-{self.id_counters[kind]}"

    # -------------------------------------------------------------------------
    # Cloning and serialization
    # -------------------------------------------------------------------------

    def clone(self) -> GameState:
        """Create a deep copy of the game state.

        Shared passenger references between the roster and the queues are
        preserved in the copy.
        """
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the game state to a JSON-compatible dictionary.

        Cached train segments are derived data and are not written.
        """
        return {
            "seed": self.seed,
            "map": self.map.to_dict(),
            "stations": [
                {
                    "id": station.station_id,
                    "vertex_x": station.vertex_x,
                    "vertex_y": station.vertex_y,
                    "label": station.label,
                    "passengers": [p.passenger_id for p in station.passengers],
                }
                for station in self.stations.values()
            ],
            "lines": [
                {
                    "id": line.line_id,
                    "color": line.color.value,
                    "station_ids": list(line.station_ids),
                    "is_loop": line.is_loop,
                    "trains": [_train_to_dict(train) for train in line.trains],
                }
                for line in self.lines.values()
            ],
            "passengers": [_passenger_to_dict(p) for p in self.passengers],
            "simulation_time": self.simulation_time,
            "money": self.money,
            "is_paused": self.is_paused,
            "speed": self.speed,
            "id_counters": dict(self.id_counters),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        """Rebuild a game state from to_dict() output.

        seed, map, stations and lines are required. Everything else falls
        back to new-game defaults. Queues may hold passenger IDs or full
        passenger dicts; both resolve to the single roster object.

        Raises:
            StateLoadError: If required fields are missing or malformed.
        """
        if not isinstance(data, dict):
            raise StateLoadError("Game state must be a JSON object")
        for key in ("seed", "map", "stations", "lines"):
            if key not in data:
                raise StateLoadError(f"Missing required field: {key}")

        try:
            game_map = MapGrid.from_dict(data["map"])

            roster: dict[str, Passenger] = {}
            for raw in data.get("passengers") or []:
                passenger = _passenger_from_dict(raw)
                roster[passenger.passenger_id] = passenger

            def resolve(entry: Any) -> Passenger:
                if isinstance(entry, dict):
                    passenger_id = str(entry["id"])
                    if passenger_id not in roster:
                        roster[passenger_id] = _passenger_from_dict(entry)
                    return roster[passenger_id]
                passenger_id = str(entry)
                if passenger_id not in roster:
                    raise StateLoadError(f"Queue references unknown passenger {passenger_id}")
                return roster[passenger_id]

            stations: dict[StationId, Station] = {}
            for idx, raw in enumerate(data["stations"]):
                vertex_x = int(raw["vertex_x"])
                vertex_y = int(raw["vertex_y"])
                station = Station(
                    station_id=raw.get("id") or make_station_id(vertex_x, vertex_y),
                    vertex_x=vertex_x,
                    vertex_y=vertex_y,
                    label=raw.get("label") or generate_station_label(idx),
                )
                station.passengers = [resolve(p) for p in raw.get("passengers") or []]
                stations[station.station_id] = station

            lines: dict[LineId, MetroLine] = {}
            for raw in data["lines"]:
                station_ids = [str(s) for s in raw["station_ids"]]
                line = MetroLine(
                    line_id=str(raw["id"]),
                    color=LineColor(raw["color"]),
                    station_ids=station_ids,
                    is_loop=bool(raw.get("is_loop", is_line_loop(station_ids))),
                )
                for raw_train in raw.get("trains") or []:
                    train = _train_from_dict(raw_train, line.line_id)
                    train.passengers = [resolve(p) for p in raw_train.get("passengers") or []]
                    line.trains.append(train)
                lines[line.line_id] = line

            simulation_time = data.get("simulation_time")
            if not isinstance(simulation_time, (int, float)) or simulation_time <= 0:
                simulation_time = game_start_time_ms()

            money = data.get("money")
            if money is None:
                money = STARTING_MONEY

            counters = _default_id_counters()
            raw_counters = data.get("id_counters")
            if isinstance(raw_counters, dict):
                counters.update({k: int(v) for k, v in raw_counters.items()})

            is_paused = data.get("is_paused")
            if not isinstance(is_paused, bool):
                is_paused = False

            return cls(
                seed=int(data["seed"]),
                map=game_map,
                stations=stations,
                lines=lines,
                passengers=list(roster.values()),
                simulation_time=int(simulation_time),
                money=float(money),
                is_paused=is_paused,
                speed=int(data.get("speed", 1)),
                id_counters=counters,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StateLoadError(f"Malformed game state: {e}") from e

    def state_hash(self) -> str:
        """Compute a hash of the game state.

        Returns:
            A hex string hash of the serialized state.
        """
        state_json = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(state_json.encode()).hexdigest()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> list[str]:
        """Validate the game state for consistency.

        Checks station identity and spacing, line references, train
        indices, and passenger conservation: every roster passenger sits in
        exactly one queue matching its location, and every queued
        passenger is on the roster.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors: list[str] = []

        for key, station in self.stations.items():
            if key != station.station_id:
                errors.append(f"Station keyed {key} has ID {station.station_id}")
            if station.station_id != make_station_id(station.vertex_x, station.vertex_y):
                errors.append(
                    f"Station {station.station_id} ID does not match vertex "
                    f"({station.vertex_x}, {station.vertex_y})"
                )
            for dx, dy in ((1, 0), (0, 1)):
                neighbor = make_station_id(station.vertex_x + dx, station.vertex_y + dy)
                if neighbor in self.stations:
                    errors.append(f"Stations {station.station_id} and {neighbor} are adjacent")

        colors: set[LineColor] = set()
        for key, line in self.lines.items():
            if key != line.line_id:
                errors.append(f"Line keyed {key} has ID {line.line_id}")
            if line.color in colors:
                errors.append(f"Duplicate line color {line.color.value}")
            colors.add(line.color)
            if len(line.station_ids) < 2:
                errors.append(f"Line {line.line_id} has fewer than 2 stations")
            if line.is_loop != is_line_loop(line.station_ids):
                errors.append(f"Line {line.line_id} loop flag does not match its stations")
            for station_id in line.station_ids:
                if station_id not in self.stations:
                    errors.append(f"Line {line.line_id} references unknown station {station_id}")
            for train in line.trains:
                if train.line_id != line.line_id:
                    errors.append(f"Train {train.train_id} on {line.line_id} points to {train.line_id}")
                for idx in (train.current_station_idx, train.target_station_idx):
                    if not 0 <= idx < len(line.station_ids):
                        errors.append(f"Train {train.train_id} has station index {idx} out of range")
                if len(train.passengers) > train.capacity:
                    errors.append(f"Train {train.train_id} is over capacity")

        # Passenger conservation
        roster_ids = {id(p) for p in self.passengers}
        seen: dict[int, str] = {}

        def record(passenger: Passenger, where: str) -> None:
            if id(passenger) not in roster_ids:
                errors.append(f"Passenger {passenger.passenger_id} in {where} is not on the roster")
            if id(passenger) in seen:
                errors.append(
                    f"Passenger {passenger.passenger_id} is in both {seen[id(passenger)]} and {where}"
                )
            seen[id(passenger)] = where

        for station in self.stations.values():
            for passenger in station.passengers:
                record(passenger, f"station {station.station_id}")
                if passenger.current_station_id != station.station_id:
                    errors.append(
                        f"Passenger {passenger.passenger_id} queued at {station.station_id} "
                        f"but located at {passenger.current_station_id}"
                    )
        for line in self.lines.values():
            for train in line.trains:
                for passenger in train.passengers:
                    record(passenger, f"train {train.train_id}")
                    if passenger.current_train_id != train.train_id:
                        errors.append(
                            f"Passenger {passenger.passenger_id} aboard {train.train_id} "
                            f"but located at {passenger.current_train_id}"
                        )
        for passenger in self.passengers:
            if id(passenger) not in seen:
                errors.append(f"Passenger {passenger.passenger_id} is in no queue")

        if self.speed not in VALID_SPEEDS:
            errors.append(f"Invalid speed: {self.speed}")

        return errors

    # -------------------------------------------------------------------------
    # String representation
    # -------------------------------------------------------------------------

    def __str__(self) -> str:
        """Return a human-readable string representation."""
        clock = datetime.fromtimestamp(self.simulation_time / 1000, tz=timezone.utc)
        status = "PAUSED" if self.is_paused else f"{self.speed}x"
        lines = [
            f"GameState(seed={self.seed}, map={self.map.map_type.value}, {status})",
            f"  Clock: {clock:%Y-%m-%d %H:%M}",
            f"  Money: {self.money:,.0f}",
            f"  Stations: {len(self.stations)}",
            f"  Lines ({len(self.lines)}):",
        ]
        for line in self.lines.values():
            kind = "loop" if line.is_loop else "linear"
            lines.append(
                f"    {line.line_id} [{line.color.value}, {kind}]: "
                f"{len(line.unique_station_ids())} stations, {len(line.trains)} trains"
            )
        lines.append(f"  Passengers: {len(self.passengers)}")
        return "\n".join(lines)


def _passenger_to_dict(passenger: Passenger) -> dict[str, Any]:
    return {
        "id": passenger.passenger_id,
        "source_station_id": passenger.source_station_id,
        "destination_station_id": passenger.destination_station_id,
        "spawn_time": passenger.spawn_time,
        "path": list(passenger.path),
        "next_waypoint_index": passenger.next_waypoint_index,
        "current_station_id": passenger.current_station_id,
        "current_train_id": passenger.current_train_id,
    }


def _passenger_from_dict(data: dict[str, Any]) -> Passenger:
    return Passenger(
        passenger_id=str(data["id"]),
        source_station_id=data["source_station_id"],
        destination_station_id=data["destination_station_id"],
        spawn_time=int(data.get("spawn_time", 0)),
        path=list(data.get("path") or []),
        next_waypoint_index=int(data.get("next_waypoint_index", 0)),
        current_station_id=data.get("current_station_id"),
        current_train_id=data.get("current_train_id"),
    )


def _train_to_dict(train: Train) -> dict[str, Any]:
    return {
        "id": train.train_id,
        "state": train.state.value,
        "dwell_remaining": train.dwell_remaining,
        "current_station_idx": train.current_station_idx,
        "target_station_idx": train.target_station_idx,
        "progress": train.progress,
        "direction": train.direction,
        "passengers": [p.passenger_id for p in train.passengers],
        "capacity": train.capacity,
    }


def _train_from_dict(data: dict[str, Any], line_id: LineId) -> Train:
    return Train(
        train_id=str(data["id"]),
        line_id=line_id,
        state=TrainState(data.get("state", TrainState.MOVING.value)),
        dwell_remaining=float(data.get("dwell_remaining", 0.0)),
        current_station_idx=int(data.get("current_station_idx", 0)),
        target_station_idx=int(data.get("target_station_idx", 1)),
        progress=float(data.get("progress", 0.0)),
        direction=1 if int(data.get("direction", 1)) >= 0 else -1,
        capacity=int(data.get("capacity", TRAIN_MAX_CAPACITY)),
    )
