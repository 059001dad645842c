"""Player actions accepted by the GameController.

Every action kind has exactly one payload type (or none). Actions are
plain values; the controller routes them through an exhaustive handler
table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from core.constants import LineColor


class ActionType(Enum):
    """Kinds of action a player can dispatch."""

    # Building
    PLACE_STATION = "PLACE_STATION"
    REMOVE_STATION = "REMOVE_STATION"
    START_LINE = "START_LINE"
    ADD_STATION_TO_LINE = "ADD_STATION_TO_LINE"
    COMPLETE_LINE = "COMPLETE_LINE"
    CANCEL_LINE = "CANCEL_LINE"

    # Trains
    ADD_TRAIN = "ADD_TRAIN"
    REMOVE_TRAIN = "REMOVE_TRAIN"

    # Simulation control
    PAUSE = "PAUSE"
    RESUME = "RESUME"
    SET_SPEED = "SET_SPEED"


@dataclass(frozen=True)
class PlaceStationPayload:
    vertex_x: int
    vertex_y: int


@dataclass(frozen=True)
class RemoveStationPayload:
    station_id: str


@dataclass(frozen=True)
class StartLinePayload:
    color: LineColor


@dataclass(frozen=True)
class AddStationToLinePayload:
    station_id: str


@dataclass(frozen=True)
class AddTrainPayload:
    line_id: str


@dataclass(frozen=True)
class RemoveTrainPayload:
    line_id: str
    train_id: Optional[str] = None


@dataclass(frozen=True)
class SetSpeedPayload:
    speed: int


ActionPayload = Union[
    PlaceStationPayload,
    RemoveStationPayload,
    StartLinePayload,
    AddStationToLinePayload,
    AddTrainPayload,
    RemoveTrainPayload,
    SetSpeedPayload,
    None,
]

# Payload type each action kind must carry (None for payload-free kinds)
PAYLOAD_TYPES: dict[ActionType, Optional[type]] = {
    ActionType.PLACE_STATION: PlaceStationPayload,
    ActionType.REMOVE_STATION: RemoveStationPayload,
    ActionType.START_LINE: StartLinePayload,
    ActionType.ADD_STATION_TO_LINE: AddStationToLinePayload,
    ActionType.COMPLETE_LINE: None,
    ActionType.CANCEL_LINE: None,
    ActionType.ADD_TRAIN: AddTrainPayload,
    ActionType.REMOVE_TRAIN: RemoveTrainPayload,
    ActionType.PAUSE: None,
    ActionType.RESUME: None,
    ActionType.SET_SPEED: SetSpeedPayload,
}


@dataclass(frozen=True)
class GameAction:
    """An action to dispatch.

    Attributes:
        action_type: The kind of action.
        payload: The payload matching action_type, or None.
    """

    action_type: ActionType
    payload: ActionPayload = None

    def has_valid_payload(self) -> bool:
        """Check that the payload matches the action kind."""
        if not isinstance(self.action_type, ActionType):
            return False
        expected = PAYLOAD_TYPES[self.action_type]
        if expected is None:
            return self.payload is None
        return isinstance(self.payload, expected)

    @property
    def kind(self) -> str:
        """Printable name of the action kind."""
        if isinstance(self.action_type, ActionType):
            return self.action_type.value
        return str(self.action_type)

    def __str__(self) -> str:
        if self.payload is None:
            return f"GameAction({self.kind})"
        return f"GameAction({self.kind}, {self.payload})"

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def place_station(cls, vertex_x: int, vertex_y: int) -> GameAction:
        return cls(ActionType.PLACE_STATION, PlaceStationPayload(vertex_x, vertex_y))

    @classmethod
    def remove_station(cls, station_id: str) -> GameAction:
        return cls(ActionType.REMOVE_STATION, RemoveStationPayload(station_id))

    @classmethod
    def start_line(cls, color: LineColor) -> GameAction:
        return cls(ActionType.START_LINE, StartLinePayload(color))

    @classmethod
    def add_station_to_line(cls, station_id: str) -> GameAction:
        return cls(ActionType.ADD_STATION_TO_LINE, AddStationToLinePayload(station_id))

    @classmethod
    def complete_line(cls) -> GameAction:
        return cls(ActionType.COMPLETE_LINE)

    @classmethod
    def cancel_line(cls) -> GameAction:
        return cls(ActionType.CANCEL_LINE)

    @classmethod
    def add_train(cls, line_id: str) -> GameAction:
        return cls(ActionType.ADD_TRAIN, AddTrainPayload(line_id))

    @classmethod
    def remove_train(cls, line_id: str, train_id: Optional[str] = None) -> GameAction:
        return cls(ActionType.REMOVE_TRAIN, RemoveTrainPayload(line_id, train_id))

    @classmethod
    def pause(cls) -> GameAction:
        return cls(ActionType.PAUSE)

    @classmethod
    def resume(cls) -> GameAction:
        return cls(ActionType.RESUME)

    @classmethod
    def set_speed(cls, speed: int) -> GameAction:
        return cls(ActionType.SET_SPEED, SetSpeedPayload(speed))
