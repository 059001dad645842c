"""Metro line model for the MetroMap simulation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .constants import LineColor, MIN_STATIONS_PER_LINE
from .station import StationId

if TYPE_CHECKING:
    from .components import Train


LineId = str


def is_line_loop(station_ids: list[StationId]) -> bool:
    """Check if a station sequence closes on itself (first == last)."""
    return len(station_ids) > 2 and station_ids[0] == station_ids[-1]


def can_add_station_to_line(station_ids: list[StationId], new_station_id: StationId) -> bool:
    """Check if a station may be appended to an in-progress line.

    Duplicates are rejected except revisiting the first station to close a
    loop. Nothing can follow a closed loop.
    """
    if not station_ids:
        return True
    if is_line_loop(station_ids):
        return False
    if new_station_id == station_ids[0] and len(station_ids) >= MIN_STATIONS_PER_LINE:
        return True
    return new_station_id not in station_ids


@dataclass
class MetroLine:
    """A completed metro line.

    Trains live inside their owning line; a train refers back to the line
    by ID only.

    Attributes:
        line_id: Unique identifier.
        color: Line color, unique per game.
        station_ids: Ordered station sequence. For loops the first station
            is repeated at the end.
        is_loop: True iff the sequence closes on itself.
        trains: Trains running on this line.
    """

    line_id: LineId
    color: LineColor
    station_ids: list[StationId]
    is_loop: bool = False
    trains: list[Train] = field(default_factory=list)

    def unique_station_ids(self) -> list[StationId]:
        """Station IDs without the loop-closing repeat."""
        if self.is_loop:
            return self.station_ids[:-1]
        return list(self.station_ids)

    def contains_station(self, station_id: StationId) -> bool:
        """Check if the line serves a station."""
        return station_id in self.station_ids

    def index_of(self, station_id: StationId) -> int:
        """Index of the first occurrence of a station, or -1."""
        if station_id not in self.station_ids:
            return -1
        return self.station_ids.index(station_id)

    def get_train(self, train_id: str) -> Train | None:
        """Get a train on this line by ID."""
        for train in self.trains:
            if train.train_id == train_id:
                return train
        return None
