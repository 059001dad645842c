"""Station model for the MetroMap simulation.

A station's identity is derived from its vertex, so no two stations can
share a vertex and the id alone is enough to recover the position.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .components import Passenger


StationId = str


def make_station_id(vertex_x: int, vertex_y: int) -> StationId:
    """Create a station ID from vertex coordinates.

    Format is "xxyy" with both coordinates zero-padded to two digits,
    e.g. vertex (5, 12) -> "0512".
    """
    return f"{vertex_x:02d}{vertex_y:02d}"


def parse_station_id(station_id: StationId) -> tuple[int, int]:
    """Recover vertex coordinates from a station ID.

    Raises:
        ValueError: If the ID is not four digits.
    """
    if len(station_id) != 4 or not station_id.isdigit():
        raise ValueError(f"Invalid station ID: {station_id!r}")
    return int(station_id[:2]), int(station_id[2:])


def generate_station_label(index: int) -> str:
    """Generate a display label from an insertion index.

    A, B, ... Z, AA, AB, ... AZ, BA, ...
    """
    label = ""
    num = index
    while True:
        label = chr(ord("A") + num % 26) + label
        num = num // 26 - 1
        if num < 0:
            return label


@dataclass
class Station:
    """A station placed on a map vertex.

    Attributes:
        station_id: Derived from the vertex (see make_station_id).
        vertex_x: Vertex column.
        vertex_y: Vertex row.
        label: Display label assigned by insertion order.
        passengers: Queue of passengers waiting here.
    """

    station_id: StationId
    vertex_x: int
    vertex_y: int
    label: str = ""
    passengers: list[Passenger] = field(default_factory=list)

    @classmethod
    def create(cls, vertex_x: int, vertex_y: int, label: str = "") -> Station:
        """Create a station at a vertex with its derived ID."""
        return cls(
            station_id=make_station_id(vertex_x, vertex_y),
            vertex_x=vertex_x,
            vertex_y=vertex_y,
            label=label,
        )

    @property
    def position(self) -> tuple[int, int]:
        """Return the (x, y) vertex."""
        return self.vertex_x, self.vertex_y

    def add_passenger(self, passenger: Passenger) -> None:
        """Queue a passenger at this station."""
        self.passengers.append(passenger)

    def remove_passenger(self, passenger: Passenger) -> bool:
        """Remove a passenger from the queue.

        Returns:
            True if the passenger was queued here.
        """
        for idx, queued in enumerate(self.passengers):
            if queued is passenger:
                del self.passengers[idx]
                return True
        return False
