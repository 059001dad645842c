"""Moving components of the MetroMap simulation: trains and passengers.

A passenger is always in exactly one place: waiting in a station queue,
riding a train, or gone (journey complete). current_station_id and
current_train_id are therefore never both set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from .constants import TrainState, TRAIN_MAX_CAPACITY
from .station import StationId

if TYPE_CHECKING:
    from engine.route_geometry import LineSegment


@dataclass
class Passenger:
    """A passenger travelling between two stations.

    Attributes:
        passenger_id: Unique identifier for this passenger.
        source_station_id: Station the passenger spawned at.
        destination_station_id: Final destination.
        spawn_time: Simulation clock (ms) at spawn.
        path: Station IDs from source to destination, resolved at spawn.
        next_waypoint_index: Index into path of the next station to reach.
        current_station_id: Station the passenger waits at, if any.
        current_train_id: Train the passenger rides, if any.
    """

    passenger_id: str
    source_station_id: StationId
    destination_station_id: StationId
    spawn_time: int
    path: list[StationId] = field(default_factory=list)
    next_waypoint_index: int = 0
    current_station_id: Optional[StationId] = None
    current_train_id: Optional[str] = None

    @classmethod
    def create(
        cls,
        passenger_id: str,
        source_id: StationId,
        destination_id: StationId,
        spawn_time: int,
    ) -> Passenger:
        """Create a passenger waiting at its source station."""
        return cls(
            passenger_id=passenger_id,
            source_station_id=source_id,
            destination_station_id=destination_id,
            spawn_time=spawn_time,
            current_station_id=source_id,
        )

    @property
    def next_waypoint(self) -> Optional[StationId]:
        """The next station on the path, or None past the end."""
        if 0 <= self.next_waypoint_index < len(self.path):
            return self.path[self.next_waypoint_index]
        return None

    def is_waiting(self) -> bool:
        """Check if the passenger is queued at a station."""
        return self.current_station_id is not None and self.current_train_id is None

    def is_on_train(self) -> bool:
        """Check if the passenger is riding a train."""
        return self.current_train_id is not None and self.current_station_id is None

    def board(self, train_id: str) -> None:
        """Move from the station queue onto a train."""
        self.current_station_id = None
        self.current_train_id = train_id

    def wait_at(self, station_id: StationId) -> None:
        """Move off a train into a station queue."""
        self.current_train_id = None
        self.current_station_id = station_id

    def clear_location(self) -> None:
        """Forget both locations once the journey is over."""
        self.current_station_id = None
        self.current_train_id = None


@dataclass
class Train:
    """A train running on a metro line.

    The cached segment and its length are derived data: they are not
    compared or serialized and get recomputed from the line on demand.

    Attributes:
        train_id: Unique identifier.
        line_id: Owning line (looked up by ID, never held by reference).
        state: MOVING or STOPPED.
        dwell_remaining: Remaining dwell, in distance units.
        current_station_idx: Index of the station last departed / arrived at.
        target_station_idx: Index of the station being travelled to.
        progress: Fraction of the current segment covered, in [0, 1).
        direction: +1 toward higher indices, -1 toward lower.
        current_segment: Cached path for current -> target.
        total_length: Length of the cached segment.
        passengers: Passengers on board.
        capacity: Maximum passengers on board.
    """

    train_id: str
    line_id: str
    state: TrainState = TrainState.MOVING
    dwell_remaining: float = 0.0
    current_station_idx: int = 0
    target_station_idx: int = 1
    progress: float = 0.0
    direction: int = 1
    current_segment: Optional[LineSegment] = field(default=None, compare=False, repr=False)
    total_length: float = field(default=0.0, compare=False)
    passengers: list[Passenger] = field(default_factory=list)
    capacity: int = TRAIN_MAX_CAPACITY

    def is_full(self) -> bool:
        """Check if no more passengers can board."""
        return len(self.passengers) >= self.capacity

    def remove_passenger(self, passenger: Passenger) -> bool:
        """Remove a passenger from the train.

        Returns:
            True if the passenger was on board.
        """
        for idx, riding in enumerate(self.passengers):
            if riding is passenger:
                del self.passengers[idx]
                return True
        return False

    def clear_segment(self) -> None:
        """Drop the cached segment so it is recomputed on the next tick."""
        self.current_segment = None
        self.total_length = 0.0
