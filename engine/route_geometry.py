"""Octilinear route geometry for metro lines.

Lines run in one of eight compass directions (45 degree steps). When two
stations are not aligned on one of them, the path gets exactly one bend
("knee"). Angles use screen coordinates: y grows downward, so SOUTH is 90.

All functions here are pure. A path's length is the unit of distance for
line costs and train movement.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Sequence

from core.station import make_station_id


class Direction(Enum):
    """The eight octilinear directions, in degrees clockwise from east."""

    EAST = 0
    SOUTHEAST = 45
    SOUTH = 90
    SOUTHWEST = 135
    WEST = 180
    NORTHWEST = 225
    NORTH = 270
    NORTHEAST = 315

    @property
    def vector(self) -> tuple[int, int]:
        """Unit step (dx, dy) for this direction."""
        return DIRECTION_VECTORS[self]

    def opposite(self) -> Direction:
        """The direction pointing the other way."""
        return Direction((self.value + 180) % 360)


DIRECTION_VECTORS: dict[Direction, tuple[int, int]] = {
    Direction.EAST: (1, 0),
    Direction.SOUTHEAST: (1, 1),
    Direction.SOUTH: (0, 1),
    Direction.SOUTHWEST: (-1, 1),
    Direction.WEST: (-1, 0),
    Direction.NORTHWEST: (-1, -1),
    Direction.NORTH: (0, -1),
    Direction.NORTHEAST: (1, -1),
}

# Snap candidates in atan2 degrees, checked in this order; first minimum wins
_SNAP_ANGLES = (0, 45, 90, 135, 180, -180, -135, -90, -45)


class Point(Protocol):
    """Anything placed on a vertex (stations, in practice)."""

    @property
    def vertex_x(self) -> int: ...

    @property
    def vertex_y(self) -> int: ...


@dataclass(frozen=True)
class Waypoint:
    """A point on a segment path.

    Attributes:
        x: Vertex column.
        y: Vertex row.
        kind: "STATION" at the ends, "BEND" at the knee.
        incoming: Direction the path arrives from, if any.
        outgoing: Direction the path leaves in, if any.
    """

    x: int
    y: int
    kind: str = "STATION"
    incoming: Optional[Direction] = None
    outgoing: Optional[Direction] = None


@dataclass
class LineSegment:
    """The path between two consecutive stations on a line."""

    from_station_id: str
    to_station_id: str
    entry_angle: Direction
    exit_angle: Direction
    waypoints: list[Waypoint] = field(default_factory=list)

    @property
    def length(self) -> float:
        return calculate_segment_length(self)


# -----------------------------------------------------------------------------
# Angles
# -----------------------------------------------------------------------------


def _station_id(point: Point) -> str:
    return getattr(point, "station_id", None) or make_station_id(point.vertex_x, point.vertex_y)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def direction_from_steps(step_x: int, step_y: int) -> Direction:
    """Direction for a unit step. (0, 0) falls back to EAST."""
    for direction, vector in DIRECTION_VECTORS.items():
        if vector == (step_x, step_y):
            return direction
    return Direction.EAST


def calculate_snap_angle(start: Point, end: Point) -> Direction:
    """Snap the raw start -> end bearing to the nearest 45 degrees."""
    dx = end.vertex_x - start.vertex_x
    dy = end.vertex_y - start.vertex_y
    raw = math.degrees(math.atan2(dy, dx))

    snapped = _SNAP_ANGLES[0]
    best = abs(raw - snapped)
    for angle in _SNAP_ANGLES:
        diff = abs(raw - angle)
        if diff < best:
            best = diff
            snapped = angle
    return Direction(snapped % 360)


def deflection_angle(first: Direction, second: Direction) -> int:
    """Bend between two directions: 0 is straight through, 180 a U-turn."""
    diff = abs(first.value - second.value) % 360
    return min(diff, 360 - diff)


def get_segment_orientation(dx: int, dy: int) -> str:
    """Dominant orientation of a displacement.

    Renderers use this to pick the offset axis for parallel lines.

    Returns:
        "HORIZONTAL", "VERTICAL" or "DIAGONAL".
    """
    if abs(dx) > abs(dy):
        return "HORIZONTAL"
    if abs(dy) > abs(dx):
        return "VERTICAL"
    return "DIAGONAL"


def create_segment_key(station_a: str, station_b: str) -> str:
    """Direction-free key for the segment between two stations."""
    return "-".join(sorted((station_a, station_b)))


# -----------------------------------------------------------------------------
# Segments
# -----------------------------------------------------------------------------


def zero_length_segment(station: Point) -> LineSegment:
    """Degenerate segment for a station connected to itself."""
    station_id = _station_id(station)
    return LineSegment(
        from_station_id=station_id,
        to_station_id=station_id,
        entry_angle=Direction.EAST,
        exit_angle=Direction.EAST,
        waypoints=[Waypoint(station.vertex_x, station.vertex_y)],
    )


def calculate_segment_path(
    start: Point,
    end: Point,
    next_direction: Optional[Direction] = None,
) -> LineSegment:
    """Compute the octilinear path between two stations.

    Aligned stations (horizontal, vertical, perfect diagonal) get a
    straight two-waypoint path. Otherwise the path bends once, either
    diagonal-first or straight-first. When next_direction (the bearing of
    the following leg) is given, the option whose exit direction deflects
    least from it wins. Ties, and calls without a hint, go diagonal-first.

    Args:
        start: Station the segment leaves from.
        end: Station the segment arrives at.
        next_direction: Bearing of the leg after end, if any.

    Returns:
        The segment, with 1 (same vertex), 2 or 3 waypoints.
    """
    if start.vertex_x == end.vertex_x and start.vertex_y == end.vertex_y:
        return zero_length_segment(start)

    dx = end.vertex_x - start.vertex_x
    dy = end.vertex_y - start.vertex_y
    abs_dx, abs_dy = abs(dx), abs(dy)
    sign_x, sign_y = _sign(dx), _sign(dy)
    from_id, to_id = _station_id(start), _station_id(end)

    if abs_dx == 0 or abs_dy == 0 or abs_dx == abs_dy:
        direction = direction_from_steps(sign_x, sign_y)
        return LineSegment(
            from_station_id=from_id,
            to_station_id=to_id,
            entry_angle=direction,
            exit_angle=direction,
            waypoints=[
                Waypoint(start.vertex_x, start.vertex_y, outgoing=direction),
                Waypoint(end.vertex_x, end.vertex_y, incoming=direction),
            ],
        )

    diagonal = direction_from_steps(sign_x, sign_y)
    if abs_dx > abs_dy:
        straight = direction_from_steps(sign_x, 0)
    else:
        straight = direction_from_steps(0, sign_y)

    diagonal_first = True
    if next_direction is not None:
        diagonal_first = (
            deflection_angle(straight, next_direction)
            <= deflection_angle(diagonal, next_direction)
        )

    if diagonal_first:
        run = min(abs_dx, abs_dy)
        knee_x = start.vertex_x + sign_x * run
        knee_y = start.vertex_y + sign_y * run
        first, second = diagonal, straight
    else:
        run = abs(abs_dx - abs_dy)
        step_x, step_y = straight.vector
        knee_x = start.vertex_x + step_x * run
        knee_y = start.vertex_y + step_y * run
        first, second = straight, diagonal

    return LineSegment(
        from_station_id=from_id,
        to_station_id=to_id,
        entry_angle=first,
        exit_angle=second,
        waypoints=[
            Waypoint(start.vertex_x, start.vertex_y, outgoing=first),
            Waypoint(knee_x, knee_y, kind="BEND", incoming=first, outgoing=second),
            Waypoint(end.vertex_x, end.vertex_y, incoming=second),
        ],
    )


def calculate_segment_length(segment: LineSegment) -> float:
    """Euclidean length of a segment, summed over its waypoints."""
    total = 0.0
    points = segment.waypoints
    for a, b in zip(points, points[1:]):
        total += math.hypot(b.x - a.x, b.y - a.y)
    return total


def reverse_segment(segment: LineSegment) -> LineSegment:
    """The same path travelled the other way."""
    waypoints = [
        Waypoint(
            x=point.x,
            y=point.y,
            kind=point.kind,
            incoming=point.outgoing.opposite() if point.outgoing else None,
            outgoing=point.incoming.opposite() if point.incoming else None,
        )
        for point in reversed(segment.waypoints)
    ]
    if len(waypoints) == 1:
        entry, exit_ = segment.entry_angle, segment.exit_angle
    else:
        entry, exit_ = segment.exit_angle.opposite(), segment.entry_angle.opposite()
    return LineSegment(
        from_station_id=segment.to_station_id,
        to_station_id=segment.from_station_id,
        entry_angle=entry,
        exit_angle=exit_,
        waypoints=waypoints,
    )


def calculate_line_segments(stations: Sequence[Point]) -> list[LineSegment]:
    """The as-built path of a line through an ordered list of stations.

    Each segment looks one leg ahead: the bearing from its end station to
    the station after that is used as the knee hint.
    """
    segments: list[LineSegment] = []
    for i in range(len(stations) - 1):
        hint = None
        if i + 2 < len(stations):
            hint = calculate_snap_angle(stations[i + 1], stations[i + 2])
        segments.append(calculate_segment_path(stations[i], stations[i + 1], hint))
    return segments


def calculate_line_length(stations: Sequence[Point]) -> float:
    """Total octilinear length of a line."""
    return sum(calculate_segment_length(s) for s in calculate_line_segments(stations))


def point_along_segment(segment: LineSegment, progress: float) -> tuple[float, float]:
    """Interpolated (x, y) at a fraction of the way along a segment.

    Renderers use this to place trains.
    """
    points = segment.waypoints
    if len(points) == 1:
        return float(points[0].x), float(points[0].y)

    target = max(0.0, min(1.0, progress)) * calculate_segment_length(segment)
    for a, b in zip(points, points[1:]):
        leg = math.hypot(b.x - a.x, b.y - a.y)
        if target <= leg and leg > 0:
            t = target / leg
            return a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t
        target -= leg
    return float(points[-1].x), float(points[-1].y)
