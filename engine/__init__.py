"""Simulation engine for the MetroMap game.

This module provides the game logic including:
- Octilinear route geometry and the station connectivity graph
- Simulation systems (trains, passengers, economics)
- Managers enforcing the building rules
- The GameController coordinating all of the above
"""

from .route_geometry import (
    Direction,
    Waypoint,
    LineSegment,
    calculate_snap_angle,
    calculate_segment_path,
    calculate_segment_length,
    calculate_line_segments,
    calculate_line_length,
    create_segment_key,
    point_along_segment,
)

from .station_graph import StationGraph, find_route

from .actions import (
    ActionType,
    GameAction,
    PlaceStationPayload,
    RemoveStationPayload,
    StartLinePayload,
    AddStationToLinePayload,
    AddTrainPayload,
    RemoveTrainPayload,
    SetSpeedPayload,
)

from .managers import (
    ActionResult,
    ValidationResult,
    StationManager,
    LineManager,
    BuildingLine,
    TrainManager,
)

from .game_controller import GameController

__all__ = [
    # Route geometry
    "Direction",
    "Waypoint",
    "LineSegment",
    "calculate_snap_angle",
    "calculate_segment_path",
    "calculate_segment_length",
    "calculate_line_segments",
    "calculate_line_length",
    "create_segment_key",
    "point_along_segment",
    # Station graph
    "StationGraph",
    "find_route",
    # Actions
    "ActionType",
    "GameAction",
    "PlaceStationPayload",
    "RemoveStationPayload",
    "StartLinePayload",
    "AddStationToLinePayload",
    "AddTrainPayload",
    "RemoveTrainPayload",
    "SetSpeedPayload",
    # Managers
    "ActionResult",
    "ValidationResult",
    "StationManager",
    "LineManager",
    "BuildingLine",
    "TrainManager",
    # Controller
    "GameController",
]
