"""State-mutation managers for the MetroMap engine.

Each manager validates a single operation against the current state and
applies it, reporting the outcome as an ActionResult.
"""

from .results import ActionResult, ValidationResult
from .station_manager import StationManager
from .line_manager import LineManager, BuildingLine
from .train_manager import TrainManager

__all__ = [
    "ActionResult",
    "ValidationResult",
    "StationManager",
    "LineManager",
    "BuildingLine",
    "TrainManager",
]
