"""Train allocation on completed lines."""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import structlog

from core.components import Train
from core.config import TrainConfig
from core.metro_line import LineId, MetroLine
from engine.systems.train_movement import (
    calculate_start_station_idx,
    create_train,
    place_next_train,
)

from .results import ActionResult

if TYPE_CHECKING:
    from core.game_state import GameState


logger = structlog.get_logger()


class TrainManager:
    """Adds and removes trains, keeping each line between the floor and cap.

    New trains are spaced out by ordinal: odd trains start forward from
    index 0, even trains backward from the last index, and the third train
    onward starts mid-line.
    """

    def __init__(self, state: GameState, config: Optional[TrainConfig] = None):
        self.state = state
        self.config = config or TrainConfig()

    def calculate_start_station_idx(self, train_number: int, direction: int, station_count: int) -> int:
        return calculate_start_station_idx(train_number, direction, station_count)

    def create_train_for_line(self, line: MetroLine, direction: int, start_station_idx: int) -> Train:
        """Create (but do not attach) a train with the next train ID."""
        return create_train(
            self.state.next_id("train"), line, direction, start_station_idx, self.config.CAPACITY
        )

    def add_train_to_line(self, line_id: LineId) -> ActionResult:
        """Add the next train to a line.

        Returns:
            ActionResult with the new Train as data on success.
        """
        line = self.state.get_line(line_id)
        if line is None:
            return ActionResult.fail("Line not found")
        if len(line.trains) >= self.config.MAX_PER_LINE:
            return ActionResult.fail("Maximum trains reached for this line")
        if len(line.station_ids) < 2:
            return ActionResult.fail("Line needs at least 2 stations")

        train = place_next_train(self.state, line, self.config)
        logger.info("Train added", line_id=line_id, train_id=train.train_id, count=len(line.trains))
        return ActionResult.ok(train)

    def remove_train_from_line(self, line_id: LineId, train_id: Optional[str] = None) -> ActionResult:
        """Remove a train, the newest one when no ID is given.

        Passengers on board are put back in the queue of the station the
        train last stood at.
        """
        line = self.state.get_line(line_id)
        if line is None:
            return ActionResult.fail("Line not found")
        if len(line.trains) <= self.config.MIN_PER_LINE:
            return ActionResult.fail("Must have at least one train per line")

        if train_id is None:
            train = line.trains[-1]
        else:
            train = line.get_train(train_id)
            if train is None:
                return ActionResult.fail("Train not found")

        self._unload(train, line)
        line.trains = [t for t in line.trains if t is not train]
        logger.info("Train removed", line_id=line_id, train_id=train.train_id)
        return ActionResult.ok(train)

    def _unload(self, train: Train, line: MetroLine) -> None:
        if not train.passengers:
            return
        station_id = line.station_ids[train.current_station_idx]
        station = self.state.get_station(station_id)
        for passenger in list(train.passengers):
            train.remove_passenger(passenger)
            if station is None:
                logger.warning(
                    "Unload station not found; dropping passenger",
                    train_id=train.train_id,
                    passenger_id=passenger.passenger_id,
                )
                self.state.passengers = [p for p in self.state.passengers if p is not passenger]
                passenger.clear_location()
                continue
            passenger.wait_at(station_id)
            station.add_passenger(passenger)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_train_count(self, line_id: LineId) -> int:
        line = self.state.get_line(line_id)
        return len(line.trains) if line else 0

    def can_add_train(self, line_id: LineId) -> bool:
        line = self.state.get_line(line_id)
        return line is not None and len(line.trains) < self.config.MAX_PER_LINE

    def can_remove_train(self, line_id: LineId) -> bool:
        line = self.state.get_line(line_id)
        return line is not None and len(line.trains) > self.config.MIN_PER_LINE

    def get_trains_for_line(self, line_id: LineId) -> list[Train]:
        line = self.state.get_line(line_id)
        return list(line.trains) if line else []
