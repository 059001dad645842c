"""Metro line construction.

A line is built interactively: pick a color, add stations one at a time,
then complete (or cancel). Completed lines are immutable and never removed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

import structlog

from core.config import EconomyConfig
from core.constants import LineColor, MIN_STATIONS_PER_LINE
from core.metro_line import MetroLine, LineId, is_line_loop, can_add_station_to_line
from core.station import StationId
from engine.systems.economics import deduct_line_cost

from .results import ActionResult

if TYPE_CHECKING:
    from core.game_state import GameState


logger = structlog.get_logger()


@dataclass
class BuildingLine:
    """A line under construction.

    Attributes:
        color: Chosen color.
        station_ids: Stations added so far.
    """

    color: LineColor
    station_ids: list[StationId] = field(default_factory=list)


class LineManager:
    """Validates and applies line-building operations on a game state."""

    def __init__(self, state: GameState, economy: Optional[EconomyConfig] = None):
        self.state = state
        self.economy = economy or EconomyConfig()
        self._current: Optional[BuildingLine] = None

    def is_building(self) -> bool:
        """Check if a line is under construction."""
        return self._current is not None

    def get_current_line(self) -> Optional[BuildingLine]:
        return self._current

    def get_available_colors(self) -> list[LineColor]:
        """Colors not yet used by a completed line."""
        return [c for c in LineColor if not self.state.has_line_with_color(c)]

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def start_line(self, color: LineColor) -> ActionResult:
        """Begin a new line. Replaces any line already under construction.

        Args:
            color: A LineColor, or its string value.
        """
        if not isinstance(color, LineColor):
            valid_values = {c.value for c in LineColor}
            if color not in valid_values:
                return ActionResult.fail(f"Unknown line color: {color}")
            color = LineColor(color)

        if self.state.has_line_with_color(color):
            return ActionResult.fail(f"Line with color {color.value} already exists")

        self._current = BuildingLine(color=color)
        return ActionResult.ok(self._current)

    def add_station_to_line(self, station_id: StationId) -> ActionResult:
        """Append a station to the line under construction.

        A station may appear once, except that the first station may be
        added again (with at least 2 stations in place) to close a loop.
        Nothing can follow a closed loop.
        """
        if self._current is None:
            return ActionResult.fail("No line is being built")
        if station_id not in self.state.stations:
            return ActionResult.fail("Station not found")
        if not can_add_station_to_line(self._current.station_ids, station_id):
            return ActionResult.fail("Cannot add this station to the line")

        self._current.station_ids.append(station_id)
        return ActionResult.ok(self._current)

    def cancel_line(self) -> None:
        """Abandon the line under construction, if any."""
        self._current = None

    def complete_line(self) -> ActionResult:
        """Turn the line under construction into a completed line.

        The build cost is charged and the line gets the next line ID.

        Returns:
            ActionResult with the new MetroLine as data on success.
        """
        if self._current is None:
            return ActionResult.fail("No line is being built")
        if len(self._current.station_ids) < MIN_STATIONS_PER_LINE:
            return ActionResult.fail(f"Line must have at least {MIN_STATIONS_PER_LINE} stations")
        if self.state.has_line_with_color(self._current.color):
            return ActionResult.fail(f"Line with color {self._current.color.value} already exists")
        if any(station_id not in self.state.stations for station_id in self._current.station_ids):
            return ActionResult.fail("Line references a removed station")

        station_ids = list(self._current.station_ids)
        line = MetroLine(
            line_id=self.state.next_id("line"),
            color=self._current.color,
            station_ids=station_ids,
            is_loop=is_line_loop(station_ids),
        )
        cost = deduct_line_cost(self.state, line, self.economy)
        self.state.lines[line.line_id] = line
        self._current = None

        logger.info(
            "Line completed",
            line_id=line.line_id,
            color=line.color.value,
            stations=len(line.unique_station_ids()),
            is_loop=line.is_loop,
            cost=cost,
        )
        return ActionResult.ok(line)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_line_by_id(self, line_id: LineId) -> Optional[MetroLine]:
        return self.state.get_line(line_id)

    def get_all_lines(self) -> list[MetroLine]:
        return list(self.state.lines.values())

    def get_lines_for_station(self, station_id: StationId) -> list[MetroLine]:
        return self.state.lines_for_station(station_id)
