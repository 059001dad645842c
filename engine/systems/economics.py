"""Money ledger for the MetroMap simulation.

Building costs, train running costs and fares. Money may go negative;
there is no bankruptcy rule at this layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from core.config import EconomyConfig
from engine.route_geometry import calculate_line_length

if TYPE_CHECKING:
    from core.game_state import GameState
    from core.metro_line import MetroLine


logger = structlog.get_logger()

DEFAULT_ECONOMY = EconomyConfig()


def calculate_line_cost_length(station_ids: list[str], state: GameState) -> float:
    """Octilinear length of a station sequence.

    Unknown station IDs are skipped with a warning.
    """
    stations = []
    for station_id in station_ids:
        station = state.get_station(station_id)
        if station is None:
            logger.warning("Line references unknown station", station_id=station_id)
            continue
        stations.append(station)
    return calculate_line_length(stations)


def calculate_line_cost(
    line: MetroLine,
    state: GameState,
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> float:
    """Build cost of a line: its octilinear length times the per-unit cost."""
    return calculate_line_cost_length(line.station_ids, state) * economy.LINE_COST_PER_UNIT


def deduct_station_cost(state: GameState, economy: EconomyConfig = DEFAULT_ECONOMY) -> None:
    """Charge for building a station."""
    state.money -= economy.STATION_COST


def deduct_line_cost(
    state: GameState,
    line: MetroLine,
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> float:
    """Charge for building a line.

    Returns:
        The amount charged.
    """
    cost = calculate_line_cost(line, state, economy)
    state.money -= cost
    return cost


def deduct_train_running_cost(
    state: GameState,
    distance: float,
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> None:
    """Charge for a train travelling a distance."""
    state.money -= distance * economy.RUNNING_COST_PER_UNIT


def add_ticket_revenue(state: GameState, economy: EconomyConfig = DEFAULT_ECONOMY) -> None:
    """Credit the fare for one completed journey."""
    state.money += economy.FARE


def format_money(money: float) -> str:
    """Format a balance for display, e.g. "$1,234" or "-$1,234"."""
    amount = f"{abs(money):,.0f}"
    return f"${amount}" if money >= 0 else f"-${amount}"
