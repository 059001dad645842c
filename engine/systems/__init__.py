"""Simulation systems for the MetroMap engine.

Each system reads and writes GameState directly:
- economics: building costs, running costs and fares
- train_movement: per-train MOVING / STOPPED state machine
- passenger_spawner: probabilistic passenger generation
- passenger_movement: boarding and alighting at arrivals
"""

from .economics import (
    calculate_line_cost,
    deduct_station_cost,
    deduct_line_cost,
    deduct_train_running_cost,
    add_ticket_revenue,
    format_money,
)

from .passenger_movement import (
    is_train_heading_towards,
    should_passenger_board,
    handle_alighting,
    handle_boarding,
    update_passenger_movement,
)

from .train_movement import (
    calculate_start_station_idx,
    create_train,
    place_next_train,
    initialize_trains,
    update_train_path,
    advance_target,
    update_train,
    update_trains,
)

from .passenger_spawner import (
    CatchmentStats,
    SpawnRegime,
    PassengerSpawner,
    calculate_catchment,
    regime_for_hour,
)

__all__ = [
    # Economics
    "calculate_line_cost",
    "deduct_station_cost",
    "deduct_line_cost",
    "deduct_train_running_cost",
    "add_ticket_revenue",
    "format_money",
    # Passenger movement
    "is_train_heading_towards",
    "should_passenger_board",
    "handle_alighting",
    "handle_boarding",
    "update_passenger_movement",
    # Train movement
    "calculate_start_station_idx",
    "create_train",
    "place_next_train",
    "initialize_trains",
    "update_train_path",
    "advance_target",
    "update_train",
    "update_trains",
    # Spawning
    "CatchmentStats",
    "SpawnRegime",
    "PassengerSpawner",
    "calculate_catchment",
    "regime_for_hour",
]
