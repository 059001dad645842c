"""Game controller for the MetroMap simulation.

The GameController is the single owner of the mutable GameState. It provides:
- update(): Advance the simulation by a frame of real time
- dispatch(): Apply a player action and report the outcome
- subscribe(): Register for change notifications

Rule violations never raise; they come back as failed ActionResults.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import structlog

from core.config import SimulationConfig, DEFAULT_CONFIG
from core.constants import VALID_SPEEDS
from core.game_state import GameState
from core.map_grid import MapGrid
from core.rng import SeededRandom
from data.map_generator import MapGenerator
from data.persistence import SaveSlot

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
from .managers import ActionResult, StationManager, LineManager, TrainManager
from .systems.passenger_spawner import PassengerSpawner
from .systems.train_movement import initialize_trains, update_trains


logger = structlog.get_logger()

StateListener = Callable[[GameState], None]


class GameController:
    """Coordinates managers, systems and persistence around one GameState.

    Usage:
        controller = GameController.create_new(seed=42)
        controller.initialize_simulation()

        controller.dispatch(GameAction.place_station(5, 5))
        while running:
            controller.update(frame_ms)
    """

    def __init__(
        self,
        state: GameState,
        save_slot: Optional[SaveSlot] = None,
        config: SimulationConfig = DEFAULT_CONFIG,
        rng: Optional[SeededRandom] = None,
    ):
        """Initialize the controller.

        Args:
            state: The game state to own.
            save_slot: Where to autosave after successful actions. None
                disables saving.
            config: Simulation tunables.
            rng: Random source for spawning. Defaults to one seeded with
                the state's seed.
        """
        if state is None:
            raise ValueError("GameController requires a game state")
        self._state = state
        self.save_slot = save_slot
        self.config = config
        self.rng = rng or SeededRandom(state.seed)

        self.station_manager = StationManager(state, config.economy)
        self.line_manager = LineManager(state, config.economy)
        self.train_manager = TrainManager(state, config.train)
        self.spawner = PassengerSpawner(config.spawn)

        self._listeners: list[StateListener] = []
        self._handlers: dict[ActionType, Callable[[GameAction], ActionResult]] = {
            ActionType.PLACE_STATION: self._place_station,
            ActionType.REMOVE_STATION: self._remove_station,
            ActionType.START_LINE: self._start_line,
            ActionType.ADD_STATION_TO_LINE: self._add_station_to_line,
            ActionType.COMPLETE_LINE: self._complete_line,
            ActionType.CANCEL_LINE: self._cancel_line,
            ActionType.ADD_TRAIN: self._add_train,
            ActionType.REMOVE_TRAIN: self._remove_train,
            ActionType.PAUSE: self._pause,
            ActionType.RESUME: self._resume,
            ActionType.SET_SPEED: self._set_speed,
        }

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def create_new(
        cls,
        seed: int,
        game_map: Optional[MapGrid] = None,
        save_slot: Optional[SaveSlot] = None,
        config: SimulationConfig = DEFAULT_CONFIG,
    ) -> GameController:
        """Start a fresh game.

        Args:
            seed: World seed.
            game_map: Map to play on. Generated from the seed when omitted.
            save_slot: Optional autosave slot.
            config: Simulation tunables.
        """
        if game_map is None:
            game_map = MapGenerator(seed, config.map.WIDTH, config.map.HEIGHT).generate()
        state = GameState.create_initial_state(seed, game_map, config.economy.STARTING_MONEY)
        logger.info("New game created", seed=seed, map_type=game_map.map_type.value)
        return cls(state, save_slot=save_slot, config=config)

    @classmethod
    def load_saved(
        cls,
        save_slot: SaveSlot,
        config: SimulationConfig = DEFAULT_CONFIG,
    ) -> Optional[GameController]:
        """Resume the game in a save slot.

        Returns:
            A controller for the saved game, or None if there is no usable save.
        """
        state = save_slot.load()
        if state is None:
            return None
        logger.info("Saved game loaded", seed=state.seed, stations=len(state.stations))
        return cls(state, save_slot=save_slot, config=config)

    @property
    def state(self) -> GameState:
        """The live game state."""
        return self._state

    # -------------------------------------------------------------------------
    # Simulation
    # -------------------------------------------------------------------------

    def initialize_simulation(self) -> None:
        """Make sure every line has a train and every train a path."""
        initialize_trains(self._state, self.config)

    def update(self, delta_ms: float) -> None:
        """Advance the simulation by one frame.

        Args:
            delta_ms: Real milliseconds since the previous frame.
        """
        if self._state.is_paused:
            return

        delta_seconds = delta_ms / 1000
        speed = self._state.speed
        game_ms = delta_seconds * self.config.GAME_MS_PER_REAL_SECOND * speed
        self._state.simulation_time += int(game_ms)

        self.spawner.update(self._state, game_ms / 1000, self.rng)
        update_trains(self._state, delta_seconds * speed, self.config)

        self._notify()

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def dispatch(self, action: GameAction) -> ActionResult:
        """Apply a player action.

        Successful actions notify subscribers and autosave.

        Returns:
            The ActionResult from the handling manager.
        """
        if not action.has_valid_payload():
            logger.warning("Action has wrong payload", action=str(action))
            return ActionResult.fail(f"Invalid payload for {action.kind}")

        result = self._handlers[action.action_type](action)
        if result.success:
            self._notify()
            self._autosave()
        else:
            logger.debug("Action rejected", action=str(action), error=result.error)
        return result

    def _place_station(self, action: GameAction) -> ActionResult:
        payload: PlaceStationPayload = action.payload
        return self.station_manager.place_station(payload.vertex_x, payload.vertex_y)

    def _remove_station(self, action: GameAction) -> ActionResult:
        payload: RemoveStationPayload = action.payload
        return self.station_manager.remove_station(payload.station_id)

    def _start_line(self, action: GameAction) -> ActionResult:
        payload: StartLinePayload = action.payload
        return self.line_manager.start_line(payload.color)

    def _add_station_to_line(self, action: GameAction) -> ActionResult:
        payload: AddStationToLinePayload = action.payload
        return self.line_manager.add_station_to_line(payload.station_id)

    def _complete_line(self, action: GameAction) -> ActionResult:
        result = self.line_manager.complete_line()
        if result.success:
            self.train_manager.add_train_to_line(result.data.line_id)
        return result

    def _cancel_line(self, action: GameAction) -> ActionResult:
        self.line_manager.cancel_line()
        return ActionResult.ok()

    def _add_train(self, action: GameAction) -> ActionResult:
        payload: AddTrainPayload = action.payload
        return self.train_manager.add_train_to_line(payload.line_id)

    def _remove_train(self, action: GameAction) -> ActionResult:
        payload: RemoveTrainPayload = action.payload
        return self.train_manager.remove_train_from_line(payload.line_id, payload.train_id)

    def _pause(self, action: GameAction) -> ActionResult:
        self._state.is_paused = True
        return ActionResult.ok()

    def _resume(self, action: GameAction) -> ActionResult:
        self._state.is_paused = False
        return ActionResult.ok()

    def _set_speed(self, action: GameAction) -> ActionResult:
        payload: SetSpeedPayload = action.payload
        if type(payload.speed) is not int or payload.speed not in VALID_SPEEDS:
            return ActionResult.fail("Invalid speed value")
        self._state.speed = payload.speed
        return ActionResult.ok()

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with the state after every change.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)

    def get_state(self) -> GameState:
        """The live state. Callers must treat it as read-only."""
        return self._state

    def get_snapshot(self) -> GameState:
        """An independent deep copy of the state."""
        return self._state.clone()

    def get_summary(self) -> dict[str, Any]:
        """Plain-data overview of the game for display."""
        state = self._state
        return {
            "seed": state.seed,
            "map_type": state.map.map_type.value,
            "simulation_time": state.simulation_time,
            "money": state.money,
            "is_paused": state.is_paused,
            "speed": state.speed,
            "stations": len(state.stations),
            "lines": len(state.lines),
            "trains": sum(len(line.trains) for line in state.lines.values()),
            "passengers": len(state.passengers),
            "building_line": self.line_manager.is_building(),
        }

    def get_station_manager(self) -> StationManager:
        return self.station_manager

    def get_line_manager(self) -> LineManager:
        return self.line_manager

    def get_train_manager(self) -> TrainManager:
        return self.train_manager

    # -------------------------------------------------------------------------
    # Controls
    # -------------------------------------------------------------------------

    def is_paused(self) -> bool:
        return self._state.is_paused

    def get_speed(self) -> int:
        return self._state.speed

    def toggle_pause(self) -> ActionResult:
        """Pause if running, resume if paused."""
        if self._state.is_paused:
            return self.dispatch(GameAction.resume())
        return self.dispatch(GameAction.pause())

    def replace_map(self, game_map: MapGrid) -> None:
        """Swap in a new map and drop cached catchments."""
        if not game_map.is_frozen:
            game_map.freeze()
        self._state.map = game_map
        self.spawner.invalidate()
        logger.info("Map replaced", seed=game_map.seed, map_type=game_map.map_type.value)
        self._notify()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self) -> bool:
        """Write the state to the save slot.

        Returns:
            False if the controller has no save slot.
        """
        if self.save_slot is None:
            return False
        self.save_slot.save(self._state)
        return True

    def clear_saved(self) -> None:
        if self.save_slot is not None:
            self.save_slot.clear()

    def has_saved_game(self) -> bool:
        return self.save_slot is not None and self.save_slot.exists()

    def _autosave(self) -> None:
        if self.save_slot is not None:
            self.save_slot.save(self._state)
