"""Tests for the GameController."""

import pytest

from core.constants import LineColor, STARTING_MONEY
from core.game_state import game_start_time_ms
from data.persistence import InMemoryStore, SaveSlot
from engine.actions import ActionType, GameAction, PlaceStationPayload, SetSpeedPayload
from engine.game_controller import GameController

from conftest import build_map


@pytest.fixture
def controller():
    return GameController.create_new(seed=7, game_map=build_map(residential=40, office=40))


@pytest.fixture
def slot():
    return SaveSlot(InMemoryStore())


def build_red_line(controller, points=((2, 2), (6, 2), (10, 2), (14, 2))):
    for x, y in points:
        assert controller.dispatch(GameAction.place_station(x, y)).success
    controller.dispatch(GameAction.start_line(LineColor.RED))
    for x, y in points:
        controller.dispatch(GameAction.add_station_to_line(f"{x:02d}{y:02d}"))
    return controller.dispatch(GameAction.complete_line())


# =============================================================================
# Construction Tests
# =============================================================================

class TestCreation:
    """Test creating and loading games."""

    def test_create_new_with_map(self, controller):
        state = controller.get_state()
        assert state.seed == 7
        assert state.money == STARTING_MONEY
        assert state.simulation_time == game_start_time_ms()
        assert state.stations == {}

    def test_create_new_generates_map(self):
        controller = GameController.create_new(seed=42)
        state = controller.get_state()
        assert (state.map.width, state.map.height) == (48, 32)
        assert state.map.seed == 42

    def test_state_required(self):
        with pytest.raises(ValueError):
            GameController(None)

    def test_load_saved_empty(self, slot):
        assert GameController.load_saved(slot) is None

    def test_load_saved(self, slot):
        original = GameController.create_new(seed=7, game_map=build_map(), save_slot=slot)
        build_red_line(original)
        restored = GameController.load_saved(slot)
        assert restored is not None
        assert restored.get_state() == original.get_state()


# =============================================================================
# Dispatch Tests
# =============================================================================

class TestDispatch:
    """Test action dispatch."""

    def test_place_station(self, controller):
        result = controller.dispatch(GameAction.place_station(5, 5))
        assert result.success
        assert "0505" in controller.get_state().stations

    def test_rule_violation_is_a_result(self, controller):
        controller.dispatch(GameAction.place_station(5, 5))
        result = controller.dispatch(GameAction.place_station(5, 6))
        assert not result.success
        assert result.error == "Cannot place station adjacent to another station"

    def test_wrong_payload(self, controller):
        result = controller.dispatch(GameAction(ActionType.PLACE_STATION, SetSpeedPayload(2)))
        assert not result.success
        assert result.error == "Invalid payload for PLACE_STATION"

    def test_missing_payload(self, controller):
        assert not controller.dispatch(GameAction(ActionType.ADD_TRAIN)).success

    def test_unknown_action_kind(self, controller):
        result = controller.dispatch(GameAction("PLACE_STATION", PlaceStationPayload(5, 5)))
        assert not result.success
        assert result.error == "Invalid payload for PLACE_STATION"
        assert controller.get_state().stations == {}

    def test_remove_station_mid_build(self, controller):
        controller.dispatch(GameAction.place_station(2, 2))
        controller.dispatch(GameAction.place_station(6, 2))
        controller.dispatch(GameAction.start_line(LineColor.RED))
        controller.dispatch(GameAction.add_station_to_line("0202"))
        controller.dispatch(GameAction.add_station_to_line("0602"))
        assert controller.dispatch(GameAction.remove_station("0602")).success

        assert not controller.dispatch(GameAction.complete_line()).success
        assert controller.get_state().lines == {}
        assert controller.get_state().validate() == []

    def test_complete_line_places_first_train(self, controller):
        result = build_red_line(controller)
        assert result.success
        line = result.data
        assert len(line.trains) == 1
        assert line.trains[0].current_segment is not None

    def test_line_is_immutable_once_completed(self, controller):
        line = build_red_line(controller).data
        before = list(line.station_ids)
        result = controller.dispatch(GameAction.add_station_to_line("0202"))
        assert result.error == "No line is being built"
        assert not controller.dispatch(GameAction.remove_station("0602")).success
        assert line.station_ids == before

    def test_cancel_line(self, controller):
        controller.dispatch(GameAction.start_line(LineColor.BLUE))
        assert controller.dispatch(GameAction.cancel_line()).success
        assert not controller.get_line_manager().is_building()

    def test_train_actions(self, controller):
        line = build_red_line(controller).data
        assert controller.dispatch(GameAction.add_train(line.line_id)).success
        assert len(line.trains) == 2
        assert controller.dispatch(GameAction.remove_train(line.line_id)).success
        result = controller.dispatch(GameAction.remove_train(line.line_id))
        assert result.error == "Must have at least one train per line"

    def test_pause_and_resume(self, controller):
        controller.dispatch(GameAction.pause())
        assert controller.is_paused()
        controller.dispatch(GameAction.resume())
        assert not controller.is_paused()

    def test_toggle_pause(self, controller):
        controller.toggle_pause()
        assert controller.is_paused()
        controller.toggle_pause()
        assert not controller.is_paused()

    @pytest.mark.parametrize("speed", [1, 2, 4])
    def test_valid_speed(self, controller, speed):
        assert controller.dispatch(GameAction.set_speed(speed)).success
        assert controller.get_speed() == speed

    @pytest.mark.parametrize("speed", [0, 3, 8, -1, True, 2.0, "2"])
    def test_invalid_speed(self, controller, speed):
        result = controller.dispatch(GameAction.set_speed(speed))
        assert not result.success
        assert result.error == "Invalid speed value"
        assert controller.get_speed() == 1


# =============================================================================
# Simulation Tests
# =============================================================================

class TestUpdate:
    """Test ticking the simulation."""

    def test_clock_advances(self, controller):
        start = controller.get_state().simulation_time
        controller.update(1000)
        assert controller.get_state().simulation_time == start + 300_000

    def test_speed_scales_clock(self, controller):
        controller.dispatch(GameAction.set_speed(4))
        start = controller.get_state().simulation_time
        controller.update(500)
        assert controller.get_state().simulation_time == start + 600_000

    def test_paused_is_a_no_op(self, controller):
        build_red_line(controller)
        controller.dispatch(GameAction.pause())
        before = controller.get_state().state_hash()
        controller.update(1000)
        assert controller.get_state().state_hash() == before

    def test_trains_move(self, controller):
        line = build_red_line(controller).data
        money = controller.get_state().money
        controller.update(100)
        assert line.trains[0].progress > 0
        assert controller.get_state().money < money

    def test_passenger_conservation(self, controller):
        """The roster and the queues agree after every tick."""
        build_red_line(controller)
        build_blue = [(6, 6), (10, 6)]
        for x, y in build_blue:
            controller.dispatch(GameAction.place_station(x, y))
        controller.dispatch(GameAction.start_line(LineColor.BLUE))
        for station_id in ("0602", "0606", "1006"):
            controller.dispatch(GameAction.add_station_to_line(station_id))
        assert controller.dispatch(GameAction.complete_line()).success
        controller.dispatch(GameAction.set_speed(4))

        money = controller.get_state().money
        for _ in range(600):
            controller.update(50)
            assert controller.get_state().validate() == []
        assert controller.get_state().money != money

    def test_initialize_simulation(self, controller):
        line = build_red_line(controller).data
        line.trains[0].clear_segment()
        controller.initialize_simulation()
        assert line.trains[0].current_segment is not None


# =============================================================================
# Observation Tests
# =============================================================================

class TestObservation:
    """Test subscriptions, snapshots and summaries."""

    def test_subscribe_and_unsubscribe(self, controller):
        seen = []
        unsubscribe = controller.subscribe(seen.append)
        controller.dispatch(GameAction.place_station(5, 5))
        controller.update(16)
        assert len(seen) == 2
        assert seen[0] is controller.get_state()

        unsubscribe()
        controller.dispatch(GameAction.place_station(9, 9))
        assert len(seen) == 2
        unsubscribe()

    def test_failed_action_does_not_notify(self, controller):
        seen = []
        controller.subscribe(seen.append)
        controller.dispatch(GameAction.set_speed(3))
        assert seen == []

    def test_snapshot_is_independent(self, controller):
        controller.dispatch(GameAction.place_station(5, 5))
        snapshot = controller.get_snapshot()
        controller.dispatch(GameAction.place_station(9, 9))
        assert len(snapshot.stations) == 1
        assert len(controller.get_state().stations) == 2

    def test_summary(self, controller):
        build_red_line(controller)
        summary = controller.get_summary()
        assert summary["stations"] == 4
        assert summary["lines"] == 1
        assert summary["trains"] == 1
        assert summary["speed"] == 1
        assert summary["building_line"] is False

    def test_replace_map(self, controller):
        build_red_line(controller)
        controller.update(100)
        assert controller.spawner.cached_station_ids()
        new_map = build_map(residential=5)
        controller.replace_map(new_map)
        assert controller.get_state().map is new_map
        assert controller.spawner.cached_station_ids() == []


# =============================================================================
# Persistence Tests
# =============================================================================

class TestSaving:
    """Test autosave and explicit saves."""

    def test_no_slot(self, controller):
        assert not controller.save()
        assert not controller.has_saved_game()
        controller.clear_saved()

    def test_autosave_after_success(self, slot):
        controller = GameController.create_new(seed=7, game_map=build_map(), save_slot=slot)
        assert not controller.has_saved_game()
        controller.dispatch(GameAction.place_station(5, 5))
        assert controller.has_saved_game()
        assert "0505" in slot.load().stations

    def test_no_autosave_after_failure(self, slot):
        controller = GameController.create_new(seed=7, game_map=build_map(), save_slot=slot)
        controller.dispatch(GameAction.set_speed(3))
        assert not controller.has_saved_game()

    def test_save_and_clear(self, slot):
        controller = GameController.create_new(seed=7, game_map=build_map(), save_slot=slot)
        assert controller.save()
        assert controller.has_saved_game()
        controller.clear_saved()
        assert not controller.has_saved_game()
