"""Tests for the station, line and train managers."""

import pytest

from core.config import TrainConfig
from core.constants import LineColor, STARTING_MONEY
from core.components import Passenger
from core.game_state import GameState
from engine.managers import StationManager, LineManager, TrainManager

from conftest import add_station


@pytest.fixture
def stations(empty_state):
    return StationManager(empty_state)


@pytest.fixture
def lines(empty_state):
    return LineManager(empty_state)


@pytest.fixture
def trains(empty_state):
    return TrainManager(empty_state)


@pytest.fixture
def built_line(empty_state, stations, lines):
    """A completed red line through four stations along y=2."""
    for x in (2, 6, 10, 14):
        stations.place_station(x, 2)
    lines.start_line(LineColor.RED)
    for station_id in ("0202", "0602", "1002", "1402"):
        lines.add_station_to_line(station_id)
    return lines.complete_line().data


# =============================================================================
# Station Manager Tests
# =============================================================================

class TestStationPlacement:
    """Test station placement rules."""

    def test_place_station(self, empty_state, stations):
        result = stations.place_station(5, 5)
        assert result.success
        assert result.data.station_id == "0505"
        assert result.data.label == "A"
        assert stations.has_station_at(5, 5)
        assert empty_state.money == STARTING_MONEY - 10_000

    def test_spacing_and_duplicates(self, empty_state, stations):
        """(5,5) then (5,6) is too close; (5,5) again already exists."""
        assert stations.place_station(5, 5).success

        adjacent = stations.place_station(5, 6)
        assert not adjacent.success
        assert adjacent.error == "Cannot place station adjacent to another station"

        duplicate = stations.place_station(5, 5)
        assert not duplicate.success
        assert duplicate.error == "Station already exists at this location"

        assert len(empty_state.stations) == 1
        assert empty_state.money == STARTING_MONEY - 10_000

    def test_diagonal_neighbor_allowed(self, stations):
        assert stations.place_station(5, 5).success
        assert stations.place_station(6, 6).success

    def test_labels_follow_insertion_order(self, stations):
        labels = [stations.place_station(x, 1).data.label for x in (1, 3, 5)]
        assert labels == ["A", "B", "C"]

    @pytest.mark.parametrize(
        "x, y, error",
        [
            (-1, 5, "X coordinate out of bounds"),
            (21, 5, "X coordinate out of bounds"),
            (5, -1, "Y coordinate out of bounds"),
            (5, 17, "Y coordinate out of bounds"),
        ],
    )
    def test_out_of_bounds(self, stations, x, y, error):
        result = stations.can_place_station(x, y)
        assert not result.valid
        assert result.reason == error

    def test_edge_vertices_allowed(self, stations):
        """Vertices run from 0 to width / height inclusive."""
        assert stations.can_place_station(20, 16).valid
        assert stations.can_place_station(0, 0).valid

    def test_water_rejected(self, map_factory):
        water = [(4, 4), (5, 4), (4, 5), (5, 5)]
        state = GameState.create_initial_state(seed=1, game_map=map_factory(water_tiles=water))
        manager = StationManager(state)
        result = manager.place_station(5, 5)
        assert result.error == "Cannot place station on water"
        assert manager.is_water(5, 5)
        assert manager.is_on_land(4, 4)
        assert manager.place_station(4, 4).success

    def test_queries(self, stations):
        stations.place_station(5, 5)
        assert stations.get_station_at(5, 5).station_id == "0505"
        assert stations.get_station_by_id("0505") is stations.get_station_at(5, 5)
        assert stations.get_station_at(1, 1) is None
        assert len(stations.get_all_stations()) == 1
        assert stations.has_adjacent_station(5, 4)
        assert not stations.has_adjacent_station(6, 6)


class TestStationRemoval:
    """Test station removal."""

    def test_remove_station(self, empty_state, stations):
        stations.place_station(5, 5)
        assert stations.remove_station("0505").success
        assert "0505" not in empty_state.stations

    def test_remove_unknown(self, stations):
        assert stations.remove_station("0909").error == "Station not found"

    def test_remove_station_on_line(self, stations, built_line):
        result = stations.remove_station("0602")
        assert result.error == "Cannot remove station that is part of a line"

    def test_waiting_passengers_dropped(self, empty_state, stations):
        stations.place_station(5, 5)
        passenger = Passenger.create("passenger-1", "0505", "0909", 0)
        empty_state.passengers.append(passenger)
        empty_state.get_station("0505").add_passenger(passenger)
        stations.remove_station("0505")
        assert empty_state.passengers == []
        assert empty_state.validate() == []


# =============================================================================
# Line Manager Tests
# =============================================================================

class TestLineBuilding:
    """Test building a line step by step."""

    def test_start_line(self, lines):
        result = lines.start_line(LineColor.BLUE)
        assert result.success
        assert lines.is_building()
        assert lines.get_current_line().color == LineColor.BLUE

    def test_start_line_by_value(self, lines):
        assert lines.start_line("green").success
        assert lines.get_current_line().color == LineColor.GREEN

    def test_unknown_color(self, lines):
        result = lines.start_line("purple")
        assert not result.success
        assert result.error == "Unknown line color: purple"

    def test_used_color(self, lines, built_line):
        result = lines.start_line(LineColor.RED)
        assert result.error == "Line with color red already exists"
        assert LineColor.RED not in lines.get_available_colors()
        assert len(lines.get_available_colors()) == 11

    def test_add_without_line(self, stations, lines):
        stations.place_station(2, 2)
        assert lines.add_station_to_line("0202").error == "No line is being built"

    def test_add_unknown_station(self, lines):
        lines.start_line(LineColor.RED)
        assert lines.add_station_to_line("0909").error == "Station not found"

    def test_no_duplicates(self, stations, lines):
        for x in (2, 6, 10):
            stations.place_station(x, 2)
        lines.start_line(LineColor.RED)
        lines.add_station_to_line("0202")
        lines.add_station_to_line("0602")
        lines.add_station_to_line("1002")
        assert lines.add_station_to_line("0602").error == "Cannot add this station to the line"

    def test_close_loop(self, stations, lines):
        for x, y in ((2, 2), (8, 2), (8, 8)):
            stations.place_station(x, y)
        lines.start_line(LineColor.RED)
        for station_id in ("0202", "0802", "0808", "0202"):
            assert lines.add_station_to_line(station_id).success
        assert not lines.add_station_to_line("0802").success

        line = lines.complete_line().data
        assert line.is_loop
        assert line.station_ids == ["0202", "0802", "0808", "0202"]

    def test_cancel(self, stations, lines):
        stations.place_station(2, 2)
        lines.start_line(LineColor.RED)
        lines.add_station_to_line("0202")
        lines.cancel_line()
        assert not lines.is_building()
        assert lines.get_current_line() is None


class TestLineCompletion:
    """Test completing lines."""

    def test_needs_two_stations(self, stations, lines):
        stations.place_station(2, 2)
        lines.start_line(LineColor.RED)
        lines.add_station_to_line("0202")
        assert lines.complete_line().error == "Line must have at least 2 stations"
        assert lines.is_building()

    def test_station_removed_while_building(self, empty_state, stations, lines):
        """A station dropped mid-build keeps the line from completing."""
        stations.place_station(2, 2)
        stations.place_station(6, 2)
        lines.start_line(LineColor.RED)
        lines.add_station_to_line("0202")
        lines.add_station_to_line("0602")
        assert stations.remove_station("0602").success

        result = lines.complete_line()
        assert result.error == "Line references a removed station"
        assert empty_state.lines == {}
        assert empty_state.validate() == []

    def test_nothing_to_complete(self, lines):
        assert not lines.complete_line().success

    def test_complete_line(self, empty_state, lines, built_line):
        assert built_line.line_id == "line-1"
        assert not built_line.is_loop
        assert not lines.is_building()
        assert lines.get_line_by_id("line-1") is built_line
        assert lines.get_all_lines() == [built_line]
        assert lines.get_lines_for_station("1002") == [built_line]

    def test_line_cost_charged(self, empty_state, built_line):
        """Four stations plus 12 units of track."""
        assert empty_state.money == STARTING_MONEY - 4 * 10_000 - 12 * 1_000

    def test_line_ids_never_reused(self, empty_state, stations, lines, built_line):
        lines.start_line(LineColor.BLUE)
        lines.add_station_to_line("0202")
        lines.add_station_to_line("0602")
        second = lines.complete_line().data
        assert second.line_id == "line-2"


# =============================================================================
# Train Manager Tests
# =============================================================================

class TestTrainManager:
    """Test adding and removing trains."""

    def test_add_train(self, trains, built_line):
        result = trains.add_train_to_line(built_line.line_id)
        assert result.success
        train = result.data
        assert train.train_id == "train-1"
        assert train.direction == 1
        assert train.current_segment is not None
        assert trains.get_train_count(built_line.line_id) == 1

    def test_alternating_directions(self, trains, built_line):
        directions = [trains.add_train_to_line(built_line.line_id).data.direction for _ in range(4)]
        assert directions == [1, -1, 1, -1]
        starts = [t.current_station_idx for t in trains.get_trains_for_line(built_line.line_id)]
        assert starts == [0, 3, 2, 1]

    def test_cap(self, trains, built_line):
        for _ in range(5):
            assert trains.add_train_to_line(built_line.line_id).success
        assert not trains.can_add_train(built_line.line_id)
        result = trains.add_train_to_line(built_line.line_id)
        assert result.error == "Maximum trains reached for this line"

    def test_unknown_line(self, trains):
        assert trains.add_train_to_line("line-9").error == "Line not found"
        assert trains.remove_train_from_line("line-9").error == "Line not found"
        assert trains.get_train_count("line-9") == 0
        assert trains.get_trains_for_line("line-9") == []

    def test_floor(self, trains, built_line):
        trains.add_train_to_line(built_line.line_id)
        assert not trains.can_remove_train(built_line.line_id)
        result = trains.remove_train_from_line(built_line.line_id)
        assert result.error == "Must have at least one train per line"

    def test_remove_newest(self, trains, built_line):
        trains.add_train_to_line(built_line.line_id)
        trains.add_train_to_line(built_line.line_id)
        removed = trains.remove_train_from_line(built_line.line_id).data
        assert removed.train_id == "train-2"
        assert trains.get_train_count(built_line.line_id) == 1

    def test_remove_by_id(self, trains, built_line):
        trains.add_train_to_line(built_line.line_id)
        trains.add_train_to_line(built_line.line_id)
        assert trains.remove_train_from_line(built_line.line_id, "train-1").success
        assert [t.train_id for t in built_line.trains] == ["train-2"]

    def test_remove_missing_id(self, trains, built_line):
        trains.add_train_to_line(built_line.line_id)
        trains.add_train_to_line(built_line.line_id)
        assert trains.remove_train_from_line(built_line.line_id, "train-7").error == "Train not found"

    def test_passengers_returned_to_station(self, empty_state, trains, built_line):
        trains.add_train_to_line(built_line.line_id)
        train = trains.add_train_to_line(built_line.line_id).data
        passenger = Passenger.create("passenger-1", "1402", "0202", 0)
        passenger.path = ["1402", "1002", "0602", "0202"]
        passenger.next_waypoint_index = 1
        passenger.board(train.train_id)
        train.passengers.append(passenger)
        empty_state.passengers.append(passenger)

        trains.remove_train_from_line(built_line.line_id, train.train_id)
        station = empty_state.get_station("1402")
        assert station.passengers == [passenger]
        assert passenger.current_station_id == "1402"
        assert empty_state.validate() == []

    def test_custom_config(self, empty_state, built_line):
        manager = TrainManager(empty_state, TrainConfig(MAX_PER_LINE=1, CAPACITY=4))
        assert manager.add_train_to_line(built_line.line_id).data.capacity == 4
        assert not manager.add_train_to_line(built_line.line_id).success
