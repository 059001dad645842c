"""Tests for the station graph and route finding."""

import pytest

from core.constants import LineColor
from engine.station_graph import StationGraph, find_route

from conftest import add_station, add_line


@pytest.fixture
def network(empty_state):
    """Two lines sharing a transfer station, plus an isolated station.

    Red: A - B - C
    Blue: C - D
    E is not on any line.
    """
    a = add_station(empty_state, 1, 1)
    b = add_station(empty_state, 4, 1)
    c = add_station(empty_state, 7, 1)
    d = add_station(empty_state, 7, 5)
    add_station(empty_state, 12, 12)
    add_line(empty_state, [a.station_id, b.station_id, c.station_id], LineColor.RED)
    add_line(empty_state, [c.station_id, d.station_id], LineColor.BLUE)
    return empty_state


# =============================================================================
# Graph Construction Tests
# =============================================================================

class TestStationGraphBuild:
    """Test building the adjacency graph."""

    def test_every_station_is_a_node(self, network):
        graph = StationGraph.build(network.stations, network.lines.values())
        for station_id in network.stations:
            assert graph.has_station(station_id)

    def test_neighbors(self, network):
        graph = StationGraph.build(network.stations, network.lines.values())
        assert sorted(graph.neighbors("0401")) == ["0101", "0701"]
        assert graph.neighbors("1212") == []
        assert graph.neighbors("9999") == []

    def test_edge_lines(self, network):
        graph = StationGraph.build(network.stations, network.lines.values())
        assert graph.lines_between("0101", "0401") == {"line-1"}
        assert graph.lines_between("0701", "0705") == {"line-2"}
        assert graph.lines_between("0101", "0701") == set()

    def test_shared_edge_lists_both_lines(self, empty_state):
        a = add_station(empty_state, 1, 1)
        b = add_station(empty_state, 4, 1)
        add_line(empty_state, [a.station_id, b.station_id], LineColor.RED)
        add_line(empty_state, [b.station_id, a.station_id], LineColor.BLUE)
        graph = StationGraph.build(empty_state.stations, empty_state.lines.values())
        assert graph.lines_between("0101", "0401") == {"line-1", "line-2"}

    def test_loop_closing_edge(self, empty_state):
        ids = [add_station(empty_state, x, y).station_id for x, y in ((1, 1), (5, 1), (5, 5))]
        add_line(empty_state, ids + [ids[0]])
        graph = StationGraph.build(empty_state.stations, empty_state.lines.values())
        assert graph.lines_between(ids[2], ids[0]) == {"line-1"}
        assert graph.find_route(ids[0], ids[2]) == [ids[0], ids[2]]


# =============================================================================
# Route Finding Tests
# =============================================================================

class TestFindRoute:
    """Test breadth-first routing."""

    def test_same_line(self, network):
        assert find_route("0101", "0701", network.stations, network.lines.values()) == [
            "0101",
            "0401",
            "0701",
        ]

    def test_transfer(self, network):
        route = find_route("0101", "0705", network.stations, network.lines.values())
        assert route == ["0101", "0401", "0701", "0705"]

    def test_reverse_direction(self, network):
        route = find_route("0705", "0101", network.stations, network.lines.values())
        assert route == ["0705", "0701", "0401", "0101"]

    def test_same_station(self, network):
        assert find_route("0101", "0101", network.stations, network.lines.values()) == []

    def test_unreachable(self, network):
        assert find_route("0101", "1212", network.stations, network.lines.values()) is None

    def test_unknown_station(self, network):
        assert find_route("0101", "9999", network.stations, network.lines.values()) is None

    def test_minimum_hops(self, empty_state):
        """A shortcut line beats the long way round."""
        ids = [add_station(empty_state, x, 1).station_id for x in (1, 4, 7, 10)]
        add_line(empty_state, ids, LineColor.RED)
        add_line(empty_state, [ids[0], ids[3]], LineColor.BLUE)
        graph = StationGraph.build(empty_state.stations, empty_state.lines.values())
        assert graph.find_route(ids[0], ids[3]) == [ids[0], ids[3]]
