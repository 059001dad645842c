"""Shared fixtures: small hand-made maps and game states."""

import numpy as np
import pytest

from core.constants import TileType, MapType, LineColor
from core.map_grid import MapGrid
from core.game_state import GameState
from core.metro_line import MetroLine, is_line_loop
from core.station import Station, generate_station_label


def build_map(width=20, height=16, residential=0, office=0, water_tiles=()):
    """All-land map with uniform densities and optional water tiles."""
    terrain = np.full((height, width), TileType.LAND.value, dtype=np.int8)
    for x, y in water_tiles:
        terrain[y, x] = TileType.WATER.value
    res = np.full((height, width), residential, dtype=np.int16)
    off = np.full((height, width), office, dtype=np.int16)
    res[terrain == TileType.WATER.value] = 0
    off[terrain == TileType.WATER.value] = 0
    grid = MapGrid(
        width=width,
        height=height,
        seed=7,
        map_type=MapType.RIVER,
        terrain=terrain,
        residential=res,
        office=off,
    )
    grid.freeze()
    return grid


def add_station(state, vertex_x, vertex_y):
    """Insert a station directly, bypassing the manager."""
    station = Station.create(vertex_x, vertex_y, generate_station_label(len(state.stations)))
    state.stations[station.station_id] = station
    return station


def add_line(state, station_ids, color=LineColor.RED):
    """Insert a completed line directly, bypassing the manager."""
    line = MetroLine(
        line_id=state.next_id("line"),
        color=color,
        station_ids=list(station_ids),
        is_loop=is_line_loop(list(station_ids)),
    )
    state.lines[line.line_id] = line
    return line


@pytest.fixture
def map_factory():
    """Factory for small hand-made maps."""
    return build_map


@pytest.fixture
def land_map():
    """A 20x16 all-land map with no density."""
    return build_map()


@pytest.fixture
def empty_state(land_map):
    """A fresh game on the all-land map."""
    return GameState.create_initial_state(seed=7, game_map=land_map)


@pytest.fixture
def straight_state(empty_state):
    """Four stations in a row along y=2, four units apart, on one line."""
    stations = [add_station(empty_state, x, 2) for x in (2, 6, 10, 14)]
    add_line(empty_state, [s.station_id for s in stations])
    return empty_state
