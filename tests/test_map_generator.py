"""Tests for seeded map generation."""

from collections import deque

import numpy as np
import pytest

from core.constants import (
    TileType,
    MapType,
    MAX_DENSITY,
    DENSITY_TOTAL_CEILING,
    MIN_ISLAND_SIZE,
)
from data.map_generator import MapGenerator, generate_map


LAND = TileType.LAND.value
WATER = TileType.WATER.value


def components(terrain, kind):
    """4-connected components of one tile kind, as lists of (x, y)."""
    height, width = terrain.shape
    seen = np.zeros(terrain.shape, dtype=bool)
    result = []
    for y in range(height):
        for x in range(width):
            if terrain[y, x] != kind or seen[y, x]:
                continue
            region = []
            queue = deque([(x, y)])
            seen[y, x] = True
            while queue:
                cx, cy = queue.popleft()
                region.append((cx, cy))
                for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
                    nx, ny = cx + dx, cy + dy
                    if 0 <= nx < width and 0 <= ny < height and not seen[ny, nx] and terrain[ny, nx] == kind:
                        seen[ny, nx] = True
                        queue.append((nx, ny))
            result.append(region)
    return result


def spans_opposite_edges(region, width, height):
    xs = {x for x, _ in region}
    ys = {y for _, y in region}
    return (0 in xs and width - 1 in xs) or (0 in ys and height - 1 in ys)


# =============================================================================
# Determinism Tests
# =============================================================================

class TestDeterminism:
    """Same seed, same world."""

    @pytest.mark.parametrize("seed", [0, 1, 42, 2024])
    def test_same_seed_same_map(self, seed):
        assert MapGenerator(seed).generate() == MapGenerator(seed).generate()

    def test_different_seeds_differ(self):
        a = MapGenerator(1).generate(MapType.RIVER)
        b = MapGenerator(2).generate(MapType.RIVER)
        assert a != b

    def test_generate_map_helper(self):
        assert generate_map(42) == MapGenerator(42).generate()

    def test_map_is_frozen(self):
        grid = MapGenerator(5).generate()
        assert grid.is_frozen
        assert grid.seed == 5

    def test_forced_type(self):
        assert MapGenerator(3).generate(MapType.RIVER).map_type == MapType.RIVER
        assert MapGenerator(3).generate(MapType.ARCHIPELAGO).map_type == MapType.ARCHIPELAGO

    def test_default_size(self):
        grid = MapGenerator(8).generate()
        assert (grid.width, grid.height) == (48, 32)
        assert grid.terrain.shape == (32, 48)


# =============================================================================
# River Map Tests
# =============================================================================

class TestRiverMaps:
    """River maps: land carved by rivers running edge to edge."""

    def test_seed_42_river(self):
        """A connected water band touches two opposite edges; most tiles are land."""
        grid = MapGenerator(42).generate(MapType.RIVER)
        water = components(grid.terrain, WATER)
        assert water
        assert any(spans_opposite_edges(r, grid.width, grid.height) for r in water)
        assert grid.land_ratio() >= 0.5

    @pytest.mark.parametrize("seed", range(10))
    def test_every_river_crosses_the_map(self, seed):
        """Rivers only ever add water, so every water body spans the map."""
        grid = MapGenerator(seed).generate(MapType.RIVER)
        for region in components(grid.terrain, WATER):
            assert spans_opposite_edges(region, grid.width, grid.height)

    @pytest.mark.parametrize("seed", range(10))
    def test_mostly_land(self, seed):
        grid = MapGenerator(seed).generate(MapType.RIVER)
        assert grid.land_ratio() >= 0.5


# =============================================================================
# Archipelago Map Tests
# =============================================================================

class TestArchipelagoMaps:
    """Archipelago maps: islands in open water."""

    @pytest.mark.parametrize("seed", range(6))
    def test_no_lakes(self, seed):
        """All water connects to the map edge."""
        grid = MapGenerator(seed).generate(MapType.ARCHIPELAGO)
        for region in components(grid.terrain, WATER):
            assert any(
                x in (0, grid.width - 1) or y in (0, grid.height - 1)
                for x, y in region
            )

    @pytest.mark.parametrize("seed", range(6))
    def test_no_tiny_islands(self, seed):
        grid = MapGenerator(seed).generate(MapType.ARCHIPELAGO)
        for island in components(grid.terrain, LAND):
            assert len(island) >= MIN_ISLAND_SIZE

    @pytest.mark.parametrize("seed", range(6))
    def test_land_ratio_adjusted(self, seed):
        grid = MapGenerator(seed).generate(MapType.ARCHIPELAGO)
        assert grid.land_ratio() >= 0.5
        assert grid.land_count() < grid.width * grid.height


# =============================================================================
# Density Tests
# =============================================================================

class TestDensities:
    """Residential and office fields."""

    @pytest.mark.parametrize("map_type", [MapType.RIVER, MapType.ARCHIPELAGO])
    def test_bounds(self, map_type):
        grid = MapGenerator(11).generate(map_type)
        for field in (grid.residential, grid.office):
            assert field.min() >= 0
            assert field.max() <= MAX_DENSITY

    @pytest.mark.parametrize("map_type", [MapType.RIVER, MapType.ARCHIPELAGO])
    def test_zero_on_water(self, map_type):
        grid = MapGenerator(12).generate(map_type)
        water = grid.terrain == WATER
        assert not grid.residential[water].any()
        assert not grid.office[water].any()

    def test_totals_capped(self):
        grid = MapGenerator(13).generate()
        assert grid.total_residential() <= DENSITY_TOTAL_CEILING
        assert grid.total_office() <= DENSITY_TOTAL_CEILING

    def test_hotspots_produce_density(self):
        grid = MapGenerator(14).generate()
        assert grid.total_residential() > 0
        assert grid.total_office() > 0


# =============================================================================
# Small Map Tests
# =============================================================================

class TestCustomSize:
    """Non-default dimensions."""

    def test_small_map(self):
        grid = MapGenerator(21, width=24, height=16).generate(MapType.RIVER)
        assert grid.terrain.shape == (16, 24)
        assert 0 < grid.land_ratio() < 1
