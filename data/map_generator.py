"""Seeded procedural map generation for the MetroMap simulation.

A seed fully determines the map. Generation runs in three stages:
1. Terrain mode: a coin flip picks RIVER or ARCHIPELAGO
2. Terrain: rivers carved into land, or islands raised from water
3. Densities: residential and office fields radiating from hotspots

Every loop is bounded; the generator never rejects a map and re-rolls.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import Optional

import numpy as np
import structlog

from core.constants import (
    TileType,
    MapType,
    RiverType,
    Edge,
    MAP_WIDTH,
    MAP_HEIGHT,
    MIN_ISLAND_SIZE,
    ARCHIPELAGO_MIN_LAND_RATIO,
    ARCHIPELAGO_MAX_LAND_RATIO,
    LAND_RATIO_MAX_ITERATIONS,
    HOTSPOT_FALLOFF_RADIUS,
    MAX_DENSITY,
    DENSITY_TOTAL_CEILING,
)
from core.map_grid import MapGrid, TilePos, FOUR_NEIGHBORS
from core.rng import SeededRandom


logger = structlog.get_logger()

LAND = TileType.LAND.value
WATER = TileType.WATER.value


@dataclass(frozen=True)
class Hotspot:
    """A density peak."""

    x: int
    y: int
    strength: int


@dataclass(frozen=True)
class Island:
    """An island seed for archipelago maps."""

    x: int
    y: int
    radius: int


class MapGenerator:
    """Generates a MapGrid from a seed.

    Usage:
        grid = MapGenerator(seed=42).generate()
        river = MapGenerator(seed=42).generate(map_type=MapType.RIVER)
    """

    def __init__(self, seed: int, width: int = MAP_WIDTH, height: int = MAP_HEIGHT):
        self.seed = seed
        self.width = width
        self.height = height
        self.rng = SeededRandom(seed)

    def generate(self, map_type: Optional[MapType] = None) -> MapGrid:
        """Generate a complete, frozen map.

        Args:
            map_type: Force RIVER or ARCHIPELAGO. The terrain coin is
                flipped either way, so the rest of the random stream does
                not depend on whether a type was forced.

        Returns:
            The generated MapGrid.
        """
        rolled = MapType.RIVER if self.rng.chance(0.5) else MapType.ARCHIPELAGO
        chosen = map_type if map_type is not None else rolled

        terrain = np.full((self.height, self.width), LAND, dtype=np.int8)
        if chosen == MapType.RIVER:
            self._generate_rivers(terrain)
        else:
            self._generate_archipelago(terrain)

        residential, office = self._generate_densities(terrain)

        grid = MapGrid(
            width=self.width,
            height=self.height,
            seed=self.seed,
            map_type=chosen,
            terrain=terrain,
            residential=residential,
            office=office,
        )
        grid.freeze()

        logger.info(
            "Map generated",
            seed=self.seed,
            map_type=chosen.value,
            land_ratio=round(grid.land_ratio(), 3),
        )
        return grid

    # -------------------------------------------------------------------------
    # Rivers
    # -------------------------------------------------------------------------

    def _generate_rivers(self, terrain: np.ndarray) -> None:
        """Carve one of three river layouts: 50% single, 25% branching,
        25% two separate."""
        roll = self.rng.random()
        if roll < 0.5:
            river_type = RiverType.SINGLE
        elif roll < 0.75:
            river_type = RiverType.BRANCHING
        else:
            river_type = RiverType.TWO_SEPARATE

        horizontal = self.rng.chance(0.5)
        start_edge = Edge.LEFT if horizontal else Edge.TOP
        end_edge = Edge.RIGHT if horizontal else Edge.BOTTOM

        if river_type == RiverType.SINGLE:
            start = self._edge_position(start_edge, 0.3, 0.7)
            end = self._edge_position(end_edge, 0.3, 0.7)
            width = self.rng.randint(1, 4)
            self._draw_river(terrain, start, end, width)

        elif river_type == RiverType.BRANCHING:
            source_a = self._edge_position(start_edge, 0.15, 0.4)
            source_b = self._edge_position(start_edge, 0.6, 0.85)
            mouth = self._edge_position(end_edge, 0.35, 0.65)

            if horizontal:
                merge_x = math.floor(self.width * self.rng.uniform(0.4, 0.6))
                merge_y = math.floor((source_a[1] + source_b[1]) / 2 + self.rng.randint(-3, 3))
            else:
                merge_x = math.floor((source_a[0] + source_b[0]) / 2 + self.rng.randint(-3, 3))
                merge_y = math.floor(self.height * self.rng.uniform(0.4, 0.6))
            merge = (
                max(2, min(self.width - 3, merge_x)),
                max(2, min(self.height - 3, merge_y)),
            )

            width_a = self.rng.randint(1, 4)
            width_b = self.rng.randint(1, 4)
            width_merged = min(4, width_a + width_b)

            self._draw_river(terrain, source_a, merge, width_a)
            self._draw_river(terrain, source_b, merge, width_b)
            self._draw_river(terrain, merge, mouth, width_merged)

        else:
            start_a = self._edge_position(start_edge, 0.1, 0.35)
            end_a = self._edge_position(end_edge, 0.1, 0.35)
            start_b = self._edge_position(start_edge, 0.65, 0.9)
            end_b = self._edge_position(end_edge, 0.65, 0.9)
            width_a = self.rng.randint(1, 4)
            width_b = self.rng.randint(1, 4)
            self._draw_river(terrain, start_a, end_a, width_a)
            self._draw_river(terrain, start_b, end_b, width_b)

    def _edge_position(self, edge: Edge, min_ratio: float, max_ratio: float) -> TilePos:
        """Random tile on an edge, within a fraction range along it."""
        if edge in (Edge.TOP, Edge.BOTTOM):
            x = self.rng.randint(
                math.floor(self.width * min_ratio), math.floor(self.width * max_ratio)
            )
            return x, 0 if edge == Edge.TOP else self.height - 1
        y = self.rng.randint(
            math.floor(self.height * min_ratio), math.floor(self.height * max_ratio)
        )
        return 0 if edge == Edge.LEFT else self.width - 1, y

    def _draw_river(self, terrain: np.ndarray, start: TilePos, end: TilePos, width: int) -> None:
        if width == 1:
            self._draw_straight_river(terrain, start, end)
        else:
            self._draw_meandering_river(terrain, start, end, width)

    def _set_water(self, terrain: np.ndarray, x: int, y: int) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            terrain[y, x] = WATER

    def _draw_straight_river(self, terrain: np.ndarray, start: TilePos, end: TilePos) -> None:
        """One-tile river along a Bresenham line that only steps
        horizontally or vertically, so every tile shares an edge with the
        next."""
        x, y = start
        dx = abs(end[0] - x)
        dy = abs(end[1] - y)
        sx = 1 if x < end[0] else -1
        sy = 1 if y < end[1] else -1
        err = dx - dy

        for _ in range(2 * (dx + dy) + 1):
            self._set_water(terrain, x, y)
            if (x, y) == end:
                break
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                x += sx
            elif e2 < dx:
                err += dx
                y += sy

    def _draw_meandering_river(
        self,
        terrain: np.ndarray,
        start: TilePos,
        end: TilePos,
        width: int,
    ) -> None:
        """Wide river: a meandering centerline flood-expanded to width.

        The centerline walks unit steps toward the end, pushed sideways by
        a random meander whose envelope sin(progress * pi) peaks mid-river
        and vanishes at the banks.
        """
        centerline: list[TilePos] = [start]
        x, y = float(start[0]), float(start[1])
        total_dist = math.hypot(end[0] - start[0], end[1] - start[1])
        max_steps = self.width + self.height + 100

        for _ in range(max_steps):
            if math.hypot(x - end[0], y - end[1]) < 1.5:
                self._append_edge_adjacent(centerline, centerline[-1], end)
                break

            progress = min(1.0, math.hypot(x - start[0], y - start[1]) / total_dist)
            dir_x, dir_y = end[0] - x, end[1] - y
            dir_len = math.hypot(dir_x, dir_y)
            norm_x, norm_y = dir_x / dir_len, dir_y / dir_len

            meander = (self.rng.random() - 0.5) * 2 * math.sin(progress * math.pi) * 0.4
            move_x = norm_x - norm_y * meander
            move_y = norm_y + norm_x * meander
            move_len = math.hypot(move_x, move_y)

            x = max(0.0, min(self.width - 1.0, x + move_x / move_len))
            y = max(0.0, min(self.height - 1.0, y + move_y / move_len))

            point = (_round_half_up(x), _round_half_up(y))
            if point != centerline[-1]:
                self._append_edge_adjacent(centerline, centerline[-1], point)

        self._expand_centerline(terrain, centerline, width)

    @staticmethod
    def _append_edge_adjacent(path: list[TilePos], start: TilePos, end: TilePos) -> None:
        """Append end to path, filling gaps with 4-connected steps."""
        dx = end[0] - start[0]
        dy = end[1] - start[1]
        if dx == 0 and dy == 0:
            return
        if abs(dx) + abs(dy) == 1:
            path.append(end)
            return

        cx, cy = start
        while (cx, cy) != end:
            if abs(end[0] - cx) > abs(end[1] - cy):
                cx += 1 if end[0] > cx else -1
            else:
                cy += 1 if end[1] > cy else -1
            path.append((cx, cy))

    def _expand_centerline(self, terrain: np.ndarray, centerline: list[TilePos], width: int) -> None:
        """Grow water outward from the centerline until it holds about
        len(centerline) * width * 0.8 tiles."""
        water: set[TilePos] = set()
        for x, y in centerline:
            water.add((x, y))
            self._set_water(terrain, x, y)

        target = math.floor(len(centerline) * width * 0.8)
        queue: deque[TilePos] = deque(centerline)

        while len(water) < target and queue:
            cx, cy = queue.popleft()
            neighbors = [(cx + dx, cy + dy) for dx, dy in FOUR_NEIGHBORS]
            self.rng.shuffle(neighbors)

            for nx, ny in neighbors:
                if not (0 <= nx < self.width and 0 <= ny < self.height):
                    continue
                if (nx, ny) in water:
                    continue
                if self.rng.random() < 0.6:
                    water.add((nx, ny))
                    terrain[ny, nx] = WATER
                    queue.append((nx, ny))
                    if len(water) >= target:
                        break

    # -------------------------------------------------------------------------
    # Archipelago
    # -------------------------------------------------------------------------

    def _generate_archipelago(self, terrain: np.ndarray) -> None:
        """Raise 4-6 islands from an all-water grid, then fix up the shape."""
        terrain.fill(WATER)

        island_count = self.rng.randint(4, 6)
        cols = 2 if island_count <= 4 else 3
        rows = 2
        cell_w = self.width / cols
        cell_h = self.height / rows
        padding = 4

        islands: list[Island] = []
        for i in range(island_count):
            grid_x = i % cols
            grid_y = i // cols
            cx = grid_x * cell_w + self.rng.randint(padding, math.floor(cell_w) - padding)
            cy = grid_y * cell_h + self.rng.randint(padding, math.floor(cell_h) - padding)
            islands.append(
                Island(
                    x=int(min(self.width - 3, max(3, cx))),
                    y=int(min(self.height - 3, max(3, cy))),
                    radius=self.rng.randint(5, 10),
                )
            )

        ys, xs = np.mgrid[0:self.height, 0:self.width]
        probability = np.zeros((self.height, self.width), dtype=np.float64)
        for island in islands:
            dist = np.hypot(xs - island.x, ys - island.y)
            probability = np.maximum(probability, np.maximum(0.0, 1.0 - dist / (island.radius + 1)))

        # Noise drawn tile by tile in row-major order
        noise = np.array(
            [(self.rng.random() - 0.5) * 0.4 for _ in range(self.width * self.height)]
        ).reshape(self.height, self.width)
        probability = np.clip(probability + noise, 0.0, 1.0)
        terrain[probability > 0.3] = LAND

        self._remove_small_islands(terrain, MIN_ISLAND_SIZE)
        self._adjust_land_ratio(terrain, ARCHIPELAGO_MIN_LAND_RATIO, ARCHIPELAGO_MAX_LAND_RATIO)
        self._remove_lakes(terrain)

    def _flood(self, terrain: np.ndarray, visited: np.ndarray, start: TilePos, kind: int) -> list[TilePos]:
        """Collect the 4-connected region of tiles of one kind around start."""
        region: list[TilePos] = []
        stack = [start]
        while stack:
            x, y = stack.pop()
            if not (0 <= x < self.width and 0 <= y < self.height):
                continue
            if visited[y, x] or terrain[y, x] != kind:
                continue
            visited[y, x] = True
            region.append((x, y))
            for dx, dy in FOUR_NEIGHBORS:
                stack.append((x + dx, y + dy))
        return region

    def _remove_small_islands(self, terrain: np.ndarray, min_size: int) -> None:
        visited = np.zeros(terrain.shape, dtype=bool)
        for y in range(self.height):
            for x in range(self.width):
                if terrain[y, x] == LAND and not visited[y, x]:
                    island = self._flood(terrain, visited, (x, y), LAND)
                    if len(island) < min_size:
                        for ix, iy in island:
                            terrain[iy, ix] = WATER

    def _boundary_tiles(self, terrain: np.ndarray, kind: int) -> list[TilePos]:
        """Tiles of a kind with at least one 4-neighbor of the other kind,
        in row-major order."""
        other = WATER if kind == LAND else LAND
        is_other = terrain == other
        touches = np.zeros(terrain.shape, dtype=bool)
        touches[:, :-1] |= is_other[:, 1:]
        touches[:, 1:] |= is_other[:, :-1]
        touches[:-1, :] |= is_other[1:, :]
        touches[1:, :] |= is_other[:-1, :]
        ys, xs = np.nonzero((terrain == kind) & touches)
        return list(zip(xs.tolist(), ys.tolist()))

    def _adjust_land_ratio(self, terrain: np.ndarray, min_ratio: float, max_ratio: float) -> None:
        """Grow or erode coastlines until land is within [min_ratio, max_ratio].

        Each pass converts half the remaining deficit (rounded up), picking
        random boundary tiles.
        """
        total = self.width * self.height
        land = int(np.count_nonzero(terrain == LAND))

        for _ in range(LAND_RATIO_MAX_ITERATIONS):
            if land / total >= min_ratio:
                break
            candidates = self._boundary_tiles(terrain, WATER)
            if not candidates:
                break
            to_convert = min(len(candidates), math.ceil((min_ratio * total - land) / 2))
            for _ in range(to_convert):
                x, y = candidates.pop(self.rng.randint(0, len(candidates) - 1))
                terrain[y, x] = LAND
                land += 1

        for _ in range(LAND_RATIO_MAX_ITERATIONS):
            if land / total <= max_ratio:
                break
            candidates = self._boundary_tiles(terrain, LAND)
            if not candidates:
                break
            to_convert = min(len(candidates), math.ceil((land - max_ratio * total) / 2))
            for _ in range(to_convert):
                x, y = candidates.pop(self.rng.randint(0, len(candidates) - 1))
                terrain[y, x] = WATER
                land -= 1

        self._remove_small_islands(terrain, MIN_ISLAND_SIZE)

    def _remove_lakes(self, terrain: np.ndarray) -> None:
        """Turn water that cannot reach the map edge into land."""
        ocean = np.zeros(terrain.shape, dtype=bool)
        edge_tiles = (
            [(x, 0) for x in range(self.width)]
            + [(x, self.height - 1) for x in range(self.width)]
            + [(0, y) for y in range(self.height)]
            + [(self.width - 1, y) for y in range(self.height)]
        )
        for tile in edge_tiles:
            self._flood(terrain, ocean, tile, WATER)
        terrain[(terrain == WATER) & ~ocean] = LAND

    # -------------------------------------------------------------------------
    # Densities
    # -------------------------------------------------------------------------

    def _generate_hotspots(self, low: int, high: int) -> list[Hotspot]:
        count = self.rng.randint(low, high)
        return [
            Hotspot(
                x=self.rng.randint(5, self.width - 5),
                y=self.rng.randint(3, self.height - 3),
                strength=self.rng.randint(70, 99),
            )
            for _ in range(count)
        ]

    def _hotspot_field(self, hotspots: list[Hotspot]) -> np.ndarray:
        """floor(max over hotspots of strength * linear falloff)."""
        ys, xs = np.mgrid[0:self.height, 0:self.width]
        field = np.zeros((self.height, self.width), dtype=np.float64)
        for spot in hotspots:
            dist = np.hypot(xs - spot.x, ys - spot.y)
            falloff = np.maximum(0.0, 1.0 - dist / HOTSPOT_FALLOFF_RADIUS)
            field = np.maximum(field, spot.strength * falloff)
        return np.floor(field).astype(np.int64)

    def _generate_densities(self, terrain: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Residential and office fields over land; zero on water.

        Where both fields exceed 50, one of them is cut to 40% 70% of the
        time. Noise of +-10 is added and each field's total is capped at
        DENSITY_TOTAL_CEILING by proportional rescaling.
        """
        shape = (self.height, self.width)
        residential = np.zeros(shape, dtype=np.int16)
        office = np.zeros(shape, dtype=np.int16)

        ys, xs = np.nonzero(terrain == LAND)
        if len(xs) == 0:
            return residential, office

        base_res = self._hotspot_field(self._generate_hotspots(2, 4))
        base_off = self._hotspot_field(self._generate_hotspots(1, 3))

        for y, x in zip(ys.tolist(), xs.tolist()):
            res = int(base_res[y, x])
            off = int(base_off[y, x])

            if self.rng.random() < 0.7 and res > 50 and off > 50:
                if self.rng.chance(0.5):
                    off = math.floor(off * 0.4)
                else:
                    res = math.floor(res * 0.4)

            res = max(0, min(MAX_DENSITY, res + self.rng.randint(-10, 10)))
            off = max(0, min(MAX_DENSITY, off + self.rng.randint(-10, 10)))
            residential[y, x] = res
            office[y, x] = off

        for density in (residential, office):
            total = int(density.sum())
            if total > DENSITY_TOTAL_CEILING:
                scale = DENSITY_TOTAL_CEILING / total
                density[:] = np.floor(density * scale).astype(np.int16)

        return residential, office


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def generate_map(seed: int, map_type: Optional[MapType] = None) -> MapGrid:
    """Generate a default-sized map for a seed."""
    return MapGenerator(seed).generate(map_type)
