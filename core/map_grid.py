"""Map grid model for the MetroMap simulation.

The map is a fixed width x height matrix of tiles:
- Terrain is stored as an int8 array of TileType codes
- Residential and office densities are int16 arrays (0-99, zero on water)
- All arrays are indexed [y, x]

Stations sit on vertices, the integer corners between tiles. Vertex
(vx, vy) touches tiles (vx-1, vy-1), (vx, vy-1), (vx-1, vy) and (vx, vy).
The grid is generated once per seed and frozen afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

import numpy as np

from .constants import MapType, TileType


# Type aliases for clarity
TilePos = tuple[int, int]  # (x, y)

FOUR_NEIGHBORS: tuple[TilePos, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


@dataclass(frozen=True)
class GridSquare:
    """Read-only view of a single tile."""

    x: int
    y: int
    tile_type: TileType
    residential: int
    office: int


class MapGrid:
    """Terrain and density fields for one generated world.

    Attributes:
        width: Number of tile columns.
        height: Number of tile rows.
        seed: Seed the map was generated from.
        map_type: RIVER or ARCHIPELAGO.
        terrain: int8 array of TileType values, shape (height, width).
        residential: int16 array of residential density, shape (height, width).
        office: int16 array of office density, shape (height, width).
    """

    def __init__(
        self,
        width: int,
        height: int,
        seed: int = 0,
        map_type: MapType = MapType.RIVER,
        terrain: np.ndarray | None = None,
        residential: np.ndarray | None = None,
        office: np.ndarray | None = None,
    ):
        self.width = width
        self.height = height
        self.seed = seed
        self.map_type = map_type

        shape = (height, width)
        self.terrain = (
            np.asarray(terrain, dtype=np.int8).copy()
            if terrain is not None
            else np.full(shape, TileType.LAND.value, dtype=np.int8)
        )
        self.residential = (
            np.asarray(residential, dtype=np.int16).copy()
            if residential is not None
            else np.zeros(shape, dtype=np.int16)
        )
        self.office = (
            np.asarray(office, dtype=np.int16).copy()
            if office is not None
            else np.zeros(shape, dtype=np.int16)
        )

        for name, array in (
            ("terrain", self.terrain),
            ("residential", self.residential),
            ("office", self.office),
        ):
            if array.shape != shape:
                raise ValueError(f"{name} has shape {array.shape}, expected {shape}")

    # -------------------------------------------------------------------------
    # Tile queries
    # -------------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        """Check if (x, y) is a valid tile position."""
        return 0 <= x < self.width and 0 <= y < self.height

    def is_land(self, x: int, y: int) -> bool:
        """Check if the tile is in bounds and land."""
        return self.in_bounds(x, y) and self.terrain[y, x] == TileType.LAND.value

    def is_water(self, x: int, y: int) -> bool:
        """Check if the tile is in bounds and water."""
        return self.in_bounds(x, y) and self.terrain[y, x] == TileType.WATER.value

    def tile_at(self, x: int, y: int) -> GridSquare:
        """Get a read-only view of a tile.

        Raises:
            IndexError: If the position is out of bounds.
        """
        if not self.in_bounds(x, y):
            raise IndexError(f"Tile ({x}, {y}) is out of bounds")
        return GridSquare(
            x=x,
            y=y,
            tile_type=TileType(int(self.terrain[y, x])),
            residential=int(self.residential[y, x]),
            office=int(self.office[y, x]),
        )

    def land_tiles(self) -> Iterator[TilePos]:
        """Iterate land tile positions in row-major order."""
        ys, xs = np.nonzero(self.terrain == TileType.LAND.value)
        for y, x in zip(ys.tolist(), xs.tolist()):
            yield x, y

    def land_count(self) -> int:
        """Return the number of land tiles."""
        return int(np.count_nonzero(self.terrain == TileType.LAND.value))

    def land_ratio(self) -> float:
        """Return the fraction of tiles that are land."""
        return self.land_count() / float(self.width * self.height)

    def total_residential(self) -> int:
        """Sum of residential density over land tiles."""
        return int(self.residential[self.terrain == TileType.LAND.value].sum())

    def total_office(self) -> int:
        """Sum of office density over land tiles."""
        return int(self.office[self.terrain == TileType.LAND.value].sum())

    # -------------------------------------------------------------------------
    # Vertex queries
    # -------------------------------------------------------------------------

    def in_vertex_bounds(self, vertex_x: int, vertex_y: int) -> bool:
        """Check if a vertex lies on the grid (corners included)."""
        return 0 <= vertex_x <= self.width and 0 <= vertex_y <= self.height

    @staticmethod
    def vertex_adjacent_tiles(vertex_x: int, vertex_y: int) -> list[TilePos]:
        """Return the four tile positions touching a vertex."""
        return [
            (vertex_x - 1, vertex_y - 1),
            (vertex_x, vertex_y - 1),
            (vertex_x - 1, vertex_y),
            (vertex_x, vertex_y),
        ]

    def is_water_vertex(self, vertex_x: int, vertex_y: int) -> bool:
        """A vertex is water only if all four touching tiles are water.

        Out-of-bounds tiles count as not water, so edge vertices next to
        land are never water.
        """
        return all(
            self.is_water(x, y)
            for x, y in self.vertex_adjacent_tiles(vertex_x, vertex_y)
        )

    def is_land_vertex(self, vertex_x: int, vertex_y: int) -> bool:
        """A vertex is on land if at least one touching tile is land."""
        return any(
            self.is_land(x, y)
            for x, y in self.vertex_adjacent_tiles(vertex_x, vertex_y)
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def freeze(self) -> None:
        """Make the grid arrays read-only. Called once generation finishes."""
        self.terrain.setflags(write=False)
        self.residential.setflags(write=False)
        self.office.setflags(write=False)

    @property
    def is_frozen(self) -> bool:
        """Check if the grid has been frozen."""
        return not self.terrain.flags.writeable

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MapGrid):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.seed == other.seed
            and self.map_type == other.map_type
            and np.array_equal(self.terrain, other.terrain)
            and np.array_equal(self.residential, other.residential)
            and np.array_equal(self.office, other.office)
        )

    def __deepcopy__(self, memo: dict) -> MapGrid:
        # The grid is immutable once frozen; copies share nothing mutable
        clone = MapGrid(
            width=self.width,
            height=self.height,
            seed=self.seed,
            map_type=self.map_type,
            terrain=self.terrain,
            residential=self.residential,
            office=self.office,
        )
        if self.is_frozen:
            clone.freeze()
        memo[id(self)] = clone
        return clone

    def __repr__(self) -> str:
        return (
            f"MapGrid({self.width}x{self.height}, seed={self.seed}, "
            f"type={self.map_type.value}, land={self.land_ratio():.0%})"
        )

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize the grid.

        Terrain rows are encoded as strings of 'L' / 'W' characters to keep
        saves readable; densities are nested lists of ints.
        """
        symbols = {TileType.LAND.value: "L", TileType.WATER.value: "W"}
        return {
            "width": self.width,
            "height": self.height,
            "seed": self.seed,
            "map_type": self.map_type.value,
            "terrain": [
                "".join(symbols[int(code)] for code in row) for row in self.terrain
            ],
            "residential": self.residential.tolist(),
            "office": self.office.tolist(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MapGrid:
        """Rebuild a frozen grid from to_dict() output.

        Raises:
            KeyError: If a required key is missing.
            ValueError: If rows or array shapes are malformed.
        """
        width = int(data["width"])
        height = int(data["height"])
        codes = {"L": TileType.LAND.value, "W": TileType.WATER.value}
        rows = data["terrain"]
        if len(rows) != height:
            raise ValueError(f"Expected {height} terrain rows, got {len(rows)}")
        terrain = np.array(
            [[codes[ch] for ch in row] for row in rows], dtype=np.int8
        ).reshape(height, width)

        grid = cls(
            width=width,
            height=height,
            seed=int(data.get("seed", 0)),
            map_type=MapType(data.get("map_type", MapType.RIVER.value)),
            terrain=terrain,
            residential=data.get("residential"),
            office=data.get("office"),
        )
        grid.freeze()
        return grid
