"""Constants and enums for the MetroMap simulation core."""

from enum import Enum


class TileType(Enum):
    """Terrain type of a single map tile.

    The integer value is the code stored in MapGrid's terrain array.
    """

    LAND = 0
    WATER = 1


class MapType(Enum):
    """Terrain layout chosen by the map generator."""

    RIVER = "RIVER"
    ARCHIPELAGO = "ARCHIPELAGO"


class RiverType(Enum):
    """River layouts for RIVER maps."""

    SINGLE = "SINGLE"
    BRANCHING = "BRANCHING"  # Two sources merge into one mouth
    TWO_SEPARATE = "TWO_SEPARATE"


class Edge(Enum):
    """Map edges used as river endpoints."""

    TOP = "TOP"
    BOTTOM = "BOTTOM"
    LEFT = "LEFT"
    RIGHT = "RIGHT"


class LineColor(Enum):
    """Available metro line colors. At most one line per color."""

    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    CYAN = "cyan"
    MAGENTA = "magenta"
    PINK = "pink"
    TEAL = "teal"
    LIME = "lime"
    ORANGE = "orange"
    BROWN = "brown"
    GREY = "grey"


class TrainState(Enum):
    """Runtime state of a train."""

    MOVING = "MOVING"
    STOPPED = "STOPPED"


# Display colors handed to renderers alongside line snapshots
LINE_COLOR_HEX = {
    LineColor.RED: 0xE74C3C,
    LineColor.GREEN: 0x2ECC71,
    LineColor.YELLOW: 0xF1C40F,
    LineColor.BLUE: 0x3498DB,
    LineColor.CYAN: 0x1ABC9C,
    LineColor.MAGENTA: 0x9B59B6,
    LineColor.PINK: 0xFF69B4,
    LineColor.TEAL: 0x16A085,
    LineColor.LIME: 0x7BED9F,
    LineColor.ORANGE: 0xE67E22,
    LineColor.BROWN: 0x8B4513,
    LineColor.GREY: 0x95A5A6,
}

# Map dimensions (tiles). Vertices run 0..MAP_WIDTH and 0..MAP_HEIGHT.
MAP_WIDTH = 48
MAP_HEIGHT = 32

# Map generation
MIN_ISLAND_SIZE = 4
ARCHIPELAGO_MIN_LAND_RATIO = 0.6
ARCHIPELAGO_MAX_LAND_RATIO = 0.8
LAND_RATIO_MAX_ITERATIONS = 200
HOTSPOT_FALLOFF_RADIUS = 12
MAX_DENSITY = 99
DENSITY_TOTAL_CEILING = 50000

# Trains
TRAIN_MAX_CAPACITY = 30  # Passengers per train
TRAIN_DEFAULT_SPEED = 5  # Grid units per second
TRAIN_STOP_DURATION_SQUARES = 2  # Dwell expressed as distance at default speed
TRAIN_ACCEL_DECEL_DISTANCE = 1  # Grid units to reach / shed full speed
TRAIN_MIN_SPEED_FACTOR = 0.1
MAX_TRAINS_PER_LINE = 5
MIN_TRAINS_PER_LINE = 1

# Lines
MIN_STATIONS_PER_LINE = 2

# Economy
STARTING_MONEY = 1_000_000
STATION_BUILD_COST = 10_000
LINE_BUILD_COST_PER_SQUARE = 1_000
TRAIN_RUNNING_COST_PER_SQUARE = 1
TICKET_REVENUE = 50

# Spawning
BASE_SPAWN_RATE = 20  # Passengers per game-hour at a saturated catchment
CATCHMENT_NORMALIZER = 1600  # 16 tiles at full density
RUSH_HOUR_MULTIPLIER = 3.0
NIGHT_MULTIPLIER = 0.1

# Simulation time
GAME_START_TIME_ISO = "2025-01-01T08:00:00"
GAME_MS_PER_REAL_SECOND = 5 * 60 * 1000  # 5 game minutes per real second at 1x
VALID_SPEEDS = (1, 2, 4)

# Persistence
SAVE_GAME_KEY = "metromap-saved-game"
