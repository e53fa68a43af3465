"""Biome partitioning: habitat seed placement and nearest-seed territories."""

import colorsys
from enum import Enum

import numpy as np
import structlog
from numpy.typing import NDArray

from .state import Biome, Board, Habitat, Tile
from .terrain.config import BiomeSeedConfig
from .terrain_types import BIOME_TERRAIN_ORDER, TerrainType, terrain_from_value, terrain_value
from .types import Position

logger = structlog.get_logger()

GOLDEN_RATIO_CONJUGATE = 0.618033988749895
BIOME_SATURATION = 0.7
BIOME_LIGHTNESS = 0.5


class StartingBiomePolicy(str, Enum):
    """Which habitat seed becomes the first player's starting biome."""

    FIRST_BEACH = "first_beach"
    FIRST_ANY = "first_any"
    NONE = "none"


def is_overlapping(position: Position, seeds: list[Position], min_separation: int) -> bool:
    """Check whether position is closer than min_separation to any seed."""
    return any(position.manhattan(s) < min_separation for s in seeds)


def _candidates(
    terrain: NDArray[np.uint8],
    terrain_type: TerrainType,
    seeds: list[Position],
) -> list[Position]:
    """Interior tiles of a terrain type that are not already seeds, in scan order."""
    height, width = terrain.shape
    interior = np.zeros(terrain.shape, dtype=bool)
    interior[1 : height - 1, 1 : width - 1] = True

    mask = interior & (terrain == terrain_value(terrain_type))
    taken = set(seeds)
    return [
        Position(x=int(x), y=int(y))
        for y, x in zip(*np.nonzero(mask))
        if Position(x=int(x), y=int(y)) not in taken
    ]


def _shuffled(candidates: list[Position], rng: np.random.Generator) -> list[Position]:
    order = rng.permutation(len(candidates))
    return [candidates[i] for i in order]


def place_habitat_seeds(
    terrain: NDArray[np.uint8],
    rng: np.random.Generator,
    config: BiomeSeedConfig | None = None,
) -> list[Position]:
    """Place habitat seeds: one per terrain type, then densify.

    The first pass places one seed per terrain type present, accepting an
    overlapping candidate if no separated one exists. The densification pass
    then adds separated seeds per terrain type until a full pass places
    nothing or the iteration cap is reached.

    Args:
        terrain: Terrain value array.
        rng: Random generator used to shuffle candidates.
        config: Separation and iteration limits.

    Returns:
        Seed positions in insertion order.
    """
    config = config or BiomeSeedConfig()
    seeds: list[Position] = []

    for terrain_type in BIOME_TERRAIN_ORDER:
        shuffled = _shuffled(_candidates(terrain, terrain_type, seeds), rng)
        if not shuffled:
            continue
        chosen = next(
            (p for p in shuffled if not is_overlapping(p, seeds, config.min_separation)),
            shuffled[0],
        )
        seeds.append(chosen)

    placed = True
    iterations = 0
    while placed and iterations < config.max_iterations:
        placed = False
        iterations += 1
        for terrain_type in BIOME_TERRAIN_ORDER:
            shuffled = _shuffled(_candidates(terrain, terrain_type, seeds), rng)
            chosen = next(
                (p for p in shuffled if not is_overlapping(p, seeds, config.min_separation)),
                None,
            )
            if chosen is not None:
                seeds.append(chosen)
                placed = True

    logger.debug("habitat_seeds_placed", count=len(seeds), iterations=iterations)
    return seeds


def partition(width: int, height: int, seeds: list[Position]) -> NDArray[np.int64]:
    """Assign every tile to its nearest seed by Manhattan distance.

    Ties go to the seed inserted first.

    Args:
        width: Grid width.
        height: Grid height.
        seeds: Seed positions in insertion order.

    Returns:
        Array of shape (height, width) holding seed indices, or -1 everywhere
        when there are no seeds.
    """
    if not seeds:
        return np.full((height, width), -1, dtype=np.int64)

    ys, xs = np.mgrid[0:height, 0:width]
    seed_x = np.array([s.x for s in seeds])[:, None, None]
    seed_y = np.array([s.y for s in seeds])[:, None, None]

    distances = np.abs(xs[None] - seed_x) + np.abs(ys[None] - seed_y)
    # argmin returns the first minimum, which is the earliest seed
    return np.argmin(distances, axis=0)


def biome_color(index: int) -> int:
    """Visually distinct packed 0xRRGGBB color for the index-th biome."""
    hue = (index * GOLDEN_RATIO_CONJUGATE) % 1
    r, g, b = colorsys.hls_to_rgb(hue, BIOME_LIGHTNESS, BIOME_SATURATION)

    def channel(c: float) -> int:
        return int(np.floor(c * 255 + 0.5))

    return (channel(r) << 16) | (channel(g) << 8) | channel(b)


def choose_starting_seed(
    seeds: list[Position],
    terrain: NDArray[np.uint8],
    policy: StartingBiomePolicy,
) -> int | None:
    """Index of the seed owned by the first player at start, or None."""
    if policy == StartingBiomePolicy.NONE or not seeds:
        return None
    if policy == StartingBiomePolicy.FIRST_ANY:
        return 0

    beach = terrain_value(TerrainType.BEACH)
    for i, seed in enumerate(seeds):
        if terrain[seed.y, seed.x] == beach:
            return i
    return None


def build_board(
    terrain: NDArray[np.uint8],
    assignment: NDArray[np.int64],
    seeds: list[Position],
) -> Board:
    """Build the immutable Board from terrain and seed assignment."""
    height, width = terrain.shape
    habitat_positions = set(seeds)

    rows = []
    for y in range(height):
        row = []
        for x in range(width):
            index = int(assignment[y, x])
            position = Position(x=x, y=y)
            row.append(
                Tile(
                    position=position,
                    terrain=terrain_from_value(terrain[y, x]),
                    biome_id=f"biome-{index}" if index >= 0 else None,
                    is_habitat=position in habitat_positions,
                )
            )
        rows.append(tuple(row))

    return Board(width=width, height=height, tiles=tuple(rows))


def build_biomes(
    seeds: list[Position],
    starting_index: int | None = None,
    starting_owner: int = 0,
    production_rate: int = 1,
) -> dict[str, Biome]:
    """Create one unclaimed Biome per seed, except the starting biome."""
    biomes: dict[str, Biome] = {}
    for i, seed in enumerate(seeds):
        biome_id = f"biome-{i}"
        biomes[biome_id] = Biome(
            id=biome_id,
            habitat=Habitat(id=f"habitat-{i}", position=seed),
            owner_id=starting_owner if i == starting_index else None,
            color=biome_color(i),
            production_rate=production_rate,
        )
    return biomes


def partition_board(
    terrain: NDArray[np.uint8],
    rng: np.random.Generator,
    config: BiomeSeedConfig | None = None,
    policy: StartingBiomePolicy = StartingBiomePolicy.FIRST_BEACH,
    starting_owner: int = 0,
    production_rate: int = 1,
) -> tuple[Board, dict[str, Biome]]:
    """Seed, partition and build the board and its biomes.

    Args:
        terrain: Terrain value array.
        rng: Random generator for seed placement.
        config: Seed placement limits.
        policy: Starting-biome selection policy.
        starting_owner: Player id that receives the starting biome.
        production_rate: Initial egg production rate of each biome.

    Returns:
        Tuple of (Board, biomes by id).
    """
    height, width = terrain.shape
    seeds = place_habitat_seeds(terrain, rng, config)
    assignment = partition(width, height, seeds)

    start = choose_starting_seed(seeds, terrain, policy)
    if start is None and policy != StartingBiomePolicy.NONE:
        logger.warning("no_starting_biome", policy=policy.value, seeds=len(seeds))

    board = build_board(terrain, assignment, seeds)
    biomes = build_biomes(seeds, start, starting_owner, production_rate)

    logger.info(
        "board_partitioned",
        width=width,
        height=height,
        biomes=len(biomes),
        starting_biome=None if start is None else f"biome-{start}",
    )
    return board, biomes
