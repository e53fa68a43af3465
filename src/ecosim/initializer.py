"""Board initialization: terrain, biomes and the starting unit."""

from dataclasses import dataclass, field

import numpy as np
import structlog

from .biomes import StartingBiomePolicy, partition_board
from .exceptions import DegenerateStateWarning, ValidationError
from .species import is_terrain_compatible
from .state import Animal, Biome, Board
from .terrain.config import TerrainConfig
from .terrain.generator import GenerationResult, generate_terrain

logger = structlog.get_logger()

STARTING_SPECIES = "turtle"

# Habitat seeds need one interior tile
MIN_BOARD_SIZE = 3


@dataclass
class InitResult:
    """Freshly generated board with its biomes and starting animals."""

    board: Board
    biomes: dict[str, Biome]
    animals: dict[str, Animal]
    terrain: GenerationResult
    warnings: list[DegenerateStateWarning] = field(default_factory=list)


def place_starting_unit(
    board: Board,
    biomes: dict[str, Biome],
    player_id: int,
    rng: np.random.Generator,
) -> dict[str, Animal]:
    """Place the player's first unit next to their starting habitat.

    Returns an empty map when the player owns no biome or the habitat has
    no compatible free neighbour.
    """
    start = next((b for b in biomes.values() if b.owner_id == player_id), None)
    if start is None:
        return {}

    candidates = [
        p
        for p in board.neighbors(start.habitat.position, 8)
        if is_terrain_compatible(STARTING_SPECIES, board.terrain_at(p))
    ]
    if not candidates:
        logger.warning("no_starting_tile", biome_id=start.id, player_id=player_id)
        return {}

    position = candidates[int(rng.integers(len(candidates)))]
    animal = Animal(
        id="animal-0",
        species=STARTING_SPECIES,
        position=position,
        owner_id=player_id,
    )
    return {animal.id: animal}


def initialize(
    width: int,
    height: int,
    seed: int | None = None,
    *,
    player_id: int = 0,
    policy: StartingBiomePolicy = StartingBiomePolicy.FIRST_BEACH,
    terrain_config: TerrainConfig | None = None,
    production_rate: int = 1,
) -> InitResult:
    """Generate terrain, partition biomes and place the starting unit.

    Args:
        width: Board width.
        height: Board height.
        seed: Seed for terrain and placement; None is not reproducible.
        player_id: Player that receives the starting biome and unit.
        policy: Starting-biome selection policy.
        terrain_config: Generation parameters; width, height and seed are
            overridden by the arguments.
        production_rate: Initial egg production rate of each biome.

    Returns:
        InitResult with board, biomes and animals.

    Raises:
        ValidationError: If either dimension is below MIN_BOARD_SIZE.
    """
    if width < MIN_BOARD_SIZE or height < MIN_BOARD_SIZE:
        raise ValidationError(
            f"Board must be at least {MIN_BOARD_SIZE}x{MIN_BOARD_SIZE}, got {width}x{height}"
        )

    config = (terrain_config or TerrainConfig()).model_copy(
        update={"width": width, "height": height, "seed": seed}
    )
    terrain = generate_terrain(config)

    rng = np.random.default_rng(seed)
    board, biomes = partition_board(
        terrain.terrain,
        rng,
        config.biomes,
        policy=policy,
        starting_owner=player_id,
        production_rate=production_rate,
    )
    animals = place_starting_unit(board, biomes, player_id, rng)

    warnings = []
    if not biomes:
        warnings.append(
            DegenerateStateWarning(code="no_biomes", detail=f"{width}x{height} board has no habitat")
        )
        logger.warning("board_without_biomes", width=width, height=height, seed=seed)

    logger.info(
        "board_initialized",
        width=width,
        height=height,
        seed=seed,
        biomes=len(biomes),
        animals=len(animals),
    )
    return InitResult(
        board=board, biomes=biomes, animals=animals, terrain=terrain, warnings=warnings
    )
