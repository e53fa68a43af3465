"""Biome capture: ownership transfer through habitat occupation."""

from dataclasses import dataclass, field

import structlog

from .config import EconomyConfig
from .economy import DEFAULT_ECONOMY, recalc_all_lushness
from .exceptions import BiomeNotFoundError
from .state import Animal, Biome, BiomeCaptureEvent, Board, Egg, Resource, now_ms
from .types import Position

logger = structlog.get_logger()


@dataclass
class CaptureResult:
    """Result of a capture attempt."""

    biome_id: str
    player_id: int
    success: bool
    animals: dict[str, Animal]
    biomes: dict[str, Biome]
    eggs: dict[str, Egg]
    capturing_animal_id: str | None = None
    transferred_eggs: list[str] = field(default_factory=list)
    revealed: frozenset[Position] = frozenset()
    event: BiomeCaptureEvent | None = None
    failure_reason: str | None = None


def capturing_animal(
    biome_id: str,
    board: Board,
    animals: dict[str, Animal],
    player_id: int,
) -> Animal | None:
    """First of the player's unmoved animals standing on the biome's habitat."""
    for animal in animals.values():
        if animal.owner_id != player_id or animal.has_moved:
            continue
        if not board.in_bounds(animal.position):
            continue
        tile = board.get_tile(animal.position)
        if tile.is_habitat and tile.biome_id == biome_id:
            return animal
    return None


def can_capture_biome(
    biome_id: str,
    board: Board,
    animals: dict[str, Animal],
    biomes: dict[str, Biome],
    player_id: int,
) -> bool:
    """Whether the player can capture the biome right now.

    Raises:
        BiomeNotFoundError: If the biome does not exist.
    """
    if biome_id not in biomes:
        raise BiomeNotFoundError(f"Biome {biome_id} not found")
    if biomes[biome_id].owner_id == player_id:
        return False
    return capturing_animal(biome_id, board, animals, player_id) is not None


def capture_biome(
    biome_id: str,
    player_id: int,
    turn: int,
    board: Board,
    animals: dict[str, Animal],
    biomes: dict[str, Biome],
    eggs: dict[str, Egg],
    resources: dict[Position, Resource],
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> CaptureResult:
    """Transfer a biome to the player.

    The capturing unit spends its action, eggs already in the biome change
    owner, production restarts from the previous turn and lushness is
    recomputed. The biome's tiles are returned in `revealed` for the
    fog-of-war layer.

    Raises:
        BiomeNotFoundError: If the biome does not exist.
    """
    animal = None
    if can_capture_biome(biome_id, board, animals, biomes, player_id):
        animal = capturing_animal(biome_id, board, animals, player_id)

    if animal is None:
        logger.debug("capture_rejected", biome_id=biome_id, player_id=player_id)
        return CaptureResult(
            biome_id=biome_id,
            player_id=player_id,
            success=False,
            animals=animals,
            biomes=biomes,
            eggs=eggs,
            failure_reason="capture_not_allowed",
        )

    previous_owner = biomes[biome_id].owner_id
    new_biomes = dict(biomes)
    new_biomes[biome_id] = biomes[biome_id].model_copy(
        update={"owner_id": player_id, "last_production_turn": turn - 1}
    )

    new_animals = dict(animals)
    new_animals[animal.id] = animal.model_copy(update={"has_moved": True})

    new_eggs = dict(eggs)
    transferred = []
    for egg in eggs.values():
        if egg.biome_id == biome_id and egg.owner_id != player_id:
            new_eggs[egg.id] = egg.model_copy(update={"owner_id": player_id})
            transferred.append(egg.id)

    new_biomes = recalc_all_lushness(new_biomes, board, resources, new_eggs, economy)

    logger.info(
        "biome_captured",
        biome_id=biome_id,
        player_id=player_id,
        previous_owner=previous_owner,
        animal_id=animal.id,
        eggs_transferred=len(transferred),
    )
    return CaptureResult(
        biome_id=biome_id,
        player_id=player_id,
        success=True,
        animals=new_animals,
        biomes=new_biomes,
        eggs=new_eggs,
        capturing_animal_id=animal.id,
        transferred_eggs=transferred,
        revealed=frozenset(board.tiles_in_biome(biome_id)),
        event=BiomeCaptureEvent(biome_id=biome_id, timestamp_ms=now_ms()),
    )
