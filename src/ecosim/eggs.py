"""Egg production and hatching."""

from dataclasses import dataclass, field

import numpy as np
import structlog

from .config import EconomyConfig, MovementRules
from .economy import DEFAULT_ECONOMY, recalc_lushness
from .exceptions import DegenerateStateWarning
from .movement import MovementResolver
from .species import species_for_terrain
from .state import (
    Animal,
    Biome,
    Board,
    DisplacementEvent,
    Egg,
    Resource,
    SpawnEvent,
    animal_at,
    now_ms,
)
from .types import Position

logger = structlog.get_logger()


@dataclass
class ProductionResult:
    """Result of one player's egg production."""

    eggs: dict[str, Egg]
    biomes: dict[str, Biome]
    produced: list[Egg] = field(default_factory=list)
    warnings: list[DegenerateStateWarning] = field(default_factory=list)


@dataclass
class HatchResult:
    """Result of hatching an egg."""

    egg_id: str
    success: bool
    animals: dict[str, Animal]
    eggs: dict[str, Egg]
    biomes: dict[str, Biome]
    new_animal_id: str | None = None
    displacement: DisplacementEvent | None = None
    spawn: SpawnEvent | None = None
    failure_reason: str | None = None
    warning: DegenerateStateWarning | None = None


def placement_score(
    position: Position,
    board: Board,
    resources: dict[Position, Resource],
    owned_biome_ids: set[str],
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> int:
    """Weighted count of active resources around a tile.

    Resources on tiles of biomes the player owns weigh more than others.
    """
    score = 0
    for neighbor in board.neighbors(position, 8):
        resource = resources.get(neighbor)
        if resource is None or not resource.active:
            continue
        if board.biome_at(neighbor) in owned_biome_ids:
            score += economy.owned_resource_weight
        else:
            score += economy.other_resource_weight
    return score


def egg_placement_tiles(
    biome: Biome,
    board: Board,
    resources: dict[Position, Resource],
    eggs: dict[str, Egg],
    owned_biome_ids: set[str],
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> list[Position]:
    """Eligible egg tiles of a biome, best first.

    Eligible tiles are non-habitat biome tiles with no egg and no active
    resource. Ties keep scan order.
    """
    egg_positions = {e.position for e in eggs.values()}
    eligible = []
    for position in board.tiles_in_biome(biome.id):
        if board.get_tile(position).is_habitat or position in egg_positions:
            continue
        resource = resources.get(position)
        if resource is not None and resource.active:
            continue
        eligible.append(position)

    scores = {
        p: placement_score(p, board, resources, owned_biome_ids, economy) for p in eligible
    }
    # sorted() is stable, so equal scores stay in scan order
    return sorted(eligible, key=lambda p: -scores[p])


def can_produce(biome: Biome, turn: int, economy: EconomyConfig = DEFAULT_ECONOMY) -> bool:
    """Whether an owned biome lays eggs this turn."""
    return (
        biome.owner_id is not None
        and biome.production_rate > 0
        and turn % economy.egg_cooldown == 0
        and biome.last_production_turn < turn
        and biome.total_lushness >= economy.egg_production_threshold
    )


def produce_eggs(
    player_id: int,
    turn: int,
    board: Board,
    biomes: dict[str, Biome],
    resources: dict[Position, Resource],
    eggs: dict[str, Egg],
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> ProductionResult:
    """Lay eggs in every qualifying biome the player owns.

    Args:
        player_id: Producing player.
        turn: Current turn number.
        board: Partitioned board.
        biomes: Biomes by id.
        resources: Resources by position.
        eggs: Existing eggs by id.
        economy: Economy constants.

    Returns:
        ProductionResult with the merged egg map and updated biomes.
    """
    owned_ids = {b.id for b in biomes.values() if b.owner_id == player_id}
    new_eggs = dict(eggs)
    new_biomes = dict(biomes)
    result = ProductionResult(eggs=new_eggs, biomes=new_biomes)

    for biome_id in [b for b in biomes if b in owned_ids]:
        biome = biomes[biome_id]
        if not can_produce(biome, turn, economy):
            continue

        tiles = egg_placement_tiles(biome, board, resources, new_eggs, owned_ids, economy)
        if not tiles:
            warning = DegenerateStateWarning(
                code="no_egg_placement_tile",
                detail=f"{biome_id} has no eligible egg tile",
            )
            result.warnings.append(warning)
            logger.warning("egg_placement_exhausted", biome_id=biome_id, turn=turn)

        for i, position in enumerate(tiles[: biome.production_rate]):
            egg = Egg(
                id=f"egg-{biome_id}-t{turn}-{i}",
                owner_id=player_id,
                position=position,
                biome_id=biome_id,
                created_at_turn=turn,
            )
            new_eggs[egg.id] = egg
            result.produced.append(egg)

        new_biomes[biome_id] = biome.model_copy(update={"last_production_turn": turn})

    if result.produced:
        logger.debug(
            "eggs_produced",
            player_id=player_id,
            turn=turn,
            count=len(result.produced),
        )
    return result


def _new_animal_id(species: str, animals: dict[str, Animal]) -> str:
    n = len(animals)
    while f"{species}-{n}" in animals:
        n += 1
    return f"{species}-{n}"


def hatch_egg(
    egg_id: str,
    animals: dict[str, Animal],
    eggs: dict[str, Egg],
    biomes: dict[str, Biome],
    board: Board,
    turn: int,
    resources: dict[Position, Resource],
    rules: MovementRules | None = None,
    rng: np.random.Generator | None = None,
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> HatchResult:
    """Turn an egg into an active animal on the egg's tile.

    An active unit already on the tile is displaced first. The hatchling
    cannot move this turn and belongs to the egg's owner.

    Raises:
        BiomeNotFoundError: If the egg's biome is unknown.
    """

    def rejected(reason: str, warning: DegenerateStateWarning | None = None) -> HatchResult:
        return HatchResult(
            egg_id=egg_id,
            success=False,
            animals=animals,
            eggs=eggs,
            biomes=biomes,
            failure_reason=reason,
            warning=warning,
        )

    egg = eggs.get(egg_id)
    if egg is None:
        logger.debug("hatch_rejected_not_found", egg_id=egg_id)
        return rejected("egg_not_found")

    new_animals = animals
    displacement = None
    occupant = animal_at(animals, egg.position)
    if occupant is not None:
        resolver = MovementResolver(board, animals, rules, rng)
        pushed = resolver.displace(occupant.id)
        if not pushed.success:
            return rejected("no_displacement_tile", pushed.warning)
        new_animals = pushed.animals
        displacement = pushed.event

    species = species_for_terrain(board.terrain_at(egg.position))
    animal = Animal(
        id=_new_animal_id(species, new_animals),
        species=species,
        position=egg.position,
        has_moved=True,
        owner_id=egg.owner_id,
    )
    new_animals = {**new_animals, animal.id: animal}
    new_eggs = {k: v for k, v in eggs.items() if k != egg_id}

    new_biomes = recalc_lushness(
        [egg.biome_id], biomes, board, resources, new_eggs, economy
    )

    logger.debug(
        "egg_hatched",
        egg_id=egg_id,
        animal_id=animal.id,
        species=species,
        turn=turn,
        displaced=displacement.unit_id if displacement else None,
    )
    return HatchResult(
        egg_id=egg_id,
        success=True,
        animals=new_animals,
        eggs=new_eggs,
        biomes=new_biomes,
        new_animal_id=animal.id,
        displacement=displacement,
        spawn=SpawnEvent(unit_id=animal.id, timestamp_ms=now_ms()),
    )
