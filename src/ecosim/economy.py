"""Resource economy: regeneration, reset, harvest and biome lushness."""

from dataclasses import dataclass

import numpy as np
import structlog

from .config import EconomyConfig
from .exceptions import BiomeNotFoundError, ValidationError
from .state import MAX_RESOURCE_VALUE, Biome, Board, Egg, Player, Resource
from .types import Position

logger = structlog.get_logger()

DEFAULT_ECONOMY = EconomyConfig()


@dataclass
class HarvestResult:
    """Result of a harvest."""

    resources: dict[Position, Resource]
    biomes: dict[str, Biome]
    player: Player
    harvested: float = 0.0
    depleted: bool = False


def regeneration_rate(lushness: float, economy: EconomyConfig = DEFAULT_ECONOMY) -> float:
    """Polynomial regeneration rate for a lushness value, floored at 0."""
    rate = (
        economy.regen_a * lushness**3
        + economy.regen_b * lushness**2
        + economy.regen_c * lushness
        + economy.regen_d
    )
    return max(0.0, rate)


def regenerate_resources(
    resources: dict[Position, Resource],
    biomes: dict[str, Biome],
    player_id: int | None = None,
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> tuple[dict[Position, Resource], dict[str, Biome]]:
    """Regenerate resources of owned, non-depleted biomes.

    Each eligible resource gains rate(totalLushness) * (1 - value / 10),
    clamped to 10. A resource that rises above 0 becomes active again, and
    every touched biome's non_depleted_count is re-derived.

    Args:
        resources: Resources by position.
        biomes: Biomes by id.
        player_id: Only regenerate this player's biomes; None for all owners.
        economy: Economy constants.

    Returns:
        Tuple of (resources, biomes).
    """
    eligible = {
        biome_id: regeneration_rate(biome.total_lushness, economy)
        for biome_id, biome in biomes.items()
        if biome.owner_id is not None
        and (player_id is None or biome.owner_id == player_id)
        and biome.non_depleted_count > 0
    }
    if not eligible:
        return resources, biomes

    new_resources = dict(resources)
    for position, resource in resources.items():
        rate = eligible.get(resource.biome_id or "")
        if not rate:
            continue
        gain = rate * (1 - resource.value / MAX_RESOURCE_VALUE)
        if gain > 0:
            new_resources[position] = resource.with_value(resource.value + gain)

    new_biomes = dict(biomes)
    active_counts = _active_counts(new_resources)
    for biome_id in eligible:
        count = active_counts.get(biome_id, 0)
        if count != biomes[biome_id].non_depleted_count:
            new_biomes[biome_id] = biomes[biome_id].model_copy(
                update={"non_depleted_count": count}
            )

    logger.debug("resources_regenerated", player_id=player_id, biomes=len(eligible))
    return new_resources, new_biomes


def eligible_resource_tiles(board: Board, biome_id: str) -> list[Position]:
    """Non-habitat tiles of a biome whose terrain can hold resources."""
    return [
        p
        for p in board.tiles_in_biome(biome_id)
        if not board.get_tile(p).is_habitat and board.get_tile(p).terrain.holds_resources
    ]


def reset_resources(
    board: Board,
    biomes: dict[str, Biome],
    density: float,
    rng: np.random.Generator,
) -> tuple[dict[Position, Resource], dict[str, Biome]]:
    """Place a fresh set of full resources in every biome.

    For each biome a random round(eligible * density) subset of its eligible
    tiles receives a resource at value 10. Biome counters are reset to match.

    Args:
        board: Partitioned board (unchanged; resources are carried separately).
        biomes: Biomes by id.
        density: Fraction of eligible tiles to stock, in [0, 1].
        rng: Random generator for tile selection.

    Returns:
        Tuple of (resources by position, biomes).
    """
    if not 0.0 <= density <= 1.0:
        raise ValidationError(f"Resource density must be in [0, 1], got {density}")

    resources: dict[Position, Resource] = {}
    new_biomes: dict[str, Biome] = {}

    for biome_id, biome in biomes.items():
        tiles = eligible_resource_tiles(board, biome_id)
        count = int(np.floor(len(tiles) * density + 0.5))
        order = rng.permutation(len(tiles))[:count]

        for i in order:
            position = tiles[i]
            resource_type = board.get_tile(position).terrain.resource_type
            if resource_type is None:
                continue
            resources[position] = Resource(
                id=f"resource-{len(resources)}",
                type=resource_type,
                position=position,
                biome_id=biome_id,
                value=MAX_RESOURCE_VALUE,
                active=True,
            )

        new_biomes[biome_id] = biome.model_copy(
            update={
                "initial_resource_count": count,
                "non_depleted_count": count,
                "total_harvested": 0.0,
            }
        )

    logger.info("resources_reset", resources=len(resources), density=density)
    return resources, new_biomes


def harvest(
    position: Position,
    amount: float,
    resources: dict[Position, Resource],
    biomes: dict[str, Biome],
    player: Player,
) -> HarvestResult:
    """Harvest up to amount from the resource at position.

    Harvesting a tile without an active resource is a no-op that returns the
    inputs unchanged.

    Raises:
        ValidationError: If amount is negative.
        BiomeNotFoundError: If the resource points at an unknown biome.
    """
    if amount < 0:
        raise ValidationError(f"Harvest amount must be non-negative, got {amount}")

    resource = resources.get(position)
    if resource is None or not resource.active:
        logger.debug("harvest_noop", position=str(position))
        return HarvestResult(resources=resources, biomes=biomes, player=player)

    harvested = min(amount, resource.value)
    updated = resource.with_value(resource.value - harvested)
    depleted = not updated.active

    new_resources = dict(resources)
    new_resources[position] = updated

    new_biomes = biomes
    if resource.biome_id is not None:
        if resource.biome_id not in biomes:
            raise BiomeNotFoundError(f"Biome {resource.biome_id} not found")
        biome = biomes[resource.biome_id]
        new_biomes = dict(biomes)
        new_biomes[biome.id] = biome.model_copy(
            update={
                "non_depleted_count": biome.non_depleted_count - (1 if depleted else 0),
                "total_harvested": biome.total_harvested + harvested,
            }
        )

    new_player = player.model_copy(update={"energy": player.energy + harvested})

    logger.debug(
        "resource_harvested",
        position=str(position),
        player_id=player.id,
        amount=harvested,
        depleted=depleted,
    )
    return HarvestResult(
        resources=new_resources,
        biomes=new_biomes,
        player=new_player,
        harvested=harvested,
        depleted=depleted,
    )


def calculate_biome_lushness(
    biome: Biome,
    board: Board,
    resources: dict[Position, Resource],
    eggs: dict[str, Egg],
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> Biome:
    """Recompute a biome's base lushness, egg boost and total.

    base = active resource value / (initial count * 10) * MAX_LUSHNESS
    boost = min(MAX_LUSHNESS_BOOST, owned eggs / blank tiles * factor)

    Blank tiles are non-habitat biome tiles without an active resource.
    """
    biome_resources = [r for r in resources.values() if r.biome_id == biome.id]
    active_positions = {r.position for r in biome_resources if r.active}

    if biome.initial_resource_count > 0:
        active_value = sum(r.value for r in biome_resources if r.active)
        base = (
            active_value
            / (biome.initial_resource_count * MAX_RESOURCE_VALUE)
            * economy.max_lushness
        )
    else:
        base = 0.0

    blank_tiles = sum(
        1
        for p in board.tiles_in_biome(biome.id)
        if not board.get_tile(p).is_habitat and p not in active_positions
    )
    owned_eggs = sum(
        1
        for e in eggs.values()
        if e.biome_id == biome.id and biome.owner_id is not None and e.owner_id == biome.owner_id
    )
    egg_percentage = owned_eggs / blank_tiles if blank_tiles > 0 else 0.0
    boost = min(economy.max_lushness_boost, egg_percentage * economy.egg_boost_factor)

    return biome.with_lushness(base, boost)


def recalc_lushness(
    biome_ids: list[str],
    biomes: dict[str, Biome],
    board: Board,
    resources: dict[Position, Resource],
    eggs: dict[str, Egg],
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> dict[str, Biome]:
    """Recompute lushness for the listed biomes.

    Raises:
        BiomeNotFoundError: If any id is unknown.
    """
    new_biomes = dict(biomes)
    for biome_id in biome_ids:
        if biome_id not in biomes:
            raise BiomeNotFoundError(f"Biome {biome_id} not found")
        new_biomes[biome_id] = calculate_biome_lushness(
            biomes[biome_id], board, resources, eggs, economy
        )
    return new_biomes


def recalc_all_lushness(
    biomes: dict[str, Biome],
    board: Board,
    resources: dict[Position, Resource],
    eggs: dict[str, Egg],
    economy: EconomyConfig = DEFAULT_ECONOMY,
) -> dict[str, Biome]:
    """Recompute lushness for every biome."""
    return recalc_lushness(list(biomes), biomes, board, resources, eggs, economy)


def _active_counts(resources: dict[Position, Resource]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for resource in resources.values():
        if resource.active and resource.biome_id is not None:
            counts[resource.biome_id] = counts.get(resource.biome_id, 0) + 1
    return counts
