"""Species registry: movement range, terrain compatibility, hatch table."""

from pydantic import BaseModel

from .terrain_types import TerrainType


class SpeciesAbilities(BaseModel, frozen=True):
    """Movement abilities of a species."""

    move_range: int
    compatible_terrains: frozenset[TerrainType]


SPECIES_REGISTRY: dict[str, SpeciesAbilities] = {
    "buffalo": SpeciesAbilities(
        move_range=1,
        compatible_terrains=frozenset({TerrainType.GRASS, TerrainType.MOUNTAIN}),
    ),
    "bird": SpeciesAbilities(
        move_range=4,
        compatible_terrains=frozenset(TerrainType),
    ),
    "snake": SpeciesAbilities(
        move_range=2,
        compatible_terrains=frozenset({TerrainType.BEACH, TerrainType.GRASS}),
    ),
    "octopus": SpeciesAbilities(
        move_range=3,
        compatible_terrains=frozenset({TerrainType.UNDERWATER, TerrainType.WATER}),
    ),
    "turtle": SpeciesAbilities(
        move_range=1,
        compatible_terrains=frozenset({
            TerrainType.WATER,
            TerrainType.BEACH,
            TerrainType.UNDERWATER,
            TerrainType.GRASS,
        }),
    ),
}

DEFAULT_ABILITIES = SpeciesAbilities(
    move_range=1,
    compatible_terrains=frozenset({TerrainType.GRASS}),
)

# Species that hatches from an egg laid on each terrain
HATCH_SPECIES: dict[TerrainType, str] = {
    TerrainType.GRASS: "buffalo",
    TerrainType.MOUNTAIN: "bird",
    TerrainType.WATER: "turtle",
    TerrainType.UNDERWATER: "octopus",
    TerrainType.BEACH: "snake",
}

FALLBACK_SPECIES = "snake"


def get_abilities(species: str) -> SpeciesAbilities:
    """Get abilities for a species, falling back to defaults."""
    return SPECIES_REGISTRY.get(species, DEFAULT_ABILITIES)


def move_range(species: str) -> int:
    return get_abilities(species).move_range


def is_terrain_compatible(species: str, terrain: TerrainType) -> bool:
    """Check whether a species can stand on a terrain."""
    return terrain in get_abilities(species).compatible_terrains


def species_for_terrain(terrain: TerrainType) -> str:
    """Species hatched from an egg on the given terrain."""
    return HATCH_SPECIES.get(terrain, FALLBACK_SPECIES)


def compatible_species(terrain: TerrainType) -> list[str]:
    """All registered species that can stand on a terrain."""
    return [
        name
        for name, abilities in SPECIES_REGISTRY.items()
        if terrain in abilities.compatible_terrains
    ]
