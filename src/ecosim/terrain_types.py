"""Terrain and resource types and their properties."""

from enum import Enum


class TerrainType(str, Enum):
    """Terrain categories produced by the terrain generator."""

    WATER = "water"
    GRASS = "grass"
    BEACH = "beach"
    MOUNTAIN = "mountain"
    UNDERWATER = "underwater"

    @property
    def is_water(self) -> bool:
        """Whether this is one of the water terrains."""
        return self in _WATER_TYPES

    @property
    def resource_type(self) -> "ResourceType | None":
        """Resource that grows on this terrain, or None (beaches)."""
        return _TERRAIN_RESOURCES.get(self)

    @property
    def holds_resources(self) -> bool:
        """Whether resources may be placed on this terrain."""
        return self in _TERRAIN_RESOURCES


class ResourceType(str, Enum):
    """Renewable resource kinds."""

    FOREST = "forest"
    KELP = "kelp"
    INSECTS = "insects"
    PLANKTON = "plankton"


_WATER_TYPES = frozenset({
    TerrainType.WATER,
    TerrainType.UNDERWATER,
})

_TERRAIN_RESOURCES: dict[TerrainType, ResourceType] = {
    TerrainType.GRASS: ResourceType.FOREST,
    TerrainType.WATER: ResourceType.KELP,
    TerrainType.MOUNTAIN: ResourceType.INSECTS,
    TerrainType.UNDERWATER: ResourceType.PLANKTON,
}

# Order in which habitat seeds are placed: coast first, then inland, then sea
BIOME_TERRAIN_ORDER: tuple[TerrainType, ...] = (
    TerrainType.BEACH,
    TerrainType.GRASS,
    TerrainType.MOUNTAIN,
    TerrainType.WATER,
    TerrainType.UNDERWATER,
)

# Compact uint8 storage for terrain arrays
_TERRAIN_VALUES: dict[TerrainType, int] = {
    TerrainType.WATER: 0,
    TerrainType.GRASS: 1,
    TerrainType.BEACH: 2,
    TerrainType.MOUNTAIN: 3,
    TerrainType.UNDERWATER: 4,
}
_VALUE_TERRAINS: dict[int, TerrainType] = {v: k for k, v in _TERRAIN_VALUES.items()}


def terrain_value(terrain: TerrainType) -> int:
    """Convert TerrainType to its uint8 array value."""
    return _TERRAIN_VALUES[terrain]


def terrain_from_value(value: int) -> TerrainType:
    """Convert a uint8 array value back to TerrainType."""
    return _VALUE_TERRAINS.get(int(value), TerrainType.GRASS)
