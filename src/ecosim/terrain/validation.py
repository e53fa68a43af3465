"""Post-generation validation of terrain maps and partitioned boards."""

import logging
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from ..terrain_types import TerrainType, terrain_value

if TYPE_CHECKING:
    from ..state import Biome, Board

logger = logging.getLogger(__name__)


class ValidationResult:
    """Result of terrain or board validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)

    def log(self, subject: str) -> None:
        if self.passed:
            logger.info(f"{subject} validation passed")
        else:
            logger.warning(
                f"{subject} validation failed with {len(self.errors)} errors"
            )
            for error in self.errors:
                logger.error(f"  - {error}")

        for warning in self.warnings:
            logger.warning(f"  - {warning}")


def validate_terrain(terrain: NDArray[np.uint8]) -> ValidationResult:
    """Validate a generated terrain array.

    Args:
        terrain: Terrain value array.

    Returns:
        ValidationResult with any errors/warnings.
    """
    result = ValidationResult()

    _check_land(terrain, result)
    _check_terrain_variety(terrain, result)

    result.log("Terrain")
    return result


def validate_board(board: "Board", biomes: dict[str, "Biome"]) -> ValidationResult:
    """Validate a partitioned board against its biomes.

    Errors: tiles without a biome, tiles pointing at unknown biomes, habitat
    flags that disagree with the biome habitats. Warnings: terrain types
    missing from the map, no owned starting biome.

    Args:
        board: Partitioned board.
        biomes: Biomes by id.

    Returns:
        ValidationResult with any errors/warnings.
    """
    result = ValidationResult()

    if not biomes:
        result.add_error("Board has no biomes")

    _check_tile_biomes(board, biomes, result)
    _check_habitats(board, biomes, result)

    present = {tile.terrain for tile in board.iter_tiles()}
    missing = [t.value for t in TerrainType if t not in present]
    if missing:
        result.add_warning(f"Terrain types missing from board: {', '.join(missing)}")

    if not any(b.owner_id is not None for b in biomes.values()):
        result.add_warning("No biome is owned at start")

    result.log("Board")
    return result


def _check_land(terrain: NDArray[np.uint8], result: ValidationResult) -> None:
    """Check that there is land, ideally a single land mass."""
    water_values = (terrain_value(TerrainType.WATER), terrain_value(TerrainType.UNDERWATER))
    land_mask = ~np.isin(terrain, water_values)

    structure = ndimage.generate_binary_structure(2, 2)  # 8-connected
    labeled, num_features = ndimage.label(land_mask, structure=structure)

    if num_features == 0:
        result.add_error("No land found")
    elif num_features > 1:
        sizes = ndimage.sum(land_mask, labeled, range(1, num_features + 1))
        largest_frac = np.max(sizes) / np.sum(land_mask)
        result.add_warning(
            f"Multiple land masses: {num_features} components, "
            f"largest is {largest_frac:.1%} of land"
        )


def _check_terrain_variety(terrain: NDArray[np.uint8], result: ValidationResult) -> None:
    for t in TerrainType:
        if not np.any(terrain == terrain_value(t)):
            result.add_warning(f"No {t.value} tiles generated")


def _check_tile_biomes(
    board: "Board",
    biomes: dict[str, "Biome"],
    result: ValidationResult,
) -> None:
    unassigned = 0
    unknown = 0
    for tile in board.iter_tiles():
        if tile.biome_id is None:
            unassigned += 1
        elif tile.biome_id not in biomes:
            unknown += 1

    if unassigned:
        result.add_error(f"{unassigned} tiles have no biome")
    if unknown:
        result.add_error(f"{unknown} tiles reference unknown biomes")


def _check_habitats(
    board: "Board",
    biomes: dict[str, "Biome"],
    result: ValidationResult,
) -> None:
    habitat_positions = {b.habitat.position for b in biomes.values()}

    for biome in biomes.values():
        pos = biome.habitat.position
        if not board.in_bounds(pos):
            result.add_error(f"Habitat of {biome.id} at {pos} is off the board")
            continue
        tile = board.get_tile(pos)
        if not tile.is_habitat:
            result.add_error(f"Habitat tile {pos} of {biome.id} is not flagged")
        if tile.biome_id != biome.id:
            result.add_error(f"Habitat tile {pos} belongs to {tile.biome_id}, not {biome.id}")

    stray = [
        t.position
        for t in board.iter_tiles()
        if t.is_habitat and t.position not in habitat_positions
    ]
    if stray:
        result.add_error(f"{len(stray)} tiles flagged as habitat without a biome")
