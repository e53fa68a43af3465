"""Main terrain generation orchestration."""

import logging

import numpy as np
from numpy.typing import NDArray

from ..terrain_types import TerrainType, terrain_from_value, terrain_value
from .classification import classify_terrain
from .config import TerrainConfig
from .island import island_heightmap
from .noise import fractal_noise, seed_phase

logger = logging.getLogger(__name__)


class GenerationResult:
    """Result of terrain generation with intermediate data."""

    def __init__(
        self,
        terrain: NDArray[np.uint8],
        elevation: NDArray[np.float64],
        config: TerrainConfig,
    ):
        self.terrain = terrain
        self.elevation = elevation
        self.config = config

    @property
    def width(self) -> int:
        return int(self.terrain.shape[1])

    @property
    def height(self) -> int:
        return int(self.terrain.shape[0])

    def terrain_at(self, x: int, y: int) -> TerrainType:
        return terrain_from_value(self.terrain[y, x])

    def terrain_grid(self) -> list[list[TerrainType]]:
        """Terrain as nested lists indexed [y][x]."""
        return [[terrain_from_value(v) for v in row] for row in self.terrain]

    def counts(self) -> dict[TerrainType, int]:
        """Number of cells of each terrain type."""
        return {t: int(np.sum(self.terrain == terrain_value(t))) for t in TerrainType}


def generate_terrain(config: TerrainConfig) -> GenerationResult:
    """Generate an island terrain map from configuration.

    Stages: octave noise, center-biased heightmap, elevation thresholds,
    majority smoothing, beaches, underwater.

    Args:
        config: Terrain generation configuration.

    Returns:
        GenerationResult with the terrain value array.
    """
    width, height = config.width, config.height
    logger.info(f"Generating terrain {width}x{height} with seed {config.seed}")

    phase = seed_phase(config.seed)
    noise = fractal_noise(width, height, phase, config.noise)
    elevation = island_heightmap(noise, config.island)

    terrain = classify_terrain(elevation, config.classification)

    result = GenerationResult(terrain=terrain, elevation=elevation, config=config)
    _log_terrain_stats(result)
    return result


def _log_terrain_stats(result: GenerationResult) -> None:
    """Log terrain generation statistics."""
    total = result.terrain.size
    if total == 0:
        logger.warning("Terrain is empty, no stats to report")
        return

    logger.debug(f"Terrain stats ({total:,} tiles):")
    for terrain, count in result.counts().items():
        pct = count / total * 100
        logger.debug(f"  {terrain.value}: {count:,} ({pct:.1f}%)")
