"""Terrain classification: thresholds, majority smoothing, beaches, underwater."""

from collections import deque

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from ..terrain_types import TerrainType, terrain_value
from .config import ClassificationConfig

WATER = terrain_value(TerrainType.WATER)
GRASS = terrain_value(TerrainType.GRASS)
BEACH = terrain_value(TerrainType.BEACH)
MOUNTAIN = terrain_value(TerrainType.MOUNTAIN)
UNDERWATER = terrain_value(TerrainType.UNDERWATER)

# 8-connected, exclude center
_NEIGHBOR_KERNEL = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.int32)


def classify_elevation(
    elevation: NDArray[np.float64],
    water_ratio: float,
    mountain_ratio: float,
) -> NDArray[np.uint8]:
    """Threshold elevation into water, grass and mountain.

    Args:
        elevation: Elevation field in [0, 1].
        water_ratio: Elevation strictly below this becomes water.
        mountain_ratio: Elevation strictly above 1 - this becomes mountain.

    Returns:
        2D terrain value array.
    """
    terrain = np.full(elevation.shape, GRASS, dtype=np.uint8)
    terrain[elevation < water_ratio] = WATER
    terrain[elevation > 1.0 - mountain_ratio] = MOUNTAIN
    return terrain


def neighbor_counts(mask: NDArray[np.bool_]) -> NDArray[np.int32]:
    """Count in-bounds 8-neighbours of each cell that are set in mask."""
    return ndimage.convolve(
        mask.astype(np.int32), _NEIGHBOR_KERNEL, mode="constant", cval=0
    )


def majority_smooth(
    terrain: NDArray[np.uint8],
    iterations: int = 3,
    threshold: int = 5,
) -> NDArray[np.uint8]:
    """Replace cells with the dominant terrain among their 8 neighbours.

    Each pass reads from the previous pass only. A cell flips when at least
    `threshold` neighbours share one terrain; with threshold > 4 at most one
    terrain can qualify.

    Args:
        terrain: Terrain value array.
        iterations: Number of smoothing passes.
        threshold: Neighbour count needed to flip a cell.

    Returns:
        Smoothed terrain array.
    """
    result = terrain.copy()

    for _ in range(iterations):
        source = result.copy()
        best_count = np.zeros(source.shape, dtype=np.int32)
        best_value = source.copy()

        for value in (WATER, GRASS, BEACH, MOUNTAIN, UNDERWATER):
            counts = neighbor_counts(source == value)
            better = counts > best_count
            best_count[better] = counts[better]
            best_value[better] = value

        flip = best_count >= threshold
        result[flip] = best_value[flip]

    return result


def add_beaches(
    terrain: NDArray[np.uint8],
    beach_width: int = 2,
) -> NDArray[np.uint8]:
    """Stamp beaches onto grass within a Manhattan ring of any water.

    Args:
        terrain: Terrain value array.
        beach_width: Max Manhattan distance from water.

    Returns:
        Terrain array with beaches.
    """
    result = terrain.copy()
    water = result == WATER
    if not water.any():
        return result

    # Taxicab distance from each cell to the nearest water cell
    dist_to_water = ndimage.distance_transform_cdt(~water, metric="taxicab")

    beach = (result == GRASS) & (dist_to_water >= 1) & (dist_to_water <= beach_width)
    result[beach] = BEACH
    return result


def shoreline_mask(terrain: NDArray[np.uint8]) -> NDArray[np.bool_]:
    """Water cells touching (8-neighbourhood) any non-water cell."""
    water = terrain == WATER
    dry = ~(water | (terrain == UNDERWATER))
    return water & (neighbor_counts(dry) > 0)


def distance_from_shoreline(terrain: NDArray[np.uint8]) -> NDArray[np.float64]:
    """Breadth-first distance through 4-connected water from the shoreline.

    Args:
        terrain: Terrain value array.

    Returns:
        Distance per cell; 0 on the shoreline, inf for unreachable water and
        for non-water cells.
    """
    height, width = terrain.shape
    water = terrain == WATER
    distance = np.full(terrain.shape, np.inf)

    queue: deque[tuple[int, int]] = deque()
    for y, x in zip(*np.nonzero(shoreline_mask(terrain))):
        distance[y, x] = 0
        queue.append((int(x), int(y)))

    while queue:
        x, y = queue.popleft()
        next_dist = distance[y, x] + 1
        for dx, dy in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            nx, ny = x + dx, y + dy
            if not (0 <= nx < width and 0 <= ny < height):
                continue
            if not water[ny, nx] or distance[ny, nx] <= next_dist:
                continue
            distance[ny, nx] = next_dist
            queue.append((nx, ny))

    return distance


def add_underwater(
    terrain: NDArray[np.uint8],
    min_distance: int = 2,
) -> NDArray[np.uint8]:
    """Deepen water far enough from the shoreline into underwater.

    Args:
        terrain: Terrain value array.
        min_distance: Shoreline distance at which water becomes underwater.

    Returns:
        Terrain array with underwater cells.
    """
    result = terrain.copy()
    distance = distance_from_shoreline(terrain)
    result[(terrain == WATER) & (distance >= min_distance)] = UNDERWATER
    return result


def classify_terrain(
    elevation: NDArray[np.float64],
    config: ClassificationConfig,
) -> NDArray[np.uint8]:
    """Run the full classification chain on an elevation field.

    Args:
        elevation: Elevation field in [0, 1].
        config: Classification thresholds.

    Returns:
        2D terrain value array.
    """
    terrain = classify_elevation(elevation, config.water_ratio, config.mountain_ratio)
    terrain = majority_smooth(
        terrain,
        iterations=config.smoothing_passes,
        threshold=config.majority_threshold,
    )
    terrain = add_beaches(terrain, config.beach_width)
    terrain = add_underwater(terrain, config.underwater_distance)
    return terrain
