"""Island shaping: center-distance bias applied to the noise field."""

import numpy as np
from numpy.typing import NDArray

from .config import IslandConfig


def center_distance(width: int, height: int) -> NDArray[np.float64]:
    """Normalized distance of every cell from the grid center.

    0 at the center, 1 at the corners.

    Args:
        width: Grid width.
        height: Grid height.

    Returns:
        2D array of shape (height, width).
    """
    cx, cy = width / 2, height / 2
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)

    dx = (xs - cx) / cx
    dy = (ys - cy) / cy
    return np.sqrt(dx**2 + dy**2) / np.sqrt(2.0)


def island_heightmap(
    noise: NDArray[np.float64],
    config: IslandConfig,
) -> NDArray[np.float64]:
    """Combine noise with a center bias so land gathers in the middle.

    Args:
        noise: Summed octave noise, shape (height, width).
        config: Island shaping parameters.

    Returns:
        Elevation in [0, 1].
    """
    height, width = noise.shape
    dist = center_distance(width, height)

    elevation = 1.0 - dist * config.center_falloff + noise * config.noise_weight
    return np.clip(elevation, 0.0, 1.0)
