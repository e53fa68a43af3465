"""Noise functions for terrain generation.

Coordinate-hashed pseudo-noise: every sample is a deterministic function of
its (x, y) input and a phase offset, so the same seed always reproduces the
same field.
"""

import numpy as np
from numpy.typing import NDArray

from .config import NoiseConfig

_HASH_X = 12.9898
_HASH_Y = 78.233
_HASH_SCALE = 43758.5453

# Range of the per-seed phase offset
PHASE_RANGE = 10000.0


def seed_phase(seed: int | None) -> float:
    """Derive the noise phase offset from a seed.

    Args:
        seed: Integer seed, or None for a fresh random phase.

    Returns:
        Phase offset in [0, PHASE_RANGE).
    """
    rng = np.random.default_rng(seed)
    return float(rng.random() * PHASE_RANGE)


def hash_noise(
    x: NDArray[np.float64],
    y: NDArray[np.float64],
    phase: float,
) -> NDArray[np.float64]:
    """Sample hashed noise at the given coordinates.

    Args:
        x: X coordinates (any shape).
        y: Y coordinates (same shape as x).
        phase: Phase offset derived from the seed.

    Returns:
        Array of values in [0, 1).
    """
    value = np.sin(x * _HASH_X + y * _HASH_Y + phase) * _HASH_SCALE
    return value - np.floor(value)


def fractal_noise(
    width: int,
    height: int,
    phase: float,
    config: NoiseConfig,
) -> NDArray[np.float64]:
    """Sum hashed noise over several octaves on normalized coordinates.

    The first octave samples (x / width, y / height); each further octave
    multiplies the frequency by lacunarity and the amplitude by gain.

    Args:
        width: Output width.
        height: Output height.
        phase: Phase offset derived from the seed.
        config: Octave parameters.

    Returns:
        2D array of shape (height, width).
    """
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    nx = xs / width
    ny = ys / height

    result = np.zeros((height, width), dtype=np.float64)
    frequency = 1.0
    amplitude = config.base_amplitude

    for _ in range(config.octaves):
        result += hash_noise(nx * frequency, ny * frequency, phase) * amplitude
        frequency *= config.lacunarity
        amplitude *= config.gain

    return result
