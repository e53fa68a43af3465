"""Procedural terrain generation package.

This package implements noise-based terrain generation for island boards:
octave noise, a center-biased heightmap, elevation classification,
smoothing, beaches and underwater shelves.
"""

from .config import TerrainConfig
from .generator import GenerationResult, generate_terrain
from .validation import ValidationResult, validate_board, validate_terrain

__all__ = [
    "GenerationResult",
    "TerrainConfig",
    "ValidationResult",
    "generate_terrain",
    "validate_board",
    "validate_terrain",
]
