"""Terrain generation configuration models."""

from pydantic import BaseModel, Field


class NoiseConfig(BaseModel):
    """Hashed value-noise parameters."""

    octaves: int = Field(default=4, description="Number of octaves summed")
    base_amplitude: float = Field(default=0.5, description="Amplitude of first octave")
    gain: float = Field(default=0.5, description="Amplitude multiplier per octave")
    lacunarity: float = Field(default=2.0, description="Frequency multiplier per octave")


class IslandConfig(BaseModel):
    """Island shaping parameters."""

    center_falloff: float = Field(
        default=1.5, description="Elevation lost per unit of normalized center distance"
    )
    noise_weight: float = Field(
        default=0.5, description="Weight of summed noise added to the elevation"
    )


class ClassificationConfig(BaseModel):
    """Terrain classification thresholds."""

    water_ratio: float = Field(
        default=0.4, description="Elevation below this becomes water"
    )
    mountain_ratio: float = Field(
        default=0.05, description="Elevation above 1 - this becomes mountain"
    )
    smoothing_passes: int = Field(default=3, description="Majority smoothing passes")
    majority_threshold: int = Field(
        default=5, description="Neighbours (of 8) needed to flip a cell"
    )
    beach_width: int = Field(
        default=2, description="Manhattan ring width of beaches around water"
    )
    underwater_distance: int = Field(
        default=2, description="Min water distance from shoreline for underwater"
    )


class BiomeSeedConfig(BaseModel):
    """Habitat seed placement parameters."""

    min_separation: int = Field(
        default=5, description="Min Manhattan distance between habitat seeds"
    )
    max_iterations: int = Field(
        default=100, description="Max densification passes after the first seeds"
    )


class TerrainConfig(BaseModel):
    """Complete terrain generation configuration."""

    seed: int | None = Field(
        default=None, description="Random seed (None = not reproducible)"
    )
    width: int = Field(default=30, ge=3, description="Board width in tiles")
    height: int = Field(default=30, ge=3, description="Board height in tiles")

    noise: NoiseConfig = Field(default_factory=NoiseConfig)
    island: IslandConfig = Field(default_factory=IslandConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    biomes: BiomeSeedConfig = Field(default_factory=BiomeSeedConfig)
