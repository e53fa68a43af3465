"""Tests for island shaping."""

import numpy as np
import pytest

from ecosim.terrain.config import IslandConfig
from ecosim.terrain.island import center_distance, island_heightmap


class TestCenterDistance:
    """Tests for center_distance."""

    def test_center_and_corner(self) -> None:
        """0 at the center, 1 at the top-left corner."""
        dist = center_distance(10, 10)

        assert dist[5, 5] == pytest.approx(0.0)
        assert dist[0, 0] == pytest.approx(1.0)

    def test_symmetric_axes(self) -> None:
        dist = center_distance(20, 10)

        assert dist[5, 0] == pytest.approx(dist[0, 10])


class TestIslandHeightmap:
    """Tests for island_heightmap."""

    def test_flat_noise(self) -> None:
        """Without noise the center is highest and the corners sink to 0."""
        elevation = island_heightmap(np.zeros((10, 10)), IslandConfig())

        assert elevation[5, 5] == pytest.approx(1.0)
        assert elevation[0, 0] == 0.0

    def test_clipped(self) -> None:
        rng = np.random.default_rng(0)
        noise = rng.random((16, 16)) * 5

        elevation = island_heightmap(noise, IslandConfig(noise_weight=2.0))

        assert elevation.min() >= 0.0
        assert elevation.max() <= 1.0

    def test_noise_raises_elevation(self) -> None:
        flat = island_heightmap(np.zeros((10, 10)), IslandConfig())
        bumped = island_heightmap(np.full((10, 10), 0.2), IslandConfig())

        assert np.all(bumped >= flat)
        assert bumped[3, 3] == pytest.approx(flat[3, 3] + 0.1)
