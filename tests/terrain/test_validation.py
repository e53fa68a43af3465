"""Tests for terrain and board validation."""

import numpy as np

from ecosim.biomes import build_biomes
from ecosim.state import Board, Tile
from ecosim.terrain.classification import GRASS, WATER
from ecosim.terrain.validation import validate_board, validate_terrain
from ecosim.types import Position


class TestValidateTerrain:
    """Tests for validate_terrain."""

    def test_no_land(self) -> None:
        result = validate_terrain(np.full((5, 5), WATER, dtype=np.uint8))

        assert not result.passed
        assert "No land found" in result.errors

    def test_multiple_land_masses_warn(self) -> None:
        terrain = np.full((5, 7), WATER, dtype=np.uint8)
        terrain[2, 1] = GRASS
        terrain[2, 5] = GRASS

        result = validate_terrain(terrain)

        assert result.passed
        assert any("Multiple land masses" in w for w in result.warnings)

    def test_missing_types_warn(self) -> None:
        result = validate_terrain(np.full((3, 3), GRASS, dtype=np.uint8))

        assert result.passed
        assert len(result.warnings) == 4


class TestValidateBoard:
    """Tests for validate_board."""

    def test_consistent_board(self, two_biome_board: Board, two_biomes) -> None:
        result = validate_board(two_biome_board, two_biomes)

        assert result.passed, result.errors

    def test_no_biomes(self, two_biome_board: Board) -> None:
        result = validate_board(two_biome_board, {})

        assert not result.passed
        assert "Board has no biomes" in result.errors

    def test_unowned_board_warns(self, two_biome_board: Board, two_biome_seeds) -> None:
        result = validate_board(two_biome_board, build_biomes(two_biome_seeds))

        assert result.passed
        assert "No biome is owned at start" in result.warnings

    def test_unassigned_and_stray_habitat(self, two_biome_board: Board, two_biomes) -> None:
        rows = [list(row) for row in two_biome_board.tiles]
        rows[0][0] = Tile(position=Position(x=0, y=0))
        rows[9][0] = rows[9][0].model_copy(update={"is_habitat": True})
        board = Board(width=10, height=10, tiles=tuple(tuple(r) for r in rows))

        result = validate_board(board, two_biomes)

        assert not result.passed
        assert "1 tiles have no biome" in result.errors
        assert "1 tiles flagged as habitat without a biome" in result.errors

    def test_habitat_in_wrong_biome(self, two_biome_board: Board, two_biomes) -> None:
        biomes = dict(two_biomes)
        biomes["biome-1"] = biomes["biome-1"].model_copy(
            update={"habitat": biomes["biome-0"].habitat}
        )

        result = validate_board(two_biome_board, biomes)

        assert not result.passed
        assert any("belongs to biome-0, not biome-1" in e for e in result.errors)
