"""Shared test fixtures for ecosim tests."""

from typing import Callable

import numpy as np
import pytest
from numpy.typing import NDArray

from ecosim.biomes import build_biomes, build_board, partition
from ecosim.config import GameConfig, GameMode
from ecosim.state import Animal, Biome, Board, GameState, Player, Resource
from ecosim.terrain_types import TerrainType, terrain_value
from ecosim.turns import TurnState
from ecosim.types import Position

GLYPH_TERRAIN = {
    ".": TerrainType.GRASS,
    "~": TerrainType.WATER,
    ":": TerrainType.BEACH,
    "^": TerrainType.MOUNTAIN,
    "=": TerrainType.UNDERWATER,
}


def terrain_array(rows: list[str]) -> NDArray[np.uint8]:
    """Terrain value array from glyph rows (see GLYPH_TERRAIN)."""
    return np.array(
        [[terrain_value(GLYPH_TERRAIN[c]) for c in row] for row in rows],
        dtype=np.uint8,
    )


def board_from_rows(rows: list[str], seeds: list[Position]) -> Board:
    """Board partitioned around the given habitat seeds."""
    terrain = terrain_array(rows)
    height, width = terrain.shape
    return build_board(terrain, partition(width, height, seeds), seeds)


def uniform_rows(width: int, height: int, glyph: str = ".") -> list[str]:
    return [glyph * width for _ in range(height)]


def resource_at(board: Board, position: Position, value: float = 10.0) -> Resource:
    """Resource matching the tile's terrain and biome."""
    tile = board.get_tile(position)
    resource_type = tile.terrain.resource_type
    assert resource_type is not None
    return Resource(
        id=f"resource-{position.x}-{position.y}",
        type=resource_type,
        position=position,
        biome_id=tile.biome_id,
        value=value,
        active=value > 0,
    )


@pytest.fixture
def make_board() -> Callable[[list[str], list[Position]], Board]:
    """Factory building a partitioned board from glyph rows and seeds."""
    return board_from_rows


@pytest.fixture
def make_terrain() -> Callable[[list[str]], NDArray[np.uint8]]:
    """Factory building a terrain value array from glyph rows."""
    return terrain_array


@pytest.fixture
def make_resource() -> Callable[..., Resource]:
    return resource_at


@pytest.fixture
def grass_board() -> Board:
    """10x10 all-grass board with one biome whose habitat is at (5, 5)."""
    return board_from_rows(uniform_rows(10, 10), [Position(x=5, y=5)])


@pytest.fixture
def two_biome_seeds() -> list[Position]:
    return [Position(x=2, y=2), Position(x=7, y=7)]


@pytest.fixture
def two_biome_board(two_biome_seeds: list[Position]) -> Board:
    """10x10 all-grass board split between biome-0 (2,2) and biome-1 (7,7)."""
    return board_from_rows(uniform_rows(10, 10), two_biome_seeds)


@pytest.fixture
def two_biomes(two_biome_seeds: list[Position]) -> dict[str, Biome]:
    """biome-0 owned by player 0, biome-1 owned by player 1."""
    biomes = build_biomes(two_biome_seeds, starting_index=0, starting_owner=0)
    biomes["biome-1"] = biomes["biome-1"].with_owner(1)
    return biomes


@pytest.fixture
def coast_board() -> Board:
    """7x5 board: water on the left, a beach strip, grass on the right.

        ~ ~ : . . . .
        ~ ~ : . . . .
        ~ ~ : . . ^ .
        ~ ~ : . . . .
        ~ ~ : . . . .

    One biome with its habitat at (3, 2).
    """
    rows = [
        "~~:....",
        "~~:....",
        "~~:..^.",
        "~~:....",
        "~~:....",
    ]
    return board_from_rows(rows, [Position(x=3, y=2)])


@pytest.fixture
def players() -> tuple[Player, ...]:
    return (
        Player(id=0, name="Player 1", is_active=True),
        Player(id=1, name="Player 2"),
    )


@pytest.fixture
def two_player_state(
    two_biome_board: Board,
    two_biomes: dict[str, Biome],
    players: tuple[Player, ...],
) -> GameState:
    """Two-biome game with one buffalo per player away from the habitats."""
    animals = {
        "buffalo-0": Animal(
            id="buffalo-0", species="buffalo", position=Position(x=1, y=1), owner_id=0
        ),
        "buffalo-1": Animal(
            id="buffalo-1", species="buffalo", position=Position(x=8, y=8), owner_id=1
        ),
    }
    return GameState(
        turn=1,
        board=two_biome_board,
        biomes=two_biomes,
        animals=animals,
        players=players,
        active_player_id=0,
    )


@pytest.fixture
def turn_state(two_player_state: GameState) -> TurnState:
    """Agent-only two-player game at turn 0, before the first round."""
    return TurnState(
        game=two_player_state.commit(turn=0),
        config=GameConfig(mode=GameMode.SIM),
    )
