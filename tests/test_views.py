"""Tests for per-player views."""

import pytest

from ecosim import actions
from ecosim.exceptions import EntityNotFoundError
from ecosim.state import Egg, GameState
from ecosim.types import Position
from ecosim.views import get_player_view

HIDDEN = Position(x=8, y=8)


@pytest.fixture
def fogged(two_player_state: GameState, make_resource) -> GameState:
    """Visibility computed; one resource and one egg in each biome."""
    board = two_player_state.board
    resources = {p: make_resource(board, p) for p in (Position(x=3, y=3), Position(x=6, y=6))}
    eggs = {
        "egg-1": Egg(id="egg-1", owner_id=1, position=Position(x=7, y=9), biome_id="biome-1", created_at_turn=0)
    }
    return actions.refresh_visibility(two_player_state.commit(resources=resources, eggs=eggs))


class TestPlayerView:
    """Tests for get_player_view."""

    def test_foreign_entities_hidden_in_fog(self, fogged: GameState):
        view = get_player_view(fogged, 0)

        assert "buffalo-0" in view.animals
        assert "buffalo-1" not in view.animals
        assert view.eggs == {}
        assert "biome-1" not in view.biomes
        assert Position(x=6, y=6) not in view.resources
        assert Position(x=3, y=3) in view.resources

    def test_unrevealed_tiles_keep_terrain_only(self, fogged: GameState):
        view = get_player_view(fogged, 0)

        tile = view.board.get_tile(HIDDEN)
        assert tile.biome_id is None
        assert tile.terrain == fogged.board.terrain_at(HIDDEN)
        assert view.board.get_tile(Position(x=2, y=2)).is_habitat
        assert not view.board.get_tile(Position(x=7, y=7)).is_habitat

    def test_no_fog_shows_everything(self, fogged: GameState):
        clear = actions.set_fog_of_war(fogged, False).state

        view = get_player_view(clear, 0)

        assert set(view.animals) == {"buffalo-0", "buffalo-1"}
        assert "egg-1" in view.eggs
        assert view.board is clear.board
        assert view.is_revealed(HIDDEN)

    def test_owner_sees_own_biome(self, fogged: GameState):
        view = get_player_view(fogged, 1)

        assert [b.id for b in view.owned_biomes()] == ["biome-1"]
        assert [a.id for a in view.own_animals()] == ["buffalo-1"]
        assert [e.id for e in view.own_eggs()] == ["egg-1"]

    def test_blank_tiles_exclude_resources_and_habitats(self, fogged: GameState):
        view = get_player_view(fogged, 0)

        blank = view.blank_tiles()
        assert Position(x=3, y=3) not in blank
        assert Position(x=2, y=2) not in blank
        assert HIDDEN not in blank

    def test_unknown_player(self, fogged: GameState):
        with pytest.raises(EntityNotFoundError):
            get_player_view(fogged, 7)
