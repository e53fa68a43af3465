"""Tests for computer-controlled players."""

import numpy as np

from ecosim import actions
from ecosim.agents import RandomAgent
from ecosim.commands import CaptureCommand, HarvestCommand, HatchCommand, MoveCommand
from ecosim.movement import calculate_valid_moves
from ecosim.state import Egg, GameState
from ecosim.types import Position
from ecosim.views import get_player_view


def by_type(commands, cls):
    return [c for c in commands if isinstance(c, cls)]


class TestRandomAgent:
    """Tests for RandomAgent."""

    def test_moves_every_unmoved_unit(self, two_player_state: GameState):
        game = actions.refresh_visibility(two_player_state)
        view = get_player_view(game, 0)

        commands = RandomAgent(np.random.default_rng(0)).decide(view)

        moves = by_type(commands, MoveCommand)
        assert [m.animal_id for m in moves] == ["buffalo-0"]
        assert moves[0].to in calculate_valid_moves("buffalo-0", game.board, game.animals)

    def test_captures_instead_of_moving(self, two_player_state: GameState):
        animals = dict(two_player_state.animals)
        animals["buffalo-0"] = animals["buffalo-0"].model_copy(update={"position": Position(x=7, y=7)})
        game = actions.refresh_visibility(two_player_state.commit(animals=animals))

        commands = RandomAgent(np.random.default_rng(0)).decide(get_player_view(game, 0))

        assert by_type(commands, CaptureCommand) == [CaptureCommand(biome_id="biome-1")]
        assert by_type(commands, MoveCommand) == []

    def test_hatches_and_harvests_own_biome(self, two_player_state: GameState, make_resource):
        board = two_player_state.board
        resources = {
            p: make_resource(board, p)
            for p in (Position(x=3, y=3), Position(x=0, y=3), Position(x=6, y=6))
        }
        eggs = {
            "mine": Egg(id="mine", owner_id=0, position=Position(x=4, y=1), biome_id="biome-0", created_at_turn=0),
            "theirs": Egg(id="theirs", owner_id=1, position=Position(x=1, y=3), biome_id="biome-0", created_at_turn=0),
        }
        game = actions.refresh_visibility(two_player_state.commit(resources=resources, eggs=eggs))

        commands = RandomAgent(np.random.default_rng(0)).decide(get_player_view(game, 0))

        assert by_type(commands, HatchCommand) == [HatchCommand(egg_id="mine")]
        harvests = by_type(commands, HarvestCommand)
        assert len(harvests) == 1
        assert board.biome_at(harvests[0].position) == "biome-0"

    def test_moved_units_stay(self, two_player_state: GameState):
        animals = {
            k: a.model_copy(update={"has_moved": True}) for k, a in two_player_state.animals.items()
        }
        game = actions.refresh_visibility(two_player_state.commit(animals=animals))

        commands = RandomAgent(np.random.default_rng(0)).decide(get_player_view(game, 0))

        assert by_type(commands, MoveCommand) == []
