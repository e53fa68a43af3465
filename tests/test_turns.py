"""Tests for the turn sequencer."""

import pytest

from ecosim.config import BoardConfig, GameConfig
from ecosim.exceptions import EntityNotFoundError, InvariantViolation
from ecosim.state import DisplacementEvent, GameState
from ecosim.turns import (
    SequencerState,
    TurnPhase,
    TurnState,
    advance_to_next_player,
    advance_turn,
    mark_player_units_moved,
    new_game,
    reset_player_units,
    set_active_player,
    start_player_turn,
)
from ecosim.types import Position


def lush(state: TurnState, biome_id: str = "biome-0") -> TurnState:
    """Give a biome enough lushness to lay eggs."""
    biomes = dict(state.game.biomes)
    biomes[biome_id] = biomes[biome_id].with_lushness(8.0, 0.0)
    return state.with_game(state.game.commit(biomes=biomes))


class TestSequencer:
    """Tests for advance_turn transitions."""

    def test_first_advance_starts_round_one(self, turn_state: TurnState):
        """The opening turn belongs to the first player and skips the economy."""
        state = advance_turn(turn_state)

        assert state.phase == TurnPhase.AWAITING_PLAYER_ACTION
        assert state.active_player_id == 0
        assert state.game.turn == 1
        assert state.sequencer.round == 1
        assert state.report.economy_ran is False
        assert state.sequencer.skip_initial_update is False

    def test_awaiting_without_player_raises(self, turn_state: TurnState):
        """An awaiting phase needs a player to end the turn for."""
        broken = turn_state.model_copy(
            update={"sequencer": SequencerState(phase=TurnPhase.AWAITING_PLAYER_ACTION)}
        )

        with pytest.raises(InvariantViolation):
            advance_turn(broken)

    def test_full_round(self, turn_state: TurnState):
        """Both players act, then a new round bumps the turn."""
        phases = []
        state = turn_state
        for _ in range(6):
            state = advance_turn(state)
            phases.append((state.phase, state.sequencer.player_id))

        assert phases == [
            (TurnPhase.AWAITING_PLAYER_ACTION, 0),
            (TurnPhase.END_PLAYER_TURN, 0),
            (TurnPhase.AWAITING_PLAYER_ACTION, 1),
            (TurnPhase.END_PLAYER_TURN, 1),
            (TurnPhase.START_NEW_ROUND, None),
            (TurnPhase.AWAITING_PLAYER_ACTION, 0),
        ]
        assert state.game.turn == 2
        assert state.sequencer.round == 2

    def test_second_player_runs_economy(self, turn_state: TurnState):
        state = turn_state
        for _ in range(3):
            state = advance_turn(state)

        assert state.active_player_id == 1
        assert state.report.economy_ran is True

    def test_ending_turn_marks_units_moved(self, turn_state: TurnState):
        """Ending a turn spends every unit of that player."""
        state = advance_turn(advance_turn(turn_state))

        assert state.game.get_animal("buffalo-0").has_moved
        assert not state.game.get_animal("buffalo-1").has_moved

    def test_active_player_only_while_awaiting(self, turn_state: TurnState):
        assert turn_state.active_player_id is None
        assert advance_turn(turn_state).active_player_id == 0
        assert advance_turn(advance_turn(turn_state)).active_player_id is None

    def test_no_players(self, turn_state: TurnState):
        state = turn_state.with_game(turn_state.game.commit(players=()))

        with pytest.raises(EntityNotFoundError):
            advance_turn(state)

    def test_advance_to_next_player(self, turn_state: TurnState):
        """Skips straight to the next player, wrapping into a new round."""
        first = advance_turn(turn_state)

        second = advance_to_next_player(first)
        assert second.active_player_id == 1
        assert second.game.turn == 1

        third = advance_to_next_player(second)
        assert third.active_player_id == 0
        assert third.game.turn == 2


class TestTurnStart:
    """Tests for the turn-start pipeline."""

    def test_active_flags(self, two_player_state: GameState):
        game = set_active_player(two_player_state, 1)

        assert game.active_player_id == 1
        assert [p.is_active for p in game.players] == [False, True]

    def test_reset_clears_movement_and_events(self, two_player_state: GameState):
        event = DisplacementEvent(
            unit_id="buffalo-1", from_pos=Position(x=0, y=0), to_pos=Position(x=0, y=1), timestamp_ms=0
        )
        game = mark_player_units_moved(two_player_state, 0)
        game = mark_player_units_moved(game, 1).commit(displacement_event=event)

        game = reset_player_units(game, 0)

        assert not game.get_animal("buffalo-0").has_moved
        assert game.get_animal("buffalo-1").has_moved
        assert game.displacement_event is None

    def test_produces_eggs_on_even_turn(self, turn_state: TurnState):
        """A lush owned biome lays an egg when its owner's turn starts."""
        state = lush(turn_state)
        game = state.game.commit(turn=2)

        game, report = start_player_turn(game, 0, state.config)

        assert report.economy_ran
        assert len(report.eggs_produced) == 1
        egg = game.get_egg(report.eggs_produced[0])
        assert egg.owner_id == 0
        assert game.get_biome("biome-0").last_production_turn == 2
        # Lushness is recomputed after production
        assert game.get_biome("biome-0").lushness_boost > 0

    def test_skip_economy(self, turn_state: TurnState):
        state = lush(turn_state)
        game = state.game.commit(turn=2)

        game, report = start_player_turn(game, 0, state.config, skip_economy=True)

        assert report.eggs_produced == []
        assert game.eggs == {}
        assert game.get_player(0).visible_tiles

    def test_other_player_not_producing(self, turn_state: TurnState):
        state = lush(turn_state)
        game = state.game.commit(turn=2)

        _, report = start_player_turn(game, 1, state.config)

        assert report.eggs_produced == []


class TestNewGame:
    """Tests for game creation."""

    @pytest.fixture
    def small_config(self) -> GameConfig:
        return GameConfig(board=BoardConfig(width=20, height=20, seed=3))

    def test_new_game_waits_for_first_round(self, small_config: GameConfig):
        state = new_game(small_config)

        assert state.phase == TurnPhase.START_NEW_ROUND
        assert state.game.turn == 0
        assert state.game.board.width == 20
        assert state.game.player_ids() == [0, 1]
        assert state.game.biomes

    def test_new_game_reproducible(self, small_config: GameConfig):
        a = new_game(small_config)
        b = new_game(small_config)

        assert a.game.board.tiles == b.game.board.tiles
        assert a.game.resources.keys() == b.game.resources.keys()
        assert a.game.animals == b.game.animals

    def test_resources_only_on_eligible_tiles(self, small_config: GameConfig):
        game = new_game(small_config).game

        for position, resource in game.resources.items():
            tile = game.board.get_tile(position)
            assert not tile.is_habitat
            assert tile.terrain.resource_type == resource.type
            assert resource.value == 10.0
