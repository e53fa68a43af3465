"""
Turn sequencer: per-player turn state machine and turn-start pipeline.

States:
    START_NEW_ROUND -> AWAITING_PLAYER_ACTION(first player)
    AWAITING_PLAYER_ACTION(p) -> END_PLAYER_TURN(p)
    END_PLAYER_TURN(p) -> AWAITING_PLAYER_ACTION(next player)
                       -> START_NEW_ROUND (when p is last in order)

The game loops indefinitely; there is no terminal state.
"""

from enum import Enum

import numpy as np
import structlog
from pydantic import BaseModel, Field

from . import actions
from .config import GameConfig, config_to_players
from .economy import recalc_all_lushness, regenerate_resources
from .eggs import produce_eggs
from .exceptions import EntityNotFoundError, InvariantViolation
from .initializer import initialize
from .state import GameState

logger = structlog.get_logger()


class TurnPhase(str, Enum):
    """Sequencer phases."""

    START_NEW_ROUND = "start_new_round"
    AWAITING_PLAYER_ACTION = "awaiting_player_action"
    END_PLAYER_TURN = "end_player_turn"


class SequencerState(BaseModel, frozen=True):
    """The sequencer's own state, separate from the simulation snapshot."""

    phase: TurnPhase = TurnPhase.START_NEW_ROUND
    player_id: int | None = None
    round: int = 0
    # The opening player-turn skips the economy pipeline; generation has
    # already seeded the board.
    skip_initial_update: bool = True


class TurnReport(BaseModel, frozen=True):
    """What the last sequencer step did."""

    phase: TurnPhase
    turn: int
    round: int
    player_id: int | None = None
    economy_ran: bool = False
    eggs_produced: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TurnState(BaseModel, frozen=True):
    """Simulation snapshot plus sequencer state and game config."""

    game: GameState
    sequencer: SequencerState = Field(default_factory=SequencerState)
    config: GameConfig = Field(default_factory=GameConfig)
    report: TurnReport | None = None

    @property
    def phase(self) -> TurnPhase:
        return self.sequencer.phase

    @property
    def active_player_id(self) -> int | None:
        """Player whose action is awaited, if any."""
        if self.sequencer.phase == TurnPhase.AWAITING_PLAYER_ACTION:
            return self.sequencer.player_id
        return None

    def with_game(self, game: GameState) -> "TurnState":
        """Return copy holding a new simulation snapshot."""
        return self.model_copy(update={"game": game})


def set_active_player(game: GameState, player_id: int) -> GameState:
    """Commit player_id as the active player."""
    game.get_player(player_id)
    players = tuple(
        p.model_copy(update={"is_active": p.id == player_id}) for p in game.players
    )
    return game.commit(players=players, active_player_id=player_id)


def reset_player_units(game: GameState, player_id: int) -> GameState:
    """Commit movement reset for a player's animals and clear transient events."""
    animals = {
        k: a.model_copy(update={"has_moved": False}) if a.owner_id == player_id else a
        for k, a in game.animals.items()
    }
    return game.commit(
        animals=animals,
        displacement_event=None,
        spawn_event=None,
        biome_capture_event=None,
    )


def mark_player_units_moved(game: GameState, player_id: int) -> GameState:
    """Commit every animal of the player as having acted this turn."""
    animals = {
        k: a.model_copy(update={"has_moved": True}) if a.owner_id == player_id else a
        for k, a in game.animals.items()
    }
    return game.commit(animals=animals)


def start_player_turn(
    game: GameState,
    player_id: int,
    config: GameConfig,
    skip_economy: bool = False,
) -> tuple[GameState, TurnReport]:
    """Run the turn-start pipeline for a player.

    Steps, each committed before the next reads:
    1. reset the player's movement and clear transient events
    2. regenerate resources in the player's biomes
    3. produce the player's eggs
    4. merge new eggs and production timestamps
    5. recompute lushness for every biome
    Visibility is refreshed afterwards.
    """
    board = game.require_board()
    economy = config.economy

    game = set_active_player(game, player_id)
    game = reset_player_units(game, player_id)

    produced: list[str] = []
    warnings: list[str] = []
    if not skip_economy:
        resources, biomes = regenerate_resources(
            game.resources, game.biomes, player_id, economy
        )
        game = game.commit(resources=resources, biomes=biomes)

        production = produce_eggs(
            player_id,
            game.turn,
            board,
            game.biomes,
            game.resources,
            game.eggs,
            economy,
        )
        produced = [egg.id for egg in production.produced]
        warnings = [w.code for w in production.warnings]

        game = game.commit(eggs=production.eggs, biomes=production.biomes)

        biomes = recalc_all_lushness(game.biomes, board, game.resources, game.eggs, economy)
        game = game.commit(biomes=biomes)

    game = actions.refresh_visibility(game)

    logger.debug(
        "player_turn_started",
        player_id=player_id,
        turn=game.turn,
        economy_ran=not skip_economy,
        eggs_produced=len(produced),
    )
    report = TurnReport(
        phase=TurnPhase.AWAITING_PLAYER_ACTION,
        turn=game.turn,
        round=0,
        player_id=player_id,
        economy_ran=not skip_economy,
        eggs_produced=produced,
        warnings=warnings,
    )
    return game, report


def _player_order(game: GameState) -> list[int]:
    order = game.player_ids()
    if not order:
        raise EntityNotFoundError("Game has no players")
    return order


def _hand_to(state: TurnState, player_id: int, round_number: int) -> TurnState:
    skip = state.sequencer.skip_initial_update
    game, report = start_player_turn(state.game, player_id, state.config, skip_economy=skip)
    return state.model_copy(
        update={
            "game": game,
            "sequencer": SequencerState(
                phase=TurnPhase.AWAITING_PLAYER_ACTION,
                player_id=player_id,
                round=round_number,
                skip_initial_update=False,
            ),
            "report": report.model_copy(update={"round": round_number}),
        }
    )


def advance_turn(state: TurnState) -> TurnState:
    """Drive the sequencer one step.

    Raises:
        EntityNotFoundError: If the game has no players.
        BoardMissingError: If the game has no board.
        InvariantViolation: If the sequencer awaits an action without a player.
    """
    seq = state.sequencer
    order = _player_order(state.game)

    if seq.phase == TurnPhase.START_NEW_ROUND:
        round_number = seq.round + 1
        game = state.game.commit(turn=state.game.turn + 1)
        logger.info("round_started", round=round_number, turn=game.turn)
        return _hand_to(state.with_game(game), order[0], round_number)

    if seq.phase == TurnPhase.AWAITING_PLAYER_ACTION:
        if seq.player_id is None:
            raise InvariantViolation("Sequencer awaits an action with no active player")
        game = mark_player_units_moved(state.game, seq.player_id)
        logger.debug("player_turn_ended", player_id=seq.player_id, turn=game.turn)
        return state.model_copy(
            update={
                "game": game,
                "sequencer": seq.model_copy(update={"phase": TurnPhase.END_PLAYER_TURN}),
                "report": TurnReport(
                    phase=TurnPhase.END_PLAYER_TURN,
                    turn=game.turn,
                    round=seq.round,
                    player_id=seq.player_id,
                ),
            }
        )

    # END_PLAYER_TURN
    index = order.index(seq.player_id) if seq.player_id in order else len(order) - 1
    if index == len(order) - 1:
        return state.model_copy(
            update={
                "sequencer": seq.model_copy(
                    update={"phase": TurnPhase.START_NEW_ROUND, "player_id": None}
                ),
                "report": TurnReport(
                    phase=TurnPhase.START_NEW_ROUND,
                    turn=state.game.turn,
                    round=seq.round,
                ),
            }
        )
    return _hand_to(state, order[index + 1], seq.round)


def advance_to_next_player(state: TurnState) -> TurnState:
    """Advance until the sequencer awaits a different player's action."""
    current = state.active_player_id
    state = advance_turn(state)
    while state.phase != TurnPhase.AWAITING_PLAYER_ACTION or (
        current is not None and state.active_player_id == current and len(state.game.players) > 1
    ):
        state = advance_turn(state)
    return state


def new_game(
    config: GameConfig | None = None,
    rng: np.random.Generator | None = None,
) -> TurnState:
    """Generate a board, stock resources, seat players and seed visibility.

    The returned state sits in START_NEW_ROUND at turn 0.

    Args:
        config: Game configuration.
        rng: Random generator for resource placement; derived from the
            board seed when omitted.

    Returns:
        TurnState ready for the first advance_turn().
    """
    config = config or GameConfig()
    rng = rng if rng is not None else np.random.default_rng(config.board.seed)

    players = config_to_players(config)
    if not players:
        raise EntityNotFoundError("Game config has no players")
    first = players[0].id

    init = initialize(
        config.board.width,
        config.board.height,
        config.board.seed,
        player_id=first,
        policy=config.starting_biome,
        terrain_config=config.terrain,
        production_rate=config.economy.production_rate,
    )

    game = GameState(
        turn=0,
        board=init.board,
        biomes=init.biomes,
        animals=init.animals,
        players=players,
        active_player_id=first,
        fog_of_war_enabled=config.fog_of_war,
    )

    reset = actions.reset_resources(game, config.economy.resource_density, rng, config.economy)
    game = actions.refresh_visibility(reset.state)

    logger.info(
        "game_created",
        width=config.board.width,
        height=config.board.height,
        seed=config.board.seed,
        players=len(players),
        biomes=len(game.biomes),
        resources=len(game.resources),
        mode=config.mode.value,
    )
    return TurnState(game=game, config=config)
