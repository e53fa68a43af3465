"""
Boundary operations on the game snapshot.

Every function takes a GameState and returns an OperationResult holding
either a new committed snapshot or the original one untouched. Engine
exceptions are converted to failure results here and never escape.
"""

import functools
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np
import structlog

from . import capture as capture_rules
from . import economy
from . import eggs as egg_rules
from .config import EconomyConfig, MovementRules
from .exceptions import (
    DegenerateStateWarning,
    EcosimError,
    InvariantViolation,
    ValidationError,
)
from .movement import MovementResolver
from .state import Animal, Biome, GameState, Player, replace_player
from .types import Position
from .visibility import compute_visibility, reveal_tiles

logger = structlog.get_logger()


@dataclass
class OperationResult:
    """Result of a boundary operation."""

    state: GameState
    success: bool = True
    failure_reason: str | None = None
    warnings: list[DegenerateStateWarning] = field(default_factory=list)
    new_animal_id: str | None = None
    amount: float = 0.0


def rejected(
    state: GameState,
    reason: str,
    warning: DegenerateStateWarning | None = None,
) -> OperationResult:
    """Failure result carrying the unchanged snapshot."""
    return OperationResult(
        state=state,
        success=False,
        failure_reason=reason,
        warnings=[warning] if warning else [],
    )


def boundary(fn: Callable[..., OperationResult]) -> Callable[..., OperationResult]:
    """Convert engine exceptions raised by fn into failure results."""

    @functools.wraps(fn)
    def wrapper(state: GameState, *args: Any, **kwargs: Any) -> OperationResult:
        try:
            return fn(state, *args, **kwargs)
        except ValidationError as e:
            logger.debug("operation_rejected", operation=fn.__name__, reason=e.code, detail=str(e))
            return rejected(state, e.code)
        except InvariantViolation as e:
            logger.warning("operation_aborted", operation=fn.__name__, reason=e.code, detail=str(e))
            return rejected(state, e.code)
        except EcosimError as e:
            logger.warning("operation_failed", operation=fn.__name__, reason=e.code, detail=str(e))
            return rejected(state, e.code)

    return wrapper


def refresh_visibility(state: GameState) -> GameState:
    """Commit recomputed fog of war for every player."""
    board = state.require_board()
    players = compute_visibility(
        state.players, board, state.animals, state.biomes, state.fog_of_war_enabled
    )
    return state.commit(players=players)


def _visible_players(
    state: GameState,
    players: tuple[Player, ...] | None = None,
    animals: dict[str, Animal] | None = None,
    biomes: dict[str, Biome] | None = None,
) -> tuple[Player, ...]:
    """Players with visibility recomputed against pending changes."""
    return compute_visibility(
        state.players if players is None else players,
        state.require_board(),
        state.animals if animals is None else animals,
        state.biomes if biomes is None else biomes,
        state.fog_of_war_enabled,
    )


# --- Resources ---


@boundary
def reset_resources(
    state: GameState,
    density: float,
    rng: np.random.Generator,
    economy_config: EconomyConfig = economy.DEFAULT_ECONOMY,
) -> OperationResult:
    """Restock every biome and recompute lushness."""
    board = state.require_board()
    resources, biomes = economy.reset_resources(board, state.biomes, density, rng)
    biomes = economy.recalc_all_lushness(biomes, board, resources, state.eggs, economy_config)
    return OperationResult(state=state.commit(resources=resources, biomes=biomes))


@boundary
def harvest(
    state: GameState,
    position: Position,
    amount: float,
    player_id: int | None = None,
    economy_config: EconomyConfig = economy.DEFAULT_ECONOMY,
) -> OperationResult:
    """Harvest a tile for a player (the active player by default).

    A tile without an active resource is a successful no-op.
    """
    board = state.require_board()
    board.get_tile(position)
    player = state.get_player(state.active_player_id if player_id is None else player_id)

    result = economy.harvest(position, amount, state.resources, state.biomes, player)
    if result.resources is state.resources:
        return OperationResult(state=state)

    biomes = result.biomes
    biome_id = board.biome_at(position)
    if biome_id is not None and biome_id in biomes:
        biomes = economy.recalc_lushness(
            [biome_id], biomes, board, result.resources, state.eggs, economy_config
        )

    new_state = state.commit(
        resources=result.resources,
        biomes=biomes,
        players=replace_player(state.players, result.player),
    )
    return OperationResult(state=new_state, amount=result.harvested)


# --- Movement ---


def valid_moves(
    state: GameState,
    animal_id: str,
    rules: MovementRules | None = None,
) -> list[Position]:
    """Movement range of an animal; empty when it cannot move."""
    if state.board is None:
        return []
    return MovementResolver(state.board, state.animals, rules).calculate_valid_moves(animal_id)


@boundary
def move_animal(
    state: GameState,
    animal_id: str,
    destination: Position,
    rules: MovementRules | None = None,
    rng: np.random.Generator | None = None,
) -> OperationResult:
    """Move an animal within its freshly computed range."""
    board = state.require_board()
    state.get_animal(animal_id)

    result = MovementResolver(board, state.animals, rules, rng).move_animal(
        animal_id, destination
    )
    if not result.success:
        return rejected(state, result.failure_reason or "move_failed", result.warning)

    changes: dict[str, object] = {"animals": result.animals}
    if result.displacement is not None:
        changes["displacement_event"] = result.displacement
    changes["players"] = _visible_players(state, animals=result.animals)
    return OperationResult(state=state.commit(**changes))


# --- Eggs ---


@boundary
def hatch_egg(
    state: GameState,
    egg_id: str,
    rules: MovementRules | None = None,
    rng: np.random.Generator | None = None,
    economy_config: EconomyConfig = economy.DEFAULT_ECONOMY,
) -> OperationResult:
    """Hatch an egg into an active animal."""
    board = state.require_board()
    result = egg_rules.hatch_egg(
        egg_id,
        state.animals,
        state.eggs,
        state.biomes,
        board,
        state.turn,
        state.resources,
        rules,
        rng,
        economy_config,
    )
    if not result.success:
        return rejected(state, result.failure_reason or "hatch_failed", result.warning)

    changes: dict[str, object] = {
        "animals": result.animals,
        "eggs": result.eggs,
        "biomes": result.biomes,
        "spawn_event": result.spawn,
    }
    if result.displacement is not None:
        changes["displacement_event"] = result.displacement
    changes["players"] = _visible_players(
        state, animals=result.animals, biomes=result.biomes
    )
    return OperationResult(state=state.commit(**changes), new_animal_id=result.new_animal_id)


# --- Capture ---


def can_capture(state: GameState, biome_id: str, player_id: int | None = None) -> bool:
    """Whether the player (active player by default) may capture the biome."""
    if state.board is None or biome_id not in state.biomes:
        return False
    pid = state.active_player_id if player_id is None else player_id
    return capture_rules.can_capture_biome(
        biome_id, state.board, state.animals, state.biomes, pid
    )


@boundary
def capture_biome(
    state: GameState,
    biome_id: str,
    player_id: int | None = None,
    economy_config: EconomyConfig = economy.DEFAULT_ECONOMY,
) -> OperationResult:
    """Capture a biome for a player (the active player by default)."""
    board = state.require_board()
    pid = state.active_player_id if player_id is None else player_id
    state.get_player(pid)

    result = capture_rules.capture_biome(
        biome_id,
        pid,
        state.turn,
        board,
        state.animals,
        state.biomes,
        state.eggs,
        state.resources,
        economy_config,
    )
    if not result.success:
        return rejected(state, result.failure_reason or "capture_failed")

    players = reveal_tiles(state.players, pid, result.revealed)
    players = _visible_players(
        state, players=players, animals=result.animals, biomes=result.biomes
    )
    new_state = state.commit(
        animals=result.animals,
        biomes=result.biomes,
        eggs=result.eggs,
        players=players,
        biome_capture_event=result.event,
    )
    return OperationResult(state=new_state)


# --- Fog of war ---


@boundary
def set_fog_of_war(state: GameState, enabled: bool) -> OperationResult:
    """Toggle fog of war and recompute every player's view."""
    state.require_board()
    toggled = state.model_copy(update={"fog_of_war_enabled": enabled})
    return OperationResult(state=refresh_visibility(toggled))


# --- Transient events ---


def clear_displacement_event(state: GameState) -> GameState:
    """Acknowledge the pending displacement event."""
    if state.displacement_event is None:
        return state
    return state.commit(displacement_event=None)


def clear_spawn_event(state: GameState) -> GameState:
    """Acknowledge the pending spawn event."""
    if state.spawn_event is None:
        return state
    return state.commit(spawn_event=None)


def clear_biome_capture_event(state: GameState) -> GameState:
    """Acknowledge the pending biome capture event."""
    if state.biome_capture_event is None:
        return state
    return state.commit(biome_capture_event=None)


def clear_events(state: GameState) -> GameState:
    """Clear all three transient events."""
    if (
        state.displacement_event is None
        and state.spawn_event is None
        and state.biome_capture_event is None
    ):
        return state
    return state.commit(
        displacement_event=None, spawn_event=None, biome_capture_event=None
    )
