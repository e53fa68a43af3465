"""
Player commands shared by human input and AI agents.

Commands are validated against the acting player and the current turn
before they reach the boundary operations in ecosim.actions.
"""

from dataclasses import dataclass, field
from typing import Annotated, Literal, Union

import numpy as np
import structlog
from pydantic import BaseModel, Field, TypeAdapter

from . import actions
from .exceptions import CommandRejectedError, DegenerateStateWarning, EcosimError
from .turns import TurnPhase, TurnState, advance_to_next_player
from .types import Position

logger = structlog.get_logger()

DEFAULT_HARVEST_AMOUNT = 3.0


class MoveCommand(BaseModel, frozen=True):
    """Move an owned animal to a tile in its range."""

    type: Literal["move"] = "move"
    animal_id: str
    to: Position


class HatchCommand(BaseModel, frozen=True):
    """Hatch an owned egg."""

    type: Literal["hatch"] = "hatch"
    egg_id: str


class CaptureCommand(BaseModel, frozen=True):
    """Capture the biome whose habitat an owned, unmoved animal stands on."""

    type: Literal["capture"] = "capture"
    biome_id: str


class HarvestCommand(BaseModel, frozen=True):
    """Harvest a resource inside an owned biome."""

    type: Literal["harvest"] = "harvest"
    position: Position
    amount: float = Field(default=DEFAULT_HARVEST_AMOUNT, ge=0.0)


class EndTurnCommand(BaseModel, frozen=True):
    """Hand control to the next player."""

    type: Literal["end_turn"] = "end_turn"


Command = Union[MoveCommand, HatchCommand, CaptureCommand, HarvestCommand, EndTurnCommand]

# Discriminated on "type" for parsing agent or client payloads
GameCommand = Annotated[Command, Field(discriminator="type")]

command_adapter: TypeAdapter[Command] = TypeAdapter(GameCommand)


@dataclass
class CommandResult:
    """Result of executing a command."""

    command: Command
    player_id: int
    success: bool
    state: TurnState
    failure_reason: str | None = None
    warnings: list[DegenerateStateWarning] = field(default_factory=list)
    new_animal_id: str | None = None
    amount: float = 0.0


def _check(cmd: Command, state: TurnState, player_id: int) -> None:
    """Raise CommandRejectedError when player_id may not issue cmd now."""
    if state.phase != TurnPhase.AWAITING_PLAYER_ACTION or state.active_player_id != player_id:
        raise CommandRejectedError(f"Player {player_id} is not the active player")

    game = state.game
    if isinstance(cmd, EndTurnCommand):
        return

    board = game.require_board()

    if isinstance(cmd, MoveCommand):
        animal = game.get_animal(cmd.animal_id)
        if animal.owner_id != player_id:
            raise CommandRejectedError(f"Animal {cmd.animal_id} is not owned by {player_id}")
        if animal.has_moved:
            raise CommandRejectedError(f"Animal {cmd.animal_id} has already moved")
        if cmd.to not in actions.valid_moves(game, cmd.animal_id, state.config.movement):
            raise CommandRejectedError(f"{cmd.to} is not in range of {cmd.animal_id}")

    elif isinstance(cmd, HatchCommand):
        egg = game.get_egg(cmd.egg_id)
        if egg.owner_id != player_id:
            raise CommandRejectedError(f"Egg {cmd.egg_id} is not owned by {player_id}")

    elif isinstance(cmd, CaptureCommand):
        game.get_biome(cmd.biome_id)
        if not actions.can_capture(game, cmd.biome_id, player_id):
            raise CommandRejectedError(f"Player {player_id} cannot capture {cmd.biome_id}")

    elif isinstance(cmd, HarvestCommand):
        biome_id = board.get_tile(cmd.position).biome_id
        if biome_id is None or game.get_biome(biome_id).owner_id != player_id:
            raise CommandRejectedError(f"{cmd.position} is not in a biome owned by {player_id}")
        resource = game.resources.get(cmd.position)
        if resource is None or not resource.active:
            raise CommandRejectedError(f"No active resource at {cmd.position}")

    else:
        raise CommandRejectedError(f"Unknown command {type(cmd).__name__}")


def can_execute_command(cmd: Command, state: TurnState, player_id: int) -> bool:
    """Whether player_id may issue cmd against the current state."""
    try:
        _check(cmd, state, player_id)
    except EcosimError:
        return False
    return True


def execute_command(
    cmd: Command,
    state: TurnState,
    player_id: int,
    rng: np.random.Generator | None = None,
) -> CommandResult:
    """Validate and run a command for a player.

    A rejected command returns the prior state unchanged with a
    failure_reason; engine errors never propagate.
    """
    try:
        _check(cmd, state, player_id)
    except EcosimError as e:
        logger.debug(
            "command_rejected",
            command=cmd.type,
            player_id=player_id,
            reason=e.code,
            detail=str(e),
        )
        return CommandResult(
            command=cmd,
            player_id=player_id,
            success=False,
            state=state,
            failure_reason=e.code,
        )

    if isinstance(cmd, EndTurnCommand):
        return CommandResult(
            command=cmd,
            player_id=player_id,
            success=True,
            state=advance_to_next_player(state),
        )

    config = state.config
    game = state.game
    if isinstance(cmd, MoveCommand):
        op = actions.move_animal(game, cmd.animal_id, cmd.to, config.movement, rng)
    elif isinstance(cmd, HatchCommand):
        op = actions.hatch_egg(game, cmd.egg_id, config.movement, rng, config.economy)
    elif isinstance(cmd, CaptureCommand):
        op = actions.capture_biome(game, cmd.biome_id, player_id, config.economy)
    else:
        op = actions.harvest(game, cmd.position, cmd.amount, player_id, config.economy)

    logger.debug(
        "command_executed",
        command=cmd.type,
        player_id=player_id,
        success=op.success,
        reason=op.failure_reason,
    )
    return CommandResult(
        command=cmd,
        player_id=player_id,
        success=op.success,
        state=state.with_game(op.state) if op.success else state,
        failure_reason=op.failure_reason,
        warnings=op.warnings,
        new_animal_id=op.new_animal_id,
        amount=op.amount,
    )
