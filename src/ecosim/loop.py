"""Async turn loop driving the sequencer for humans and agents."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable

import numpy as np
import structlog

from .actions import clear_displacement_event
from .agents import Agent, RandomAgent
from .commands import Command, CommandResult, EndTurnCommand, execute_command
from .config import GameMode
from .exceptions import CommandRejectedError, InvariantViolation
from .state import GameState
from .turns import TurnPhase, TurnState, advance_turn
from .views import get_player_view

logger = structlog.get_logger()


def is_human(mode: GameMode, player_id: int) -> bool:
    """Whether a player is driven by human input in the given mode.

    pvp: everyone; pve: player 0 only; sim: nobody.
    """
    if mode == GameMode.PVP:
        return True
    if mode == GameMode.PVE:
        return player_id == 0
    return False


@dataclass
class PlayerTurnResult:
    """Outcome of one player's turn."""

    turn: int
    round: int
    player_id: int
    human: bool
    game: GameState | None = None  # snapshot after the turn
    command_results: list[CommandResult] = field(default_factory=list)
    eggs_produced: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.command_results if r.success)


# Type aliases for loop callbacks
TurnStartCallback = Callable[[TurnState], Awaitable[None]]
TurnCompleteCallback = Callable[[PlayerTurnResult], Awaitable[None]]


def acting_player(state: TurnState) -> int:
    """The player the sequencer is waiting on.

    Raises:
        InvariantViolation: If no player is active.
    """
    player_id = state.active_player_id
    if player_id is None:
        raise InvariantViolation("No player is awaiting an action")
    return player_id


def round_finished(state: TurnState, target: int | None) -> bool:
    """Whether the sequencer has closed round target."""
    return (
        target is not None
        and state.phase == TurnPhase.START_NEW_ROUND
        and state.sequencer.round >= target
    )


def play_agent_turn(
    state: TurnState,
    agent: Agent,
    rng: np.random.Generator | None = None,
) -> tuple[TurnState, list[CommandResult]]:
    """Let an agent act for the active player; commands run in order."""
    player_id = state.active_player_id
    if player_id is None:
        return state, []

    results: list[CommandResult] = []
    for cmd in agent.decide(get_player_view(state.game, player_id)):
        if isinstance(cmd, EndTurnCommand):
            break
        result = execute_command(cmd, state, player_id, rng)
        results.append(result)
        state = result.state
    return state, results


class TurnLoop:
    """
    Async turn loop.

    Usage:
        state = new_game(config)
        loop = TurnLoop(state, on_turn_start=send_view)

        # From UI handlers while a human player is active:
        loop.submit_command(MoveCommand(animal_id="animal-0", to=Position(x=3, y=4)))
        loop.end_turn()

        # From the renderer once a displacement animation has played:
        loop.acknowledge_animation()

        await loop.run()
    """

    def __init__(
        self,
        state: TurnState,
        agents: dict[int, Agent] | None = None,
        on_turn_start: TurnStartCallback | None = None,
        on_turn_complete: TurnCompleteCallback | None = None,
        animation_handshake: bool = False,
        animation_timeout_s: float | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.state = state
        self.rng = rng if rng is not None else np.random.default_rng()
        self.agents = agents or {}
        self.on_turn_start = on_turn_start
        self.on_turn_complete = on_turn_complete
        self.animation_handshake = animation_handshake
        self.animation_timeout_s = (
            animation_timeout_s
            if animation_timeout_s is not None
            else state.config.animation_timeout_s
        )

        self._running = False
        self._stop_event = asyncio.Event()
        self._end_turn_event = asyncio.Event()
        self._animation_event = asyncio.Event()
        self._pending: list[CommandResult] = []

    @property
    def is_running(self) -> bool:
        """Whether the loop is currently running."""
        return self._running

    @property
    def active_player_id(self) -> int | None:
        return self.state.active_player_id

    def agent_for(self, player_id: int) -> Agent:
        """Agent for a computer player, created on first use."""
        if player_id not in self.agents:
            self.agents[player_id] = RandomAgent(self.rng, self.state.config.movement)
        return self.agents[player_id]

    def submit_command(self, cmd: Command) -> CommandResult:
        """Execute a command for the active human player.

        Commands are rejected when the active player is not human.
        """
        player_id = self.state.active_player_id
        if player_id is None or not is_human(self.state.config.mode, player_id):
            logger.warning("command_rejected_not_human", player_id=player_id)
            return CommandResult(
                command=cmd,
                player_id=-1 if player_id is None else player_id,
                success=False,
                state=self.state,
                failure_reason=CommandRejectedError.code,
            )
        if isinstance(cmd, EndTurnCommand):
            self.end_turn()
            return CommandResult(command=cmd, player_id=player_id, success=True, state=self.state)

        result = execute_command(cmd, self.state, player_id, self.rng)
        self.state = result.state
        self._pending.append(result)
        return result

    def end_turn(self) -> None:
        """Signal that the active human player is done."""
        self._end_turn_event.set()

    def acknowledge_animation(self) -> None:
        """Signal that the pending displacement animation has finished."""
        self._animation_event.set()

    async def run(self, max_rounds: int | None = None) -> None:
        """Run turns until stopped or max_rounds rounds have completed."""
        self._running = True
        self._stop_event.clear()

        logger.info("turn_loop_started", mode=self.state.config.mode.value, max_rounds=max_rounds)

        target = None if max_rounds is None else self.state.sequencer.round + max_rounds
        try:
            while self._running:
                self.state = advance_turn(self.state)
                if round_finished(self.state, target):
                    break
                if self.state.phase != TurnPhase.AWAITING_PLAYER_ACTION:
                    continue
                result = await self._play_turn()
                if result is None:
                    break
                if self.on_turn_complete:
                    await self.on_turn_complete(result)
        finally:
            self._running = False
            logger.info("turn_loop_stopped", turn=self.state.game.turn)

    async def _play_turn(self) -> PlayerTurnResult | None:
        """Play the active player's turn; None if the loop was stopped."""
        start = time.time()
        player_id = acting_player(self.state)
        human = is_human(self.state.config.mode, player_id)
        eggs = list(self.state.report.eggs_produced) if self.state.report else []

        logger.debug("player_turn_started", player_id=player_id, human=human)

        self._pending = []
        self._end_turn_event.clear()
        if self.on_turn_start:
            await self.on_turn_start(self.state)

        if human:
            if not await self._wait_for(self._end_turn_event, None):
                return None
            results = self._pending
            self._pending = []
        else:
            self.state, results = play_agent_turn(self.state, self.agent_for(player_id), self.rng)

        if not await self._settle_animation():
            return None

        return PlayerTurnResult(
            turn=self.state.game.turn,
            round=self.state.sequencer.round,
            player_id=player_id,
            human=human,
            game=self.state.game,
            command_results=results,
            eggs_produced=eggs,
            duration_ms=(time.time() - start) * 1000,
        )

    async def _settle_animation(self) -> bool:
        """Wait for the renderer to acknowledge a pending displacement."""
        if self.state.game.displacement_event is None:
            return True
        if self.animation_handshake:
            self._animation_event.clear()
            acknowledged = await self._wait_for(self._animation_event, self.animation_timeout_s)
            if not self._running:
                return False
            if not acknowledged:
                logger.warning(
                    "animation_ack_timeout",
                    unit_id=self.state.game.displacement_event.unit_id,
                    timeout_s=self.animation_timeout_s,
                )
        self.state = self.state.with_game(clear_displacement_event(self.state.game))
        return True

    async def _wait_for(self, event: asyncio.Event, timeout: float | None) -> bool:
        """Wait for event, the stop signal or the timeout.

        Returns True only if event fired while the loop is still running.
        """
        waiter = asyncio.ensure_future(event.wait())
        stopper = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait(
                {waiter, stopper}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            waiter.cancel()
            stopper.cancel()
        return event.is_set() and self._running

    def stop(self) -> None:
        """Signal the turn loop to stop."""
        self._running = False
        self._stop_event.set()
        self._end_turn_event.set()
        self._animation_event.set()


async def run_rounds(
    state: TurnState,
    num_rounds: int,
    agents: dict[int, Agent] | None = None,
    rng: np.random.Generator | None = None,
    on_turn_complete: TurnCompleteCallback | None = None,
) -> tuple[TurnState, list[PlayerTurnResult]]:
    """
    Run a fixed number of rounds headless (useful for testing).

    Every player is driven by an agent regardless of game mode, and
    displacement events are acknowledged immediately.

    Args:
        state: Starting turn state
        num_rounds: Number of full rounds to play
        agents: Agents by player id; RandomAgent for missing players
        rng: Random generator for agents and displacement
        on_turn_complete: Optional async callback after each player turn

    Returns:
        Tuple of (final state, per-player turn results)
    """
    rng = rng if rng is not None else np.random.default_rng()
    agents = dict(agents or {})
    results: list[PlayerTurnResult] = []

    if num_rounds <= 0:
        return state, results

    target = state.sequencer.round + num_rounds
    while True:
        state = advance_turn(state)
        if round_finished(state, target):
            break
        if state.phase != TurnPhase.AWAITING_PLAYER_ACTION:
            continue

        start = time.time()
        player_id = acting_player(state)
        eggs = list(state.report.eggs_produced) if state.report else []
        agent = agents.setdefault(player_id, RandomAgent(rng, state.config.movement))

        state, command_results = play_agent_turn(state, agent, rng)
        state = state.with_game(clear_displacement_event(state.game))

        result = PlayerTurnResult(
            turn=state.game.turn,
            round=state.sequencer.round,
            player_id=player_id,
            human=False,
            game=state.game,
            command_results=command_results,
            eggs_produced=eggs,
            duration_ms=(time.time() - start) * 1000,
        )
        results.append(result)
        if on_turn_complete:
            await on_turn_complete(result)

    return state, results
