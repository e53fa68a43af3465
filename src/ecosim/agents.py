"""
Computer-controlled players.

An agent sees only its PlayerView and answers with a list of commands for
the current turn. Commands that turn out to be illegal once executed are
rejected by the command layer, so agents may be optimistic.
"""

from typing import Protocol

import numpy as np
import structlog

from .capture import capturing_animal
from .commands import (
    CaptureCommand,
    Command,
    HarvestCommand,
    HatchCommand,
    MoveCommand,
)
from .config import MovementRules
from .movement import MovementResolver
from .views import PlayerView

logger = structlog.get_logger()


class Agent(Protocol):
    """Anything that can decide a turn from a player view."""

    def decide(self, view: PlayerView) -> list[Command]: ...


class RandomAgent:
    """Baseline agent.

    Each turn it captures any biome it can, hatches every owned egg,
    harvests one resource per owned biome, then moves each remaining unit,
    heading for a foreign habitat in range when there is one and picking a
    random legal tile otherwise.
    """

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        rules: MovementRules | None = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.rules = rules or MovementRules()

    def decide(self, view: PlayerView) -> list[Command]:
        commands: list[Command] = []
        pid = view.player_id

        capturing: set[str] = set()
        for biome in view.biomes.values():
            if biome.owner_id == pid:
                continue
            animal = capturing_animal(biome.id, view.board, view.animals, pid)
            if animal is not None and animal.id not in capturing:
                commands.append(CaptureCommand(biome_id=biome.id))
                capturing.add(animal.id)

        for egg in view.own_eggs():
            commands.append(HatchCommand(egg_id=egg.id))

        harvested: set[str] = set()
        for position, resource in sorted(view.resources.items(), key=lambda kv: kv[1].id):
            biome_id = resource.biome_id
            if not resource.active or biome_id is None or biome_id in harvested:
                continue
            biome = view.biomes.get(biome_id)
            if biome is not None and biome.owner_id == pid:
                commands.append(HarvestCommand(position=position))
                harvested.add(biome_id)

        resolver = MovementResolver(view.board, view.animals, self.rules, self.rng)
        targets = {
            b.habitat.position for b in view.biomes.values() if b.owner_id != pid
        }
        for animal in view.own_animals():
            if animal.id in capturing or animal.has_moved:
                continue
            moves = resolver.calculate_valid_moves(animal.id)
            if not moves:
                continue
            toward = [m for m in moves if m in targets]
            choices = toward or moves
            commands.append(
                MoveCommand(animal_id=animal.id, to=choices[int(self.rng.integers(len(choices)))])
            )

        logger.debug("agent_decided", player_id=pid, turn=view.turn, commands=len(commands))
        return commands
