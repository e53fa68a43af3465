"""Movement range computation, move validation and displacement."""

from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable

import numpy as np
import structlog

from .config import MovementRules
from .exceptions import DegenerateStateWarning
from .species import get_abilities, is_terrain_compatible
from .state import Animal, Board, DisplacementEvent, now_ms
from .types import Position

logger = structlog.get_logger()


@dataclass
class DisplacementResult:
    """Result of pushing an active unit off a tile."""

    animal_id: str
    success: bool
    animals: dict[str, Animal]
    event: DisplacementEvent | None = None
    warning: DegenerateStateWarning | None = None


@dataclass
class MoveResult:
    """Result of a move for a single animal."""

    animal_id: str
    success: bool
    from_pos: Position | None
    to_pos: Position | None  # Same as from_pos if failed
    animals: dict[str, Animal]
    displacement: DisplacementEvent | None = None
    failure_reason: str | None = None
    warning: DegenerateStateWarning | None = None


def previous_direction(animal: Animal) -> tuple[int, int] | None:
    """Unit vector of the animal's last step, or None."""
    if animal.previous_position is None:
        return None
    dx = int(np.sign(animal.position.x - animal.previous_position.x))
    dy = int(np.sign(animal.position.y - animal.previous_position.y))
    if dx == 0 and dy == 0:
        return None
    return dx, dy


def continuation_options(position: Position, direction: tuple[int, int]) -> list[Position]:
    """Preferred displacement tiles for a unit travelling in direction.

    The exact same-direction step first, then the two neighbours that share
    one axis component of the direction.
    """
    dx, dy = direction
    options = [position.offset(dx, dy)]
    if dx and dy:
        options += [position.offset(dx, 0), position.offset(0, dy)]
    elif dx:
        options += [position.offset(dx, 1), position.offset(dx, -1)]
    else:
        options += [position.offset(1, dy), position.offset(-1, dy)]
    return options


class MovementResolver:
    """
    Computes movement ranges and executes moves on an animal map.

    Rules:
    - BFS over 4- or 8-neighbours up to the species' move range
    - Tiles must be in bounds and terrain-compatible with the species
    - Tiles held by another active unit are never expanded through; with
      displace_on_move they are a legal final step and the occupant is
      pushed to a vacant neighbour first
    - Eggs never block
    """

    def __init__(
        self,
        board: Board,
        animals: dict[str, Animal],
        rules: MovementRules | None = None,
        rng: np.random.Generator | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.board = board
        self.animals = animals
        self.rules = rules or MovementRules()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock

    def _occupant_at(self, position: Position, ignore: Iterable[str] = ()) -> Animal | None:
        ignored = set(ignore)
        for animal in self.animals.values():
            if animal.position == position and animal.id not in ignored:
                return animal
        return None

    def _compatible(self, species: str, position: Position) -> bool:
        if not self.rules.terrain_compatibility:
            return True
        return is_terrain_compatible(species, self.board.terrain_at(position))

    def calculate_valid_moves(self, animal_id: str) -> list[Position]:
        """Tiles the animal can move to this turn, in BFS order.

        Unknown animals and animals that already moved get an empty range.
        """
        animal = self.animals.get(animal_id)
        if animal is None or animal.has_moved:
            return []

        max_dist = get_abilities(animal.species).move_range
        start = animal.position
        visited = {start}
        valid: list[Position] = []
        queue: deque[tuple[Position, int]] = deque([(start, 0)])

        while queue:
            position, dist = queue.popleft()
            if dist > 0:
                valid.append(position)
            if dist >= max_dist:
                continue

            for neighbor in self.board.neighbors(position, self.rules.neighborhood):
                if neighbor in visited:
                    continue
                if not self._compatible(animal.species, neighbor):
                    continue
                if self._occupant_at(neighbor, ignore=[animal.id]) is not None:
                    if self.rules.displace_on_move:
                        visited.add(neighbor)
                        valid.append(neighbor)
                    continue
                visited.add(neighbor)
                queue.append((neighbor, dist + 1))

        return valid

    def vacant_neighbors(
        self,
        position: Position,
        species: str,
        ignore: Iterable[str] = (),
    ) -> list[Position]:
        """In-bounds, compatible neighbours of position with no active unit."""
        ignored = set(ignore)
        return [
            p
            for p in self.board.neighbors(position, self.rules.neighborhood)
            if self._compatible(species, p) and self._occupant_at(p, ignored) is None
        ]

    def choose_displacement_tile(
        self,
        animal: Animal,
        candidates: list[Position],
    ) -> Position | None:
        """Pick where a displaced animal goes.

        A unit that already moved this turn keeps going the way it was
        heading when it can; otherwise the pick is uniformly random.
        """
        if not candidates:
            return None

        direction = previous_direction(animal) if animal.has_moved else None
        if direction is not None:
            for option in continuation_options(animal.position, direction):
                if option in candidates:
                    return option

        return candidates[int(self.rng.integers(len(candidates)))]

    def displace(self, animal_id: str, ignore: Iterable[str] = ()) -> DisplacementResult:
        """Push an active unit to a neighbouring vacant tile.

        Args:
            animal_id: Unit to push.
            ignore: Units treated as absent when checking vacancy (a mover
                leaving its tile).

        Returns:
            DisplacementResult; on failure the animal map is unchanged and a
            degenerate-state warning is attached.
        """
        animal = self.animals[animal_id]
        candidates = self.vacant_neighbors(
            animal.position, animal.species, ignore=[animal_id, *ignore]
        )
        target = self.choose_displacement_tile(animal, candidates)

        if target is None:
            warning = DegenerateStateWarning(
                code="no_displacement_tile",
                detail=f"{animal_id} at {animal.position} has no vacant neighbour",
            )
            logger.warning(
                "displacement_failed",
                animal_id=animal_id,
                position=str(animal.position),
            )
            return DisplacementResult(
                animal_id=animal_id,
                success=False,
                animals=self.animals,
                warning=warning,
            )

        animals = dict(self.animals)
        animals[animal_id] = animal.displaced_to(target)
        event = DisplacementEvent(
            unit_id=animal_id,
            from_pos=animal.position,
            to_pos=target,
            timestamp_ms=self.clock(),
        )
        logger.debug(
            "animal_displaced",
            animal_id=animal_id,
            from_pos=str(animal.position),
            to_pos=str(target),
        )
        return DisplacementResult(
            animal_id=animal_id, success=True, animals=animals, event=event
        )

    def move_animal(self, animal_id: str, destination: Position) -> MoveResult:
        """Validate and execute a move against a freshly computed range."""
        animal = self.animals.get(animal_id)
        if animal is None:
            logger.debug("move_rejected_not_found", animal_id=animal_id)
            return MoveResult(
                animal_id=animal_id,
                success=False,
                from_pos=None,
                to_pos=None,
                animals=self.animals,
                failure_reason="animal_not_found",
            )

        def rejected(reason: str, warning: DegenerateStateWarning | None = None) -> MoveResult:
            return MoveResult(
                animal_id=animal_id,
                success=False,
                from_pos=animal.position,
                to_pos=animal.position,
                animals=self.animals,
                failure_reason=reason,
                warning=warning,
            )

        if destination not in self.calculate_valid_moves(animal_id):
            logger.debug(
                "move_rejected_not_in_range",
                animal_id=animal_id,
                to_pos=str(destination),
            )
            return rejected("not_in_range")

        animals = self.animals
        event = None
        occupant = self._occupant_at(destination, ignore=[animal_id])
        if occupant is not None:
            displacement = self.displace(occupant.id, ignore=[animal_id])
            if not displacement.success:
                return rejected("no_displacement_tile", displacement.warning)
            animals = displacement.animals
            event = displacement.event

        animals = dict(animals)
        animals[animal_id] = animal.moved_to(destination)

        logger.debug(
            "animal_moved",
            animal_id=animal_id,
            from_pos=str(animal.position),
            to_pos=str(destination),
        )
        return MoveResult(
            animal_id=animal_id,
            success=True,
            from_pos=animal.position,
            to_pos=destination,
            animals=animals,
            displacement=event,
        )


def calculate_valid_moves(
    animal_id: str,
    board: Board,
    animals: dict[str, Animal],
    rules: MovementRules | None = None,
) -> list[Position]:
    """Tiles the animal can move to this turn."""
    return MovementResolver(board, animals, rules).calculate_valid_moves(animal_id)


def move_animal(
    animal_id: str,
    destination: Position,
    board: Board,
    animals: dict[str, Animal],
    rules: MovementRules | None = None,
    rng: np.random.Generator | None = None,
) -> MoveResult:
    """Move an animal, displacing an occupant of the destination if needed."""
    return MovementResolver(board, animals, rules, rng).move_animal(animal_id, destination)
