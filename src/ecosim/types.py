"""Core types for the ecosystem simulation."""

from enum import IntEnum

from pydantic import BaseModel


class Direction(IntEnum):
    """8-direction enum used for movement and displacement."""

    NORTH = 1
    NORTHEAST = 2
    EAST = 3
    SOUTHEAST = 4
    SOUTH = 5
    SOUTHWEST = 6
    WEST = 7
    NORTHWEST = 8


# Direction deltas for neighbourhood scans
# Coordinate system: +X is East, +Y is South
DIRECTION_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, -1),
    Direction.NORTHEAST: (1, -1),
    Direction.EAST: (1, 0),
    Direction.SOUTHEAST: (1, 1),
    Direction.SOUTH: (0, 1),
    Direction.SOUTHWEST: (-1, 1),
    Direction.WEST: (-1, 0),
    Direction.NORTHWEST: (-1, -1),
}

CARDINAL_DIRECTIONS: tuple[Direction, ...] = (
    Direction.NORTH,
    Direction.EAST,
    Direction.SOUTH,
    Direction.WEST,
)


def neighborhood_deltas(neighborhood: int) -> list[tuple[int, int]]:
    """Return the (dx, dy) offsets of a 4- or 8-neighbourhood.

    Raises:
        ValueError: If neighborhood is not 4 or 8.
    """
    if neighborhood == 4:
        return [DIRECTION_DELTAS[d] for d in CARDINAL_DIRECTIONS]
    if neighborhood == 8:
        return list(DIRECTION_DELTAS.values())
    raise ValueError(f"Unsupported neighborhood: {neighborhood}")


class Position(BaseModel, frozen=True):
    """Immutable 2D tile coordinate."""

    x: int
    y: int

    def __add__(self, other: "Position") -> "Position":
        return Position(x=self.x + other.x, y=self.y + other.y)

    def offset(self, dx: int, dy: int) -> "Position":
        """Return new position offset by (dx, dy)."""
        return Position(x=self.x + dx, y=self.y + dy)

    def step(self, direction: Direction) -> "Position":
        """Return new position one step in direction."""
        dx, dy = DIRECTION_DELTAS[direction]
        return self.offset(dx, dy)

    def neighbors(self, neighborhood: int = 8) -> list["Position"]:
        """Return adjacent positions (unbounded) in scan order."""
        return [self.offset(dx, dy) for dx, dy in neighborhood_deltas(neighborhood)]

    def manhattan(self, other: "Position") -> int:
        """Manhattan distance to another position."""
        return abs(self.x - other.x) + abs(self.y - other.y)

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"

    def __repr__(self) -> str:
        return f"Position(x={self.x}, y={self.y})"


# Glossary name for the same value type
Coordinate = Position
