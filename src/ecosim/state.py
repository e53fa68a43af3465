"""Game state: immutable board, entity models and the versioned snapshot."""

import time
from typing import Iterator

from pydantic import BaseModel, Field, PrivateAttr

from .exceptions import (
    BiomeNotFoundError,
    BoardMissingError,
    EntityNotFoundError,
    OutOfBoundsError,
)
from .terrain_types import ResourceType, TerrainType
from .types import Position

MAX_RESOURCE_VALUE = 10.0


class Tile(BaseModel, frozen=True):
    """Immutable tile properties."""

    position: Position
    terrain: TerrainType = TerrainType.GRASS
    biome_id: str | None = None
    is_habitat: bool = False


class Board(BaseModel, frozen=True):
    """
    Immutable grid of tiles, indexed tiles[y][x].

    Tile-to-biome assignment is fixed at generation; capture changes biome
    ownership, never this mapping.
    """

    width: int
    height: int
    tiles: tuple[tuple[Tile, ...], ...]

    # Lazily built biome_id -> positions index
    _biome_index: dict[str, list[Position]] | None = PrivateAttr(default=None)

    def in_bounds(self, position: Position) -> bool:
        """Check if position is within board bounds."""
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def get_tile(self, position: Position) -> Tile:
        """Get tile at position.

        Raises:
            OutOfBoundsError: If position is outside the board.
        """
        if not self.in_bounds(position):
            raise OutOfBoundsError(f"Position {position} is outside the board")
        return self.tiles[position.y][position.x]

    def terrain_at(self, position: Position) -> TerrainType:
        return self.get_tile(position).terrain

    def biome_at(self, position: Position) -> str | None:
        return self.get_tile(position).biome_id

    def iter_tiles(self) -> Iterator[Tile]:
        """Iterate tiles in row-major scan order."""
        for row in self.tiles:
            yield from row

    def all_positions(self) -> frozenset[Position]:
        return frozenset(tile.position for tile in self.iter_tiles())

    def neighbors(self, position: Position, neighborhood: int = 8) -> list[Position]:
        """In-bounds neighbours of position in scan order."""
        return [p for p in position.neighbors(neighborhood) if self.in_bounds(p)]

    def tiles_in_biome(self, biome_id: str) -> list[Position]:
        """Positions of all tiles assigned to a biome, in scan order."""
        if self._biome_index is None:
            index: dict[str, list[Position]] = {}
            for tile in self.iter_tiles():
                if tile.biome_id is not None:
                    index.setdefault(tile.biome_id, []).append(tile.position)
            self._biome_index = index
        return list(self._biome_index.get(biome_id, []))

    def tile_count(self) -> int:
        return self.width * self.height


class Habitat(BaseModel, frozen=True):
    """The capturable anchor tile of a biome."""

    id: str
    position: Position


class Biome(BaseModel, frozen=True):
    """Immutable biome state.

    total_lushness is always base_lushness + lushness_boost; use
    with_lushness() rather than setting it directly.
    """

    id: str
    habitat: Habitat
    owner_id: int | None = None
    color: int = 0
    base_lushness: float = 0.0
    lushness_boost: float = 0.0
    total_lushness: float = 0.0
    initial_resource_count: int = 0
    non_depleted_count: int = 0
    total_harvested: float = 0.0
    production_rate: int = 1
    last_production_turn: int = 0

    def with_lushness(self, base: float, boost: float) -> "Biome":
        """Return copy with recomputed lushness components."""
        return self.model_copy(
            update={
                "base_lushness": base,
                "lushness_boost": boost,
                "total_lushness": base + boost,
            }
        )

    def with_owner(self, owner_id: int | None) -> "Biome":
        return self.model_copy(update={"owner_id": owner_id})


class Animal(BaseModel, frozen=True):
    """An active (hatched, mobile) creature."""

    id: str
    species: str
    position: Position
    previous_position: Position | None = None
    has_moved: bool = False
    owner_id: int | None = None
    facing_direction: str = "left"

    def moved_to(self, destination: Position) -> "Animal":
        """Return copy that has made its move for the turn."""
        facing = "right" if destination.x > self.position.x else "left"
        return self.model_copy(
            update={
                "previous_position": self.position,
                "position": destination,
                "has_moved": True,
                "facing_direction": facing,
            }
        )

    def displaced_to(self, destination: Position) -> "Animal":
        """Return copy pushed to destination; has_moved is preserved."""
        return self.model_copy(
            update={"previous_position": self.position, "position": destination}
        )


class Egg(BaseModel, frozen=True):
    """A dormant placeholder that hatches into an Animal."""

    id: str
    owner_id: int
    position: Position
    biome_id: str
    created_at_turn: int


class Resource(BaseModel, frozen=True):
    """A renewable resource on a single tile."""

    id: str
    type: ResourceType
    position: Position
    biome_id: str | None = None
    value: float = Field(default=MAX_RESOURCE_VALUE, ge=0.0, le=MAX_RESOURCE_VALUE)
    active: bool = True

    def with_value(self, value: float) -> "Resource":
        """Return copy with value clamped to [0, 10] and active derived."""
        clamped = min(MAX_RESOURCE_VALUE, max(0.0, value))
        return self.model_copy(update={"value": clamped, "active": clamped > 0})


class Player(BaseModel, frozen=True):
    """A player and their fog-of-war knowledge."""

    id: int
    name: str
    color: str = "#ffffff"
    is_active: bool = False
    energy: float = 0.0
    visible_tiles: frozenset[Position] = frozenset()
    explored_tiles: frozenset[Position] = frozenset()

    @property
    def revealed_tiles(self) -> frozenset[Position]:
        """Tiles this player may currently see: history plus line of sight."""
        return self.explored_tiles | self.visible_tiles


def now_ms() -> int:
    """Wall-clock timestamp for transient events."""
    return int(time.time() * 1000)


class DisplacementEvent(BaseModel, frozen=True):
    """An active unit was pushed off a tile."""

    unit_id: str
    from_pos: Position
    to_pos: Position
    timestamp_ms: int


class SpawnEvent(BaseModel, frozen=True):
    """A unit hatched from an egg."""

    unit_id: str
    timestamp_ms: int


class BiomeCaptureEvent(BaseModel, frozen=True):
    """A biome changed owner."""

    biome_id: str
    timestamp_ms: int


class GameState(BaseModel, frozen=True):
    """
    Versioned, immutable simulation snapshot.

    Every committed change produces a new GameState via commit(); readers
    holding an older snapshot never observe a partial update.
    """

    turn: int = 0
    board: Board | None = None
    biomes: dict[str, Biome] = Field(default_factory=dict)
    animals: dict[str, Animal] = Field(default_factory=dict)
    eggs: dict[str, Egg] = Field(default_factory=dict)
    resources: dict[Position, Resource] = Field(default_factory=dict)
    players: tuple[Player, ...] = ()
    active_player_id: int = 0
    fog_of_war_enabled: bool = True

    # Single-slot transient events, cleared by the consumer
    displacement_event: DisplacementEvent | None = None
    spawn_event: SpawnEvent | None = None
    biome_capture_event: BiomeCaptureEvent | None = None

    version: int = 0

    def commit(self, **changes: object) -> "GameState":
        """Return a new snapshot with changes applied and version bumped."""
        changes["version"] = self.version + 1
        return self.model_copy(update=changes)

    # --- Lookups ---

    def require_board(self) -> Board:
        """Return the board.

        Raises:
            BoardMissingError: If the game has not been initialized.
        """
        if self.board is None:
            raise BoardMissingError("Board not initialized")
        return self.board

    def get_animal(self, animal_id: str) -> Animal:
        """Get animal by ID.

        Raises:
            EntityNotFoundError: If animal not found.
        """
        if animal_id not in self.animals:
            raise EntityNotFoundError(f"Animal {animal_id} not found")
        return self.animals[animal_id]

    def get_egg(self, egg_id: str) -> Egg:
        """Get egg by ID.

        Raises:
            EntityNotFoundError: If egg not found.
        """
        if egg_id not in self.eggs:
            raise EntityNotFoundError(f"Egg {egg_id} not found")
        return self.eggs[egg_id]

    def get_biome(self, biome_id: str) -> Biome:
        """Get biome by ID.

        Raises:
            BiomeNotFoundError: If biome not found.
        """
        if biome_id not in self.biomes:
            raise BiomeNotFoundError(f"Biome {biome_id} not found")
        return self.biomes[biome_id]

    def get_player(self, player_id: int) -> Player:
        """Get player by ID.

        Raises:
            EntityNotFoundError: If player not found.
        """
        for player in self.players:
            if player.id == player_id:
                return player
        raise EntityNotFoundError(f"Player {player_id} not found")

    def animal_at(self, position: Position) -> Animal | None:
        """Get the active animal at position, or None."""
        return animal_at(self.animals, position)

    def egg_at(self, position: Position) -> Egg | None:
        for egg in self.eggs.values():
            if egg.position == position:
                return egg
        return None

    def player_ids(self) -> list[int]:
        """Player ids in turn order."""
        return [p.id for p in self.players]


def animal_at(animals: dict[str, Animal], position: Position) -> Animal | None:
    """Get the animal occupying position, or None."""
    for animal in animals.values():
        if animal.position == position:
            return animal
    return None


def occupied_positions(
    animals: dict[str, Animal], exclude_id: str | None = None
) -> set[Position]:
    """Positions held by active animals, optionally ignoring one unit."""
    return {a.position for a in animals.values() if a.id != exclude_id}


def replace_player(players: tuple[Player, ...], player: Player) -> tuple[Player, ...]:
    """Return players with the entry of the same id replaced."""
    return tuple(player if p.id == player.id else p for p in players)
