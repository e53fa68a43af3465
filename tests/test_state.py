"""Tests for state models and the versioned snapshot."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from ecosim.exceptions import (
    BiomeNotFoundError,
    BoardMissingError,
    EntityNotFoundError,
    OutOfBoundsError,
)
from ecosim.state import (
    Animal,
    Biome,
    Board,
    Egg,
    GameState,
    Habitat,
    Player,
    Resource,
    occupied_positions,
    replace_player,
)
from ecosim.terrain_types import ResourceType
from ecosim.types import Position


class TestBoard:
    """Tests for Board lookups."""

    def test_get_tile_in_bounds(self, grass_board: Board):
        """Tiles are indexed [y][x]."""
        tile = grass_board.get_tile(Position(x=3, y=7))

        assert tile.position == Position(x=3, y=7)

    def test_get_tile_out_of_bounds(self, grass_board: Board):
        """Out-of-bounds lookups raise."""
        with pytest.raises(OutOfBoundsError):
            grass_board.get_tile(Position(x=10, y=0))
        with pytest.raises(OutOfBoundsError):
            grass_board.get_tile(Position(x=0, y=-1))

    def test_neighbors_clipped_at_corner(self, grass_board: Board):
        """Corner tiles have three 8-neighbours and two 4-neighbours."""
        corner = Position(x=0, y=0)

        assert len(grass_board.neighbors(corner, 8)) == 3
        assert len(grass_board.neighbors(corner, 4)) == 2

    def test_tiles_in_biome(self, two_biome_board: Board):
        """Every tile is indexed under exactly one biome."""
        a = set(two_biome_board.tiles_in_biome("biome-0"))
        b = set(two_biome_board.tiles_in_biome("biome-1"))

        assert a.isdisjoint(b)
        assert len(a) + len(b) == two_biome_board.tile_count()
        assert two_biome_board.tiles_in_biome("biome-9") == []

    def test_habitat_flags(self, two_biome_board: Board):
        """Seeds are flagged as habitats."""
        habitats = [t.position for t in two_biome_board.iter_tiles() if t.is_habitat]

        assert habitats == [Position(x=2, y=2), Position(x=7, y=7)]


class TestBiome:
    """Tests for Biome helpers."""

    def test_with_lushness_keeps_total_consistent(self):
        """total_lushness == base + boost."""
        biome = Biome(id="biome-0", habitat=Habitat(id="habitat-0", position=Position(x=0, y=0)))

        updated = biome.with_lushness(5.5, 1.25)

        assert updated.total_lushness == pytest.approx(6.75)
        assert biome.total_lushness == 0.0


class TestAnimal:
    """Tests for Animal transitions."""

    def test_moved_to_sets_facing_and_history(self):
        """Moving east faces right; the old tile is remembered."""
        animal = Animal(id="a", species="buffalo", position=Position(x=2, y=2))

        moved = animal.moved_to(Position(x=3, y=2))

        assert moved.has_moved
        assert moved.previous_position == Position(x=2, y=2)
        assert moved.facing_direction == "right"
        assert animal.moved_to(Position(x=1, y=2)).facing_direction == "left"

    def test_displaced_to_preserves_has_moved(self):
        """Displacement is not the unit's own move."""
        animal = Animal(id="a", species="buffalo", position=Position(x=2, y=2))

        pushed = animal.displaced_to(Position(x=2, y=3))

        assert not pushed.has_moved
        assert pushed.previous_position == Position(x=2, y=2)


class TestResource:
    """Tests for Resource value rules."""

    def test_with_value_clamps_and_derives_active(self):
        """Values clamp to [0, 10] and active == value > 0."""
        r = Resource(id="r", type=ResourceType.FOREST, position=Position(x=0, y=0))

        assert r.with_value(15).value == 10.0
        depleted = r.with_value(-3)
        assert depleted.value == 0.0
        assert depleted.active is False
        assert r.with_value(0.5).active is True

    def test_value_out_of_range_rejected(self):
        """Construction enforces the bounds."""
        with pytest.raises(PydanticValidationError):
            Resource(id="r", type=ResourceType.KELP, position=Position(x=0, y=0), value=11)


class TestPlayer:
    """Tests for Player visibility sets."""

    def test_revealed_is_union(self):
        """Revealed tiles are explored plus visible."""
        a, b = Position(x=0, y=0), Position(x=1, y=0)
        player = Player(id=0, name="p", visible_tiles=frozenset({a}), explored_tiles=frozenset({b}))

        assert player.revealed_tiles == {a, b}

    def test_replace_player(self, players: tuple[Player, ...]):
        """Only the matching player entry changes."""
        updated = replace_player(players, players[1].model_copy(update={"energy": 5.0}))

        assert updated[0] is players[0]
        assert updated[1].energy == 5.0


class TestGameState:
    """Tests for the versioned snapshot."""

    def test_commit_bumps_version(self, two_player_state: GameState):
        """Commits copy and bump the version; the original is untouched."""
        committed = two_player_state.commit(turn=5)

        assert committed.version == two_player_state.version + 1
        assert committed.turn == 5
        assert two_player_state.turn == 1

    def test_lookups_raise(self, two_player_state: GameState):
        """Missing entities raise typed errors."""
        with pytest.raises(EntityNotFoundError):
            two_player_state.get_animal("nope")
        with pytest.raises(EntityNotFoundError):
            two_player_state.get_egg("nope")
        with pytest.raises(EntityNotFoundError):
            two_player_state.get_player(42)
        with pytest.raises(BiomeNotFoundError):
            two_player_state.get_biome("biome-42")

    def test_require_board(self):
        """A state without a board cannot run board operations."""
        with pytest.raises(BoardMissingError):
            GameState().require_board()

    def test_animal_at(self, two_player_state: GameState):
        assert two_player_state.animal_at(Position(x=1, y=1)).id == "buffalo-0"
        assert two_player_state.animal_at(Position(x=4, y=4)) is None

    def test_egg_at(self, two_player_state: GameState):
        egg = Egg(id="e", owner_id=0, position=Position(x=2, y=2), biome_id="biome-0", created_at_turn=0)
        game = two_player_state.commit(eggs={"e": egg})

        assert game.egg_at(Position(x=2, y=2)) == egg
        assert game.egg_at(Position(x=3, y=2)) is None

    def test_occupied_positions_excludes(self, two_player_state: GameState):
        """A unit can be ignored when checking occupancy."""
        occupied = occupied_positions(two_player_state.animals, exclude_id="buffalo-0")

        assert occupied == {Position(x=8, y=8)}

    def test_player_ids_in_order(self, two_player_state: GameState):
        assert two_player_state.player_ids() == [0, 1]
