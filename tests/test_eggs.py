"""Tests for egg production and hatching."""

import numpy as np
import pytest

from ecosim.biomes import build_biomes
from ecosim.config import EconomyConfig, MovementRules
from ecosim.economy import recalc_all_lushness, reset_resources
from ecosim.eggs import (
    can_produce,
    egg_placement_tiles,
    hatch_egg,
    placement_score,
    produce_eggs,
)
from ecosim.state import Animal, Biome, Board, Egg
from ecosim.types import Position

HABITAT = Position(x=5, y=5)


def lush_biomes(seeds: list[Position], lushness: float = 8.0, **update) -> dict[str, Biome]:
    """Biomes over seeds with biome-0 owned by player 0 at the given lushness."""
    biomes = build_biomes(seeds, starting_index=0, starting_owner=0)
    biomes["biome-0"] = biomes["biome-0"].with_lushness(lushness, 0.0).model_copy(update=update)
    return biomes


def egg(egg_id: str, x: int, y: int, owner_id: int = 0, biome_id: str = "biome-0") -> Egg:
    return Egg(
        id=egg_id, owner_id=owner_id, position=Position(x=x, y=y), biome_id=biome_id, created_at_turn=0
    )


@pytest.fixture
def stocked(grass_board: Board, make_resource):
    """Active resources at (1, 1) and (3, 1) of the single grass biome."""
    return {
        p: make_resource(grass_board, p)
        for p in (Position(x=1, y=1), Position(x=3, y=1))
    }


class TestPlacement:
    """Tests for egg placement scoring."""

    def test_score_weights_owned_biomes(self, grass_board: Board, stocked):
        """Each owned neighbouring resource counts 3, others 1."""
        tile = Position(x=2, y=1)

        assert placement_score(tile, grass_board, stocked, {"biome-0"}) == 6
        assert placement_score(tile, grass_board, stocked, set()) == 2
        assert placement_score(Position(x=8, y=8), grass_board, stocked, {"biome-0"}) == 0

    def test_placement_skips_habitat_eggs_and_resources(self, grass_board: Board, stocked):
        biomes = lush_biomes([HABITAT])
        eggs = {"e": egg("e", 0, 0)}

        tiles = egg_placement_tiles(biomes["biome-0"], grass_board, stocked, eggs, {"biome-0"})

        assert HABITAT not in tiles
        assert Position(x=0, y=0) not in tiles
        assert Position(x=1, y=1) not in tiles
        assert len(tiles) == 100 - 1 - 1 - 2

    def test_best_tiles_first_in_scan_order(self, grass_board: Board, stocked):
        """Ties keep row-major order."""
        biomes = lush_biomes([HABITAT])

        tiles = egg_placement_tiles(biomes["biome-0"], grass_board, stocked, {}, {"biome-0"})

        assert tiles[:3] == [Position(x=2, y=0), Position(x=2, y=1), Position(x=2, y=2)]


class TestProduction:
    """Tests for produce_eggs."""

    def test_lush_biome_lays_one_egg(self, grass_board: Board, stocked):
        """Lushness 8 on an even turn lays production_rate eggs."""
        biomes = lush_biomes([HABITAT])

        result = produce_eggs(0, 2, grass_board, biomes, stocked, {})

        assert len(result.produced) == 1
        laid = result.produced[0]
        assert laid.position == Position(x=2, y=0)
        assert laid.owner_id == 0
        assert laid.biome_id == "biome-0"
        assert laid.created_at_turn == 2
        assert result.eggs == {laid.id: laid}
        assert result.biomes["biome-0"].last_production_turn == 2

    def test_production_rate_caps_egg_count(self, grass_board: Board, stocked):
        biomes = lush_biomes([HABITAT], production_rate=3)

        result = produce_eggs(0, 2, grass_board, biomes, stocked, {})

        assert [e.position for e in result.produced] == [
            Position(x=2, y=0),
            Position(x=2, y=1),
            Position(x=2, y=2),
        ]
        assert len(result.eggs) == 3

    def test_existing_eggs_are_kept(self, grass_board: Board, stocked):
        biomes = lush_biomes([HABITAT])
        eggs = {"old": egg("old", 9, 9)}

        result = produce_eggs(0, 2, grass_board, biomes, stocked, eggs)

        assert "old" in result.eggs
        assert len(result.eggs) == 2
        assert eggs == {"old": egg("old", 9, 9)}

    @pytest.mark.parametrize(
        "turn,lushness,last_turn",
        [
            (3, 8.0, 0),  # odd turn
            (2, 6.9, 0),  # below threshold
            (2, 8.0, 2),  # already produced this turn
        ],
    )
    def test_no_production(self, grass_board: Board, stocked, turn, lushness, last_turn):
        biomes = lush_biomes([HABITAT], lushness, last_production_turn=last_turn)

        result = produce_eggs(0, turn, grass_board, biomes, stocked, {})

        assert result.produced == []
        assert result.biomes["biome-0"].last_production_turn == last_turn

    def test_other_players_biomes_ignored(self, grass_board: Board, stocked):
        biomes = lush_biomes([HABITAT])

        result = produce_eggs(1, 2, grass_board, biomes, stocked, {})

        assert result.produced == []

    def test_can_produce_needs_owner_and_rate(self):
        biomes = lush_biomes([HABITAT])
        biome = biomes["biome-0"]

        assert can_produce(biome, 4)
        assert not can_produce(biome.with_owner(None), 4)
        assert not can_produce(biome.model_copy(update={"production_rate": 0}), 4)
        assert not can_produce(biome, 3, EconomyConfig(egg_cooldown=2))
        assert can_produce(biome, 3, EconomyConfig(egg_cooldown=1))

    def test_full_biome_reports_no_tile(self, make_board, make_resource):
        """A biome with every tile stocked has nowhere to lay."""
        board = make_board(["..."], [Position(x=1, y=0)])
        resources = {
            p: make_resource(board, p) for p in (Position(x=0, y=0), Position(x=2, y=0))
        }
        biomes = lush_biomes([Position(x=1, y=0)])

        result = produce_eggs(0, 2, board, biomes, resources, {})

        assert result.produced == []
        assert [w.code for w in result.warnings] == ["no_egg_placement_tile"]


class TestHatch:
    """Tests for hatch_egg."""

    def test_hatch_creates_unmovable_unit(self, grass_board: Board):
        """The hatchling takes the egg's owner and cannot move this turn."""
        biomes = lush_biomes([HABITAT], 0.0)
        eggs = {"e": egg("e", 3, 3)}

        result = hatch_egg("e", {}, eggs, biomes, grass_board, turn=4, resources={})

        assert result.success
        assert result.new_animal_id == "buffalo-0"
        hatched = result.animals["buffalo-0"]
        assert hatched.position == Position(x=3, y=3)
        assert hatched.species == "buffalo"
        assert hatched.owner_id == 0
        assert hatched.has_moved
        assert result.eggs == {}
        assert result.spawn.unit_id == "buffalo-0"

    def test_species_follows_terrain(self, coast_board: Board):
        """Eggs on mountains hatch birds, on beaches snakes."""
        biomes = lush_biomes([Position(x=3, y=2)], 0.0)
        eggs = {"m": egg("m", 5, 2), "s": egg("s", 2, 0)}

        mountain = hatch_egg("m", {}, eggs, biomes, coast_board, turn=1, resources={})
        beach = hatch_egg("s", {}, eggs, biomes, coast_board, turn=1, resources={})

        assert mountain.animals[mountain.new_animal_id].species == "bird"
        assert beach.animals[beach.new_animal_id].species == "snake"

    def test_hatch_ids_do_not_collide(self, grass_board: Board):
        biomes = lush_biomes([HABITAT], 0.0)
        animals = {
            "buffalo-1": Animal(id="buffalo-1", species="buffalo", position=Position(x=0, y=0))
        }

        result = hatch_egg(
            "e", animals, {"e": egg("e", 3, 3)}, biomes, grass_board, turn=1, resources={}
        )

        assert result.new_animal_id == "buffalo-2"

    def test_hatch_drops_egg_boost(self, grass_board: Board):
        """Lushness is recomputed without the hatched egg."""
        biomes = lush_biomes([HABITAT], 0.0)
        biomes["biome-0"] = biomes["biome-0"].with_lushness(0.0, 2 / 99)

        result = hatch_egg(
            "e", {}, {"e": egg("e", 3, 3)}, biomes, grass_board, turn=1, resources={}
        )

        assert result.biomes["biome-0"].lushness_boost == 0.0

    def test_hatch_displaces_occupant(self, grass_board: Board):
        biomes = lush_biomes([HABITAT], 0.0)
        occupant = Animal(id="x", species="buffalo", position=Position(x=3, y=3), owner_id=1)

        result = hatch_egg(
            "e",
            {"x": occupant},
            {"e": egg("e", 3, 3)},
            biomes,
            grass_board,
            turn=1,
            resources={},
            rng=np.random.default_rng(0),
        )

        assert result.success
        assert result.displacement.unit_id == "x"
        assert result.animals["x"].position in Position(x=3, y=3).neighbors(8)
        assert result.animals[result.new_animal_id].position == Position(x=3, y=3)

    def test_unknown_egg(self, grass_board: Board):
        animals: dict[str, Animal] = {}

        result = hatch_egg(
            "nope", animals, {}, lush_biomes([HABITAT]), grass_board, turn=1, resources={}
        )

        assert not result.success
        assert result.failure_reason == "egg_not_found"
        assert result.animals is animals

    def test_trapped_occupant_blocks_hatch(self, make_board):
        board = make_board([".~~~~", "~~.~~", "~~~~~"], [Position(x=4, y=2)])
        biomes = lush_biomes([Position(x=4, y=2)], 0.0)
        occupant = Animal(id="x", species="buffalo", position=Position(x=2, y=1))
        eggs = {"e": egg("e", 2, 1)}

        result = hatch_egg(
            "e", {"x": occupant}, eggs, biomes, board, turn=1, resources={}, rules=MovementRules()
        )

        assert not result.success
        assert result.failure_reason == "no_displacement_tile"
        assert result.warning.code == "no_displacement_tile"
        assert result.eggs is eggs

    def test_hatch_keeps_resource_lushness(self, grass_board: Board):
        """The hatched biome's base lushness still reflects its resources."""
        resources, biomes = reset_resources(
            grass_board, lush_biomes([HABITAT], 0.0), 0.5, np.random.default_rng(2)
        )
        biomes = recalc_all_lushness(biomes, grass_board, resources, {})
        spot = next(
            p for p in grass_board.tiles_in_biome("biome-0") if p != HABITAT and p not in resources
        )

        result = hatch_egg(
            "e", {}, {"e": egg("e", spot.x, spot.y)}, biomes, grass_board, turn=2, resources=resources
        )

        assert biomes["biome-0"].base_lushness == 8.0
        assert result.biomes["biome-0"].base_lushness == 8.0
