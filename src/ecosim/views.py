"""Per-player masked views of the game snapshot."""

from typing import Callable

from pydantic import BaseModel, Field

from .state import Animal, Biome, Board, Egg, GameState, Resource, Tile
from .types import Position


class PlayerView(BaseModel, frozen=True):
    """What one player is allowed to know about the game.

    Tiles outside the player's revealed set keep their terrain but lose
    biome and habitat information. Foreign entities outside revealed
    tiles are dropped.
    """

    player_id: int
    turn: int
    board: Board
    animals: dict[str, Animal] = Field(default_factory=dict)
    eggs: dict[str, Egg] = Field(default_factory=dict)
    biomes: dict[str, Biome] = Field(default_factory=dict)
    resources: dict[Position, Resource] = Field(default_factory=dict)
    visible_tiles: frozenset[Position] = frozenset()
    explored_tiles: frozenset[Position] = frozenset()
    fog_of_war_enabled: bool = True
    energy: float = 0.0

    def is_revealed(self, position: Position) -> bool:
        if not self.fog_of_war_enabled:
            return True
        return position in self.visible_tiles or position in self.explored_tiles

    def owned_biomes(self) -> list[Biome]:
        return [b for b in self.biomes.values() if b.owner_id == self.player_id]

    def own_animals(self) -> list[Animal]:
        return [a for a in self.animals.values() if a.owner_id == self.player_id]

    def own_eggs(self) -> list[Egg]:
        return [e for e in self.eggs.values() if e.owner_id == self.player_id]

    def blank_tiles(self) -> list[Position]:
        """Revealed non-habitat tiles without a known resource."""
        return [
            t.position
            for t in self.board.iter_tiles()
            if self.is_revealed(t.position)
            and not t.is_habitat
            and t.position not in self.resources
        ]


def _mask_board(board: Board, revealed: Callable[[Position], bool]) -> Board:
    rows = tuple(
        tuple(
            tile
            if revealed(tile.position)
            else Tile(position=tile.position, terrain=tile.terrain)
            for tile in row
        )
        for row in board.tiles
    )
    return Board(width=board.width, height=board.height, tiles=rows)


def get_player_view(state: GameState, player_id: int) -> PlayerView:
    """Build the masked snapshot a player (or their agent) may act on.

    Raises:
        EntityNotFoundError: If the player does not exist.
        BoardMissingError: If the game has no board.
    """
    board = state.require_board()
    player = state.get_player(player_id)

    fog = state.fog_of_war_enabled
    seen = player.revealed_tiles

    def revealed(position: Position) -> bool:
        return not fog or position in seen

    owned = {bid for bid, b in state.biomes.items() if b.owner_id == player_id}

    animals = {
        k: a
        for k, a in state.animals.items()
        if a.owner_id == player_id or revealed(a.position)
    }
    eggs = {
        k: e
        for k, e in state.eggs.items()
        if e.owner_id == player_id or revealed(e.position)
    }
    biomes = {
        bid: b
        for bid, b in state.biomes.items()
        if bid in owned or any(revealed(p) for p in board.tiles_in_biome(bid))
    }
    resources = {
        pos: r
        for pos, r in state.resources.items()
        if revealed(pos) or r.biome_id in owned
    }

    masked = board if not fog else _mask_board(board, revealed)

    return PlayerView(
        player_id=player_id,
        turn=state.turn,
        board=masked,
        animals=animals,
        eggs=eggs,
        biomes=biomes,
        resources=resources,
        visible_tiles=player.visible_tiles,
        explored_tiles=player.explored_tiles,
        fog_of_war_enabled=fog,
        energy=player.energy,
    )
