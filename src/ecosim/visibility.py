"""Fog-of-war: per-player line of sight and exploration history."""

from typing import Iterable

from .state import Animal, Biome, Board, Player, replace_player
from .types import Position


def line_of_sight(
    player_id: int,
    board: Board,
    animals: dict[str, Animal],
    biomes: dict[str, Biome],
) -> frozenset[Position]:
    """Tiles a player currently sees.

    The 3x3 block around each of the player's animals plus every tile of
    every biome the player owns.
    """
    seen: set[Position] = set()

    for animal in animals.values():
        if animal.owner_id != player_id:
            continue
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                p = animal.position.offset(dx, dy)
                if board.in_bounds(p):
                    seen.add(p)

    for biome in biomes.values():
        if biome.owner_id == player_id:
            seen.update(board.tiles_in_biome(biome.id))

    return frozenset(seen)


def compute_visibility(
    players: tuple[Player, ...],
    board: Board,
    animals: dict[str, Animal],
    biomes: dict[str, Biome],
    fog_enabled: bool = True,
) -> tuple[Player, ...]:
    """Refresh every player's visible and explored tiles.

    With fog enabled, visible_tiles becomes the live line of sight and is
    folded into explored_tiles, which only ever grows. With fog disabled,
    every tile is visible and explored_tiles is left as is, so re-enabling
    fog restores the earlier exploration.
    """
    if not fog_enabled:
        everything = board.all_positions()
        return tuple(p.model_copy(update={"visible_tiles": everything}) for p in players)

    updated = []
    for player in players:
        sight = line_of_sight(player.id, board, animals, biomes)
        updated.append(
            player.model_copy(
                update={
                    "visible_tiles": sight,
                    "explored_tiles": player.explored_tiles | sight,
                }
            )
        )
    return tuple(updated)


def reveal_tiles(
    players: tuple[Player, ...],
    player_id: int,
    tiles: Iterable[Position],
) -> tuple[Player, ...]:
    """Mark tiles explored and visible for one player."""
    tiles = frozenset(tiles)
    for player in players:
        if player.id == player_id:
            revealed = player.model_copy(
                update={
                    "visible_tiles": player.visible_tiles | tiles,
                    "explored_tiles": player.explored_tiles | tiles,
                }
            )
            return replace_player(players, revealed)
    return players


def is_revealed(player: Player, position: Position, fog_enabled: bool = True) -> bool:
    """Whether the player may see the tile."""
    if not fog_enabled:
        return True
    return position in player.revealed_tiles
