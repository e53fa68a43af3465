"""CLI entry point: play a headless game between agents."""

import argparse
import asyncio
from pathlib import Path

import numpy as np
import structlog
from pydantic import ValidationError as PydanticValidationError

from .config import BoardConfig, GameConfig, find_config, load_config
from .history import RunManager, TurnLogWriter
from .loop import PlayerTurnResult, run_rounds
from .turns import TurnState, new_game


async def play(
    config: GameConfig,
    rounds: int,
    rng: np.random.Generator,
    config_name: str,
    log_dir: str | None,
) -> TurnState:
    """Create a game, play it for a number of rounds and log it."""
    logger = structlog.get_logger()
    state = new_game(config, rng)

    run_manager: RunManager | None = None
    writer: TurnLogWriter | None = None
    if log_dir:
        run_manager = RunManager(log_dir)
        run_id = run_manager.start_run(
            config_name, state.game, config.board.seed, config.mode.value
        )
        writer = TurnLogWriter(run_manager.base_dir / run_id)

    async def on_turn_complete(result: PlayerTurnResult) -> None:
        if writer is not None and result.game is not None:
            writer.log_turn(result, result.game)
        logger.info(
            "player_turn_complete",
            turn=result.turn,
            player_id=result.player_id,
            commands=len(result.command_results),
            succeeded=result.succeeded,
            eggs_produced=len(result.eggs_produced),
        )

    try:
        state, _ = await run_rounds(state, rounds, rng=rng, on_turn_complete=on_turn_complete)
    finally:
        if writer is not None:
            writer.close()
    if run_manager is not None:
        run_manager.end_run(state.game.turn)

    return state


def apply_board_overrides(config: GameConfig, **overrides: int | None) -> GameConfig:
    """Replace board fields given on the command line, re-running validation."""
    values = {k: v for k, v in overrides.items() if v is not None}
    if not values:
        return config
    board = BoardConfig.model_validate({**config.board.model_dump(), **values})
    return config.model_copy(update={"board": board})


def summarize(state: TurnState) -> None:
    """Print the ownership table of a finished game."""
    game = state.game
    print()
    print(f"Turn {game.turn}, round {state.sequencer.round}")
    for player in game.players:
        owned = [b for b in game.biomes.values() if b.owner_id == player.id]
        animals = sum(1 for a in game.animals.values() if a.owner_id == player.id)
        eggs = sum(1 for e in game.eggs.values() if e.owner_id == player.id)
        print(
            f"  {player.name:<12} biomes={len(owned):<3} animals={animals:<3} "
            f"eggs={eggs:<3} energy={player.energy:.1f}"
        )


def main() -> None:
    """Run a headless game."""
    parser = argparse.ArgumentParser(
        description="Ecosystem simulation - play a headless game between agents"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path or name of game TOML config file",
    )
    parser.add_argument(
        "--rounds", type=int, default=20, help="Number of rounds to play (default: 20)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Board seed (overrides config)")
    parser.add_argument("--width", type=int, default=None, help="Board width (overrides config)")
    parser.add_argument("--height", type=int, default=None, help="Board height (overrides config)")
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Directory for Parquet turn logs (disabled if omitted)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    # Configure structlog for CLI
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(10 if args.verbose else 20),
    )
    logger = structlog.get_logger()

    if args.config:
        try:
            config_path = find_config(args.config)
        except FileNotFoundError:
            config_path = Path(args.config)
            if not config_path.exists():
                logger.error("config_not_found", path=args.config)
                raise SystemExit(1)
        config = load_config(config_path)
        logger.info("config_loaded", path=str(config_path))
    else:
        config = GameConfig()
        logger.info("using_default_config")

    try:
        config = apply_board_overrides(
            config, seed=args.seed, width=args.width, height=args.height
        )
    except PydanticValidationError as e:
        logger.error("invalid_board_override", error=str(e))
        raise SystemExit(1)

    rng = np.random.default_rng(config.board.seed)
    config_name = args.config if args.config else "default"
    state = asyncio.run(play(config, args.rounds, rng, config_name, args.log_dir))
    summarize(state)


if __name__ == "__main__":
    main()
