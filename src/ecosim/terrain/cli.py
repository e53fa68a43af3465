"""Command-line interface for terrain generation."""

import argparse
import logging
import time

from ..terrain_types import TerrainType

GLYPHS = {
    "water": "~",
    "grass": ".",
    "beach": ":",
    "mountain": "^",
    "underwater": "=",
}


def render_ascii(grid: list[list[TerrainType]]) -> str:
    """Render a terrain grid as one glyph per tile."""
    return "\n".join("".join(GLYPHS.get(t.value, "?") for t in row) for row in grid)


def main() -> None:
    """CLI entry point for terrain generation."""
    parser = argparse.ArgumentParser(
        description="Generate and preview an island terrain map"
    )
    parser.add_argument(
        "--width", type=int, default=30, help="Board width (default: 30)"
    )
    parser.add_argument(
        "--height", type=int, default=30, help="Board height (default: 30)"
    )
    parser.add_argument(
        "--seed", type=int, default=12345, help="Random seed (default: 12345)"
    )
    parser.add_argument(
        "--biomes", action="store_true", help="Also partition biomes and validate the board"
    )
    parser.add_argument(
        "--no-preview", action="store_true", help="Skip the ASCII map"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Import here to avoid slow startup for --help
    import numpy as np

    from ..biomes import partition_board
    from .config import TerrainConfig
    from .generator import generate_terrain
    from .validation import validate_board, validate_terrain

    print(f"Generating {args.width}x{args.height} terrain with seed {args.seed}")
    print()

    config = TerrainConfig(seed=args.seed, width=args.width, height=args.height)

    start_time = time.time()
    result = generate_terrain(config)
    gen_time = time.time() - start_time

    if not args.no_preview:
        print(render_ascii(result.terrain_grid()))
        print()

    total = args.width * args.height
    print(f"Generation complete in {gen_time * 1000:.1f}ms")
    for terrain, count in result.counts().items():
        print(f"  {GLYPHS[terrain.value]} {terrain.value:<11} {count:>6} ({count / total * 100:5.1f}%)")

    validate_terrain(result.terrain)

    if args.biomes:
        board, biomes = partition_board(result.terrain, np.random.default_rng(args.seed), config.biomes)
        print()
        print(f"Biomes: {len(biomes)}")
        validation = validate_board(board, biomes)
        if not validation.passed:
            raise SystemExit(1)


if __name__ == "__main__":
    main()
