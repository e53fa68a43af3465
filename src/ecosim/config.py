"""Game configuration loading from TOML files."""

import tomllib
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from .biomes import StartingBiomePolicy
from .state import Player
from .terrain.config import TerrainConfig


class GameMode(str, Enum):
    """Who controls the players."""

    PVP = "pvp"  # every player is human
    PVE = "pve"  # player 0 is human, the rest are agents
    SIM = "sim"  # every player is an agent


class BoardConfig(BaseModel):
    """Board dimensions from TOML."""

    width: int = Field(default=30, ge=3)
    height: int = Field(default=30, ge=3)
    seed: int | None = None


class PlayerConfig(BaseModel):
    """Player configuration from TOML."""

    id: int
    name: str
    color: str = "#ffffff"


class EconomyConfig(BaseModel):
    """Resource economy and egg production constants."""

    # rate(l) = max(0, a*l^3 + b*l^2 + c*l + d)
    regen_a: float = -0.0015
    regen_b: float = 0.043
    regen_c: float = 0.04
    regen_d: float = 0.1

    max_lushness: float = Field(default=8.0, description="Lushness of a fully stocked biome")
    max_lushness_boost: float = Field(default=2.0, description="Cap on the egg boost")
    egg_boost_factor: float = Field(default=2.0, description="Boost per unit egg percentage")
    egg_production_threshold: float = Field(
        default=7.0, description="Total lushness needed to lay eggs"
    )
    egg_cooldown: int = Field(default=2, description="Eggs are laid on turns divisible by this")
    production_rate: int = Field(default=1, description="Initial eggs per production")
    resource_density: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Fraction of eligible tiles given resources"
    )
    owned_resource_weight: int = Field(
        default=3, description="Placement score per resource in an owned biome"
    )
    other_resource_weight: int = Field(
        default=1, description="Placement score per resource elsewhere"
    )


class MovementRules(BaseModel):
    """Movement ruleset variant."""

    neighborhood: Literal[4, 8] = 8
    terrain_compatibility: bool = True
    displace_on_move: bool = False


class GameConfig(BaseModel):
    """Complete configuration for a game."""

    mode: GameMode = GameMode.PVE
    fog_of_war: bool = True
    starting_biome: StartingBiomePolicy = StartingBiomePolicy.FIRST_BEACH
    animation_timeout_s: float | None = Field(
        default=None, description="Max wait for a rendering acknowledgment"
    )

    board: BoardConfig = Field(default_factory=BoardConfig)
    players: list[PlayerConfig] = Field(
        default_factory=lambda: [
            PlayerConfig(id=0, name="Player 1", color="#e6194b"),
            PlayerConfig(id=1, name="Player 2", color="#4363d8"),
        ]
    )
    economy: EconomyConfig = Field(default_factory=EconomyConfig)
    movement: MovementRules = Field(default_factory=MovementRules)
    terrain: TerrainConfig = Field(default_factory=TerrainConfig)

    def terrain_config(self) -> TerrainConfig:
        """Terrain config with the board's dimensions and seed applied."""
        return self.terrain.model_copy(
            update={
                "width": self.board.width,
                "height": self.board.height,
                "seed": self.board.seed,
            }
        )


def load_config(config_path: Path) -> GameConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed GameConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return GameConfig.model_validate(data)


def find_config(name: str) -> Path:
    """Find a config file by name.

    Searches in the following order:
    1. Exact path if name contains path separator
    2. configs/{name}.toml
    3. configs/{name}

    Args:
        name: Config name or path.

    Returns:
        Path to the config file.

    Raises:
        FileNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    configs_dir = _configs_dir()

    config_path = configs_dir / f"{name}.toml"
    if config_path.exists():
        return config_path

    config_path = configs_dir / name
    if config_path.exists():
        return config_path

    raise FileNotFoundError(
        f"Config '{name}' not found in {configs_dir}. "
        f"Available configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """List available config names."""
    configs_dir = _configs_dir()
    if not configs_dir.exists():
        return []
    return sorted(p.stem for p in configs_dir.glob("*.toml"))


def _configs_dir() -> Path:
    return Path(__file__).parent.parent.parent / "configs"


def config_to_players(config: GameConfig) -> tuple[Player, ...]:
    """Convert config players to Player objects; the first starts active."""
    return tuple(
        Player(id=p.id, name=p.name, color=p.color, is_active=(i == 0))
        for i, p in enumerate(config.players)
    )
