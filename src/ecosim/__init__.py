"""Turn-based territory and ecology simulation core."""

from .actions import OperationResult
from .agents import Agent, RandomAgent
from .commands import (
    CaptureCommand,
    CommandResult,
    EndTurnCommand,
    GameCommand,
    HarvestCommand,
    HatchCommand,
    MoveCommand,
    can_execute_command,
    execute_command,
)
from .config import GameConfig, GameMode, load_config
from .exceptions import (
    BiomeNotFoundError,
    BoardMissingError,
    CommandRejectedError,
    DegenerateStateWarning,
    EcosimError,
    EntityNotFoundError,
    InvalidMoveError,
    InvariantViolation,
    OutOfBoundsError,
    ValidationError,
)
from .initializer import initialize
from .loop import PlayerTurnResult, TurnLoop, is_human, run_rounds
from .state import (
    Animal,
    Biome,
    BiomeCaptureEvent,
    Board,
    DisplacementEvent,
    Egg,
    GameState,
    Habitat,
    Player,
    Resource,
    SpawnEvent,
    Tile,
)
from .terrain_types import ResourceType, TerrainType
from .turns import TurnPhase, TurnState, advance_turn, new_game
from .types import Coordinate, Direction, Position
from .views import PlayerView, get_player_view

__all__ = [
    # Types
    "Coordinate",
    "Direction",
    "Position",
    "ResourceType",
    "TerrainType",
    # State
    "Animal",
    "Biome",
    "BiomeCaptureEvent",
    "Board",
    "DisplacementEvent",
    "Egg",
    "GameState",
    "Habitat",
    "Player",
    "Resource",
    "SpawnEvent",
    "Tile",
    # Config
    "GameConfig",
    "GameMode",
    "load_config",
    # Game flow
    "initialize",
    "new_game",
    "advance_turn",
    "TurnPhase",
    "TurnState",
    "OperationResult",
    # Commands
    "CaptureCommand",
    "CommandResult",
    "EndTurnCommand",
    "GameCommand",
    "HarvestCommand",
    "HatchCommand",
    "MoveCommand",
    "can_execute_command",
    "execute_command",
    # Views and agents
    "PlayerView",
    "get_player_view",
    "Agent",
    "RandomAgent",
    # Loop
    "PlayerTurnResult",
    "TurnLoop",
    "is_human",
    "run_rounds",
    # Exceptions
    "EcosimError",
    "ValidationError",
    "EntityNotFoundError",
    "InvalidMoveError",
    "OutOfBoundsError",
    "CommandRejectedError",
    "InvariantViolation",
    "BiomeNotFoundError",
    "BoardMissingError",
    "DegenerateStateWarning",
]
