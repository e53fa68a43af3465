"""Parquet turn history and run directories for game replay."""

import json
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq
import structlog

from .commands import (
    CaptureCommand,
    CommandResult,
    HarvestCommand,
    HatchCommand,
    MoveCommand,
)
from .loop import PlayerTurnResult
from .state import GameState

logger = structlog.get_logger()


# Parquet schemas for each table
TURN_SCHEMA = pa.schema([
    ("turn", pa.int32()),
    ("round", pa.int32()),
    ("player_id", pa.int32()),
    ("human", pa.bool_()),
    ("commands", pa.int32()),
    ("commands_succeeded", pa.int32()),
    ("eggs_produced", pa.int32()),
    ("duration_ms", pa.float64()),
])

ANIMAL_STATE_SCHEMA = pa.schema([
    ("turn", pa.int32()),
    ("player_id", pa.int32()),  # acting player of the logged turn
    ("animal_id", pa.string()),
    ("species", pa.string()),
    ("owner_id", pa.int32()),
    ("x", pa.int32()),
    ("y", pa.int32()),
    ("has_moved", pa.bool_()),
])

BIOME_STATE_SCHEMA = pa.schema([
    ("turn", pa.int32()),
    ("player_id", pa.int32()),
    ("biome_id", pa.string()),
    ("owner_id", pa.int32()),
    ("base_lushness", pa.float64()),
    ("lushness_boost", pa.float64()),
    ("total_lushness", pa.float64()),
    ("non_depleted_count", pa.int32()),
    ("total_harvested", pa.float64()),
    ("eggs", pa.int32()),
])

ACTION_SCHEMA = pa.schema([
    ("turn", pa.int32()),
    ("player_id", pa.int32()),
    ("action_type", pa.string()),  # "move", "hatch", "capture", "harvest"
    ("target_id", pa.string()),
    ("success", pa.bool_()),
    ("x", pa.int32()),
    ("y", pa.int32()),
    ("amount", pa.float64()),
    ("new_animal_id", pa.string()),
    ("failure_reason", pa.string()),
])


def _action_row(turn: int, result: CommandResult) -> dict:
    cmd = result.command
    row = {
        "turn": turn,
        "player_id": result.player_id,
        "action_type": cmd.type,
        "target_id": None,
        "success": result.success,
        "x": None,
        "y": None,
        "amount": result.amount,
        "new_animal_id": result.new_animal_id,
        "failure_reason": result.failure_reason,
    }
    if isinstance(cmd, MoveCommand):
        row.update(target_id=cmd.animal_id, x=cmd.to.x, y=cmd.to.y)
    elif isinstance(cmd, HatchCommand):
        row.update(target_id=cmd.egg_id)
    elif isinstance(cmd, CaptureCommand):
        row.update(target_id=cmd.biome_id)
    elif isinstance(cmd, HarvestCommand):
        row.update(x=cmd.position.x, y=cmd.position.y)
    return row


class TurnLogWriter:
    """Writes per-turn game data to Parquet files.

    Accumulates rows in memory and writes them on flush or close.
    """

    def __init__(self, run_dir: Path, buffer_size: int = 50):
        """Initialize TurnLogWriter.

        Args:
            run_dir: Directory to write Parquet files to
            buffer_size: Number of player turns to buffer before writing
        """
        self.run_dir = run_dir
        self.buffer_size = buffer_size

        self._turn_data: list[dict] = []
        self._animal_data: list[dict] = []
        self._biome_data: list[dict] = []
        self._action_data: list[dict] = []

        self._files_exist = False

    def log_turn(self, result: PlayerTurnResult, game: GameState) -> None:
        """Log a completed player turn.

        Args:
            result: Outcome of the player turn
            game: Snapshot after the turn
        """
        turn = result.turn
        pid = result.player_id

        self._turn_data.append({
            "turn": turn,
            "round": result.round,
            "player_id": pid,
            "human": result.human,
            "commands": len(result.command_results),
            "commands_succeeded": result.succeeded,
            "eggs_produced": len(result.eggs_produced),
            "duration_ms": result.duration_ms,
        })

        for animal_id, animal in game.animals.items():
            self._animal_data.append({
                "turn": turn,
                "player_id": pid,
                "animal_id": animal_id,
                "species": animal.species,
                "owner_id": animal.owner_id,
                "x": animal.position.x,
                "y": animal.position.y,
                "has_moved": animal.has_moved,
            })

        egg_counts: dict[str, int] = {}
        for egg in game.eggs.values():
            egg_counts[egg.biome_id] = egg_counts.get(egg.biome_id, 0) + 1

        for biome_id, biome in game.biomes.items():
            self._biome_data.append({
                "turn": turn,
                "player_id": pid,
                "biome_id": biome_id,
                "owner_id": biome.owner_id,
                "base_lushness": biome.base_lushness,
                "lushness_boost": biome.lushness_boost,
                "total_lushness": biome.total_lushness,
                "non_depleted_count": biome.non_depleted_count,
                "total_harvested": biome.total_harvested,
                "eggs": egg_counts.get(biome_id, 0),
            })

        for command_result in result.command_results:
            self._action_data.append(_action_row(turn, command_result))

        if len(self._turn_data) >= self.buffer_size:
            self.flush()

    def flush(self) -> None:
        """Write buffered data to Parquet files."""
        if not self._turn_data:
            return

        self._write_parquet("turns.parquet", TURN_SCHEMA, self._turn_data)
        self._write_parquet("animals.parquet", ANIMAL_STATE_SCHEMA, self._animal_data)
        self._write_parquet("biomes.parquet", BIOME_STATE_SCHEMA, self._biome_data)
        self._write_parquet("actions.parquet", ACTION_SCHEMA, self._action_data)

        self._turn_data.clear()
        self._animal_data.clear()
        self._biome_data.clear()
        self._action_data.clear()

        self._files_exist = True
        logger.debug("turn_log_flushed", run_dir=str(self.run_dir))

    def close(self) -> None:
        """Flush remaining data."""
        self.flush()
        logger.info("turn_log_closed", run_dir=str(self.run_dir))

    def _write_parquet(self, filename: str, schema: pa.Schema, data: list[dict]) -> None:
        """Write data to a Parquet file, appending if it exists."""
        if not data:
            return

        filepath = self.run_dir / filename
        table = pa.Table.from_pylist(data, schema=schema)

        if self._files_exist and filepath.exists():
            existing = pq.read_table(filepath)
            table = pa.concat_tables([existing, table])

        pq.write_table(table, filepath)


@dataclass
class RunMetadata:
    """Metadata for a recorded game."""

    run_id: str
    started_at: str
    config_name: str
    board_width: int
    board_height: int
    seed: int | None
    mode: str
    player_ids: list[int] = field(default_factory=list)
    schema_version: int = 1


class RunManager:
    """Creates run directories and keeps their meta.json current."""

    def __init__(self, base_dir: Path | str = "runs"):
        self.base_dir = Path(base_dir)
        self._run_dir: Path | None = None
        self._metadata: RunMetadata | None = None

    @property
    def run_id(self) -> str | None:
        return self._metadata.run_id if self._metadata else None

    @property
    def run_dir(self) -> Path | None:
        return self._run_dir

    def start_run(self, config_name: str, game: GameState, seed: int | None, mode: str) -> str:
        """Create the run directory and write its metadata.

        Returns:
            The generated run_id
        """
        board = game.require_board()
        timestamp = datetime.now(timezone.utc)
        run_id = f"{timestamp.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"

        self._run_dir = self.base_dir / run_id
        self._run_dir.mkdir(parents=True, exist_ok=True)
        self._metadata = RunMetadata(
            run_id=run_id,
            started_at=timestamp.isoformat(),
            config_name=config_name,
            board_width=board.width,
            board_height=board.height,
            seed=seed,
            mode=mode,
            player_ids=game.player_ids(),
        )
        self._write_metadata(asdict(self._metadata))
        logger.info("run_started", run_id=run_id, run_dir=str(self._run_dir))
        return run_id

    def end_run(self, final_turn: int) -> None:
        """Record the end time and final turn."""
        if self._run_dir is None or self._metadata is None:
            return

        with open(self._run_dir / "meta.json") as f:
            meta = json.load(f)
        meta["ended_at"] = datetime.now(timezone.utc).isoformat()
        meta["final_turn"] = final_turn
        self._write_metadata(meta)

    def _write_metadata(self, meta: dict) -> None:
        if self._run_dir is None:
            return
        with open(self._run_dir / "meta.json", "w") as f:
            json.dump(meta, f, indent=2)
