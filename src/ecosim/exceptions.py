"""Custom exceptions for the ecosystem simulation."""

from dataclasses import dataclass


class EcosimError(Exception):
    """Base exception for simulation errors."""

    code = "error"


class ValidationError(EcosimError):
    """Raised when an operation is given invalid input.

    Always recoverable: the caller gets a rejected operation and the prior
    snapshot.
    """

    code = "invalid"


class EntityNotFoundError(ValidationError):
    """Raised when an animal, egg, player or resource is not found."""

    code = "not_found"


class InvalidMoveError(ValidationError):
    """Raised when a move target is not in the unit's range."""

    code = "invalid_move"


class OutOfBoundsError(ValidationError):
    """Raised when a coordinate lies outside the board."""

    code = "out_of_bounds"


class CommandRejectedError(ValidationError):
    """Raised when a command is not legal for the acting player."""

    code = "command_rejected"


class InvariantViolation(EcosimError):
    """Raised when state required by an operation is missing or inconsistent."""

    code = "invariant_violation"


class BiomeNotFoundError(InvariantViolation):
    """Raised when a biome referenced by id does not exist."""

    code = "biome_not_found"


class BoardMissingError(InvariantViolation):
    """Raised when an operation needs a board and none is present."""

    code = "board_missing"


@dataclass(frozen=True)
class DegenerateStateWarning:
    """Non-fatal report of a degenerate board condition.

    Attached to operation results; the simulation continues with a partial
    or no-op effect.
    """

    code: str
    detail: str = ""
