"""UltimateXO package exposing the Ultimate Tic-Tac-Toe rules engine."""

from .config import GameConfig
from .game import (
    GameOverError,
    GameState,
    IllegalMoveError,
    InvalidCoordinateError,
    InvalidInputError,
    Mark,
    Move,
    UltimateXOError,
    winner_of_square,
)
from .session import GameSession
from .snapshot import GameSnapshot

__all__ = [
    "GameConfig",
    "GameOverError",
    "GameSession",
    "GameSnapshot",
    "GameState",
    "IllegalMoveError",
    "InvalidCoordinateError",
    "InvalidInputError",
    "Mark",
    "Move",
    "UltimateXOError",
    "winner_of_square",
]
