"""Controller that plays one game by the full rules on behalf of a front end."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .config import GameConfig
from .game import (
    GameOverError,
    GameState,
    IllegalMoveError,
    Listener,
    Mark,
    Move,
)
from .snapshot import GameSnapshot

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Owns the current game and enforces what ``GameState`` leaves to callers.

    ``play`` rejects moves outside the forced sub-board and refuses to move
    once the game is over. ``reset`` throws the game away and starts another.
    """

    config: GameConfig = field(default_factory=GameConfig)
    listener: Optional[Listener] = field(default=None, repr=False)
    state: GameState = field(init=False)

    def __post_init__(self) -> None:
        self.state = self.config.new_game(self.listener)

    @property
    def current_player(self) -> Mark:
        return self.state.current_player

    @property
    def winner(self) -> Mark:
        return self.state.winner()

    def status(self) -> str:
        if self.state.winner() is not Mark.EMPTY:
            return "won"
        if not self.state.moves_available():
            return "drawn"
        return "in_progress"

    def play(self, super_square: int, sub_square: int) -> GameSnapshot:
        if self.state.is_over():
            raise GameOverError("Game already finished")
        if not self.state.is_legal(super_square, sub_square):
            raise IllegalMoveError(
                f"Illegal move ({super_square}, {sub_square}) for the current position"
            )
        self.state.place_marker(super_square, sub_square)
        if self.state.is_over():
            logger.debug("Game finished: %s", self.status())
        return self.state.snapshot()

    def undo(self) -> Optional[Move]:
        return self.state.undo_last_move()

    def subscribe(self, listener: Listener) -> None:
        """Register the listener for this game and every game after a reset."""
        self.listener = listener
        self.state.subscribe(listener)

    def unsubscribe(self) -> None:
        self.listener = None
        self.state.unsubscribe()

    def reset(self) -> GameState:
        """Replace the game with a fresh one and notify the listener.

        The listener of the outgoing game carries over, including one
        registered directly on ``state``.
        """
        self.listener = self.state.listener
        self.state = self.config.new_game(self.listener)
        logger.debug("Started a new game; %s moves first", self.state.current_player)
        if self.listener is not None:
            self.listener(self.state.snapshot())
        return self.state

    def snapshot(self) -> GameSnapshot:
        return self.state.snapshot()
