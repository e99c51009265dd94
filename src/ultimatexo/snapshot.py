"""Frozen, exportable views of a game for rendering layers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .game import BOARD_SIZE, Mark, Move

if TYPE_CHECKING:
    from .game import GameState


class GameSnapshot(BaseModel):
    """Copy of everything a renderer needs; never aliases the live game."""

    model_config = ConfigDict(frozen=True)

    board: Tuple[Tuple[Mark, ...], ...]
    outcomes: Tuple[Mark, ...] = Field(min_length=BOARD_SIZE, max_length=BOARD_SIZE)
    current_player: Mark
    forced_square: Optional[int] = Field(
        default=None,
        ge=0,
        le=8,
        description="Sub-board the next move must use; None for a free move",
    )
    history: Tuple[Move, ...] = ()
    winner: Mark = Mark.EMPTY
    drawn: bool = False
    legal_moves: Tuple[Move, ...] = ()

    @field_validator("board")
    @classmethod
    def ensure_nine_by_nine(
        cls, value: Tuple[Tuple[Mark, ...], ...]
    ) -> Tuple[Tuple[Mark, ...], ...]:
        if len(value) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in value):
            raise ValueError("The board must hold 9 sub-boards of 9 cells")
        return value

    @field_validator("current_player")
    @classmethod
    def ensure_player_mark(cls, value: Mark) -> Mark:
        if value is Mark.EMPTY:
            raise ValueError("The player to move must be X or O")
        return value

    @classmethod
    def from_state(cls, state: "GameState") -> "GameSnapshot":
        winner = state.winner()
        return cls(
            board=tuple(tuple(row) for row in state.board()),
            outcomes=tuple(state.outcomes()),
            current_player=state.current_player,
            forced_square=state.forced_square,
            history=state.history(),
            winner=winner,
            drawn=winner is Mark.EMPTY and not state.moves_available(),
            legal_moves=tuple(state.legal_moves()),
        )

    @property
    def is_over(self) -> bool:
        return self.winner is not Mark.EMPTY or self.drawn

    def player_of(self, move_number: int) -> Mark:
        """Mark that played the ``move_number``-th move (0-based) in history."""
        if not 0 <= move_number < len(self.history):
            raise IndexError(f"No move {move_number} in history")
        # The last move belongs to the player who is not on turn
        plies_back = len(self.history) - 1 - move_number
        return self.current_player.opponent if plies_back % 2 == 0 else self.current_player

    def to_payload(self) -> Dict[str, object]:
        """JSON-friendly dict with camelCase keys and ``""`` for empty cells."""

        def cell(mark: Mark) -> str:
            return mark.value if mark is not Mark.EMPTY else ""

        boards: List[Dict[str, object]] = []
        for index, (cells, outcome) in enumerate(zip(self.board, self.outcomes)):
            boards.append(
                {
                    "index": index,
                    "cells": [cell(c) for c in cells],
                    "winner": outcome.value if outcome is not Mark.EMPTY else None,
                }
            )

        return {
            "boards": boards,
            "currentPlayer": self.current_player.value,
            "forcedSquare": self.forced_square,
            "moveLog": [
                {
                    "player": self.player_of(n).value,
                    "boardIndex": move.super_square,
                    "cellIndex": move.sub_square,
                }
                for n, move in enumerate(self.history)
            ],
            "availableMoves": [
                {"board": move.super_square, "cell": move.sub_square}
                for move in self.legal_moves
            ],
            "winner": self.winner.value if self.winner is not Mark.EMPTY else None,
            "drawn": self.drawn,
        }
