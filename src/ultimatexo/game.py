"""Core rules for UltimateXO (Ultimate Tic-Tac-Toe).

The meta-board holds nine 3x3 sub-boards. A move is addressed as
``(super_square, sub_square)``: ``super_square`` picks the sub-board and
``sub_square`` the cell inside it, both numbered 0..8 left to right, top to
bottom (``index = row * 3 + col``).

``GameState.is_playable`` only answers whether a cell can hold a mark. A move
is legal when it is playable *and* lands in the forced sub-board (or the
forced square is ``None``); ``GameState.is_legal`` composes the two. The
mutators trust the caller to have checked legality.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, NamedTuple, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from .snapshot import GameSnapshot

logger = logging.getLogger(__name__)

BOARD_SIZE = 9
CENTER_SQUARE = 4

# Row i precedes column i; the first line found decides a square.
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (0, 3, 6),
    (3, 4, 5),
    (1, 4, 7),
    (6, 7, 8),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


# ---------- Errors ----------


class UltimateXOError(ValueError):
    """Base class for every error raised by the engine."""


class InvalidInputError(UltimateXOError):
    """Raised when a square to evaluate does not hold exactly nine cells."""


class InvalidCoordinateError(UltimateXOError):
    """Raised when a square index falls outside 0..8."""


class IllegalMoveError(UltimateXOError):
    """Raised by a session when a move breaks the placement rules."""


class GameOverError(UltimateXOError):
    """Raised by a session when a move is attempted after the game ended."""


# ---------- Marks and coordinates ----------


class Mark(str, Enum):
    EMPTY = " "
    X = "X"
    O = "O"

    @property
    def opponent(self) -> "Mark":
        if self is Mark.X:
            return Mark.O
        if self is Mark.O:
            return Mark.X
        raise UltimateXOError("An empty cell has no opponent")

    def __str__(self) -> str:
        return self.value


class Move(NamedTuple):
    super_square: int
    sub_square: int


Listener = Callable[["GameSnapshot"], None]


def _check_square(value: int, name: str) -> int:
    if not 0 <= value < BOARD_SIZE:
        raise InvalidCoordinateError(f"{name} {value} is outside 0..8")
    return value


def to_index(row: int, col: int) -> int:
    """Row-major index of ``(row, col)`` on a 3x3 grid."""
    if not (0 <= row < 3 and 0 <= col < 3):
        raise InvalidCoordinateError(f"({row}, {col}) is outside the 3x3 grid")
    return row * 3 + col


def from_index(index: int) -> Tuple[int, int]:
    return divmod(_check_square(index, "index"), 3)


def global_cell(super_square: int, sub_square: int) -> Tuple[int, int]:
    """Map a move to its ``(row, col)`` on the flat 9x9 grid."""
    big_row, big_col = from_index(super_square)
    row, col = from_index(sub_square)
    return big_row * 3 + row, big_col * 3 + col


def from_global_cell(row: int, col: int) -> Move:
    if not (0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE):
        raise InvalidCoordinateError(f"({row}, {col}) is outside the 9x9 grid")
    return Move(to_index(row // 3, col // 3), to_index(row % 3, col % 3))


def winner_of_square(cells: Sequence[Mark]) -> Mark:
    """Return the mark holding three in a row in ``cells``, or ``Mark.EMPTY``.

    Lines are tried in ``WINNING_LINES`` order. Works for a sub-board and for the
    meta-board alike, since both are nine marks.
    """
    if len(cells) != BOARD_SIZE:
        raise InvalidInputError(
            f"A square has exactly 9 cells, got {len(cells)}"
        )
    for a, b, c in WINNING_LINES:
        v = cells[a]
        if v != Mark.EMPTY and v == cells[b] == cells[c]:
            return Mark(v)
    return Mark.EMPTY


# ---------- Game ----------


@dataclass
class GameState:
    """Board, turn, forced square and move history of one game.

    Only ``place_marker`` and ``undo_last_move`` mutate a state. Starting a
    new game means building a new ``GameState``; there is no in-place reset.
    """

    first_player: Mark = Mark.X
    # When set, undo points the forced square at the undone move's sub-board
    # instead of restoring the one in effect before that move.
    legacy_undo: bool = False
    notify_on_undo: bool = True
    listener: Optional[Listener] = field(default=None, repr=False, compare=False)

    _board: List[List[Mark]] = field(init=False, repr=False)
    _outcomes: List[Mark] = field(init=False, repr=False)
    _turn: Mark = field(init=False, repr=False)
    _nominal_forced: int = field(default=CENTER_SQUARE, init=False, repr=False)
    _history: List[Move] = field(init=False, repr=False)
    # Nominal forced square before each move in _history, index for index
    _forced_before: List[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        try:
            self.first_player = Mark(self.first_player)
        except ValueError as exc:
            raise UltimateXOError(
                f"The first player must be X or O, got {self.first_player!r}"
            ) from exc
        if self.first_player is Mark.EMPTY:
            raise UltimateXOError("The first player must be X or O")
        self._board = [[Mark.EMPTY] * BOARD_SIZE for _ in range(BOARD_SIZE)]
        self._outcomes = [Mark.EMPTY] * BOARD_SIZE
        self._turn = self.first_player
        self._history = []
        self._forced_before = []

    # ---- observer ----

    def subscribe(self, listener: Listener) -> None:
        """Register the single consumer notified after each accepted change."""
        self.listener = listener

    def unsubscribe(self) -> None:
        self.listener = None

    def _notify(self) -> None:
        if self.listener is not None:
            self.listener(self.snapshot())

    # ---- queries ----

    @property
    def current_player(self) -> Mark:
        return self._turn

    turn = current_player

    @property
    def is_x_turn(self) -> bool:
        return self._turn is Mark.X

    @property
    def forced_square(self) -> Optional[int]:
        """Sub-board the player to move must use, or ``None`` for a free move.

        The move is free on an empty board and whenever the nominal target is
        already decided or full.
        """
        target = self._nominal_forced
        if (
            self.is_square_full(target)
            or self.is_empty()
            or self._outcomes[target] is not Mark.EMPTY
        ):
            return None
        return target

    @property
    def move_count(self) -> int:
        return len(self._history)

    @property
    def last_move(self) -> Optional[Move]:
        return self._history[-1] if self._history else None

    def is_empty(self) -> bool:
        return not self._history

    def is_square_full(self, super_square: int) -> bool:
        _check_square(super_square, "super square")
        return all(c is not Mark.EMPTY for c in self._board[super_square])

    def is_playable(self, super_square: int, sub_square: int) -> bool:
        """True if the cell is empty and its sub-board is undecided.

        Negative coordinates mean "nothing selected" and are never playable.
        The forced square is not consulted here; see ``is_legal``.
        """
        if super_square < 0 or sub_square < 0:
            return False
        _check_square(super_square, "super square")
        _check_square(sub_square, "sub square")
        return (
            self._board[super_square][sub_square] is Mark.EMPTY
            and self._outcomes[super_square] is Mark.EMPTY
        )

    def is_legal(self, super_square: int, sub_square: int) -> bool:
        if not self.is_playable(super_square, sub_square):
            return False
        forced = self.forced_square
        return forced is None or forced == super_square

    def moves_available(self) -> bool:
        return any(
            self.is_playable(i, j)
            for i in range(BOARD_SIZE)
            for j in range(BOARD_SIZE)
        )

    def legal_moves(self) -> List[Move]:
        """All legal moves for the player to move, in board order."""
        forced = self.forced_square
        squares = range(BOARD_SIZE) if forced is None else (forced,)
        return [
            Move(i, j)
            for i in squares
            for j in range(BOARD_SIZE)
            if self.is_playable(i, j)
        ]

    def winner(self) -> Mark:
        return winner_of_square(self._outcomes)

    def is_draw(self) -> bool:
        return self.winner() is Mark.EMPTY and not self.moves_available()

    def is_over(self) -> bool:
        return self.winner() is not Mark.EMPTY or not self.moves_available()

    winner_of_square = staticmethod(winner_of_square)

    # ---- copies ----

    def board(self) -> List[List[Mark]]:
        return [row.copy() for row in self._board]

    def outcomes(self) -> List[Mark]:
        return self._outcomes.copy()

    def history(self) -> Tuple[Move, ...]:
        return tuple(self._history)

    def snapshot(self) -> "GameSnapshot":
        from .snapshot import GameSnapshot

        return GameSnapshot.from_state(self)

    def clone(self, keep_listener: bool = True) -> "GameState":
        """Independent copy of this game.

        The copy shares the listener unless ``keep_listener`` is false, so moves
        tried on a kept-listener clone reach the same renderer.
        """
        g = GameState(
            first_player=self.first_player,
            legacy_undo=self.legacy_undo,
            notify_on_undo=self.notify_on_undo,
            listener=self.listener if keep_listener else None,
        )
        g._board = self.board()
        g._outcomes = self.outcomes()
        g._turn = self._turn
        g._nominal_forced = self._nominal_forced
        g._history = list(self._history)
        g._forced_before = list(self._forced_before)
        return g

    # ---- mutators ----

    def place_marker(self, super_square: int, sub_square: int) -> None:
        """Put the current player's mark on a cell and pass the turn.

        An occupied cell is left untouched and nobody is notified.
        """
        _check_square(super_square, "super square")
        _check_square(sub_square, "sub square")
        if self._board[super_square][sub_square] is not Mark.EMPTY:
            logger.debug(
                "Ignoring placement on occupied cell (%d, %d)",
                super_square,
                sub_square,
            )
            return

        player = self._turn
        self._history.append(Move(super_square, sub_square))
        self._forced_before.append(self._nominal_forced)
        self._board[super_square][sub_square] = player
        # The next player is sent to the sub-board matching the cell played
        self._nominal_forced = sub_square
        self._turn = player.opponent
        self._outcomes[super_square] = winner_of_square(self._board[super_square])
        logger.debug(
            "%s played (%d, %d); move %d",
            player,
            super_square,
            sub_square,
            len(self._history),
        )
        self._notify()

    def undo_last_move(self) -> Optional[Move]:
        """Take back the most recent move and return it (``None`` if none)."""
        if not self._history:
            return None

        move = self._history.pop()
        forced_before = self._forced_before.pop()
        self._board[move.super_square][move.sub_square] = Mark.EMPTY
        self._nominal_forced = (
            move.super_square if self.legacy_undo else forced_before
        )
        self._turn = self._turn.opponent
        self._recompute_outcomes()
        logger.debug("Undid (%d, %d)", move.super_square, move.sub_square)
        if self.notify_on_undo:
            self._notify()
        return move

    # ---- helpers ----

    def _recompute_outcomes(self) -> None:
        self._outcomes = [winner_of_square(cells) for cells in self._board]
