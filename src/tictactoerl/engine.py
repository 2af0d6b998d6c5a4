"""Core rules engine for tic-tac-toe.

The engine is deterministic and UI-agnostic so it can be shared by the
trainer and the terminal front end. Cells are indexed 0-8 in row-major
order:

    0 1 2
    3 4 5
    6 7 8
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

BOARD_SIZE = 3
CELL_COUNT = BOARD_SIZE * BOARD_SIZE

ROWS: Sequence[Tuple[int, int, int]] = ((0, 1, 2), (3, 4, 5), (6, 7, 8))
COLUMNS: Sequence[Tuple[int, int, int]] = ((0, 3, 6), (1, 4, 7), (2, 5, 8))
DIAGONALS: Sequence[Tuple[int, int, int]] = ((0, 4, 8), (2, 4, 6))
# Checked in this order: rows, columns, diagonals.
LINES: Sequence[Tuple[int, int, int]] = tuple(ROWS) + tuple(COLUMNS) + tuple(DIAGONALS)


class Mark(str, Enum):
    EMPTY = "."
    X = "X"
    O = "O"

    def opponent(self) -> "Mark":
        if self is Mark.EMPTY:
            raise ValueError("EMPTY has no opponent")
        return Mark.O if self is Mark.X else Mark.X


class Outcome(str, Enum):
    X_WINS = "X"
    O_WINS = "O"
    DRAW = "draw"

    @classmethod
    def for_mark(cls, mark: Mark) -> "Outcome":
        if mark is Mark.X:
            return cls.X_WINS
        if mark is Mark.O:
            return cls.O_WINS
        raise ValueError("EMPTY cannot win a game")

    @property
    def winner(self) -> Optional[Mark]:
        if self is Outcome.DRAW:
            return None
        return Mark(self.value)


def _empty_board() -> List[Mark]:
    return [Mark.EMPTY] * CELL_COUNT


@dataclass
class GameState:
    board: List[Mark] = field(default_factory=_empty_board)
    turn: Mark = Mark.X
    history: List[int] = field(default_factory=list)

    @property
    def move_count(self) -> int:
        return len(self.history)

    def reset(self) -> None:
        self.board = _empty_board()
        self.turn = Mark.X
        self.history = []

    def legal_moves(self) -> List[int]:
        """Return empty cell indices in ascending order."""
        return [idx for idx, mark in enumerate(self.board) if mark is Mark.EMPTY]

    def is_legal(self, cell: object) -> bool:
        if isinstance(cell, bool) or not isinstance(cell, int):
            return False
        if not 0 <= cell < CELL_COUNT:
            return False
        if self.board[cell] is not Mark.EMPTY:
            return False
        is_over, _ = self.check_terminal()
        return not is_over

    def apply_move(self, cell: int) -> None:
        if isinstance(cell, bool) or not isinstance(cell, int):
            raise ValueError(f"Cell must be an integer, got {cell!r}")
        if not 0 <= cell < CELL_COUNT:
            raise ValueError(f"Cell out of range: {cell}")
        if self.board[cell] is not Mark.EMPTY:
            raise ValueError(f"Cell {cell} is already occupied by {self.board[cell].value}")
        if self.check_terminal()[0]:
            raise ValueError("Game already finished")
        self.board[cell] = self.turn
        self.history.append(cell)
        self.turn = self.turn.opponent()

    def check_terminal(self) -> Tuple[bool, Optional[Outcome]]:
        """Return (is_over, outcome); outcome is None while the game is running."""
        for a, b, c in LINES:
            mark = self.board[a]
            if mark is not Mark.EMPTY and mark is self.board[b] and mark is self.board[c]:
                return True, Outcome.for_mark(mark)
        if Mark.EMPTY not in self.board:
            return True, Outcome.DRAW
        return False, None

    def snapshot(self) -> Tuple[Mark, ...]:
        return tuple(self.board)


def new_game() -> GameState:
    return GameState()


def replay(moves: Iterable[int]) -> GameState:
    """Rebuild the position reached by playing moves from an empty board."""
    state = new_game()
    for cell in moves:
        state.apply_move(cell)
    return state
