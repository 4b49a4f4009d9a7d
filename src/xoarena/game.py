"""Core rules for XO Arena: board model, outcome evaluation and turn state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"
Cell = Optional[Player]  # None for empty
Board = List[Cell]
Line = Tuple[int, int, int]

PLAYERS: Tuple[Player, Player] = ("X", "O")
BOARD_SIZE = 9

# Rows, columns, diagonals. Evaluation order matters for pre-seeded boards.
WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)


@dataclass(frozen=True)
class Outcome:
    """Result of scanning a board: the winning mark and line, if any."""

    winner: Optional[Player] = None
    line: Optional[Line] = None


NO_OUTCOME = Outcome()


def empty_board() -> Board:
    return [None] * BOARD_SIZE


def opponent(player: Player) -> Player:
    return "O" if player == "X" else "X"


def evaluate(board: Sequence[Cell]) -> Outcome:
    """Return the first completed line in canonical order, or no result."""
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v is not None and v == board[b] == board[c]:
            return Outcome(winner=v, line=(a, b, c))
    return NO_OUTCOME


def is_full(board: Sequence[Cell]) -> bool:
    return all(c is not None for c in board)


def empty_cells(board: Sequence[Cell]) -> List[int]:
    return [i for i, c in enumerate(board) if c is None]


# ---------- Game ----------


@dataclass
class TicTacToeGame:
    board: Board = field(default_factory=empty_board)
    current_player: Player = "X"
    move_count: int = 0

    # ---- derived state ----

    @property
    def outcome(self) -> Outcome:
        return evaluate(self.board)

    @property
    def winner(self) -> Optional[Player]:
        return self.outcome.winner

    @property
    def drawn(self) -> bool:
        # A full board that also completes a line counts as won.
        return self.outcome.winner is None and is_full(self.board)

    @property
    def is_over(self) -> bool:
        return self.winner is not None or is_full(self.board)

    def available_moves(self) -> List[int]:
        if self.is_over:
            return []
        return empty_cells(self.board)

    # ---- mutation ----

    def play_move(self, cell: int) -> None:
        """Place the current player's mark on ``cell`` and pass the turn."""
        if self.is_over:
            raise ValueError("Game already finished")
        if not 0 <= cell < BOARD_SIZE:
            raise ValueError(f"Cell index {cell} is off the board")
        if self.board[cell] is not None:
            raise ValueError("Cell already occupied")

        self.board[cell] = self.current_player
        self.move_count += 1
        self.current_player = opponent(self.current_player)

    def reset(self, starter: Player = "X") -> None:
        if starter not in PLAYERS:
            raise ValueError(f"Unknown player {starter!r}")
        self.board = empty_board()
        self.current_player = starter
        self.move_count = 0

    def clone(self) -> "TicTacToeGame":
        return TicTacToeGame(
            board=self.board.copy(),
            current_player=self.current_player,
            move_count=self.move_count,
        )
