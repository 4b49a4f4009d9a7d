"""Move selection for XO Arena: exhaustive minimax plus cheaper difficulty tiers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence
import random

from .game import (
    CENTER,
    CORNERS,
    Board,
    Cell,
    Player,
    empty_cells,
    evaluate,
    is_full,
    opponent,
)

WIN_SCORE = 10


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class RandomSource(Protocol):
    """Anything with ``random.Random.choice`` semantics."""

    def choice(self, seq: Sequence[Any]) -> Any: ...


# ---------- hard: minimax ----------


def minimax(board: Board, current: Player, perspective: Player, depth: int) -> int:
    """Score ``board`` for ``perspective`` with ``current`` to move.

    Wins are worth ``10 - depth`` and losses ``depth - 10`` so the search
    prefers the quickest win and the slowest loss. ``board`` is mutated while
    searching and restored before returning.
    """
    winner = evaluate(board).winner
    if winner is not None:
        return WIN_SCORE - depth if winner == perspective else depth - WIN_SCORE
    if is_full(board):
        return 0

    maximizing = current == perspective
    best = -WIN_SCORE - 1 if maximizing else WIN_SCORE + 1
    nxt = opponent(current)
    for i in range(len(board)):
        if board[i] is not None:
            continue
        board[i] = current
        score = minimax(board, nxt, perspective, depth + 1)
        board[i] = None
        best = max(best, score) if maximizing else min(best, score)
    return best


def score_moves(board: Sequence[Cell], player: Player) -> Dict[int, int]:
    """Root minimax score of every empty cell for ``player``."""
    work: Board = list(board)
    scores: Dict[int, int] = {}
    for i in empty_cells(work):
        work[i] = player
        scores[i] = minimax(work, opponent(player), player, 0)
        work[i] = None
    return scores


def best_move(
    board: Sequence[Cell], player: Player, rng: Optional[RandomSource] = None
) -> Optional[int]:
    """Pick uniformly among the optimal cells, or None on a full board."""
    scores = score_moves(board, player)
    if not scores:
        return None
    top = max(scores.values())
    ties = [i for i, s in scores.items() if s == top]
    return (rng or random).choice(ties)


# ---------- easy / medium ----------


def random_move(
    board: Sequence[Cell], rng: Optional[RandomSource] = None
) -> Optional[int]:
    empties = empty_cells(board)
    if not empties:
        return None
    return (rng or random).choice(empties)


def find_winning_move(board: Sequence[Cell], player: Player) -> Optional[int]:
    """First empty cell (ascending) that completes a line for ``player``."""
    work: Board = list(board)
    for i in empty_cells(work):
        work[i] = player
        won = evaluate(work).winner == player
        work[i] = None
        if won:
            return i
    return None


def medium_move(
    board: Sequence[Cell], player: Player, rng: Optional[RandomSource] = None
) -> Optional[int]:
    """Win, block, centre, random corner, random cell; first rule that applies."""
    win_now = find_winning_move(board, player)
    if win_now is not None:
        return win_now

    block = find_winning_move(board, opponent(player))
    if block is not None:
        return block

    if board[CENTER] is None:
        return CENTER

    corners: List[int] = [i for i in CORNERS if board[i] is None]
    if corners:
        return (rng or random).choice(corners)

    return random_move(board, rng)


def choose_move(
    board: Sequence[Cell],
    player: Player,
    difficulty: Difficulty | str,
    rng: Optional[RandomSource] = None,
) -> Optional[int]:
    difficulty = Difficulty(difficulty)
    if difficulty is Difficulty.EASY:
        return random_move(board, rng)
    if difficulty is Difficulty.MEDIUM:
        return medium_move(board, player, rng)
    return best_move(board, player, rng)


# ---------- engine ----------


@dataclass
class MoveEngine:
    """Difficulty-aware move picker bound to one random source.

    The engine holds no game state: the board, the player to move and the
    difficulty are supplied on every call, and the board is never mutated.
      - MoveEngine(rng=random.Random(7))
      - choose(board, "O", Difficulty.HARD) -> cell index or None
    """

    rng: RandomSource = field(default_factory=random.Random, repr=False)

    def choose(
        self, board: Sequence[Cell], player: Player, difficulty: Difficulty | str
    ) -> Optional[int]:
        return choose_move(board, player, difficulty, self.rng)

    def suggest(self, board: Sequence[Cell], player: Player) -> Optional[int]:
        """Hint for a human player: the move hard difficulty would make."""
        return best_move(board, player, self.rng)
