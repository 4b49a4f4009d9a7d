"""XO Arena package exposing game rules, the move engine, and the web application."""

from .ai import Difficulty, MoveEngine, best_move
from .game import TicTacToeGame, evaluate, is_full
from .ui import app

__all__ = [
    "Difficulty",
    "MoveEngine",
    "TicTacToeGame",
    "app",
    "best_move",
    "evaluate",
    "is_full",
]
