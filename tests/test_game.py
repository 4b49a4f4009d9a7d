"""Unit tests for XO Arena board rules and outcome evaluation."""

import pytest

from xoarena.game import (
    WINNING_LINES,
    Outcome,
    TicTacToeGame,
    empty_board,
    empty_cells,
    evaluate,
    is_full,
    opponent,
)

X, O, _ = "X", "O", None


def test_empty_board_has_no_result():
    board = empty_board()
    assert len(board) == 9
    assert evaluate(board) == Outcome(winner=None, line=None)
    assert not is_full(board)


@pytest.mark.parametrize("player", ["X", "O"])
@pytest.mark.parametrize("line", WINNING_LINES)
def test_every_line_is_detected(line, player):
    board = empty_board()
    for i in line:
        board[i] = player
    outcome = evaluate(board)
    assert outcome.winner == player
    assert outcome.line == line


def test_open_position_has_no_winner():
    board = [X, _, _, _, O, _, _, _, _]
    assert evaluate(board).winner is None
    assert not is_full(board)
    assert empty_cells(board) == [1, 2, 3, 5, 6, 7, 8]


def test_full_board_without_line_is_draw():
    board = [X, O, X, O, X, O, O, X, O]
    assert evaluate(board).winner is None
    assert is_full(board)


def test_preseeded_middle_column_win():
    board = [_, X, _, _, X, _, _, X, _]
    outcome = evaluate(board)
    assert outcome.winner == "X"
    assert outcome.line == (1, 4, 7)


def test_first_line_in_canonical_order_wins_ties():
    board = [X, X, X, X, _, _, X, _, _]
    assert evaluate(board).line == (0, 1, 2)


def test_evaluate_does_not_touch_board():
    board = [X, X, _, O, O, _, _, _, _]
    snapshot = list(board)
    evaluate(board)
    is_full(board)
    assert board == snapshot


def test_opponent_swaps_marks():
    assert opponent("X") == "O"
    assert opponent("O") == "X"


def test_play_move_alternates_players():
    game = TicTacToeGame()
    game.play_move(4)
    assert game.board[4] == "X"
    assert game.current_player == "O"
    assert game.move_count == 1
    game.play_move(0)
    assert game.board[0] == "O"
    assert game.current_player == "X"


def test_occupied_cell_rejected():
    game = TicTacToeGame()
    game.play_move(4)
    with pytest.raises(ValueError):
        game.play_move(4)


def test_off_board_cell_rejected():
    game = TicTacToeGame()
    with pytest.raises(ValueError):
        game.play_move(9)


def test_no_moves_after_win():
    game = TicTacToeGame()
    for cell in (0, 3, 1, 4, 2):
        game.play_move(cell)
    assert game.winner == "X"
    assert game.is_over
    assert game.available_moves() == []
    with pytest.raises(ValueError):
        game.play_move(8)


def test_win_on_full_board_is_not_a_draw():
    game = TicTacToeGame(board=[X, O, X, O, X, O, O, X, X])
    assert is_full(game.board)
    assert game.winner == "X"
    assert not game.drawn


def test_draw_detection():
    game = TicTacToeGame(board=[X, O, X, O, X, O, O, X, O])
    assert game.drawn
    assert game.is_over


def test_reset_clears_board_and_sets_starter():
    game = TicTacToeGame()
    game.play_move(0)
    game.play_move(1)
    game.reset("O")
    assert game.board == empty_board()
    assert game.current_player == "O"
    assert game.move_count == 0


def test_clone_is_independent():
    game = TicTacToeGame()
    game.play_move(4)
    copy = game.clone()
    copy.play_move(0)
    assert game.board[0] is None
    assert game.current_player == "O"
