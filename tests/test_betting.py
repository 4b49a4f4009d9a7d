"""Tests for the simulated bankroll."""

import pytest

from xoarena.betting import STARTING_BALANCE, Bankroll, BettingError


def test_stake_leaves_balance_immediately():
    bank = Bankroll()
    stake = bank.place_bet("X", wager=50, multiplier=2)
    assert stake == 100
    assert bank.balance == STARTING_BALANCE - 100
    assert bank.stake == 100
    assert bank.choice == "X"


def test_correct_bet_pays_double_plus_streak_bonus():
    bank = Bankroll(streak=2)
    bank.place_bet("O", wager=100)
    assert bank.profit_on_win() == 110
    result = bank.settle("O")
    assert result.outcome == "correct"
    assert result.payout == 210
    assert bank.balance == STARTING_BALANCE + 110
    assert bank.streak == 3
    assert bank.stake == 0
    assert bank.choice is None


def test_first_win_has_no_bonus():
    bank = Bankroll()
    bank.place_bet("X", wager=10)
    result = bank.settle("X")
    assert result.payout == 20
    assert bank.balance == STARTING_BALANCE + 10
    assert bank.streak == 1


def test_wrong_bet_loses_stake_and_streak():
    bank = Bankroll(streak=4)
    bank.place_bet("X", wager=50)
    result = bank.settle("O")
    assert result.outcome == "wrong"
    assert result.payout == 0
    assert bank.balance == STARTING_BALANCE - 50
    assert bank.streak == 0


def test_draw_refunds_stake():
    bank = Bankroll(streak=1)
    bank.place_bet("X", wager=100, multiplier=3)
    result = bank.settle(None)
    assert result.outcome == "draw"
    assert result.payout == 300
    assert bank.balance == STARTING_BALANCE
    assert bank.streak == 1


def test_no_bet_outcome():
    bank = Bankroll()
    result = bank.settle("X")
    assert result.outcome == "no-bet"
    assert result.payout == 0
    assert bank.balance == STARTING_BALANCE


def test_zero_wager_still_records_choice():
    bank = Bankroll(streak=3)
    bank.place_bet("O")
    result = bank.settle("O")
    assert result.outcome == "correct"
    assert result.payout == 0
    assert bank.streak == 3


def test_all_in_and_capped_stake():
    bank = Bankroll(balance=120)
    assert bank.stake_for(100, 3) == 120
    assert bank.place_bet("X", all_in=True) == 120
    assert bank.balance == 0


def test_invalid_bets_rejected():
    bank = Bankroll()
    with pytest.raises(BettingError):
        bank.place_bet("Z", wager=10)
    with pytest.raises(BettingError):
        bank.place_bet("X", wager=25)
    with pytest.raises(BettingError):
        bank.place_bet("X", wager=10, multiplier=5)
    bank.place_bet("X", wager=10)
    with pytest.raises(BettingError):
        bank.place_bet("O", wager=10)


def test_empty_bankroll_cannot_bet():
    bank = Bankroll(balance=0)
    with pytest.raises(BettingError):
        bank.place_bet("X", wager=10)


def test_cancel_refunds_open_bet():
    bank = Bankroll()
    bank.place_bet("X", wager=100, multiplier=2)
    assert bank.cancel() == 200
    assert bank.balance == STARTING_BALANCE
    assert not bank.has_bet


def test_free_bet_shows_no_profit():
    bank = Bankroll(streak=2)
    bank.place_bet("X", wager=0)
    assert bank.profit_on_win() == 0
    assert bank.settle("X").payout == 0


def test_profit_on_win_matches_payout():
    bank = Bankroll(streak=2)
    bank.place_bet("X", wager=50)
    shown = bank.profit_on_win()
    result = bank.settle("X")
    assert shown == result.payout - result.stake
