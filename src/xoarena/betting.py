"""Simulated bankroll for betting on autoplay matches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .game import PLAYERS, Player

STARTING_BALANCE = 1000
ALLOWED_WAGERS: Tuple[int, ...] = (0, 10, 50, 100)
ALLOWED_MULTIPLIERS: Tuple[int, ...] = (1, 2, 3)
STREAK_BONUS = 5


class BettingError(ValueError):
    """Raised when a bet cannot be placed."""


@dataclass(frozen=True)
class BetResult:
    outcome: str  # "correct", "wrong", "draw" or "no-bet"
    choice: Optional[Player]
    stake: int
    payout: int
    balance: int


@dataclass
class Bankroll:
    """Player balance plus the bet riding on the current match.

    The stake leaves the balance as soon as the bet is placed; ``settle``
    pays it back (draw), pays double plus a streak bonus (correct) or keeps it
    (wrong).
    """

    balance: int = STARTING_BALANCE
    streak: int = 0
    stake: int = 0
    choice: Optional[Player] = None

    @property
    def has_bet(self) -> bool:
        return self.choice is not None

    def stake_for(self, wager: int, multiplier: int = 1, all_in: bool = False) -> int:
        if all_in:
            return self.balance
        return min(self.balance, wager * multiplier)

    def profit_on_win(self) -> int:
        if self.stake <= 0:
            return 0
        return self.stake + max(0, self.streak) * STREAK_BONUS

    def place_bet(
        self,
        choice: Player,
        wager: int = 0,
        multiplier: int = 1,
        all_in: bool = False,
    ) -> int:
        """Back ``choice`` for this match and return the stake deducted."""
        if choice not in PLAYERS:
            raise BettingError(f"Cannot bet on {choice!r}")
        if self.has_bet:
            raise BettingError("A bet is already placed for this match")
        if self.balance <= 0:
            raise BettingError("Bankroll is empty")
        if not all_in:
            if wager not in ALLOWED_WAGERS:
                raise BettingError(f"Unsupported wager {wager}")
            if multiplier not in ALLOWED_MULTIPLIERS:
                raise BettingError(f"Unsupported multiplier {multiplier}")

        stake = self.stake_for(wager, multiplier, all_in)
        self.balance = max(0, self.balance - stake)
        self.stake = stake
        self.choice = choice
        return stake

    def cancel(self) -> int:
        """Void the open bet (match abandoned) and refund its stake."""
        refund = self.stake
        self.balance += refund
        self.stake = 0
        self.choice = None
        return refund

    def settle(self, winner: Optional[Player]) -> BetResult:
        choice, stake = self.choice, self.stake
        payout = 0

        if winner is None:
            outcome = "draw"
        elif choice is None:
            outcome = "no-bet"
        elif choice == winner:
            outcome = "correct"
        else:
            outcome = "wrong"

        if choice is not None and stake > 0:
            if outcome == "draw":
                payout = stake
            elif outcome == "correct":
                # Bonus uses the streak from before this win.
                payout = stake * 2 + max(0, self.streak) * STREAK_BONUS
                self.streak += 1
            else:
                self.streak = 0
            self.balance += payout

        self.stake = 0
        self.choice = None
        return BetResult(
            outcome=outcome,
            choice=choice,
            stake=stake,
            payout=payout,
            balance=self.balance,
        )
