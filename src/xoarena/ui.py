"""FastAPI-powered web UI for playing XO Arena in the browser."""

from __future__ import annotations

import logging
import os
import random
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

import threading

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .ai import Difficulty, MoveEngine
from .betting import (
    ALLOWED_MULTIPLIERS,
    ALLOWED_WAGERS,
    Bankroll,
    BetResult,
    BettingError,
)
from .game import PLAYERS, Player, TicTacToeGame

logger = logging.getLogger(__name__)


HUMAN_PLAYER: Player = "X"
AI_PLAYER: Player = "O"
AI_THINK_DELAY: Tuple[float, float] = (0.65, 1.2)
BET_WINDOW_SECONDS = 10.0


def _env_seed() -> Optional[int]:
    raw = os.environ.get("XOARENA_SEED")
    return int(raw) if raw else None


ENGINE_SEED: Optional[int] = _env_seed()


@dataclass
class GameSession:
    """Container for one board, its AI configuration and the bankroll."""

    game: TicTacToeGame
    engine: MoveEngine
    auto: bool = False
    difficulty: Dict[Player, Difficulty] = field(
        default_factory=lambda: {"X": Difficulty.HARD, "O": Difficulty.HARD}
    )
    betting: bool = False
    bank: Bankroll = field(default_factory=Bankroll)
    bet_open: bool = False
    bet_deadline: float = 0.0
    last_bet_result: Optional[BetResult] = None
    settled: bool = False
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    # Bumped on reset; delayed AI turns from an older epoch are dropped.
    epoch: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(
    title="XO Arena", description="Tic-tac-toe against tiered minimax opponents"
)


# ---------- request payloads ----------


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    model_config = ConfigDict(populate_by_name=True)

    auto: bool = Field(default=False, description="Let the AI play both sides")
    difficulty_x: Difficulty = Field(default=Difficulty.HARD, alias="difficultyX")
    difficulty_o: Difficulty = Field(default=Difficulty.HARD, alias="difficultyO")
    betting: bool = False


class MoveRequest(BaseModel):
    """Request payload for submitting a human move."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


class ResetRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    randomize_starter: bool = Field(default=False, alias="randomizeStarter")


class SettingsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    auto: Optional[bool] = None
    difficulty_x: Optional[Difficulty] = Field(default=None, alias="difficultyX")
    difficulty_o: Optional[Difficulty] = Field(default=None, alias="difficultyO")
    betting: Optional[bool] = None


class BetRequest(BaseModel):
    """Request payload for backing a side, or skipping the bet."""

    model_config = ConfigDict(populate_by_name=True)

    choice: Optional[Literal["X", "O"]] = None
    wager: int = 0
    multiplier: int = 1
    all_in: bool = Field(default=False, alias="allIn")
    skip: bool = False

    @field_validator("wager")
    @classmethod
    def ensure_supported_wager(cls, value: int) -> int:
        if value not in ALLOWED_WAGERS:
            raise ValueError(
                f"Unsupported wager {value}. "
                f"Choose one of {', '.join(map(str, ALLOWED_WAGERS))}."
            )
        return value

    @field_validator("multiplier")
    @classmethod
    def ensure_supported_multiplier(cls, value: int) -> int:
        if value not in ALLOWED_MULTIPLIERS:
            raise ValueError(
                f"Unsupported multiplier {value}. "
                f"Choose one of {', '.join(map(str, ALLOWED_MULTIPLIERS))}."
            )
        return value

    @model_validator(mode="after")
    def ensure_choice_unless_skipping(self) -> "BetRequest":
        if not self.skip and self.choice is None:
            raise ValueError("Pick a side to bet on, or skip the bet")
        return self


# ---------- session helpers ----------


def _create_session(request: NewGameRequest) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(
        game=TicTacToeGame(),
        engine=MoveEngine(rng=random.Random(ENGINE_SEED)),
        auto=request.auto,
        difficulty={"X": request.difficulty_x, "O": request.difficulty_o},
        betting=request.betting,
    )
    _open_bet_window(session)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "Created game %s (auto=%s, X=%s, O=%s, betting=%s)",
        session_id,
        session.auto,
        request.difficulty_x.value,
        request.difficulty_o.value,
        session.betting,
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _open_bet_window(session: GameSession) -> None:
    session.bet_open = session.betting and session.bank.balance > 0
    session.bet_deadline = (
        time.time() + BET_WINDOW_SECONDS if session.bet_open else 0.0
    )


def _expire_bet_window(session: GameSession) -> None:
    """Close an unanswered bet window by backing a random side for free."""

    if session.bet_open and time.time() >= session.bet_deadline:
        choice = session.engine.rng.choice(PLAYERS)
        session.bank.place_bet(choice)
        session.bet_open = False
        logger.info("Bet window expired; backing %s with no stake", choice)


def _is_ai_controlled(session: GameSession, player: Player) -> bool:
    return session.auto or player == AI_PLAYER


def _effective_difficulty(session: GameSession, player: Player) -> Difficulty:
    # Betting matches are played loosely so the result is not a foregone draw.
    if session.betting:
        return Difficulty.EASY
    return session.difficulty[player]


def _ai_should_move(session: GameSession) -> bool:
    game = session.game
    return (
        not game.is_over
        and not session.bet_open
        and _is_ai_controlled(session, game.current_player)
    )


def _claim_ai_turn(session: GameSession) -> Optional[int]:
    """Mark an AI turn as pending; return its epoch, or None if not needed.

    Must be called with the session lock held.
    """

    if session.ai_pending or not _ai_should_move(session):
        return None
    session.ai_pending = True
    return session.epoch


def _schedule_ai(
    game_id: str, epoch: Optional[int], background_tasks: Optional[BackgroundTasks]
) -> None:
    if epoch is not None and background_tasks is not None:
        background_tasks.add_task(_run_ai_turns, game_id, epoch)


def _finish_game(game_id: str, session: GameSession) -> None:
    if session.settled:
        return
    game = session.game
    result = session.bank.settle(game.winner)
    session.settled = True
    if session.betting or result.stake:
        session.last_bet_result = result
    logger.info(
        "Game %s finished: %s; bet %s (payout %d, balance %d)",
        game_id,
        f"{game.winner} wins" if game.winner else "draw",
        result.outcome,
        result.payout,
        result.balance,
    )


def _record_move(game_id: str, session: GameSession, cell: int) -> None:
    player = session.game.current_player
    session.game.play_move(cell)
    session.move_log.append({"player": player, "cellIndex": cell})
    if session.game.is_over:
        _finish_game(game_id, session)


def _run_ai_turns(game_id: str, epoch: int) -> None:
    """Play AI moves after a think delay until a human must act.

    In autoplay this keeps going until the game ends. A reset in the meantime
    changes the session epoch and the pending turn is abandoned.
    """

    session = SESSIONS.get(game_id)
    if not session:
        return

    while True:
        time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

        with session.lock:
            if session.epoch != epoch:
                logger.debug("Dropping stale AI turn for game %s", game_id)
                return
            keep_going = False
            try:
                if _ai_should_move(session):
                    game = session.game
                    player = game.current_player
                    difficulty = _effective_difficulty(session, player)
                    cell = session.engine.choose(game.board, player, difficulty)
                    if cell is not None:
                        _record_move(game_id, session, cell)
                        logger.debug(
                            "AI %s (%s) played %d in game %s",
                            player,
                            difficulty.value,
                            cell,
                            game_id,
                        )
                        keep_going = _ai_should_move(session)
            finally:
                if not keep_going:
                    session.ai_pending = False
        if not keep_going:
            return


def _bank_state(bank: Bankroll) -> Dict[str, object]:
    return {
        "balance": bank.balance,
        "streak": bank.streak,
        "stake": bank.stake,
        "choice": bank.choice,
        "profitOnWin": bank.profit_on_win(),
    }


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        outcome = game.outcome
        result = session.last_bet_result

        state: Dict[str, object] = {
            "id": game_id,
            "board": [c or "" for c in game.board],
            "currentPlayer": game.current_player,
            "winner": outcome.winner,
            "winningLine": list(outcome.line) if outcome.line else None,
            "drawn": game.drawn,
            "moveCount": game.move_count,
            "auto": session.auto,
            "difficultyX": session.difficulty["X"].value,
            "difficultyO": session.difficulty["O"].value,
            "betting": session.betting,
            "betOpen": session.bet_open,
            "betSecondsLeft": (
                max(0, round(session.bet_deadline - time.time()))
                if session.bet_open
                else 0
            ),
            "aiPending": session.ai_pending,
            "moveLog": list(session.move_log),
            "bank": _bank_state(session.bank),
            "lastBetResult": (
                {
                    "outcome": result.outcome,
                    "choice": result.choice,
                    "stake": result.stake,
                    "payout": result.payout,
                    "balance": result.balance,
                }
                if result
                else None
            ),
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        game = session.game
        if game.is_over:
            raise HTTPException(status_code=400, detail="Game already finished")
        if session.auto:
            raise HTTPException(status_code=400, detail="Autoplay is on")
        _expire_bet_window(session)
        if session.bet_open:
            raise HTTPException(status_code=400, detail="Betting is still open")
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        if game.current_player != HUMAN_PLAYER:
            raise HTTPException(status_code=400, detail="It is not your turn")

        try:
            _record_move(game_id, session, cell_index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        epoch = _claim_ai_turn(session)

    _schedule_ai(game_id, epoch, background_tasks)


def _reset_session(
    game_id: str,
    session: GameSession,
    randomize_starter: bool,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        if not session.settled and session.bank.has_bet:
            refund = session.bank.cancel()
            logger.info("Game %s reset mid-match; refunded %d", game_id, refund)
        starter = (
            session.engine.rng.choice(PLAYERS) if randomize_starter else HUMAN_PLAYER
        )
        session.game.reset(starter)
        session.epoch += 1
        session.ai_pending = False
        session.settled = False
        session.move_log.clear()
        session.last_bet_result = None
        _open_bet_window(session)
        epoch = _claim_ai_turn(session)

    logger.info("Game %s reset; %s to move", game_id, starter)
    _schedule_ai(game_id, epoch, background_tasks)


# ---------- routes ----------


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(request)
    with session.lock:
        epoch = _claim_ai_turn(session)
    _schedule_ai(game_id, epoch, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        _expire_bet_window(session)
        epoch = _claim_ai_turn(session)
    _schedule_ai(game_id, epoch, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(
    game_id: str,
    background_tasks: BackgroundTasks,
    request: Optional[ResetRequest] = None,
) -> Dict[str, object]:
    session = _get_session(game_id)
    randomize = request.randomize_starter if request else False
    _reset_session(game_id, session, randomize, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/settings")
def update_settings(
    game_id: str, request: SettingsRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        if request.auto is not None:
            session.auto = request.auto
        if request.difficulty_x is not None:
            session.difficulty["X"] = request.difficulty_x
        if request.difficulty_o is not None:
            session.difficulty["O"] = request.difficulty_o
        if request.betting is not None:
            session.betting = request.betting
            if not request.betting:
                session.bet_open = False
        epoch = _claim_ai_turn(session)
    _schedule_ai(game_id, epoch, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}/hint")
def get_hint(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        game = session.game
        if game.is_over:
            raise HTTPException(status_code=400, detail="Game already finished")
        if session.auto or game.current_player != HUMAN_PLAYER:
            raise HTTPException(status_code=400, detail="It is not your turn")
        board = list(game.board)
        engine = session.engine
    cell = engine.suggest(board, HUMAN_PLAYER)
    return {"cellIndex": cell}


@app.post("/api/game/{game_id}/bet")
def place_bet(
    game_id: str, request: BetRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        _expire_bet_window(session)
        if not session.bet_open:
            raise HTTPException(status_code=400, detail="Betting is closed")
        if not request.skip:
            try:
                stake = session.bank.place_bet(
                    request.choice,  # type: ignore[arg-type]
                    wager=request.wager,
                    multiplier=request.multiplier,
                    all_in=request.all_in,
                )
            except BettingError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
            logger.info("Game %s: bet %d on %s", game_id, stake, request.choice)
        session.bet_open = False
        epoch = _claim_ai_turn(session)
    _schedule_ai(game_id, epoch, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>XO Arena</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem;
        background: radial-gradient(circle at top, #f2f5ff, #d6ddff 70%);
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: 2rem;
        width: min(560px, 100%);
      }
      h1 {
        margin: 0 0 0.5rem;
        text-align: center;
        letter-spacing: 0.06em;
      }
      .status {
        text-align: center;
        font-weight: 600;
        min-height: 1.5rem;
      }
      .controls {
        display: flex;
        flex-wrap: wrap;
        gap: 0.75rem;
        justify-content: center;
        margin: 1rem 0;
      }
      button,
      select {
        font-size: 0.95rem;
        padding: 0.45rem 0.85rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
        font-family: inherit;
      }
      button:disabled {
        cursor: default;
        opacity: 0.6;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.5rem;
        width: min(320px, 100%);
        margin: 1rem auto;
      }
      .cell {
        aspect-ratio: 1;
        font-size: 2.5rem;
        font-weight: 700;
        border-radius: 14px;
      }
      .cell.x {
        color: #2563eb;
      }
      .cell.o {
        color: #e11d48;
      }
      .cell.win {
        background: #d1fae5;
      }
      .cell.hint {
        outline: 3px dashed #f59e0b;
      }
      .bank,
      .bet-panel,
      .result {
        text-align: center;
        margin: 0.75rem 0;
      }
      .hidden {
        display: none;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>XO Arena</h1>
      <p class=\"status\" id=\"status\"></p>
      <div class=\"controls\">
        <label><input type=\"checkbox\" id=\"auto\" /> Autoplay</label>
        <label><input type=\"checkbox\" id=\"betting\" /> Betting</label>
        <label>AI X
          <select id=\"difficultyX\">
            <option value=\"easy\">Easy</option>
            <option value=\"medium\">Medium</option>
            <option value=\"hard\" selected>Hard</option>
          </select>
        </label>
        <label>AI O
          <select id=\"difficultyO\">
            <option value=\"easy\">Easy</option>
            <option value=\"medium\">Medium</option>
            <option value=\"hard\" selected>Hard</option>
          </select>
        </label>
      </div>
      <div class=\"board\" id=\"board\"></div>
      <div class=\"controls\">
        <button id=\"hint\">Hint</button>
        <button id=\"reset\">New game</button>
      </div>
      <p class=\"bank\" id=\"bank\"></p>
      <div class=\"bet-panel hidden\" id=\"betPanel\">
        <p>Place your bet (<span id=\"betSeconds\"></span>s)</p>
        <div class=\"controls\">
          <select id=\"wager\">
            <option value=\"0\">0</option>
            <option value=\"10\">10</option>
            <option value=\"50\">50</option>
            <option value=\"100\">100</option>
          </select>
          <select id=\"multiplier\">
            <option value=\"1\">x1</option>
            <option value=\"2\">x2</option>
            <option value=\"3\">x3</option>
          </select>
          <label><input type=\"checkbox\" id=\"allIn\" /> All-in</label>
        </div>
        <div class=\"controls\">
          <button data-bet=\"X\">Bet on X</button>
          <button data-bet=\"O\">Bet on O</button>
          <button id=\"skipBet\">Skip</button>
        </div>
      </div>
      <p class=\"result hidden\" id=\"result\"></p>
    </main>
    <script>
      const AUTO_RESTART_MS = 8000;
      let gameId = null;
      let state = null;
      let hintCell = null;
      let restartTimer = null;
      let pollTimer = null;

      const $ = (id) => document.getElementById(id);

      async function api(path, options = {}) {
        const response = await fetch(path, {
          headers: { 'Content-Type': 'application/json' },
          ...options,
        });
        const payload = await response.json();
        if (!response.ok) {
          throw new Error(payload.detail || 'Request failed');
        }
        return payload;
      }

      function settings() {
        return {
          auto: $('auto').checked,
          betting: $('betting').checked,
          difficultyX: $('difficultyX').value,
          difficultyO: $('difficultyO').value,
        };
      }

      function statusText(s) {
        if (s.betOpen) return `Place your bet... (${s.betSecondsLeft}s)`;
        if (s.winner) return s.auto || s.winner === 'O' ? `AI ${s.winner} wins!` : 'You win!';
        if (s.drawn) return 'Draw';
        if (s.auto || s.currentPlayer === 'O') return `AI ${s.currentPlayer} thinking...`;
        return 'Your turn (X)';
      }

      function render() {
        const board = $('board');
        board.innerHTML = '';
        const line = state.winningLine || [];
        state.board.forEach((mark, index) => {
          const cell = document.createElement('button');
          cell.className = 'cell';
          if (mark) cell.classList.add(mark.toLowerCase());
          if (line.includes(index)) cell.classList.add('win');
          if (hintCell === index) cell.classList.add('hint');
          cell.textContent = mark;
          cell.disabled = Boolean(mark) || state.auto || state.aiPending || state.betOpen
            || state.winner || state.drawn || state.currentPlayer !== 'X';
          cell.addEventListener('click', () => play(index));
          board.appendChild(cell);
        });
        $('status').textContent = statusText(state);
        const bank = state.bank;
        $('bank').textContent = `Bank: ${bank.balance}` + (bank.choice
          ? ` | Betting on ${bank.choice} | Stake: ${bank.stake} | Profit on win: +${bank.profitOnWin}`
          : '');
        $('betPanel').classList.toggle('hidden', !state.betOpen);
        $('betSeconds').textContent = state.betSecondsLeft;
        const result = state.lastBetResult;
        $('result').classList.toggle('hidden', !result);
        if (result) {
          $('result').textContent = `${state.winner ? state.winner + ' wins!' : 'Draw!'} | bet ${result.outcome} | payout ${result.payout}`;
        }
        $('hint').disabled = state.auto || state.currentPlayer !== 'X' || state.winner || state.drawn;
      }

      function update(next) {
        state = next;
        render();
        const over = Boolean(state.winner || state.drawn);
        if (over && !restartTimer) {
          restartTimer = setTimeout(() => reset(true), AUTO_RESTART_MS);
        }
      }

      async function poll() {
        if (!gameId) return;
        try {
          update(await api(`/api/game/${gameId}`));
        } catch (err) {
          $('status').textContent = err.message;
        }
      }

      async function newGame() {
        update(await api('/api/game', { method: 'POST', body: JSON.stringify(settings()) }));
        gameId = state.id;
        clearInterval(pollTimer);
        pollTimer = setInterval(poll, 400);
      }

      async function play(index) {
        hintCell = null;
        try {
          update(await api(`/api/game/${gameId}/move`, {
            method: 'POST',
            body: JSON.stringify({ cellIndex: index }),
          }));
        } catch (err) {
          $('status').textContent = err.message;
        }
      }

      async function reset(randomizeStarter = false) {
        clearTimeout(restartTimer);
        restartTimer = null;
        hintCell = null;
        update(await api(`/api/game/${gameId}/reset`, {
          method: 'POST',
          body: JSON.stringify({ randomizeStarter }),
        }));
      }

      async function pushSettings() {
        update(await api(`/api/game/${gameId}/settings`, {
          method: 'POST',
          body: JSON.stringify(settings()),
        }));
      }

      async function bet(payload) {
        try {
          update(await api(`/api/game/${gameId}/bet`, {
            method: 'POST',
            body: JSON.stringify(payload),
          }));
        } catch (err) {
          $('status').textContent = err.message;
        }
      }

      $('reset').addEventListener('click', () => reset(false));
      $('hint').addEventListener('click', async () => {
        const hint = await api(`/api/game/${gameId}/hint`);
        hintCell = hint.cellIndex;
        render();
      });
      ['auto', 'betting', 'difficultyX', 'difficultyO'].forEach((id) => {
        $(id).addEventListener('change', pushSettings);
      });
      document.querySelectorAll('[data-bet]').forEach((button) => {
        button.addEventListener('click', () => bet({
          choice: button.dataset.bet,
          wager: Number($('wager').value),
          multiplier: Number($('multiplier').value),
          allIn: $('allIn').checked,
        }));
      });
      $('skipBet').addEventListener('click', () => bet({ skip: true }));

      newGame();
    </script>
  </body>
</html>
"""
