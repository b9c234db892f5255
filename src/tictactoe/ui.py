"""FastAPI-powered web UI for playing Tic-Tac-Toe in the browser."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .ai import MoveSelector
from .config import load_settings
from .game import TicTacToeGame
from .stats import StatsStore

logger = logging.getLogger(__name__)

Mode = Literal["singlePlayer", "twoPlayer"]
Difficulty = Literal["random", "medium", "hard", "minimax"]

HUMAN_PLAYER = "X"
COMPUTER_PLAYER = "O"


@dataclass
class GameSession:
    """Container for one game, its settings and its computer opponent."""

    game: TicTacToeGame
    mode: str
    difficulty: str
    selector: Optional[MoveSelector]
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    recorded: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SETTINGS = load_settings()
SESSIONS: Dict[str, GameSession] = {}
STATS = StatsStore(SETTINGS.stats_path)
AI_MOVE_DELAY: float = SETTINGS.ai_delay

app = FastAPI(title="Tic-Tac-Toe", description="Tic-Tac-Toe played in the browser")


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    mode: Mode = Field(default="singlePlayer", description="Play the computer or a friend")
    difficulty: Difficulty = Field(
        default="minimax", description="Strategy used by the computer player"
    )


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    index: int = Field(ge=0, le=8)


def _create_session(mode: str, difficulty: str) -> tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    selector = None
    if mode == "singlePlayer":
        selector = MoveSelector(player=COMPUTER_PLAYER, difficulty=difficulty)
    session = GameSession(
        game=TicTacToeGame(), mode=mode, difficulty=difficulty, selector=selector
    )
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created %s game %s (%s)", mode, session_id, difficulty)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _record_result(game_id: str, session: GameSession) -> None:
    """Count a finished game once. Caller holds the session lock."""

    game = session.game
    if game.active or session.recorded:
        return
    session.recorded = True
    logger.info("Game %s finished: %s", game_id, game.outcome)
    STATS.record(game.winner)


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    try:
        time.sleep(max(0.0, AI_MOVE_DELAY))

        with session.lock:
            selector = session.selector
            if not selector:
                return
            game = session.game
            if not game.active or game.current_player != selector.player:
                return
            index = selector.choose(game.cells)
            if index is None or not game.apply_move(index, selector.player):
                logger.warning("Computer produced no legal move in game %s", game_id)
                return
            session.move_log.append({"player": selector.player, "index": index})
            _record_result(game_id, session)
    finally:
        with session.lock:
            session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        if game.winner:
            status = "won"
        elif game.drawn:
            status = "draw"
        else:
            status = "active"

        state: Dict[str, object] = {
            "id": game_id,
            "mode": session.mode,
            "difficulty": session.difficulty,
            "cells": list(game.cells),
            "currentPlayer": game.current_player,
            "status": status,
            "winner": game.winner,
            "winningLine": list(game.winning_line) if game.winning_line else None,
            "availableMoves": game.available_moves() if game.active else [],
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    index: int,
    background_tasks: BackgroundTasks,
) -> None:
    should_schedule_ai = False
    with session.lock:
        game = session.game
        if not game.active:
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="Computer is completing its move")

        player = game.current_player
        if session.selector and player == session.selector.player:
            raise HTTPException(status_code=400, detail="It is the computer's turn")

        if not game.apply_move(index, player):
            raise HTTPException(status_code=400, detail="Cell is already taken")

        session.move_log.append({"player": player, "index": index})
        _record_result(game_id, session)

        should_schedule_ai = bool(
            session.selector
            and game.active
            and game.current_player == session.selector.player
        )
        if should_schedule_ai:
            session.ai_pending = True

    if should_schedule_ai:
        background_tasks.add_task(_run_ai_turn, game_id)


def _restart_session(session: GameSession) -> None:
    with session.lock:
        session.game.reset()
        session.move_log.clear()
        session.recorded = False


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.mode, request.difficulty)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/restart")
def restart_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    _restart_session(session)
    return _serialize_session(game_id, session)


@app.get("/api/stats")
def get_stats() -> Dict[str, int]:
    return STATS.snapshot().model_dump(by_alias=True)


@app.delete("/api/stats")
def reset_stats() -> Dict[str, int]:
    return STATS.reset().model_dump(by_alias=True)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe</title>
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
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: #13203a;
        overflow-x: hidden;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: clamp(1.5rem, 4vw, 2.5rem);
        width: min(520px, 100%);
      }
      h1 {
        margin: 0 0 1.25rem;
        text-align: center;
        letter-spacing: 0.06em;
      }
      .controls {
        display: flex;
        flex-wrap: wrap;
        gap: 0.75rem;
        justify-content: center;
        align-items: center;
        margin-bottom: 1.25rem;
      }
      button,
      select {
        font-size: 1rem;
        padding: 0.5rem 0.9rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
        font-family: inherit;
      }
      button:disabled,
      select:disabled {
        cursor: default;
        opacity: 0.6;
      }
      #status {
        text-align: center;
        font-size: 1.15rem;
        font-weight: 600;
        min-height: 1.6rem;
        margin-bottom: 0.5rem;
      }
      #status.winner {
        color: #1b8a3a;
      }
      #message {
        text-align: center;
        min-height: 1.25rem;
        color: #b00020;
        font-weight: 600;
        margin-bottom: 0.75rem;
      }
      #board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.5rem;
        max-width: 330px;
        margin: 0 auto 1.5rem;
      }
      .cell {
        aspect-ratio: 1;
        border-radius: 14px;
        background: #eef1ff;
        display: flex;
        align-items: center;
        justify-content: center;
        font-size: 2.6rem;
        font-weight: 700;
        cursor: pointer;
        user-select: none;
        transition: background 0.15s ease, transform 0.1s ease;
      }
      .cell:hover {
        background: #dfe5ff;
      }
      .cell.x {
        color: #3a66ff;
      }
      .cell.o {
        color: #e0475b;
      }
      .winning-cell {
        background: #c9f2d4 !important;
        transform: scale(1.05);
      }
      .stats {
        display: grid;
        grid-template-columns: repeat(5, 1fr);
        gap: 0.5rem;
        text-align: center;
        font-size: 0.85rem;
      }
      .stats strong {
        display: block;
        font-size: 1.3rem;
      }
      .particle {
        position: fixed;
        width: 8px;
        height: 8px;
        border-radius: 50%;
        pointer-events: none;
        animation: burst 0.9s ease-out forwards;
      }
      @keyframes burst {
        to {
          transform: translate(var(--dx), var(--dy));
          opacity: 0;
        }
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic-Tac-Toe</h1>
      <div class=\"controls\">
        <select id=\"mode\" aria-label=\"Game mode\">
          <option value=\"singlePlayer\">vs Computer</option>
          <option value=\"twoPlayer\">Two players</option>
        </select>
        <select id=\"difficulty\" aria-label=\"Difficulty\">
          <option value=\"random\">Easy</option>
          <option value=\"medium\">Medium</option>
          <option value=\"hard\">Hard</option>
          <option value=\"minimax\" selected>Impossible</option>
        </select>
        <button id=\"restart\">New game</button>
        <button id=\"sound\" class=\"secondary\">Sound: on</button>
      </div>
      <div id=\"status\"></div>
      <div id=\"message\"></div>
      <div id=\"board\"></div>
      <div class=\"stats\">
        <div><strong id=\"scoreX\">0</strong>X wins</div>
        <div><strong id=\"scoreO\">0</strong>O wins</div>
        <div><strong id=\"scoreDraw\">0</strong>Draws</div>
        <div><strong id=\"totalGames\">0</strong>Games</div>
        <div><strong id=\"bestStreak\">0</strong>Best streak</div>
      </div>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const messageEl = document.getElementById('message');
      const modeEl = document.getElementById('mode');
      const difficultyEl = document.getElementById('difficulty');
      const restartButton = document.getElementById('restart');
      const soundButton = document.getElementById('sound');

      let gameId = null;
      let gameState = null;
      let pollHandle = null;
      let isRequestPending = false;
      let soundOn = true;
      let audioCtx = null;

      function tone(frequency, duration) {
        if (!soundOn) return;
        try {
          audioCtx = audioCtx || new (window.AudioContext || window.webkitAudioContext)();
          const osc = audioCtx.createOscillator();
          const gain = audioCtx.createGain();
          osc.frequency.value = frequency;
          gain.gain.setValueAtTime(0.15, audioCtx.currentTime);
          gain.gain.exponentialRampToValueAtTime(0.001, audioCtx.currentTime + duration);
          osc.connect(gain).connect(audioCtx.destination);
          osc.start();
          osc.stop(audioCtx.currentTime + duration);
        } catch (error) {
          soundOn = false;
          soundButton.textContent = 'Sound: off';
        }
      }

      function burst(cell) {
        const rect = cell.getBoundingClientRect();
        for (let i = 0; i < 18; i++) {
          const p = document.createElement('span');
          p.className = 'particle';
          p.style.left = `${rect.left + rect.width / 2}px`;
          p.style.top = `${rect.top + rect.height / 2}px`;
          p.style.background = `hsl(${Math.floor(Math.random() * 360)}, 80%, 60%)`;
          const angle = Math.random() * Math.PI * 2;
          const distance = 40 + Math.random() * 80;
          p.style.setProperty('--dx', `${Math.cos(angle) * distance}px`);
          p.style.setProperty('--dy', `${Math.sin(angle) * distance}px`);
          document.body.appendChild(p);
          setTimeout(() => p.remove(), 1000);
        }
      }

      function buildBoard() {
        boardEl.innerHTML = '';
        for (let i = 0; i < 9; i++) {
          const cell = document.createElement('div');
          cell.className = 'cell';
          cell.dataset.index = i;
          cell.addEventListener('click', () => sendMove(i));
          boardEl.appendChild(cell);
        }
      }

      function statusText(state) {
        const vsComputer = state.mode === 'singlePlayer';
        if (state.status === 'won') {
          if (!vsComputer) return `Player ${state.winner} wins!`;
          return state.winner === 'X' ? 'You win!' : 'Computer wins!';
        }
        if (state.status === 'draw') return 'Game ended in a draw!';
        if (vsComputer) {
          return state.currentPlayer === 'X' ? 'Your turn (X)' : 'Computer thinking...';
        }
        return `Player ${state.currentPlayer}'s turn`;
      }

      function render() {
        const cells = boardEl.querySelectorAll('.cell');
        const line = gameState?.winningLine || [];
        cells.forEach((cell, index) => {
          const value = gameState ? gameState.cells[index] : '';
          cell.textContent = value;
          cell.classList.toggle('x', value === 'X');
          cell.classList.toggle('o', value === 'O');
          cell.classList.toggle('winning-cell', line.includes(index));
        });
        if (!gameState) {
          statusEl.textContent = '';
          return;
        }
        statusEl.textContent = statusText(gameState);
        statusEl.classList.toggle('winner', gameState.status === 'won');
        difficultyEl.disabled = modeEl.value === 'twoPlayer';
      }

      function setState(data) {
        const previous = gameState;
        gameState = data;
        render();
        const moved = !previous || previous.moveLog.length !== data.moveLog.length;
        if (moved && data.lastMove) {
          tone(data.lastMove.player === 'X' ? 520 : 392, 0.12);
        }
        if (moved && data.status !== 'active') {
          finishGame(data);
        }
        if (data.aiPending) {
          ensurePolling();
        }
      }

      function finishGame(state) {
        if (state.status === 'won') {
          tone(660, 0.25);
          setTimeout(() => tone(880, 0.3), 180);
          const cells = boardEl.querySelectorAll('.cell');
          state.winningLine.forEach((index) => burst(cells[index]));
        } else {
          tone(300, 0.3);
        }
        loadStats();
      }

      function ensurePolling() {
        if (pollHandle === null) {
          pollHandle = setTimeout(pollState, 250);
        }
      }

      async function pollState() {
        pollHandle = null;
        if (!gameId) return;
        try {
          const response = await fetch(`/api/game/${gameId}`);
          if (!response.ok) return;
          setState(await response.json());
        } catch (error) {
          console.error('Polling failed', error);
          ensurePolling();
        }
      }

      async function loadStats() {
        try {
          const response = await fetch('/api/stats');
          if (!response.ok) return;
          const stats = await response.json();
          for (const [key, value] of Object.entries(stats)) {
            const el = document.getElementById(key);
            if (el) el.textContent = value;
          }
        } catch (error) {
          console.error('Could not load statistics', error);
        }
      }

      async function startGame() {
        if (isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        gameState = null;
        render();
        try {
          const response = await fetch('/api/game', {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify({ mode: modeEl.value, difficulty: difficultyEl.value }),
          });
          if (!response.ok) {
            throw new Error('Unable to start game');
          }
          const data = await response.json();
          gameId = data.id;
          setState(data);
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      async function restartGame() {
        if (!gameId) {
          startGame();
          return;
        }
        if (isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          const response = await fetch(`/api/game/${gameId}/restart`, { method: 'POST' });
          if (!response.ok) {
            throw new Error('Unable to restart game');
          }
          gameState = null;
          setState(await response.json());
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      async function sendMove(index) {
        if (!gameState || gameState.status !== 'active' || gameState.aiPending) return;
        if (gameState.cells[index] !== '' || isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          const response = await fetch(`/api/game/${gameId}/move`, {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify({ index }),
          });
          if (!response.ok) {
            const payload = await response.json().catch(() => ({}));
            messageEl.textContent = payload?.detail || 'Invalid move';
            return;
          }
          setState(await response.json());
        } catch (error) {
          messageEl.textContent = 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      restartButton.addEventListener('click', restartGame);
      modeEl.addEventListener('change', startGame);
      difficultyEl.addEventListener('change', startGame);
      soundButton.addEventListener('click', () => {
        soundOn = !soundOn;
        soundButton.textContent = soundOn ? 'Sound: on' : 'Sound: off';
      });

      window.addEventListener('load', () => {
        buildBoard();
        loadStats();
        startGame();
      });
    </script>
  </body>
</html>
"""
