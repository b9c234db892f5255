"""Computer opponent: four strategies from random play up to full minimax."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import logging
import random

from .game import (
    EMPTY,
    WINNING_LINES,
    Player,
    available_moves,
    is_full,
    is_win_for,
    opponent,
)

logger = logging.getLogger(__name__)

DIFFICULTIES: Tuple[str, ...] = ("random", "medium", "hard", "minimax")

CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)

WIN_SCORE = 10
LOSS_SCORE = -10
DRAW_SCORE = 0


# ---------- Tactics ----------


def find_completing_move(board: Sequence[str], player: Player) -> Optional[int]:
    """Empty cell that would give ``player`` three in a line, if any.

    Lines are scanned in the fixed enumeration order and, within a line,
    the pairs (a, b), (a, c), (b, c) are tried in that order.
    """
    for a, b, c in WINNING_LINES:
        if board[a] == player and board[b] == player and board[c] == EMPTY:
            return c
        if board[a] == player and board[c] == player and board[b] == EMPTY:
            return b
        if board[b] == player and board[c] == player and board[a] == EMPTY:
            return a
    return None


def random_move(board: Sequence[str], rng: Optional[random.Random] = None) -> Optional[int]:
    moves = available_moves(board)
    if not moves:
        return None
    return (rng or random).choice(moves)


def _win_or_block(board: Sequence[str], player: Player) -> Optional[int]:
    move = find_completing_move(board, player)
    if move is None:
        move = find_completing_move(board, opponent(player))
    return move


def medium_move(
    board: Sequence[str], player: Player = "O", rng: Optional[random.Random] = None
) -> Optional[int]:
    """Win if possible, otherwise block, otherwise play anywhere."""
    move = _win_or_block(board, player)
    if move is not None:
        return move
    return random_move(board, rng)


def hard_move(
    board: Sequence[str], player: Player = "O", rng: Optional[random.Random] = None
) -> Optional[int]:
    """Win, block, take the center, take a corner, then play anywhere."""
    move = _win_or_block(board, player)
    if move is not None:
        return move
    if board[CENTER] == EMPTY:
        return CENTER
    corners = [i for i in CORNERS if board[i] == EMPTY]
    if corners:
        return (rng or random).choice(corners)
    return random_move(board, rng)


# ---------- Minimax ----------


def _score(board: Sequence[str]) -> Optional[int]:
    # Always from O's point of view; no depth adjustment.
    if is_win_for(board, "X"):
        return LOSS_SCORE
    if is_win_for(board, "O"):
        return WIN_SCORE
    if is_full(board):
        return DRAW_SCORE
    return None


def _minimax(cells: List[str], player: Player) -> int:
    terminal = _score(cells)
    if terminal is not None:
        return terminal

    scores: List[int] = []
    for move in available_moves(cells):
        cells[move] = player
        try:
            scores.append(_minimax(cells, opponent(player)))
        finally:
            cells[move] = EMPTY
    return max(scores) if player == "O" else min(scores)


def minimax_move(board: Sequence[str], player: Player = "O") -> Optional[int]:
    """Optimal move for ``player`` found by exhaustive search.

    O maximizes and X minimizes. Ties keep the lowest index.
    """
    cells = list(board)
    if _score(cells) is not None:
        return None

    maximizing = player == "O"
    best_move: Optional[int] = None
    best_score: Optional[int] = None
    for move in available_moves(cells):
        cells[move] = player
        try:
            score = _minimax(cells, opponent(player))
        finally:
            cells[move] = EMPTY
        if best_score is None or (score > best_score if maximizing else score < best_score):
            best_score, best_move = score, move
    return best_move


# ---------- Selector ----------


@dataclass
class MoveSelector:
    """Chooses moves for the computer player at a fixed difficulty.

    Only call ``choose`` while the game is active; on a full board it
    returns None.
    """

    player: Player = "O"
    difficulty: str = "minimax"
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        if self.difficulty not in DIFFICULTIES:
            raise ValueError(
                f"Unsupported difficulty {self.difficulty!r}. "
                f"Choose one of {', '.join(DIFFICULTIES)}."
            )

    def choose(self, board: Sequence[str]) -> Optional[int]:
        if self.difficulty == "random":
            move = random_move(board, self.rng)
        elif self.difficulty == "medium":
            move = medium_move(board, self.player, self.rng)
        elif self.difficulty == "hard":
            move = hard_move(board, self.player, self.rng)
        else:
            move = minimax_move(board, self.player)
        logger.debug("%s (%s) picked cell %s", self.player, self.difficulty, move)
        return move
