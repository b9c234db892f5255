"""Board model and terminal-state rules for classic 3x3 Tic-Tac-Toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"
Line = Tuple[int, int, int]

EMPTY = ""
PLAYERS: Tuple[Player, Player] = ("X", "O")

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


def opponent(player: Player) -> Player:
    return "O" if player == "X" else "X"


# ---------- Board queries ----------


def is_win_for(board: Sequence[str], player: Player) -> bool:
    """True when ``player`` occupies all three cells of at least one line."""
    return any(
        board[a] == player and board[b] == player and board[c] == player
        for a, b, c in WINNING_LINES
    )


def is_full(board: Sequence[str]) -> bool:
    return all(c != EMPTY for c in board)


def is_draw(board: Sequence[str]) -> bool:
    return is_full(board) and not is_win_for(board, "X") and not is_win_for(board, "O")


def available_moves(board: Sequence[str]) -> List[int]:
    """Empty cell indices in ascending order."""
    return [i for i, c in enumerate(board) if c == EMPTY]


def winning_line(board: Sequence[str]) -> Optional[Line]:
    for line in WINNING_LINES:
        a, b, c = line
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return line
    return None


# ---------- Game ----------


@dataclass
class TicTacToeGame:
    """A single game: nine cells, the player to move and the result."""

    cells: List[str] = field(default_factory=lambda: [EMPTY] * 9)
    current_player: Player = "X"
    winner: Optional[Player] = None
    drawn: bool = False
    winning_line: Optional[Line] = None

    @property
    def active(self) -> bool:
        return self.winner is None and not self.drawn

    @property
    def outcome(self) -> Optional[str]:
        """'X' or 'O' for a win, 'draw' for a full board, None while active."""
        if self.winner:
            return self.winner
        if self.drawn:
            return "draw"
        return None

    def reset(self) -> None:
        self.cells = [EMPTY] * 9
        self.current_player = "X"
        self.winner = None
        self.drawn = False
        self.winning_line = None

    def available_moves(self) -> List[int]:
        return available_moves(self.cells)

    def apply_move(self, index: int, player: Player) -> bool:
        """Write ``player`` into ``index``; return False and change nothing if illegal."""
        if not self.active:
            return False
        if player not in PLAYERS or player != self.current_player:
            return False
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < 9:
            return False
        if self.cells[index] != EMPTY:
            return False

        self.cells[index] = player
        self._update_state(player)
        return True

    def clone(self) -> "TicTacToeGame":
        return TicTacToeGame(
            cells=self.cells.copy(),
            current_player=self.current_player,
            winner=self.winner,
            drawn=self.drawn,
            winning_line=self.winning_line,
        )

    # ---- helpers ----

    def _update_state(self, mover: Player) -> None:
        if is_win_for(self.cells, mover):
            self.winner = mover
            self.winning_line = winning_line(self.cells)
            return
        if is_full(self.cells):
            self.drawn = True
            return
        self.current_player = opponent(mover)
