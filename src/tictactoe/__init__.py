"""Tic-Tac-Toe package exposing game rules, the computer opponent, and the web application."""

from .ai import MoveSelector
from .game import TicTacToeGame
from .stats import Statistics, StatsStore
from .ui import app

__all__ = ["MoveSelector", "Statistics", "StatsStore", "TicTacToeGame", "app"]
