"""Win/loss/draw statistics persisted as one record in a JSON key-value file."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Union
import json
import logging
import os
import tempfile
import threading

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

STATS_KEY = "tictactoe-stats"


class Statistics(BaseModel):
    """Totals across all finished games."""

    model_config = ConfigDict(populate_by_name=True)

    score_x: int = Field(default=0, ge=0, alias="scoreX")
    score_o: int = Field(default=0, ge=0, alias="scoreO")
    score_draw: int = Field(default=0, ge=0, alias="scoreDraw")
    total_games: int = Field(default=0, ge=0, alias="totalGames")
    best_streak: int = Field(default=0, ge=0, alias="bestStreak")


class StatsStore:
    """Loads, updates and saves :class:`Statistics` under a single key.

    Read and write failures are logged and never propagate; a bad or
    missing record means starting from zero.
    """

    def __init__(self, path: Union[str, Path], key: str = STATS_KEY) -> None:
        self.path = Path(path)
        self.key = key
        self.streak = 0
        self.lock = threading.Lock()
        self.stats = self.load()

    # ---- persistence ----

    def _read_document(self) -> Optional[Dict[str, object]]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug("No statistics file at %s", self.path)
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Could not read statistics from %s: %s", self.path, exc)
            return None
        if not isinstance(data, dict):
            logger.warning("Statistics file %s is not a JSON object", self.path)
            return None
        return data

    def load(self) -> Statistics:
        document = self._read_document()
        if document is None or self.key not in document:
            return Statistics()
        try:
            return Statistics.model_validate(document[self.key])
        except ValidationError as exc:
            logger.warning("Discarding malformed statistics record: %s", exc)
            return Statistics()

    def save(self) -> bool:
        with self.lock:
            return self._write()

    def _write(self) -> bool:
        # Caller holds self.lock.
        document = self._read_document() or {}
        document[self.key] = self.stats.model_dump(by_alias=True)

        temp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=".stats.", suffix=".tmp", text=True
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
            os.replace(temp_path, self.path)
            temp_path = None
        except OSError as exc:
            logger.warning("Could not save statistics to %s: %s", self.path, exc)
            return False
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.remove(temp_path)
        return True

    # ---- updates ----

    def snapshot(self) -> Statistics:
        with self.lock:
            return self.stats.model_copy()

    def record(self, winner: Optional[str]) -> Statistics:
        """Count one finished game; ``winner`` is 'X', 'O' or None for a draw."""
        with self.lock:
            stats = self.stats
            if winner == "X":
                stats.score_x += 1
                self.streak += 1
            elif winner == "O":
                stats.score_o += 1
                self.streak = 0
            else:
                stats.score_draw += 1
                self.streak = 0
            stats.total_games += 1
            stats.best_streak = max(stats.best_streak, self.streak)
            self._write()
            return stats.model_copy()

    def reset(self) -> Statistics:
        with self.lock:
            self.stats = Statistics()
            self.streak = 0
            self._write()
            return self.stats.model_copy()
