# src/tetris_engine/game/core/stats.py
from __future__ import annotations

from typing import Callable, Optional

from tetris_engine.game.core.rules import ScoreConfig, level_for_lines, score_for_clears

StatsListener = Callable[[], None]


class ScoreTracker:
    """
    Cumulative lines/score with a single change listener.

    The level is derived from cumulative lines on every read; points for a clear
    use the level as it was before that clear is counted.
    """

    def __init__(self, config: Optional[ScoreConfig] = None) -> None:
        self.config = config or ScoreConfig()
        self.lines_cleared = 0
        self.score = 0
        self._listener: Optional[StatsListener] = None

    @property
    def level(self) -> int:
        return level_for_lines(self.lines_cleared, self.config)

    def points_for(self, count: int) -> int:
        return score_for_clears(int(count), self.config) * self.level

    def add_lines_cleared(self, count: int) -> None:
        if count <= 0:
            return
        earned = self.points_for(count)
        self.lines_cleared += int(count)
        self.score += int(earned)
        self._notify()

    def reset(self) -> None:
        self.lines_cleared = 0
        self.score = 0
        self._notify()

    def register_listener(self, callback: Optional[StatsListener]) -> None:
        # one listener; the last registration wins
        self._listener = callback

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener()


__all__ = ["ScoreTracker", "StatsListener"]
