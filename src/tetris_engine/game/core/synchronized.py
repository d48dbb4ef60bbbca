# src/tetris_engine/game/core/synchronized.py
from __future__ import annotations

import threading
from typing import Any, Optional

import numpy as np

from tetris_engine.game.core.playfield import Playfield
from tetris_engine.game.core.stats import StatsListener
from tetris_engine.game.core.types import PlayfieldState


class SynchronizedPlayfield:
    """
    Serializes every public Playfield call behind one re-entrant lock.

    For drivers that tick from a timer thread and handle input on another.
    The stats listener runs while the lock is held, so it may read the
    playfield but must not block on another thread that waits for it.
    """

    def __init__(self, playfield: Playfield) -> None:
        self._pf = playfield
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def playfield(self) -> Playfield:
        return self._pf

    def reset(self, *, seed: Optional[int] = None) -> None:
        with self._lock:
            self._pf.reset(seed=seed)

    def spawn_piece(self) -> bool:
        with self._lock:
            return self._pf.spawn_piece()

    def move_left(self) -> bool:
        with self._lock:
            return self._pf.move_left()

    def move_right(self) -> bool:
        with self._lock:
            return self._pf.move_right()

    def soft_drop(self) -> bool:
        with self._lock:
            return self._pf.soft_drop()

    def move_down(self) -> bool:
        with self._lock:
            return self._pf.move_down()

    def rotate(self, clockwise: bool = True) -> bool:
        with self._lock:
            return self._pf.rotate(clockwise=clockwise)

    def rotate_clockwise(self) -> bool:
        with self._lock:
            return self._pf.rotate_clockwise()

    def rotate_counter_clockwise(self) -> bool:
        with self._lock:
            return self._pf.rotate_counter_clockwise()

    def hold(self) -> bool:
        with self._lock:
            return self._pf.hold()

    def hard_drop(self) -> bool:
        with self._lock:
            return self._pf.hard_drop()

    def update(self) -> None:
        with self._lock:
            self._pf.update()

    def apply(self, action: Any) -> bool:
        with self._lock:
            return self._pf.apply(action)

    def get_width(self) -> int:
        return self._pf.get_width()

    def get_height(self) -> int:
        return self._pf.get_height()

    def get_score(self) -> int:
        with self._lock:
            return self._pf.get_score()

    def get_level(self) -> int:
        with self._lock:
            return self._pf.get_level()

    def get_lines_cleared(self) -> int:
        with self._lock:
            return self._pf.get_lines_cleared()

    def register_stats_listener(self, callback: Optional[StatsListener]) -> None:
        with self._lock:
            self._pf.register_stats_listener(callback)

    def get_cell_colors(self) -> np.ndarray:
        with self._lock:
            return self._pf.get_cell_colors()

    def get_held_tetromino_colors(self) -> np.ndarray:
        with self._lock:
            return self._pf.get_held_tetromino_colors()

    def get_next_tetromino_colors(self) -> np.ndarray:
        with self._lock:
            return self._pf.get_next_tetromino_colors()

    def state(self) -> PlayfieldState:
        with self._lock:
            return self._pf.state()


__all__ = ["SynchronizedPlayfield"]
