# src/tetris_engine/game/core/rules.py
from __future__ import annotations

from dataclasses import dataclass

from tetris_engine.game.core.constants import LINES_PER_LEVEL


@dataclass(frozen=True)
class ScoreConfig:
    single: int = 100
    double: int = 300
    triple: int = 500
    tetris: int = 800
    # more than four rows at once cannot happen with tetrominoes
    overflow_per_line: int = 200
    lines_per_level: int = LINES_PER_LEVEL

    def __post_init__(self) -> None:
        if int(self.lines_per_level) <= 0:
            raise ValueError(f"lines_per_level must be positive, got {self.lines_per_level}")


def score_for_clears(cleared: int, cfg: ScoreConfig) -> int:
    """
    Base points for one clear event, before the level multiplier.
    """
    if cleared == 1:
        return cfg.single
    if cleared == 2:
        return cfg.double
    if cleared == 3:
        return cfg.triple
    if cleared == 4:
        return cfg.tetris
    if cleared > 4:
        return cfg.overflow_per_line * int(cleared)
    return 0


def level_for_lines(lines: int, cfg: ScoreConfig) -> int:
    return 1 + int(lines) // int(cfg.lines_per_level)
