# src/tetris_engine/game/core/constants.py
from __future__ import annotations

# Playfield defaults
DEFAULT_WIDTH: int = 10
DEFAULT_HEIGHT: int = 20
DEFAULT_LOCK_DELAY_MS: float = 500.0

# Render snapshot
EMPTY_COLOR: tuple[float, float, float, float] = (0.5, 0.5, 0.5, 1.0)
PREVIEW_BACKGROUND: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
DEFAULT_PREVIEW_SIZE: int = 4
DEFAULT_GHOST_INTENSITY: float = 0.3

# Scoring
LINES_PER_LEVEL: int = 10
