# src/tetris_engine/config/engine.py
from __future__ import annotations

from typing import Literal, Optional, Tuple

from pydantic import Field, ValidationInfo, field_validator

from tetris_engine.config.base import ConfigBase
from tetris_engine.game.core.constants import (
    DEFAULT_GHOST_INTENSITY,
    DEFAULT_HEIGHT,
    DEFAULT_LOCK_DELAY_MS,
    DEFAULT_PREVIEW_SIZE,
    DEFAULT_WIDTH,
    EMPTY_COLOR,
    LINES_PER_LEVEL,
)

PieceRuleName = Literal["bag7", "uniform"]


def _as_int(value: object, *, where: str) -> int:
    if isinstance(value, bool):
        raise TypeError(f"{where} must be an int, got bool")
    if not isinstance(value, (int, float, str, bytes, bytearray)):
        raise TypeError(f"{where} must be an int-like value, got {type(value)!r}")
    try:
        return int(value)
    except Exception as e:
        raise TypeError(f"{where} must be an int-like value, got {type(value)!r}") from e


class EngineConfig(ConfigBase):
    """
    Playfield-level config (engine-facing).

    Single home for the knobs a driver may tune:
      - board size and lock delay
      - piece rule + seed
      - render snapshot details (preview size, ghost intensity, empty color)
      - legacy idle-stack gravity (off by default; the stack is static once locked)
    """

    width: int = Field(default=DEFAULT_WIDTH, gt=0)
    height: int = Field(default=DEFAULT_HEIGHT, gt=0)
    lock_delay_ms: float = Field(default=DEFAULT_LOCK_DELAY_MS, ge=0.0)

    seed: Optional[int] = Field(default=None, ge=0)
    piece_rule: PieceRuleName = "bag7"
    bag_copies: int = Field(default=1, ge=1)

    preview_size: int = Field(default=DEFAULT_PREVIEW_SIZE, ge=1)
    ghost_intensity: float = Field(default=DEFAULT_GHOST_INTENSITY, ge=0.0, le=1.0)
    empty_color: Tuple[float, float, float, float] = EMPTY_COLOR

    lines_per_level: int = Field(default=LINES_PER_LEVEL, gt=0)
    settle_stack_when_idle: bool = False

    @field_validator("width", "height", "bag_copies", "preview_size", "lines_per_level", mode="before")
    @classmethod
    def _ints(cls, v: object, info: ValidationInfo) -> int:
        return _as_int(v, where=f"engine.{info.field_name}")

    @field_validator("seed", mode="before")
    @classmethod
    def _seed_int(cls, v: object) -> Optional[int]:
        if v is None:
            return None
        return _as_int(v, where="engine.seed")

    @field_validator("piece_rule", mode="before")
    @classmethod
    def _piece_rule_lower(cls, v: object) -> str:
        return str(v).strip().lower()

    @field_validator("empty_color")
    @classmethod
    def _color_range(cls, v: Tuple[float, float, float, float]) -> Tuple[float, float, float, float]:
        for c in v:
            if not (0.0 <= float(c) <= 1.0):
                raise ValueError(f"engine.empty_color components must be in [0,1], got {v!r}")
        return v


__all__ = ["EngineConfig", "PieceRuleName"]
