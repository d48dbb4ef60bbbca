# src/tetris_engine/game/core/types.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple

Cell = Tuple[int, int]
Color = Tuple[float, float, float, float]


class Action(Enum):
    LEFT = auto()
    RIGHT = auto()
    SOFT_DROP = auto()
    HARD_DROP = auto()
    ROT_CW = auto()
    ROT_CCW = auto()
    HOLD = auto()


class RotationState(Enum):
    """
    SRS orientation names; values are the characters used in kick-table keys.
    """

    SPAWN = "0"
    RIGHT = "R"
    FLIP = "2"
    LEFT = "L"


@dataclass(frozen=True)
class ActivePiece:
    kind: str
    row: int
    col: int
    offsets: Tuple[Cell, ...]
    rotation: RotationState = RotationState.SPAWN

    def cells(self) -> Tuple[Cell, ...]:
        return tuple((self.row + dr, self.col + dc) for dr, dc in self.offsets)

    def shifted(self, drow: int, dcol: int) -> "ActivePiece":
        return ActivePiece(
            kind=self.kind,
            row=self.row + drow,
            col=self.col + dcol,
            offsets=self.offsets,
            rotation=self.rotation,
        )


@dataclass(frozen=True)
class PlayfieldState:
    """
    Driver-/HUD-facing snapshot.

    Colors are not part of this snapshot; renderers pull them through
    Playfield.get_cell_colors() and the preview accessors.
    """

    score: int
    lines: int
    level: int
    game_over: bool

    active: Optional[ActivePiece]
    held_kind: Optional[str]
    next_kind: str
    can_hold: bool

    # True while the lock-delay timer runs
    locking: bool
