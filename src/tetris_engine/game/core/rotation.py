# src/tetris_engine/game/core/rotation.py
from __future__ import annotations

from typing import Optional, Sequence, Tuple

from tetris_engine.game.core.board import Board
from tetris_engine.game.core.pieceset import KickTable
from tetris_engine.game.core.types import Cell, RotationState

_CYCLE: Tuple[RotationState, ...] = (
    RotationState.SPAWN,
    RotationState.RIGHT,
    RotationState.FLIP,
    RotationState.LEFT,
)


def next_rotation(state: RotationState, *, clockwise: bool) -> RotationState:
    i = _CYCLE.index(state)
    return _CYCLE[(i + (1 if clockwise else -1)) % len(_CYCLE)]


def transition_key(src: RotationState, dst: RotationState) -> str:
    return f"{src.value}{dst.value}"


def rotate_offsets(offsets: Sequence[Cell], *, clockwise: bool) -> Tuple[Cell, ...]:
    """
    Quarter-turn about the (0, 0) pivot.

      clockwise:         (dr, dc) -> (dc, -dr)
      counter-clockwise: (dr, dc) -> (-dc, dr)
    """
    if clockwise:
        return tuple((dc, -dr) for dr, dc in offsets)
    return tuple((-dc, dr) for dr, dc in offsets)


def find_kick(
        *,
        board: Board,
        row: int,
        col: int,
        offsets: Sequence[Cell],
        candidates: Sequence[Cell],
) -> Optional[Cell]:
    """
    SRS wall-kick search: return the first candidate (drow, dcol) for which all cells
    of `offsets` placed at (row + drow, col + dcol) are in bounds and free.
    """
    for drow, dcol in candidates:
        r, c = row + drow, col + dcol
        if board.can_place((r + dr, c + dc) for dr, dc in offsets):
            return drow, dcol
    return None


def kick_candidates(kicks: KickTable, src: RotationState, dst: RotationState) -> Tuple[Cell, ...]:
    return tuple(kicks.get(transition_key(src, dst), ((0, 0),)))


__all__ = ["next_rotation", "transition_key", "rotate_offsets", "find_kick", "kick_candidates"]
