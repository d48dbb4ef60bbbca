# src/tetris_engine/game/core/snapshot.py
from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from tetris_engine.game.core.board import Board
from tetris_engine.game.core.constants import PREVIEW_BACKGROUND
from tetris_engine.game.core.pieceset import PieceSet
from tetris_engine.game.core.types import Cell, Color


def ghost_color(color: Color, intensity: float) -> Color:
    r, g, b, a = color
    k = float(intensity)
    return r * k, g * k, b * k, a


def _paint(buf: np.ndarray, *, width: int, cells: Iterable[Cell], color: Color) -> None:
    rgba = np.asarray(color, dtype=np.float32)
    for row, col in cells:
        i = (int(row) * int(width) + int(col)) * 4
        buf[i:i + 4] = rgba


def compose_cell_colors(
        *,
        board: Board,
        active_cells: Iterable[Cell] = (),
        active_color: Optional[Color] = None,
        ghost_cells: Iterable[Cell] = (),
        ghost_intensity: float = 0.3,
) -> np.ndarray:
    """
    Flat RGBA float32 buffer (len = w*h*4, row-major, row 0 = bottom).

    Layering: locked board, then ghost cells, then active cells. Active cells win
    on any shared index.
    """
    buf = board.flat_colors()
    if active_color is None:
        return buf
    _paint(buf, width=board.w, cells=ghost_cells, color=ghost_color(active_color, ghost_intensity))
    _paint(buf, width=board.w, cells=active_cells, color=active_color)
    return buf


def preview_colors(*, pieces: PieceSet, kind: Optional[str], size: int) -> np.ndarray:
    """
    Flat RGBA float32 buffer for a size x size preview grid (row 0 = bottom).

    Background is transparent; the piece is centered through its bounding box.
    """
    n = int(size)
    buf = np.empty(n * n * 4, dtype=np.float32)
    buf.reshape(n * n, 4)[:] = np.asarray(PREVIEW_BACKGROUND, dtype=np.float32)
    if kind is None:
        return buf

    bbox = pieces.bbox(kind)
    row_off = -bbox.min_row + (n - bbox.height) // 2
    col_off = -bbox.min_col + (n - bbox.width) // 2
    cells = [(dr + row_off, dc + col_off) for dr, dc in pieces.cells(kind)]
    _paint(buf, width=n, cells=cells, color=pieces.color_of(kind))
    return buf


__all__ = ["ghost_color", "compose_cell_colors", "preview_colors"]
