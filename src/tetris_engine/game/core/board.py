# src/tetris_engine/game/core/board.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from tetris_engine.game.core.constants import EMPTY_COLOR
from tetris_engine.game.core.types import Cell, Color


@dataclass
class Board:
    """
    Locked cells only. Row 0 is the bottom row.

    colors:   (h, w, 4) float32 RGBA; empty cells hold empty_color
    occupied: (h, w) bool
    """

    h: int
    w: int
    colors: np.ndarray
    occupied: np.ndarray
    empty_color: Color = EMPTY_COLOR

    @classmethod
    def empty(cls, *, h: int, w: int, empty_color: Color = EMPTY_COLOR) -> "Board":
        if int(h) <= 0 or int(w) <= 0:
            raise ValueError(f"board dimensions must be positive, got h={h} w={w}")
        colors = np.empty((int(h), int(w), 4), dtype=np.float32)
        colors[:, :] = np.asarray(empty_color, dtype=np.float32)
        occupied = np.zeros((int(h), int(w)), dtype=bool)
        return cls(h=int(h), w=int(w), colors=colors, occupied=occupied, empty_color=tuple(empty_color))

    def reset(self) -> None:
        self.colors[:, :] = np.asarray(self.empty_color, dtype=np.float32)
        self.occupied.fill(False)

    def cell_index(self, row: int, col: int) -> int:
        return int(row) * self.w + int(col)

    def is_inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.h and 0 <= col < self.w

    def is_valid_position(self, row: int, col: int) -> bool:
        if not self.is_inside(row, col):
            return False
        return not bool(self.occupied[row, col])

    def can_place(self, cells: Iterable[Cell]) -> bool:
        for row, col in cells:
            if not self.is_valid_position(row, col):
                return False
        return True

    def place(self, cells: Iterable[Cell], color: Color) -> None:
        rgba = np.asarray(color, dtype=np.float32)
        for row, col in cells:
            if not self.is_inside(row, col):
                raise ValueError(f"cell ({row}, {col}) is outside the {self.h}x{self.w} board")
            self.colors[row, col] = rgba
            self.occupied[row, col] = True

    def row_count(self, row: int) -> int:
        return int(self.occupied[row].sum())

    def is_row_filled(self, row: int) -> bool:
        return self.row_count(row) == self.w

    def clear_row(self, row: int) -> None:
        self.colors[row, :] = np.asarray(self.empty_color, dtype=np.float32)
        self.occupied[row, :] = False

    def copy_row(self, src: int, dst: int) -> None:
        self.colors[dst] = self.colors[src]
        self.occupied[dst] = self.occupied[src]

    def clear_completed_rows(self) -> int:
        """
        Remove full rows and compact the stack downward, in place.

        Two cursors walk up from the bottom: full rows are counted and skipped,
        partial rows are copied down to the write cursor. The scan stops at the
        first empty row (nothing floats above a gap), and rows between the write
        cursor and the end of the scan are reset.

        Returns the number of cleared rows.
        """
        write = 0
        read = 0
        cleared = 0
        while read < self.h:
            n = self.row_count(read)
            if n == 0:
                break
            if n == self.w:
                cleared += 1
            else:
                if write != read:
                    self.copy_row(read, write)
                write += 1
            read += 1

        for row in range(write, read):
            self.clear_row(row)
        return cleared

    def settle(self) -> int:
        """
        Let every occupied cell with an empty cell below fall one row.

        Rows are processed bottom-up, so a column gap closes by one row per call.
        Returns the number of cells moved.
        """
        moved = 0
        for row in range(1, self.h):
            falling = self.occupied[row] & ~self.occupied[row - 1]
            if not falling.any():
                continue
            self.colors[row - 1, falling] = self.colors[row, falling]
            self.occupied[row - 1, falling] = True
            self.colors[row, falling] = np.asarray(self.empty_color, dtype=np.float32)
            self.occupied[row, falling] = False
            moved += int(falling.sum())
        return moved

    def filled_cells(self) -> int:
        return int(self.occupied.sum())

    def flat_colors(self) -> np.ndarray:
        """
        Row-major RGBA copy of the locked board, row 0 first.
        """
        return self.colors.reshape(-1).copy()
