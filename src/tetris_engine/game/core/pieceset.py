# src/tetris_engine/game/core/pieceset.py
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from tetris_engine.game.core.types import Cell, Color
from tetris_engine.utils.paths import pieces_dir

KickTable = Mapping[str, Tuple[Cell, ...]]

_TRANSITION_KEYS = ("0R", "R0", "R2", "2R", "2L", "L2", "L0", "0L")


def _parse_color(v: object) -> Color:
    if not isinstance(v, (list, tuple)) or len(v) != 4:
        raise ValueError(f"color must be a 4-item RGBA list/tuple, got {v!r}")
    out: List[float] = []
    for c in v:
        if isinstance(c, bool) or not isinstance(c, (int, float)):
            raise ValueError(f"color components must be numbers in [0,1], got {v!r}")
        if not (0.0 <= float(c) <= 1.0):
            raise ValueError(f"color components must be numbers in [0,1], got {v!r}")
        out.append(float(c))
    r, g, b, a = out
    return r, g, b, a


def _parse_cell(v: object, *, where: str) -> Cell:
    if not isinstance(v, (list, tuple)) or len(v) != 2:
        raise ValueError(f"{where}: expected a [row, col] pair, got {v!r}")
    dr, dc = v
    if isinstance(dr, bool) or isinstance(dc, bool) or not isinstance(dr, int) or not isinstance(dc, int):
        raise ValueError(f"{where}: offsets must be ints, got {v!r}")
    return int(dr), int(dc)


def _parse_cells(rows: Sequence[object], *, where: str) -> Tuple[Cell, ...]:
    if not isinstance(rows, (list, tuple)) or len(rows) == 0:
        raise ValueError(f"{where}: 'cells' must be a non-empty list of [row, col] pairs")
    cells = tuple(_parse_cell(c, where=where) for c in rows)
    if len(set(cells)) != len(cells):
        raise ValueError(f"{where}: duplicate cells in {list(cells)!r}")
    return cells


def _parse_kick_table(name: str, node: object) -> KickTable:
    if not isinstance(node, dict):
        raise ValueError(f"kick table {name!r} must be a mapping, got {type(node)!r}")
    table: Dict[str, Tuple[Cell, ...]] = {}
    for key, candidates in node.items():
        k = str(key)
        if k not in _TRANSITION_KEYS:
            raise ValueError(f"kick table {name!r}: unknown transition key {k!r}")
        if not isinstance(candidates, list) or not candidates:
            raise ValueError(f"kick table {name!r}[{k}] must be a non-empty list")
        table[k] = tuple(_parse_cell(c, where=f"kick table {name!r}[{k}]") for c in candidates)
    return MappingProxyType(table)


@dataclass(frozen=True)
class BoundingBox:
    min_row: int
    max_row: int
    min_col: int
    max_col: int

    @property
    def width(self) -> int:
        return self.max_col - self.min_col + 1

    @property
    def height(self) -> int:
        return self.max_row - self.min_row + 1

    @classmethod
    def of(cls, cells: Sequence[Cell]) -> "BoundingBox":
        rows = [r for r, _ in cells]
        cols = [c for _, c in cells]
        return cls(min_row=min(rows), max_row=max(rows), min_col=min(cols), max_col=max(cols))


@dataclass(frozen=True)
class PieceDef:
    kind: str
    cells: Tuple[Cell, ...]
    color: Color
    bbox: BoundingBox
    center: Tuple[float, float]
    kicks: Optional[KickTable] = None

    @classmethod
    def build(cls, *, kind: str, cells: Tuple[Cell, ...], color: Color, kicks: Optional[KickTable]) -> "PieceDef":
        bbox = BoundingBox.of(cells)
        center = ((bbox.min_row + bbox.max_row) / 2.0, (bbox.min_col + bbox.max_col) / 2.0)
        return cls(kind=kind, cells=cells, color=color, bbox=bbox, center=center, kicks=kicks)

    def cell_count(self) -> int:
        return len(self.cells)

    def rotates(self) -> bool:
        return self.kicks is not None


@dataclass(frozen=True)
class PieceSet:
    """
    Pure geometry + colors + SRS kick tables, loaded from YAML.

    Provides:
      - stable ordering of kinds (bag refill order)
      - cells(kind) relative to the rotation center, row axis pointing up
      - derived bounding box / center per kind (computed once at load)
      - kick_table(kind): transition key ("0R", "R2", ...) -> ordered (row, col) candidates,
        or None for kinds that do not rotate

    Asset contract:
      - Every piece has the same number of cells (and matches expected_cells when given).
      - A piece's `kicks` is either null or the name of a table under `kick_tables`.
    """

    pieces: Mapping[str, PieceDef]
    kind_order: Tuple[str, ...]

    @staticmethod
    def default_classic7_path() -> Path:
        return pieces_dir() / "classic7.yaml"

    @classmethod
    def from_yaml(cls, path: Path, *, expected_cells: Optional[int] = None) -> "PieceSet":
        p = Path(path)
        data = yaml.safe_load(p.read_text(encoding="utf-8"))

        if not isinstance(data, dict):
            raise ValueError(f"piece YAML must be a mapping at top-level, got {type(data)!r}")

        if expected_cells is None:
            v = data.get("expected_cells", None)
            if isinstance(v, bool):
                raise TypeError("expected_cells must be int or str, got bool")
            if isinstance(v, int):
                expected_cells = v
            elif isinstance(v, str):
                expected_cells = int(v)
            elif v is not None:
                raise TypeError(f"expected_cells must be int or str, got {type(v)!r}")

        tables_node = data.get("kick_tables", {}) or {}
        if not isinstance(tables_node, dict):
            raise ValueError("'kick_tables' must be a mapping of name -> table")
        tables = {str(name): _parse_kick_table(str(name), node) for name, node in tables_node.items()}

        pieces_node = data.get("pieces")
        if not isinstance(pieces_node, dict) or not pieces_node:
            raise ValueError("piece YAML must contain non-empty mapping 'pieces:'")

        pieces: Dict[str, PieceDef] = {}
        kind_order: List[str] = []

        for kind, spec in pieces_node.items():
            if not isinstance(kind, str) or not kind:
                raise ValueError(f"piece key must be a non-empty string, got {kind!r}")
            if not isinstance(spec, dict):
                raise ValueError(f"piece spec for {kind!r} must be a mapping, got {type(spec)!r}")

            cells = _parse_cells(spec.get("cells"), where=repr(kind))

            if expected_cells is not None and len(cells) != int(expected_cells):
                raise ValueError(f"{kind!r}: expected {expected_cells} cells, got {len(cells)}")

            color = _parse_color(spec.get("color"))

            kicks_name = spec.get("kicks", None)
            kicks: Optional[KickTable] = None
            if kicks_name is not None:
                kicks = tables.get(str(kicks_name))
                if kicks is None:
                    raise ValueError(f"{kind!r}: unknown kick table {kicks_name!r} (known={sorted(tables)!r})")

            pieces[kind] = PieceDef.build(kind=kind, cells=cells, color=color, kicks=kicks)
            kind_order.append(kind)

        counts = {p.cell_count() for p in pieces.values()}
        if len(counts) != 1:
            raise ValueError(f"pieces must have the same cell count, got {sorted(counts)}")

        return cls(pieces=MappingProxyType(pieces), kind_order=tuple(kind_order))

    def kinds(self) -> Tuple[str, ...]:
        return self.kind_order

    def __contains__(self, kind: str) -> bool:
        return kind in self.pieces

    def get(self, kind: str) -> PieceDef:
        try:
            return self.pieces[kind]
        except KeyError as e:
            raise KeyError(f"unknown piece kind {kind!r}. known kinds={list(self.kind_order)!r}") from e

    def cells(self, kind: str) -> Tuple[Cell, ...]:
        return self.get(kind).cells

    def color_of(self, kind: str) -> Color:
        return self.get(kind).color

    def bbox(self, kind: str) -> BoundingBox:
        return self.get(kind).bbox

    def center(self, kind: str) -> Tuple[float, float]:
        return self.get(kind).center

    def kick_table(self, kind: str) -> Optional[KickTable]:
        return self.get(kind).kicks

    def max_bbox_size(self) -> Tuple[int, int]:
        """
        Return (max_bbox_w, max_bbox_h) over all kinds in their spawn orientation,
        taking the larger side for both since every kind can be turned a quarter.
        """
        side = 0
        for kind in self.kinds():
            b = self.bbox(kind)
            side = max(side, b.width, b.height)
        return int(side), int(side)


@lru_cache(maxsize=1)
def default_catalog() -> PieceSet:
    return PieceSet.from_yaml(PieceSet.default_classic7_path(), expected_cells=4)


__all__ = ["BoundingBox", "KickTable", "PieceDef", "PieceSet", "default_catalog"]
