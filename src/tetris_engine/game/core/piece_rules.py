# src/tetris_engine/game/core/piece_rules.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np


class PieceRule(ABC):
    """
    Piece selection rule interface.

    Lifecycle:
      - reset(rng=..., kinds=...) is called once per game
      - next_piece() is called whenever the playfield needs a new preview piece

    Notes:
      - The RNG is owned by the playfield and injected (seedable, replayable).
      - Rules may be stateful (store rng/kinds) but should not create their own RNG streams.
    """

    @abstractmethod
    def reset(self, *, rng: np.random.Generator, kinds: Sequence[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    def next_piece(self) -> str:
        raise NotImplementedError


@dataclass
class UniformPieceRule(PieceRule):
    """
    Independent uniform draws; repeats and droughts are unbounded.
    """

    _rng: np.random.Generator | None = None
    _kinds: tuple[str, ...] = ()

    def reset(self, *, rng: np.random.Generator, kinds: Sequence[str]) -> None:
        self._rng = rng
        self._kinds = tuple(str(k) for k in kinds)
        if not self._kinds:
            raise ValueError("UniformPieceRule requires non-empty kinds")

    def next_piece(self) -> str:
        if self._rng is None or not self._kinds:
            raise RuntimeError("UniformPieceRule.reset() must be called before next_piece()")
        i = int(self._rng.integers(0, len(self._kinds)))
        return self._kinds[i]


@dataclass
class BagPieceRule(PieceRule):
    """
    K-bag randomizer (generalization of 7-bag).

    Parameters:
      - bag_copies: how many copies of each kind are placed into a bag before shuffling.
          * bag_copies=1 -> classic 7-bag for tetrominoes.
          * bag_copies>1 -> larger bag: N copies of each piece per bag.

    Every aligned window of len(kinds) * bag_copies draws is a permutation of the bag.
    Windows that straddle a refill carry no such guarantee.
    """

    bag_copies: int = 1

    _rng: np.random.Generator | None = None
    _kinds: tuple[str, ...] = ()
    _bag: list[str] = field(default_factory=list)

    def reset(self, *, rng: np.random.Generator, kinds: Sequence[str]) -> None:
        self._rng = rng
        self._kinds = tuple(str(k) for k in kinds)
        if not self._kinds:
            raise ValueError("BagPieceRule requires non-empty kinds")
        if int(self.bag_copies) <= 0:
            raise ValueError(f"BagPieceRule.bag_copies must be >= 1 (got {self.bag_copies})")
        self._bag = []

    def _refill(self) -> None:
        if self._rng is None or not self._kinds:
            raise RuntimeError("BagPieceRule.reset() must be called before _refill()")
        bag = [k for k in self._kinds for _ in range(int(self.bag_copies))]
        # Fisher-Yates: swap i with a uniform pick from [0, i]
        for i in range(len(bag) - 1, 0, -1):
            j = int(self._rng.integers(0, i + 1))
            bag[i], bag[j] = bag[j], bag[i]
        self._bag = bag

    def remaining(self) -> int:
        return len(self._bag)

    def next_piece(self) -> str:
        if self._rng is None or not self._kinds:
            raise RuntimeError("BagPieceRule.reset() must be called before next_piece()")
        if not self._bag:
            self._refill()
        return self._bag.pop()


@dataclass
class SequencePieceRule(PieceRule):
    """
    Replays a fixed sequence of kinds, cycling when exhausted.

    Ignores the injected RNG. Kinds are checked against the piece set on reset().
    """

    sequence: tuple[str, ...] = ()

    _pos: int = 0

    def reset(self, *, rng: np.random.Generator, kinds: Sequence[str]) -> None:
        _ = rng
        self.sequence = tuple(str(k) for k in self.sequence)
        if not self.sequence:
            raise ValueError("SequencePieceRule requires a non-empty sequence")
        known = set(str(k) for k in kinds)
        unknown = [k for k in self.sequence if k not in known]
        if unknown:
            raise ValueError(f"SequencePieceRule: unknown kinds {unknown!r} (known={sorted(known)!r})")
        self._pos = 0

    def next_piece(self) -> str:
        if not self.sequence:
            raise RuntimeError("SequencePieceRule.reset() must be called before next_piece()")
        kind = self.sequence[self._pos % len(self.sequence)]
        self._pos += 1
        return kind


def make_piece_rule(name: str, *, bag_copies: int = 1) -> PieceRule:
    n = str(name).strip().lower()
    if n == "bag7":
        return BagPieceRule(bag_copies=int(bag_copies))
    if n == "uniform":
        return UniformPieceRule()
    raise ValueError(f"unknown piece_rule {name!r} (expected 'bag7' or 'uniform')")


__all__ = [
    "PieceRule",
    "UniformPieceRule",
    "BagPieceRule",
    "SequencePieceRule",
    "make_piece_rule",
]
