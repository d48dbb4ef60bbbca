# src/tetris_engine/utils/seed.py
from __future__ import annotations

"""
Deterministic seed utilities.

Purpose:
  - Provide a single, stable implementation of splitmix64
  - Derive reproducible 32-bit seeds from a base seed + stream id
    (e.g. episode index in the headless driver)

This module MUST remain side-effect free and deterministic.
No RNG state is stored here.
"""


def splitmix64(x: int) -> int:
    """
    Stateless 64-bit SplitMix hash.

    Input:
      x : int (treated as unsigned 64-bit)

    Output:
      uint64 encoded as Python int
    """
    z = (int(x) + 0x9E3779B97F4A7C15) & 0xFFFFFFFFFFFFFFFF
    z = (z ^ (z >> 30)) * 0xBF58476D1CE4E5B9 & 0xFFFFFFFFFFFFFFFF
    z = (z ^ (z >> 27)) * 0x94D049BB133111EB & 0xFFFFFFFFFFFFFFFF
    z = z ^ (z >> 31)
    return int(z & 0xFFFFFFFFFFFFFFFF)


def seed32_from(*, base_seed: int, stream_id: int) -> int:
    """
    Derive a deterministic 32-bit seed from a base seed and a stream id.

    Guarantees:
      - Same (base_seed, stream_id) -> same seed
      - Different stream_id -> decorrelated streams
      - Result fits in signed 32-bit int

    Returns:
      int in [0, 2^31 - 1]
    """
    mixed = splitmix64((int(base_seed) << 32) ^ int(stream_id))
    return int(mixed & 0x7FFFFFFF)


__all__ = [
    "splitmix64",
    "seed32_from",
]
