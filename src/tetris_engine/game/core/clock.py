# src/tetris_engine/game/core/clock.py
from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now_ms(self) -> float:
        ...


class MonotonicClock:
    def now_ms(self) -> float:
        return time.monotonic() * 1000.0


class ManualClock:
    """
    Clock that only moves when told to. Used by tests and the headless driver.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)

    def now_ms(self) -> float:
        return self._now

    def advance(self, ms: float) -> None:
        if ms < 0:
            raise ValueError(f"cannot move a clock backwards (ms={ms})")
        self._now += float(ms)


__all__ = ["Clock", "MonotonicClock", "ManualClock"]
