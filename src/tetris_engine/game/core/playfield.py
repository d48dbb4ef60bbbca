# src/tetris_engine/game/core/playfield.py
from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

import numpy as np

from tetris_engine.game.core.board import Board
from tetris_engine.game.core.clock import Clock, MonotonicClock
from tetris_engine.game.core.constants import (
    DEFAULT_GHOST_INTENSITY,
    DEFAULT_HEIGHT,
    DEFAULT_LOCK_DELAY_MS,
    DEFAULT_PREVIEW_SIZE,
    DEFAULT_WIDTH,
    EMPTY_COLOR,
)
from tetris_engine.game.core.piece_rules import BagPieceRule, PieceRule
from tetris_engine.game.core.pieceset import PieceSet, default_catalog
from tetris_engine.game.core.rotation import find_kick, kick_candidates, next_rotation, rotate_offsets
from tetris_engine.game.core.rules import ScoreConfig
from tetris_engine.game.core.snapshot import compose_cell_colors, preview_colors
from tetris_engine.game.core.stats import ScoreTracker, StatsListener
from tetris_engine.game.core.types import Action, ActivePiece, Cell, Color, PlayfieldState, RotationState

LOG = logging.getLogger(__name__)

_ACTION_ALIASES = {
    "left": Action.LEFT,
    "right": Action.RIGHT,
    "soft_drop": Action.SOFT_DROP,
    "down": Action.SOFT_DROP,
    "hard_drop": Action.HARD_DROP,
    "drop": Action.HARD_DROP,
    "rot_cw": Action.ROT_CW,
    "rotate_cw": Action.ROT_CW,
    "rotate_right": Action.ROT_CW,
    "cw": Action.ROT_CW,
    "rot_ccw": Action.ROT_CCW,
    "rotate_ccw": Action.ROT_CCW,
    "rotate_left": Action.ROT_CCW,
    "ccw": Action.ROT_CCW,
    "hold": Action.HOLD,
}


class Playfield:
    """
    Falling-block rules engine.

    Active-piece sub-machine:

      Empty --spawn--> Falling --blocked--> Locking --timer/hard drop--> Empty (commit)
                          ^                    |
                          +----unblocked-------+

    Contracts:

      - board holds LOCKED cells only; the active piece lives beside it and is
        overlaid in get_cell_colors().
      - Row 0 is the bottom row. Pieces spawn with their center on the top row,
        at column width // 2.
      - Every action returns a bool and never raises for an illegal or rejected
        move; the state is left untouched on False.
      - A failed spawn leaves no active piece, keeps next_kind and sets game_over. The playfield
        keeps accepting calls; the driver decides when to stop ticking.
      - Lock delay reads the injected clock; nothing here sleeps.
      - Not thread-safe. Wrap in SynchronizedPlayfield to share across threads.
    """

    def __init__(
            self,
            *,
            width: int = DEFAULT_WIDTH,
            height: int = DEFAULT_HEIGHT,
            lock_delay_ms: float = DEFAULT_LOCK_DELAY_MS,
            piece_set: Optional[PieceSet] = None,
            piece_rule: Optional[PieceRule] = None,
            rng: Optional[np.random.Generator] = None,
            clock: Optional[Clock] = None,
            score_config: Optional[ScoreConfig] = None,
            preview_size: int = DEFAULT_PREVIEW_SIZE,
            ghost_intensity: float = DEFAULT_GHOST_INTENSITY,
            empty_color: Color = EMPTY_COLOR,
            settle_stack_when_idle: bool = False,
    ) -> None:
        self.w = int(width)
        self.h = int(height)
        if self.w <= 0:
            raise ValueError(f"width must be positive, got {self.w}")
        if self.h <= 0:
            raise ValueError(f"height must be positive, got {self.h}")

        self.lock_delay_ms = float(lock_delay_ms)
        if self.lock_delay_ms < 0:
            raise ValueError(f"lock_delay_ms must be >= 0, got {self.lock_delay_ms}")

        self.ghost_intensity = float(ghost_intensity)
        if not (0.0 <= self.ghost_intensity <= 1.0):
            raise ValueError(f"ghost_intensity must be in [0,1], got {self.ghost_intensity}")

        self.pieces = piece_set or default_catalog()
        if not self.pieces.kinds():
            raise ValueError("PieceSet has no kinds (empty pieceset is invalid).")

        self.preview_size = int(preview_size)
        need = max(self.pieces.max_bbox_size())
        if self.preview_size < need:
            raise ValueError(f"preview_size must be >= {need} to fit every piece, got {self.preview_size}")

        self.settle_stack_when_idle = bool(settle_stack_when_idle)

        self.board = Board.empty(h=self.h, w=self.w, empty_color=empty_color)
        self.stats = ScoreTracker(score_config)

        self._rng: np.random.Generator = rng if rng is not None else np.random.default_rng()
        self._piece_rule: PieceRule = piece_rule or BagPieceRule()
        self._clock: Clock = clock or MonotonicClock()

        self.active: Optional[ActivePiece] = None
        self.held_kind: Optional[str] = None
        self.can_hold = True
        self.game_over = False
        self._lock_started_ms: Optional[float] = None
        self._ghost: Tuple[Cell, ...] = ()

        self._piece_rule.reset(rng=self._rng, kinds=self.pieces.kinds())
        self.next_kind: str = self._piece_rule.next_piece()

    # ---- lifecycle -----------------------------------------------------------------

    def reset(self, *, seed: Optional[int] = None) -> None:
        """
        Start a new game: empty board, zeroed stats, no held piece, fresh bag.

        Does not spawn; call spawn_piece() to put the first piece in play.
        """
        if seed is not None:
            self._rng = np.random.default_rng(int(seed))

        self.board.reset()
        self.active = None
        self.held_kind = None
        self.can_hold = True
        self.game_over = False
        self._lock_started_ms = None
        self._ghost = ()

        self._piece_rule.reset(rng=self._rng, kinds=self.pieces.kinds())
        self.next_kind = self._piece_rule.next_piece()
        self.stats.reset()

    # ---- actions -------------------------------------------------------------------

    def spawn_piece(self) -> bool:
        if self.active is not None:
            return False
        if not self._enter(self.next_kind):
            return False
        self._advance_preview()
        self.can_hold = True
        return True

    def move_left(self) -> bool:
        return self._shift_sideways(-1)

    def move_right(self) -> bool:
        return self._shift_sideways(+1)

    def soft_drop(self) -> bool:
        if not self._try_shift(drow=-1, dcol=0):
            return False
        self._lock_started_ms = None
        self._forget_reached_ghost()
        return True

    def move_down(self) -> bool:
        return self.soft_drop()

    def rotate(self, clockwise: bool = True) -> bool:
        ap = self.active
        if ap is None:
            return False
        kicks = self.pieces.kick_table(ap.kind)
        if kicks is None:
            return False

        dst = next_rotation(ap.rotation, clockwise=clockwise)
        offsets = rotate_offsets(ap.offsets, clockwise=clockwise)
        kick = find_kick(
            board=self.board,
            row=ap.row,
            col=ap.col,
            offsets=offsets,
            candidates=kick_candidates(kicks, ap.rotation, dst),
        )
        if kick is None:
            return False

        drow, dcol = kick
        self.active = ActivePiece(
            kind=ap.kind,
            row=ap.row + drow,
            col=ap.col + dcol,
            offsets=offsets,
            rotation=dst,
        )
        self._lock_started_ms = None
        self._update_shadow()
        return True

    def rotate_clockwise(self) -> bool:
        return self.rotate(clockwise=True)

    def rotate_counter_clockwise(self) -> bool:
        return self.rotate(clockwise=False)

    def hold(self) -> bool:
        """
        Stash the active shape and bring in the held one (or the preview when
        nothing is held yet). Rejected, with no state change, if the incoming
        shape does not fit at the spawn point.
        """
        ap = self.active
        if ap is None or not self.can_hold:
            return False

        from_preview = self.held_kind is None
        kind = self.next_kind if from_preview else str(self.held_kind)
        incoming = self._spawn_candidate(kind)
        if not self.board.can_place(incoming.cells()):
            return False

        if from_preview:
            self._advance_preview()
        self.held_kind = ap.kind
        self._set_active(incoming)
        self.can_hold = False
        return True

    def hard_drop(self) -> bool:
        if self.active is None:
            return False
        while self._try_shift(drow=-1, dcol=0):
            pass
        self._commit()
        return True

    def update(self) -> None:
        """
        One gravity tick.

        With an active piece: descend one row, or run the lock-delay timer and
        commit once it expires. Without one: nothing, unless settle_stack_when_idle
        is set, in which case unsupported locked cells fall one row.
        """
        if self.active is None:
            if self.settle_stack_when_idle:
                self.board.settle()
            return

        if self._try_shift(drow=-1, dcol=0):
            self._lock_started_ms = None
            self._forget_reached_ghost()
            return

        now = float(self._clock.now_ms())
        if self._lock_started_ms is None:
            self._lock_started_ms = now
        if now - self._lock_started_ms >= self.lock_delay_ms:
            self._commit()

    def apply(self, action: Any) -> bool:
        """
        Dispatch an Action (or a string alias such as "left", "rotate_cw", "drop").

        Unknown strings are a no-op returning False.
        """
        a = self._normalize_action(action)
        if a is None:
            return False
        if a == Action.LEFT:
            return self.move_left()
        if a == Action.RIGHT:
            return self.move_right()
        if a == Action.SOFT_DROP:
            return self.soft_drop()
        if a == Action.HARD_DROP:
            return self.hard_drop()
        if a == Action.ROT_CW:
            return self.rotate(clockwise=True)
        if a == Action.ROT_CCW:
            return self.rotate(clockwise=False)
        if a == Action.HOLD:
            return self.hold()
        return False

    # ---- queries -------------------------------------------------------------------

    def get_width(self) -> int:
        return self.w

    def get_height(self) -> int:
        return self.h

    def get_score(self) -> int:
        return int(self.stats.score)

    def get_level(self) -> int:
        return int(self.stats.level)

    def get_lines_cleared(self) -> int:
        return int(self.stats.lines_cleared)

    def register_stats_listener(self, callback: Optional[StatsListener]) -> None:
        self.stats.register_listener(callback)

    def is_valid_position(self, row: int, col: int) -> bool:
        return self.board.is_valid_position(row, col)

    @property
    def ghost_cells(self) -> Tuple[Cell, ...]:
        return self._ghost

    @property
    def is_locking(self) -> bool:
        return self._lock_started_ms is not None

    def get_cell_colors(self) -> np.ndarray:
        ap = self.active
        if ap is None:
            return self.board.flat_colors()
        return compose_cell_colors(
            board=self.board,
            active_cells=ap.cells(),
            active_color=self.pieces.color_of(ap.kind),
            ghost_cells=self._ghost,
            ghost_intensity=self.ghost_intensity,
        )

    def get_held_tetromino_colors(self) -> np.ndarray:
        return preview_colors(pieces=self.pieces, kind=self.held_kind, size=self.preview_size)

    def get_next_tetromino_colors(self) -> np.ndarray:
        return preview_colors(pieces=self.pieces, kind=self.next_kind, size=self.preview_size)

    def state(self) -> PlayfieldState:
        return PlayfieldState(
            score=self.get_score(),
            lines=self.get_lines_cleared(),
            level=self.get_level(),
            game_over=bool(self.game_over),
            active=self.active,
            held_kind=self.held_kind,
            next_kind=str(self.next_kind),
            can_hold=bool(self.can_hold),
            locking=self.is_locking,
        )

    # ---- internals -----------------------------------------------------------------

    def _normalize_action(self, action: Any) -> Optional[Action]:
        if isinstance(action, Action):
            return action
        return _ACTION_ALIASES.get(str(action).strip().lower())

    def _advance_preview(self) -> None:
        # Only called once the preview kind has actually entered play.
        self.next_kind = self._piece_rule.next_piece()

    def _spawn_candidate(self, kind: str) -> ActivePiece:
        return ActivePiece(
            kind=kind,
            row=self.h - 1,
            col=self.w // 2,
            offsets=self.pieces.cells(kind),
            rotation=RotationState.SPAWN,
        )

    def _set_active(self, ap: ActivePiece) -> None:
        self.active = ap
        self._lock_started_ms = None
        self._update_shadow()

    def _enter(self, kind: str) -> bool:
        """
        Place `kind` at the spawn point in its spawn orientation.

        On collision nothing is placed and game_over is raised.
        """
        ap = self._spawn_candidate(kind)
        if not self.board.can_place(ap.cells()):
            if not self.game_over:
                LOG.info(
                    "spawn blocked: kind=%s at (%d, %d); score=%d lines=%d",
                    kind, ap.row, ap.col, self.stats.score, self.stats.lines_cleared,
                )
            self.game_over = True
            return False

        self._set_active(ap)
        return True

    def _try_shift(self, *, drow: int, dcol: int) -> bool:
        ap = self.active
        if ap is None:
            return False
        moved = ap.shifted(drow, dcol)
        if not self.board.can_place(moved.cells()):
            return False
        self.active = moved
        return True

    def _shift_sideways(self, dcol: int) -> bool:
        if not self._try_shift(drow=0, dcol=dcol):
            return False
        self._lock_started_ms = None
        self._update_shadow()
        return True

    def _update_shadow(self) -> None:
        ap = self.active
        if ap is None:
            self._ghost = ()
            return
        drop = 0
        while self.board.can_place((r - drop - 1, c) for r, c in ap.cells()):
            drop += 1
        if drop == 0:
            self._ghost = ()
            return
        self._ghost = tuple((r - drop, c) for r, c in ap.cells())

    def _forget_reached_ghost(self) -> None:
        # Pure descent keeps the ghost valid until the piece sits on it.
        ap = self.active
        if ap is not None and self._ghost and set(self._ghost) == set(ap.cells()):
            self._ghost = ()

    def _commit(self) -> None:
        ap = self.active
        if ap is None:
            return

        self.board.place(ap.cells(), self.pieces.color_of(ap.kind))
        self.active = None
        self._lock_started_ms = None
        self._ghost = ()

        cleared = self.board.clear_completed_rows()
        self.stats.add_lines_cleared(cleared)
        LOG.debug(
            "locked kind=%s rot=%s at (%d, %d); cleared=%d score=%d",
            ap.kind, ap.rotation.value, ap.row, ap.col, cleared, self.stats.score,
        )

        self.spawn_piece()


__all__ = ["Playfield"]
