# tests/test_playfield.py
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pytest

from tetris_engine.game.core.clock import ManualClock
from tetris_engine.game.core.constants import EMPTY_COLOR
from tetris_engine.game.core.piece_rules import SequencePieceRule
from tetris_engine.game.core.pieceset import default_catalog
from tetris_engine.game.core.playfield import Playfield
from tetris_engine.game.core.types import Action, RotationState

GRAY = (0.2, 0.2, 0.2, 1.0)


def make_pf(
        sequence: Sequence[str] = ("T",),
        *,
        width: int = 10,
        height: int = 20,
        lock_delay_ms: float = 500.0,
        clock: Optional[ManualClock] = None,
        **kwargs,
) -> Playfield:
    return Playfield(
        width=width,
        height=height,
        lock_delay_ms=lock_delay_ms,
        piece_rule=SequencePieceRule(sequence=tuple(sequence)),
        rng=np.random.default_rng(0),
        clock=clock or ManualClock(),
        **kwargs,
    )


def _rgba(buf: np.ndarray, *, width: int, row: int, col: int) -> tuple[float, ...]:
    i = (row * width + col) * 4
    return tuple(float(x) for x in buf[i:i + 4])


# ---- construction ------------------------------------------------------------------


@pytest.mark.parametrize("width,height", [(0, 20), (10, 0), (-1, 20), (10, -5)])
def test_rejects_non_positive_dimensions(width: int, height: int) -> None:
    with pytest.raises(ValueError, match="must be positive"):
        Playfield(width=width, height=height)


def test_rejects_preview_smaller_than_largest_piece() -> None:
    with pytest.raises(ValueError, match="preview_size"):
        Playfield(preview_size=3)


def test_rejects_negative_lock_delay() -> None:
    with pytest.raises(ValueError, match="lock_delay_ms"):
        Playfield(lock_delay_ms=-1)


# ---- spawn ---------------------------------------------------------------------------


def test_spawn_places_piece_at_top_center() -> None:
    pf = make_pf(("T", "S"))
    assert pf.next_kind == "T"
    assert pf.spawn_piece()

    ap = pf.active
    assert ap is not None
    assert (ap.kind, ap.row, ap.col, ap.rotation) == ("T", 19, 5, RotationState.SPAWN)
    assert pf.next_kind == "S"
    assert pf.can_hold


def test_spawn_is_a_no_op_while_a_piece_is_active() -> None:
    pf = make_pf()
    assert pf.spawn_piece()
    before = pf.active
    assert not pf.spawn_piece()
    assert pf.active is before


def test_actions_without_active_piece_return_false() -> None:
    pf = make_pf()
    assert not pf.move_left()
    assert not pf.move_right()
    assert not pf.soft_drop()
    assert not pf.rotate_clockwise()
    assert not pf.rotate_counter_clockwise()
    assert not pf.hold()
    assert not pf.hard_drop()
    pf.update()
    assert pf.active is None


def test_blocked_spawn_is_game_over() -> None:
    pf = make_pf(("O",))
    pf.board.place([(19, 5)], GRAY)
    assert not pf.spawn_piece()
    assert pf.active is None
    assert pf.game_over
    assert pf.board.row_count(pf.get_height() - 1) > 0


def test_stack_reaching_the_top_ends_the_game() -> None:
    pf = make_pf(("O",), height=4)
    assert pf.spawn_piece()
    assert pf.hard_drop()  # rows 0-1
    assert pf.active is not None
    assert pf.hard_drop()  # rows 2-3, next spawn collides
    assert pf.active is None
    assert pf.game_over
    assert pf.state().game_over


def test_failed_spawn_keeps_the_upcoming_kind() -> None:
    pf = make_pf(("T", "I", "S"))
    pf.board.place([(19, 5)], GRAY)
    for _ in range(3):
        assert not pf.spawn_piece()
    assert pf.next_kind == "T"

    pf.board.reset()
    assert pf.spawn_piece()
    assert pf.active is not None and pf.active.kind == "T"
    assert pf.next_kind == "I"


# ---- movement ------------------------------------------------------------------------


def test_moves_stop_at_the_walls() -> None:
    pf = make_pf(("T",))
    pf.spawn_piece()

    lefts = 0
    while pf.move_left():
        lefts += 1
    assert lefts == 4
    assert pf.active is not None and pf.active.col == 1

    rights = 0
    while pf.move_right():
        rights += 1
    assert rights == 7
    assert pf.active is not None and pf.active.col == 8


def test_moves_are_blocked_by_locked_cells() -> None:
    pf = make_pf(("T",))
    pf.board.place([(19, 3)], GRAY)
    pf.spawn_piece()
    assert not pf.move_left()
    assert pf.active is not None and pf.active.col == 5


def test_soft_drop_descends_one_row() -> None:
    pf = make_pf(("T",))
    pf.spawn_piece()
    assert pf.soft_drop()
    assert pf.active is not None and pf.active.row == 18
    assert pf.move_down()
    assert pf.active is not None and pf.active.row == 17


# ---- rotation ------------------------------------------------------------------------


def test_o_piece_never_rotates() -> None:
    pf = make_pf(("O",))
    pf.spawn_piece()
    before = pf.active
    assert not pf.rotate_clockwise()
    assert not pf.rotate_counter_clockwise()
    assert pf.active == before


def test_four_clockwise_rotations_in_open_space_restore_the_piece() -> None:
    for kind in ("T", "S", "Z", "J", "L", "I"):
        pf = make_pf((kind,))
        pf.spawn_piece()
        for _ in range(8):
            assert pf.soft_drop()
        start = pf.active
        assert start is not None

        states = []
        for _ in range(4):
            assert pf.rotate_clockwise()
            assert pf.active is not None
            states.append(pf.active.rotation)

        assert states == [RotationState.RIGHT, RotationState.FLIP, RotationState.LEFT, RotationState.SPAWN]
        assert pf.active.offsets == start.offsets
        assert pf.active.rotation == start.rotation


def test_rotation_at_the_ceiling_uses_a_kick() -> None:
    pf = make_pf(("T",))
    pf.spawn_piece()
    assert pf.rotate_clockwise()
    ap = pf.active
    assert ap is not None
    # (0, 0) would poke above the top row; the second JLSTZ candidate (-1, 0) fits
    assert (ap.row, ap.col, ap.rotation) == (18, 5, RotationState.RIGHT)


def test_i_piece_kicks_two_rows_down_from_spawn() -> None:
    pf = make_pf(("I",))
    pf.spawn_piece()
    assert pf.rotate_clockwise()
    ap = pf.active
    assert ap is not None
    assert (ap.row, ap.col) == (17, 5)
    assert sorted(ap.cells()) == [(16, 5), (17, 5), (18, 5), (19, 5)]


def test_rotation_fails_when_no_kick_fits() -> None:
    pf = make_pf(("T",), width=3, height=2)
    assert pf.spawn_piece()
    before = pf.active
    assert not pf.rotate_clockwise()
    assert not pf.rotate_counter_clockwise()
    assert pf.active == before


# ---- hard drop / line clears ---------------------------------------------------------


def test_hard_drop_lands_on_row_zero_and_locks_color() -> None:
    pf = make_pf(("I",))
    pf.spawn_piece()
    assert pf.hard_drop()

    color = default_catalog().color_of("I")
    for col in range(4, 8):
        assert bool(pf.board.occupied[0, col])
        assert _rgba(pf.get_cell_colors(), width=10, row=0, col=col) == pytest.approx(color)
    assert pf.board.filled_cells() == 4

    # next piece is already in play
    assert pf.active is not None and pf.active.row == 19


def test_hard_drop_t_lowest_cell_is_row_zero() -> None:
    pf = make_pf(("T",))
    pf.spawn_piece()
    pf.hard_drop()
    assert sorted(zip(*np.nonzero(pf.board.occupied))) == [(0, 5), (1, 4), (1, 5), (1, 6)]


def test_single_line_clear_scores_and_compacts() -> None:
    calls: list[int] = []
    pf = make_pf(("I",))
    pf.register_stats_listener(lambda: calls.append(pf.get_score()))
    pf.board.place([(0, c) for c in (0, 1, 2, 3, 8, 9)], GRAY)
    pf.board.place([(1, 0)], GRAY)

    pf.spawn_piece()
    pf.hard_drop()

    assert pf.get_lines_cleared() == 1
    assert pf.get_score() == 100
    assert pf.get_level() == 1
    assert calls == [100]
    assert pf.board.filled_cells() == 1
    assert bool(pf.board.occupied[0, 0])


def test_vertical_i_clears_four_lines() -> None:
    pf = make_pf(("I",))
    pf.board.place([(r, c) for r in range(4) for c in range(9)], GRAY)

    pf.spawn_piece()
    assert pf.rotate_clockwise()
    for _ in range(4):
        assert pf.move_right()
    assert not pf.move_right()
    pf.hard_drop()

    assert pf.get_lines_cleared() == 4
    assert pf.get_score() == 800
    assert pf.board.filled_cells() == 0


# ---- hold ----------------------------------------------------------------------------


def test_hold_once_per_spawn() -> None:
    pf = make_pf(("T", "S", "Z", "J"))
    pf.spawn_piece()

    assert pf.hold()
    assert pf.held_kind == "T"
    assert pf.active is not None and pf.active.kind == "S"
    assert not pf.can_hold

    # second hold before a natural spawn is rejected
    assert not pf.hold()
    assert pf.active.kind == "S"

    pf.hard_drop()  # natural spawn of Z
    assert pf.active is not None and pf.active.kind == "Z"
    assert pf.can_hold

    assert pf.hold()
    ap = pf.active
    assert ap is not None
    assert (ap.kind, ap.row, ap.col, ap.rotation) == ("T", 19, 5, RotationState.SPAWN)
    assert pf.held_kind == "Z"


def test_hold_resets_orientation_and_position() -> None:
    pf = make_pf(("L", "J", "T"))
    pf.spawn_piece()
    pf.move_left()
    pf.soft_drop()
    pf.rotate_clockwise()
    pf.hold()
    pf.hard_drop()
    assert pf.hold()
    ap = pf.active
    assert ap is not None
    assert ap.kind == "L"
    assert ap.offsets == default_catalog().cells("L")
    assert (ap.row, ap.col) == (19, 5)


def test_hold_is_rejected_when_the_held_shape_cannot_enter() -> None:
    pf = make_pf(("T", "I", "S"))
    pf.spawn_piece()
    assert pf.hold()  # held T, active I
    pf.hard_drop()  # S spawns
    for _ in range(4):
        assert pf.soft_drop()
    pf.board.place([(19, 4)], GRAY)  # T spawn cell, clear of the falling S

    before = pf.state()
    ghost = pf.ghost_cells
    assert not pf.hold()
    assert pf.state() == before
    assert pf.held_kind == "T"
    assert pf.active is not None and pf.active.kind == "S"
    assert pf.can_hold
    assert not pf.game_over
    assert pf.ghost_cells == ghost


def test_first_hold_is_rejected_when_the_preview_cannot_enter() -> None:
    pf = make_pf(("T", "I"))
    pf.spawn_piece()
    for _ in range(3):
        assert pf.soft_drop()
    pf.board.place([(19, 7)], GRAY)  # I spawn cell

    assert not pf.hold()
    assert pf.held_kind is None
    assert pf.next_kind == "I"
    assert pf.active is not None and pf.active.kind == "T"
    assert not pf.game_over

    # preview was not consumed by the rejected hold
    pf.board.reset()
    assert pf.hold()
    assert pf.active is not None and pf.active.kind == "I"
    assert pf.next_kind == "T"


# ---- gravity / lock delay ------------------------------------------------------------


def test_update_descends_active_piece() -> None:
    pf = make_pf(("T",))
    pf.spawn_piece()
    pf.update()
    assert pf.active is not None and pf.active.row == 18
    assert not pf.is_locking


def test_lock_delay_commits_after_timeout() -> None:
    clock = ManualClock()
    pf = make_pf(("O",), clock=clock, lock_delay_ms=500)
    pf.spawn_piece()
    while pf.soft_drop():
        pass

    pf.update()
    assert pf.is_locking
    assert pf.board.filled_cells() == 0

    clock.advance(499)
    pf.update()
    assert pf.active is not None and pf.active.row == 1
    assert pf.board.filled_cells() == 0

    clock.advance(1)
    pf.update()
    assert pf.board.filled_cells() == 4
    for cell in [(0, 5), (0, 6), (1, 5), (1, 6)]:
        assert bool(pf.board.occupied[cell])
    assert not pf.is_locking
    assert pf.active is not None and pf.active.row == 19


def test_successful_rotation_clears_lock_timer() -> None:
    clock = ManualClock()
    pf = make_pf(("T",), clock=clock, lock_delay_ms=500)
    pf.spawn_piece()
    while pf.soft_drop():
        pass
    pf.update()
    assert pf.is_locking

    clock.advance(400)
    assert pf.rotate_clockwise()
    assert not pf.is_locking

    clock.advance(400)
    pf.update()
    assert pf.is_locking
    assert pf.board.filled_cells() == 0
    clock.advance(499)
    pf.update()
    assert pf.board.filled_cells() == 0
    clock.advance(1)
    pf.update()
    assert pf.board.filled_cells() == 4


def test_successful_move_clears_lock_timer() -> None:
    clock = ManualClock()
    pf = make_pf(("O",), clock=clock, lock_delay_ms=500)
    pf.spawn_piece()
    while pf.soft_drop():
        pass
    pf.update()
    assert pf.is_locking

    clock.advance(400)
    assert pf.move_left()
    assert not pf.is_locking

    # timer restarts from the next blocked tick
    clock.advance(200)
    pf.update()
    assert pf.is_locking
    assert pf.board.filled_cells() == 0
    clock.advance(500)
    pf.update()
    assert pf.board.filled_cells() == 4


def test_zero_lock_delay_commits_on_first_blocked_tick() -> None:
    pf = make_pf(("O",), lock_delay_ms=0)
    pf.spawn_piece()
    while pf.soft_drop():
        pass
    pf.update()
    assert pf.board.filled_cells() == 4


def test_idle_stack_is_static_by_default() -> None:
    pf = make_pf()
    pf.board.place([(5, 0)], GRAY)
    pf.update()
    assert bool(pf.board.occupied[5, 0])


def test_idle_stack_settles_when_enabled() -> None:
    pf = make_pf(settle_stack_when_idle=True)
    pf.board.place([(5, 0)], GRAY)
    pf.update()
    assert bool(pf.board.occupied[4, 0])
    assert not bool(pf.board.occupied[5, 0])


# ---- ghost ---------------------------------------------------------------------------


def test_ghost_marks_the_landing_cells() -> None:
    pf = make_pf(("T",))
    pf.spawn_piece()
    assert sorted(pf.ghost_cells) == [(0, 5), (1, 4), (1, 5), (1, 6)]
    assert all(pf.is_valid_position(r, c) for r, c in pf.ghost_cells)


def test_ghost_rests_on_the_stack() -> None:
    pf = make_pf(("T",))
    pf.board.place([(5, 5)], GRAY)
    pf.spawn_piece()
    assert sorted(pf.ghost_cells) == [(6, 5), (7, 4), (7, 5), (7, 6)]


def test_ghost_follows_horizontal_moves() -> None:
    pf = make_pf(("T",))
    pf.spawn_piece()
    pf.move_left()
    assert sorted(pf.ghost_cells) == [(0, 4), (1, 3), (1, 4), (1, 5)]


def test_ghost_is_empty_when_it_coincides_with_the_piece() -> None:
    pf = make_pf(("T",))
    pf.spawn_piece()
    while pf.soft_drop():
        pass
    assert pf.ghost_cells == ()
    pf.move_right()
    assert pf.ghost_cells == ()


# ---- snapshots -----------------------------------------------------------------------


def test_cell_colors_overlay_ghost_and_active() -> None:
    pf = make_pf(("T",), ghost_intensity=0.5)
    pf.spawn_piece()
    buf = pf.get_cell_colors()

    assert buf.dtype == np.float32
    assert buf.shape == (10 * 20 * 4,)
    assert _rgba(buf, width=10, row=19, col=5) == pytest.approx((1.0, 0.0, 1.0, 1.0))
    assert _rgba(buf, width=10, row=0, col=5) == pytest.approx((0.5, 0.0, 0.5, 1.0))
    assert _rgba(buf, width=10, row=10, col=0) == pytest.approx(EMPTY_COLOR)


def test_cell_colors_are_a_copy() -> None:
    pf = make_pf(("T",))
    pf.spawn_piece()
    buf = pf.get_cell_colors()
    buf[:] = 0.0
    assert _rgba(pf.get_cell_colors(), width=10, row=10, col=0) == pytest.approx(EMPTY_COLOR)


def test_held_preview_is_centered() -> None:
    pf = make_pf(("T", "S"))
    empty = pf.get_held_tetromino_colors()
    assert empty.shape == (4 * 4 * 4,)
    assert not empty.any()

    pf.spawn_piece()
    pf.hold()
    buf = pf.get_held_tetromino_colors()
    colored = {(r, c) for r in range(4) for c in range(4) if _rgba(buf, width=4, row=r, col=c)[3] > 0}
    assert colored == {(1, 1), (2, 0), (2, 1), (2, 2)}
    assert _rgba(buf, width=4, row=2, col=0) == pytest.approx((1.0, 0.0, 1.0, 1.0))
    assert _rgba(buf, width=4, row=0, col=0) == (0.0, 0.0, 0.0, 0.0)


def test_next_preview_shows_upcoming_kind() -> None:
    pf = make_pf(("T", "I"), preview_size=6)
    pf.spawn_piece()
    buf = pf.get_next_tetromino_colors()
    assert buf.shape == (6 * 6 * 4,)
    colored = {(r, c) for r in range(6) for c in range(6) if _rgba(buf, width=6, row=r, col=c)[3] > 0}
    assert colored == {(2, 1), (2, 2), (2, 3), (2, 4)}


# ---- dispatch / lifecycle ------------------------------------------------------------


def test_apply_dispatches_actions_and_aliases() -> None:
    pf = make_pf(("T", "S"))
    pf.spawn_piece()
    assert pf.apply("left")
    assert pf.active is not None and pf.active.col == 4
    assert pf.apply(Action.RIGHT)
    assert pf.apply("rotate_cw")
    assert not pf.apply("teleport")
    assert pf.apply(Action.HOLD)
    assert pf.apply("drop")


def test_reset_starts_a_new_game() -> None:
    pf = make_pf(("I",))
    pf.board.place([(0, c) for c in (0, 1, 2, 3, 8, 9)], GRAY)
    pf.spawn_piece()
    pf.hard_drop()
    pf.hold()
    assert pf.get_score() > 0

    pf.reset()
    st = pf.state()
    assert (st.score, st.lines, st.level) == (0, 0, 1)
    assert st.active is None and st.held_kind is None
    assert st.can_hold and not st.game_over
    assert pf.board.filled_cells() == 0
    assert pf.spawn_piece()


def test_seeded_reset_replays_the_same_sequence() -> None:
    a = Playfield(clock=ManualClock())
    b = Playfield(clock=ManualClock())
    a.reset(seed=99)
    b.reset(seed=99)

    seq_a, seq_b = [], []
    for pf, seq in ((a, seq_a), (b, seq_b)):
        for _ in range(14):
            pf.spawn_piece()
            assert pf.active is not None
            seq.append(pf.active.kind)
            pf.active = None
    assert seq_a == seq_b
    assert sorted(seq_a[:7]) == sorted("IOTSZJL")


def test_rejects_ghost_intensity_outside_unit_range() -> None:
    with pytest.raises(ValueError, match="ghost_intensity"):
        Playfield(ghost_intensity=1.5)
