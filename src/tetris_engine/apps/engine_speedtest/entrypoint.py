# src/tetris_engine/apps/engine_speedtest/entrypoint.py
from __future__ import annotations

import argparse
import time
from pathlib import Path

import numpy as np

from tetris_engine.config.engine import EngineConfig
from tetris_engine.config.io import load_engine_config
from tetris_engine.game.core.clock import ManualClock
from tetris_engine.game.core.playfield import Playfield
from tetris_engine.game.core.types import Action
from tetris_engine.game.factory import make_playfield_from_cfg
from tetris_engine.utils.logging import setup_logger
from tetris_engine.utils.seed import seed32_from

_ACTIONS: tuple[Action, ...] = tuple(Action)


def build_config(args: argparse.Namespace) -> EngineConfig:
    """
    Config file first (if any), then explicit CLI overrides on top.
    """
    base = load_engine_config(Path(args.config)) if args.config else EngineConfig()
    overrides: dict[str, object] = {"seed": int(args.seed)}
    if args.piece_rule is not None:
        overrides["piece_rule"] = args.piece_rule
    if args.width is not None:
        overrides["width"] = int(args.width)
    if args.height is not None:
        overrides["height"] = int(args.height)
    if args.lock_delay_ms is not None:
        overrides["lock_delay_ms"] = float(args.lock_delay_ms)
    return EngineConfig.model_validate({**base.model_dump(), **overrides})


def _check_invariants(pf: Playfield, *, tick: int) -> None:
    ap = pf.active
    if ap is not None and not pf.board.can_place(ap.cells()):
        raise RuntimeError(f"active piece overlaps the stack at tick={tick}: {ap!r}")
    for row, col in pf.ghost_cells:
        if not pf.is_valid_position(row, col):
            raise RuntimeError(f"ghost cell ({row}, {col}) is not free at tick={tick}")


def run_speedtest(args: argparse.Namespace) -> int:
    log = setup_logger(name="tetris_engine", use_rich=not args.plain_log, level=str(args.log_level))

    cfg = build_config(args)
    clock = ManualClock()
    pf = make_playfield_from_cfg(cfg, clock=clock)
    pf.spawn_piece()

    # action stream is independent from the piece stream
    action_rng = np.random.default_rng(seed32_from(base_seed=int(cfg.seed or 0), stream_id=0xAC7))

    ticks_target = int(args.ticks)
    stats_every = int(args.stats_every)
    verify = bool(args.verify)
    tick_ms = float(args.tick_ms)
    action_prob = float(args.action_prob)

    log.info(
        f"[speedtest] {cfg.width}x{cfg.height} piece_rule={cfg.piece_rule} "
        f"lock_delay_ms={cfg.lock_delay_ms:g} seed={cfg.seed} ticks={ticks_target}"
    )

    episodes_finished = 0
    lines_sum = 0
    score_sum = 0
    score_max = 0
    actions_ok = 0
    actions_total = 0

    t0 = time.perf_counter()

    for tick in range(1, ticks_target + 1):
        if action_rng.random() < action_prob:
            a = _ACTIONS[int(action_rng.integers(0, len(_ACTIONS)))]
            actions_total += 1
            if pf.apply(a):
                actions_ok += 1

        clock.advance(tick_ms)
        pf.update()

        if verify:
            _check_invariants(pf, tick=tick)

        if pf.game_over:
            episodes_finished += 1
            lines_sum += pf.get_lines_cleared()
            score_sum += pf.get_score()
            score_max = max(score_max, pf.get_score())

            ep_seed = seed32_from(base_seed=int(cfg.seed or 0), stream_id=episodes_finished)
            pf.reset(seed=ep_seed)
            pf.spawn_piece()

        if stats_every and (tick % stats_every == 0):
            elapsed = time.perf_counter() - t0
            log.info(
                f"[progress] ticks={tick} elapsed={elapsed:.3f}s ticks/s={tick / max(elapsed, 1e-12):.1f} "
                f"episodes={episodes_finished} score={pf.get_score()} lines={pf.get_lines_cleared()}"
            )

    elapsed = time.perf_counter() - t0
    avg_lines = (lines_sum / episodes_finished) if episodes_finished > 0 else 0.0
    avg_score = (score_sum / episodes_finished) if episodes_finished > 0 else 0.0
    accept = (actions_ok / actions_total) if actions_total > 0 else 0.0

    log.info(
        f"[done] ticks={ticks_target} elapsed={elapsed:.3f}s ticks/s={ticks_target / max(elapsed, 1e-12):.1f} "
        f"episodes={episodes_finished} avg_lines={avg_lines:.2f} avg_score={avg_score:.1f} "
        f"max_score={score_max} action_accept={accept:.1%}"
    )
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Headless speed test of the playfield engine with random inputs and a manual clock."
    )
    parser.add_argument("--ticks", type=int, default=200_000, help="Total gravity ticks to execute.")
    parser.add_argument("--seed", type=int, default=12345)
    parser.add_argument("--config", type=str, default=None, help="Engine YAML config (bare or under `engine:`).")
    parser.add_argument("--piece-rule", type=str, default=None, choices=["bag7", "uniform"])
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--lock-delay-ms", type=float, default=None)

    # Simulated timing / input
    parser.add_argument("--tick-ms", type=float, default=50.0, help="Simulated ms between gravity ticks.")
    parser.add_argument("--action-prob", type=float, default=0.8, help="Chance of one random action per tick.")

    # Reporting
    parser.add_argument("--stats-every", type=int, default=50_000, help="Log progress every N ticks (0 disables).")
    parser.add_argument("--verify", action="store_true", help="Check collision/ghost invariants after every tick.")
    parser.add_argument("--log-level", type=str, default="info")
    parser.add_argument("--plain-log", action="store_true", help="Plain stream logging instead of rich.")
    return parser.parse_args(argv)


__all__ = ["parse_args", "run_speedtest", "build_config"]
