# src/tetris_engine/game/factory.py
from __future__ import annotations

from typing import Any, Mapping, Optional

import numpy as np

from tetris_engine.config.engine import EngineConfig
from tetris_engine.game.core.clock import Clock
from tetris_engine.game.core.piece_rules import make_piece_rule
from tetris_engine.game.core.playfield import Playfield
from tetris_engine.game.core.pieceset import PieceSet
from tetris_engine.game.core.rules import ScoreConfig


def _as_engine_config(cfg: Any) -> EngineConfig:
    if cfg is None:
        return EngineConfig()
    if isinstance(cfg, EngineConfig):
        return cfg
    if isinstance(cfg, Mapping):
        node = cfg.get("engine", cfg)
        if node is None:
            return EngineConfig()
        if not isinstance(node, Mapping):
            raise TypeError(f"cfg.engine must be a mapping when provided, got {type(node)!r}")
        return EngineConfig.model_validate(dict(node))
    raise TypeError(f"cfg must be EngineConfig|mapping|None, got {type(cfg)!r}")


def make_playfield_from_cfg(
        cfg: Any = None,
        *,
        clock: Optional[Clock] = None,
        piece_set: Optional[PieceSet] = None,
) -> Playfield:
    """
    Construct a Playfield from an EngineConfig or a plain mapping.

    Accepted shapes:
      {width: 10, height: 20, ...}
      {engine: {width: 10, height: 20, ...}}

    seed=None draws OS entropy; any int makes the piece sequence replayable.
    """
    ec = _as_engine_config(cfg)

    rng = np.random.default_rng(ec.seed)
    rule = make_piece_rule(ec.piece_rule, bag_copies=ec.bag_copies)

    return Playfield(
        width=ec.width,
        height=ec.height,
        lock_delay_ms=ec.lock_delay_ms,
        piece_set=piece_set,
        piece_rule=rule,
        rng=rng,
        clock=clock,
        score_config=ScoreConfig(lines_per_level=ec.lines_per_level),
        preview_size=ec.preview_size,
        ghost_intensity=ec.ghost_intensity,
        empty_color=ec.empty_color,
        settle_stack_when_idle=ec.settle_stack_when_idle,
    )


__all__ = ["make_playfield_from_cfg"]
