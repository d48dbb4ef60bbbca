# src/tetris_engine/__init__.py
from __future__ import annotations

from tetris_engine.config.engine import EngineConfig
from tetris_engine.game.core.clock import Clock, ManualClock, MonotonicClock
from tetris_engine.game.core.piece_rules import BagPieceRule, PieceRule, SequencePieceRule, UniformPieceRule
from tetris_engine.game.core.pieceset import PieceSet, default_catalog
from tetris_engine.game.core.playfield import Playfield
from tetris_engine.game.core.rules import ScoreConfig
from tetris_engine.game.core.stats import ScoreTracker
from tetris_engine.game.core.synchronized import SynchronizedPlayfield
from tetris_engine.game.core.types import Action, ActivePiece, PlayfieldState, RotationState
from tetris_engine.game.factory import make_playfield_from_cfg

__all__ = [
    "Action",
    "ActivePiece",
    "BagPieceRule",
    "Clock",
    "EngineConfig",
    "ManualClock",
    "MonotonicClock",
    "PieceRule",
    "PieceSet",
    "Playfield",
    "PlayfieldState",
    "RotationState",
    "ScoreConfig",
    "ScoreTracker",
    "SequencePieceRule",
    "SynchronizedPlayfield",
    "UniformPieceRule",
    "default_catalog",
    "make_playfield_from_cfg",
]
