# src/tetris_engine/config/io.py
from __future__ import annotations

from pathlib import Path
from typing import Any

from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel

from tetris_engine.config.engine import EngineConfig


def to_plain_dict(cfg: Any) -> dict[str, Any]:
    if isinstance(cfg, BaseModel):
        return cfg.model_dump(mode="json")
    if isinstance(cfg, DictConfig):
        data = OmegaConf.to_container(cfg, resolve=True)
        if not isinstance(data, dict):
            raise TypeError("config must resolve to a mapping")
        return data
    raise TypeError(f"unsupported config type: {type(cfg).__name__}")


def load_yaml(path: Path) -> dict[str, Any]:
    cfg = OmegaConf.load(Path(path))
    data = OmegaConf.to_container(cfg, resolve=True)
    if not isinstance(data, dict):
        raise TypeError(f"config({path}) must be a mapping")
    return data


def load_engine_config(path: Path) -> EngineConfig:
    """
    Read an engine config file. Both a bare mapping and one nested under `engine:` are accepted.
    """
    data = load_yaml(path)
    node = data.get("engine", data)
    if not isinstance(node, dict):
        raise TypeError(f"config({path}).engine must be a mapping, got {type(node)!r}")
    return EngineConfig.model_validate(node)


__all__ = [
    "to_plain_dict",
    "load_yaml",
    "load_engine_config",
]
