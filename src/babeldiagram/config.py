"""
Engine configuration.

Read from YAML:

    undo_depth: 50
    router:
      column_width: 240
      lane_width: 48
      corner_radius: 8
      clearance: 16

Every key is optional; unknown keys are rejected.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict

import yaml

from babeldiagram.backends.arrow_router import RouterConfig

DEFAULT_UNDO_DEPTH = 50


@dataclass(frozen=True)
class EngineConfig:
    undo_depth: int = DEFAULT_UNDO_DEPTH
    router: RouterConfig = field(default_factory=RouterConfig)


def _check_keys(d: Dict[str, Any], allowed, section: str) -> None:
    unknown = sorted(set(d) - set(allowed))
    if unknown:
        raise ValueError(f"Unknown {section} setting(s): {', '.join(unknown)}")


def router_config_from_dict(d: Dict[str, Any] | None) -> RouterConfig:
    if not d:
        return RouterConfig()
    names = [f.name for f in fields(RouterConfig)]
    _check_keys(d, names, "router")
    return RouterConfig(**{name: float(value) for name, value in d.items()})


def config_from_dict(d: Dict[str, Any] | None) -> EngineConfig:
    if not d:
        return EngineConfig()
    _check_keys(d, ("undo_depth", "router"), "engine")
    undo_depth = int(d.get("undo_depth", DEFAULT_UNDO_DEPTH))
    if undo_depth < 1:
        raise ValueError(f"undo_depth must be at least 1, got {undo_depth}")
    return EngineConfig(undo_depth=undo_depth, router=router_config_from_dict(d.get("router")))


def config_from_yaml(s: str) -> EngineConfig:
    return config_from_dict(yaml.safe_load(s))


def load_config(filepath: str) -> EngineConfig:
    with open(filepath, 'r', encoding='utf-8') as f:
        return config_from_yaml(f.read())
