"""Backends consuming a parsed diagram for on-screen output."""

from .arrow_router import (
    ArrowPath,
    ArrowStatus,
    ItemBox,
    RouterConfig,
    RouteScenario,
    route_arrows,
    select_scenario,
)

__all__ = [
    "ArrowPath",
    "ArrowStatus",
    "ItemBox",
    "RouterConfig",
    "RouteScenario",
    "route_arrows",
    "select_scenario",
]
