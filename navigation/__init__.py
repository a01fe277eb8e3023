"""
Navigation — waypoint progression and AR marker projection

This package provides:
- NavigationEngine: one guided walk; owns session state, wires sensor intake
  to a throttled recomputation (engine.py)
- ThrottleScheduler: trailing-edge throttle on the event loop (scheduler.py)
- WaypointProgression: Active(i) -> ... -> Arrived state machine (progression.py)
- ARProjector: camera-relative marker position and facing (projector.py)
- Render adapter: marker attributes and status text (render.py)
- A CLI that walks a route through the engine and prints JSONL (service.py)

Entry point:
    python -m navigation.service --event bungaku --synthetic
"""
from .config import NavigationConfig, load_config
from .engine import NavigationEngine
from .progression import WaypointProgression
from .projector import ARProjector
from .results import Arrived, Guidance, NoRoute, PositionUnknown, Projection, ProjectionUnavailable
from .scheduler import ThrottleScheduler

__all__ = [
    "NavigationConfig",
    "load_config",
    "NavigationEngine",
    "WaypointProgression",
    "ARProjector",
    "ThrottleScheduler",
    "Arrived",
    "Guidance",
    "NoRoute",
    "PositionUnknown",
    "Projection",
    "ProjectionUnavailable",
]
