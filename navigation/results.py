"""
Result types produced by one evaluation of the navigation engine.

Every evaluation yields exactly one of Guidance, Arrived, PositionUnknown or
NoRoute; `kind` is the discriminant for JSON consumers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from common.geo import LocalOffset


@dataclass(frozen=True, slots=True)
class Projection:
    """Marker pose in the camera-relative frame (forward = -z, right = +x, Y-up)."""
    x: float
    y: float
    z: float
    rotation_y_deg: float

    available = True

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": True,
            "position": [self.x, self.y, self.z],
            "rotation_y_deg": self.rotation_y_deg,
        }


@dataclass(frozen=True, slots=True)
class ProjectionUnavailable:
    reason: str = "heading_unknown"

    available = False

    def to_dict(self) -> Dict[str, Any]:
        return {"available": False, "reason": self.reason}


ProjectionResult = Union[Projection, ProjectionUnavailable]


@dataclass(frozen=True, slots=True)
class Guidance:
    """
    Guidance toward the active waypoint.

    reached: names of waypoints passed during this evaluation (usually empty).
    """
    waypoint_name: str
    waypoint_index: int
    distance_m: float
    bearing_deg: float
    offset: LocalOffset
    remaining: int
    projection: ProjectionResult
    reached: Tuple[str, ...] = field(default_factory=tuple)

    kind = "guidance"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "waypoint_name": self.waypoint_name,
            "waypoint_index": self.waypoint_index,
            "distance_m": self.distance_m,
            "bearing_deg": self.bearing_deg,
            "offset": {"east": self.offset.east, "north": self.offset.north},
            "remaining": self.remaining,
            "projection": self.projection.to_dict(),
            "reached": list(self.reached),
        }


@dataclass(frozen=True, slots=True)
class Arrived:
    total_waypoints: int
    reached: Tuple[str, ...] = field(default_factory=tuple)

    kind = "arrived"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "total_waypoints": self.total_waypoints, "reached": list(self.reached)}


@dataclass(frozen=True, slots=True)
class PositionUnknown:
    waypoint_name: Optional[str] = None
    waypoint_index: int = 0

    kind = "position_unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "waypoint_name": self.waypoint_name, "waypoint_index": self.waypoint_index}


@dataclass(frozen=True, slots=True)
class NoRoute:
    kind = "no_route"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind}


NavigationResult = Union[Guidance, Arrived, PositionUnknown, NoRoute]
