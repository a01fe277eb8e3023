from __future__ import annotations

import math
from typing import Optional

from common.geo import normalize_deg
from navigation.results import Projection, ProjectionResult, ProjectionUnavailable


class ARProjector:
    """
    Places the active waypoint in the camera-relative frame.

    Frame: right-handed, Y-up, camera looking down -z, +x to the right.

        relative = (bearing - heading) in radians (not wrapped; sin/cos don't care)
        x = d * sin(relative)
        z = -d * cos(relative)
        y = height_offset_m

    The marker faces the user with rotation_y = -relative + yaw_offset, wrapped
    to [0, 360). yaw_offset (default 180) depends on the marker asset's
    modeled forward axis.
    """

    def __init__(self, height_offset_m: float = 1.0, yaw_offset_deg: float = 180.0):
        self.height_offset_m = float(height_offset_m)
        self.yaw_offset_deg = float(yaw_offset_deg)

    def project(self, distance_m: float, bearing_deg: float, heading_deg: Optional[float]) -> ProjectionResult:
        if heading_deg is None:
            return ProjectionUnavailable("heading_unknown")
        relative = math.radians(bearing_deg - heading_deg)
        x = distance_m * math.sin(relative)
        z = -distance_m * math.cos(relative)
        rot = normalize_deg(-math.degrees(relative) + self.yaw_offset_deg)
        return Projection(x=x, y=self.height_offset_m, z=z, rotation_y_deg=rot)


def project_marker(
    distance_m: float,
    bearing_deg: float,
    heading_deg: Optional[float],
    height_offset_m: float = 1.0,
) -> ProjectionResult:
    """Functional shortcut for ARProjector(height_offset_m).project(...)."""
    return ARProjector(height_offset_m).project(distance_m, bearing_deg, heading_deg)
