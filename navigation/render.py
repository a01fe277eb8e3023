"""
Rendering adapter: turns engine results into presentation instructions.

Pure functions only; applying them to a scene graph or page is up to the
presentation layer.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from common.errors import SensorKind, SensorStatus
from navigation.config import NavigationConfig
from navigation.results import Arrived, Guidance, NavigationResult, NoRoute, PositionUnknown, Projection


MSG_ARRIVED = "You have arrived at your destination!"
MSG_ACQUIRING = "Acquiring your location..."
MSG_NO_ROUTE = "No event route selected."
MSG_POSITION_UNAVAILABLE = "Could not get your location. Please turn on GPS."
MSG_HEADING_UNAVAILABLE = "Your device does not provide compass heading."


def _fmt(v: float) -> str:
    return f"{v:.3f}"


def marker_attributes(guidance: Guidance, config: Optional[NavigationConfig] = None) -> Optional[Dict[str, Any]]:
    """
    Entity attributes for the active marker, e.g.
      {"position": "x y z", "rotation": "0 ry 0", "scale": "0.5 0.5 0.5"}
    None when the projection is unavailable (no heading yet).
    """
    cfg = config or NavigationConfig()
    p = guidance.projection
    if not isinstance(p, Projection):
        return None
    return {
        "position": f"{_fmt(p.x)} {_fmt(p.y)} {_fmt(p.z)}",
        "rotation": f"0 {_fmt(p.rotation_y_deg)} 0",
        "scale": cfg.marker_scale,
    }


def status_message(
    result: NavigationResult,
    sensor_status: Optional[Mapping[SensorKind, SensorStatus]] = None,
) -> str:
    """User-facing status line for the latest result."""
    status = sensor_status or {}
    if isinstance(result, NoRoute):
        return MSG_NO_ROUTE
    if isinstance(result, Arrived):
        return MSG_ARRIVED
    if status.get(SensorKind.POSITION) is SensorStatus.UNAVAILABLE:
        return MSG_POSITION_UNAVAILABLE
    if isinstance(result, PositionUnknown):
        return MSG_ACQUIRING
    msg = f"Remaining distance: {result.distance_m:.1f}m"
    if status.get(SensorKind.HEADING) is SensorStatus.UNAVAILABLE:
        msg += f" ({MSG_HEADING_UNAVAILABLE})"
    return msg


def destination_label(result: NavigationResult, config: Optional[NavigationConfig] = None) -> Optional[str]:
    """Name shown as the current destination."""
    if isinstance(result, Arrived):
        return (config or NavigationConfig()).arrival_label
    if isinstance(result, (Guidance, PositionUnknown)):
        return result.waypoint_name
    return None


def render_frame(
    result: NavigationResult,
    config: Optional[NavigationConfig] = None,
    sensor_status: Optional[Mapping[SensorKind, SensorStatus]] = None,
) -> Dict[str, Any]:
    """Everything a presentation layer needs for one update, JSON-serializable."""
    return {
        "result": result.to_dict(),
        "destination": destination_label(result, config),
        "message": status_message(result, sensor_status),
        "marker": marker_attributes(result, config) if isinstance(result, Guidance) else None,
    }
