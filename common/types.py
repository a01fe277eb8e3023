from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple
import math

from common.errors import InvalidRoute


IsoTime = str


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """
    WGS84 position in decimal degrees.

    Attributes:
        latitude: [-90, 90]
        longitude: [-180, 180]
    """
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        lat, lon = float(self.latitude), float(self.longitude)
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise ValueError("lat/lon must be finite")
        if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
            raise ValueError("lat/lon out of range")
        object.__setattr__(self, "latitude", lat)
        object.__setattr__(self, "longitude", lon)

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True, slots=True)
class Waypoint:
    name: str
    position: GeoPoint

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Waypoint":
        """Build from the route-table schema: {name, latitude, longitude}."""
        try:
            return cls(
                name=str(d["name"]),
                position=GeoPoint(float(d["latitude"]), float(d["longitude"])),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidRoute(f"malformed waypoint: {e}", details={"waypoint": repr(d)}) from e

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, **self.position.to_dict()}


@dataclass(frozen=True, slots=True)
class Route:
    """
    Ordered, non-empty sequence of waypoints, fixed for a navigation session.

    Raises InvalidRoute on construction when empty.
    """
    waypoints: Tuple[Waypoint, ...]
    route_id: Optional[str] = None

    def __post_init__(self) -> None:
        wps = tuple(self.waypoints)
        if not wps:
            raise InvalidRoute("route must contain at least one waypoint",
                               details={"route_id": self.route_id})
        for wp in wps:
            if not isinstance(wp, Waypoint):
                raise InvalidRoute(f"route entries must be Waypoint, got {type(wp).__name__}")
        object.__setattr__(self, "waypoints", wps)

    @classmethod
    def from_dicts(cls, items: Iterable[Mapping[str, Any]], route_id: Optional[str] = None) -> "Route":
        if items is None:
            raise InvalidRoute("route must contain at least one waypoint", details={"route_id": route_id})
        return cls(tuple(Waypoint.from_dict(d) for d in items), route_id=route_id)

    def __len__(self) -> int:
        return len(self.waypoints)

    def __getitem__(self, i: int) -> Waypoint:
        return self.waypoints[i]

    def __iter__(self) -> Iterator[Waypoint]:
        return iter(self.waypoints)

    def to_dict(self) -> Dict[str, Any]:
        return {"route_id": self.route_id, "waypoints": [w.to_dict() for w in self.waypoints]}


@dataclass(slots=True)
class PositionFix:
    """
    A single absolute position sample as delivered by a position feed.

    Attributes:
        ts: ISO-8601 (UTC) timestamp.
        position: user location.
        accuracy_m: optional horizontal accuracy reported by the receiver.
    """
    ts: IsoTime
    position: GeoPoint
    accuracy_m: Optional[float] = None


@dataclass(slots=True)
class HeadingSample:
    """Absolute compass heading (deg, 0 = north, clockwise)."""
    ts: IsoTime
    heading_deg: float


@dataclass(slots=True)
class NavigationState:
    """
    Snapshot of a navigation session: route, last-known sensor values and
    the progression index.

    active_index == len(route) is the terminal "arrived" state.
    """
    route: Route
    user_position: Optional[GeoPoint] = None
    user_heading_deg: Optional[float] = None
    active_index: int = 0

    @property
    def arrived(self) -> bool:
        return self.active_index >= len(self.route)

    @property
    def active_waypoint(self) -> Optional[Waypoint]:
        if 0 <= self.active_index < len(self.route):
            return self.route[self.active_index]
        return None
