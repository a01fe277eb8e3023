from __future__ import annotations

from typing import List, Optional, Sequence, Union

from common.geo import bearing_deg, distance_m, local_offset_m
from common.logging_setup import get_logger
from common.types import GeoPoint, Route, Waypoint
from navigation.projector import ARProjector
from navigation.results import Arrived, Guidance, NavigationResult, PositionUnknown


log = get_logger("navigation.progression")


class WaypointProgression:
    """
    State machine over an ordered route: Active(i) for i in [0, len(route)),
    then Arrived (terminal).

    evaluate() advances while the user is strictly closer than the threshold
    to the active waypoint, re-checking the next waypoint against the same fix.
    One fix can therefore pass several waypoints at once (skip-ahead); such
    multi-passes are logged at WARNING and listed in the result's `reached`.
    """

    def __init__(
        self,
        route: Union[Route, Sequence[Waypoint]],
        threshold_m: float = 5.0,
        projector: Optional[ARProjector] = None,
    ):
        if not isinstance(route, Route):
            route = Route(tuple(route))
        if threshold_m <= 0:
            raise ValueError("threshold_m must be > 0")
        self.route = route
        self.threshold_m = float(threshold_m)
        self.projector = projector or ARProjector()
        self._index = 0

    @property
    def index(self) -> int:
        return self._index

    @property
    def arrived(self) -> bool:
        return self._index >= len(self.route)

    @property
    def active_waypoint(self) -> Optional[Waypoint]:
        return None if self.arrived else self.route[self._index]

    def evaluate(self, position: Optional[GeoPoint], heading_deg: Optional[float] = None) -> NavigationResult:
        if self.arrived:
            return Arrived(total_waypoints=len(self.route))
        if position is None:
            wp = self.route[self._index]
            return PositionUnknown(waypoint_name=wp.name, waypoint_index=self._index)

        reached: List[str] = []
        while not self.arrived:
            wp = self.route[self._index]
            d = distance_m(position, wp.position)
            if not d < self.threshold_m:
                break
            reached.append(wp.name)
            log.info("Waypoint reached", extra={"extra": {"index": self._index, "name": wp.name, "distance_m": d}})
            self._index += 1

        if len(reached) > 1:
            log.warning(
                "Multiple waypoints passed on a single fix",
                extra={"extra": {"reached": reached, "index": self._index}},
            )

        if self.arrived:
            log.info("Route complete", extra={"extra": {"route_id": self.route.route_id, "waypoints": len(self.route)}})
            return Arrived(total_waypoints=len(self.route), reached=tuple(reached))

        bearing = bearing_deg(position, wp.position)
        return Guidance(
            waypoint_name=wp.name,
            waypoint_index=self._index,
            distance_m=d,
            bearing_deg=bearing,
            offset=local_offset_m(position, wp.position),
            remaining=len(self.route) - self._index,
            projection=self.projector.project(d, bearing, heading_deg),
            reached=tuple(reached),
        )
