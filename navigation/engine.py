"""
NavigationEngine: one guided walk along one route.

Wires SensorIngest -> ThrottleScheduler -> WaypointProgression/ARProjector and
owns the session state. Everything runs on a single event loop; teardown
cancels the pending update and unsubscribes the sensor feeds.

    engine = NavigationEngine(config, route)
    engine.attach_feeds(position_feed=gps, heading_feed=compass)
    engine.add_listener(render)
    ...
    engine.close()
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Union

from common.errors import SensorKind
from common.logging_setup import get_logger
from common.types import GeoPoint, HeadingSample, NavigationState, PositionFix, Route, Waypoint
from navigation.config import NavigationConfig
from navigation.progression import WaypointProgression
from navigation.projector import ARProjector
from navigation.results import NavigationResult, NoRoute
from navigation.scheduler import ThrottleScheduler, TimerLoop
from sensors.ingest import PushFeed, SensorIngest


log = get_logger("navigation.engine")

ResultListener = Callable[[NavigationResult], None]


class NavigationEngine:
    def __init__(
        self,
        config: Optional[NavigationConfig] = None,
        route: Optional[Union[Route, Sequence[Waypoint]]] = None,
        *,
        loop: Optional[TimerLoop] = None,
    ):
        self.config = config or NavigationConfig()
        self.projector = ARProjector(self.config.height_offset_m, self.config.marker_yaw_offset_deg)
        self.ingest = SensorIngest(on_change=self._on_sensor_change)
        self.scheduler = ThrottleScheduler(self._run_scheduled, interval_s=self.config.update_interval_s, loop=loop)
        self.last_result: NavigationResult = NoRoute()
        self._progression: Optional[WaypointProgression] = None
        self._listeners: List[ResultListener] = []
        self._closed = False
        if route is not None:
            self.load_route(route)

    # -------------------------
    # Lifecycle
    # -------------------------
    def load_route(self, route: Union[Route, Sequence[Waypoint]]) -> None:
        """
        Start guidance at the first waypoint. Raises InvalidRoute for an empty
        route; a route can be loaded once per engine.
        """
        if self._closed:
            raise RuntimeError("engine is closed")
        if self._progression is not None:
            raise RuntimeError("route already loaded for this session")
        self._progression = WaypointProgression(route, self.config.threshold_distance_m, self.projector)
        r = self._progression.route
        log.info("Route loaded", extra={"extra": {"route_id": r.route_id, "waypoints": len(r)}})

    def attach_feeds(self, position_feed: Optional[PushFeed] = None, heading_feed: Optional[PushFeed] = None) -> None:
        """Subscribe to either or both sensor feeds; a missing feed is a missing sensor."""
        if position_feed is not None:
            self.ingest.attach(position_feed, SensorKind.POSITION)
        if heading_feed is not None:
            self.ingest.attach(heading_feed, SensorKind.HEADING)

    def add_listener(self, listener: ResultListener) -> None:
        """Called with each scheduled result (e.g. a rendering adapter)."""
        self._listeners.append(listener)

    def close(self) -> None:
        """Cancel the pending update and unsubscribe both feeds. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self.scheduler.close()
        self.ingest.close()
        self._listeners.clear()
        log.info("Engine closed", extra={"extra": {"scheduler": self.scheduler.stats()}})

    def __enter__(self) -> "NavigationEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # -------------------------
    # Sensor inputs
    # -------------------------
    def on_position_fix(self, fix: Union[GeoPoint, PositionFix]) -> bool:
        return self.ingest.on_position_fix(fix)

    def on_heading_sample(self, heading: Union[float, HeadingSample, None]) -> bool:
        return self.ingest.on_heading_sample(heading)

    def on_sensor_error(self, kind: Union[SensorKind, str], reason: str) -> None:
        self.ingest.on_sensor_error(kind, reason)

    # -------------------------
    # Evaluation
    # -------------------------
    def evaluate(self) -> NavigationResult:
        """Recompute guidance from the latest sensor state."""
        if self._progression is None:
            result: NavigationResult = NoRoute()
        else:
            result = self._progression.evaluate(self.ingest.position, self.ingest.heading_deg)
        self.last_result = result
        return result

    @property
    def route(self) -> Optional[Route]:
        return None if self._progression is None else self._progression.route

    @property
    def state(self) -> Optional[NavigationState]:
        if self._progression is None:
            return None
        return NavigationState(
            route=self._progression.route,
            user_position=self.ingest.position,
            user_heading_deg=self.ingest.heading_deg,
            active_index=self._progression.index,
        )

    def _on_sensor_change(self) -> None:
        if not self._closed:
            self.scheduler.signal()

    def _run_scheduled(self) -> None:
        result = self.evaluate()
        log.debug("Update", extra={"extra": result.to_dict()})
        for listener in list(self._listeners):
            listener(result)
