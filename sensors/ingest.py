from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from common.errors import SensorKind, SensorStatus
from common.geo import normalize_deg
from common.logging_setup import get_logger
from common.types import GeoPoint, HeadingSample, PositionFix


log = get_logger("sensors.ingest")

Unsubscribe = Callable[[], None]


class PushFeed(Protocol):
    """Anything that pushes samples to subscribers until unsubscribed."""

    def subscribe(
        self,
        on_sample: Callable[[Any], None],
        on_error: Optional[Callable[[str], None]] = None,
    ) -> Unsubscribe:
        ...


class SensorIngest:
    """
    Normalizes two independent, irregular sensor streams into one last-known
    state (position, heading) and signals `on_change` after every accepted
    sample or status change.

    No smoothing: the latest valid sample always wins. Invalid samples are
    dropped without touching state.
    """

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self.position: Optional[GeoPoint] = None
        self.heading_deg: Optional[float] = None
        self.status: Dict[SensorKind, SensorStatus] = {
            SensorKind.POSITION: SensorStatus.WAITING,
            SensorKind.HEADING: SensorStatus.WAITING,
        }
        self.errors: Dict[SensorKind, str] = {}
        self.accepted = {SensorKind.POSITION: 0, SensorKind.HEADING: 0}
        self.dropped = {SensorKind.POSITION: 0, SensorKind.HEADING: 0}
        self._on_change = on_change
        self._unsubscribers: List[Unsubscribe] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # -------------------------
    # Inbound samples
    # -------------------------
    def on_position_fix(self, fix: Union[GeoPoint, PositionFix, None]) -> bool:
        """Overwrite the user position with the latest fix. Returns False if dropped."""
        if self._closed:
            return False
        if isinstance(fix, PositionFix):
            fix = fix.position
        if not isinstance(fix, GeoPoint):
            self._drop(SensorKind.POSITION, fix)
            return False
        self.position = fix
        self._mark_ok(SensorKind.POSITION)
        self._signal()
        return True

    def on_heading_sample(self, sample: Union[float, HeadingSample, None]) -> bool:
        """Overwrite the user heading (deg). None / bool / non-finite samples are dropped."""
        if self._closed:
            return False
        if isinstance(sample, HeadingSample):
            sample = sample.heading_deg
        if isinstance(sample, bool):
            self._drop(SensorKind.HEADING, sample)
            return False
        try:
            h = float(sample)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            self._drop(SensorKind.HEADING, sample)
            return False
        if not math.isfinite(h):
            self._drop(SensorKind.HEADING, sample)
            return False
        self.heading_deg = normalize_deg(h)
        self._mark_ok(SensorKind.HEADING)
        self._signal()
        return True

    def on_sensor_error(self, kind: Union[SensorKind, str], reason: str) -> None:
        """
        Record a collaborator-reported failure ("permission denied", "timeout", ...).

        The feed's last value is discarded so downstream output degrades the same
        way as for a never-seen sensor. The next valid sample clears the status.
        """
        if self._closed:
            return
        kind = SensorKind(kind)
        self.status[kind] = SensorStatus.UNAVAILABLE
        self.errors[kind] = str(reason)
        if kind is SensorKind.POSITION:
            self.position = None
        else:
            self.heading_deg = None
        log.warning("Sensor unavailable", extra={"extra": {"sensor": kind.value, "reason": str(reason)}})
        self._signal()

    # -------------------------
    # Feed subscriptions
    # -------------------------
    def attach(self, feed: PushFeed, kind: Union[SensorKind, str]) -> None:
        """Subscribe to a push feed; samples are routed by `kind`."""
        if self._closed:
            raise RuntimeError("ingest is closed")
        kind = SensorKind(kind)
        on_sample = self.on_position_fix if kind is SensorKind.POSITION else self.on_heading_sample

        def on_error(reason: str) -> None:
            self.on_sensor_error(kind, reason)

        self._unsubscribers.append(feed.subscribe(on_sample, on_error))
        log.debug("Feed attached", extra={"extra": {"sensor": kind.value}})

    def detach_all(self) -> None:
        while self._unsubscribers:
            unsubscribe = self._unsubscribers.pop()
            unsubscribe()

    def close(self) -> None:
        """Unsubscribe every feed; later callbacks are ignored."""
        self._closed = True
        self.detach_all()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "position": None if self.position is None else self.position.to_dict(),
            "heading_deg": self.heading_deg,
            "status": {k.value: v.value for k, v in self.status.items()},
            "errors": {k.value: v for k, v in self.errors.items()},
            "accepted": {k.value: v for k, v in self.accepted.items()},
            "dropped": {k.value: v for k, v in self.dropped.items()},
        }

    # -------------------------
    # Internals
    # -------------------------
    def _mark_ok(self, kind: SensorKind) -> None:
        self.accepted[kind] += 1
        self.status[kind] = SensorStatus.OK
        self.errors.pop(kind, None)

    def _drop(self, kind: SensorKind, sample: Any) -> None:
        self.dropped[kind] += 1
        log.debug("Dropped invalid sample", extra={"extra": {"sensor": kind.value, "sample": repr(sample)}})

    def _signal(self) -> None:
        if self._on_change is not None:
            self._on_change()
