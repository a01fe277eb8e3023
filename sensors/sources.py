from __future__ import annotations

import asyncio
import csv
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from common.errors import SensorKind
from common.geo import apply_offset_m, bearing_deg, distance_m, local_offset_m, normalize_deg
from common.logging_setup import get_logger
from common.types import GeoPoint, Route


log = get_logger("sensors.sources")

CSV_HEADER = ["t_s", "kind", "lat", "lon", "heading", "error"]


def heading_from_device_alpha(alpha: Optional[float]) -> Optional[float]:
    """
    Convert `deviceorientationabsolute.alpha` (counter-clockwise from north)
    into a compass heading (clockwise from north). None passes through so the
    caller can drop the sample.
    """
    if alpha is None:
        return None
    return normalize_deg(360.0 - float(alpha))


# -------------------------
# Push feeds
# -------------------------
class CallbackFeed:
    """
    Minimal push feed: producers call publish()/fail(), consumers subscribe().

    subscribe() returns an unsubscribe callable; after it runs the consumer
    receives nothing further from this feed.
    """

    def __init__(self, name: str = "feed"):
        self.name = name
        self._subs: List[Tuple[Callable, Optional[Callable[[str], None]]]] = []

    def subscribe(self, on_sample: Callable, on_error: Optional[Callable[[str], None]] = None):
        entry = (on_sample, on_error)
        self._subs.append(entry)

        def unsubscribe() -> None:
            if entry in self._subs:
                self._subs.remove(entry)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def publish(self, sample) -> None:
        for on_sample, _ in list(self._subs):
            on_sample(sample)

    def fail(self, reason: str) -> None:
        for _, on_error in list(self._subs):
            if on_error is not None:
                on_error(reason)


# -------------------------
# Walk logs
# -------------------------
@dataclass(slots=True)
class WalkEvent:
    """
    One sensor event of a walk, relative to the walk start.

    Attributes:
        t_s: seconds since walk start.
        kind: position or heading.
        lat, lon: set for position samples.
        heading: set for heading samples (deg, clockwise from north).
        error: collaborator-reported failure instead of a sample.
    """
    t_s: float
    kind: SensorKind
    lat: Optional[float] = None
    lon: Optional[float] = None
    heading: Optional[float] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.t_s < 0:
            raise ValueError("t_s must be >= 0")
        self.kind = SensorKind(self.kind)

    @property
    def position(self) -> Optional[GeoPoint]:
        if self.lat is None or self.lon is None:
            return None
        return GeoPoint(self.lat, self.lon)


def _opt_float(s: Optional[str]) -> Optional[float]:
    if s is None or s.strip() == "":
        return None
    return float(s)


def load_walk_csv(path: str) -> List[WalkEvent]:
    """Read a walk log with columns: t_s, kind, lat, lon, heading, error."""
    if not Path(path).exists():
        raise FileNotFoundError(f"Walk CSV not found: {path}")
    events: List[WalkEvent] = []
    with open(path, newline="") as f:
        r = csv.DictReader(f)
        for row in r:
            events.append(
                WalkEvent(
                    t_s=float(row["t_s"]),
                    kind=SensorKind(row["kind"].strip()),
                    lat=_opt_float(row.get("lat")),
                    lon=_opt_float(row.get("lon")),
                    heading=_opt_float(row.get("heading")),
                    error=(row.get("error") or "").strip() or None,
                )
            )
    events.sort(key=lambda e: e.t_s)
    return events


def write_walk_csv(path: str, events: Iterable[WalkEvent], max_rows: int = 0) -> int:
    """
    Write a walk to CSV. If max_rows > 0, stops after that many rows.
    """
    n = 0
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", newline="") as f:
        w = csv.writer(f)
        w.writerow(CSV_HEADER)
        for e in events:
            w.writerow([
                f"{e.t_s:.3f}",
                e.kind.value,
                "" if e.lat is None else f"{e.lat:.7f}",
                "" if e.lon is None else f"{e.lon:.7f}",
                "" if e.heading is None else f"{e.heading:.2f}",
                e.error or "",
            ])
            n += 1
            if max_rows > 0 and n >= max_rows:
                break
    return n


def synthetic_walk(
    route: Route,
    *,
    speed_mps: float = 1.4,
    fix_rate_hz: float = 1.0,
    heading_rate_hz: float = 10.0,
    gps_noise_m: float = 1.0,
    heading_noise_deg: float = 5.0,
    approach_m: float = 20.0,
    dwell_s: float = 5.0,
    seed: int = 1234,
) -> Iterator[WalkEvent]:
    """
    Procedural walk that starts `approach_m` south of the first waypoint and
    follows the route leg by leg at constant speed, then dwells at the last
    waypoint.

    Position fixes carry Gaussian East/North noise; heading samples follow the
    leg bearing with Gaussian noise. Set heading_rate_hz=0 for a device
    without a compass.
    """
    if speed_mps <= 0 or fix_rate_hz <= 0:
        raise ValueError("speed_mps and fix_rate_hz must be > 0")
    rng = np.random.default_rng(seed)
    fix_dt = 1.0 / fix_rate_hz
    step_dt = 1.0 / heading_rate_hz if heading_rate_hz > 0 else fix_dt

    start = apply_offset_m(route[0].position, 0.0, -approach_m)
    path = [start] + [w.position for w in route]

    t = 0.0
    next_fix_t = 0.0
    heading = 0.0

    def fix_at(p: GeoPoint, ts: float) -> WalkEvent:
        ne = rng.normal(0.0, gps_noise_m, size=2) if gps_noise_m > 0 else np.zeros(2)
        q = apply_offset_m(p, float(ne[0]), float(ne[1]))
        return WalkEvent(t_s=ts, kind=SensorKind.POSITION, lat=q.latitude, lon=q.longitude)

    for a, b in zip(path[:-1], path[1:]):
        leg_m = distance_m(a, b)
        if leg_m <= 0.0:
            continue
        heading = bearing_deg(a, b)
        off = local_offset_m(a, b)
        n = max(1, int(math.ceil(leg_m / (speed_mps * step_dt))))
        for k in range(1, n + 1):
            t += leg_m / n / speed_mps
            frac = k / n
            p = apply_offset_m(a, off.east * frac, off.north * frac)
            if heading_rate_hz > 0:
                h = heading + float(rng.normal(0.0, heading_noise_deg)) if heading_noise_deg > 0 else heading
                yield WalkEvent(t_s=t, kind=SensorKind.HEADING, heading=normalize_deg(h))
            # half-step slack so step jitter doesn't drop every other fix
            if t >= next_fix_t - 0.5 * step_dt:
                yield fix_at(p, t)
                next_fix_t = t + fix_dt

    # Linger at the destination so the last waypoint is reached despite noise
    end = path[-1]
    t_end = t + dwell_s
    while t < t_end:
        t += fix_dt
        yield fix_at(end, t)


# -------------------------
# Cooperative replay
# -------------------------
class WalkPlayer:
    """
    Replays walk events into push feeds on the running asyncio loop.

    speed: playback rate relative to real time (2.0 = twice as fast);
           0 publishes as fast as possible, yielding to the loop between events.
    A missing feed models an absent sensor: its events are skipped.
    """

    def __init__(
        self,
        events: Iterable[WalkEvent],
        *,
        position_feed: Optional[CallbackFeed] = None,
        heading_feed: Optional[CallbackFeed] = None,
        speed: float = 1.0,
    ):
        self.events = list(events)
        self.position_feed = position_feed
        self.heading_feed = heading_feed
        self.speed = float(speed)

    async def play(self, stop: Optional[asyncio.Event] = None) -> int:
        loop = asyncio.get_running_loop()
        start = loop.time()
        published = 0
        for ev in self.events:
            if stop is not None and stop.is_set():
                break
            if self.speed > 0:
                delay = ev.t_s / self.speed - (loop.time() - start)
                await asyncio.sleep(max(0.0, delay))
            else:
                await asyncio.sleep(0)

            feed = self.position_feed if ev.kind is SensorKind.POSITION else self.heading_feed
            if feed is None:
                continue
            if ev.error:
                feed.fail(ev.error)
            elif ev.kind is SensorKind.POSITION:
                p = ev.position
                if p is None:
                    continue
                feed.publish(p)
            else:
                feed.publish(ev.heading)
            published += 1
        log.info("Walk replay finished", extra={"extra": {"published": published, "events": len(self.events)}})
        return published
