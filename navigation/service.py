from __future__ import annotations

"""
Navigation service: walk a route through the engine and emit one JSON line
per scheduled update (result, destination label, status text, marker pose).

Examples:
  # Synthetic walk along the 'bungaku' route at 20x real time
  python -m navigation.service --event bungaku --synthetic --speed 20

  # Replay a recorded walk, write updates to a file
  python -m navigation.service --event bungaku --walk data/walks/bungaku.csv \
      --out logs/navigation.jsonl

  # Device without compass: distance-only guidance
  python -m navigation.service --event setsumeikai --synthetic --no-heading

  # Fetch the route from the lookup service and keep the generated walk
  python -m navigation.service --event bungaku --route-url http://127.0.0.1:8000 \
      --synthetic --write-walk data/walks/bungaku.csv
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from common.errors import InvalidRoute, RouteNotFound
from common.logging_setup import get_logger, setup_logging
from common.types import Route
from event_routes.catalog import RouteCatalog
from event_routes.client import RouteClient
from navigation.config import NavigationConfig, load_params
from navigation.engine import NavigationEngine
from navigation.render import render_frame
from navigation.results import Arrived, NavigationResult
from sensors.sources import CallbackFeed, WalkEvent, WalkPlayer, load_walk_csv, synthetic_walk, write_walk_csv


log = get_logger("navigation.service")

Sink = Callable[[Dict], None]


async def run_walk(
    engine: NavigationEngine,
    events: List[WalkEvent],
    sink: Sink,
    *,
    speed: float = 1.0,
    with_heading: bool = True,
) -> NavigationResult:
    """
    Replay `events` into the engine on the running loop and pass every
    scheduled update to `sink`. Stops early once the route is complete.
    """
    gps = CallbackFeed("gps")
    compass = CallbackFeed("compass") if with_heading else None
    engine.attach_feeds(position_feed=gps, heading_feed=compass)

    stop = asyncio.Event()

    def on_result(result: NavigationResult) -> None:
        sink(render_frame(result, engine.config, engine.ingest.status))
        if isinstance(result, Arrived):
            stop.set()

    engine.add_listener(on_result)
    player = WalkPlayer(events, position_feed=gps, heading_feed=compass, speed=speed)
    await player.play(stop)
    # Deliver the trailing update for the last samples
    engine.scheduler.flush()
    return engine.last_result


def _resolve_route(event_id: str, P: Dict, routes_path: Optional[str], route_url: Optional[str]) -> Route:
    rcfg = P.get("routes", {}) or {}
    if route_url:
        client = RouteClient(route_url, timeout=float(rcfg.get("timeout_s", 5.0)))
        return client.fetch(event_id)
    catalog = RouteCatalog.load(routes_path or rcfg.get("catalog_path", "config/routes.yaml"))
    return catalog.get(event_id)


def _jsonl_sink(out: Optional[str]) -> Sink:
    if out in (None, "-"):
        def write_stdout(row: Dict) -> None:
            sys.stdout.write(json.dumps(row) + "\n")
            sys.stdout.flush()
        return write_stdout

    p = Path(out)
    p.parent.mkdir(parents=True, exist_ok=True)
    # One run per file
    p.write_text("")

    def write_file(row: Dict) -> None:
        with p.open("a", buffering=1) as f:
            f.write(json.dumps(row) + "\n")
    return write_file


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="AR waypoint navigation — walk replay")
    ap.add_argument("--config", default="config/params.yaml")
    ap.add_argument("--event", required=True, help="Event id to look up the route for")
    ap.add_argument("--routes", default=None, help="Route table YAML (overrides config)")
    ap.add_argument("--route-url", default=None, help="Fetch the route from this lookup service instead")

    gsrc = ap.add_mutually_exclusive_group(required=True)
    gsrc.add_argument("--walk", help="Walk CSV to replay (t_s, kind, lat, lon, heading, error)")
    gsrc.add_argument("--synthetic", action="store_true", help="Generate a noisy walk along the route")

    ap.add_argument("--speed", type=float, default=10.0, help="Playback rate vs real time (0 = no pacing)")
    ap.add_argument("--no-heading", action="store_true", help="Simulate a device without compass")
    ap.add_argument("--seed", type=int, default=1234, help="Synthetic walk RNG seed")
    ap.add_argument("--write-walk", default=None, help="Also save the walk events to this CSV")
    ap.add_argument("--out", default="-", help="JSONL output file ('-' for stdout)")
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)

    P = load_params(args.config)
    setup_logging(args.log_level or (P.get("logging", {}) or {}).get("level", "INFO"))
    config = NavigationConfig.from_dict(P.get("navigation"))

    try:
        route = _resolve_route(args.event, P, args.routes, args.route_url)
    except (RouteNotFound, InvalidRoute) as e:
        raise SystemExit(f"Route lookup failed: {e.message}")

    if args.walk:
        events = load_walk_csv(args.walk)
    else:
        sim = dict(P.get("simulation", {}) or {})
        if args.no_heading:
            sim["heading_rate_hz"] = 0.0
        events = list(synthetic_walk(route, seed=args.seed, **sim))

    if args.write_walk:
        n = write_walk_csv(args.write_walk, events)
        log.info("Walk written", extra={"extra": {"path": args.write_walk, "rows": n}})

    engine = NavigationEngine(config, route)
    try:
        result = asyncio.run(
            run_walk(engine, events, _jsonl_sink(args.out), speed=args.speed, with_heading=not args.no_heading)
        )
    except KeyboardInterrupt:
        result = engine.last_result
    finally:
        engine.close()

    log.info("Navigation finished", extra={"extra": {"result": result.kind, "event": args.event}})
    return 0 if isinstance(result, Arrived) else 1


if __name__ == "__main__":
    sys.exit(main())
