"""
Sensors — position/heading intake for the navigation engine

Provides:
- SensorIngest: last-known position and heading, sample validation, per-feed
  status and feed subscriptions (ingest.py)
- Push feeds:
    - CallbackFeed: minimal publish/subscribe feed for external producers
    - WalkPlayer: cooperative replay of a recorded or synthetic walk
- Walk sources:
    - load_walk_csv / write_walk_csv: CSV walk logs (t_s, kind, lat, lon, heading, error)
    - synthetic_walk: procedural walk along a route with GPS/compass noise
- heading_from_device_alpha: browser deviceorientation alpha -> compass heading

Usage examples:
    from sensors.ingest import SensorIngest
    from sensors.sources import CallbackFeed, WalkPlayer, synthetic_walk
"""
from __future__ import annotations

from .ingest import SensorIngest
from .sources import CallbackFeed, WalkEvent, WalkPlayer, heading_from_device_alpha

__all__ = ["SensorIngest", "CallbackFeed", "WalkEvent", "WalkPlayer", "heading_from_device_alpha"]
