"""
Event routes — event id -> waypoint list lookup

Provides:
- RouteCatalog: YAML-backed route table (config/routes.yaml)
- RouteClient: HTTP fetch from the route lookup service
- server.py: stateless FastAPI lookup service

Entry point:
    python -m event_routes.server
"""
from .catalog import RouteCatalog
from .client import RouteClient

__all__ = ["RouteCatalog", "RouteClient"]
