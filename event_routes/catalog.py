from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

import yaml

from common.errors import InvalidRoute, RouteNotFound
from common.logging_setup import get_logger
from common.types import Route


log = get_logger("event_routes.catalog")

DEFAULT_ROUTES_PATH = "config/routes.yaml"

# Used when no routes file is present
_BUILTIN_ROUTES: Dict[str, Any] = {
    "routes": {
        "bungaku": {
            "title": "Faculty of Letters event",
            "waypoints": [
                {"name": "Letters building entrance", "latitude": 35.8576, "longitude": 139.7523},
                {"name": "Letters building, 2F classroom", "latitude": 35.8579, "longitude": 139.7525},
                {"name": "Letters event hall", "latitude": 35.8582, "longitude": 139.7527},
            ],
        },
        "setsumeikai": {
            "title": "Information session",
            "waypoints": [
                {"name": "Hall entrance", "latitude": 35.8560, "longitude": 139.7510},
                {"name": "Hall venue", "latitude": 35.8563, "longitude": 139.7512},
            ],
        },
    }
}


class RouteCatalog:
    """
    Maps an opaque event id to an ordered Route.

    YAML schema:
        routes:
          <event_id>:
            title: optional display title
            waypoints:
              - {name: ..., latitude: ..., longitude: ...}
    """

    def __init__(self, routes: Mapping[str, Route], titles: Optional[Mapping[str, str]] = None):
        self._routes: Dict[str, Route] = dict(routes)
        self._titles: Dict[str, str] = dict(titles or {})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RouteCatalog":
        table = (data or {}).get("routes")
        if not isinstance(table, Mapping):
            raise InvalidRoute("route table must contain a 'routes' mapping")
        routes: Dict[str, Route] = {}
        titles: Dict[str, str] = {}
        for event_id, entry in table.items():
            event_id = str(event_id)
            if isinstance(entry, Mapping):
                items = entry.get("waypoints")
                if entry.get("title"):
                    titles[event_id] = str(entry["title"])
            else:
                items = entry  # bare list of waypoints
            routes[event_id] = Route.from_dicts(items or [], route_id=event_id)
        return cls(routes, titles)

    @classmethod
    def load(cls, path: str = DEFAULT_ROUTES_PATH) -> "RouteCatalog":
        """Load from YAML; falls back to the built-in table when the file is absent."""
        if not Path(path).exists():
            log.info("Routes file not found, using built-in table", extra={"extra": {"path": path}})
            return cls.from_dict(_BUILTIN_ROUTES)
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        catalog = cls.from_dict(data)
        log.info("Routes loaded", extra={"extra": {"path": path, "count": len(catalog)}})
        return catalog

    def get(self, event_id: str) -> Route:
        try:
            return self._routes[event_id]
        except KeyError:
            raise RouteNotFound(f"no route for event '{event_id}'", details={"event_id": event_id}) from None

    def title(self, event_id: str) -> Optional[str]:
        return self._titles.get(event_id)

    def ids(self) -> List[str]:
        return sorted(self._routes)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids())

    def summary(self) -> List[Dict[str, Any]]:
        return [
            {"event_id": i, "title": self._titles.get(i), "waypoints": len(self._routes[i])}
            for i in self.ids()
        ]
