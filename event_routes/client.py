from __future__ import annotations

from typing import Any, Dict, List

import requests

from common.errors import InvalidRoute, RouteNotFound
from common.logging_setup import get_logger
from common.types import Route


log = get_logger("event_routes.client")


class RouteClient:
    """
    Fetches routes from the route lookup service (event_routes/server.py).

    Network and HTTP errors other than 404 raise RuntimeError; the caller decides
    whether to retry or fall back to a local catalog.
    """

    def __init__(self, base_url: str = "http://127.0.0.1:8000", timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)

    def _get(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RuntimeError(f"Route API unreachable: {e}") from e
        if r.status_code == 404:
            return None
        if r.status_code != 200:
            raise RuntimeError(f"Route API error {r.status_code}: {r.text[:200]}")
        try:
            return r.json()
        except ValueError as e:
            raise RuntimeError("Route API returned invalid JSON") from e

    def fetch(self, event_id: str) -> Route:
        """Return the route for `event_id`; RouteNotFound for unknown ids."""
        data = self._get(f"/routes/{event_id}")
        if data is None:
            raise RouteNotFound(f"no route for event '{event_id}'", details={"event_id": event_id})
        if not isinstance(data, dict):
            raise InvalidRoute("route payload must be an object")
        route = Route.from_dicts(data.get("waypoints") or [], route_id=data.get("route_id") or event_id)
        log.info("Route fetched", extra={"extra": {"event_id": event_id, "waypoints": len(route)}})
        return route

    def list_routes(self) -> List[Dict[str, Any]]:
        data = self._get("/routes")
        return list((data or {}).get("routes", []))
