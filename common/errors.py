"""Error taxonomy for the navigation engine and its route lookup layer."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class NavigationError(Exception):
    code = "NAVIGATION_ERROR"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error_code": self.code, "error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidRoute(NavigationError, ValueError):
    """Empty or malformed route; fatal at construction, the engine is not started."""
    code = "INVALID_ROUTE"


class RouteNotFound(NavigationError, LookupError):
    code = "ROUTE_NOT_FOUND"


class ConfigError(NavigationError, ValueError):
    code = "CONFIG_ERROR"


class SensorKind(str, Enum):
    POSITION = "position"
    HEADING = "heading"


class SensorStatus(str, Enum):
    """
    Per-feed health as reported by the sensor collaborator.

    UNAVAILABLE covers "permission denied", "unsupported", "timeout" and
    similar; the engine treats it exactly like an unknown value.
    """
    WAITING = "waiting"
    OK = "ok"
    UNAVAILABLE = "unavailable"
