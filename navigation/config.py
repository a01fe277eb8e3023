from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from common.errors import ConfigError


DEFAULT_PARAMS_PATH = "config/params.yaml"


@dataclass(frozen=True, slots=True)
class NavigationConfig:
    """
    Construction-time engine settings, immutable for the session.

    Attributes:
        threshold_distance_m: a waypoint counts as reached when strictly closer than this.
        update_interval_ms: throttle cadence of recomputation.
        height_offset_m: marker height above the camera origin (Y).
        marker_scale: cosmetic, passed through to the renderer untouched.
        marker_yaw_offset_deg: added to the marker facing so the asset's modeled
            front points at the user (depends on the asset's forward axis).
        arrival_label: destination text once the route is complete.
    """
    threshold_distance_m: float = 5.0
    update_interval_ms: int = 100
    height_offset_m: float = 1.0
    marker_scale: Any = "0.5 0.5 0.5"
    marker_yaw_offset_deg: float = 180.0
    arrival_label: str = "Event venue"

    def __post_init__(self) -> None:
        thr = float(self.threshold_distance_m)
        if not math.isfinite(thr) or thr <= 0:
            raise ConfigError("threshold_distance_m must be > 0", details={"value": self.threshold_distance_m})
        try:
            interval = int(self.update_interval_ms)
        except (TypeError, ValueError) as e:
            raise ConfigError("update_interval_ms must be an integer") from e
        if interval < 0:
            raise ConfigError("update_interval_ms must be >= 0", details={"value": interval})
        h = float(self.height_offset_m)
        yaw = float(self.marker_yaw_offset_deg)
        if not (math.isfinite(h) and math.isfinite(yaw)):
            raise ConfigError("height_offset_m and marker_yaw_offset_deg must be finite")
        object.__setattr__(self, "threshold_distance_m", thr)
        object.__setattr__(self, "update_interval_ms", interval)
        object.__setattr__(self, "height_offset_m", h)
        object.__setattr__(self, "marker_yaw_offset_deg", yaw)

    @property
    def update_interval_s(self) -> float:
        return self.update_interval_ms / 1000.0

    @classmethod
    def from_dict(cls, d: Optional[Mapping[str, Any]]) -> "NavigationConfig":
        """Build from the `navigation:` section; unknown keys are rejected."""
        d = dict(d or {})
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(d) - known)
        if unknown:
            raise ConfigError(f"unknown navigation settings: {', '.join(unknown)}")
        try:
            return cls(**d)
        except (TypeError, ValueError) as e:
            if isinstance(e, ConfigError):
                raise
            raise ConfigError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_params(path: str = DEFAULT_PARAMS_PATH) -> Dict:
    """Read the project YAML; a missing file yields built-in defaults."""
    if not Path(path).exists():
        return {
            "navigation": {},
            "routes": {"catalog_path": "config/routes.yaml"},
            "logging": {"level": "INFO"},
        }
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def load_config(path: str = DEFAULT_PARAMS_PATH) -> NavigationConfig:
    return NavigationConfig.from_dict(load_params(path).get("navigation"))
