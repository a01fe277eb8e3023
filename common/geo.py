from __future__ import annotations

from typing import NamedTuple
import math

from common.types import GeoPoint


# --- Sphere constants ---
EARTH_RADIUS_M = 6371000.0                               # mean radius used for haversine (m)
_M_PER_DEG = EARTH_RADIUS_M * math.pi / 180.0            # arc length of one degree (m)


class LocalOffset(NamedTuple):
    """East/North displacement (meters) in a local tangent plane."""
    east: float
    north: float


# -------------------------
# Angles
# -------------------------
def normalize_deg(angle: float) -> float:
    """Reduce any angle (degrees) to [0, 360)."""
    a = math.fmod(float(angle), 360.0)
    if a < 0.0:
        a += 360.0
    # fmod of tiny negatives can round up to exactly 360
    return 0.0 if a >= 360.0 else a


# -------------------------
# Great-circle & bearings
# -------------------------
def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance on a sphere of radius EARTH_RADIUS_M."""
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    dphi = p2 - p1
    dl = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2.0) ** 2
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))


def initial_bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Initial great-circle bearing from point 1 to point 2 (degrees, 0..360).

    0 = north, clockwise positive. Identical points give atan2(0, 0) == 0; the
    value is meaningless there and callers should guard with a distance check.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dl = math.radians(lon2 - lon1)
    y = math.sin(dl) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dl)
    return normalize_deg(math.degrees(math.atan2(y, x)))


def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance (m) between two GeoPoints."""
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def bearing_deg(a: GeoPoint, b: GeoPoint) -> float:
    """Initial bearing (deg, [0, 360)) from GeoPoint a to GeoPoint b."""
    return initial_bearing_deg(a.latitude, a.longitude, b.latitude, b.longitude)


# -------------------------
# Local tangent plane
# -------------------------
def local_offset_m(origin: GeoPoint, target: GeoPoint) -> LocalOffset:
    """
    Flat-earth East/North offset (meters) of `target` relative to `origin`.

    Latitude degrees are converted with the same sphere radius as haversine_m;
    longitude degrees are additionally scaled by cos(mean latitude) to account
    for meridian convergence.

    NOTE: only valid over short ranges (tens to a few hundred meters). For
    kilometer-scale routes use a proper projected CRS instead.
    """
    mean_lat = math.radians(0.5 * (origin.latitude + target.latitude))
    north = (target.latitude - origin.latitude) * _M_PER_DEG
    east = (target.longitude - origin.longitude) * _M_PER_DEG * math.cos(mean_lat)
    return LocalOffset(east=east, north=north)


def apply_offset_m(origin: GeoPoint, east: float, north: float) -> GeoPoint:
    """Inverse of local_offset_m: shift `origin` by an East/North offset (meters)."""
    lat = origin.latitude + north / _M_PER_DEG
    mean_lat = math.radians(0.5 * (origin.latitude + lat))
    lon = origin.longitude + east / (_M_PER_DEG * math.cos(mean_lat))
    return GeoPoint(lat, lon)
