"""
Unit tests for geodesy helpers (common/geo.py)
"""

import math
import os
import sys

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.geo import (
    EARTH_RADIUS_M,
    apply_offset_m,
    bearing_deg,
    distance_m,
    haversine_m,
    local_offset_m,
    normalize_deg,
)
from common.types import GeoPoint

ONE_MICRODEG_M = EARTH_RADIUS_M * math.radians(0.0001)  # ~11.12 m

POINTS = [
    GeoPoint(0.0, 0.0),
    GeoPoint(35.8576, 139.7523),
    GeoPoint(35.8582, 139.7527),
    GeoPoint(-33.8688, 151.2093),
    GeoPoint(51.5007, -0.1246),
    GeoPoint(89.9, 179.9),
]


class TestDistance:
    """Test cases for haversine distance"""

    def test_symmetric(self):
        """Distance does not depend on argument order"""
        for a in POINTS:
            for b in POINTS:
                assert distance_m(a, b) == pytest.approx(distance_m(b, a), rel=1e-12, abs=1e-9)

    def test_zero_for_same_point(self):
        """A point is at distance zero from itself"""
        for p in POINTS:
            assert distance_m(p, p) == 0.0

    def test_non_negative_and_triangle_inequality(self):
        """Distances are non-negative and obey the triangle inequality"""
        for a in POINTS:
            for b in POINTS:
                for c in POINTS:
                    assert distance_m(a, b) >= 0.0
                    assert distance_m(a, c) <= distance_m(a, b) + distance_m(b, c) + 1e-6

    def test_known_short_distance(self):
        """0.0001 deg of latitude is ~11.12 m on the 6,371 km sphere"""
        d = distance_m(GeoPoint(0.0, 0.0), GeoPoint(0.0001, 0.0))
        assert d == pytest.approx(ONE_MICRODEG_M, rel=1e-9)
        assert d == pytest.approx(11.119, abs=0.001)

    def test_one_degree_latitude(self):
        """One degree of latitude is ~111.195 km"""
        assert haversine_m(10.0, 20.0, 11.0, 20.0) == pytest.approx(111194.93, abs=0.1)


class TestBearing:
    """Test cases for initial bearing"""

    @pytest.mark.parametrize(
        "target, expected",
        [
            (GeoPoint(0.0001, 0.0), 0.0),
            (GeoPoint(0.0, 0.0001), 90.0),
            (GeoPoint(-0.0001, 0.0), 180.0),
            (GeoPoint(0.0, -0.0001), 270.0),
        ],
    )
    def test_cardinal_directions(self, target, expected):
        """North/East/South/West from the origin"""
        assert bearing_deg(GeoPoint(0.0, 0.0), target) == pytest.approx(expected, abs=1e-9)

    def test_range(self):
        """Bearings are always in [0, 360)"""
        for a in POINTS:
            for b in POINTS:
                assert 0.0 <= bearing_deg(a, b) < 360.0

    def test_same_point_does_not_raise(self):
        """Bearing to itself is unconstrained but finite"""
        p = GeoPoint(35.8576, 139.7523)
        b = bearing_deg(p, p)
        assert math.isfinite(b)


class TestLocalOffset:
    """Test cases for the flat-earth East/North approximation"""

    def test_due_north(self):
        """A pure latitude change is all north"""
        off = local_offset_m(GeoPoint(0.0, 0.0), GeoPoint(0.0001, 0.0))
        assert off.north == pytest.approx(ONE_MICRODEG_M, rel=1e-9)
        assert off.east == pytest.approx(0.0, abs=1e-12)

    def test_longitude_scaled_by_cos_mean_latitude(self):
        """East displacement shrinks with cos(latitude)"""
        off = local_offset_m(GeoPoint(60.0, 10.0), GeoPoint(60.0, 10.001))
        expected = 0.001 * EARTH_RADIUS_M * math.pi / 180.0 * math.cos(math.radians(60.0))
        assert off.east == pytest.approx(expected, rel=1e-9)
        assert off.north == pytest.approx(0.0, abs=1e-12)

    def test_matches_haversine_at_short_range(self):
        """Within a few hundred meters the offset norm agrees with haversine"""
        origin = GeoPoint(35.8576, 139.7523)
        target = GeoPoint(35.8582, 139.7527)
        off = local_offset_m(origin, target)
        assert math.hypot(off.east, off.north) == pytest.approx(distance_m(origin, target), rel=1e-3)

    def test_apply_offset_inverts_local_offset(self):
        """Shifting by an offset lands back on the target"""
        origin = GeoPoint(35.8560, 139.7510)
        q = apply_offset_m(origin, 12.5, -30.0)
        off = local_offset_m(origin, q)
        assert off.east == pytest.approx(12.5, abs=1e-3)
        assert off.north == pytest.approx(-30.0, abs=1e-3)


class TestNormalize:
    """Test cases for angle normalization"""

    @pytest.mark.parametrize(
        "angle, expected",
        [(0.0, 0.0), (360.0, 0.0), (-90.0, 270.0), (725.0, 5.0), (-720.0, 0.0), (359.5, 359.5)],
    )
    def test_normalize(self, angle, expected):
        assert normalize_deg(angle) == pytest.approx(expected)

    def test_tiny_negative_stays_in_range(self):
        """Rounding never yields exactly 360"""
        a = normalize_deg(-1e-15)
        assert 0.0 <= a < 360.0
