"""
Unit tests for sensor intake (sensors/ingest.py, sensors/sources.py feeds)
"""

import math
import os
import sys

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.errors import SensorKind, SensorStatus
from common.types import GeoPoint, HeadingSample, PositionFix
from sensors.ingest import SensorIngest
from sensors.sources import CallbackFeed, heading_from_device_alpha


class Counter:
    def __init__(self):
        self.n = 0

    def __call__(self):
        self.n += 1


class TestPositionFix:
    """Test cases for SensorIngest.on_position_fix"""

    def test_last_writer_wins(self):
        sig = Counter()
        ing = SensorIngest(on_change=sig)
        assert ing.on_position_fix(GeoPoint(1.0, 2.0))
        assert ing.on_position_fix(GeoPoint(3.0, 4.0))
        assert ing.position == GeoPoint(3.0, 4.0)
        assert sig.n == 2
        assert ing.status[SensorKind.POSITION] is SensorStatus.OK

    def test_position_fix_record_unwrapped(self):
        ing = SensorIngest()
        ing.on_position_fix(PositionFix(ts="2024-01-01T00:00:00Z", position=GeoPoint(1.0, 2.0), accuracy_m=3.0))
        assert ing.position == GeoPoint(1.0, 2.0)

    @pytest.mark.parametrize("bad", [None, (1.0, 2.0), "35.1,139.2"])
    def test_invalid_fix_dropped(self, bad):
        sig = Counter()
        ing = SensorIngest(on_change=sig)
        ing.on_position_fix(GeoPoint(1.0, 2.0))
        assert ing.on_position_fix(bad) is False
        assert ing.position == GeoPoint(1.0, 2.0)
        assert ing.dropped[SensorKind.POSITION] == 1
        assert sig.n == 1


class TestHeadingSample:
    """Test cases for SensorIngest.on_heading_sample"""

    def test_overwrites_heading(self):
        sig = Counter()
        ing = SensorIngest(on_change=sig)
        ing.on_heading_sample(45.0)
        ing.on_heading_sample(HeadingSample(ts="2024-01-01T00:00:00Z", heading_deg=90.0))
        assert ing.heading_deg == pytest.approx(90.0)
        assert sig.n == 2

    @pytest.mark.parametrize("raw, expected", [(370.0, 10.0), (-90.0, 270.0), (360.0, 0.0)])
    def test_out_of_range_normalized(self, raw, expected):
        ing = SensorIngest()
        ing.on_heading_sample(raw)
        assert ing.heading_deg == pytest.approx(expected)

    @pytest.mark.parametrize("bad", [None, math.nan, math.inf, "north", True, False])
    def test_invalid_heading_dropped(self, bad):
        sig = Counter()
        ing = SensorIngest(on_change=sig)
        assert ing.on_heading_sample(bad) is False
        assert ing.heading_deg is None
        assert ing.dropped[SensorKind.HEADING] == 1
        assert sig.n == 0
        assert ing.status[SensorKind.HEADING] is SensorStatus.WAITING


class TestSensorErrors:
    """Test cases for collaborator-reported sensor failures"""

    def test_error_marks_unavailable_and_clears_value(self):
        sig = Counter()
        ing = SensorIngest(on_change=sig)
        ing.on_position_fix(GeoPoint(1.0, 2.0))
        ing.on_sensor_error("position", "timeout")
        assert ing.position is None
        assert ing.status[SensorKind.POSITION] is SensorStatus.UNAVAILABLE
        assert ing.errors[SensorKind.POSITION] == "timeout"
        assert sig.n == 2

    def test_next_sample_self_heals(self):
        ing = SensorIngest()
        ing.on_sensor_error(SensorKind.HEADING, "permission denied")
        ing.on_heading_sample(10.0)
        assert ing.status[SensorKind.HEADING] is SensorStatus.OK
        assert SensorKind.HEADING not in ing.errors

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            SensorIngest().on_sensor_error("altimeter", "nope")


class TestFeeds:
    """Test cases for feed subscription and teardown"""

    def test_attach_routes_samples_and_errors(self):
        ing = SensorIngest()
        gps, compass = CallbackFeed("gps"), CallbackFeed("compass")
        ing.attach(gps, "position")
        ing.attach(compass, SensorKind.HEADING)
        gps.publish(GeoPoint(5.0, 6.0))
        compass.publish(123.0)
        assert ing.position == GeoPoint(5.0, 6.0)
        assert ing.heading_deg == pytest.approx(123.0)
        compass.fail("sensor not supported")
        assert ing.status[SensorKind.HEADING] is SensorStatus.UNAVAILABLE

    def test_close_unsubscribes(self):
        sig = Counter()
        ing = SensorIngest(on_change=sig)
        gps = CallbackFeed("gps")
        ing.attach(gps, "position")
        assert gps.subscriber_count == 1
        ing.close()
        assert gps.subscriber_count == 0
        gps.publish(GeoPoint(1.0, 1.0))
        assert ing.position is None
        assert sig.n == 0
        assert ing.on_position_fix(GeoPoint(1.0, 1.0)) is False

    def test_close_marks_closed_even_if_unsubscribe_fails(self):
        """A feed whose unsubscribe raises still leaves ingest closed"""

        class BrokenFeed:
            def subscribe(self, on_sample, on_error=None):
                def unsubscribe():
                    raise RuntimeError("unsubscribe failed")
                return unsubscribe

        ing = SensorIngest()
        gps = CallbackFeed("gps")
        ing.attach(gps, "position")
        ing.attach(BrokenFeed(), "heading")
        with pytest.raises(RuntimeError):
            ing.close()
        assert ing.closed
        gps.publish(GeoPoint(1.0, 1.0))
        assert ing.position is None

    def test_attach_after_close(self):
        ing = SensorIngest()
        ing.close()
        with pytest.raises(RuntimeError):
            ing.attach(CallbackFeed(), "position")

    def test_snapshot_is_plain_data(self):
        ing = SensorIngest()
        ing.on_position_fix(GeoPoint(1.0, 2.0))
        snap = ing.snapshot()
        assert snap["position"] == {"latitude": 1.0, "longitude": 2.0}
        assert snap["status"] == {"position": "ok", "heading": "waiting"}


class TestDeviceAlpha:
    """Test cases for deviceorientation alpha conversion"""

    @pytest.mark.parametrize("alpha, heading", [(0.0, 0.0), (90.0, 270.0), (270.0, 90.0), (360.0, 0.0)])
    def test_conversion(self, alpha, heading):
        assert heading_from_device_alpha(alpha) == pytest.approx(heading)

    def test_none_passes_through(self):
        assert heading_from_device_alpha(None) is None
