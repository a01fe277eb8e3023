"""
Unit tests for the rendering adapter (navigation/render.py)
"""

import json
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.errors import SensorKind, SensorStatus
from common.geo import LocalOffset
from navigation.config import NavigationConfig
from navigation.render import (
    MSG_ACQUIRING,
    MSG_ARRIVED,
    MSG_HEADING_UNAVAILABLE,
    MSG_NO_ROUTE,
    MSG_POSITION_UNAVAILABLE,
    destination_label,
    marker_attributes,
    render_frame,
    status_message,
)
from navigation.results import Arrived, Guidance, NoRoute, PositionUnknown, Projection, ProjectionUnavailable


def _guidance(projection=None, distance=12.34):
    return Guidance(
        waypoint_name="Hall entrance",
        waypoint_index=0,
        distance_m=distance,
        bearing_deg=0.0,
        offset=LocalOffset(0.0, distance),
        remaining=2,
        projection=projection or Projection(x=0.0, y=1.0, z=-10.0, rotation_y_deg=180.0),
    )


class TestMarkerAttributes:
    """Test cases for marker_attributes"""

    def test_attribute_strings(self):
        attrs = marker_attributes(_guidance(), NavigationConfig(marker_scale="2 2 2"))
        assert attrs == {"position": "0.000 1.000 -10.000", "rotation": "0 180.000 0", "scale": "2 2 2"}

    def test_scale_passed_through_untouched(self):
        scale = [0.5, 0.5, 0.5]
        attrs = marker_attributes(_guidance(), NavigationConfig(marker_scale=scale))
        assert attrs["scale"] is scale

    def test_unavailable_projection(self):
        assert marker_attributes(_guidance(ProjectionUnavailable())) is None


class TestStatusMessage:
    """Test cases for status_message and destination_label"""

    def test_messages_per_result(self):
        assert status_message(NoRoute()) == MSG_NO_ROUTE
        assert status_message(Arrived(total_waypoints=2)) == MSG_ARRIVED
        assert status_message(PositionUnknown("A", 0)) == MSG_ACQUIRING
        assert status_message(_guidance()) == "Remaining distance: 12.3m"

    def test_sensor_unavailable_messages(self):
        pos_down = {SensorKind.POSITION: SensorStatus.UNAVAILABLE}
        assert status_message(PositionUnknown("A", 0), pos_down) == MSG_POSITION_UNAVAILABLE
        head_down = {SensorKind.HEADING: SensorStatus.UNAVAILABLE}
        msg = status_message(_guidance(ProjectionUnavailable()), head_down)
        assert msg.startswith("Remaining distance: 12.3m")
        assert MSG_HEADING_UNAVAILABLE in msg

    def test_destination_label(self):
        cfg = NavigationConfig(arrival_label="Main hall")
        assert destination_label(Arrived(total_waypoints=1), cfg) == "Main hall"
        assert destination_label(_guidance()) == "Hall entrance"
        assert destination_label(NoRoute()) is None


class TestRenderFrame:
    """Test cases for render_frame"""

    def test_json_serializable(self):
        frame = render_frame(_guidance(), NavigationConfig())
        decoded = json.loads(json.dumps(frame))
        assert decoded["result"]["kind"] == "guidance"
        assert decoded["destination"] == "Hall entrance"
        assert decoded["marker"]["position"] == "0.000 1.000 -10.000"

    def test_arrived_has_no_marker(self):
        frame = render_frame(Arrived(total_waypoints=3))
        assert frame["marker"] is None
        assert frame["message"] == MSG_ARRIVED
