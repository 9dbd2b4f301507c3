from datetime import datetime, timedelta, timezone

import pytest

from app.schemas.location import LocationReading
from app.utils.geo_utils import bearing_degrees, compass_direction, haversine_km, is_usable_fix
from app.utils.time_utils import format_relative_time

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("delta, expected", [
    (timedelta(seconds=30), "Just now"),
    (timedelta(minutes=5), "5m ago"),
    (timedelta(hours=3), "3h ago"),
    (timedelta(days=2), "2d ago"),
    (timedelta(days=10), "2025-02-28"),
])
def test_format_relative_time(delta, expected):
    assert format_relative_time(NOW - delta, now=NOW) == expected


def test_format_relative_time_treats_naive_as_utc():
    assert format_relative_time(datetime(2025, 3, 10, 11, 0), now=NOW) == "1h ago"


def test_haversine_known_distance():
    # Kolkata to Delhi is roughly 1300 km
    assert haversine_km(22.5726, 88.3639, 28.6139, 77.2090) == pytest.approx(1305, abs=10)
    assert haversine_km(10, 10, 10, 10) == 0


def test_bearing_and_compass():
    assert bearing_degrees(0, 0, 1, 0) == pytest.approx(0)
    assert bearing_degrees(0, 0, 0, 1) == pytest.approx(90)
    assert compass_direction(0) == "N"
    assert compass_direction(350) == "N"
    assert compass_direction(100) == "E"
    assert compass_direction(225) == "SW"


def test_is_usable_fix():
    assert is_usable_fix(LocationReading(lat=22.5, lng=88.3, accuracy=20))
    assert is_usable_fix(LocationReading(lat=22.5, lng=88.3))
    assert not is_usable_fix(LocationReading(lat=22.5, lng=88.3, accuracy=500))
    assert not is_usable_fix(None)
