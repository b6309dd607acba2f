"""Shared fixtures for the road closure alerts tests."""

from datetime import datetime, timedelta, timezone

import pytest

from road_closures.geo import GeoFilter
from road_closures.models import Alert, Location, Subscriber

# Frisco, CO: inside the default bounding box
IN_BOUNDS = Location(39.5744, -106.0975)
# Grand Junction, CO: west of the box
OUT_OF_BOUNDS = Location(39.0639, -108.5506)

NOW = datetime(2026, 10, 20, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_alert():
    def _make_alert(alert_id="A1", **overrides):
        fields = dict(
            id=alert_id,
            road_name="I-70",
            description="Right lane closed for paving",
            location_description="Silverthorne",
            direction="East",
            both_directions=False,
            start_mile_marker="205",
            end_mile_marker=None,
            closure_type_id="1",
            location=IN_BOUNDS,
        )
        fields.update(overrides)
        return Alert(**fields)
    return _make_alert


@pytest.fixture
def make_subscriber():
    def _make_subscriber(number="+15550000001", expires_in=timedelta(hours=12), now=NOW):
        return Subscriber(number=number, expires_at=now + expires_in)
    return _make_subscriber


@pytest.fixture
def geo_filter():
    return GeoFilter(south=39.084296, north=40.517692, west=-107.399081, east=-105.128684)
