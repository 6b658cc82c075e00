"""Shared fixtures for the HYGRO test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from hygro.config.analytics import clear_config_cache
from hygro.series import PointMetadata, SpatialReading, TimeSeriesPoint


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def hour_ts(hours: float) -> str:
    """ISO timestamp `hours` after the base time."""
    moment = BASE_TIME + timedelta(hours=hours)
    return moment.strftime('%Y-%m-%dT%H:%M:%S.') + f"{moment.microsecond // 1000:03d}Z"


def point(value, hours=0.0, x=1.0, y=1.0, room='kitchen', floor='1'):
    return TimeSeriesPoint(
        timestamp=hour_ts(hours),
        value=value,
        metadata=PointMetadata(room=room, floor=floor, location_x=x, location_y=y),
    )


@pytest.fixture
def make_point():
    """Factory for a single point."""
    return point


@pytest.fixture
def make_series():
    """Factory: hourly points from a list of values, one location."""
    def _make(values, x=1.0, y=1.0, start_hour=0):
        return [point(v, hours=start_hour + i, x=x, y=y) for i, v in enumerate(values)]
    return _make


@pytest.fixture
def linear_series(make_series):
    """y = 2x + 1 over 20 hourly points."""
    return make_series([2.0 * i + 1.0 for i in range(20)])


@pytest.fixture
def step_series(make_series):
    """20 readings at 10 followed by 20 readings at 50."""
    return make_series([10.0] * 20 + [50.0] * 20)


@pytest.fixture
def make_reading():
    def _make(x, y, value, z=0.0, room=None, floor=None, location=None):
        return SpatialReading(x=x, y=y, value=value, z=z, room=room, floor=floor, location=location)
    return _make


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts from freshly loaded defaults."""
    clear_config_cache()
    yield
    clear_config_cache()
