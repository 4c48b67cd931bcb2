import json
import math
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from location_history.config import Settings
from location_history.models import Activity, ActivityObservation, LocationRecord
from location_history.utils.gps_filter import EARTH_RADIUS_M

FIXTURES = Path(__file__).parent / "fixtures"
BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def meters_east(meters: float) -> float:
    """Longitude (degrees) lying `meters` east of (0, 0) along the equator."""
    return math.degrees(meters / EARTH_RADIUS_M)


def at(seconds: float) -> datetime:
    return BASE_TIME + timedelta(seconds=seconds)


def observation(seconds: float = 0, **confidences: int) -> ActivityObservation:
    return ActivityObservation(
        timestamp=at(seconds),
        activities=[Activity(type=label, confidence=c) for label, c in confidences.items()],
    )


def make_location(seconds: float = 0, lat: float = 0.0, lng: float = 0.0, activities=None) -> LocationRecord:
    return LocationRecord(
        timestamp=at(seconds),
        latitude=lat,
        longitude=lng,
        activities=activities or [],
    )


def raw_location(seconds: float = 0, lat_e7: int = 0, lng_e7: int = 0, **extra) -> dict:
    raw = {
        "timestamp": at(seconds).isoformat().replace("+00:00", "Z"),
        "latitudeE7": lat_e7,
        "longitudeE7": lng_e7,
    }
    raw.update(extra)
    return raw


def document(locations, **siblings) -> bytes:
    data = dict(siblings)
    data["locations"] = locations
    return json.dumps(data).encode("utf-8")


@pytest.fixture
def records_path() -> Path:
    return FIXTURES / "records.json"


@pytest.fixture
def settings() -> Settings:
    return Settings(channel_size=4)
