"""
Distance, speed and time-window filters over location history records.

Speeds are in km/h and distances in meters. filter_outliers_with_report
also explains each rejected record; the filter pipeline puts that list in
its result.
"""

import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from location_history.collection import Locations
from location_history.errors import EmptyInputError
from location_history.models import LatLng, LocationRecord

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000  # Mean earth radius in meters
DEFAULT_MAX_SPEED_KMH = 300.0
DEFAULT_MAX_GAP_SECONDS = 600.0  # 10 minute gap


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two points given in degrees."""
    lat1_rad, lat2_rad = math.radians(lat1), math.radians(lat2)
    half_dlat = math.radians(lat2 - lat1) / 2
    half_dlon = math.radians(lon2 - lon1) / 2

    h = math.sin(half_dlat) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(half_dlon) ** 2
    # Rounding can push h just above 1 for antipodal points
    h = min(h, 1.0)

    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def record_distance(loc1: LocationRecord, loc2: LocationRecord) -> float:
    """Distance in meters between two records."""
    return haversine_distance(loc1.latitude, loc1.longitude, loc2.latitude, loc2.longitude)


def calculate_speed(
    previous: LocationRecord,
    current: LocationRecord,
    max_gap_seconds: float = DEFAULT_MAX_GAP_SECONDS,
) -> Optional[float]:
    """
    Calculate speed from one record to the next in km/h.

    Args:
        previous: Earlier record
        current: Later record
        max_gap_seconds: Longest gap over which a speed is meaningful

    Returns:
        Speed in km/h, or None if the elapsed time is not positive or
        longer than max_gap_seconds
    """
    time_diff = (current.timestamp - previous.timestamp).total_seconds()

    if time_diff <= 0 or time_diff > max_gap_seconds:
        return None

    distance = record_distance(previous, current)

    # Convert to km/h
    return (distance / time_diff) * 3.6


def filter_outliers_with_report(
    locations: List[LocationRecord],
    max_speed_kmh: float = DEFAULT_MAX_SPEED_KMH,
    max_gap_seconds: float = DEFAULT_MAX_GAP_SECONDS,
) -> Tuple[Locations, List[Dict]]:
    """
    Filter out records implying unrealistic travel speed.

    The records are walked in the order given. Each one is compared with the
    last record kept so far, so a single bad fix does not also reject the
    good record after it. Records whose speed cannot be computed (see
    calculate_speed) are always kept.

    Args:
        locations: Records in arrival order
        max_speed_kmh: Records at or above this speed are outliers
        max_gap_seconds: Longest gap over which a speed is checked

    Returns:
        Tuple of (kept records sorted by time, rejected). Each rejected
        entry is {"location", "reason": "implausible_speed", "speed_kmh",
        "previous"}, where previous is the kept record it was measured from.

    Raises:
        EmptyInputError: If locations is empty
    """
    if not locations:
        raise EmptyInputError("Cannot filter outliers of an empty collection")

    kept = Locations([locations[0]])
    rejected = []

    for location in locations[1:]:
        anchor = kept[-1]
        speed = calculate_speed(anchor, location, max_gap_seconds)

        if speed is None or speed < max_speed_kmh:
            kept.append(location)
            continue
        rejected.append({
            "location": location,
            "reason": "implausible_speed",
            "speed_kmh": speed,
            "previous": anchor,
        })

    # Comparison order above was arrival order
    kept.sort_chronological()

    logger.debug("Rejected %d of %d records above %.0f km/h", len(rejected), len(locations), max_speed_kmh)
    return kept, rejected


def filter_outliers(
    locations: List[LocationRecord],
    max_speed_kmh: float = DEFAULT_MAX_SPEED_KMH,
    max_gap_seconds: float = DEFAULT_MAX_GAP_SECONDS,
) -> Locations:
    """Remove records implying travel faster than max_speed_kmh. See filter_outliers_with_report."""
    kept, _ = filter_outliers_with_report(locations, max_speed_kmh, max_gap_seconds)
    return kept


def filter_by_distance(
    locations: List[LocationRecord],
    center: LatLng,
    radius_m: float,
) -> Locations:
    """
    Keep records strictly closer than radius_m to center.

    Args:
        locations: Records to filter
        center: Center point
        radius_m: Radius in meters

    Returns:
        Records within the radius, in their original order
    """
    return Locations(
        loc for loc in locations
        if haversine_distance(loc.latitude, loc.longitude, center.lat, center.lng) < radius_m
    )


def filter_by_time(
    locations: List[LocationRecord],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Locations:
    """
    Keep records with start <= timestamp < end.

    Either bound may be None to leave that side open. Bounds must be
    timezone-aware.
    """
    return Locations(loc for loc in locations if in_time_window(loc, start, end))


def in_time_window(
    location: LocationRecord,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> bool:
    if start is not None and location.timestamp < start:
        return False
    if end is not None and location.timestamp >= end:
        return False
    return True
