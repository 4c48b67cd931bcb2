"""
Filter pipeline: outliers → distance → activity.

Takes a collected (sorted) Locations and returns the filtered records
together with what a report needs: merged activities per record, the
activity labels present and some statistics. Uses utils.gps_filter and
utils.activity under the hood.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from location_history.collection import Locations
from location_history.config import Settings
from location_history.models import LatLng, LocationRecord
from location_history.utils.activity import filter_by_activity, list_activities, merged_activities
from location_history.utils.gps_filter import filter_by_distance, filter_outliers_with_report

logger = logging.getLogger(__name__)


def run(
    locations: List[LocationRecord],
    center: Optional[LatLng] = None,
    radius_m: Optional[float] = None,
    activity_pattern: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """
    Run the filter pipeline.

    Args:
        locations: Records, sorted or in arrival order
        center: Center point for the distance filter (requires radius_m)
        radius_m: Keep records closer than this to center
        activity_pattern: Glob pattern for filter_by_activity, e.g. "ON_*"
        settings: Outlier thresholds; read from the environment if None

    Returns:
        {
            "locations": Locations,  # filtered, sorted by time
            "summaries": [ActivityObservation, ...],  # merged activities per kept record
            "activities": [str, ...],  # labels present before the activity filter
            "outliers": [{...}, ...],  # speed rejections, see filter_outliers_with_report
            "filter_stats": {...},
        }
        If locations is empty, the lists are empty and filter_stats is None.

    Raises:
        ValueError: If only one of center and radius_m is given
    """
    if (center is None) != (radius_m is None):
        raise ValueError("center and radius_m must be given together")

    if not locations:
        return {
            "locations": Locations(),
            "summaries": [],
            "activities": [],
            "outliers": [],
            "filter_stats": None,
        }

    if settings is None:
        settings = Settings.from_env()

    original_count = len(locations)

    # Step 1: Remove high-velocity outliers
    filtered, outliers = filter_outliers_with_report(
        locations,
        max_speed_kmh=settings.max_speed_kmh,
        max_gap_seconds=settings.max_gap_seconds,
    )
    removed_by_outliers = len(outliers)
    if outliers:
        fastest = max(entry["speed_kmh"] for entry in outliers)
        logger.info("Removed %d outliers by velocity (fastest %.0f km/h)", removed_by_outliers, fastest)

    # Step 2: Restrict to the area of interest
    removed_by_distance = 0
    if center is not None:
        before = len(filtered)
        filtered = filter_by_distance(filtered, center, radius_m)
        removed_by_distance = before - len(filtered)

    # Labels for the legend are taken before the activity filter
    activities = sorted(list_activities(filtered))

    # Step 3: Filter by activity type
    removed_by_activity = 0
    if activity_pattern:
        before = len(filtered)
        filtered = filter_by_activity(filtered, activity_pattern)
        removed_by_activity = before - len(filtered)
        logger.info("Removed %d locations by activity type", removed_by_activity)

    total_removed = removed_by_outliers + removed_by_distance + removed_by_activity
    filter_stats = {
        "original_count": original_count,
        "after_filtering": len(filtered),
        "removed_by_outliers": removed_by_outliers,
        "removed_by_distance": removed_by_distance,
        "removed_by_activity": removed_by_activity,
        "total_removed": total_removed,
        "retention_rate": len(filtered) / original_count,
        "average_time_s": filtered.average_time(),
    }

    return {
        "locations": filtered,
        "summaries": [merged_activities(loc) for loc in filtered],
        "activities": activities,
        "outliers": outliers,
        "filter_stats": filter_stats,
    }
