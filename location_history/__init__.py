"""
Streaming reader and filtering engine for Google location history exports.
"""

import logging

from location_history.collection import Locations
from location_history.config import Settings
from location_history.errors import (
    ChannelDisconnected,
    DecodeError,
    EmptyInputError,
    FieldParseError,
    LocationHistoryError,
)
from location_history.models import (
    Activity,
    ActivityObservation,
    ActivityType,
    GeoPoint,
    LatLng,
    LocationRecord,
)
from location_history.pipelines import collect_locations, run_filter_pipeline
from location_history.utils.activity import (
    filter_by_activity,
    is_similar_type,
    list_activities,
    merged_activities,
    top_activities,
    top_activity,
    top_activity_type,
)
from location_history.utils.decoder import decode_streaming, iter_locations
from location_history.utils.gps_filter import (
    filter_by_distance,
    filter_by_time,
    filter_outliers,
    haversine_distance,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "Activity",
    "ActivityObservation",
    "ActivityType",
    "ChannelDisconnected",
    "DecodeError",
    "EmptyInputError",
    "FieldParseError",
    "GeoPoint",
    "LatLng",
    "LocationHistoryError",
    "LocationRecord",
    "Locations",
    "Settings",
    "collect_locations",
    "decode_streaming",
    "filter_by_activity",
    "filter_by_distance",
    "filter_by_time",
    "filter_outliers",
    "haversine_distance",
    "is_similar_type",
    "iter_locations",
    "list_activities",
    "merged_activities",
    "run_filter_pipeline",
    "top_activities",
    "top_activity",
    "top_activity_type",
]
