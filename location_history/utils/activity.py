"""
Activity ranking and filtering for location records.

Each record can hold several activity observations taken around the same
instant, each with its own list of (type, confidence) pairs. Ranking
functions sum confidences per ActivityType; quite frequently several types
share the top confidence, so callers get full ranked lists rather than a
single winner.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Union

from location_history.collection import Locations
from location_history.models import (
    Activity,
    ActivityObservation,
    ActivityType,
    LocationRecord,
)
from location_history.utils.glob_match import glob_match

logger = logging.getLogger(__name__)

UNKNOWN_ACTIVITY = Activity(type=ActivityType.UNKNOWN.value, confidence=0)

ActivitySource = Union[LocationRecord, ActivityObservation]


def sum_confidences(activities: Iterable[Activity]) -> Dict[ActivityType, int]:
    """Group activities by type, summing their confidence."""
    totals: Dict[ActivityType, int] = {}
    for act in activities:
        totals[act.kind] = totals.get(act.kind, 0) + act.confidence
    return totals


def _ranked(totals: Dict[ActivityType, int]) -> List[Activity]:
    activities = [
        Activity(type=act_type.value, confidence=confidence)
        for act_type, confidence in totals.items()
    ]
    activities.sort(key=lambda a: a.confidence, reverse=True)
    return activities


def merged_activities(location: LocationRecord) -> ActivityObservation:
    """
    Merge all observations of a record into one ranked observation.

    Confidence is summed per type across every observation, so two
    observations of STILL at 80 give a single STILL entry at 160.

    Args:
        location: Record to merge

    Returns:
        ActivityObservation stamped with the record's timestamp, one entry
        per type, highest confidence first
    """
    totals: Dict[ActivityType, int] = {}
    for observation in location.activities:
        for act_type, confidence in sum_confidences(observation.activities).items():
            totals[act_type] = totals.get(act_type, 0) + confidence

    return ActivityObservation(timestamp=location.timestamp, activities=_ranked(totals))


def top_activities(source: ActivitySource) -> List[Activity]:
    """
    Ranked activities, highest confidence first.

    For an observation, confidences are summed per type within it. For a
    record, each observation is ranked on its own and the lists are
    concatenated and re-sorted, so a type can appear once per observation.
    Ties keep no particular meaning; do not assume a unique maximum.
    """
    if isinstance(source, ActivityObservation):
        return _ranked(sum_confidences(source.activities))

    result: List[Activity] = []
    for observation in source.activities:
        result.extend(top_activities(observation))
    result.sort(key=lambda a: a.confidence, reverse=True)
    return result


def top_activity(source: ActivitySource) -> Activity:
    """Highest ranked activity, or UNKNOWN at confidence 0 if there is none."""
    ranked = top_activities(source)
    if ranked:
        return ranked[0]
    return UNKNOWN_ACTIVITY


def top_activity_type(source: ActivitySource) -> ActivityType:
    return top_activity(source).kind


def is_similar_type(source: ActivitySource, other: ActivitySource) -> bool:
    """True if the top activity of source is within the top 3 of other, ignoring time delta."""
    top_act = top_activity(source)
    other_top = top_activities(other)[:3]
    return any(act.activity_type == top_act.activity_type for act in other_top)


def seconds_delta(source: ActivitySource, other: ActivitySource) -> float:
    return (source.timestamp - other.timestamp).total_seconds()


def dominant_activity(observation: ActivityObservation) -> Optional[Activity]:
    """Highest-confidence raw pair of an observation; the first one wins ties."""
    if not observation.activities:
        return None
    return max(observation.activities, key=lambda a: a.confidence)


def filter_by_activity(locations: List[LocationRecord], pattern: str) -> Locations:
    """
    Keep records where some observation's highest-confidence activity matches pattern.

    Args:
        locations: Records to filter
        pattern: Glob pattern matched against raw labels, e.g. "ON_*" or
            "{ON_FOOT,STILL}"

    Returns:
        Matching records sorted by time
    """
    result = Locations()

    for location in locations:
        for observation in location.activities:
            act = dominant_activity(observation)
            if act is not None and glob_match(pattern, act.activity_type):
                result.append(location)
                break

    result.sort_chronological()
    logger.debug(
        "Activity pattern %r kept %d of %d locations", pattern, len(result), len(locations)
    )
    return result


def list_activities(locations: Iterable[LocationRecord]) -> Set[str]:
    """Unique raw activity labels found anywhere in the records."""
    labels: Set[str] = set()
    for location in locations:
        for observation in location.activities:
            for act in observation.activities:
                labels.add(act.activity_type)
    return labels
