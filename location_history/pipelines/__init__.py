"""
Pipelines: ingest → filter.

- ingest_pipeline: streaming decode on a background thread, collected into sorted Locations
- filter_pipeline: outlier, distance and activity filtering + merged activity summaries
"""

from location_history.pipelines.ingest_pipeline import collect_locations
from location_history.pipelines.filter_pipeline import run as run_filter_pipeline

__all__ = [
    "collect_locations",
    "run_filter_pipeline",
]
