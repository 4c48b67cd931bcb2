"""
Ordered collection of location records.

Nearest-time lookup and outlier filtering expect the collection to be sorted
with sort_chronological() first; receipt order from the decoder is not
guaranteed to be chronological.
"""

from __future__ import annotations

from bisect import bisect_left
from datetime import datetime
from typing import Optional, Tuple

from location_history.models import LocationRecord


def _timestamp(location: LocationRecord) -> datetime:
    return location.timestamp


class Locations(list):
    """A list of LocationRecord with chronological helpers."""

    def __getitem__(self, index):
        result = super().__getitem__(index)
        if isinstance(index, slice):
            return Locations(result)
        return result

    def sort_chronological(self) -> None:
        """Sort in place by timestamp. Stable, so equal timestamps keep their order."""
        self.sort(key=_timestamp)

    def find_closest(self, time: datetime) -> Optional[LocationRecord]:
        """
        Find the record at `time`, or the first record after it.

        An exact match is always returned. Otherwise the record following
        `time` is returned only when `time` falls strictly inside the
        collection; queries before the first or after the last record give
        None.

        Args:
            time: Timezone-aware datetime to look up

        Returns:
            Matching LocationRecord or None
        """
        index = bisect_left(self, time, key=_timestamp)
        if index < len(self) and self[index].timestamp == time:
            return self[index]
        if 0 < index < len(self):
            return self[index]
        return None

    def average_time(self) -> float:
        """
        Average number of seconds between consecutive records.

        Each gap is measured later-minus-earlier, so a sorted collection gives
        a non-negative result. Returns 0.0 for fewer than two records.
        """
        if len(self) < 2:
            return 0.0
        total = 0.0
        for i in range(1, len(self)):
            total += (self[i].timestamp - self[i - 1].timestamp).total_seconds()
        return total / (len(self) - 1)

    def time_span(self) -> Optional[Tuple[datetime, datetime]]:
        """First and last timestamp, or None for an empty collection."""
        if not self:
            return None
        return self[0].timestamp, self[-1].timestamp
