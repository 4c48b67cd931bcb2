"""
Ingest pipeline: Records.json → sorted Locations.

A background thread performs the streaming decode while the calling thread
receives locations as they are decoded, applies the time window and record
cap, and collects them. Stopping early (cap reached) closes the channel so
the decoder stops instead of reading the rest of the file.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional, Union

from location_history.collection import Locations
from location_history.config import Settings
from location_history.utils.channel import IngestStatus, LocationChannel
from location_history.utils.decoder import decode_streaming
from location_history.utils.gps_filter import in_time_window

logger = logging.getLogger(__name__)

Source = Union[str, Path, BinaryIO]


def _read_source(source: Source, channel: LocationChannel, strict: bool) -> None:
    """Producer: owns the input stream for its whole lifetime. Every error ends on the channel."""
    try:
        if hasattr(source, "read"):
            decode_streaming(source, channel, strict)
            return
        with open(source, "rb") as stream:
            decode_streaming(stream, channel, strict)
    except Exception as exc:
        logger.error("Could not read %r: %s", source, exc)
        channel.fail(exc)


def collect_locations(
    source: Source,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> Locations:
    """
    Read a location history export into a chronologically sorted collection.

    Args:
        source: Path to Records.json, or an open binary stream. A stream is
            handed over to the decoding thread and must not be used by the
            caller until this returns.
        start: Keep records at or after this instant (timezone-aware)
        end: Keep records before this instant (timezone-aware)
        limit: Stop after this many records have been kept
        settings: Channel size and strictness; read from the environment if None

    Returns:
        Locations sorted by timestamp

    Raises:
        DecodeError: If the document is malformed (FieldParseError for a bad
            field in strict mode)
        OSError: If the file cannot be opened
        TypeError: If source is neither a path nor a binary stream
        ValueError: If limit is less than 1
    """
    if limit is not None and limit < 1:
        raise ValueError("limit must be at least 1")
    if settings is None:
        settings = Settings.from_env()

    channel = LocationChannel(maxsize=settings.channel_size)
    reader = threading.Thread(
        target=_read_source,
        args=(source, channel, settings.strict),
        name="location-decoder",
        daemon=True,
    )
    reader.start()

    locations = Locations()
    parsed = 0
    try:
        for location in channel:
            parsed += 1

            if not in_time_window(location, start, end):
                continue

            locations.append(location)

            if limit is not None and len(locations) >= limit:
                logger.debug("Record limit %d reached, stopping ingest", limit)
                break
    finally:
        channel.close()
        reader.join()

    if channel.status is IngestStatus.FAILED:
        raise channel.error

    logger.info("%d loaded, %d parsed", len(locations), parsed)

    locations.sort_chronological()
    return locations
