"""
Streaming decoder for Google location history exports (Records.json).

The export is a single object with a large "locations" array. The file is
read incrementally with ijson, so each location is decoded and handed on
before the next one is read and the whole document is never held in memory.

Expected element shape:

    {
        "timestamp": "2016-08-07T04:54:00.678Z",
        "latitudeE7": 500373489,
        "longitudeE7": 83320934,
        "accuracy": 19,
        "altitude": 120,
        "activity": [
            {"timestamp": "...", "activity": [{"type": "STILL", "confidence": 100}]}
        ]
    }
"""

import logging
from datetime import datetime
from typing import Any, BinaryIO, Dict, Iterator, Optional

import ijson
from pydantic import ValidationError

from location_history.errors import ChannelDisconnected, DecodeError, FieldParseError
from location_history.models import Activity, ActivityObservation, LocationRecord
from location_history.utils.channel import LocationChannel

logger = logging.getLogger(__name__)

LOCATIONS_KEY = "locations"
ITEM_PREFIX = "locations.item"
REQUIRED_FIELDS = ("timestamp", "latitudeE7", "longitudeE7")
# Google stores coordinates as integers, so they must be scaled by 1e-7.
E7 = 10_000_000
PROGRESS_EVERY = 50_000


def parse_timestamp(value: Any, field: str = "timestamp") -> datetime:
    """
    Parse an RFC3339 timestamp with an explicit offset.

    Args:
        value: Raw value, e.g. "2016-08-07T04:54:00.678Z"
        field: Field name used in the error message

    Returns:
        Timezone-aware datetime

    Raises:
        FieldParseError: If the value is not a string, cannot be parsed or
            has no offset
    """
    if not isinstance(value, str):
        raise FieldParseError(field, value, "expected an RFC3339 string")

    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise FieldParseError(field, value, str(exc)) from exc

    if parsed.tzinfo is None:
        raise FieldParseError(field, value, "missing UTC offset")
    return parsed


def _parse_number(value: Any, field: str) -> float:
    # bool is an int subclass but never a valid coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FieldParseError(field, value, "expected a number")
    return value


def _parse_optional_int(value: Any, field: str) -> Optional[int]:
    if value is None:
        return None
    return int(_parse_number(value, field))


def _decode_activity(raw: Any) -> Activity:
    if not isinstance(raw, dict) or "type" not in raw or "confidence" not in raw:
        raise DecodeError(f"Activity entry must have 'type' and 'confidence': {raw!r}")
    if not isinstance(raw["type"], str):
        raise FieldParseError("type", raw["type"], "expected a string")
    confidence = _parse_number(raw["confidence"], "confidence")
    try:
        return Activity(type=raw["type"], confidence=int(confidence))
    except ValidationError as exc:
        raise FieldParseError("confidence", raw["confidence"], str(exc)) from exc


def _decode_observation(raw: Any) -> ActivityObservation:
    if not isinstance(raw, dict):
        raise DecodeError(f"Activity observation must be an object: {raw!r}")
    if "timestamp" not in raw:
        raise DecodeError("Activity observation is missing required field 'timestamp'")

    entries = raw.get("activity") or []
    if not isinstance(entries, list):
        raise DecodeError("Activity observation field 'activity' must be an array")

    return ActivityObservation(
        timestamp=parse_timestamp(raw["timestamp"], "activity.timestamp"),
        activities=[_decode_activity(entry) for entry in entries],
    )


def decode_location(raw: Any) -> LocationRecord:
    """
    Decode one element of the "locations" array.

    Args:
        raw: Element as built by the JSON parser

    Returns:
        LocationRecord with coordinates in degrees

    Raises:
        DecodeError: If the element is not an object or lacks a required field
        FieldParseError: If a field has an unusable value
    """
    if not isinstance(raw, dict):
        raise DecodeError(f"Location must be an object, got {type(raw).__name__}")
    for field in REQUIRED_FIELDS:
        if field not in raw:
            raise DecodeError(f"Location is missing required field '{field}'")

    observations = raw.get("activity") or []
    if not isinstance(observations, list):
        raise DecodeError("Location field 'activity' must be an array")

    timestamp = parse_timestamp(raw["timestamp"])
    latitude = _parse_number(raw["latitudeE7"], "latitudeE7") / E7
    longitude = _parse_number(raw["longitudeE7"], "longitudeE7") / E7

    try:
        return LocationRecord(
            timestamp=timestamp,
            latitude=latitude,
            longitude=longitude,
            accuracy=_parse_optional_int(raw.get("accuracy"), "accuracy"),
            altitude=_parse_optional_int(raw.get("altitude"), "altitude"),
            activities=[_decode_observation(obs) for obs in observations],
        )
    except ValidationError as exc:
        # e.g. a non-integral accuracy or a malformed nested entry
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        raise FieldParseError(field, error.get("input"), error["msg"]) from exc


def _decode_or_skip(raw: Dict, index: int, strict: bool) -> Optional[LocationRecord]:
    try:
        return decode_location(raw)
    except FieldParseError as exc:
        if strict:
            raise
        logger.warning("Error processing location #%d, skipping: %s", index, exc)
        return None


def _iter_location_items(events: Iterator, strict: bool) -> Iterator[LocationRecord]:
    first = next(events, None)
    if first is None:
        raise DecodeError("Document is empty")
    if first[1] != "start_map":
        raise DecodeError("Document root must be an object")

    in_locations = False
    builder = None
    count = 0

    for prefix, event, value in events:
        if not in_locations:
            # Skip everything until the root-level "locations" value
            if prefix == LOCATIONS_KEY:
                if event != "start_array":
                    raise DecodeError(f"'{LOCATIONS_KEY}' must be an array")
                in_locations = True
            continue

        if prefix == LOCATIONS_KEY:
            # end_array; anything after it is never read
            logger.debug("Finished decoding %d locations", count)
            return

        if builder is None:
            # Between elements: only the start of an object is acceptable
            if prefix == ITEM_PREFIX and event == "start_map":
                builder = ijson.ObjectBuilder()
                builder.event(event, value)
                continue
            raise DecodeError(f"Location #{count + 1} must be an object")

        builder.event(event, value)

        # Keys of the element itself are also reported under ITEM_PREFIX
        if prefix == ITEM_PREFIX and event == "end_map":
            count += 1
            location = _decode_or_skip(builder.value, count, strict)
            builder = None
            if location is not None:
                yield location
            if count % PROGRESS_EVERY == 0:
                logger.debug("%d locations decoded...", count)

    if not in_locations:
        raise DecodeError(f"Document has no '{LOCATIONS_KEY}' array")
    raise DecodeError(f"Document ended inside the '{LOCATIONS_KEY}' array")


def iter_locations(stream: BinaryIO, strict: bool = True) -> Iterator[LocationRecord]:
    """
    Decode locations from a Records.json stream one at a time.

    Sibling keys of "locations" are skipped without being decoded.

    Args:
        stream: Binary file-like object
        strict: Abort on the first record with an unparsable field. When
            False such records are logged and skipped.

    Yields:
        LocationRecord in file order

    Raises:
        DecodeError: If the document is malformed or a record lacks a
            required field
        FieldParseError: If a field cannot be parsed and strict is True
    """
    events = ijson.parse(stream, use_float=True)
    try:
        yield from _iter_location_items(events, strict)
    except ijson.JSONError as exc:
        raise DecodeError(f"Malformed JSON document: {exc}") from exc


def decode_streaming(stream: BinaryIO, channel: LocationChannel, strict: bool = True) -> int:
    """
    Decode a stream, sending every location to channel as soon as it is decoded.

    Meant to run on its own thread. Errors are not raised but recorded on the
    channel with fail(), so the consumer can tell them apart from a clean end
    of stream. If the consumer closes the channel, decoding stops at the next
    send.

    Args:
        stream: Binary file-like object, owned by this call until it returns
        channel: Channel to the consumer
        strict: See iter_locations

    Returns:
        Number of locations sent
    """
    sent = 0
    try:
        for location in iter_locations(stream, strict):
            channel.send(location)
            sent += 1
    except ChannelDisconnected:
        logger.debug("Consumer disconnected after %d locations, stopping", sent)
        return sent
    except Exception as exc:
        logger.error("Decoding stopped after %d locations: %s", sent, exc)
        channel.fail(exc)
        return sent

    channel.complete()
    return sent
