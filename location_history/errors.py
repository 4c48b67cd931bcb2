"""
Exceptions raised while ingesting and filtering location history.
"""

from typing import Any, Optional


class LocationHistoryError(Exception):
    """Base class for all location_history errors."""


class DecodeError(LocationHistoryError):
    """The document is malformed or a required field is missing. Fatal."""


class FieldParseError(DecodeError):
    """A field is present but has an unusable value (bad timestamp, non-numeric coordinate)."""

    def __init__(self, field: str, value: Any, reason: Optional[str] = None):
        self.field = field
        self.value = value
        message = f"Could not parse field '{field}' from {value!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class EmptyInputError(LocationHistoryError, ValueError):
    """A filter that needs at least one record was given an empty collection."""


class ChannelDisconnected(LocationHistoryError):
    """The consumer closed the channel. Signals normal early termination."""
