"""
Data models for location history records.

Records are produced by the streaming decoder (utils.decoder) from a
Google location history export. Coordinates are stored in degrees, already
converted from the E7 integers in the export.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActivityType(str, Enum):
    IN_VEHICLE = "IN_VEHICLE"
    EXITING_VEHICLE = "EXITING_VEHICLE"
    ON_BICYCLE = "ON_BICYCLE"
    ON_FOOT = "ON_FOOT"
    RUNNING = "RUNNING"
    STILL = "STILL"
    TILTING = "TILTING"
    WALKING = "WALKING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_label(cls, label: str) -> "ActivityType":
        """Map a raw label to an ActivityType. Unrecognized labels are UNKNOWN."""
        try:
            return cls(label)
        except ValueError:
            return cls.UNKNOWN


class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


# Center point for distance filtering
GeoPoint = LatLng


class Activity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    activity_type: str = Field(..., alias="type")  # raw label, e.g. "ON_FOOT"
    confidence: int = Field(..., ge=0)  # merged sums can exceed 100

    @property
    def kind(self) -> ActivityType:
        return ActivityType.from_label(self.activity_type)

    def __str__(self) -> str:
        return f"{self.activity_type:<16}({self.confidence:>3}%)"


class ActivityObservation(BaseModel):
    timestamp: datetime
    activities: List[Activity] = []

    @field_validator("timestamp")
    @classmethod
    def _require_offset(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("timestamp must carry a UTC offset")
        return value


class LocationRecord(BaseModel):
    timestamp: datetime
    latitude: float  # degrees; exports can hold values outside [-90, 90]
    longitude: float  # degrees
    accuracy: Optional[int] = None  # GPS accuracy in meters
    altitude: Optional[int] = None  # meters
    activities: List[ActivityObservation] = []

    @field_validator("timestamp")
    @classmethod
    def _require_offset(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("timestamp must carry a UTC offset")
        return value
