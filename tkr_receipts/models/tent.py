"""Tent layout and booking models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TentStatus(str, Enum):
    """Tent occupancy status."""

    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"


class GridPosition(BaseModel):
    """Cell of the track-side layout grid."""

    row: int
    col: int


class Tent(BaseModel):
    """A tent on the track perimeter."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    status: TentStatus = TentStatus.AVAILABLE
    booked_by: Optional[str] = None
    hours: Optional[int] = None
    position: Optional[GridPosition] = None


class BookingStatus(str, Enum):
    """Booking status."""

    RESERVED = "reserved"
    OCCUPIED = "occupied"


class Booking(BaseModel):
    """A tent booking."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    booking_id: str
    tent_id: str
    contact: str
    date: str
    duration: int  # hours
    status: BookingStatus
    created_at: datetime
    notes: Optional[str] = None
