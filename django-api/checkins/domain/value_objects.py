"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from enum import Enum
from typing import Self
from uuid import UUID

GPS_WEIGHT = 40
QR_WEIGHT = 40
RECEIPT_WEIGHT = 20


@dataclass(frozen=True)
class VenueId:
    """Unique identifier for a Venue."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class CheckinId:
    """Unique identifier for a CheckinRecord."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


class VenueStatus(Enum):
    """Operational lifecycle of a venue."""

    DRAFT = "draft"
    FUNDING = "funding"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def accepts_verification(self) -> bool:
        return self in (VenueStatus.CONFIRMED, VenueStatus.COMPLETED)


@dataclass(frozen=True)
class Coordinates:
    """A WGS-84 position in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError("Latitude must be between -90 and 90")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError("Longitude must be between -180 and 180")


@dataclass(frozen=True)
class ComponentScores:
    """Partial credit gathered so far for one (user, venue) pair.

    Components that were never attempted stay at zero.
    """

    gps: int = 0
    qr: int = 0
    receipt: int = 0

    def __post_init__(self) -> None:
        for name, value, ceiling in (
            ("gps", self.gps, GPS_WEIGHT),
            ("qr", self.qr, QR_WEIGHT),
            ("receipt", self.receipt, RECEIPT_WEIGHT),
        ):
            if not 0 <= value <= ceiling:
                raise ValueError(f"{name} score must be between 0 and {ceiling}")
