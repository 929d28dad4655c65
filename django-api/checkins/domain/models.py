"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in checkins/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime

from checkins.domain.value_objects import CheckinId, Coordinates, VenueId, VenueStatus


@dataclass(frozen=True)
class Venue:
    """Domain representation of a Venue (popup store)."""

    id: VenueId
    name: str
    location: Coordinates | None
    status: VenueStatus
    code_secret: str


@dataclass(frozen=True)
class CheckinEvidence:
    """Supporting detail stored next to the scores of an attempt."""

    gps_distance_meters: int | None = None
    user_latitude: float | None = None
    user_longitude: float | None = None
    qr_verified: bool = False
    receipt_verified: bool = False


@dataclass(frozen=True)
class CheckinRecord:
    """Domain representation of a committed check-in."""

    id: CheckinId
    venue_id: VenueId
    user_id: int
    gps_score: int
    qr_score: int
    receipt_score: int
    total_score: int
    passed: bool
    verified_at: datetime
    evidence: CheckinEvidence = CheckinEvidence()
