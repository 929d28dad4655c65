from checkins.domain.models import CheckinEvidence, CheckinRecord, Venue
from checkins.domain.value_objects import (
    CheckinId,
    ComponentScores,
    Coordinates,
    VenueId,
    VenueStatus,
)

__all__ = [
    "CheckinEvidence",
    "CheckinRecord",
    "Venue",
    "CheckinId",
    "ComponentScores",
    "Coordinates",
    "VenueId",
    "VenueStatus",
]
