"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Not found is `None`;
a backend failure raises StorageUnavailableError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from checkins.domain import CheckinEvidence, CheckinRecord, ComponentScores, Venue, VenueId


@dataclass(frozen=True)
class CheckinDraft:
    """Everything needed to write one attempt; ids and totals are derived."""

    venue_id: VenueId
    user_id: int
    scores: ComponentScores
    total_score: int
    passed: bool
    verified_at: datetime
    evidence: CheckinEvidence = CheckinEvidence()


class VenueStore(ABC):
    """Interface for venue lookups."""

    @abstractmethod
    def get_venue(self, venue_id: VenueId) -> Venue | None:
        """Return a venue by ID, or None if not found."""
        ...


class CheckinStore(ABC):
    """Interface for check-in persistence operations."""

    @abstractmethod
    def get_checkin(self, venue_id: VenueId, user_id: int) -> CheckinRecord | None:
        """Return the check-in for (venue, user), or None if not found."""
        ...

    @abstractmethod
    def insert_if_absent(self, draft: CheckinDraft) -> tuple[CheckinRecord, bool]:
        """Atomically insert a check-in unless one exists for (venue, user).

        Returns the stored record and whether this call created it. On a
        uniqueness conflict the winning record is returned with False.
        """
        ...

    @abstractmethod
    def supersede_failed(self, draft: CheckinDraft) -> tuple[CheckinRecord, bool]:
        """Overwrite the (venue, user) check-in only while it is not passed.

        Returns the stored record and whether this call updated it.
        """
        ...
