"""Check-in service - all verification orchestration lives here.

Services:
- Depend only on interfaces (stores, scorers)
- Validate venue preconditions and reject guests
- Score partial proofs without side effects
- Hand committed attempts to the ledger
"""

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from checkins.domain import (
    CheckinEvidence,
    CheckinRecord,
    ComponentScores,
    Coordinates,
    Venue,
    VenueId,
)
from checkins.domain.codes import CodeCheck, CodeRotationService, DisplayCode
from checkins.domain.errors import (
    AuthenticationRequiredError,
    ValidationFailedError,
    VenueNotFoundError,
    VenueNotOpenError,
)
from checkins.domain.geo import DEFAULT_MAX_RANGE_METERS, GeoCheck, round_coordinate, verify_location
from checkins.domain.scoring import (
    Aggregate,
    Summary,
    VerificationState,
    aggregate,
    summarize,
    verification_state,
)
from checkins.services.ledger import CheckinLedger
from checkins.services.receipts import ReceiptScorer, score_receipt
from checkins.stores.interfaces import VenueStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a commit: this attempt's checks plus the stored record."""

    record: CheckinRecord
    gps: GeoCheck | None
    qr: CodeCheck | None
    receipt_score: int | None
    summary: Summary


@dataclass(frozen=True)
class CheckinStatus:
    record: CheckinRecord | None
    state: VerificationState


class CheckinService:
    """Service for venue presence verification."""

    def __init__(
        self,
        venues: VenueStore,
        ledger: CheckinLedger,
        codes: CodeRotationService,
        receipts: ReceiptScorer,
        max_range_meters: float = DEFAULT_MAX_RANGE_METERS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._venues = venues
        self._ledger = ledger
        self._codes = codes
        self._receipts = receipts
        self._max_range_meters = max_range_meters
        self._clock = clock

    def display_code(self, venue_id: str) -> tuple[Venue, DisplayCode]:
        """Return the code a venue screen should show right now.

        Raises:
            ValidationFailedError: If the venue_id is not a valid UUID.
            VenueNotFoundError: If the venue does not exist.
        """
        venue = self._get_venue(venue_id)
        return venue, self._codes.display(venue.id, venue.code_secret, self._clock())

    def check_location(
        self, user_id: int | None, venue_id: str, location: Coordinates | None
    ) -> GeoCheck:
        """Score a location fix without recording anything."""
        venue = self._open_venue(user_id, venue_id)
        return verify_location(location, venue.location, self._max_range_meters)

    def check_code(self, user_id: int | None, venue_id: str, code: str) -> CodeCheck:
        """Score a venue code without recording anything.

        Raises:
            AuthenticationRequiredError: If the caller is a guest.
            MalformedCodeError: If the code has the wrong shape.
        """
        venue = self._open_venue(user_id, venue_id)
        return self._codes.verify(code, venue.id, venue.code_secret, self._clock())

    def check_receipt(
        self, user_id: int | None, venue_id: str, receipt: Mapping[str, Any] | None
    ) -> int:
        """Score receipt evidence without recording anything."""
        venue = self._open_venue(user_id, venue_id)
        return score_receipt(self._receipts, receipt, venue)

    def commit(
        self,
        user_id: int | None,
        venue_id: str,
        location: Coordinates | None = None,
        code: str | None = None,
        receipt: Mapping[str, Any] | None = None,
    ) -> CommitResult:
        """Score the supplied evidence, aggregate it and record the outcome.

        Components without evidence score zero. Committing again after a
        pass returns the stored record unchanged.

        Raises:
            AuthenticationRequiredError: If the caller is a guest.
            ValidationFailedError: If the venue_id is not a valid UUID.
            VenueNotFoundError: If the venue does not exist.
            VenueNotOpenError: If the venue is not confirmed or completed.
            MalformedCodeError: If a code is given with the wrong shape.
            StorageUnavailableError: If the ledger store fails.
        """
        venue = self._open_venue(user_id, venue_id)
        now = self._clock()

        gps = None
        if location is not None:
            gps = verify_location(location, venue.location, self._max_range_meters)
        qr = None
        if code:
            qr = self._codes.verify(code, venue.id, venue.code_secret, now)
        receipt_score = None
        if receipt:
            receipt_score = score_receipt(self._receipts, receipt, venue)

        scores = ComponentScores(
            gps=gps.score if gps else 0,
            qr=qr.score if qr else 0,
            receipt=receipt_score or 0,
        )
        evidence = CheckinEvidence(
            gps_distance_meters=(
                round(gps.distance_meters) if gps and gps.distance_meters is not None else None
            ),
            user_latitude=round_coordinate(location.latitude) if location else None,
            user_longitude=round_coordinate(location.longitude) if location else None,
            qr_verified=bool(qr and qr.matched),
            receipt_verified=bool(receipt_score),
        )

        record = self._ledger.record_attempt(
            user_id,
            venue.id,
            scores,
            verified_at=datetime.fromtimestamp(now, tz=UTC),
            evidence=evidence,
        )
        logger.info(
            "Commit for venue %s by user %s: attempt=%s stored=%s passed=%s",
            venue.id,
            user_id,
            aggregate(scores).total_score,
            record.total_score,
            record.passed,
        )
        stored = Aggregate(total_score=record.total_score, passed=record.passed)
        return CommitResult(
            record=record,
            gps=gps,
            qr=qr,
            receipt_score=receipt_score,
            summary=summarize(stored),
        )

    def status(self, user_id: int | None, venue_id: str) -> CheckinStatus:
        """Return the caller's check-in for a venue.

        Guests never have a check-in; storage is not consulted for them.
        """
        if user_id is None:
            return CheckinStatus(record=None, state=VerificationState.NOT_STARTED)
        venue = self._get_venue(venue_id)
        record = self._ledger.get(venue.id, user_id)
        return CheckinStatus(record=record, state=verification_state(record))

    def _get_venue(self, venue_id: str) -> Venue:
        try:
            parsed = VenueId.from_string(venue_id)
        except (TypeError, ValueError) as exc:
            raise ValidationFailedError("Invalid venue ID format") from exc

        venue = self._venues.get_venue(parsed)
        if venue is None:
            raise VenueNotFoundError()
        return venue

    def _open_venue(self, user_id: int | None, venue_id: str) -> Venue:
        if user_id is None:
            raise AuthenticationRequiredError()
        venue = self._get_venue(venue_id)
        if not venue.status.accepts_verification:
            raise VenueNotOpenError()
        return venue
