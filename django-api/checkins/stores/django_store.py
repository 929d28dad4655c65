"""Django ORM implementation of the venue and check-in stores."""

import logging

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, IntegrityError, transaction

from checkins import models
from checkins.domain import (
    CheckinEvidence,
    CheckinId,
    CheckinRecord,
    Coordinates,
    Venue,
    VenueId,
    VenueStatus,
)
from checkins.domain.errors import StorageUnavailableError
from checkins.stores.interfaces import CheckinDraft, CheckinStore, VenueStore

logger = logging.getLogger(__name__)


def venue_cache_key(venue_id: VenueId | str) -> str:
    return f"venues:{venue_id}"


def to_venue(row: models.Venue) -> Venue:
    location = None
    if row.latitude is not None and row.longitude is not None:
        location = Coordinates(latitude=row.latitude, longitude=row.longitude)
    return Venue(
        id=VenueId(row.id),
        name=row.name,
        location=location,
        status=VenueStatus(row.status),
        code_secret=row.code_secret,
    )


def to_checkin(row: models.Checkin) -> CheckinRecord:
    return CheckinRecord(
        id=CheckinId(row.id),
        venue_id=VenueId(row.venue_id),
        user_id=row.user_id,
        gps_score=row.gps_score,
        qr_score=row.qr_score,
        receipt_score=row.receipt_score,
        total_score=row.total_score,
        passed=row.passed,
        verified_at=row.verified_at,
        evidence=CheckinEvidence(
            gps_distance_meters=row.gps_distance_meters,
            user_latitude=row.user_latitude,
            user_longitude=row.user_longitude,
            qr_verified=row.qr_verified,
            receipt_verified=row.receipt_verified,
        ),
    )


def draft_fields(draft: CheckinDraft) -> dict:
    return {
        "gps_score": draft.scores.gps,
        "qr_score": draft.scores.qr,
        "receipt_score": draft.scores.receipt,
        "total_score": draft.total_score,
        "passed": draft.passed,
        "verified_at": draft.verified_at,
        "gps_distance_meters": draft.evidence.gps_distance_meters,
        "user_latitude": draft.evidence.user_latitude,
        "user_longitude": draft.evidence.user_longitude,
        "qr_verified": draft.evidence.qr_verified,
        "receipt_verified": draft.evidence.receipt_verified,
    }


class DjangoVenueStore(VenueStore):
    """Venue lookups through the ORM, cached per venue."""

    def get_venue(self, venue_id: VenueId) -> Venue | None:
        key = venue_cache_key(venue_id)
        venue = cache.get(key)
        if venue is not None:
            return venue

        try:
            row = models.Venue.objects.filter(pk=venue_id.value).first()
        except DatabaseError as exc:
            logger.exception("Venue lookup failed for %s", venue_id)
            raise StorageUnavailableError() from exc

        if row is None:
            return None
        venue = to_venue(row)
        cache.set(key, venue, settings.CHECKIN_VENUE_CACHE_TTL)
        return venue


class DjangoCheckinStore(CheckinStore):
    """PostgreSQL-backed check-in store using Django ORM.

    Exactly-once semantics come from the (venue, user) unique constraint;
    no application-level locks are taken.
    """

    def get_checkin(self, venue_id: VenueId, user_id: int) -> CheckinRecord | None:
        try:
            row = models.Checkin.objects.filter(venue_id=venue_id.value, user_id=user_id).first()
        except DatabaseError as exc:
            logger.exception("Check-in lookup failed for venue %s", venue_id)
            raise StorageUnavailableError() from exc
        return to_checkin(row) if row is not None else None

    def insert_if_absent(self, draft: CheckinDraft) -> tuple[CheckinRecord, bool]:
        try:
            # Savepoint, so a conflict does not poison an outer transaction.
            with transaction.atomic():
                row = models.Checkin.objects.create(
                    venue_id=draft.venue_id.value,
                    user_id=draft.user_id,
                    **draft_fields(draft),
                )
        except IntegrityError:
            logger.info("Check-in insert lost a race for venue %s", draft.venue_id)
            winner = self.get_checkin(draft.venue_id, draft.user_id)
            if winner is None:
                # The conflict was not the (venue, user) constraint.
                logger.error("Check-in insert rejected for venue %s", draft.venue_id)
                raise StorageUnavailableError()
            return winner, False
        except DatabaseError as exc:
            logger.exception("Check-in insert failed for venue %s", draft.venue_id)
            raise StorageUnavailableError() from exc
        return to_checkin(row), True

    def supersede_failed(self, draft: CheckinDraft) -> tuple[CheckinRecord, bool]:
        try:
            with transaction.atomic():
                updated = models.Checkin.objects.filter(
                    venue_id=draft.venue_id.value,
                    user_id=draft.user_id,
                    passed=False,
                ).update(**draft_fields(draft))
        except DatabaseError as exc:
            logger.exception("Check-in update failed for venue %s", draft.venue_id)
            raise StorageUnavailableError() from exc

        record = self.get_checkin(draft.venue_id, draft.user_id)
        if record is None:
            logger.error("Check-in for venue %s vanished during update", draft.venue_id)
            raise StorageUnavailableError()
        return record, updated == 1
