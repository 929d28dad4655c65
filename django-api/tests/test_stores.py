"""Integration tests for the Django ORM stores.

Run with: pytest tests/test_stores.py -v
"""

import uuid
from datetime import UTC, datetime

import pytest
from django.db import IntegrityError, OperationalError, transaction

from checkins import models
from checkins.domain import CheckinEvidence, ComponentScores, VenueId, VenueStatus
from checkins.domain.errors import StorageUnavailableError
from checkins.services.ledger import CheckinLedger
from checkins.stores.django_store import DjangoCheckinStore, DjangoVenueStore
from checkins.stores.interfaces import CheckinDraft

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(username="visitor", password="pw")


@pytest.fixture
def venue_row():
    return models.Venue.objects.create(
        name="Seongsu Popup",
        latitude=37.5665,
        longitude=126.9780,
        status=VenueStatus.CONFIRMED.value,
    )


def draft(venue_row, user, scores: ComponentScores, total: int, passed: bool) -> CheckinDraft:
    return CheckinDraft(
        venue_id=VenueId(venue_row.pk),
        user_id=user.pk,
        scores=scores,
        total_score=total,
        passed=passed,
        verified_at=NOW,
        evidence=CheckinEvidence(gps_distance_meters=12, user_latitude=37.5666, user_longitude=126.978),
    )


@pytest.mark.django_db
class TestDjangoVenueStore:
    def test_returns_domain_venue(self, venue_row):
        venue = DjangoVenueStore().get_venue(VenueId(venue_row.pk))
        assert venue.name == "Seongsu Popup"
        assert venue.status is VenueStatus.CONFIRMED
        assert venue.location.latitude == 37.5665
        assert len(venue.code_secret) == 64

    def test_unknown_venue_is_none(self):
        assert DjangoVenueStore().get_venue(VenueId(uuid.uuid4())) is None

    def test_venue_without_coordinates_has_no_location(self):
        row = models.Venue.objects.create(name="Unpublished")
        assert DjangoVenueStore().get_venue(VenueId(row.pk)).location is None


@pytest.mark.django_db
class TestDjangoCheckinStore:
    def test_insert_then_read(self, venue_row, user):
        store = DjangoCheckinStore()
        record, created = store.insert_if_absent(draft(venue_row, user, ComponentScores(40, 40, 0), 80, True))

        assert created
        assert store.get_checkin(VenueId(venue_row.pk), user.pk) == record
        assert record.evidence.gps_distance_meters == 12

    def test_conflicting_insert_returns_winner(self, venue_row, user):
        store = DjangoCheckinStore()
        winner, _ = store.insert_if_absent(draft(venue_row, user, ComponentScores(40, 0, 0), 40, False))
        loser, created = store.insert_if_absent(draft(venue_row, user, ComponentScores(40, 40, 0), 80, True))

        assert not created
        assert loser == winner
        assert models.Checkin.objects.count() == 1

    def test_supersede_failed_record(self, venue_row, user):
        store = DjangoCheckinStore()
        failed, _ = store.insert_if_absent(draft(venue_row, user, ComponentScores(40, 0, 0), 40, False))
        updated, written = store.supersede_failed(draft(venue_row, user, ComponentScores(40, 40, 0), 80, True))

        assert written
        assert updated.id == failed.id
        assert updated.passed

    def test_supersede_leaves_passed_record(self, venue_row, user):
        store = DjangoCheckinStore()
        passed, _ = store.insert_if_absent(draft(venue_row, user, ComponentScores(40, 40, 0), 80, True))
        after, written = store.supersede_failed(draft(venue_row, user, ComponentScores(0, 0, 0), 0, False))

        assert not written
        assert after == passed

    def test_database_error_is_storage_unavailable(self, venue_row, user, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("connection refused")

        monkeypatch.setattr(models.Checkin.objects, "filter", broken)
        with pytest.raises(StorageUnavailableError) as excinfo:
            DjangoCheckinStore().get_checkin(VenueId(venue_row.pk), user.pk)
        assert excinfo.value.retryable

    def test_unique_constraint_is_enforced(self, venue_row, user):
        models.Checkin.objects.create(venue=venue_row, user=user, verified_at=NOW)
        with pytest.raises(IntegrityError), transaction.atomic():
            models.Checkin.objects.create(venue=venue_row, user=user, verified_at=NOW)


@pytest.mark.django_db
class TestLedgerWithDjangoStore:
    def test_stale_reader_converges_on_winner(self, venue_row, user, monkeypatch):
        store = DjangoCheckinStore()
        ledger = CheckinLedger(store)
        venue_id = VenueId(venue_row.pk)
        winner = ledger.record_attempt(user.pk, venue_id, ComponentScores(gps=40, qr=40), NOW)

        # A second request that read before the winner committed.
        original = store.get_checkin
        calls = []

        def stale_once(venue_id, user_id):
            calls.append(venue_id)
            if len(calls) == 1:
                return None
            return original(venue_id, user_id)

        monkeypatch.setattr(store, "get_checkin", stale_once)

        loser = ledger.record_attempt(user.pk, venue_id, ComponentScores(qr=40, receipt=20), NOW)
        assert loser == winner
        assert models.Checkin.objects.get().total_score == 80

    def test_idempotent_commit(self, venue_row, user):
        ledger = CheckinLedger(DjangoCheckinStore())
        venue_id = VenueId(venue_row.pk)
        first = ledger.record_attempt(user.pk, venue_id, ComponentScores(gps=40, qr=40), NOW)
        second = ledger.record_attempt(user.pk, venue_id, ComponentScores(gps=40, qr=40, receipt=20), NOW)

        assert second == first
        assert models.Checkin.objects.get().receipt_score == 0
