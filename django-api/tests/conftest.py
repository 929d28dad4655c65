"""Pytest configuration and shared fixtures."""

import threading
import uuid
from dataclasses import replace

import pytest
from rest_framework.test import APIClient

from checkins.domain import CheckinId, CheckinRecord, Coordinates, Venue, VenueId, VenueStatus
from checkins.domain.codes import CodeRotationService
from checkins.services.checkin_service import CheckinService
from checkins.services.ledger import CheckinLedger
from checkins.services.receipts import ReceiptScorer
from checkins.signals import checkin_passed
from checkins.stores.interfaces import CheckinDraft, CheckinStore, VenueStore

SEOUL = Coordinates(latitude=37.5665, longitude=126.9780)
METERS_PER_DEGREE_LATITUDE = 111_194.93


def north_of(origin: Coordinates, meters: float) -> Coordinates:
    return Coordinates(
        latitude=origin.latitude + meters / METERS_PER_DEGREE_LATITUDE,
        longitude=origin.longitude,
    )


def record_from_draft(draft: CheckinDraft, checkin_id: CheckinId) -> CheckinRecord:
    return CheckinRecord(
        id=checkin_id,
        venue_id=draft.venue_id,
        user_id=draft.user_id,
        gps_score=draft.scores.gps,
        qr_score=draft.scores.qr,
        receipt_score=draft.scores.receipt,
        total_score=draft.total_score,
        passed=draft.passed,
        verified_at=draft.verified_at,
        evidence=draft.evidence,
    )


class InMemoryVenueStore(VenueStore):
    def __init__(self, *venues: Venue) -> None:
        self.venues = {venue.id: venue for venue in venues}
        self.lookups = 0

    def get_venue(self, venue_id: VenueId) -> Venue | None:
        self.lookups += 1
        return self.venues.get(venue_id)


class InMemoryCheckinStore(CheckinStore):
    """Dict-backed store; the lock plays the part of the unique constraint."""

    def __init__(self) -> None:
        self.rows: dict[tuple[VenueId, int], CheckinRecord] = {}
        self.reads = 0
        self._lock = threading.Lock()

    def get_checkin(self, venue_id: VenueId, user_id: int) -> CheckinRecord | None:
        self.reads += 1
        return self.rows.get((venue_id, user_id))

    def insert_if_absent(self, draft: CheckinDraft) -> tuple[CheckinRecord, bool]:
        key = (draft.venue_id, draft.user_id)
        with self._lock:
            if key in self.rows:
                return self.rows[key], False
            record = record_from_draft(draft, CheckinId(uuid.uuid4()))
            self.rows[key] = record
            return record, True

    def supersede_failed(self, draft: CheckinDraft) -> tuple[CheckinRecord, bool]:
        key = (draft.venue_id, draft.user_id)
        with self._lock:
            existing = self.rows[key]
            if existing.passed:
                return existing, False
            record = record_from_draft(draft, existing.id)
            self.rows[key] = record
            return record, True


class FixedReceiptScorer(ReceiptScorer):
    def __init__(self, result: int = 20) -> None:
        self.result = result
        self.calls = 0

    def score(self, evidence, venue) -> int:
        self.calls += 1
        return self.result


class FakeClock:
    def __init__(self, now: float = 1_700_000_010.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_venue(status: VenueStatus = VenueStatus.CONFIRMED, location: Coordinates | None = SEOUL) -> Venue:
    return Venue(
        id=VenueId(uuid.uuid4()),
        name="Seongsu Popup",
        location=location,
        status=status,
        code_secret="test-secret",
    )


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def passed_events():
    """Collect records sent through the checkin_passed signal."""
    received = []

    def handler(sender, record, **kwargs):
        received.append(record)

    checkin_passed.connect(handler, weak=False)
    yield received
    checkin_passed.disconnect(handler)


@pytest.fixture
def venue() -> Venue:
    return make_venue()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codes() -> CodeRotationService:
    return CodeRotationService()


@pytest.fixture
def checkin_store() -> InMemoryCheckinStore:
    return InMemoryCheckinStore()


@pytest.fixture
def receipt_scorer() -> FixedReceiptScorer:
    return FixedReceiptScorer()


@pytest.fixture
def venue_store(venue) -> InMemoryVenueStore:
    closed = replace(make_venue(status=VenueStatus.FUNDING), name="Not Yet Open")
    return InMemoryVenueStore(venue, closed)


@pytest.fixture
def service(venue_store, checkin_store, codes, receipt_scorer, clock) -> CheckinService:
    return CheckinService(
        venues=venue_store,
        ledger=CheckinLedger(checkin_store),
        codes=codes,
        receipts=receipt_scorer,
        clock=clock,
    )
