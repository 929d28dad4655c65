"""Unit tests for CheckinLedger against an in-memory store.

Run with: pytest tests/test_ledger.py -v
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest

from checkins.domain import CheckinEvidence, ComponentScores
from checkins.services.ledger import CheckinLedger
from checkins.signals import checkin_passed
from conftest import InMemoryCheckinStore

USER_ID = 7
NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


class BarrierStore(InMemoryCheckinStore):
    """Holds every reader until all racers have read, so all see no row."""

    def __init__(self, parties: int) -> None:
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)

    def get_checkin(self, venue_id, user_id):
        record = super().get_checkin(venue_id, user_id)
        self.barrier.wait()
        return record


class StaleReadStore(InMemoryCheckinStore):
    """Reports no row on every read, like a reader that lost a race."""

    def get_checkin(self, venue_id, user_id):
        return None


@pytest.fixture
def ledger(checkin_store) -> CheckinLedger:
    return CheckinLedger(checkin_store)


class TestRecordAttempt:
    def test_first_attempt_inserts(self, ledger, checkin_store, venue):
        record = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)

        assert record.total_score == 80
        assert record.passed
        assert record.verified_at == NOW
        assert list(checkin_store.rows.values()) == [record]

    def test_evidence_is_stored(self, ledger, venue):
        evidence = CheckinEvidence(gps_distance_meters=42, qr_verified=True)
        record = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40), NOW, evidence)
        assert record.evidence == evidence

    def test_passed_record_is_returned_unchanged(self, ledger, venue):
        first = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)
        second = ledger.record_attempt(
            USER_ID, venue.id, ComponentScores(gps=40, qr=40, receipt=20), NOW + timedelta(hours=1)
        )
        assert second == first
        assert second.total_score == 80

    def test_passed_record_is_never_lowered(self, ledger, venue):
        first = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)
        second = ledger.record_attempt(USER_ID, venue.id, ComponentScores(), NOW)
        assert second == first
        assert second.passed

    def test_failed_record_is_superseded(self, ledger, checkin_store, venue):
        failed = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40), NOW)
        assert not failed.passed

        later = NOW + timedelta(minutes=5)
        passed = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), later)

        assert passed.passed
        assert passed.id == failed.id
        assert passed.verified_at == later
        assert len(checkin_store.rows) == 1

    def test_failed_record_can_fail_again(self, ledger, venue):
        ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40), NOW)
        again = ledger.record_attempt(USER_ID, venue.id, ComponentScores(qr=40, receipt=10), NOW)
        assert again.total_score == 50
        assert not again.passed

    def test_users_are_independent(self, ledger, checkin_store, venue):
        ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)
        other = ledger.record_attempt(USER_ID + 1, venue.id, ComponentScores(qr=40), NOW)
        assert not other.passed
        assert len(checkin_store.rows) == 2


class TestRaces:
    def test_lost_insert_returns_winner(self, venue):
        ledger = CheckinLedger(StaleReadStore())
        winner = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40), NOW)
        loser = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)
        assert loser == winner
        assert not loser.passed

    def test_concurrent_attempts_converge(self, venue):
        store = BarrierStore(parties=2)
        ledger = CheckinLedger(store)
        payloads = [ComponentScores(gps=40, qr=40), ComponentScores(qr=40, receipt=20)]

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(
                pool.map(lambda s: ledger.record_attempt(USER_ID, venue.id, s, NOW), payloads)
            )

        assert len(store.rows) == 1
        assert results[0] == results[1]
        assert results[0] == next(iter(store.rows.values()))


class TestPassedSignal:
    def test_sent_once_on_first_pass(self, ledger, venue, passed_events):
        record = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)
        ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)
        assert passed_events == [record]

    def test_not_sent_for_failed_attempt(self, ledger, venue, passed_events):
        ledger.record_attempt(USER_ID, venue.id, ComponentScores(qr=40), NOW)
        assert passed_events == []

    def test_sent_when_failed_record_is_upgraded(self, ledger, venue, passed_events):
        ledger.record_attempt(USER_ID, venue.id, ComponentScores(qr=40), NOW)
        upgraded = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)
        assert passed_events == [upgraded]

    def test_not_sent_for_race_loser(self, venue, passed_events):
        ledger = CheckinLedger(StaleReadStore())
        ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)
        ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)
        assert len(passed_events) == 1

    def test_failing_receiver_does_not_lose_the_pass(
        self, ledger, checkin_store, venue, passed_events, caplog
    ):
        def broken_receiver(sender, record, **kwargs):
            raise RuntimeError("reward service down")

        checkin_passed.connect(broken_receiver, weak=False)
        try:
            record = ledger.record_attempt(USER_ID, venue.id, ComponentScores(gps=40, qr=40), NOW)
        finally:
            checkin_passed.disconnect(broken_receiver)

        assert record.passed
        assert list(checkin_store.rows.values()) == [record]
        assert passed_events == [record]
        assert "reward service down" in caplog.text
