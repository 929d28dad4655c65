"""Check-in ledger - the only stateful part of verification.

Persists one decision per (user, venue):
- no record yet: insert atomically; a lost race returns the winner's row
- passed record: returned unchanged, never recomputed
- failed record: superseded by the new attempt until the first pass
"""

import logging
from datetime import datetime

from checkins.domain import CheckinEvidence, CheckinRecord, ComponentScores, VenueId
from checkins.domain.scoring import aggregate
from checkins.signals import checkin_passed
from checkins.stores.interfaces import CheckinDraft, CheckinStore

logger = logging.getLogger(__name__)


class CheckinLedger:
    """Exactly-once persistence of check-in outcomes."""

    def __init__(self, store: CheckinStore) -> None:
        self._store = store

    def get(self, venue_id: VenueId, user_id: int) -> CheckinRecord | None:
        return self._store.get_checkin(venue_id, user_id)

    def record_attempt(
        self,
        user_id: int,
        venue_id: VenueId,
        scores: ComponentScores,
        verified_at: datetime,
        evidence: CheckinEvidence | None = None,
    ) -> CheckinRecord:
        """Persist an attempt and return the record every caller should see.

        Raises:
            StorageUnavailableError: If the store fails. Retrying is safe.
        """
        result = aggregate(scores)
        draft = CheckinDraft(
            venue_id=venue_id,
            user_id=user_id,
            scores=scores,
            total_score=result.total_score,
            passed=result.passed,
            verified_at=verified_at,
            evidence=evidence or CheckinEvidence(),
        )

        existing = self._store.get_checkin(venue_id, user_id)
        if existing is None:
            record, written = self._store.insert_if_absent(draft)
        elif existing.passed:
            logger.info("Check-in %s already passed; keeping it", existing.id)
            return existing
        else:
            record, written = self._store.supersede_failed(draft)

        if written:
            logger.info(
                "Recorded check-in %s for venue %s: total=%s passed=%s",
                record.id,
                venue_id,
                record.total_score,
                record.passed,
            )
            if record.passed:
                self._announce_pass(record)
        return record

    def _announce_pass(self, record: CheckinRecord) -> None:
        # The row is already committed as passed; receiver failures are logged,
        # not raised.
        responses = checkin_passed.send_robust(sender=self.__class__, record=record)
        for receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    "checkin_passed receiver %r failed for check-in %s: %r",
                    receiver,
                    record.id,
                    response,
                    exc_info=response,
                )
