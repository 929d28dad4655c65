"""Boundary to the external receipt scorer.

Only the score contract lives here; how a receipt is read and matched is
the scorer's business.
"""

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from django.conf import settings
from django.utils.module_loading import import_string

from checkins.domain import Venue
from checkins.domain.value_objects import RECEIPT_WEIGHT

logger = logging.getLogger(__name__)


class ReceiptUnscoreableError(Exception):
    """Raised by a scorer when the evidence cannot be evaluated."""


class ReceiptScorer(ABC):
    """Interface for receipt scoring collaborators."""

    @abstractmethod
    def score(self, evidence: Mapping[str, Any], venue: Venue) -> int:
        """Return a score in [0, RECEIPT_WEIGHT].

        Raises:
            ReceiptUnscoreableError: If the evidence cannot be evaluated.
        """
        ...


class NullReceiptScorer(ReceiptScorer):
    """Scorer used when no receipt backend is configured."""

    def score(self, evidence: Mapping[str, Any], venue: Venue) -> int:
        return 0


def score_receipt(scorer: ReceiptScorer, evidence: Mapping[str, Any] | None, venue: Venue) -> int:
    """Ask the scorer for credit, clamped to [0, RECEIPT_WEIGHT].

    Missing or unscoreable evidence scores zero.
    """
    if not evidence:
        return 0
    try:
        result = scorer.score(evidence, venue)
    except ReceiptUnscoreableError as exc:
        logger.warning("Receipt for venue %s could not be scored: %s", venue.id, exc)
        return 0
    if isinstance(result, bool) or not isinstance(result, (int, float)) or not math.isfinite(result):
        logger.warning("Receipt scorer returned %r for venue %s; scoring 0", result, venue.id)
        return 0
    return max(0, min(RECEIPT_WEIGHT, int(result)))


def get_receipt_scorer() -> ReceiptScorer:
    """Instantiate the scorer named by the CHECKIN_RECEIPT_SCORER setting."""
    return import_string(settings.CHECKIN_RECEIPT_SCORER)()
