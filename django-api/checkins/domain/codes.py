"""Rotating venue codes.

A venue screen shows a short numeric code that changes every window. The
code is an HMAC-SHA256 of the venue id and the current time bucket under
the venue's secret, truncated to a fixed number of digits (RFC 4226
dynamic truncation). Anything holding the secret can derive it, so the
screen needs no server round-trip and the server keeps no code table.

Verification accepts the current bucket and the one before it. Codes are
read by many users from the same screen, so they are never consumed;
one check-in per user is enforced by the ledger.
"""

import hashlib
import hmac
import math
from dataclasses import dataclass
from datetime import UTC, datetime

from checkins.domain.errors import MalformedCodeError
from checkins.domain.value_objects import QR_WEIGHT, VenueId


@dataclass(frozen=True)
class CodeCheck:
    """Outcome of checking a submitted code."""

    matched: bool
    score: int
    remaining_seconds: int
    expired: bool


@dataclass(frozen=True)
class DisplayCode:
    """What a venue screen shows for the current window."""

    code: str
    refresh_in: int
    valid_until: datetime


class CodeRotationService:
    """Stateless generator and validator for time-windowed venue codes."""

    def __init__(self, digits: int = 6, window_seconds: int = 30, stale_windows: int = 10) -> None:
        if digits < 4 or digits > 9:
            raise ValueError("digits must be between 4 and 9")
        if window_seconds < 1:
            raise ValueError("window_seconds must be positive")
        if stale_windows < 0:
            raise ValueError("stale_windows cannot be negative")
        self.digits = digits
        self.window_seconds = window_seconds
        self.stale_windows = stale_windows

    def bucket(self, now: float) -> int:
        return math.floor(now / self.window_seconds)

    def remaining_seconds(self, now: float) -> int:
        return self.window_seconds - (math.floor(now) % self.window_seconds)

    def code_for_bucket(self, venue_id: VenueId, secret: str, bucket: int) -> str:
        message = f"{venue_id}:{bucket}".encode()
        digest = hmac.new(secret.encode(), message, hashlib.sha256).digest()
        offset = digest[-1] & 0x0F
        binary = int.from_bytes(digest[offset : offset + 4], "big") & 0x7FFFFFFF
        return str(binary % 10**self.digits).zfill(self.digits)

    def current_code(self, venue_id: VenueId, secret: str, now: float) -> str:
        return self.code_for_bucket(venue_id, secret, self.bucket(now))

    def display(self, venue_id: VenueId, secret: str, now: float) -> DisplayCode:
        refresh_in = self.remaining_seconds(now)
        return DisplayCode(
            code=self.current_code(venue_id, secret, now),
            refresh_in=refresh_in,
            valid_until=datetime.fromtimestamp(math.floor(now) + refresh_in, tz=UTC),
        )

    def normalize(self, submitted: str) -> str:
        """Strip surrounding whitespace and check the code's shape.

        Raises:
            MalformedCodeError: If the code is not exactly `digits` ASCII digits.
        """
        code = submitted.strip() if isinstance(submitted, str) else ""
        if len(code) != self.digits or not (code.isascii() and code.isdigit()):
            raise MalformedCodeError(self.digits)
        return code

    def verify(self, submitted: str, venue_id: VenueId, secret: str, now: float) -> CodeCheck:
        """Check a submitted code against the current and previous window.

        A well-formed code that only matches one of the `stale_windows`
        buckets before those is reported as expired instead of wrong.

        Raises:
            MalformedCodeError: If the code has the wrong shape.
        """
        code = self.normalize(submitted)
        current = self.bucket(now)
        remaining = self.remaining_seconds(now)

        if self._matches_any(code, venue_id, secret, range(current, current - 2, -1)):
            return CodeCheck(matched=True, score=QR_WEIGHT, remaining_seconds=remaining, expired=False)

        stale = range(current - 2, current - 2 - self.stale_windows, -1)
        expired = self._matches_any(code, venue_id, secret, stale)
        return CodeCheck(matched=False, score=0, remaining_seconds=remaining, expired=expired)

    def _matches_any(self, code: str, venue_id: VenueId, secret: str, buckets: range) -> bool:
        matched = False
        for bucket in buckets:
            expected = self.code_for_bucket(venue_id, secret, bucket)
            # Every bucket is compared; no early exit.
            matched |= hmac.compare_digest(code, expected)
        return matched
