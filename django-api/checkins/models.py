"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import secrets
import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q

from checkins.domain.value_objects import GPS_WEIGHT, QR_WEIGHT, RECEIPT_WEIGHT, VenueStatus


def generate_code_secret() -> str:
    return secrets.token_hex(32)


class Venue(models.Model):
    """Persistence model for venues (popup stores)."""

    STATUS_CHOICES = [(status.value, status.name.title()) for status in VenueStatus]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    latitude = models.FloatField(blank=True, null=True)
    longitude = models.FloatField(blank=True, null=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=VenueStatus.DRAFT.value
    )
    code_secret = models.CharField(max_length=128, default=generate_code_secret, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="venue_status_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class Checkin(models.Model):
    """Persistence model for check-in records. One row per (venue, user)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name="checkins")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="checkins"
    )
    gps_score = models.PositiveSmallIntegerField(default=0)
    qr_score = models.PositiveSmallIntegerField(default=0)
    receipt_score = models.PositiveSmallIntegerField(default=0)
    total_score = models.PositiveSmallIntegerField(default=0)
    passed = models.BooleanField(default=False)
    gps_distance_meters = models.PositiveIntegerField(blank=True, null=True)
    user_latitude = models.FloatField(blank=True, null=True)
    user_longitude = models.FloatField(blank=True, null=True)
    qr_verified = models.BooleanField(default=False)
    receipt_verified = models.BooleanField(default=False)
    verified_at = models.DateTimeField()

    class Meta:
        ordering = ["-verified_at"]
        constraints = [
            models.UniqueConstraint(fields=["venue", "user"], name="unique_venue_checkin"),
            models.CheckConstraint(
                condition=Q(gps_score__lte=GPS_WEIGHT), name="checkin_gps_score_range"
            ),
            models.CheckConstraint(
                condition=Q(qr_score__lte=QR_WEIGHT), name="checkin_qr_score_range"
            ),
            models.CheckConstraint(
                condition=Q(receipt_score__lte=RECEIPT_WEIGHT),
                name="checkin_receipt_score_range",
            ),
            models.CheckConstraint(
                condition=Q(total_score__lte=GPS_WEIGHT + QR_WEIGHT + RECEIPT_WEIGHT),
                name="checkin_total_score_range",
            ),
        ]
        indexes = [
            models.Index(fields=["passed"], name="checkin_passed_idx"),
            models.Index(fields=["-verified_at"], name="checkin_verified_at_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.venue.name} - {self.user_id} ({self.total_score})"
