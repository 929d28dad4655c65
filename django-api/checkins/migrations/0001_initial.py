import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import checkins.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Venue",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("latitude", models.FloatField(blank=True, null=True)),
                ("longitude", models.FloatField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("funding", "Funding"),
                            ("confirmed", "Confirmed"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="draft",
                        max_length=20,
                    ),
                ),
                (
                    "code_secret",
                    models.CharField(
                        default=checkins.models.generate_code_secret, editable=False, max_length=128
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["status"], name="venue_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="Checkin",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("gps_score", models.PositiveSmallIntegerField(default=0)),
                ("qr_score", models.PositiveSmallIntegerField(default=0)),
                ("receipt_score", models.PositiveSmallIntegerField(default=0)),
                ("total_score", models.PositiveSmallIntegerField(default=0)),
                ("passed", models.BooleanField(default=False)),
                ("gps_distance_meters", models.PositiveIntegerField(blank=True, null=True)),
                ("user_latitude", models.FloatField(blank=True, null=True)),
                ("user_longitude", models.FloatField(blank=True, null=True)),
                ("qr_verified", models.BooleanField(default=False)),
                ("receipt_verified", models.BooleanField(default=False)),
                ("verified_at", models.DateTimeField()),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="checkins",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "venue",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="checkins",
                        to="checkins.venue",
                    ),
                ),
            ],
            options={
                "ordering": ["-verified_at"],
                "indexes": [
                    models.Index(fields=["passed"], name="checkin_passed_idx"),
                    models.Index(fields=["-verified_at"], name="checkin_verified_at_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("venue", "user"), name="unique_venue_checkin"),
                    models.CheckConstraint(
                        condition=models.Q(("gps_score__lte", 40)), name="checkin_gps_score_range"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("qr_score__lte", 40)), name="checkin_qr_score_range"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("receipt_score__lte", 20)),
                        name="checkin_receipt_score_range",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_score__lte", 100)),
                        name="checkin_total_score_range",
                    ),
                ],
            },
        ),
    ]
