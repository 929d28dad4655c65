"""Serializers for request input and domain model responses."""

from rest_framework import serializers

from checkins.domain import Coordinates
from checkins.domain.value_objects import GPS_WEIGHT, QR_WEIGHT, RECEIPT_WEIGHT


class LocationInputSerializer(serializers.Serializer):
    """Optional device fix; both coordinates or neither."""

    latitude = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    longitude = serializers.FloatField(
        required=False, allow_null=True, min_value=-180, max_value=180
    )

    def validate(self, attrs):
        latitude = attrs.get("latitude")
        longitude = attrs.get("longitude")
        if (latitude is None) != (longitude is None):
            raise serializers.ValidationError("latitude and longitude must be sent together")
        return attrs

    def to_coordinates(self) -> Coordinates | None:
        latitude = self.validated_data.get("latitude")
        if latitude is None:
            return None
        return Coordinates(latitude=latitude, longitude=self.validated_data["longitude"])


class CodeInputSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32, trim_whitespace=True)


class ReceiptInputSerializer(serializers.Serializer):
    receipt = serializers.DictField()


class CommitInputSerializer(LocationInputSerializer):
    code = serializers.CharField(
        max_length=32, required=False, allow_blank=True, allow_null=True, trim_whitespace=True
    )
    receipt = serializers.DictField(required=False, allow_null=True)


class CheckinSerializer(serializers.Serializer):
    """Serializer for the CheckinRecord domain model."""

    id = serializers.CharField(source="id.value")
    venue_id = serializers.CharField(source="venue_id.value")
    gps_score = serializers.IntegerField()
    qr_score = serializers.IntegerField()
    receipt_score = serializers.IntegerField()
    total_score = serializers.IntegerField()
    passed = serializers.BooleanField()
    verified_at = serializers.DateTimeField()


class GeoCheckSerializer(serializers.Serializer):
    within_range = serializers.BooleanField()
    score = serializers.IntegerField()
    max_score = serializers.SerializerMethodField()
    distance_meters = serializers.SerializerMethodField()
    accuracy = serializers.CharField()

    def get_max_score(self, obj) -> int:
        return GPS_WEIGHT

    def get_distance_meters(self, obj) -> int | None:
        if obj.distance_meters is None:
            return None
        return round(obj.distance_meters)


class CodeCheckSerializer(serializers.Serializer):
    valid = serializers.BooleanField(source="matched")
    score = serializers.IntegerField()
    max_score = serializers.SerializerMethodField()
    remaining_seconds = serializers.IntegerField()
    expired = serializers.BooleanField()
    message = serializers.SerializerMethodField()

    def get_max_score(self, obj) -> int:
        return QR_WEIGHT

    def get_message(self, obj) -> str:
        if obj.matched:
            return "Code verified"
        if obj.expired:
            return "This code has expired; scan the code currently on screen"
        return "Code does not match"


class DisplayCodeSerializer(serializers.Serializer):
    code = serializers.CharField()
    refresh_in = serializers.IntegerField()
    valid_until = serializers.DateTimeField()


def receipt_payload(score: int) -> dict:
    return {"score": score, "max_score": RECEIPT_WEIGHT, "verified": score > 0}
