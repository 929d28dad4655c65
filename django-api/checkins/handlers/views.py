"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import hmac
import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import Throttled
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView, exception_handler

from checkins.domain.codes import CodeRotationService
from checkins.domain.errors import AuthenticationRequiredError, DomainError, ErrorCode
from checkins.domain.scoring import PASS_THRESHOLD
from checkins.domain.value_objects import GPS_WEIGHT, QR_WEIGHT, RECEIPT_WEIGHT
from checkins.handlers.serializers import (
    CheckinSerializer,
    CodeCheckSerializer,
    CodeInputSerializer,
    CommitInputSerializer,
    DisplayCodeSerializer,
    GeoCheckSerializer,
    LocationInputSerializer,
    ReceiptInputSerializer,
    receipt_payload,
)
from checkins.services.checkin_service import CheckinService
from checkins.services.ledger import CheckinLedger
from checkins.services.receipts import get_receipt_scorer
from checkins.stores.django_store import DjangoCheckinStore, DjangoVenueStore

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.AUTHENTICATION_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.VENUE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.VENUE_NOT_OPEN: status.HTTP_409_CONFLICT,
    ErrorCode.MALFORMED_CODE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.STORAGE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_checkin_service() -> CheckinService:
    return CheckinService(
        venues=DjangoVenueStore(),
        ledger=CheckinLedger(DjangoCheckinStore()),
        codes=CodeRotationService(
            digits=settings.CHECKIN_CODE_DIGITS,
            window_seconds=settings.CHECKIN_CODE_WINDOW_SECONDS,
            stale_windows=settings.CHECKIN_CODE_STALE_WINDOWS,
        ),
        receipts=get_receipt_scorer(),
        max_range_meters=settings.CHECKIN_MAX_RANGE_METERS,
    )


def caller_id(request: Request) -> int | None:
    """Return the authenticated user's id, or None for guests."""
    user = request.user
    if user is None or not user.is_authenticated:
        return None
    return user.pk


def error_response(error: DomainError) -> Response:
    if error.code is ErrorCode.STORAGE_UNAVAILABLE:
        logger.warning("Storage unavailable while handling request")
    return Response(
        {
            "error": {
                "code": error.code.value,
                "message": error.message,
                "retryable": error.retryable,
            }
        },
        status=ERROR_STATUS[error.code],
    )


def validation_response(errors) -> Response:
    return Response(
        {
            "error": {
                "code": ErrorCode.VALIDATION_FAILED.value,
                "message": "Invalid request",
                "retryable": False,
                "fields": errors,
            }
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def api_exception_handler(exc, context):
    """DRF exception handler that puts throttling in the error envelope."""
    response = exception_handler(exc, context)
    if isinstance(exc, Throttled) and response is not None:
        logger.info("Throttled %s %s", context["request"].method, context["request"].path)
        response.data = {
            "error": {
                "code": ErrorCode.RATE_LIMITED.value,
                "message": "Too many requests, try again shortly",
                "retryable": True,
            }
        }
    return response


def has_kiosk_key(request: Request) -> bool:
    expected = settings.CHECKIN_KIOSK_API_KEY
    if not expected:
        return False
    provided = request.headers.get("X-Kiosk-Api-Key", "")
    return hmac.compare_digest(provided.encode(), expected.encode())


class VenueCodeView(APIView):
    """Handler for GET /api/venues/{venue_id}/code (venue screen)"""

    throttle_scope = "venue-code"

    def get(self, request: Request, venue_id: str) -> Response:
        if not has_kiosk_key(request) and caller_id(request) is None:
            return error_response(AuthenticationRequiredError())
        try:
            venue, display = get_checkin_service().display_code(venue_id)
        except DomainError as exc:
            return error_response(exc)

        data = DisplayCodeSerializer(display).data
        data.update({"venue_id": str(venue.id), "venue_name": venue.name})
        return Response(data)


class CodeVerifyView(APIView):
    """Handler for POST /api/venues/{venue_id}/code/verify"""

    throttle_scope = "checkin-verify"

    def post(self, request: Request, venue_id: str) -> Response:
        user_id = caller_id(request)
        if user_id is None:
            return error_response(AuthenticationRequiredError())

        serializer = CodeInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer.errors)
        try:
            result = get_checkin_service().check_code(
                user_id, venue_id, serializer.validated_data["code"]
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(CodeCheckSerializer(result).data)


class LocationVerifyView(APIView):
    """Handler for POST /api/venues/{venue_id}/location/verify"""

    throttle_scope = "checkin-verify"

    def post(self, request: Request, venue_id: str) -> Response:
        serializer = LocationInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer.errors)
        try:
            result = get_checkin_service().check_location(
                caller_id(request), venue_id, serializer.to_coordinates()
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(GeoCheckSerializer(result).data)


class ReceiptVerifyView(APIView):
    """Handler for POST /api/venues/{venue_id}/receipt/verify"""

    throttle_scope = "checkin-verify"

    def post(self, request: Request, venue_id: str) -> Response:
        serializer = ReceiptInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer.errors)
        try:
            score = get_checkin_service().check_receipt(
                caller_id(request), venue_id, serializer.validated_data["receipt"]
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(receipt_payload(score))


class CheckinView(APIView):
    """Handler for GET and POST /api/venues/{venue_id}/checkin"""

    @property
    def throttle_scope(self) -> str:
        return "checkin-commit" if self.request.method == "POST" else "checkin-status"

    def get(self, request: Request, venue_id: str) -> Response:
        try:
            result = get_checkin_service().status(caller_id(request), venue_id)
        except DomainError as exc:
            return error_response(exc)

        data = {"has_checked_in": result.record is not None, "state": result.state.value}
        if result.record is not None:
            data["checkin"] = CheckinSerializer(result.record).data
        return Response(data)

    def post(self, request: Request, venue_id: str) -> Response:
        serializer = CommitInputSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_response(serializer.errors)
        try:
            result = get_checkin_service().commit(
                caller_id(request),
                venue_id,
                location=serializer.to_coordinates(),
                code=serializer.validated_data.get("code"),
                receipt=serializer.validated_data.get("receipt"),
            )
        except DomainError as exc:
            return error_response(exc)

        record = result.record
        return Response(
            {
                "checkin": CheckinSerializer(record).data,
                "verification": {
                    "gps": GeoCheckSerializer(result.gps).data if result.gps else None,
                    "qr": CodeCheckSerializer(result.qr).data if result.qr else None,
                    "receipt": (
                        receipt_payload(result.receipt_score)
                        if result.receipt_score is not None
                        else None
                    ),
                    "total": {
                        "score": record.total_score,
                        "max_score": GPS_WEIGHT + QR_WEIGHT + RECEIPT_WEIGHT,
                        "passed": record.passed,
                        "threshold": PASS_THRESHOLD,
                    },
                },
                "summary": {"badge": result.summary.badge, "tier": result.summary.tier},
            }
        )
