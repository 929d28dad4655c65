from django.urls import path

from checkins.handlers import (
    CheckinView,
    CodeVerifyView,
    LocationVerifyView,
    ReceiptVerifyView,
    VenueCodeView,
)

urlpatterns = [
    path("venues/<str:venue_id>/code", VenueCodeView.as_view(), name="venue-code"),
    path("venues/<str:venue_id>/code/verify", CodeVerifyView.as_view(), name="code-verify"),
    path(
        "venues/<str:venue_id>/location/verify",
        LocationVerifyView.as_view(),
        name="location-verify",
    ),
    path(
        "venues/<str:venue_id>/receipt/verify",
        ReceiptVerifyView.as_view(),
        name="receipt-verify",
    ),
    path("venues/<str:venue_id>/checkin", CheckinView.as_view(), name="checkin"),
]
