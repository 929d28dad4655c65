from checkins.handlers.views import (
    CheckinView,
    CodeVerifyView,
    LocationVerifyView,
    ReceiptVerifyView,
    VenueCodeView,
)

__all__ = [
    "CheckinView",
    "CodeVerifyView",
    "LocationVerifyView",
    "ReceiptVerifyView",
    "VenueCodeView",
]
