"""Django settings for the check-in API.

Values come from environment variables; defaults are for local development.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name: str, default: bool = False) -> bool:
    return os.environ.get(name, str(default)).lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-dev-only")
DEBUG = env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "checkins.apps.CheckinsConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

if os.environ.get("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ["POSTGRES_DB"],
            "USER": os.environ.get("POSTGRES_USER", "postgres"),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", ""),
            "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
            "PORT": os.environ.get("POSTGRES_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = "UTC"
STATIC_URL = "static/"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "UNAUTHENTICATED_USER": "django.contrib.auth.models.AnonymousUser",
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.ScopedRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "checkin-commit": os.environ.get("CHECKIN_COMMIT_RATE", "10/min"),
        "checkin-verify": os.environ.get("CHECKIN_VERIFY_RATE", "30/min"),
        "checkin-status": os.environ.get("CHECKIN_STATUS_RATE", "120/min"),
        "venue-code": os.environ.get("CHECKIN_VENUE_CODE_RATE", "120/min"),
    },
    "EXCEPTION_HANDLER": "checkins.handlers.views.api_exception_handler",
}

# Check-in engine
CHECKIN_MAX_RANGE_METERS = float(os.environ.get("CHECKIN_MAX_RANGE_METERS", "100"))
CHECKIN_CODE_DIGITS = int(os.environ.get("CHECKIN_CODE_DIGITS", "6"))
CHECKIN_CODE_WINDOW_SECONDS = int(os.environ.get("CHECKIN_CODE_WINDOW_SECONDS", "30"))
CHECKIN_CODE_STALE_WINDOWS = int(os.environ.get("CHECKIN_CODE_STALE_WINDOWS", "10"))
CHECKIN_KIOSK_API_KEY = os.environ.get("CHECKIN_KIOSK_API_KEY", "")
CHECKIN_RECEIPT_SCORER = os.environ.get(
    "CHECKIN_RECEIPT_SCORER", "checkins.services.receipts.NullReceiptScorer"
)
CHECKIN_VENUE_CACHE_TTL = int(os.environ.get("CHECKIN_VENUE_CACHE_TTL", "300"))

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "checkins": {
            "handlers": ["console"],
            "level": os.environ.get("CHECKIN_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
