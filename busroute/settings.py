"""
Django settings for the bus route recorder.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-insecure-route-recorder-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = [host for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if host]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "route_recording",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "busroute.urls"
WSGI_APPLICATION = "busroute.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("ROUTE_RECORDING_DB", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_TZ = True

ROUTE_RECORDING = {
    "SIMPLIFY_TOLERANCE": 0.00005,
    "INITIAL_FIX_ATTEMPTS": 3,
    "INITIAL_FIX_MAX_ACCURACY_M": 100.0,
    "INITIAL_FIX_BACKOFF_SECONDS": float(os.environ.get("ROUTE_RECORDING_FIX_BACKOFF", "2.0")),
    "POOR_SIGNAL_ALERT_COUNT": 10,
    "RECORDED_ROUTES_LIMIT": 10,
    "SESSION_IDLE_TIMEOUT_SECONDS": int(os.environ.get("ROUTE_RECORDING_IDLE_TIMEOUT", "3600")),
}

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
        "route_recording": {
            "handlers": ["console"],
            "level": os.environ.get("ROUTE_RECORDING_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
