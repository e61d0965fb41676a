"""
Development settings for LicenseTrustService.
"""
import os

from .base import *  # noqa: F403, F401
from .logging import get_logging_config

DEBUG = True

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "0.0.0.0"]

# Database - PostgreSQL by default, DB_ENGINE=sqlite for a local file
if os.environ.get("DB_ENGINE") == "sqlite":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
            "OPTIONS": {"transaction_mode": "IMMEDIATE", "timeout": 20},
        }
    }

LOGGING = get_logging_config("development")

# Email backend for development
EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
