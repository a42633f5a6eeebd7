"""Django settings for the example checkout server.

Uses a persistent SQLite database and reads secrets from ``examples/.env``
so a local identity provider can sign bearer tokens with the same key.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "example-dev-key-not-for-production")
SALT_KEY = os.environ.get("SALT_KEY", "example-salt-key-not-for-production")
DEBUG = True
ALLOWED_HOSTS = ["*"]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.messages",
    "django.contrib.sessions",
    "django.contrib.staticfiles",
    "django_checkout.events",
    "django_checkout.registration",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True

STATIC_URL = "static/"
MEDIA_URL = "/media/"
MEDIA_ROOT = BASE_DIR / "media"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"console": {"class": "logging.StreamHandler"}},
    "loggers": {
        "django_checkout": {"handlers": ["console"], "level": os.environ.get("CHECKOUT_LOG_LEVEL", "INFO")},
    },
}

DJANGO_CHECKOUT = {
    "auth": {
        "secret_key": os.environ.get("CHECKOUT_TOKEN_SECRET", "example-token-secret-not-for-production"),
        "algorithms": ["HS256"],
        "audience": os.environ.get("CHECKOUT_TOKEN_AUDIENCE") or None,
        "issuer": os.environ.get("CHECKOUT_TOKEN_ISSUER") or None,
    },
    "export": {
        "timezone": "America/Sao_Paulo",
    },
}
