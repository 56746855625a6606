"""
Django settings for reviewhub_project.

Every deploy-specific value is read from the environment so the same
settings module serves development, tests and the scheduler host.
"""

import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name, default):
    raw = os.environ.get(name)
    if not raw:
        return default
    return int(raw)


# ============================================================
# CORE
# ============================================================

SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY",
    "django-insecure-reviewhub-development-key",
)

DEBUG = _env_bool("DJANGO_DEBUG", False)

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Project apps
    "accounts",
    "reviews",
    "notifications",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "reviewhub_project.urls"

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

WSGI_APPLICATION = "reviewhub_project.wsgi.application"


# ============================================================
# DATABASE
# ============================================================

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("DB_USER", ""),
        "PASSWORD": os.environ.get("DB_PASSWORD", ""),
        "HOST": os.environ.get("DB_HOST", ""),
        "PORT": os.environ.get("DB_PORT", ""),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

AUTH_USER_MODEL = "accounts.User"


# ============================================================
# I18N / TIME
# ============================================================

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("DJANGO_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"


# ============================================================
# EMAIL
# ============================================================

EMAIL_BACKEND = os.environ.get(
    "EMAIL_BACKEND",
    "django.core.mail.backends.smtp.EmailBackend",
)
EMAIL_HOST = os.environ.get("EMAIL_HOST", "localhost")
EMAIL_PORT = _env_int("EMAIL_PORT", 587)
EMAIL_HOST_USER = os.environ.get("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = _env_bool("EMAIL_USE_TLS", True)
EMAIL_TIMEOUT = _env_int("EMAIL_TIMEOUT", 20)
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "noreply@reviewhub.local")


# ============================================================
# REVIEW REMINDERS
# ============================================================

# Start the in-process APScheduler (disable on web workers
# when a dedicated scheduler host runs the job).
ENABLE_SCHEDULER = _env_bool("ENABLE_SCHEDULER", False)

# Set on exactly one long-running process (e.g. a single worker or a
# dedicated scheduler container). runserver needs no opt-in.
REMINDER_SCHEDULER_PROCESS = _env_bool("REMINDER_SCHEDULER_PROCESS", False)

REMINDER_INTERVAL_MINUTES = _env_int("REMINDER_INTERVAL_MINUTES", 60)

# 1 = send sequentially
REMINDER_MAX_WORKERS = _env_int("REMINDER_MAX_WORKERS", 4)

REMINDER_SEND_TIMEOUT_SECONDS = _env_int("REMINDER_SEND_TIMEOUT_SECONDS", 30)

REMINDER_NOTIFIER = os.environ.get(
    "REMINDER_NOTIFIER",
    "notifications.services.reminders.notifier.EmailNotifier",
)

# Shared secret for the HTTP trigger; empty disables the endpoint.
REMINDER_TRIGGER_TOKEN = os.environ.get("REMINDER_TRIGGER_TOKEN", "")


# ============================================================
# LOGGING
# ============================================================

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "notifications": {
            "handlers": ["console"],
            "level": os.environ.get("REMINDER_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "reviews": {
            "handlers": ["console"],
            "level": os.environ.get("REMINDER_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
