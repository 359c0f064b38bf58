"""
Django settings for the TODO list backend.

Every tunable is read from a TODO_* environment variable so the same
settings module serves development, tests and deployment.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

ENV_PREFIX = "TODO"


def _k(suffix):
    return f"{ENV_PREFIX}_{suffix}"


def _env(name, default=""):
    v = os.getenv(_k(name))
    return default if v is None else v


def _env_bool(name, default):
    raw = os.getenv(_k(name))
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name, default):
    raw = os.getenv(_k(name))
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name, default):
    raw = os.getenv(_k(name))
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


SECRET_KEY = _env("SECRET_KEY", "django-insecure-todo-development-key-change-me")

DEBUG = _env_bool("DEBUG", False)

ALLOWED_HOSTS = _env_list("ALLOWED_HOSTS", ["localhost", "127.0.0.1", "testserver"])

INSTALLED_APPS = [
    "tasks.apps.TasksConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "tasks.middleware.RequestLogMiddleware",
]

ROOT_URLCONF = "todo_project.urls"

WSGI_APPLICATION = "todo_project.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": _env_path("DB_PATH", BASE_DIR / "db.sqlite3"),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = _env("TIME_ZONE", "UTC")
USE_I18N = False
USE_TZ = True

STATIC_URL = "static/"

# routes match with or without the trailing slash
APPEND_SLASH = False

TODO_SEED_SAMPLE_TASKS = _env_bool("SEED_SAMPLE_TASKS", True)

LOG_LEVEL = _env("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "tasks": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "todo_client": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        # 4xx answers are validation results, not server faults
        "django.request": {
            "handlers": ["console"],
            "level": "ERROR",
            "propagate": False,
        },
    },
}
