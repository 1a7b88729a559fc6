import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

# ---------------------------------
#   .env
# ---------------------------------
# Load .env from the project root when present
env_path = BASE_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)

# ---------------------------------
#   Security / Debug
# ---------------------------------
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me-in-development-only")

DEBUG = os.getenv("DJANGO_DEBUG", "True") == "True"

# e.g. "127.0.0.1 localhost shop.example.com"
_raw_hosts = os.getenv("DJANGO_ALLOWED_HOSTS", "")
if _raw_hosts.strip():
    ALLOWED_HOSTS = _raw_hosts.split()
else:
    ALLOWED_HOSTS = ["127.0.0.1", "localhost"]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "import_export",
    "core.apps.CoreConfig",
    "identifiers.apps.IdentifiersConfig",
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

ROOT_URLCONF = "ordersite.urls"

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

LANGUAGE_CODE = "en"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -----------------------------
#   Identifier fields
# -----------------------------
# Defaults applied to new IdentifierField rows, plus the sequence lock switch.
IDENTIFIERS = {
    "DEFAULT_PREFIX": "R",
    "DEFAULT_SEQUENCE_LENGTH": 4,
    "DEFAULT_ENABLE_RANDOM_DIGITS": True,
    "DEFAULT_ENABLE_CHECKSUM": True,
    # Lock the field row while allocating a sequence number
    "LOCK_SEQUENCE": os.getenv("IDENTIFIERS_LOCK_SEQUENCE", "True") == "True",
}

# -----------------------------
#   Logging
# -----------------------------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "identifiers": {
            "handlers": ["console"],
            "level": os.getenv("IDENTIFIERS_LOG_LEVEL", "INFO"),
        },
        "core": {
            "handlers": ["console"],
            "level": os.getenv("IDENTIFIERS_LOG_LEVEL", "INFO"),
        },
    },
}
