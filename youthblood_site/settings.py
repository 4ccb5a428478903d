# youthblood_site/settings.py
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def _env_bool(name, default=False):
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-insecure-secret-key-change-me-in-production")
DEBUG = _env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = [h.strip() for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "youthblood",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "youthblood.session.ViewerMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "youthblood_site.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.messages.context_processors.messages",
                "youthblood.context_processors.viewer",
            ],
        },
    },
]

WSGI_APPLICATION = "youthblood_site.wsgi.application"

# all data lives behind the external backend
DATABASES = {}

# the session only carries the signed viewer token and profile extras
SESSION_ENGINE = "django.contrib.sessions.backends.signed_cookies"
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
MESSAGE_STORAGE = "django.contrib.messages.storage.cookie.CookieStorage"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

LOGIN_URL = "login"

# -------------------- external backend --------------------
BLOODS_API_URL = os.environ.get("BLOODS_API_URL", "http://localhost:5000")
BACKEND_TIMEOUT = float(os.environ.get("BACKEND_TIMEOUT", "10"))

# -------------------- session token --------------------
SESSION_TOKEN_ALGORITHM = "HS256"
SESSION_TOKEN_MAX_AGE_DAYS = int(os.environ.get("SESSION_TOKEN_MAX_AGE_DAYS", "30"))
SESSION_COOKIE_AGE = SESSION_TOKEN_MAX_AGE_DAYS * 24 * 60 * 60

# -------------------- pages --------------------
REQUESTS_PAGE_SIZE = int(os.environ.get("REQUESTS_PAGE_SIZE", "6"))
ADMIN_ACTIVITY_LIMIT = int(os.environ.get("ADMIN_ACTIVITY_LIMIT", "50"))

# -------------------- logging --------------------
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "youthblood": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "django": {"handlers": ["console"], "level": "WARNING"},
    },
}
