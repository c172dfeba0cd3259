# bloodbank/settings.py
import os
from pathlib import Path

from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")


def _env_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


# -------------------- Core --------------------
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-secret-change-me")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "bloodstock",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
]

ROOT_URLCONF = "bloodbank.urls"
WSGI_APPLICATION = "bloodbank.wsgi.application"

# -------------------- Database --------------------
DATABASES = {
    "default": {
        "ENGINE": os.getenv("BLOODBANK_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.getenv("BLOODBANK_DB_NAME", str(BASE_DIR / "bloodbank.sqlite3")),
        "USER": os.getenv("BLOODBANK_DB_USER", ""),
        "PASSWORD": os.getenv("BLOODBANK_DB_PASSWORD", ""),
        "HOST": os.getenv("BLOODBANK_DB_HOST", ""),
        "PORT": os.getenv("BLOODBANK_DB_PORT", ""),
        "ATOMIC_REQUESTS": False,
    }
}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

# -------------------- Blood bank --------------------
# Shared password for administrative API calls (delete, status, transfer)
PORTAL_PASSWORD = os.getenv("BLOODBANK_PORTAL_PASSWORD", "change-me")
# Days a freshly donated lot stays usable
SHELF_LIFE_DAYS = int(os.getenv("BLOODBANK_SHELF_LIFE_DAYS", "42"))
# Volume of one standard unit
UNIT_VOLUME_ML = int(os.getenv("BLOODBANK_UNIT_VOLUME_ML", "450"))

# -------------------- Logging --------------------
LOG_LEVEL = os.getenv("BLOODBANK_LOG_LEVEL", "INFO").upper()
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "console": {"format": "%(levelname)s %(message)s"},
        "file": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(LOG_DIR / "bloodbank.log"),
            "maxBytes": 5 * 1024 * 1024,  # 5 MB
            "backupCount": 3,
            "encoding": "utf-8",
            "formatter": "file",
        },
    },
    "loggers": {
        "bloodstock": {
            "handlers": ["console", "file"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
