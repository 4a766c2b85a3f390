from pathlib import Path
import os
import tempfile
from dotenv import load_dotenv
from django.core.exceptions import ImproperlyConfigured

# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def env(name: str, default=None, *, required: bool = False):
    val = os.getenv(name, default)
    if required and (val is None or (isinstance(val, str) and val.strip() == "")):
        raise ImproperlyConfigured(f"Missing required environment variable: {name}")
    return val

def env_bool(name: str, default: bool = False) -> bool:
    return str(os.getenv(name, str(default))).lower() in {"1", "true", "yes", "on"}

def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ImproperlyConfigured(f"Environment variable {name} must be an integer, got {raw!r}")

# -----------------------------------------------------
# Paths & basics
# -----------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

DEBUG = env_bool("DEBUG", False)

# In production (DEBUG=False) you must set a strong secret in .env
SECRET_KEY = env("DJANGO_SECRET_KEY", "dev-only-secret-key-change-me", required=not DEBUG)

# Keep hosts explicit by default
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost,testserver").split(",") if h.strip()]

# -----------------------------------------------------
# Applications
# -----------------------------------------------------
INSTALLED_APPS = [
    # Third-party
    "rest_framework",

    # Local
    "thumbnails",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "preview_service.urls"

WSGI_APPLICATION = "preview_service.wsgi.application"

# No models are persisted; thumbnails are returned to the caller, never stored.
DATABASES = {}

# -----------------------------------------------------
# Internationalization
# -----------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# -----------------------------------------------------
# Django REST Framework
# -----------------------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.FormParser",
    ],
    # django.contrib.auth is not installed; request.user stays None.
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
}

# -----------------------------------------------------
# Logging
# -----------------------------------------------------
LOG_LEVEL = env("LOG_LEVEL", "INFO").upper()

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
        "thumbnails": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "celery": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
}

# -----------------------------------------------------
# Celery / Redis
# -----------------------------------------------------
CELERY_BROKER_URL = env("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = env("CELERY_RESULT_BACKEND", "redis://127.0.0.1:6379/0")
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = env_int("CELERY_TASK_TIME_LIMIT", 60 * 5)  # seconds

# -----------------------------------------------------
# S3 / MinIO (env-driven; no hardcoded secrets)
# -----------------------------------------------------
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL") or None  # None means AWS; set for MinIO
S3_REGION = os.getenv("S3_REGION") or os.getenv("AWS_DEFAULT_REGION") or "us-east-1"
S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY")          # falls back to the default AWS chain
S3_SECRET_KEY = os.getenv("S3_SECRET_KEY")
S3_ADDRESSING_STYLE = os.getenv("S3_ADDRESSING_STYLE", "path" if S3_ENDPOINT_URL else "auto")

# -----------------------------------------------------
# Thumbnails
# -----------------------------------------------------
THUMBNAIL_MAX_WIDTH = env_int("THUMBNAIL_MAX_WIDTH", 200)
THUMBNAIL_MAX_HEIGHT = env_int("THUMBNAIL_MAX_HEIGHT", 200)
# Objects above this size are never fully downloaded.
THUMBNAIL_MAX_OBJECT_SIZE = env_int("THUMBNAIL_MAX_OBJECT_SIZE", 30 * 1024 * 1024)
# Leading bytes fetched to read the header of an oversized image.
THUMBNAIL_PARTIAL_DOWNLOAD_BYTES = env_int("THUMBNAIL_PARTIAL_DOWNLOAD_BYTES", 100 * 1024)
THUMBNAIL_FORMAT = env("THUMBNAIL_FORMAT", "png").lower()
THUMBNAIL_ALLOW_UPSCALE = env_bool("THUMBNAIL_ALLOW_UPSCALE", True)
THUMBNAIL_SCRATCH_DIR = Path(env("THUMBNAIL_SCRATCH_DIR", str(Path(tempfile.gettempdir()) / "thumbnails")))

THUMBNAIL_FFMPEG_BINARY = env("THUMBNAIL_FFMPEG_BINARY", "ffmpeg")
THUMBNAIL_VIDEO_FRAME_OFFSET = env("THUMBNAIL_VIDEO_FRAME_OFFSET", "00:00:01")
THUMBNAIL_PDF_DPI = env_int("THUMBNAIL_PDF_DPI", 150)
THUMBNAIL_PDF_QUALITY = env_int("THUMBNAIL_PDF_QUALITY", 100)

# Office -> PDF conversion runs in a separate worker reached over Celery.
THUMBNAIL_PDF_TASK = env("THUMBNAIL_PDF_TASK", "pdf_handler.convert")
THUMBNAIL_PDF_QUEUE = env("THUMBNAIL_PDF_QUEUE") or None
THUMBNAIL_PDF_TIMEOUT = env_int("THUMBNAIL_PDF_TIMEOUT", 300)  # seconds
THUMBNAIL_PDF_PREFIX = env("THUMBNAIL_PDF_PREFIX", "scratch/pdf/")
