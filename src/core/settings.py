"""Django settings for restbase-update project."""

import sys
from pathlib import Path

import dj_database_url
from decouple import Csv, config

# Build paths
BASE_DIR = Path(__file__).resolve().parent.parent
VAR_DIR = BASE_DIR.parent / "var"

# Security
SECRET_KEY = config("SECRET_KEY", default="")
DEBUG = config("DEBUG", default=False, cast=bool)
ALLOWED_HOSTS = config("ALLOWED_HOSTS", default="*", cast=Csv())

# Application definition
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "restbase.apps.RestbaseConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "core.urls"

WSGI_APPLICATION = "core.wsgi.application"

# Database
DATABASES = {
    "default": dj_database_url.parse(config("DATABASE_URL", default=f"sqlite:///{VAR_DIR / 'data' / 'restbase.db'}"))
}

DEFAULT_AUTO_FIELD = "django.db.models.AutoField"

TIME_ZONE = "UTC"
USE_TZ = True

# Wiki configuration
SITE_URL = config("SITE_URL", default="http://localhost")
RESTBASE_WIKI_API_URL = config("RESTBASE_WIKI_API_URL", default=f"{SITE_URL.rstrip('/')}/w/api.php")
RESTBASE_WIKI_BACKEND = config(
    "RESTBASE_WIKI_BACKEND", default="restbase.services.wiki_backend.MediaWikiApiBackend"
)
RESTBASE_USER_AGENT = config("RESTBASE_USER_AGENT", default="restbase-update/0.2.0")

# RESTBase configuration
RESTBASE_SERVER = config("RESTBASE_SERVER", default="http://localhost:7321")
# Defaults to SITE_URL's host name when empty
RESTBASE_DOMAIN = config("RESTBASE_DOMAIN", default="")
RESTBASE_API_VERSION = config("RESTBASE_API_VERSION", default="v1")
RESTBASE_REQUEST_TIMEOUT = config("RESTBASE_REQUEST_TIMEOUT", default=10, cast=float)

# Job partitioning
RESTBASE_ROWS_PER_JOB = config("RESTBASE_ROWS_PER_JOB", default=300, cast=int)
RESTBASE_TITLES_PER_JOB = config("RESTBASE_TITLES_PER_JOB", default=4, cast=int)

# Job queue behaviour
RESTBASE_MAX_RETRIES = config("RESTBASE_MAX_RETRIES", default=3, cast=int)
RESTBASE_ROOT_JOB_TTL = config("RESTBASE_ROOT_JOB_TTL", default=14 * 24 * 3600, cast=int)  # 2 weeks
RESTBASE_REMOVE_DUPLICATES = config("RESTBASE_REMOVE_DUPLICATES", default=True, cast=bool)
RESTBASE_DISCARD_SUPERSEDED_JOBS = config("RESTBASE_DISCARD_SUPERSEDED_JOBS", default=True, cast=bool)
# Dotted path to a (job, queue) -> bool callable replacing the default policy
RESTBASE_STALE_JOB_POLICY = config("RESTBASE_STALE_JOB_POLICY", default="")

# Celery configuration
CELERY_BROKER_URL = config("CELERY_BROKER_URL", default="redis://localhost:6379/1")
CELERY_RESULT_BACKEND = config("CELERY_RESULT_BACKEND", default="redis://localhost:6379/1")
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_TIME_LIMIT = 30 * 60  # 30 min hard limit
CELERY_TASK_SOFT_TIME_LIMIT = 25 * 60  # 25 min soft limit
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_REJECT_ON_WORKER_LOST = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_TASK_IGNORE_RESULT = True

# Test mode - synchronous execution
if "pytest" in sys.modules:
    CELERY_TASK_ALWAYS_EAGER = True
    CELERY_TASK_EAGER_PROPAGATES = True
else:
    CELERY_TASK_ALWAYS_EAGER = config("CELERY_TASK_ALWAYS_EAGER", default=False, cast=bool)

# Cache configuration (pending-job and root-job de-duplication)
# Use Redis cache if REDIS_URL is provided, otherwise use local memory cache
REDIS_URL = config("REDIS_URL", default="")
if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_URL,
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
            },
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        }
    }

# Logging
LOG_LEVEL = config("LOG_LEVEL", default="INFO")
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
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
}
