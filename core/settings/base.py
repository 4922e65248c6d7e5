from __future__ import annotations

from pathlib import Path
import environ

env = environ.Env()
environ.Env.read_env()

# Core paths
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Environment selection
ENVIRONMENT = env("DJANGO_ENV", default="local")

# Security & basic config
SECRET_KEY = env("SECRET_KEY")
DEBUG = env.bool("DEBUG", default=False)

ALLOWED_HOSTS: list[str] = env.list("ALLOWED_HOSTS", default=[])

INSTALLED_APPS = [
    # Django
    "django.contrib.auth",
    "django.contrib.contenttypes",

    # Third-party
    "rest_framework",

    # Project apps
    "apps.core",
    "apps.mikro",
    "apps.warehouse",
]

# Database configuration
# "default" holds the fulfillment layer, "mikro" is the ERP database we mirror into.
DATABASES = {
    "default": env.db("DATABASE_URL"),
    "mikro": env.db("MIKRO_DATABASE_URL"),
}

MIKRO_QUERY_TIMEOUT = env.int("MIKRO_QUERY_TIMEOUT", default=30)
if DATABASES["mikro"]["ENGINE"] == "mssql":
    DATABASES["mikro"].setdefault("OPTIONS", {})
    DATABASES["mikro"]["OPTIONS"].setdefault("query_timeout", MIKRO_QUERY_TIMEOUT)

MIKRO_DATABASE_ALIAS = "mikro"
DATABASE_ROUTERS = ["apps.mikro.routers.MikroRouter"]

# Cache
CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": env("REDIS_URL", default="redis://localhost:6379/0"),
        "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
        "KEY_PREFIX": "warehouse",
    }
}

LANGUAGE_CODE = "tr-tr"
TIME_ZONE = "Europe/Istanbul"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOG_LEVEL = env("LOG_LEVEL", default="INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "apps": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "events": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}

# Warehouse workflow engine
WAREHOUSE_WORKFLOW = {
    "excluded_sector_prefix": env("WAREHOUSE_EXCLUDED_SECTOR_PREFIX", default="SATICI"),
    "stock_warehouses": env.list("WAREHOUSE_STOCK_WAREHOUSES", default=[]),
    "delivery_document_type": env.int("WAREHOUSE_DELIVERY_DOCUMENT_TYPE", default=1),
    "reservation_cache_ttl": env.int("WAREHOUSE_RESERVATION_CACHE_TTL", default=30),
    "vat_code_map": {
        0: "0.00",
        1: "0.00",
        2: "0.01",
        3: "0.00",
        4: "0.18",
        5: "0.20",
        6: "0.00",
        7: "0.10",
    },
}
