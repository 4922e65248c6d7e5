"""Test settings: file-backed SQLite for both the local and the Mikro alias."""
import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("MIKRO_DATABASE_URL", "sqlite:///:memory:")

from .base import *  # noqa: E402,F401,F403

TEST_DB_DIR = os.environ.get("TEST_DB_DIR", tempfile.gettempdir())

# Writers take the database lock at BEGIN and wait up to 30s for it.
_SQLITE_OPTIONS = {
    "timeout": 30,
    "transaction_mode": "IMMEDIATE",
    "init_command": "PRAGMA journal_mode=WAL;",
}

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.path.join(TEST_DB_DIR, "warehouse_default.sqlite3"),
        "OPTIONS": dict(_SQLITE_OPTIONS),
        "TEST": {"NAME": os.path.join(TEST_DB_DIR, "test_warehouse_default.sqlite3")},
    },
    "mikro": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.path.join(TEST_DB_DIR, "warehouse_mikro.sqlite3"),
        "OPTIONS": dict(_SQLITE_OPTIONS),
        "TEST": {"NAME": os.path.join(TEST_DB_DIR, "test_warehouse_mikro.sqlite3")},
    },
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "warehouse-tests",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Reservation lookups hit Mikro on every call unless a test opts into caching.
WAREHOUSE_WORKFLOW = {**WAREHOUSE_WORKFLOW, "reservation_cache_ttl": 0}  # noqa: F405
