"""Production settings."""
import os
from .base import *  # noqa

DEBUG = False

ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "").split(",") if os.getenv("ALLOWED_HOSTS") else ["*"]

DATABASES["default"]["CONN_MAX_AGE"] = int(os.getenv("CONN_MAX_AGE", "60"))  # noqa: F405
DATABASES["mikro"]["CONN_MAX_AGE"] = 0  # noqa: F405
