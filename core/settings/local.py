"""Local development settings."""
from .base import *  # noqa

DEBUG = True

LOG_LEVEL = "DEBUG"
LOGGING["loggers"]["apps"]["level"] = LOG_LEVEL  # noqa: F405

# Database - Configuración para desarrollo local
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": env("DB_NAME", default="warehouse"),  # noqa: F405
        "USER": env("DB_USER", default="warehouse"),  # noqa: F405
        "PASSWORD": env("DB_PASSWORD", default="warehouse"),  # noqa: F405
        "HOST": env("DB_HOST", default="localhost"),  # noqa: F405
        "PORT": env("DB_PORT", default="5433"),  # noqa: F405
    },
    "mikro": DATABASES["mikro"],  # noqa: F405
}
