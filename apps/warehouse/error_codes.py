"""Map engine and Mikro errors to a client-facing code and retry decision."""

from __future__ import annotations

from django.db import DatabaseError

from apps.mikro.exceptions import MikroQueryError

from .exceptions import WarehouseError


def classify_exception(exc: Exception) -> tuple[str, bool, int | None]:
    if isinstance(exc, WarehouseError):
        return exc.error_code, exc.retryable, exc.status_code
    if isinstance(exc, MikroQueryError):
        return exc.error_code, exc.retryable, exc.status_code
    if isinstance(exc, DatabaseError):
        return "database_error", True, 503
    return "unexpected_error", False, 500
