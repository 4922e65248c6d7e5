from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime as django_parse_datetime

ZERO = Decimal("0")


def to_decimal(value: Any, default: str = "0") -> Decimal:
    """Convert arbitrary input to Decimal without raising."""
    if value is None or isinstance(value, bool):
        return Decimal(default)
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal(default)
    if isinstance(value, (int, float)):
        result = Decimal(str(value))
        return result if result.is_finite() else Decimal(default)
    text = str(value).strip()
    if not text:
        return Decimal(default)
    try:
        result = Decimal(text)
    except (InvalidOperation, ValueError):
        return Decimal(default)
    return result if result.is_finite() else Decimal(default)


def non_negative(value: Any) -> Decimal:
    return max(to_decimal(value), ZERO)


def to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return int(number)


def normalize_code(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_dt(value: Any) -> Optional[datetime]:
    """Parse a datetime keeping timezone awareness consistent."""
    if isinstance(value, datetime):
        return value if timezone.is_aware(value) else timezone.make_aware(value, timezone.get_default_timezone())
    if not value:
        return None
    try:
        parsed = django_parse_datetime(str(value))
    except (TypeError, ValueError):
        parsed = None
    if parsed is None:
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, timezone.get_default_timezone())
    return parsed


def mikro_now() -> datetime:
    """Current local time without tzinfo; Mikro stores naive local datetimes."""
    return timezone.localtime(timezone.now()).replace(tzinfo=None)
