from datetime import date
from typing import Any, Optional

from ..services.exceptions import ValidationError


def parse_date(value: Any, field: str, required: bool = True) -> Optional[date]:
    """Accept ``YYYY-MM-DD`` strings (or dates) from request payloads."""
    if value in (None, ''):
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format", field=field)


def parse_int(value: Any, field: str, required: bool = True) -> Optional[int]:
    if value in (None, ''):
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a whole number", field=field)


def parse_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {'1', 'true', 'yes', 'on'}
