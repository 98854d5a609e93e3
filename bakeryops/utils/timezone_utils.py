from __future__ import annotations

from datetime import date, datetime, timezone as dt_timezone

import pytz
from flask import current_app, has_app_context

DEFAULT_TIMEZONE = "UTC"


class TimezoneUtils:
    """Timestamps are stored in UTC; calendar days are the bakery's local days."""

    @staticmethod
    def utc_now() -> datetime:
        return datetime.now(dt_timezone.utc).replace(tzinfo=None)

    @staticmethod
    def get_bakery_timezone():
        name = DEFAULT_TIMEZONE
        if has_app_context():
            name = current_app.config.get("BAKERY_TIMEZONE") or DEFAULT_TIMEZONE
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            return pytz.timezone(DEFAULT_TIMEZONE)

    @staticmethod
    def now() -> datetime:
        return datetime.now(pytz.utc).astimezone(TimezoneUtils.get_bakery_timezone())

    @staticmethod
    def bakery_today() -> date:
        return TimezoneUtils.now().date()

    @staticmethod
    def seconds_since(started_at: datetime | None, now: datetime | None = None) -> int:
        """Whole seconds elapsed since a naive-UTC ``started_at``."""
        if started_at is None:
            return 0
        now = now or TimezoneUtils.utc_now()
        return max(0, int((now - started_at).total_seconds()))
